"""
Authorization API gateways.

The consent application talks to two endpoints of the authorization API:
a read-only client metadata lookup and the write call that exchanges the
user's consent for an authorization code. Every failure (non-success
status, malformed body, transport error) surfaces as GatewayError.
"""

from typing import Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..shared.errors import GatewayError
from ..shared.logging_utils import OAuthLogger
from ..shared.oauth_models import (
    AuthorizationRequest,
    AuthorizationResult,
    AuthorizeErrorBody,
    ClientInfo,
)

logger = OAuthLogger("CONSENT-APP")

SCOPES_PATH = "/oauth/scopes"
AUTHORIZE_PATH = "/oauth/authorize"


class _BaseGateway:
    """Shared HTTP client settings for the authorization API."""

    def __init__(self, base_url: str, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            base_url: Authorization API base URL
            timeout: Request timeout in seconds
            transport: Alternative httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    def _transport_error(self, path: str, error: Exception) -> GatewayError:
        logger.log_oauth_message(
            "CONSENT-APP", "AUTH-API",
            "Authorization API Unreachable",
            {
                "endpoint": f"{self.base_url}{path}",
                "error": "network_error",
                "error_description": str(error)
            },
            success=False
        )
        return GatewayError(
            f"Failed to connect to authorization server: {error}",
            GatewayError.TRANSPORT
        )


class ClientInfoGateway(_BaseGateway):
    """Read-only lookup of the requesting client's display metadata."""

    async def fetch(self, auth_request: AuthorizationRequest) -> ClientInfo:
        """
        Fetch client metadata for the consent screen.

        Args:
            auth_request: The validated authorization request

        Returns:
            ClientInfo: Client name, descriptions and consent history

        Raises:
            GatewayError: On any failure of the lookup
        """
        params = {
            "client_id": auth_request.client_id,
            "scope": auth_request.scope
        }
        logger.log_http_request("GET", SCOPES_PATH, params=params)

        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.base_url}{SCOPES_PATH}",
                    params=params,
                    headers={"Accept": "application/json"}
                )
        except httpx.HTTPError as e:
            raise self._transport_error(SCOPES_PATH, e) from e

        if not response.is_success:
            logger.log_oauth_message(
                "AUTH-API", "CONSENT-APP",
                "Client Info Lookup Failed",
                {
                    "status_code": response.status_code,
                    "client_id": auth_request.client_id
                },
                success=False
            )
            raise GatewayError(
                f"Failed to load application details (HTTP {response.status_code})",
                GatewayError.STATUS,
                response.status_code
            )

        try:
            client_info = ClientInfo.from_payload(response.json())
        except ValueError as e:
            logger.log_oauth_message(
                "AUTH-API", "CONSENT-APP",
                "Client Info Response Malformed",
                {
                    "status_code": response.status_code,
                    "error_description": str(e)
                },
                success=False
            )
            raise GatewayError(
                "Received an invalid response while loading application details",
                GatewayError.MALFORMED_BODY,
                response.status_code
            ) from e

        logger.log_oauth_message(
            "AUTH-API", "CONSENT-APP",
            "RESPONSE",
            {
                "client_name": client_info.name,
                "previously_consented": client_info.previously_consented,
                "scope_descriptions": len(client_info.scope_descriptions)
            }
        )

        return client_info


class AuthorizationGateway(_BaseGateway):
    """Exchanges the user's consent for an authorization code."""

    def _error_message(self, response: httpx.Response) -> str:
        """Use the server's message when the error body carries one."""
        if response.headers.get("content-type", "").startswith("application/json"):
            try:
                body = AuthorizeErrorBody(**response.json())
            except (ValueError, TypeError):
                body = AuthorizeErrorBody()
            if body.message:
                return body.message

        return f"Authorization failed with status {response.status_code}"

    async def authorize(self, auth_request: AuthorizationRequest) -> AuthorizationResult:
        """
        Submit the user's approval to the authorization endpoint.

        The request parameters travel in the query string; the request has
        no body.

        Args:
            auth_request: The validated authorization request

        Returns:
            AuthorizationResult: The issued authorization code

        Raises:
            GatewayError: On any failure of the authorization call
        """
        params = auth_request.authorize_params()
        logger.log_http_request("POST", AUTHORIZE_PATH, params=params)

        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.base_url}{AUTHORIZE_PATH}",
                    params=params,
                    headers={"Accept": "application/json"}
                )
        except httpx.HTTPError as e:
            raise self._transport_error(AUTHORIZE_PATH, e) from e

        if not response.is_success:
            message = self._error_message(response)
            logger.log_oauth_message(
                "AUTH-API", "CONSENT-APP",
                "Authorization Failed",
                {
                    "status_code": response.status_code,
                    "error_description": message
                },
                success=False
            )
            raise GatewayError(message, GatewayError.STATUS, response.status_code)

        try:
            payload = response.json()
            if not isinstance(payload, dict):
                raise ValueError("Authorization response must be a JSON object")
            result = AuthorizationResult(**payload)
        except (ValueError, PydanticValidationError) as e:
            logger.log_oauth_message(
                "AUTH-API", "CONSENT-APP",
                "Authorization Response Malformed",
                {
                    "status_code": response.status_code,
                    "error_description": str(e)
                },
                success=False
            )
            raise GatewayError(
                "Received an invalid response from the authorization server",
                GatewayError.MALFORMED_BODY,
                response.status_code
            ) from e

        logger.log_oauth_message(
            "AUTH-API", "CONSENT-APP",
            "RESPONSE",
            {
                "authorization_code": result.code,
                "client_id": auth_request.client_id
            }
        )

        return result
