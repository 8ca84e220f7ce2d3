"""
Authorization request parameter validation.

Turns the inbound query string of the consent page into a validated
AuthorizationRequest, or raises ValidationError naming the first offending
parameter.
"""

from typing import Iterable, Mapping, Optional

from ..shared.errors import ValidationError
from ..shared.logging_utils import OAuthLogger
from ..shared.oauth_models import AuthorizationRequest, PKCEMethod, ResponseType
from ..shared.security import InputValidator

logger = OAuthLogger("CONSENT-APP")

# Checked in this order; the first missing or empty one is reported
REQUIRED_PARAMS = (
    "client_id",
    "scope",
    "redirect_uri",
    "response_type",
    "code_challenge",
    "code_challenge_method",
)


def _reject(field: str, message: str, value: Optional[str] = None) -> ValidationError:
    logger.log_validation(field, {"error": message}, success=False)
    return ValidationError(field, message, value)


def validate_authorization_params(
    params: Mapping[str, str],
    allowed_redirect_hosts: Optional[Iterable[str]] = None
) -> AuthorizationRequest:
    """
    Validate the inbound authorization request parameters.

    Args:
        params: Raw query string keys mapped to their values
        allowed_redirect_hosts: Hosts redirect_uri may point to (default: any)

    Returns:
        AuthorizationRequest: The validated request

    Raises:
        ValidationError: On the first missing, empty or invalid parameter
    """
    for field in REQUIRED_PARAMS:
        if not params.get(field):
            raise _reject(field, f"Missing required parameter: {field}")

    response_type = params["response_type"]
    if response_type != ResponseType.CODE.value:
        raise _reject(
            "response_type",
            f"Invalid response_type: '{response_type}'. Only 'code' is supported",
            response_type
        )

    code_challenge_method = params["code_challenge_method"]
    if code_challenge_method != PKCEMethod.S256.value:
        raise _reject(
            "code_challenge_method",
            f"Invalid code_challenge_method: '{code_challenge_method}'. Only 'S256' is supported",
            code_challenge_method
        )

    redirect_uri = params["redirect_uri"]
    if not InputValidator.validate_redirect_uri(redirect_uri, allowed_redirect_hosts):
        raise _reject(
            "redirect_uri",
            f"Invalid redirect_uri: '{redirect_uri}'",
            redirect_uri
        )

    auth_request = AuthorizationRequest(
        client_id=params["client_id"],
        scope=params["scope"],
        state=params.get("state") or "",
        redirect_uri=redirect_uri,
        response_type=response_type,
        code_challenge=params["code_challenge"],
        code_challenge_method=code_challenge_method
    )

    logger.log_validation(
        None,
        {
            "client_id": auth_request.client_id,
            "scope": auth_request.scope,
            "redirect_uri": auth_request.redirect_uri,
            "code_challenge": auth_request.code_challenge,
            "state_present": bool(auth_request.state)
        }
    )

    return auth_request
