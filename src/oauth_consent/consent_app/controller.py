"""
Consent view state machine.

One ConsentController drives one consent page view:

    Loading -> Ready | Error
    Ready -> Submitting
    Submitting -> Redirecting | Error

Error and Redirecting are terminal. Validation and gateway errors are
caught here and become the Error state; nothing is retried.
"""

from typing import Callable, Iterable, List, Mapping, Optional

from ..shared.errors import ConsentFlowError, ConsentStateError, GatewayError, ValidationError
from ..shared.logging_utils import OAuthLogger
from ..shared.oauth_models import (
    ConsentViewState,
    Error,
    Loading,
    Ready,
    Redirecting,
    Submitting,
)
from .gateways import AuthorizationGateway, ClientInfoGateway
from .navigation import NavigationPort, cancel_navigation
from .redirect import compose_redirect_url
from .validation import validate_authorization_params

logger = OAuthLogger("CONSENT-APP")

StateListener = Callable[[ConsentViewState], None]


class ConsentController:
    """
    State machine behind the consent page.

    The controller owns the validated request and the fetched client info
    for the lifetime of the view. After close(), responses still in flight
    are discarded instead of being applied.
    """

    def __init__(self,
                 client_info_gateway: ClientInfoGateway,
                 authorization_gateway: AuthorizationGateway,
                 navigator: NavigationPort,
                 allowed_redirect_hosts: Optional[Iterable[str]] = None):
        self.client_info_gateway = client_info_gateway
        self.authorization_gateway = authorization_gateway
        self.navigator = navigator
        self.allowed_redirect_hosts = list(allowed_redirect_hosts or [])
        self.state: ConsentViewState = Loading()
        self.closed = False
        self._load_started = False
        self._listeners: List[StateListener] = []

    def subscribe(self, listener: StateListener) -> None:
        """Register a callback invoked with every new state."""
        self._listeners.append(listener)

    def _transition(self, new_state: ConsentViewState) -> None:
        logger.log_state_transition(self.state.kind, new_state.kind)
        self.state = new_state
        for listener in self._listeners:
            listener(new_state)

    def _fail(self, error: ConsentFlowError) -> None:
        details = {"error_type": type(error).__name__}
        if isinstance(error, ValidationError):
            details["field"] = error.field
        elif isinstance(error, GatewayError):
            details["reason"] = error.reason
            if error.status_code is not None:
                details["status_code"] = error.status_code
        logger.log_error("consent_flow_failed", error.message, details)
        self._transition(Error(message=error.message))

    def _discarded(self, action: str) -> bool:
        """Check whether a response arrived after the view was torn down."""
        if self.closed:
            logger.log_info(
                "Discarding response for closed consent view",
                {"action": action, "state": self.state.kind}
            )
        return self.closed

    async def load(self, params: Mapping[str, str]) -> ConsentViewState:
        """
        Validate the authorization request and fetch the client's metadata.

        Args:
            params: Inbound query string parameters

        Returns:
            The resulting view state (Ready or Error)

        Raises:
            ConsentStateError: If the view was already loaded
        """
        if self._load_started or self.state.kind != "loading":
            raise ConsentStateError("load", self.state.kind)
        self._load_started = True

        try:
            auth_request = validate_authorization_params(params, self.allowed_redirect_hosts)
        except ValidationError as e:
            self._fail(e)
            return self.state

        try:
            client_info = await self.client_info_gateway.fetch(auth_request)
        except GatewayError as e:
            if not self._discarded("load"):
                self._fail(e)
            return self.state

        if not self._discarded("load"):
            self._transition(Ready(client_info=client_info, request=auth_request))
        return self.state

    async def approve(self) -> ConsentViewState:
        """
        Exchange the user's consent for an authorization code and redirect.

        Returns:
            The resulting view state (Redirecting or Error)

        Raises:
            ConsentStateError: If the view is not Ready
        """
        if not isinstance(self.state, Ready):
            raise ConsentStateError("approve", self.state.kind)

        ready = self.state
        self._transition(Submitting(client_info=ready.client_info, request=ready.request))

        try:
            result = await self.authorization_gateway.authorize(ready.request)
        except GatewayError as e:
            if not self._discarded("approve"):
                self._fail(e)
            return self.state

        if self._discarded("approve"):
            return self.state

        url = compose_redirect_url(ready.request.redirect_uri, result.code, ready.request.state)
        self._transition(Redirecting(url=url))
        self.navigator.redirect(url)
        return self.state

    def cancel(self) -> None:
        """
        Leave the consent page without approving.

        The view state is left unchanged.

        Raises:
            ConsentStateError: Unless the view is Loading or Ready
        """
        if self.state.kind not in ("loading", "ready"):
            raise ConsentStateError("cancel", self.state.kind)

        cancel_navigation(self.navigator)

    def close(self) -> None:
        """Tear down the view; later responses are discarded."""
        self.closed = True
