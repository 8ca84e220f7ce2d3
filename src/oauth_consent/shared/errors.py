"""
Error taxonomy for the consent flow.

Validation and gateway errors are converted into the terminal error view
by the consent controller. State errors signal an action dispatched from
a view state that does not accept it.
"""

from typing import Optional


class ConsentFlowError(Exception):
    """Base class for consent flow errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ConsentFlowError):
    """
    Missing, empty, or semantically invalid authorization request parameter.

    Attributes:
        field: Name of the first offending query parameter
        value: The rejected value, if one was supplied
    """

    def __init__(self, field: str, message: str, value: Optional[str] = None):
        super().__init__(message)
        self.field = field
        self.value = value


class GatewayError(ConsentFlowError):
    """
    Failed call to the authorization API.

    The reason distinguishes a non-success status, a malformed body and a
    transport failure for logging; the view treats them all alike.
    """

    STATUS = "status"
    MALFORMED_BODY = "malformed_body"
    TRANSPORT = "transport"

    def __init__(self, message: str, reason: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.reason = reason
        self.status_code = status_code


class ConsentStateError(ConsentFlowError):
    """Action dispatched while the consent view is in a state that forbids it."""

    def __init__(self, action: str, state_kind: str):
        super().__init__(f"Cannot {action} while consent view is {state_kind}")
        self.action = action
        self.state_kind = state_kind
