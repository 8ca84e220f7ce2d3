"""
OAuth 2.1 consent flow Pydantic models.

This module defines the data models shared by the consent application:
the validated authorization request, the client metadata shown on the
consent screen, the authorization result, and the consent view states.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Literal, Optional, Union
from enum import Enum


class PKCEMethod(str, Enum):
    """PKCE code challenge methods as defined in RFC 7636."""
    S256 = "S256"


class ResponseType(str, Enum):
    """OAuth 2.1 response types."""
    CODE = "code"


class AuthorizationRequest(BaseModel):
    """
    Validated OAuth 2.1 authorization request.

    Built by the parameter validator from the inbound query string and
    read by every downstream component. Instances are frozen.
    """
    client_id: str = Field(..., min_length=1, description="OAuth client identifier")
    scope: str = Field(..., min_length=1, description="Requested scope")
    state: str = Field(default="", description="Opaque state value passed back to the client")
    redirect_uri: str = Field(..., min_length=1, description="Client redirect URI")
    response_type: ResponseType = Field(
        default=ResponseType.CODE,
        validate_default=True,
        description="OAuth response type (must be 'code')"
    )
    code_challenge: str = Field(..., min_length=1, description="PKCE code challenge")
    code_challenge_method: PKCEMethod = Field(
        ...,
        description="PKCE challenge method (must be S256)"
    )

    def authorize_params(self) -> dict:
        """Query parameters sent to the authorization endpoint."""
        return {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": self.response_type,
            "scope": self.scope,
            "code_challenge": self.code_challenge,
            "code_challenge_method": self.code_challenge_method,
        }

    model_config = ConfigDict(use_enum_values=True, frozen=True)


class ClientInfoData(BaseModel):
    """Wire shape of the client metadata returned by the scopes endpoint."""
    name: str
    description: str
    display_description: Optional[str] = None
    previously_consented: Any = None
    scope_description: List[str] = Field(default_factory=list)


class ClientInfoPayload(BaseModel):
    """Envelope of the scopes endpoint response."""
    data: ClientInfoData


class ClientInfo(BaseModel):
    """
    Display metadata of the requesting client.

    Created once per successful lookup and discarded with the view.
    """
    name: str = Field(..., description="Client display name")
    description: str = Field(..., description="Client description")
    display_description: str = Field(..., description="Description shown on the consent screen")
    previously_consented: bool = Field(
        default=False,
        description="Whether the user already granted this client access"
    )
    scope_descriptions: List[str] = Field(
        default_factory=list,
        description="Human-readable permission descriptions, in order"
    )

    @classmethod
    def from_payload(cls, payload: Any) -> "ClientInfo":
        """
        Build client info from the scopes endpoint response body.

        The display description falls back to the plain description when
        the server sends none, and previous consent only counts when the
        server sends a literal true.

        Raises:
            ValueError: If the body does not match the expected shape
                (pydantic.ValidationError is a ValueError)
        """
        if not isinstance(payload, dict):
            raise ValueError("Client info response must be a JSON object")

        data = ClientInfoPayload(**payload).data
        return cls(
            name=data.name,
            description=data.description,
            display_description=data.display_description or data.description,
            previously_consented=data.previously_consented is True,
            scope_descriptions=list(data.scope_description),
        )

    model_config = ConfigDict(frozen=True)


class AuthorizationResult(BaseModel):
    """Authorization code returned after the user approves."""
    code: str = Field(..., min_length=1, description="Opaque authorization code")

    @field_validator('code')
    @classmethod
    def validate_code(cls, v):
        """Reject whitespace-only codes."""
        if not v.strip():
            raise ValueError("Authorization code must not be blank")
        return v

    model_config = ConfigDict(frozen=True)


class AuthorizeErrorBody(BaseModel):
    """Optional error body of a failed authorization call."""
    message: Optional[str] = None


# Consent view states

class Loading(BaseModel):
    """Client metadata is being fetched."""
    kind: Literal["loading"] = "loading"

    model_config = ConfigDict(frozen=True)


class Error(BaseModel):
    """Terminal failure shown instead of the consent UI."""
    kind: Literal["error"] = "error"
    message: str

    model_config = ConfigDict(frozen=True)


class Ready(BaseModel):
    """Consent UI is shown and waiting for the user."""
    kind: Literal["ready"] = "ready"
    client_info: ClientInfo
    request: AuthorizationRequest

    model_config = ConfigDict(frozen=True)


class Submitting(BaseModel):
    """Approval is in flight."""
    kind: Literal["submitting"] = "submitting"
    client_info: ClientInfo
    request: AuthorizationRequest

    model_config = ConfigDict(frozen=True)


class Redirecting(BaseModel):
    """Terminal success: the user agent is sent back to the client."""
    kind: Literal["redirecting"] = "redirecting"
    url: str

    model_config = ConfigDict(frozen=True)


ConsentViewState = Union[Loading, Error, Ready, Submitting, Redirecting]

TERMINAL_STATES = ("error", "redirecting")


def is_terminal(state: ConsentViewState) -> bool:
    """Return True for states the view never leaves."""
    return state.kind in TERMINAL_STATES
