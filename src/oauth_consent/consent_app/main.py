"""
OAuth 2.1 Consent Application

This FastAPI application renders the consent screen of an OAuth 2.1
authorization code flow with PKCE. It validates the inbound authorization
request, shows the requesting client's details, and exchanges the user's
approval for an authorization code that is sent back to the client.
"""

from fastapi import FastAPI, Request, Form, Depends
from fastapi.templating import Jinja2Templates
from fastapi.staticfiles import StaticFiles
from fastapi.responses import HTMLResponse
from typing import Optional
from pathlib import Path
import httpx

from ..shared.config import CONSENT_CONFIG
from ..shared.logging_utils import OAuthLogger
from ..shared.oauth_models import ConsentViewState, Error, Ready, Redirecting
from ..shared.security import SecurityHeaders
from .controller import ConsentController
from .gateways import AuthorizationGateway, ClientInfoGateway
from .navigation import ResponseNavigator, cancel_navigation
from .storage import ConsentViewStore
from .wording import build_consent_wording

# Initialize FastAPI app
app = FastAPI(
    title="OAuth 2.1 Consent Application",
    description="Consent screen for the OAuth 2.1 authorization code flow with PKCE",
    version="1.0.0"
)

# Configure templates and static files
templates_dir = Path(__file__).parent / "templates"
static_dir = Path(__file__).parent / "static"

templates = Jinja2Templates(directory=str(templates_dir))
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

# Initialize logger
logger = OAuthLogger("CONSENT-APP")

view_store = ConsentViewStore(ttl_minutes=CONSENT_CONFIG["view_ttl_minutes"])

EXPIRED_MESSAGE = "This consent request has expired. Please start the authorization again."


def get_api_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport for authorization API calls (overridden in tests)."""
    return None


def get_view_store() -> ConsentViewStore:
    """Process-wide consent view store."""
    return view_store


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers to all HTTP responses."""
    response = await call_next(request)

    for header_name, header_value in SecurityHeaders.get_oauth_security_headers().items():
        response.headers[header_name] = header_value

    return response


def render_error(request: Request, message: str, status_code: int = 200) -> HTMLResponse:
    """Render the error view that replaces the whole consent UI."""
    return templates.TemplateResponse(
        request=request,
        name="error.html",
        context={"message": message},
        status_code=status_code
    )


def render_state(request: Request, state: ConsentViewState, view_id: str) -> HTMLResponse:
    """Render the template matching a consent view state."""
    if isinstance(state, Error):
        return render_error(request, state.message)

    if isinstance(state, Ready):
        return templates.TemplateResponse(
            request=request,
            name="consent.html",
            context={
                "view_id": view_id,
                "client_info": state.client_info,
                "auth_request": state.request,
                "wording": build_consent_wording(state.client_info)
            }
        )

    # The view was torn down while a call was in flight
    logger.log_error("consent_view_expired", EXPIRED_MESSAGE, {"state": state.kind})
    return render_error(request, EXPIRED_MESSAGE, status_code=410)


@app.get("/", response_class=HTMLResponse)
async def home(request: Request):
    """Application home page, the target of a cancel without history."""
    return templates.TemplateResponse(request=request, name="home.html", context={})


@app.get("/authorize", response_class=HTMLResponse)
async def authorize_page(request: Request,
                         transport: Optional[httpx.AsyncBaseTransport] = Depends(get_api_transport),
                         store: ConsentViewStore = Depends(get_view_store)):
    """
    Consent page for an inbound authorization request.

    Creates a consent view, validates the query parameters and loads the
    client's details, then renders either the consent screen or the error
    view.
    """
    logger.log_oauth_message(
        "USER-BROWSER", "CONSENT-APP",
        "Authorization Request Received",
        {
            "client_id": request.query_params.get("client_id"),
            "scope": request.query_params.get("scope"),
            "redirect_uri": request.query_params.get("redirect_uri"),
            "response_type": request.query_params.get("response_type"),
            "code_challenge_method": request.query_params.get("code_challenge_method")
        }
    )

    navigator = ResponseNavigator(templates)
    controller = ConsentController(
        ClientInfoGateway(CONSENT_CONFIG["api_base_url"], CONSENT_CONFIG["request_timeout"], transport),
        AuthorizationGateway(CONSENT_CONFIG["api_base_url"], CONSENT_CONFIG["request_timeout"], transport),
        navigator,
        CONSENT_CONFIG["allowed_redirect_hosts"]
    )
    view_id = store.create(controller, navigator)

    state = await controller.load(dict(request.query_params))
    store.discard_if_terminal(view_id)

    return render_state(request, state, view_id)


@app.post("/authorize/{view_id}/approve")
async def approve(request: Request, view_id: str,
                  store: ConsentViewStore = Depends(get_view_store)):
    """
    Approve the authorization request.

    On success the browser is redirected to the client's redirect URI with
    the authorization code and state appended.
    """
    view = store.get(view_id)
    if view is None:
        return render_error(request, EXPIRED_MESSAGE, status_code=404)

    if not isinstance(view.controller.state, Ready):
        return render_error(
            request,
            "This consent request has already been submitted.",
            status_code=409
        )

    state = await view.controller.approve()
    store.discard_if_terminal(view_id)

    if isinstance(state, Redirecting):
        return view.navigator.response

    return render_state(request, state, view_id)


@app.post("/authorize/{view_id}/cancel")
async def cancel(request: Request, view_id: str,
                 history_length: int = Form(1),
                 store: ConsentViewStore = Depends(get_view_store)):
    """
    Cancel the authorization request.

    Goes back in browser history when there is somewhere to go back to,
    otherwise to the home page.
    """
    view = store.get(view_id)
    if view is None:
        navigator = ResponseNavigator(templates, history_length)
        cancel_navigation(navigator)
        return navigator.response

    if view.controller.state.kind not in ("loading", "ready"):
        return render_error(
            request,
            "This consent request can no longer be cancelled.",
            status_code=409
        )

    view.navigator.report_history_length(history_length)
    view.controller.cancel()
    store.discard(view_id)

    return view.navigator.response


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "oauth-consent-app"}


if __name__ == "__main__":
    import uvicorn
    logger.log_startup(CONSENT_CONFIG["port"], {"api_base_url": CONSENT_CONFIG["api_base_url"]})
    uvicorn.run(app, host=CONSENT_CONFIG["host"], port=CONSENT_CONFIG["port"])
