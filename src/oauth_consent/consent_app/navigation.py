"""
Navigation of the user agent.

The consent controller never touches browser state directly: it drives a
NavigationPort. ResponseNavigator is the web implementation, turning each
navigation into the HTTP response sent back to the browser.
"""

from abc import ABC, abstractmethod
from typing import Optional

from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from ..shared.logging_utils import OAuthLogger

logger = OAuthLogger("CONSENT-APP")

HOME_PATH = "/"


class NavigationPort(ABC):
    """Navigation and session history operations used by the consent flow."""

    @abstractmethod
    def redirect(self, url: str) -> None:
        """Navigate the user agent to url."""

    @abstractmethod
    def go_back(self) -> None:
        """Navigate one step back in session history."""

    @abstractmethod
    def go_home(self) -> None:
        """Navigate to the application root path."""

    @abstractmethod
    def history_depth(self) -> int:
        """Number of entries in session history."""


def cancel_navigation(port: NavigationPort) -> None:
    """
    Leave the consent page without deciding.

    A page reached through in-app navigation has somewhere to go back to;
    a page opened from a direct link does not, so it goes home instead.
    """
    depth = port.history_depth()
    if depth > 1:
        logger.log_navigation("back", {"history_depth": depth})
        port.go_back()
    else:
        logger.log_navigation("home", {"history_depth": depth, "target": HOME_PATH})
        port.go_home()


class ResponseNavigator(NavigationPort):
    """
    Navigation rendered as HTTP responses.

    Redirects become 303 See Other responses; going back becomes a small
    page that pops browser history. The browser reports its history length
    with the cancel form.
    """

    def __init__(self, templates: Jinja2Templates, history_length: int = 1):
        self.templates = templates
        self.history_length = history_length
        self.response: Optional[Response] = None

    def report_history_length(self, history_length: int) -> None:
        self.history_length = max(history_length, 0)

    def redirect(self, url: str) -> None:
        logger.log_navigation("redirect", {"target": url.split("?", 1)[0]})
        self.response = RedirectResponse(url, status_code=303)

    def go_back(self) -> None:
        page = self.templates.get_template("navigate_back.html").render(home_path=HOME_PATH)
        self.response = HTMLResponse(page)

    def go_home(self) -> None:
        self.response = RedirectResponse(HOME_PATH, status_code=303)

    def history_depth(self) -> int:
        return self.history_length
