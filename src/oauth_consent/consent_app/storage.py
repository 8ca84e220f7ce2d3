"""
Consent View Storage

In-memory storage of consent view instances. Each GET /authorize creates
one view (a ConsentController and its navigator) that the approve and
cancel form posts find again by its view id.

Note: views live in process memory, so the consent application must run
as a single worker process.
"""

from datetime import datetime, timedelta
from typing import Dict, Optional

from ..shared.logging_utils import OAuthLogger
from ..shared.oauth_models import is_terminal
from ..shared.security import TokenGenerator
from .controller import ConsentController
from .navigation import ResponseNavigator

logger = OAuthLogger("CONSENT-APP")


class ConsentView:
    """A stored consent view with its expiry."""

    def __init__(self, view_id: str, controller: ConsentController,
                 navigator: ResponseNavigator, expires_at: datetime):
        self.view_id = view_id
        self.controller = controller
        self.navigator = navigator
        self.created_at = datetime.utcnow()
        self.expires_at = expires_at

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.utcnow()) > self.expires_at


class ConsentViewStore:
    """
    In-memory storage for consent views.

    Views expire after a configurable number of minutes. Expired and
    discarded views have their controller closed so any response still in
    flight is dropped.
    """

    def __init__(self, ttl_minutes: int = 10):
        """Initialize view store with empty storage."""
        self.ttl = timedelta(minutes=ttl_minutes)
        self._views: Dict[str, ConsentView] = {}

    def create(self, controller: ConsentController, navigator: ResponseNavigator) -> str:
        """
        Store a new consent view.

        Args:
            controller: The view's state machine
            navigator: The view's navigation port

        Returns:
            str: Generated view id
        """
        self.cleanup_expired_views()

        view_id = TokenGenerator.generate_view_id()
        self._views[view_id] = ConsentView(
            view_id, controller, navigator, datetime.utcnow() + self.ttl
        )

        logger.log_oauth_message(
            "CONSENT-APP", "CONSENT-APP",
            "Consent View Created",
            {
                "view_id": view_id[:8] + "...",
                "expires_in_seconds": int(self.ttl.total_seconds()),
                "active_views": len(self._views)
            }
        )

        return view_id

    def get(self, view_id: str) -> Optional[ConsentView]:
        """
        Retrieve a live consent view.

        Returns:
            Optional[ConsentView]: The view, or None if unknown or expired
        """
        view = self._views.get(view_id)
        if view is None:
            return None

        if view.is_expired():
            self.discard(view_id)
            return None

        return view

    def discard(self, view_id: str) -> bool:
        """
        Remove a view and close its controller.

        Returns:
            bool: True if a view was removed
        """
        view = self._views.pop(view_id, None)
        if view is None:
            return False

        view.controller.close()
        return True

    def discard_if_terminal(self, view_id: str) -> bool:
        """Remove the view once its controller reached Error or Redirecting."""
        view = self._views.get(view_id)
        if view is not None and is_terminal(view.controller.state):
            return self.discard(view_id)
        return False

    def cleanup_expired_views(self) -> int:
        """
        Remove expired views from storage.

        Returns:
            int: Number of expired views removed
        """
        now = datetime.utcnow()
        expired = [view_id for view_id, view in self._views.items() if view.is_expired(now)]

        for view_id in expired:
            self.discard(view_id)

        if expired:
            logger.log_oauth_message(
                "CONSENT-APP", "CONSENT-APP",
                "Expired Views Cleanup",
                {
                    "views_removed": len(expired),
                    "remaining_views": len(self._views)
                }
            )

        return len(expired)

    def __len__(self) -> int:
        return len(self._views)
