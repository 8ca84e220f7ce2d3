"""
Security utilities for the consent application.

This module provides redirect URI checks, view identifier generation and
the security headers applied to every consent page response.
"""

import secrets
from typing import Iterable, Optional
from urllib.parse import urlsplit


class InputValidator:
    """
    Input validation utilities.

    Provides checks for OAuth parameters that end up as navigation targets.
    """

    ALLOWED_SCHEMES = ('http', 'https')
    DANGEROUS_CHARS = ('<', '>', '"', ' ', '\\', '\n', '\r', '\t')

    @staticmethod
    def validate_redirect_uri(redirect_uri: str,
                              allowed_hosts: Optional[Iterable[str]] = None) -> bool:
        """
        Validate a client redirect URI before it is used as a navigation target.

        Args:
            redirect_uri: URI to validate
            allowed_hosts: Hosts the URI may point to (default: any host)

        Returns:
            bool: True if the URI is an absolute http(s) URL without a fragment
            whose host is allowed, False otherwise
        """
        if not isinstance(redirect_uri, str):
            return False

        if any(char in redirect_uri for char in InputValidator.DANGEROUS_CHARS):
            return False

        try:
            parsed = urlsplit(redirect_uri)
            hostname = parsed.hostname
            # Accessing the port validates it
            parsed.port
        except ValueError:
            return False

        if parsed.scheme not in InputValidator.ALLOWED_SCHEMES:
            return False

        if not hostname:
            return False

        # Fragments are not allowed in redirection endpoints (RFC 6749 3.1.2)
        if parsed.fragment or redirect_uri.endswith('#'):
            return False

        allowed = [host.lower() for host in allowed_hosts] if allowed_hosts else []
        if allowed and hostname.lower() not in allowed:
            return False

        return True


class TokenGenerator:
    """Secure identifier generation."""

    @staticmethod
    def generate_view_id() -> str:
        """
        Generate an identifier for a consent view instance.

        Returns:
            str: URL-safe view ID
        """
        return secrets.token_urlsafe(24)


class SecurityHeaders:
    """
    Security headers for HTTP responses.

    The consent page must never be framed or cached.
    """

    @staticmethod
    def get_oauth_security_headers() -> dict:
        """
        Get security headers for consent endpoints.

        Returns:
            dict: Dictionary of security headers
        """
        return {
            'X-Content-Type-Options': 'nosniff',
            'X-Frame-Options': 'DENY',
            'Content-Security-Policy': "frame-ancestors 'none'",
            'Referrer-Policy': 'no-referrer',
            'Cache-Control': 'no-cache, no-store, must-revalidate',
            'Pragma': 'no-cache',
            'Expires': '0'
        }
