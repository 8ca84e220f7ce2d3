"""
Consent application configuration.

Values come from environment variables with local development defaults.
"""

import os
from typing import Dict, Any, Mapping, Optional


DEFAULT_API_BASE_URL = "https://dev-api.orqestra.io"


def _parse_hosts(raw: str) -> list:
    """Split a comma separated host list, dropping blanks."""
    return [host.strip().lower() for host in raw.split(",") if host.strip()]


def load_config(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Build the consent configuration from an environment mapping.

    Args:
        environ: Environment variables (default: os.environ)

    Returns:
        dict: Configuration values

    Raises:
        ValueError: If a numeric setting cannot be parsed
    """
    if environ is None:
        environ = os.environ

    return {
        "api_base_url": environ.get("CONSENT_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
        "request_timeout": float(environ.get("CONSENT_REQUEST_TIMEOUT", "10")),
        "allowed_redirect_hosts": _parse_hosts(environ.get("CONSENT_ALLOWED_REDIRECT_HOSTS", "")),
        "view_ttl_minutes": int(environ.get("CONSENT_VIEW_TTL_MINUTES", "10")),
        "host": environ.get("CONSENT_HOST", "0.0.0.0"),
        "port": int(environ.get("CONSENT_PORT", "8080")),
        "callback_port": int(environ.get("CALLBACK_PORT", "3000")),
    }


# Consent flow configuration
CONSENT_CONFIG = load_config()
