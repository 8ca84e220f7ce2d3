"""
Consent screen wording.

Returning users are asked to continue an access they granted before;
everyone else sees first-consent phrasing.
"""

from typing import Dict

from ..shared.oauth_models import ClientInfo


def build_consent_wording(client_info: ClientInfo) -> Dict[str, str]:
    """
    Build the headline and permission intro for the consent screen.

    Args:
        client_info: Metadata of the requesting client

    Returns:
        dict: "headline", "permissions_intro" and "approve_label"
    """
    name = client_info.name

    if client_info.previously_consented:
        return {
            "headline": f"{name} would like to continue accessing your account",
            "permissions_intro": f"Continue allowing {name} to:",
            "approve_label": "Continue",
        }

    return {
        "headline": f"{name} wants to access your account",
        "permissions_intro": f"This will allow {name} to:",
        "approve_label": "Authorize",
    }
