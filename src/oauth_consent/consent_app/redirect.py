"""
Final redirect construction.
"""

from urllib.parse import urlencode, urlsplit, urlunsplit


def compose_redirect_url(redirect_uri: str, code: str, state: str) -> str:
    """
    Append the authorization code and state to the client redirect URI.

    Existing query parameters on redirect_uri are kept and the new ones are
    appended after them.

    Args:
        redirect_uri: Client redirect URI from the authorization request
        code: Authorization code issued by the authorization server
        state: Opaque state value from the authorization request

    Returns:
        str: The redirect target

    Example:
        compose_redirect_url("https://app.example/cb?x=1", "abc123", "xyz")
        # Returns: "https://app.example/cb?x=1&code=abc123&state=xyz"
    """
    parts = urlsplit(redirect_uri)
    appended = urlencode({"code": code, "state": state})
    query = f"{parts.query}&{appended}" if parts.query else appended

    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
