"""Anti-CSRF token retrieval."""

import requests

from ..config import REQUEST_TIMEOUT
from ..errors import ProtocolError
from ..logging_setup import log


def get_csrf_token(session: requests.Session, token_url: str) -> str:
    """GET the token endpoint (``{"data": "<token>"}``) and return the token."""
    resp = session.get(token_url, timeout=REQUEST_TIMEOUT)
    resp.raise_for_status()
    try:
        token = resp.json()["data"]
    except (ValueError, KeyError, TypeError) as exc:
        raise ProtocolError(f"Malformed CSRF token response from {token_url}") from exc
    if not isinstance(token, str) or not token:
        raise ProtocolError(f"Empty CSRF token from {token_url}")
    log.debug("CSRF token obtained from %s", token_url)
    return token
