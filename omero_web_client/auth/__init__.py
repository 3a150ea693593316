"""Authentication submodule – credentials, CSRF token, login request."""

from omero_web_client.auth.credentials import (
    Credentials,
    CredentialPrompt,
    encode_login_body,
    scrub,
)
from omero_web_client.auth.login import (
    Group,
    describe_html_error,
    extract_session_id,
    parse_login_payload,
    post_login,
    referer,
)
from omero_web_client.auth.token import get_csrf_token

__all__ = [
    "Credentials",
    "CredentialPrompt",
    "encode_login_body",
    "scrub",
    "Group",
    "describe_html_error",
    "extract_session_id",
    "parse_login_payload",
    "post_login",
    "referer",
    "get_csrf_token",
]
