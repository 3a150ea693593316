"""Login POST, session-id extraction and login payload parsing."""

from __future__ import annotations

import io
import json
from dataclasses import dataclass

import requests
from bs4 import BeautifulSoup

from ..config import REQUEST_TIMEOUT, SESSION_COOKIE
from ..errors import AuthenticationError, ProtocolError
from ..session import _BS4_PARSER
from .credentials import Credentials, encode_login_body, scrub


@dataclass(frozen=True)
class Group:
    """The user's default group, as reported in the login event context."""

    id: int
    name: str


def referer(url: str, port: int) -> str:
    """Referer value the OMERO web server expects on CSRF-protected POSTs."""
    return f"{url}:{port}"


def post_login(
    session: requests.Session,
    login_url: str,
    server_id: int,
    port: int,
    credentials: Credentials,
    token: str,
) -> requests.Response:
    """
    POST the credentials to *login_url*.

    The form body is built in a bytearray and streamed from a BytesIO; both
    buffers and the credential password are zeroed once the request has been
    sent, whether or not it succeeded.
    """
    body = encode_login_body(server_id, credentials)
    stream = io.BytesIO(body)
    try:
        return session.post(
            login_url,
            data=stream,
            headers={
                "X-CSRFToken": token,
                "Referer": referer(login_url, port),
                "Content-Type": "application/x-www-form-urlencoded",
            },
            timeout=REQUEST_TIMEOUT,
        )
    finally:
        view = stream.getbuffer()
        view[:] = bytes(len(view))
        view.release()
        stream.close()
        scrub(body)
        credentials.clear()


def extract_session_id(cookies: requests.cookies.RequestsCookieJar) -> str:
    """Return the ``sessionid`` cookie value or raise AuthenticationError."""
    session_id = None
    for cookie in cookies:
        if cookie.name == SESSION_COOKIE and cookie.value:
            session_id = cookie.value
    if session_id is None:
        raise AuthenticationError("no session id in response")
    return session_id


def parse_login_payload(text: str) -> tuple[Group | None, int]:
    """
    Parse ``{"eventContext": {"userId": .., "groupId": .., "groupName": ..}}``.

    Returns ``(default_group, user_id)``; the group is None when the event
    context carries no group id.
    """
    try:
        context = json.loads(text)["eventContext"]
        user_id = int(context["userId"])
    except (ValueError, KeyError, TypeError) as exc:
        raise ProtocolError("Malformed login response: no eventContext/userId") from exc

    group = None
    if context.get("groupId") is not None:
        try:
            group = Group(int(context["groupId"]), str(context.get("groupName", "")))
        except (TypeError, ValueError) as exc:
            raise ProtocolError("Malformed default group in login response") from exc
    return group, user_id


def describe_html_error(resp: requests.Response) -> str:
    """
    Summarise an HTML page returned instead of a login result.

    Some deployments answer bad credentials with ``200`` and the login
    form; the form's error list (or the page title) is the useful part.
    """
    ct = resp.headers.get("Content-Type", "").split(";")[0].strip().lower()
    if ct not in ("text/html", "application/xhtml+xml"):
        return ""
    soup = BeautifulSoup(resp.text, _BS4_PARSER)
    node = soup.select_one(".errorlist, .error, #error")
    if node is None:
        node = soup.title
    if node is None:
        return ""
    return " ".join(node.get_text(" ").split())
