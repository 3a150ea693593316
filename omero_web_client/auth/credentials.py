"""
Credentials and password-buffer handling.

Passwords are kept in ``bytearray`` objects so they can be overwritten
with zero bytes once the login body has been sent.  This is a best-effort
mitigation only: the interpreter, ``str`` objects the caller created, and
socket-layer copies made while sending are outside our control.
"""

from __future__ import annotations

from collections.abc import Callable

_UNRESERVED = frozenset(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_.-~"
)
# Precomputed so that percent-encoding never allocates password-derived bytes
_PERCENT = tuple(b"%%%02X" % i for i in range(256))


def scrub(buffer: bytearray) -> None:
    """Overwrite *buffer* in place with zero bytes."""
    buffer[:] = bytes(len(buffer))


class Credentials:
    """A username and a scrubbable password."""

    __slots__ = ("username", "password")

    def __init__(self, username: str, password: bytes | bytearray | str) -> None:
        self.username = username
        if isinstance(password, str):
            password = password.encode("utf-8")
        self.password = bytearray(password)

    def clear(self) -> None:
        scrub(self.password)

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password=<hidden>)"


# prompt(server_uri, last_username) -> Credentials, or None when cancelled
CredentialPrompt = Callable[[str, str], "Credentials | None"]


def _form_quote_into(out: bytearray, value: bytes | bytearray) -> None:
    for byte in value:
        if byte in _UNRESERVED:
            out.append(byte)
        elif byte == 0x20:
            out.append(0x2B)            # '+'
        else:
            out += _PERCENT[byte]


def encode_login_body(server_id: int, credentials: Credentials) -> bytearray:
    """
    Build ``server=<id>&username=<user>&password=<pass>`` form-encoded,
    directly into a bytearray the caller must :func:`scrub` after use.
    """
    body = bytearray(b"server=")
    body += str(server_id).encode("ascii")
    body += b"&username="
    _form_quote_into(body, credentials.username.encode("utf-8"))
    body += b"&password="
    _form_quote_into(body, credentials.password)
    return body
