"""Exception types for the OMERO web client.

Transport failures (connection refused, timeouts, DNS) are not wrapped:
they surface as ``requests.RequestException`` subclasses.
"""


class OmeroError(Exception):
    """Base exception for all OMERO web client errors."""


class ProtocolError(OmeroError):
    """The server answered with a malformed or unexpected response."""


class UnsupportedVersionError(OmeroError):
    """The server advertises no usable API version."""


class UnsupportedTypeError(OmeroError):
    """The object type is recognised but not handled."""


class RedirectError(OmeroError):
    """The server redirected a discovery request."""

    def __init__(self, url: str, location: str | None, status: int) -> None:
        self.url = url
        self.location = location
        self.status = status
        super().__init__(
            f"{status}: could not reach {url}, "
            f"resource moved to {location or 'unknown'}"
        )


class AuthenticationError(OmeroError):
    """Credentials were rejected or no session was established."""


class InvalidArgumentError(OmeroError, ValueError):
    """The caller supplied an unusable URI or object type."""
