"""Server URI normalisation and object-id extraction from OMERO links."""

import re
import urllib.parse

from .errors import InvalidArgumentError
from .objects import OmeroObjectType

# Image links produced by the various OMERO viewers
_IMAGE_PATTERNS = (
    re.compile(r"/webgateway/img_detail/(\d+)"),
    re.compile(r"/webclient/img_detail/(\d+)"),
    re.compile(r"/iviewer/\?images=(\d+)"),
    re.compile(r"images=(\d+)"),
    re.compile(r"show=image-(\d+)"),
    re.compile(r"img_detail/(\d+)"),
)

_LINK_PATTERNS = {
    OmeroObjectType.IMAGE:   _IMAGE_PATTERNS,
    OmeroObjectType.PROJECT: (re.compile(r"show=project-(\d+)"),),
    OmeroObjectType.DATASET: (re.compile(r"show=dataset-(\d+)"),),
    OmeroObjectType.PLATE:   (re.compile(r"show=plate-(\d+)"),),
    OmeroObjectType.WELL:    (re.compile(r"show=well-(\d+)"),),
    OmeroObjectType.SCREEN:  (re.compile(r"show=screen-(\d+)"),),
}


def server_uri(uri: str) -> str:
    """
    Reduce *uri* to the server it points at: scheme, host and port only.

    ``https://omero.example.org:4080/webclient/?show=image-3``
    becomes ``https://omero.example.org:4080``.
    """
    try:
        parsed = urllib.parse.urlparse(uri.strip())
    except ValueError as exc:
        raise InvalidArgumentError(f"Could not parse server from {uri!r}") from exc
    if parsed.scheme not in ("http", "https"):
        raise InvalidArgumentError(
            f"The URL must contain a scheme (e.g. \"https://\"): {uri!r}"
        )
    if not parsed.hostname:
        raise InvalidArgumentError(f"Could not parse server from {uri!r}")
    try:
        port = parsed.port
    except ValueError as exc:
        raise InvalidArgumentError(f"Invalid port in {uri!r}") from exc

    host = parsed.hostname
    if ":" in host:             # IPv6 literal
        host = f"[{host}]"
    netloc = f"{host}:{port}" if port is not None else host
    return urllib.parse.urlunparse((parsed.scheme, netloc, "", "", "", ""))


def server_url(server: str, path: str) -> str:
    """Join an absolute *path* (which may carry a query) onto a server URI."""
    return server.rstrip("/") + path


def parse_object_id(uri: str, object_type: OmeroObjectType) -> int:
    """
    Return the id of the *object_type* object referenced by *uri*, or -1.

    Encoded ``=`` signs (``%3D``) are decoded first so links copied from
    the browser address bar still match.
    """
    clean = uri.replace("%3D", "=").replace("%3d", "=")
    for pattern in _LINK_PATTERNS.get(object_type, ()):
        m = pattern.search(clean)
        if m:
            try:
                return int(m.group(1))
            except ValueError:
                # Digit string past the int conversion limit
                return -1
    return -1
