"""
Detection of the OMERO image-region microservice.

See https://github.com/glencoesoftware/omero-ms-image-region.  The probe
does not need a session id, but raw tiles can only be fetched later when
both the session id and the microservice are present.
"""

import requests

from .config import MICROSERVICE_PROVIDER, REQUEST_TIMEOUT, TILE_URL
from .errors import ProtocolError
from .uri import server_url


def probe_microservice(session: requests.Session, server: str) -> bool:
    """
    Send ``OPTIONS <server>/tile/`` and report whether the pixel-buffer
    microservice answers it.

    Raises ProtocolError for any non-200 answer or an unreadable body.
    """
    resp = session.options(server_url(server, TILE_URL), timeout=REQUEST_TIMEOUT)
    if resp.status_code != 200:
        raise ProtocolError(f"Could not check for OMERO microservice ({resp.status_code})")
    try:
        provider = resp.json().get("provider")
    except (ValueError, AttributeError) as exc:
        raise ProtocolError("Malformed microservice probe response") from exc
    return provider == MICROSERVICE_PROVIDER
