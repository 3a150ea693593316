"""Quick, unauthenticated reachability check for OMERO objects."""

from __future__ import annotations

import requests

from .config import OBJECT_API_URL, REQUEST_TIMEOUT
from .errors import InvalidArgumentError, OmeroError, UnsupportedTypeError
from .logging_setup import log
from .objects import OmeroObjectType
from .uri import parse_object_id, server_uri, server_url


def object_query_path(uri: str, object_type: OmeroObjectType) -> str:
    """
    Return the JSON API path for the object *uri* points at.

    Raises InvalidArgumentError for orphaned folders, unknown types and
    links without an object id; UnsupportedTypeError for the other types.
    """
    if object_type in (OmeroObjectType.ORPHANED_FOLDER, OmeroObjectType.UNKNOWN):
        raise InvalidArgumentError(f"Cannot access an object of type {object_type}")
    if object_type not in (
        OmeroObjectType.PROJECT, OmeroObjectType.DATASET, OmeroObjectType.IMAGE,
    ):
        raise UnsupportedTypeError(f"Type not supported: {object_type}")

    object_id = parse_object_id(uri, object_type)
    if object_id == -1:
        raise InvalidArgumentError(f"No object ID found in: {uri}")
    return OBJECT_API_URL.format(kind=object_type.to_url_string(), id=object_id)


def can_be_accessed(
    uri: str,
    object_type: OmeroObjectType,
    session: requests.Session | None = None,
) -> bool:
    """
    Return True when the object behind *uri* answers ``200`` on the JSON API.

    Being logged in does not imply access to every object, and this check
    never raises: every failure is logged and reported as False.
    """
    try:
        log.debug("Attempting to access %s...", str(object_type).lower())
        url = server_url(server_uri(uri), object_query_path(uri, object_type))
        getter = session.get if session is not None else requests.get
        resp = getter(
            url,
            headers={"Content-Type": "application/json"},
            timeout=REQUEST_TIMEOUT,
        )
        return resp.status_code == 200
    except (OmeroError, requests.RequestException) as exc:
        log.warning("Error attempting to access OMERO object: %s", exc)
        return False
