"""
omero_web_client.discovery
==========================
Resolve an OMERO server's JSON API.

Sequence
--------
1. ``GET <server>/api/``         -> ``{"data": [{"version": .., "url:base": ..}, ..]}``
2. ``GET <url:base of latest>``  -> flat map of endpoint keys to URLs
3. ``GET <url:servers>``         -> ``{"data": [{"id", "host", "port", "server"}, ..]}``

"Latest" is the last version the server lists, not the highest version
number.  Redirects are never followed here: a 3xx answer usually means the
URL was typed with ``http`` for an ``https``-only server, and silently
following it could send credentials to a different host later on.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass

import requests

from .config import API_ROOT, REQUEST_TIMEOUT, URL_BASE, URL_SERVERS
from .errors import ProtocolError, RedirectError, UnsupportedVersionError
from .logging_setup import log
from .uri import server_url


@dataclass(frozen=True)
class APIVersion:
    version: str
    base_url: str


@dataclass(frozen=True)
class ServerRecord:
    id: int
    host: str
    port: int
    server: str

    def __str__(self) -> str:
        return f"Host: {self.host}, Server: {self.server}, ID: {self.id}, Port: {self.port}"


class EndpointMap(Mapping):
    """Read-only endpoint map, keyed exactly as the server reports it."""

    def __init__(self, urls: Mapping[str, str]) -> None:
        self._urls = dict(urls)

    def __getitem__(self, key: str) -> str:
        return self._urls[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._urls)

    def __len__(self) -> int:
        return len(self._urls)

    def __repr__(self) -> str:
        return f"EndpointMap({self._urls!r})"

    def url(self, name: str) -> str:
        """
        Resolve a symbolic endpoint name (``login``, ``token``, ``servers``).

        Raises ProtocolError when the server did not advertise it.
        """
        for key in (f"url:{name}", name):
            if key in self._urls:
                return self._urls[key]
        raise ProtocolError(f"Server does not advertise a '{name}' endpoint")


@dataclass(frozen=True)
class Discovery:
    versions: tuple[APIVersion, ...]
    version: APIVersion
    endpoints: EndpointMap
    server: ServerRecord


def get_json(session: requests.Session, url: str):
    """
    GET *url* and decode its JSON body.

    Raises RedirectError on any 3xx, requests.HTTPError on other error
    statuses and ProtocolError when the body is not JSON.
    """
    resp = session.get(
        url,
        headers={"Content-Type": "application/json"},
        timeout=REQUEST_TIMEOUT,
        allow_redirects=False,
    )
    if 300 <= resp.status_code < 400:
        location = resp.headers.get("Location")
        log.error(
            "Could not reach %s. Source moved (%s) to %s",
            url, resp.status_code, location or "unknown",
        )
        raise RedirectError(url, location, resp.status_code)
    resp.raise_for_status()
    try:
        return resp.json()
    except ValueError as exc:
        raise ProtocolError(f"Response from {url} is not valid JSON") from exc


def parse_versions(document) -> tuple[APIVersion, ...]:
    """Parse the API root document into its ordered version list."""
    if not isinstance(document, dict) or not isinstance(document.get("data"), list):
        raise ProtocolError("API root document has no 'data' version list")
    versions = []
    for entry in document["data"]:
        if not isinstance(entry, dict) or not isinstance(entry.get(URL_BASE), str):
            raise ProtocolError(f"Malformed API version entry: {entry!r}")
        versions.append(APIVersion(str(entry.get("version", "")), entry[URL_BASE]))
    return tuple(versions)


def parse_endpoints(document) -> EndpointMap:
    if not isinstance(document, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in document.items()
    ):
        raise ProtocolError("API version document is not a flat map of URLs")
    return EndpointMap(document)


def parse_servers(document) -> list[ServerRecord]:
    if not isinstance(document, dict) or not isinstance(document.get("data"), list):
        raise ProtocolError("Servers document has no 'data' list")
    servers = []
    for entry in document["data"]:
        try:
            servers.append(ServerRecord(
                id=int(entry["id"]),
                host=str(entry.get("host", "")),
                port=int(entry.get("port", 0)),
                server=str(entry.get("server", "")),
            ))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ProtocolError(f"Malformed server entry: {entry!r}") from exc
    return servers


def discover(session: requests.Session, server: str) -> Discovery:
    """
    Discover the API endpoints and backend server of the OMERO web server at
    *server* (a normalised URI, see :func:`omero_web_client.uri.server_uri`).
    """
    versions = parse_versions(get_json(session, server_url(server, API_ROOT)))
    if not versions:
        raise UnsupportedVersionError(f"{server} does not advertise any API version")
    version = versions[-1]
    log.debug("API versions at %s: %s (using %s)",
              server, [v.version for v in versions], version.version)

    endpoints = parse_endpoints(get_json(session, version.base_url))
    if URL_SERVERS not in endpoints:
        raise ProtocolError(f"API {version.version} does not list '{URL_SERVERS}'")

    servers = parse_servers(get_json(session, endpoints[URL_SERVERS]))
    if not servers:
        raise ProtocolError(f"{server} reports no OMERO servers")
    log.debug("Using OMERO server %s", servers[0])
    return Discovery(versions, version, endpoints, servers[0])
