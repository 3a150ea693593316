"""
Tests for API discovery – version selection, endpoint map, server record.
"""

import json
import unittest
from unittest.mock import MagicMock

import requests

from omero_web_client.discovery import EndpointMap, ServerRecord, discover
from omero_web_client.errors import (
    ProtocolError,
    RedirectError,
    UnsupportedVersionError,
)

SERVER = "https://omero.example.org"

VERSIONS = {"data": [
    {"version": "0-beta", "url:base": SERVER + "/api/v0-beta/"},
    {"version": "1", "url:base": SERVER + "/api/v1/"},
]}
ENDPOINTS = {
    "url:login": SERVER + "/api/v1/login/",
    "url:token": SERVER + "/api/v1/token/",
    "url:servers": SERVER + "/api/v1/servers/",
    "url:projects": SERVER + "/api/v1/m/projects/",
}
SERVERS = {"data": [
    {"id": 3, "host": "localhost", "port": 4064, "server": "omero"},
    {"id": 4, "host": "backup", "port": 4064, "server": "omero-2"},
]}


def _response(status=200, payload=None, text=None, headers=None):
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status
    resp.headers = headers or {"Content-Type": "application/json"}
    if payload is not None:
        resp.json.return_value = payload
        resp.text = json.dumps(payload)
    else:
        resp.text = text or ""
        resp.json.side_effect = ValueError("Expecting value")
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return resp


def _session(pages):
    session = MagicMock(spec=requests.Session)
    session.get.side_effect = lambda url, **kwargs: pages[url]
    return session


class TestDiscover(unittest.TestCase):
    def _pages(self, **overrides):
        pages = {
            SERVER + "/api/": _response(payload=VERSIONS),
            SERVER + "/api/v1/": _response(payload=ENDPOINTS),
            SERVER + "/api/v1/servers/": _response(payload=SERVERS),
        }
        pages.update(overrides)
        return pages

    def test_selects_last_listed_version(self):
        result = discover(_session(self._pages()), SERVER)
        self.assertEqual(result.version.version, "1")
        self.assertEqual([v.version for v in result.versions], ["0-beta", "1"])

    def test_last_listed_wins_over_highest_number(self):
        versions = {"data": [
            {"version": "1", "url:base": SERVER + "/api/v1/"},
            {"version": "0", "url:base": SERVER + "/api/v0/"},
        ]}
        pages = self._pages(**{
            SERVER + "/api/": _response(payload=versions),
            SERVER + "/api/v0/": _response(payload=ENDPOINTS),
        })
        self.assertEqual(discover(_session(pages), SERVER).version.version, "0")

    def test_endpoint_map_has_exactly_server_keys(self):
        result = discover(_session(self._pages()), SERVER)
        self.assertEqual(set(result.endpoints), set(ENDPOINTS))
        self.assertEqual(result.endpoints.url("login"), ENDPOINTS["url:login"])

    def test_first_server_selected(self):
        result = discover(_session(self._pages()), SERVER)
        self.assertEqual(result.server, ServerRecord(3, "localhost", 4064, "omero"))

    def test_redirects_not_followed(self):
        session = _session(self._pages())
        discover(session, SERVER)
        for call in session.get.call_args_list:
            self.assertIs(call.kwargs["allow_redirects"], False)

    def test_empty_version_list(self):
        pages = self._pages(**{SERVER + "/api/": _response(payload={"data": []})})
        with self.assertRaises(UnsupportedVersionError):
            discover(_session(pages), SERVER)

    def test_unparseable_root(self):
        pages = self._pages(**{SERVER + "/api/": _response(text="<html>oops</html>")})
        with self.assertRaises(ProtocolError):
            discover(_session(pages), SERVER)

    def test_root_without_data(self):
        pages = self._pages(**{SERVER + "/api/": _response(payload={"versions": []})})
        with self.assertRaises(ProtocolError):
            discover(_session(pages), SERVER)

    def test_version_without_base_url(self):
        pages = self._pages(**{SERVER + "/api/": _response(payload={"data": [{"version": "1"}]})})
        with self.assertRaises(ProtocolError):
            discover(_session(pages), SERVER)

    def test_redirect_is_terminal(self):
        moved = _response(status=301, text="", headers={"Location": "https://elsewhere/api/"})
        pages = self._pages(**{SERVER + "/api/": moved})
        with self.assertRaises(RedirectError) as ctx:
            discover(_session(pages), SERVER)
        self.assertEqual(ctx.exception.location, "https://elsewhere/api/")
        self.assertEqual(ctx.exception.status, 301)

    def test_empty_server_list(self):
        pages = self._pages(**{SERVER + "/api/v1/servers/": _response(payload={"data": []})})
        with self.assertRaises(ProtocolError):
            discover(_session(pages), SERVER)

    def test_missing_servers_endpoint(self):
        endpoints = {k: v for k, v in ENDPOINTS.items() if k != "url:servers"}
        pages = self._pages(**{SERVER + "/api/v1/": _response(payload=endpoints)})
        with self.assertRaises(ProtocolError):
            discover(_session(pages), SERVER)

    def test_http_error_propagates(self):
        pages = self._pages(**{SERVER + "/api/": _response(status=500, text="boom")})
        with self.assertRaises(requests.HTTPError):
            discover(_session(pages), SERVER)

    def test_transport_error_propagates(self):
        session = MagicMock(spec=requests.Session)
        session.get.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(requests.ConnectionError):
            discover(session, SERVER)


class TestEndpointMap(unittest.TestCase):
    def test_read_only(self):
        endpoints = EndpointMap({"url:login": "https://h/login/"})
        with self.assertRaises(TypeError):
            endpoints["url:login"] = "https://evil/"

    def test_unknown_endpoint(self):
        with self.assertRaises(ProtocolError):
            EndpointMap({}).url("token")

    def test_source_dict_copied(self):
        source = {"url:login": "https://h/login/"}
        endpoints = EndpointMap(source)
        source["url:login"] = "https://evil/"
        self.assertEqual(endpoints.url("login"), "https://h/login/")


if __name__ == "__main__":
    unittest.main()
