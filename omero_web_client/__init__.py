"""
omero_web_client
================
Session-managing client for OMERO web servers: API discovery, CSRF-protected
login, session cookies, a background keep-alive and object accessibility
checks.

Package structure
-----------------
omero_web_client/
├── __init__.py       – package init and public API
├── config.py         – configuration constants
├── logging_setup.py  – package logger and colour console handler
├── errors.py         – exception taxonomy
├── session.py        – requests.Session factory
├── uri.py            – server URI normalisation, object ids in links
├── objects.py        – OmeroObjectType
├── discovery.py      – API version / endpoint / server discovery
├── auth/             – credentials, CSRF token, login request
├── microservice.py   – image-region microservice probe
├── keepalive.py      – background keep-alive scheduler
├── access.py         – object accessibility check
├── client.py         – SessionClient
├── registry.py       – ClientRegistry and ServerHistory
└── cli.py            – argparse CLI (``python -m omero_web_client``)

Quick start
-----------
    from omero_web_client import Credentials, SessionClient

    client = SessionClient.create("https://omero.example.org")
    result = client.login(Credentials("alice", bytearray(b"secret")))
    if result:
        print(client.user_id, client.session_id)
        client.logout()
"""

from .access import can_be_accessed
from .auth import Credentials
from .client import LoginResult, SessionClient
from .discovery import discover
from .errors import (
    AuthenticationError,
    InvalidArgumentError,
    OmeroError,
    ProtocolError,
    RedirectError,
    UnsupportedTypeError,
    UnsupportedVersionError,
)
from .objects import OmeroObjectType
from .registry import ClientRegistry, ServerHistory
from .uri import parse_object_id, server_uri

__all__ = [
    "can_be_accessed",
    "Credentials",
    "LoginResult",
    "SessionClient",
    "discover",
    "AuthenticationError",
    "InvalidArgumentError",
    "OmeroError",
    "ProtocolError",
    "RedirectError",
    "UnsupportedTypeError",
    "UnsupportedVersionError",
    "OmeroObjectType",
    "ClientRegistry",
    "ServerHistory",
    "parse_object_id",
    "server_uri",
]
