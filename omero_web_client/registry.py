"""
Explicit registry of open OMERO clients, and the list of servers the user
has connected to before.

The registry is an ordinary object the application creates and passes
around; nothing in this package keeps a module-level client table.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path

import requests

from .auth import CredentialPrompt, Credentials
from .client import SessionClient
from .config import CLIENT_HOME, SERVER_HISTORY_FILE
from .errors import AuthenticationError, OmeroError
from .logging_setup import log
from .uri import server_uri


class ClientRegistry:
    """Clients keyed by their normalised server URI (one per server)."""

    def __init__(
        self,
        session_factory=None,
        verify_ssl: bool = True,
    ) -> None:
        self._clients: dict[str, SessionClient] = {}
        self._lock = threading.Lock()
        self._session_factory = session_factory
        self._verify_ssl = verify_ssl

    def get(self, uri: str) -> SessionClient | None:
        """Return the client for the server *uri* belongs to, if any."""
        key = server_uri(uri)
        with self._lock:
            return self._clients.get(key)

    def clients(self) -> list[SessionClient]:
        with self._lock:
            return list(self._clients.values())

    def add(self, client: SessionClient) -> None:
        with self._lock:
            self._clients[client.server_uri] = client

    def remove(self, client: SessionClient) -> bool:
        with self._lock:
            if self._clients.get(client.server_uri) is client:
                del self._clients[client.server_uri]
                return True
            return False

    def get_or_create(
        self,
        uri: str,
        credentials: Credentials | None = None,
        prompt: CredentialPrompt | None = None,
    ) -> SessionClient:
        """
        Return the registered client for *uri*'s server, or create one and
        log it in.

        Discovery errors propagate; a rejected login raises
        AuthenticationError and the new client is not registered.
        """
        existing = self.get(uri)
        if existing is not None:
            return existing

        session = self._session_factory() if self._session_factory else None
        client = SessionClient.create(
            uri, session=session, verify_ssl=self._verify_ssl, prompt=prompt,
        )
        result = client.login(credentials)
        if not result:
            raise AuthenticationError(result.cause or f"Could not log in to {client.server_uri}")
        with self._lock:
            # Another thread may have won the race while we were logging in
            winner = self._clients.setdefault(client.server_uri, client)
        if winner is not client:
            log.debug("Client for %s registered concurrently; discarding ours", client.server_uri)
            self._logout_quietly(client)
        return winner

    def logout_all(self) -> None:
        for client in self.clients():
            if client.logged_in:
                self._logout_quietly(client)

    @staticmethod
    def _logout_quietly(client: SessionClient) -> None:
        try:
            client.logout()
        except (OmeroError, requests.RequestException) as exc:
            log.error("Could not log out from %s: %s", client.server_uri, exc)


class ServerHistory:
    """Previously used server URIs, stored as a JSON list."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path if path is not None else CLIENT_HOME / SERVER_HISTORY_FILE

    def load(self) -> list[str]:
        """Return the stored servers; a missing or corrupt file reads as empty."""
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return []
        if not isinstance(data, list):
            return []
        return [s.rstrip("/") for s in data if isinstance(s, str) and s.strip()]

    def add(self, uri: str) -> bool:
        """Remember *uri*; returns False when it is already listed."""
        uri = uri.strip().rstrip("/")
        servers = self.load()
        if not uri or uri in servers:
            return False
        servers.append(uri)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(servers, indent=2), encoding="utf-8")
        log.debug("Saved %s to %s", uri, self.path)
        return True
