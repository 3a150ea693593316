"""
omero_web_client.client
=======================
One authenticated connection to an OMERO web server.

Responsibilities
----------------
* Run API discovery once, at construction; a failure aborts construction.
* Log in through the CSRF-protected form: fresh cookie jar, cached token,
  ``sessionid`` cookie required even when the server answers ``200``.
* Probe the image-region microservice after login (never fatal).
* Keep the session alive with one background scheduler per login.
* Log out, tolerating ``403`` as "already logged out".

Threading
---------
``_lock`` guards every piece of session state, including the scheduler
handle.  ``_login_lock`` serialises whole login and logout sequences, so a
second caller blocks until the first has finished.  Property listeners are
called after ``_lock`` has been released.
"""

from __future__ import annotations

import threading
import urllib.parse
from collections.abc import Callable
from dataclasses import dataclass

import requests

from .auth import (
    CredentialPrompt,
    Credentials,
    Group,
    describe_html_error,
    extract_session_id,
    get_csrf_token,
    parse_login_payload,
    post_login,
    referer,
)
from .config import (
    KEEPALIVE_INTERVAL,
    LOGIN_CHECK_URL,
    LOGIN_PAGE_PATH,
    LOGOUT_URL,
    REQUEST_TIMEOUT,
)
from .discovery import Discovery, EndpointMap, ServerRecord, discover
from .errors import AuthenticationError, OmeroError, ProtocolError
from .keepalive import KeepAliveScheduler
from .logging_setup import log
from .microservice import probe_microservice
from .session import build_session
from .uri import server_uri, server_url

Listener = Callable[[object, object], None]


@dataclass(frozen=True)
class LoginResult:
    """Outcome of :meth:`SessionClient.login`; truthy on success."""

    success: bool
    cause: str = ""
    username: str = ""
    previous_username: str = ""
    account_switched: bool = False

    def __bool__(self) -> bool:
        return self.success


class SessionClient:
    """
    Session-managing client for one OMERO web server.

    Two clients are equal when they talk to the same server as the same
    user.  The username changes on login, and so does the hash: callers
    indexing clients by identity must re-register them after every login.
    """

    def __init__(
        self,
        server: str,
        discovery: Discovery,
        session: requests.Session,
        prompt: CredentialPrompt | None = None,
        keepalive_interval: float = KEEPALIVE_INTERVAL,
    ) -> None:
        self._server_uri = server
        self._discovery = discovery
        self._session = session
        self._prompt = prompt
        self._keepalive_interval = keepalive_interval

        self._lock = threading.RLock()
        self._login_lock = threading.Lock()

        self._token: str | None = None
        self._session_id: str | None = None
        self._logged_in = False
        self._username = ""
        self._default_group: Group | None = None
        self._user_id = -1
        self._has_microservice = False
        self._uris: list[str] = []
        self._keepalive: KeepAliveScheduler | None = None
        self._listeners: dict[str, list[Listener]] = {"username": [], "logged_in": []}

    @classmethod
    def create(
        cls,
        uri: str,
        session: requests.Session | None = None,
        verify_ssl: bool = True,
        prompt: CredentialPrompt | None = None,
        keepalive_interval: float = KEEPALIVE_INTERVAL,
    ) -> "SessionClient":
        """
        Normalise *uri* to its server, discover the API and return a client.

        Any discovery error propagates; no half-built client is returned.
        """
        server = server_uri(uri)
        if session is None:
            session = build_session(verify_ssl=verify_ssl)
        discovery = discover(session, server)
        log.debug("Discovered API %s at %s", discovery.version.version, server)
        return cls(server, discovery, session, prompt, keepalive_interval)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def server_uri(self) -> str:
        return self._server_uri

    @property
    def session(self) -> requests.Session:
        return self._session

    @property
    def discovery(self) -> Discovery:
        return self._discovery

    @property
    def endpoints(self) -> EndpointMap:
        return self._discovery.endpoints

    @property
    def server_record(self) -> ServerRecord:
        return self._discovery.server

    @property
    def username(self) -> str:
        with self._lock:
            return self._username

    @property
    def logged_in(self) -> bool:
        with self._lock:
            return self._logged_in

    @property
    def token(self) -> str | None:
        with self._lock:
            return self._token

    @property
    def session_id(self) -> str | None:
        with self._lock:
            return self._session_id

    @property
    def default_group(self) -> Group | None:
        with self._lock:
            return self._default_group

    @property
    def user_id(self) -> int:
        with self._lock:
            return self._user_id

    @property
    def has_microservice(self) -> bool:
        with self._lock:
            return self._has_microservice

    @property
    def keepalive(self) -> KeepAliveScheduler | None:
        """The active keep-alive scheduler, if any."""
        with self._lock:
            return self._keepalive

    @property
    def uris(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._uris)

    def add_uri(self, uri: str) -> bool:
        """Associate *uri* with this client.  Returns False for duplicates."""
        with self._lock:
            if uri in self._uris:
                log.debug("URI already exists in the list. Ignoring operation.")
                return False
            self._uris.append(uri)
            return True

    def add_listener(self, name: str, callback: Listener) -> None:
        """Call ``callback(old, new)`` whenever ``username`` or ``logged_in`` changes."""
        if name not in self._listeners:
            raise ValueError(f"Not an observable property: {name!r}")
        with self._lock:
            self._listeners[name].append(callback)

    def _notify(self, changes: list[tuple[str, object, object]]) -> None:
        for name, old, new in changes:
            if old == new:
                continue
            with self._lock:
                callbacks = list(self._listeners[name])
            for callback in callbacks:
                callback(old, new)

    # ------------------------------------------------------------------
    # Keep-alive
    # ------------------------------------------------------------------

    def start_keepalive(self) -> bool:
        """Start the keep-alive scheduler unless one is already active."""
        with self._lock:
            if self._keepalive is not None:
                return False
            self._keepalive = KeepAliveScheduler(
                self._session,
                self._server_uri,
                self._on_keepalive_failure,
                interval=self._keepalive_interval,
            )
            self._keepalive.start()
            return True

    def _on_keepalive_failure(self, scheduler: KeepAliveScheduler) -> None:
        with self._lock:
            if self._keepalive is not scheduler:
                return
            self._keepalive = None
            was_logged_in = self._logged_in
            self._logged_in = False
        log.warning("Lost connection to %s; marking client as logged out", self._server_uri)
        self._notify([("logged_in", was_logged_in, False)])

    # ------------------------------------------------------------------
    # Login / logout
    # ------------------------------------------------------------------

    def login(
        self,
        credentials: Credentials | None = None,
        prompt: CredentialPrompt | None = None,
    ) -> LoginResult:
        """
        Log in to the server, asking *prompt* (or the client's prompt) for
        credentials when none are given.

        Never raises for server or network problems: the returned
        LoginResult carries the cause.  The credential password is zeroed
        before this returns.
        """
        with self._login_lock:
            previous = self.username
            if credentials is None:
                prompt = prompt or self._prompt
                if prompt is None:
                    return LoginResult(False, "no credentials supplied",
                                       previous_username=previous)
                credentials = prompt(self._server_uri, previous)
                if credentials is None:
                    return LoginResult(False, "login cancelled", previous_username=previous)

            username = credentials.username
            try:
                self._authenticate(credentials)
            except (OmeroError, requests.RequestException) as exc:
                log.error("Could not log in to %s: %s", self._server_uri, exc)
                # The old cookie jar is gone, so any previous session is too
                self._drop_session()
                return LoginResult(False, str(exc), username, previous)
            finally:
                credentials.clear()

            with self._lock:
                has_uris = bool(self._uris)
            switched = has_uris and bool(previous) and previous != username
            if switched:
                log.info('OMERO account switched from "%s" to "%s" for %s',
                         previous, username, self._server_uri)
            else:
                log.info('Login successful: %s ("%s")', self._server_uri, username)
            return LoginResult(True, "", username, previous, switched)

    def _authenticate(self, credentials: Credentials) -> None:
        with self._lock:
            self._session.cookies = requests.cookies.RequestsCookieJar()
            self._session_id = None
            token = self._token
        if token is None:
            token = get_csrf_token(self._session, self.endpoints.url("token"))
            with self._lock:
                self._token = token

        resp = post_login(
            self._session,
            self.endpoints.url("login"),
            self.server_record.id,
            self.server_record.port,
            credentials,
            token,
        )
        payload = resp.text

        if resp.status_code >= 400:
            detail = describe_html_error(resp)
            raise AuthenticationError(
                f"server returned {resp.status_code}" + (f" ({detail})" if detail else "")
            )
        try:
            session_id = extract_session_id(self._session.cookies)
        except AuthenticationError as exc:
            detail = describe_html_error(resp)
            if detail:
                raise AuthenticationError(f"{exc} ({detail})") from exc
            raise

        has_microservice = self._probe_microservice()
        group, user_id = parse_login_payload(payload)

        with self._lock:
            old_logged_in, old_username = self._logged_in, self._username
            self._logged_in = True
            self._username = credentials.username
            self._default_group = group
            self._user_id = user_id
            self._session_id = session_id
            self._has_microservice = has_microservice
            self.start_keepalive()
        self._notify([
            ("logged_in", old_logged_in, True),
            ("username", old_username, credentials.username),
        ])

    def _drop_session(self) -> None:
        """Mark the client logged out after a failed login; username and token stay."""
        with self._lock:
            scheduler, self._keepalive = self._keepalive, None
            old_logged_in = self._logged_in
            self._logged_in = False
        if scheduler is not None:
            scheduler.stop()
        self._notify([("logged_in", old_logged_in, False)])

    def _probe_microservice(self) -> bool:
        try:
            found = probe_microservice(self._session, self._server_uri)
        except (OmeroError, requests.RequestException) as exc:
            log.debug("Microservice unavailable at %s: %s", self._server_uri, exc)
            return False
        log.debug("Image-region microservice at %s: %s", self._server_uri, found)
        return found

    def logout(self) -> None:
        """
        Log out from the server.

        Raises ProtocolError when the server answers anything but 200 or
        403; transport errors propagate as requests exceptions.
        """
        with self._login_lock:
            url = server_url(self._server_uri, LOGOUT_URL)
            headers = {
                "Content-Type": "application/json",
                "Referer": referer(url, self.server_record.port),
            }
            with self._lock:
                if self._token is not None:
                    headers["X-CSRFToken"] = self._token
            resp = self._session.post(url, headers=headers, timeout=REQUEST_TIMEOUT)
            if resp.status_code not in (200, 403):
                raise ProtocolError(f"Server returned {resp.status_code}")
            if resp.status_code == 403:
                log.debug("Logout refused with 403; treating %s as logged out",
                          self._server_uri)

            with self._lock:
                scheduler, self._keepalive = self._keepalive, None
                old_logged_in, old_username = self._logged_in, self._username
                self._logged_in = False
                self._username = ""
                self._token = None
            if scheduler is not None:
                scheduler.stop()
            log.info("Logged out from %s", self._server_uri)
            self._notify([
                ("logged_in", old_logged_in, False),
                ("username", old_username, ""),
            ])

    def check_if_logged_in(self) -> bool:
        """
        Ask the server whether this session is still authenticated and
        refresh the ``logged_in`` flag from the answer.
        """
        try:
            resp = self._session.get(
                server_url(self._server_uri, LOGIN_CHECK_URL),
                timeout=REQUEST_TIMEOUT,
                allow_redirects=True,
            )
            path = urllib.parse.urlparse(resp.url or "").path
            logged_in = resp.status_code == 200 and not path.startswith(LOGIN_PAGE_PATH)
        except requests.RequestException as exc:
            log.warning("Could not check login state of %s: %s", self._server_uri, exc)
            logged_in = False

        with self._lock:
            old, self._logged_in = self._logged_in, logged_in
            if logged_in:
                # No-op while a scheduler is active
                self.start_keepalive()
        self._notify([("logged_in", old, logged_in)])
        return logged_in

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if other is self:
            return True
        if not isinstance(other, SessionClient):
            return NotImplemented
        return self.server_uri == other.server_uri and self.username == other.username

    def __hash__(self) -> int:
        return hash((self._server_uri, self.username))

    def __repr__(self) -> str:
        return (f"SessionClient({self._server_uri!r}, username={self.username!r}, "
                f"logged_in={self.logged_in})")
