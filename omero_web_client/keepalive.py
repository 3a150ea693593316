"""
Background keep-alive ping for an OMERO web session.

A daemon thread waits on a ``threading.Event`` for one interval, pings
``/webclient/keepalive_ping/`` and repeats.  Any HTTP answer keeps it
going; a transport failure means the session is gone, so the scheduler
stops itself and reports through ``on_failure``.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

import requests

from .config import KEEPALIVE_INTERVAL, KEEPALIVE_URL, REQUEST_TIMEOUT
from .logging_setup import log
from .uri import server_url


def keep_alive(session: requests.Session, server: str) -> int:
    """Ping the server once and return the HTTP status code."""
    url = server_url(server, f"{KEEPALIVE_URL}?_={int(time.time() * 1000)}")
    resp = session.get(
        url,
        headers={"Content-Type": "application/json"},
        timeout=REQUEST_TIMEOUT,
    )
    return resp.status_code


class KeepAliveScheduler:
    """
    Recurring keep-alive task with a cancellation event.

    ``on_failure`` receives the scheduler itself, so the owner can tell a
    stale scheduler's report apart from the current one.
    """

    def __init__(
        self,
        session: requests.Session,
        server: str,
        on_failure: Callable[["KeepAliveScheduler"], None],
        interval: float = KEEPALIVE_INTERVAL,
    ) -> None:
        self.session = session
        self.server = server
        self.interval = interval
        self._on_failure = on_failure
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        with self._lock:
            return self._thread is not None and not self._stop.is_set()

    def start(self) -> bool:
        """Start pinging; returns False (and does nothing) when already started."""
        with self._lock:
            if self._thread is not None:
                return False
            self._thread = threading.Thread(
                target=self._run, name="omero-keep-alive", daemon=True,
            )
            self._thread.start()
        log.debug("Keep-alive started for %s (every %ss)", self.server, self.interval)
        return True

    def stop(self) -> None:
        """Cancel future pings.  Safe to call repeatedly and from the ping thread."""
        with self._lock:
            self._stop.set()

    def tick(self) -> bool:
        """Run one ping.  Returns False when the session is considered dead."""
        try:
            log.debug("Attempting to keep connection alive...")
            keep_alive(self.session, self.server)
            return True
        except requests.RequestException as exc:
            log.warning(
                "Error trying to keep connection alive (%s). Client will shut down now.", exc
            )
            return False

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            if not self.tick():
                with self._lock:
                    if self._stop.is_set():     # stopped while pinging
                        return
                    self._stop.set()
                self._on_failure(self)
                return
