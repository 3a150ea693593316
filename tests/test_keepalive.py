"""
Tests for the keep-alive scheduler.
"""

import threading
import time
import unittest
from unittest.mock import MagicMock

import requests

from omero_web_client.keepalive import KeepAliveScheduler, keep_alive

SERVER = "https://omero.example.org"


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def _ok_session():
    resp = MagicMock(spec=requests.Response)
    resp.status_code = 200
    session = MagicMock(spec=requests.Session)
    session.get.return_value = resp
    return session


class TestKeepAlivePing(unittest.TestCase):
    def test_ping_url_has_cache_buster(self):
        session = _ok_session()
        self.assertEqual(keep_alive(session, SERVER), 200)
        url = session.get.call_args.args[0]
        self.assertTrue(url.startswith(SERVER + "/webclient/keepalive_ping/?_="))
        self.assertTrue(url.rsplit("=", 1)[1].isdigit())
        self.assertEqual(session.get.call_args.kwargs["headers"]["Content-Type"],
                         "application/json")


class TestKeepAliveScheduler(unittest.TestCase):
    def test_start_is_idempotent(self):
        scheduler = KeepAliveScheduler(_ok_session(), SERVER, MagicMock(), interval=3600)
        self.assertTrue(scheduler.start())
        self.assertFalse(scheduler.start())
        self.assertTrue(scheduler.running)
        scheduler.stop()
        self.assertFalse(scheduler.running)

    def test_no_ping_before_first_interval(self):
        session = _ok_session()
        scheduler = KeepAliveScheduler(session, SERVER, MagicMock(), interval=3600)
        scheduler.start()
        time.sleep(0.05)
        scheduler.stop()
        session.get.assert_not_called()

    def test_any_response_keeps_running(self):
        session = _ok_session()
        session.get.return_value.status_code = 500
        on_failure = MagicMock()
        scheduler = KeepAliveScheduler(session, SERVER, on_failure, interval=0.01)
        scheduler.start()
        self.assertTrue(_wait_for(lambda: session.get.call_count >= 3))
        self.assertTrue(scheduler.running)
        scheduler.stop()
        on_failure.assert_not_called()

    def test_network_failure_stops_and_reports_once(self):
        session = MagicMock(spec=requests.Session)
        session.get.side_effect = requests.ConnectionError("refused")
        failed = threading.Event()
        reports = []

        def on_failure(scheduler):
            reports.append(scheduler)
            failed.set()

        scheduler = KeepAliveScheduler(session, SERVER, on_failure, interval=0.01)
        scheduler.start()
        self.assertTrue(failed.wait(5))
        time.sleep(0.05)
        self.assertEqual(reports, [scheduler])
        self.assertEqual(session.get.call_count, 1)
        self.assertFalse(scheduler.running)

    def test_stop_before_first_tick(self):
        session = _ok_session()
        scheduler = KeepAliveScheduler(session, SERVER, MagicMock(), interval=0.05)
        scheduler.start()
        scheduler.stop()
        time.sleep(0.15)
        session.get.assert_not_called()

    def test_tick(self):
        scheduler = KeepAliveScheduler(_ok_session(), SERVER, MagicMock())
        self.assertTrue(scheduler.tick())
        broken = MagicMock(spec=requests.Session)
        broken.get.side_effect = requests.Timeout("timed out")
        self.assertFalse(KeepAliveScheduler(broken, SERVER, MagicMock()).tick())


if __name__ == "__main__":
    unittest.main()
