"""
Tests for the logging configuration.
"""

import logging
import tempfile
import unittest
from pathlib import Path

from omero_web_client.logging_setup import _setup_logging, log


class TestSetupLogging(unittest.TestCase):
    def tearDown(self):
        for handler in list(log.handlers):
            handler.close()
        log.handlers.clear()

    def test_levels(self):
        _setup_logging(debug=False)
        self.assertEqual(log.level, logging.INFO)
        self.assertEqual(logging.getLogger("urllib3").level, logging.WARNING)
        _setup_logging(debug=True)
        self.assertEqual(log.level, logging.DEBUG)
        self.assertEqual(len(log.handlers), 1)

    def test_log_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "logs" / "client.log"
            _setup_logging(log_file=path)
            log.info("Login successful: %s", "https://omero.example.org")
            for handler in log.handlers:
                handler.flush()
            self.assertIn("Login successful", path.read_text(encoding="utf-8"))
            self.tearDown()


if __name__ == "__main__":
    unittest.main()
