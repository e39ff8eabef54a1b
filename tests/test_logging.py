"""
Altegio Onboarding — Structured Logging Tests

Tests:
  - every log line is valid JSON with the base fields
  - session events carry trace_id, company_id and action
  - for_company() shares the parent's trace_id
  - level filtering
  - configure_logging does not stack handlers
"""

import io
import json
import logging
import os
import sys
import unittest

_base = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _base)

from onboarding.logging import (
    ROOT_LOGGER,
    SessionLogger,
    configure_logging,
    generate_trace_id,
    get_logger,
)


def _capture_logs(level="DEBUG"):
    buf = io.StringIO()
    configure_logging(level=level, stream=buf)
    return buf


def _parse_log_lines(buf):
    return [json.loads(line) for line in buf.getvalue().splitlines() if line.strip()]


class TestTraceIds(unittest.TestCase):

    def test_unique(self):
        self.assertEqual(len({generate_trace_id() for _ in range(100)}), 100)

    def test_for_company_shares_trace(self):
        parent = SessionLogger()
        child = parent.for_company(123)
        self.assertEqual(child.trace_id, parent.trace_id)
        self.assertEqual(child.company_id, 123)
        self.assertIsNone(parent.company_id)


class TestLogEntries(unittest.TestCase):

    def setUp(self):
        self.buf = _capture_logs("DEBUG")
        self.log = SessionLogger(trace_id="t-1").for_company(42)

    def test_required_fields(self):
        self.log.on_batch_start("staff", 3)
        entry = _parse_log_lines(self.buf)[0]
        for key in ("timestamp", "level", "logger", "message", "service"):
            self.assertIn(key, entry)
        self.assertEqual(entry["action"], "batch_start")
        self.assertEqual(entry["trace_id"], "t-1")
        self.assertEqual(entry["company_id"], 42)
        self.assertEqual(entry["items"], 3)

    def test_item_failed_is_warning(self):
        self.log.on_item_failed("staff", "Bob", "x" * 1000)
        entry = _parse_log_lines(self.buf)[0]
        self.assertEqual(entry["level"], "WARNING")
        self.assertEqual(entry["label"], "Bob")
        self.assertEqual(len(entry["error"]), 500)

    def test_batch_end_rounds_elapsed(self):
        self.log.on_batch_end("services", 2, 1, 0.123456)
        entry = _parse_log_lines(self.buf)[0]
        self.assertEqual(entry["elapsed_s"], 0.12)
        self.assertEqual((entry["succeeded"], entry["failed"]), (2, 1))

    def test_session_replaced(self):
        self.log.on_session_replaced("services", 3)
        entry = _parse_log_lines(self.buf)[0]
        self.assertEqual(entry["level"], "WARNING")
        self.assertEqual(entry["previous_phase"], "services")

    def test_plain_logger_lines_are_json(self):
        get_logger("store").info("saved %s", "x")
        entry = _parse_log_lines(self.buf)[0]
        self.assertEqual(entry["message"], "saved x")
        self.assertEqual(entry["logger"], f"{ROOT_LOGGER}.store")

    def test_exception_traceback_included(self):
        try:
            raise RuntimeError("store exploded")
        except RuntimeError:
            get_logger("store").exception("save failed")
        entry = _parse_log_lines(self.buf)[0]
        self.assertEqual(entry["level"], "ERROR")
        self.assertIn("Traceback", entry["exception"])
        self.assertIn("RuntimeError: store exploded", entry["exception"])


class TestConfigureLogging(unittest.TestCase):

    def test_level_filtering(self):
        buf = _capture_logs("WARNING")
        log = SessionLogger().for_company(1)
        log.on_batch_start("staff", 1)
        log.on_rollback("staff", 1, 0)
        actions = [e["action"] for e in _parse_log_lines(buf)]
        self.assertEqual(actions, ["rollback"])

    def test_handlers_not_stacked(self):
        configure_logging(stream=io.StringIO())
        configure_logging(stream=io.StringIO())
        self.assertEqual(len(logging.getLogger(ROOT_LOGGER).handlers), 1)


if __name__ == "__main__":
    unittest.main()
