"""
Tests for structured logging.
"""

import json
import logging
from datetime import datetime

from study_engine.logging import StructuredFormatter, get_logger, log_with_context


def test_formatter_emits_extra_fields():
    logger = get_logger("study_engine.tests")
    record = logger.makeRecord(
        logger.name, logging.INFO, __file__, 1, "Started %s session", ("smart",), None,
        extra={"user_id": "u1", "action": "session_started", "at": datetime(2026, 3, 10)}
    )

    data = json.loads(StructuredFormatter().format(record))

    assert data["message"] == "Started smart session"
    assert data["level"] == "INFO"
    assert data["user_id"] == "u1"
    assert data["action"] == "session_started"
    assert data["at"] == "2026-03-10 00:00:00"
    assert "args" not in data
    assert "lineno" not in data


def test_log_with_context_skips_missing_fields(caplog):
    logger = get_logger("study_engine.tests")
    with caplog.at_level(logging.INFO, logger="study_engine.tests"):
        log_with_context(logger, logging.INFO, "Completed", user_id="u1", notebook_id="nb1")

    record = caplog.records[-1]
    assert record.user_id == "u1"
    assert record.notebook_id == "nb1"
    assert not hasattr(record, "session_id")
    assert not hasattr(record, "action")
