from __future__ import annotations

import logging

from bucketftp_core.errors import UpstreamError
from bucketftp_core.observability import error_log_fields, log_event

logger = logging.getLogger("bucketftp_core.tests")


def test_log_event_appends_key_value_fields(caplog) -> None:
    caplog.set_level(logging.INFO)

    log_event(logger, "bucketftp.mkdir", key="a/b/", skipped=None, empty="")

    messages = [r.getMessage() for r in caplog.records]
    assert messages == ["bucketftp.mkdir key=a/b/"]


def test_log_event_quotes_values_with_spaces(caplog) -> None:
    caplog.set_level(logging.INFO)

    log_event(logger, "bucketftp.delete", key="dir with spaces/", stage="done")

    assert "key='dir with spaces/'" in caplog.records[0].getMessage()
    assert "stage=done" in caplog.records[0].getMessage()


def test_log_event_level(caplog) -> None:
    caplog.set_level(logging.INFO)

    log_event(logger, "bucketftp.auth", level=logging.WARNING, status="bad_password")

    assert caplog.records[0].levelno == logging.WARNING


def test_error_log_fields() -> None:
    fields = error_log_fields(UpstreamError("boom", code="SlowDown"))
    assert fields == {"error": "UpstreamError", "code": "SlowDown", "detail": "boom"}

    assert error_log_fields(ValueError("x"))["code"] is None


def test_session_operations_emit_structured_logs(caplog, session) -> None:
    caplog.set_level(logging.INFO)

    session.make_directory("/reports")
    session.delete_file("/reports")

    messages = [r.getMessage() for r in caplog.records]
    assert any("bucketftp.mkdir" in m and "key=reports/" in m for m in messages)
    assert any("bucketftp.delete" in m and "stage=done" in m and "key_count=1" in m for m in messages)
