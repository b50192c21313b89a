import json
from typing import Any, List

import pytest
from livestream_booking.utils import audit_log
from livestream_booking.utils.request_id import set_request_id


class DummyLogger:
    def __init__(self) -> None:
        self.messages: List[str] = []

    def info(self, message: str) -> None:
        self.messages.append(message)


def test_emit_audit_log_outputs_json(monkeypatch: pytest.MonkeyPatch) -> None:
    logger = DummyLogger()
    monkeypatch.setattr(audit_log, "_audit_logger", logger)

    set_request_id("req-123")
    audit_log.emit_audit_log(
        action="livestream.reserved",
        livestream_id=1,
        user_id=4,
        start_at=1700874000,
        end_at=1700877600,
        tag_ids=[3, 7],
    )
    set_request_id(None)

    assert len(logger.messages) == 1
    payload = json.loads(logger.messages[0])
    assert payload["action"] == "livestream.reserved"
    assert payload["request_id"] == "req-123"
    assert payload["tag_ids"] == [3, 7]
    assert payload["window"]["start"] == "2023-11-25T01:00:00+00:00"
    assert payload["window"]["end_at"] == 1700877600
    assert "message" not in payload
    assert "timestamp" in payload


def test_emit_audit_log_merges_extra(monkeypatch: pytest.MonkeyPatch) -> None:
    logger = DummyLogger()
    monkeypatch.setattr(audit_log, "_audit_logger", logger)

    audit_log.emit_audit_log(
        action="livestream.reserved",
        livestream_id=1,
        user_id=4,
        start_at=0,
        end_at=3600,
        tag_ids=[],
        message="seeded",
        extra={"slots": 1},
    )
    payload = json.loads(logger.messages[0])
    assert payload["message"] == "seeded"
    assert payload["slots"] == 1
    assert "request_id" not in payload


def test_emit_audit_log_raises_on_logger_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    class FailingLogger:
        def info(self, _: Any) -> None:
            raise ValueError("fail")

    monkeypatch.setattr(audit_log, "_audit_logger", FailingLogger())

    with pytest.raises(RuntimeError):
        audit_log.emit_audit_log(
            action="livestream.reserved",
            livestream_id=1,
            user_id=4,
            start_at=0,
            end_at=3600,
            tag_ids=[1],
        )


def test_emit_audit_log_wraps_unrenderable_window(monkeypatch: pytest.MonkeyPatch) -> None:
    logger = DummyLogger()
    monkeypatch.setattr(audit_log, "_audit_logger", logger)

    with pytest.raises(RuntimeError):
        audit_log.emit_audit_log(
            action="livestream.reserved",
            livestream_id=1,
            user_id=4,
            start_at=1700874000,
            end_at=300_000_000_000,
            tag_ids=[],
        )
    assert logger.messages == []
