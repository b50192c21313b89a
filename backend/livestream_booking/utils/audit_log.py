from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Literal, Optional, Sequence

from .request_id import get_request_id
from .time import format_unix

AuditAction = Literal["livestream.reserved"]


def _build_audit_logger() -> logging.Logger:
    # One JSON document per line on its own stream, never mixed into app logs.
    logger = logging.getLogger("audit")
    logger.setLevel(logging.INFO)
    logger.propagate = False
    if not logger.handlers:
        stream = logging.StreamHandler()
        stream.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(stream)
    return logger


_audit_logger = _build_audit_logger()


def emit_audit_log(
    *,
    action: AuditAction,
    livestream_id: int,
    user_id: int,
    start_at: int,
    end_at: int,
    tag_ids: Sequence[int],
    message: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """
    Write one audit record for a committed booking.

    Fields that are None are omitted. Raises RuntimeError when the record
    cannot be written so the caller can report the failure.
    """
    try:
        record: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": "info",
            "action": action,
            "request_id": get_request_id(),
            "livestream_id": livestream_id,
            "user_id": user_id,
            "window": {
                "start_at": start_at,
                "end_at": end_at,
                "start": format_unix(start_at),
                "end": format_unix(end_at),
            },
            "tag_ids": list(tag_ids),
            "message": message,
            **(extra or {}),
        }
        line = json.dumps({key: value for key, value in record.items() if value is not None}, ensure_ascii=True)
        _audit_logger.info(line)
    except Exception as exc:
        raise RuntimeError("failed to emit audit log") from exc
