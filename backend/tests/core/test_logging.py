"""Pruebas del logging estructurado."""

import json
import logging
from datetime import datetime
from enum import Enum
from uuid import UUID

from spurchat.core.logging import JSONFormatter, configure_logging, resolve_log_level


def test_json_formatter_serialises_extra_fields() -> None:
    record = logging.LogRecord(
        name="spurchat.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="chat.reply_resolved",
        args=(),
        exc_info=None,
    )
    record.conversation_id = UUID("12345678-1234-5678-1234-567812345678")
    record.tier = "keyword"

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "chat.reply_resolved"
    assert payload["level"] == "INFO"
    assert payload["conversation_id"] == "12345678-1234-5678-1234-567812345678"
    assert payload["tier"] == "keyword"
    assert "lineno" not in payload


class _Tier(Enum):
    KEYWORD = "keyword"


def test_json_formatter_handles_dates_enums_and_errors() -> None:
    logger = logging.getLogger("spurchat.test.formatter")
    record = logger.makeRecord(
        logger.name,
        logging.WARNING,
        __file__,
        1,
        "chat.reply_failed",
        (),
        None,
        extra={
            "created_at": datetime(2024, 1, 1, 12, 0, 0, 123000),
            "tier": _Tier.KEYWORD,
            "error": ValueError("boom"),
            "level": "spoofed",
        },
    )

    payload = json.loads(JSONFormatter().format(record))

    assert payload["created_at"] == "2024-01-01T12:00:00.123+00:00"
    assert payload["tier"] == "keyword"
    assert payload["error"] == "ValueError: boom"
    assert payload["level"] == "WARNING"
    assert "taskName" not in payload


def test_resolve_log_level_variants() -> None:
    assert resolve_log_level("debug") == logging.DEBUG
    assert resolve_log_level("30") == logging.WARNING
    assert resolve_log_level(logging.ERROR) == logging.ERROR
    assert resolve_log_level("   ", default=logging.INFO) == logging.INFO
    assert resolve_log_level("nonsense", default=logging.WARNING) == logging.WARNING
    assert resolve_log_level(None) == logging.INFO


def test_configure_logging_writes_dedicated_files(tmp_path) -> None:
    main_file = tmp_path / "logs" / "api.log"
    request_file = tmp_path / "logs" / "request.log"
    configure_logging(
        level=logging.INFO,
        log_file=str(main_file),
        per_logger_files={"spurchat.request.test": str(request_file)},
    )
    try:
        logging.getLogger("spurchat.request.test").info("request.completed", extra={"status_code": 200})
        for handler in logging.getLogger().handlers + logging.getLogger("spurchat.request.test").handlers:
            handler.flush()

        line = request_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["status_code"] == 200
        assert "request.completed" in main_file.read_text(encoding="utf-8")
    finally:
        dedicated = logging.getLogger("spurchat.request.test")
        for handler in list(dedicated.handlers):
            dedicated.removeHandler(handler)
            handler.close()
        configure_logging(level=logging.INFO)
