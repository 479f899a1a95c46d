"""Tests for logging configuration helpers."""

from __future__ import annotations

import logging

from core.logging import ContextFormatter, build_logging_config, load_logging_settings


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "features.donation.ledger", logging.INFO, "/app/features/donation/ledger.py", 42,
        "Confirmation recorded", None, None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_context_formatter_appends_extra_fields() -> None:
    formatter = ContextFormatter(fmt="%(levelname)s [%(shortpathname)s] %(message)s")

    line = formatter.format(_record(request_id=7, donor_id=3, status="Confirmed"))

    assert line == (
        "INFO [features/donation/ledger.py] Confirmation recorded"
        " | donor_id=3 request_id=7 status=Confirmed"
    )


def test_context_formatter_quotes_values_with_spaces() -> None:
    formatter = ContextFormatter(fmt="%(message)s")

    assert formatter.format(_record(error="relay refused mail")) == (
        'Confirmation recorded | error="relay refused mail"'
    )


def test_plain_records_are_unchanged() -> None:
    assert ContextFormatter(fmt="%(message)s").format(_record()) == "Confirmation recorded"


def test_local_runs_log_to_console_only(monkeypatch) -> None:
    monkeypatch.setenv("NODE_ENV", "local")
    monkeypatch.setenv("BACKEND_LOG_LEVEL", "debug")
    monkeypatch.setenv("BACKEND_ACCESS_LOG_LEVEL", "not-a-level")

    settings = load_logging_settings()
    config = build_logging_config(settings)

    assert settings.log_file is None
    assert settings.level == "DEBUG"
    assert settings.access_level == "WARNING"
    assert list(config["handlers"]) == ["console"]


def test_deployed_runs_add_rotating_file(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("NODE_ENV", "production")
    monkeypatch.setenv("BACKEND_LOG_DIR", str(tmp_path))

    config = build_logging_config(load_logging_settings())

    assert config["handlers"]["file"]["filename"] == str(tmp_path / "bloodconnect.log")
    assert config["root"]["handlers"] == ["console", "file"]
