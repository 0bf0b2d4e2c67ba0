"""Tests for tendercalc.core.logging."""

from __future__ import annotations

import io
import json
import logging
from decimal import Decimal

import pytest
import structlog

from tendercalc.core.logging import bind_project_context, configure_logging, render_money


@pytest.fixture
def restore_logging(monkeypatch, tmp_path):
    """Undo root logger and structlog changes made by configure_logging."""
    monkeypatch.setenv("TENDERCALC_LOG_FILE", str(tmp_path / "absent" / "tendercalc.log"))
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    structlog.contextvars.clear_contextvars()
    yield root
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


def _installed(root: logging.Logger) -> list[logging.Handler]:
    return [h for h in root.handlers if getattr(h, "_tendercalc_handler", False)]


def test_render_money_stringifies_decimals():
    event = render_money(None, "info", {"event": "totals", "total": Decimal("4550.00"), "count": 2})
    assert event == {"event": "totals", "total": "4550.00", "count": 2}


def test_bind_project_context():
    structlog.contextvars.clear_contextvars()
    try:
        bind_project_context("proj-hospital", contractor_id="con-acme")
        assert structlog.contextvars.get_contextvars() == {
            "project_id": "proj-hospital",
            "contractor_id": "con-acme",
        }
    finally:
        structlog.contextvars.clear_contextvars()


def test_configure_logging_replaces_only_its_own_handlers(restore_logging):
    root = restore_logging
    foreign = logging.NullHandler()
    root.addHandler(foreign)

    configure_logging(level="info")
    configure_logging(level="warning")

    assert len(_installed(root)) == 1
    assert foreign in root.handlers
    assert root.level == logging.WARNING
    assert logging.getLogger("aiosqlite").level == logging.WARNING


def test_stdlib_records_carry_project_context(restore_logging):
    configure_logging(level="INFO", json_logs=True)
    buffer = io.StringIO()
    _installed(restore_logging)[0].setStream(buffer)

    bind_project_context("proj-hospital")
    logging.getLogger("tendercalc.reporting.assessment").warning("Skipping match %s", "m-ghost")

    line = json.loads(buffer.getvalue().strip().splitlines()[-1])
    assert line["event"] == "Skipping match m-ghost"
    assert line["project_id"] == "proj-hospital"
    assert line["level"] == "warning"
    assert line["logger"] == "tendercalc.reporting.assessment"
