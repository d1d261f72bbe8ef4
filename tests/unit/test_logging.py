"""Log rendering: stdlib and structlog records share one handler and context."""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Iterator

import pytest
import structlog

from finquest.config import Settings
from finquest.middleware.logging import SERVICE_NAME, bind_user_context, setup_logging


@pytest.fixture
def json_logs(capsys: pytest.CaptureFixture[str]) -> Iterator[None]:
    setup_logging(Settings(log_format="json", environment="staging"))
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


def _last_event(err: str) -> dict:
    return json.loads(err.strip().splitlines()[-1])


class TestJsonLogs:
    def test_service_records_carry_request_context(self, json_logs, capsys) -> None:
        user_id = uuid.uuid4()
        structlog.contextvars.bind_contextvars(request_id="req-1")
        bind_user_context(user_id)

        logging.getLogger("finquest.goals.service").warning("Goal %s completed", "car")

        event = _last_event(capsys.readouterr().err)
        assert event["event"] == "Goal car completed"
        assert event["level"] == "warning"
        assert event["logger"] == "finquest.goals.service"
        assert event["user_id"] == str(user_id)
        assert event["request_id"] == "req-1"
        assert event["service"] == SERVICE_NAME
        assert event["env"] == "staging"

    def test_repeated_setup_keeps_one_handler(self, json_logs, capsys) -> None:
        setup_logging(Settings(log_format="json"))
        logging.getLogger("finquest.test").error("once")
        lines = [line for line in capsys.readouterr().err.splitlines() if '"once"' in line]
        assert len(lines) == 1

    def test_http_client_chatter_quieted(self, json_logs) -> None:
        assert logging.getLogger("httpx").getEffectiveLevel() == logging.WARNING
