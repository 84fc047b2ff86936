"""Tests for structured logging and request_id propagation."""

import json
import logging

from fastapi.testclient import TestClient

from backend.core.logging import LOGGER_NAME, JsonFormatter, PrettyFormatter, log_event
from backend.main import app


def test_request_id_in_response_and_logs(caplog):
    client = TestClient(app)
    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        response = client.post("/v1/votes", json={"user_id": "log-user", "vote": "yes"})
    rid = response.headers.get("x-request-id")
    assert rid
    records = [r for r in caplog.records if getattr(r, "request_id", None) == rid]
    assert records, "Expected logs to contain request_id from response"
    assert {r.getMessage() for r in records} >= {"vote.cast", "request.complete"}
    vote_record = next(r for r in records if r.getMessage() == "vote.cast")
    assert vote_record.user_id == "log-user"


def test_request_id_in_error_response():
    client = TestClient(app)
    response = client.delete("/v1/goals/non-existent", params={"user_id": "u1"})
    rid = response.headers.get("x-request-id")
    assert response.status_code == 404
    assert rid
    payload = response.json()
    assert payload["error"]["request_id"] == rid


def test_json_formatter_includes_structured_fields(caplog):
    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        log_event("info", "levels.level_up", user_id="u9", event_type="level_up", extra={"presence_level": 3})
    record = next(r for r in caplog.records if r.getMessage() == "levels.level_up")

    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "levels.level_up"
    assert payload["user_id"] == "u9"
    assert payload["event_type"] == "level_up"

    pretty = PrettyFormatter().format(record)
    assert "[user=u9]" in pretty
    assert "presence_level=3" in pretty
    assert payload["presence_level"] == 3


def test_domain_fields_are_rendered_and_clipped(caplog):
    note = "x" * 500
    with caplog.at_level(logging.WARNING, logger=LOGGER_NAME):
        log_event(
            "warning",
            "progress.fetch_failed",
            user_id="u9",
            extra={"fetch": "weekly_goals", "error": KeyError("boom"), "note": note},
        )
    record = next(r for r in caplog.records if r.getMessage() == "progress.fetch_failed")

    payload = json.loads(JsonFormatter().format(record))
    assert payload["fetch"] == "weekly_goals"
    assert payload["error"] == "KeyError: 'boom'"
    assert payload["note"].endswith("...")
    assert len(payload["note"]) < len(note)


def test_request_complete_logs_duration(caplog):
    client = TestClient(app)
    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        client.get("/healthz")
    record = next(r for r in caplog.records if r.getMessage() == "request.complete")
    assert record.path == "/healthz"
    assert isinstance(record.duration_ms, int)
