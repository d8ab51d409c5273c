"""Tests for structured logging, the prompt registry and the tracing wrapper."""

import json
import logging
import sys
from unittest.mock import patch

from landhunt.core.errors import UpstreamFetchError
from landhunt.observability.logging import JSONFormatter, correlation_id, get_correlation_id
from landhunt.observability.prompts import (
    get_active_prompt,
    get_prompt_version,
    list_prompts,
    log_prompt_to_run,
)
from landhunt.observability.tracing import log_metrics, set_tag


def _record(msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("landhunt.test", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_single_line_json(self):
        line = JSONFormatter().format(_record())
        data = json.loads(line)
        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["logger"] == "landhunt.test"

    def test_domain_extras_copied(self):
        data = json.loads(JSONFormatter().format(_record(parcel_id="p1", step="score_parcel")))
        assert data["parcel_id"] == "p1"
        assert data["step"] == "score_parcel"

    def test_correlation_id_included(self):
        token = correlation_id.set("req-42")
        try:
            data = json.loads(JSONFormatter().format(_record()))
            assert get_correlation_id() == "req-42"
        finally:
            correlation_id.reset(token)
        assert data["correlation_id"] == "req-42"

    def test_no_correlation_id_outside_request(self):
        data = json.loads(JSONFormatter().format(_record()))
        assert "correlation_id" not in data

    def test_landhunt_error_fields_stamped(self):
        try:
            raise UpstreamFetchError("PlanIt returned HTTP 503", status=503, body="down")
        except UpstreamFetchError:
            record = logging.LogRecord(
                "landhunt.test", logging.ERROR, __file__, 1, "failed", (), sys.exc_info(),
            )
        data = json.loads(JSONFormatter().format(record))
        assert data["error_type"] == "upstream_fetch_error"
        assert data["status_code"] == 502
        assert data["upstream_status"] == 503
        assert "UpstreamFetchError" in data["exception"]

    def test_other_exceptions_not_stamped(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord(
                "landhunt.test", logging.ERROR, __file__, 1, "failed", (), sys.exc_info(),
            )
        data = json.loads(JSONFormatter().format(record))
        assert "error_type" not in data
        assert "RuntimeError" in data["exception"]


class TestPromptRegistry:
    def test_all_prompts_registered(self):
        names = {p["name"] for p in list_prompts()}
        assert names == {"parcel_scores", "planning_summary", "passport_narrative"}

    def test_versions(self):
        assert get_prompt_version("parcel_scores") == "v1"

    def test_scores_prompt_lists_fields(self):
        text = get_active_prompt("parcel_scores")
        assert "recommended_use" in text
        assert "constraint_severity" in text

    def test_summary_prompt_lists_decisions(self):
        text = get_active_prompt("planning_summary")
        assert '"approved" | "refused" | "pending" | "unknown"' in text
        assert "approval_probability" in text


class TestRunLogging:
    def test_noop_without_active_run(self):
        with patch("mlflow.log_metrics") as mock_log, patch("mlflow.set_tag") as mock_tag:
            log_metrics({"x": 1.0})
            set_tag("k", "v")
        mock_log.assert_not_called()
        mock_tag.assert_not_called()

    def test_prompt_logging_without_run_is_silent(self):
        with patch("mlflow.log_text") as mock_log_text:
            log_prompt_to_run("planning_summary")
        mock_log_text.assert_not_called()
