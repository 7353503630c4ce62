"""Tests for structured logging helpers."""

import logging

import pytest
import structlog
from structlog.testing import capture_logs

from clustercodex.utils.logging import configure_logging, get_logger, log_prompt_metadata


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


class TestLogPromptMetadata:
    def test_logs_metadata_only(self):
        meta = {
            "issue_id": "k8sgpt:oom-1",
            "issue_title": "OOMKilled",
            "namespace": "default",
            "kind": "Pod",
            "has_user_context": False,
            "redaction_count": 2,
        }
        with capture_logs() as logs:
            log_prompt_metadata(meta)

        assert len(logs) == 1
        assert logs[0]["event"] == "codex_prompt_metadata"
        assert logs[0]["redaction_count"] == 2
        assert logs[0]["log_level"] == "info"

    def test_custom_event(self):
        with capture_logs() as logs:
            log_prompt_metadata({"issue_id": "x", "reason": "TimeoutError"}, event="codex_fallback_used")
        assert logs[0]["event"] == "codex_fallback_used"
        assert logs[0]["reason"] == "TimeoutError"


class TestConfigureLogging:
    def test_level_name_filters_debug(self, capsys):
        configure_logging("WARNING")
        logger = get_logger("clustercodex.test")
        logger.info("should_not_appear")
        logger.warning("should_appear")

        out = capsys.readouterr().out
        assert "should_appear" in out
        assert "should_not_appear" not in out

    def test_json_output(self, capsys):
        configure_logging(logging.INFO, json_output=True)
        get_logger("clustercodex.test").info("json_event", count=3)

        out = capsys.readouterr().out
        assert '"event": "json_event"' in out
        assert '"count": 3' in out
