"""Tests for structured logging configuration."""

import json
import logging
import re

import pytest
import structlog

from server_network.config import Settings
from server_network.logging_config import get_logger, setup_logging


def strip_ansi(text):
    """Strip ANSI escape sequences from text."""
    ansi_escape = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
    return ansi_escape.sub("", text)


def parse_json_lines(output):
    """Parse output containing multiple JSON lines."""
    lines = output.strip().split("\n")
    return [json.loads(line) for line in lines if line.strip()]


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


def make_settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


class TestLoggingSetup:
    def test_json_format_from_settings(self, capsys):
        setup_logging(make_settings(service_name="test_service", log_format="json"))

        get_logger("server_network.test").warning(
            "server_network_attachment_not_found_removing", id="5-100"
        )

        entries = parse_json_lines(capsys.readouterr().out)
        event = "server_network_attachment_not_found_removing"
        log_entry = next((e for e in entries if e.get("event") == event), None)
        assert log_entry is not None
        assert log_entry["service"] == "test_service"
        assert log_entry["id"] == "5-100"
        assert log_entry["level"] == "warning"
        assert log_entry["logger"] == "server_network.test"
        assert "timestamp" in log_entry

    def test_console_format(self, capsys):
        setup_logging(make_settings(log_format="console"))

        get_logger().info("network_action_waiting", network_id=100)

        output = strip_ansi(capsys.readouterr().out)
        assert "network_action_waiting" in output
        assert "network_id=100" in output

    def test_reads_hcloud_env(self, monkeypatch, capsys):
        monkeypatch.setenv("HCLOUD_SERVICE_NAME", "env_service")
        monkeypatch.setenv("HCLOUD_LOG_FORMAT", "json")
        monkeypatch.setenv("HCLOUD_LOG_LEVEL", "debug")

        setup_logging()
        get_logger().debug("retrying_after_conflict", attempt=1)

        entries = parse_json_lines(capsys.readouterr().out)
        log_entry = next((e for e in entries if e.get("event") == "retrying_after_conflict"), None)
        assert log_entry is not None
        assert log_entry["service"] == "env_service"
        assert log_entry["level"] == "debug"

    def test_arguments_override_settings(self, capsys):
        setup_logging(make_settings(log_format="console", log_level="INFO"), log_format="json")

        get_logger().info("network_action_succeeded", action_id=13)

        entries = parse_json_lines(capsys.readouterr().out)
        assert any(e.get("event") == "network_action_succeeded" for e in entries)

    def test_level_filtering(self, capsys):
        setup_logging(make_settings(log_level="WARNING"))

        logger = get_logger()
        logger.info("info_event")
        logger.warning("warning_event")

        output = strip_ansi(capsys.readouterr().out)
        assert "info_event" not in output
        assert "warning_event" in output

    def test_bound_attachment_context_is_merged(self, capsys):
        setup_logging(make_settings(log_format="json"))

        with structlog.contextvars.bound_contextvars(server_id=5, network_id=100):
            get_logger().info("server_already_attached")
        get_logger().info("after_operation")

        entries = {e["event"]: e for e in parse_json_lines(capsys.readouterr().out)}
        assert entries["server_already_attached"]["server_id"] == 5  # noqa: PLR2004
        assert entries["server_already_attached"]["network_id"] == 100  # noqa: PLR2004
        assert "server_id" not in entries["after_operation"]
