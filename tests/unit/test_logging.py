"""Unit tests for the logging configuration module."""

import logging
from unittest.mock import patch

import pytest
import structlog
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer

from login_facebook.utils.logging import (
    REDACTED,
    add_service,
    configure_logging,
    get_logger,
    redact_secrets,
    token_fingerprint,
)


@pytest.fixture(autouse=True)
def reset_logging():
    """Fixture to reset logging configuration before and after each test."""
    original_structlog_config = structlog.get_config()

    yield

    logging.root.handlers.clear()
    structlog.configure(**original_structlog_config)


def test_configure_logging_info_level():
    """Test that logging is configured with JSONRenderer for INFO level."""
    with patch("structlog.configure") as mock_structlog_configure:
        configure_logging(log_level="INFO")

        assert logging.getLevelName(logging.getLogger().level) == "INFO"
        mock_structlog_configure.assert_called_once()

        _, kwargs = mock_structlog_configure.call_args
        processors = kwargs.get("processors", [])
        assert any(isinstance(p, JSONRenderer) for p in processors)
        assert not any(isinstance(p, ConsoleRenderer) for p in processors)
        assert structlog.contextvars.merge_contextvars in processors
        assert redact_secrets in processors


def test_configure_logging_debug_level():
    """Test that logging is configured with ConsoleRenderer for DEBUG level."""
    with patch("structlog.configure") as mock_structlog_configure:
        configure_logging(log_level="debug")

        assert logging.getLevelName(logging.getLogger().level) == "DEBUG"

        _, kwargs = mock_structlog_configure.call_args
        processors = kwargs.get("processors", [])
        assert any(isinstance(p, ConsoleRenderer) for p in processors)
        assert not any(isinstance(p, JSONRenderer) for p in processors)


def test_get_logger_returns_logger():
    """Test that get_logger returns a valid logger instance."""
    configure_logging()
    logger = get_logger("test_logger")
    assert isinstance(logger.bind(), structlog.stdlib.BoundLogger)


def test_token_fingerprint_is_short_and_stable():
    assert token_fingerprint("EAAB-token") == token_fingerprint("EAAB-token")
    assert len(token_fingerprint("EAAB-token")) == 8
    assert "EAAB" not in token_fingerprint("EAAB-token")


def test_redact_secrets_masks_credentials():
    event = {
        "event": "facebook_token_exchanged",
        "client_secret": "app-secret",
        "code": "AQD-grant",
        "access_token": "EAAB-token",
        "token_hash": "1a2b3c4d",
    }

    result = redact_secrets(None, "info", event)

    assert result["client_secret"] == REDACTED
    assert result["code"] == REDACTED
    assert result["access_token"] == REDACTED
    assert result["token_hash"] == "1a2b3c4d"


def test_redact_secrets_leaves_empty_values():
    assert redact_secrets(None, "info", {"event": "x", "code": None}) == {"event": "x", "code": None}


def test_add_service_does_not_override_bound_value():
    processor = add_service("login-facebook")
    assert processor(None, "info", {"event": "x"})["service"] == "login-facebook"
    assert processor(None, "info", {"event": "x", "service": "other"})["service"] == "other"


def test_logged_events_carry_service_and_hide_secrets(capsys):
    configure_logging(log_level="INFO")

    get_logger("test_logger").info("token_exchange", client_secret="app-secret", code="AQD-grant")

    out = capsys.readouterr().out
    assert '"service": "login-facebook"' in out
    assert "app-secret" not in out
    assert "AQD-grant" not in out
