"""Structured logging for the Facebook login service."""

import hashlib
import logging
import sys
from collections.abc import Callable
from typing import Any

import structlog

SERVICE_NAME = "login-facebook"

# Event keys whose values are credentials or one-time grants
SENSITIVE_KEYS = frozenset({"access_token", "app_secret", "client_secret", "code", "state", "session_secret_key"})
REDACTED = "[redacted]"


def redact_secrets(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask credential values so an OAuth exchange can be logged whole."""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def add_service(service: str) -> Callable[[Any, str, dict[str, Any]], dict[str, Any]]:
    def processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service)
        return event_dict

    return processor


def _shared_processors(service: str) -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        add_service(service),
        redact_secrets,
    ]


def _renderer(log_level: str) -> Any:
    if log_level == "DEBUG":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def configure_logging(log_level: str = "INFO", service: str = SERVICE_NAME) -> None:
    """
    Configure structlog and the standard library root logger.

    Every event carries ``service`` and has credential keys masked, including
    records emitted by uvicorn and httpx through the stdlib bridge.
    """
    log_level = log_level.upper()

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    structlog.configure(
        processors=[
            *_shared_processors(service),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _renderer(log_level),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=_renderer(log_level),
        foreign_pre_chain=_shared_processors(service),
        fmt="%(message)s",
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)


def token_fingerprint(token: str) -> str:
    """Short SHA-256 prefix used to refer to a token in log events."""
    return hashlib.sha256(token.encode()).hexdigest()[:8]
