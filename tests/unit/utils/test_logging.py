"""Unit tests for log sanitization."""

import pytest

from record_hub.utils.logging import (
    REDACTED_VALUE,
    bind_context,
    get_logger,
    sanitization_processor,
    sanitize_for_logging,
)


@pytest.mark.unit
def test_credentials_are_redacted():
    sanitized = sanitize_for_logging(
        {
            "username": "alice",
            "password": "wonderland",
            "password_hash": "abc123",
            "password_salt": "pepper",
            "RECORD_HUB_REDIS_URL": "redis://:secret@cache",
        }
    )

    assert sanitized["username"] == "alice"
    assert sanitized["password"] == REDACTED_VALUE
    assert sanitized["password_hash"] == REDACTED_VALUE
    assert sanitized["password_salt"] == REDACTED_VALUE
    assert sanitized["RECORD_HUB_REDIS_URL"] == REDACTED_VALUE


@pytest.mark.unit
def test_nested_payloads_are_redacted():
    sanitized = sanitize_for_logging({"payload": {"api_token": "t", "resource": "users"}})
    assert sanitized == {"payload": {"api_token": REDACTED_VALUE, "resource": "users"}}


@pytest.mark.unit
def test_processor_returns_sanitized_event():
    event = sanitization_processor(None, "info", {"event": "auth.granted", "secret": "s"})
    assert event == {"event": "auth.granted", "secret": REDACTED_VALUE}


@pytest.mark.unit
def test_loggers_accept_structured_events():
    get_logger(__name__).info("test.event", username="alice")
    bind_context(backend="relational").debug("test.bound_event")
