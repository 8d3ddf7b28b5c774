"""Unit tests for the composition root."""

from unittest.mock import Mock

import pytest

from record_hub.bootstrap import build_services
from record_hub.config.settings import Settings
from record_hub.domain.auth import HmacPasswordHasher


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", password_salt="test-salt")


@pytest.mark.unit
def test_same_port_injected_into_both_services(settings, sqlite_engine):
    services = build_services(settings, engine=sqlite_engine)

    assert services.auth._port is services.port
    assert services.feed._port is services.port


@pytest.mark.unit
def test_backend_argument_overrides_settings(settings, redis_client):
    services = build_services(settings, backend="key_value", client=redis_client)
    assert services.port.synchronous is True
    assert services.auth.authenticate("alice", "wonderland") is True


@pytest.mark.unit
def test_default_hasher_uses_configured_salt(settings, sqlite_engine):
    services = build_services(settings, engine=sqlite_engine)
    assert isinstance(services.auth._hasher, HmacPasswordHasher)
    assert services.auth._hasher.salt == "test-salt"


@pytest.mark.unit
def test_context_manager_closes_port(settings, sqlite_engine):
    with build_services(settings, engine=sqlite_engine) as services:
        services.port = Mock(wraps=services.port)
    services.port.close.assert_called_once()
