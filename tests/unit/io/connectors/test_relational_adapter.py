"""
Unit tests for RelationalAdapter.

Uses an in-memory SQLite engine for query behaviour and a mocked engine for
connection handling (retry, guaranteed release).
"""

from unittest.mock import MagicMock, Mock, patch

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from record_hub.config.settings import RelationalConfig
from record_hub.domain.exceptions import BackendError, MappingError, NotFound
from record_hub.domain.models import Post, User
from record_hub.domain.protocols import DataPort
from record_hub.io.connectors.relational_adapter import RelationalAdapter, _connect_args
from record_hub.io.schema.tables import users


@pytest.fixture
def config():
    return RelationalConfig(url="sqlite://", max_retries=3, retry_backoff_base=0)


@pytest.fixture
def adapter(config, sqlite_engine):
    return RelationalAdapter(config, engine=sqlite_engine)


def _mock_engine():
    engine = MagicMock()
    engine.dialect.name = "mock"
    engine.url.database = "mockdb"
    return engine


@pytest.mark.unit
class TestRelationalLookups:
    def test_implements_sync_contract(self, adapter):
        assert isinstance(adapter, DataPort)
        assert adapter.synchronous is True

    def test_find_user(self, adapter, hasher):
        user = adapter.find_user_by_username("alice")
        assert user == User(username="alice", password_hash=hasher.hash("wonderland"))

    def test_unknown_user_raises_not_found(self, adapter):
        with pytest.raises(NotFound) as exc_info:
            adapter.find_user_by_username("ghost")
        assert exc_info.value.resource == "users"
        assert exc_info.value.key == "ghost"

    def test_posts_in_insertion_order(self, adapter):
        posts = adapter.find_posts_for_recipient("alice")
        assert posts == (
            Post(author="bob", recipient="alice", content="P1"),
            Post(author="carol", recipient="alice", content="P2"),
            Post(author="bob", recipient="alice", content="P3"),
        )

    def test_no_posts_raises_not_found(self, adapter):
        with pytest.raises(NotFound):
            adapter.find_posts_for_recipient("ghost")

    def test_malformed_row_raises_mapping_error(self, adapter, sqlite_engine):
        with sqlite_engine.begin() as conn:
            conn.execute(users.insert(), {"username": "broken", "password_hash": ""})

        with pytest.raises(MappingError) as exc_info:
            adapter.find_user_by_username("broken")
        assert exc_info.value.resource == "users"

    def test_query_failure_raises_backend_error(self, adapter, sqlite_engine):
        with sqlite_engine.begin() as conn:
            conn.exec_driver_sql("DROP TABLE posts")

        with pytest.raises(BackendError) as exc_info:
            adapter.find_posts_for_recipient("alice")
        assert exc_info.value.backend == "relational"


@pytest.mark.unit
class TestRelationalConnections:
    @patch("record_hub.io.connectors.relational_adapter.time.sleep")
    def test_connect_retries_then_raises_backend_error(self, mock_sleep, config):
        engine = _mock_engine()
        engine.connect.side_effect = OperationalError(
            "connect", {}, Exception("connection refused")
        )
        adapter = RelationalAdapter(config, engine=engine)

        with pytest.raises(BackendError) as exc_info:
            adapter.find_user_by_username("alice")

        assert engine.connect.call_count == 3
        assert mock_sleep.call_count == 2
        assert isinstance(exc_info.value.original_error, OperationalError)

    @patch("record_hub.io.connectors.relational_adapter.time.sleep")
    def test_connect_recovers_on_retry(self, mock_sleep, config):
        conn = Mock()
        conn.execute.return_value.mappings.return_value = [
            {"username": "alice", "password_hash": "h"}
        ]
        engine = _mock_engine()
        engine.connect.side_effect = [OperationalError("connect", {}, Exception("x")), conn]
        adapter = RelationalAdapter(config, engine=engine)

        assert adapter.find_user_by_username("alice").username == "alice"
        assert engine.connect.call_count == 2

    def test_connection_released_after_success(self, config):
        conn = Mock()
        conn.execute.return_value.mappings.return_value = [
            {"author": "bob", "recipient": "alice", "content": "P1"}
        ]
        engine = _mock_engine()
        engine.connect.return_value = conn
        adapter = RelationalAdapter(config, engine=engine)

        adapter.find_posts_for_recipient("alice")

        conn.close.assert_called_once()
        statement, params = conn.execute.call_args.args
        assert "ORDER BY id" in str(statement)
        assert params == {"value": "alice"}

    def test_connection_released_after_failure(self, config):
        conn = Mock()
        conn.execute.side_effect = SQLAlchemyError("execution failed")
        engine = _mock_engine()
        engine.connect.return_value = conn
        adapter = RelationalAdapter(config, engine=engine)

        with pytest.raises(BackendError):
            adapter.find_user_by_username("alice")
        conn.close.assert_called_once()

    def test_close_disposes_engine(self, config):
        engine = _mock_engine()
        RelationalAdapter(config, engine=engine).close()
        engine.dispose.assert_called_once()


@pytest.mark.unit
@pytest.mark.parametrize(
    "url, expected",
    [
        ("sqlite:///hub.db", {"timeout": 7}),
        ("postgresql://u:p@localhost/db", {"connect_timeout": 7}),
        ("mysql+pymysql://u:p@localhost/db", {"connect_timeout": 7}),
        ("oracle://u:p@localhost/db", {}),
    ],
)
def test_connect_args_per_dialect(url, expected):
    assert _connect_args(url, 7) == expected
