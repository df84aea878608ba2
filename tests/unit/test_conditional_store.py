"""
Tests for ConditionalStore (core/conditional_store.py)

Round trips and conditional writes run against moto; contention and error
propagation are scripted on a mocked gateway.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from dynamomap.config import RuntimeOptions, TableSchema
from dynamomap.core.conditional_store import ConditionalStore
from dynamomap.core.table_gateway import TableGateway
from dynamomap.exceptions import (
    ConditionFailedError,
    ConfigurationError,
    ContentionError,
    MissingKeyAttributeError,
    NotFoundError,
    RetryableError,
    ValidationError,
)
from dynamomap.models.item import ScalarType

FIXED_NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def people_gateway(mock_dynamodb_config, mock_dynamodb_resource, people_table):
    return TableGateway(mock_dynamodb_config, "test_people", dynamodb=mock_dynamodb_resource)


@pytest.fixture
def store(people_gateway, people_schema):
    return ConditionalStore(people_gateway, people_schema, RuntimeOptions(consistent_read=True))


@pytest.fixture
def mock_gateway():
    gateway = Mock()
    gateway.table_name = "people"
    return gateway


def condition_failed() -> ConditionFailedError:
    return ConditionFailedError("Conditional check failed - PutItem on people", "id=1")


class TestLoadStoreDelete:
    """Plain reads and writes against moto."""

    def test_store_then_load(self, store):
        store.store({"id": 1, "name": "Bob"})

        item, found = store.load({"id": 1})

        assert found is True
        assert item == {"id": 1, "name": "Bob"}

    def test_load_ignores_non_key_attributes(self, store):
        store.store({"id": 1, "name": "Bob"})

        item, found = store.load({"id": 1, "name": "someone else"})

        assert found is True
        assert item["name"] == "Bob"

    def test_load_missing(self, store):
        assert store.load({"id": 404}) == (None, False)

    def test_store_replaces(self, store):
        store.store({"id": 1, "name": "Bob"})
        store.store({"id": 1, "name": "Kit"})

        assert store.load({"id": 1})[0] == {"id": 1, "name": "Kit"}

    def test_attribute_types_survive(self, store):
        item = {
            "id": 1,
            "name": "Ada",
            "tags": {"admin", "ops"},
            "address": {"city": "Oslo"},
            "scores": [1, 2],
            "active": True,
            "nickname": None,
            "avatar": b"\x00\x01",
        }

        store.store(item)
        loaded, _ = store.load({"id": 1})

        assert loaded["tags"] == {"admin", "ops"}
        assert loaded["address"] == {"city": "Oslo"}
        assert loaded["scores"] == [1, 2]
        assert loaded["active"] is True
        assert loaded["nickname"] is None
        assert loaded["avatar"].value == b"\x00\x01"

    def test_delete(self, store):
        store.store({"id": 1, "name": "Bob"})

        store.delete({"id": 1, "name": "ignored"})

        assert store.load({"id": 1}) == (None, False)

    def test_delete_missing_is_fine(self, store):
        store.delete({"id": 404})

    def test_missing_hash_key(self, mock_gateway, people_schema):
        store = ConditionalStore(mock_gateway, people_schema)

        with pytest.raises(MissingKeyAttributeError):
            store.store({"name": "Bob"})
        with pytest.raises(MissingKeyAttributeError):
            store.load({"name": "Bob"})
        with pytest.raises(MissingKeyAttributeError):
            store.store_if_absent({"name": "Bob"})

        mock_gateway.put_item.assert_not_called()
        mock_gateway.get_item.assert_not_called()

    def test_missing_table(self, mock_dynamodb_config, mock_dynamodb_resource, people_schema):
        gateway = TableGateway(mock_dynamodb_config, "test_missing", dynamodb=mock_dynamodb_resource)

        with pytest.raises(NotFoundError):
            ConditionalStore(gateway, people_schema).load({"id": 1})

    def test_consistent_read_flag(self, mock_gateway, people_schema):
        mock_gateway.get_item.return_value = None

        ConditionalStore(mock_gateway, people_schema, RuntimeOptions(consistent_read=True)).load({"id": 1})
        ConditionalStore(mock_gateway, people_schema).load({"id": 2})

        assert mock_gateway.get_item.call_args_list[0].args == ({"id": 1}, True)
        assert mock_gateway.get_item.call_args_list[1].args == ({"id": 2}, False)


class TestRangedKeys:
    """Key extraction with a range key."""

    @pytest.fixture
    def events(self, mock_dynamodb_config, mock_dynamodb_resource, events_table):
        gateway = TableGateway(mock_dynamodb_config, "test_events", dynamodb=mock_dynamodb_resource)
        schema = TableSchema(
            table_name="events",
            hash_key_name="stream",
            range_key_name="seq",
            range_key_type=ScalarType.NUMBER,
        )
        return ConditionalStore(gateway, schema)

    def test_items_differ_by_range_key(self, events):
        events.store({"stream": "orders", "seq": 1, "body": "a"})
        events.store({"stream": "orders", "seq": 2, "body": "b"})

        assert events.load({"stream": "orders", "seq": 1})[0]["body"] == "a"
        assert events.load({"stream": "orders", "seq": 2})[0]["body"] == "b"

    def test_missing_range_key_rejected_remotely(self, events):
        with pytest.raises(ValidationError):
            events.load({"stream": "orders"})


class TestStoreIfAbsent:
    """Conditional create."""

    def test_first_wins(self, store):
        assert store.store_if_absent({"id": 1, "name": "Bob"}) is True
        assert store.store_if_absent({"id": 1, "name": "Kit"}) is False

        assert store.load({"id": 1})[0]["name"] == "Bob"

    def test_condition_uses_hash_key(self, mock_gateway, people_schema):
        ConditionalStore(mock_gateway, people_schema).store_if_absent({"id": 1})

        item, condition, resource_id = mock_gateway.put_item.call_args.args
        assert item == {"id": 1}
        assert condition.get_expression()['operator'] == 'attribute_not_exists'
        assert condition.get_expression()['values'][0].name == 'id'
        assert resource_id == "id=1"

    def test_other_errors_propagate(self, mock_gateway, people_schema):
        mock_gateway.put_item.side_effect = RetryableError("Throttling - PutItem on people")

        with pytest.raises(RetryableError):
            ConditionalStore(mock_gateway, people_schema).store_if_absent({"id": 1})


class TestStoreIfVersion:
    """Optimistic version checks."""

    def test_matching_version(self, store):
        store.store({"id": 1, "name": "Bob", "version": 1})

        assert store.store_if_version({"id": 1, "name": "Kit", "version": 2}, 1) is True
        assert store.load({"id": 1})[0] == {"id": 1, "name": "Kit", "version": 2}

    def test_stale_version(self, store):
        store.store({"id": 1, "name": "Bob", "version": 2})

        assert store.store_if_version({"id": 1, "name": "Kit", "version": 2}, 1) is False
        assert store.load({"id": 1})[0]["name"] == "Bob"

    def test_absent_item(self, store):
        assert store.store_if_version({"id": 1, "version": 1}, 0) is False
        assert store.load({"id": 1}) == (None, False)

    def test_version_is_not_incremented(self, store):
        store.store({"id": 1, "version": 1})

        store.store_if_version({"id": 1, "version": 1, "name": "Bob"}, 1)

        assert store.load({"id": 1})[0]["version"] == 1

    def test_requires_version_name(self, mock_gateway):
        store = ConditionalStore(mock_gateway, TableSchema(table_name="people", hash_key_name="id"))

        with pytest.raises(ConfigurationError):
            store.store_if_version({"id": 1}, 1)

        mock_gateway.put_item.assert_not_called()


class TestLoadOrStore:
    """Load-or-store loop."""

    def test_stores_when_absent(self, store):
        item = {"id": 1, "name": "Bob"}

        actual, loaded = store.load_or_store(item)

        assert actual is item
        assert loaded is False
        assert store.load({"id": 1})[0] == item

    def test_loads_when_present(self, store):
        store.store({"id": 1, "name": "Bob"})

        actual, loaded = store.load_or_store({"id": 1, "name": "Kit"})

        assert loaded is True
        assert actual == {"id": 1, "name": "Bob"}

    def test_lost_race_then_loads(self, mock_gateway, people_schema):
        winner = {"id": 1, "name": "Kit"}
        mock_gateway.get_item.side_effect = [None, winner]
        mock_gateway.put_item.side_effect = condition_failed()

        actual, loaded = ConditionalStore(mock_gateway, people_schema).load_or_store({"id": 1, "name": "Bob"})

        assert (actual, loaded) == (winner, True)
        assert mock_gateway.get_item.call_count == 2

    def test_gives_up_after_max_attempts(self, mock_gateway, people_schema):
        mock_gateway.get_item.return_value = None
        mock_gateway.put_item.side_effect = condition_failed()
        store = ConditionalStore(mock_gateway, people_schema, RuntimeOptions(load_or_store_max_attempts=3))

        with pytest.raises(ContentionError) as exc_info:
            store.load_or_store({"id": 1})

        assert exc_info.value.attempts == 3
        assert exc_info.value.key == {"id": 1}
        assert mock_gateway.get_item.call_count == 3
        assert mock_gateway.put_item.call_count == 3


class TestTimeToLive:
    """TTL stamping on writes."""

    @pytest.fixture
    def ttl_schema(self):
        return TableSchema(
            table_name="people",
            hash_key_name="id",
            hash_key_type=ScalarType.NUMBER,
            time_to_live=timedelta(minutes=5),
        )

    def test_stamps_expiry(self, people_gateway, ttl_schema):
        store = ConditionalStore(people_gateway, ttl_schema, clock=lambda: FIXED_NOW)
        item = {"id": 1, "name": "Bob"}

        store.store(item)

        assert store.load({"id": 1})[0]["TTL"] == 1704067500
        assert item == {"id": 1, "name": "Bob"}

    def test_conditional_writes_stamp_too(self, mock_gateway, ttl_schema):
        store = ConditionalStore(mock_gateway, ttl_schema, clock=lambda: FIXED_NOW)

        store.store_if_absent({"id": 1})

        assert mock_gateway.put_item.call_args.args[0] == {"id": 1, "TTL": 1704067500}

    def test_custom_attribute_name(self, mock_gateway):
        schema = TableSchema(
            table_name="people",
            hash_key_name="id",
            time_to_live=timedelta(seconds=10),
            time_to_live_name="expires_at",
        )

        ConditionalStore(mock_gateway, schema, clock=lambda: FIXED_NOW).store({"id": "a"})

        assert mock_gateway.put_item.call_args.args[0] == {"id": "a", "expires_at": 1704067210}

    def test_no_stamp_without_ttl(self, mock_gateway, people_schema):
        ConditionalStore(mock_gateway, people_schema).store({"id": 1})

        assert mock_gateway.put_item.call_args.args[0] == {"id": 1}
