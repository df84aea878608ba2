"""
Table lifecycle: describe, wait, create, discover keys.

State machine over TableStatus::

    ABSENT --create_table--> CREATING --poll--> ACTIVE     (usable)
                                         |
                                         +----> DELETING   (never usable again)

Polling while CREATING sleeps a fixed interval and has no cap; DynamoDB
finishes table creation in seconds and a table stuck in CREATING is a service
problem that no client-side backoff solves.
"""

import logging
import time
from typing import Callable, Optional

from ..config import LifecycleOptions, TableSchema
from ..exceptions import ConfigurationError, NotFoundError, TableUnusableError
from ..models.item import TableStatus
from .table_gateway import TableGateway

logger = logging.getLogger(__name__)


class TableLifecycleManager:
    """Checks, waits for and optionally creates the table behind a map.

    The schema is back-filled at most once, by key discovery, and is exposed
    through the ``schema`` attribute.
    """

    def __init__(
        self,
        gateway: TableGateway,
        schema: TableSchema,
        options: Optional[LifecycleOptions] = None,
        log: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.gateway = gateway
        self.schema = schema
        self.options = options or LifecycleOptions()
        self.log = log or logger
        self._sleep = sleep

    @property
    def table_name(self) -> str:
        return self.gateway.table_name

    def describe_status(self, discover_keys: bool = False) -> TableStatus:
        """Describe the table, waiting while it is being created.

        Args:
            discover_keys: Fill in hash/range key names from the remote key
                schema when the table is usable and no hash key name is set

        Returns:
            TableStatus.ABSENT when the table does not exist, otherwise the
            first status that is not CREATING

        Raises:
            DynamoMapError: For any failure other than the table being absent
        """
        while True:
            try:
                description = self.gateway.describe_table()
            except NotFoundError:
                self.gateway.debug("table not found:", self.table_name)
                return TableStatus.ABSENT

            status = TableStatus.from_remote(description.get('TableStatus'))
            self.gateway.debug("table status:", status.value)
            if status is not TableStatus.CREATING:
                break
            self.log.info(f"Table {self.table_name} is CREATING, checking again in {self.options.poll_interval_seconds}s")
            self._sleep(self.options.poll_interval_seconds)

        if discover_keys and status.usable and not self.schema.hash_key_name:
            self._discover_keys(description)
        return status

    def _discover_keys(self, description: dict) -> None:
        hash_key_name = None
        range_key_name = None
        for element in description.get('KeySchema', []):
            if element['KeyType'] == 'HASH':
                hash_key_name = element['AttributeName']
                self.gateway.debug("found hash key:", hash_key_name)
            elif element['KeyType'] == 'RANGE':
                range_key_name = element['AttributeName']
                self.gateway.debug("found range key:", range_key_name)
        if hash_key_name is None:
            raise TableUnusableError(self.table_name, "remote key schema has no hash key")
        self.schema = self.schema.with_keys(hash_key_name, range_key_name)
        self.log.info(f"Discovered key schema for {self.table_name}: hash={hash_key_name}, range={range_key_name}")

    def create_table(self) -> None:
        """Issue CreateTable using the configured key names and types.

        Capacity below 1 (or unset) is raised to 1 read/write unit.

        Raises:
            ConfigurationError: If the hash key name, or the type of a
                configured range key, is missing
        """
        schema = self.schema
        if not schema.hash_key_name:
            raise ConfigurationError(f"Cannot create table {self.table_name} without a hash key name")

        key_schema = [{'AttributeName': schema.hash_key_name, 'KeyType': 'HASH'}]
        attribute_definitions = [
            {'AttributeName': schema.hash_key_name, 'AttributeType': schema.hash_key_type.value},
        ]
        if schema.ranged:
            if schema.range_key_type is None:
                raise ConfigurationError(
                    f"Cannot create table {self.table_name}: range key {schema.range_key_name} has no type"
                )
            key_schema.append({'AttributeName': schema.range_key_name, 'KeyType': 'RANGE'})
            attribute_definitions.append(
                {'AttributeName': schema.range_key_name, 'AttributeType': schema.range_key_type.value}
            )

        create_kwargs = {
            'KeySchema': key_schema,
            'AttributeDefinitions': attribute_definitions,
            'ProvisionedThroughput': {
                'ReadCapacityUnits': self.options.effective_read_capacity,
                'WriteCapacityUnits': self.options.effective_write_capacity,
            },
        }
        if self.options.server_side_encryption:
            create_kwargs['SSESpecification'] = {'Enabled': True}
        self.gateway.create_table(**create_kwargs)

    def enable_time_to_live(self) -> None:
        """Turn on DynamoDB expiry for the TTL attribute, if a TTL is configured."""
        if not self.schema.has_time_to_live:
            return
        self.gateway.update_time_to_live(self.schema.effective_time_to_live_name, True)

    def ensure_ready(self) -> TableSchema:
        """Make sure the table can be used, creating it or discovering keys as configured.

        Returns:
            The schema to use, with key names back-filled if they were discovered

        Raises:
            TableUnusableError: If the table is absent and cannot be created,
                or is being deleted
            ConfigurationError: If creation is enabled, the table already exists
                and no hash key name is configured
            DynamoMapError: For any transport or service failure
        """
        if self.options.create_table_if_absent:
            status = self.describe_status(discover_keys=False)
            created = False
            if status is TableStatus.ABSENT:
                self.log.info(f"Table {self.table_name} does not exist, creating it")
                self.create_table()
                created = True
                status = self.describe_status(discover_keys=False)
                if status is TableStatus.ABSENT:
                    raise TableUnusableError(self.table_name, "table vanished after creation")
            self._check_usable(status)
            if not self.schema.hash_key_name:
                raise ConfigurationError(
                    f"Table {self.table_name} exists but no hash key name is configured; "
                    "keys are not discovered when create_table_if_absent is set",
                    table_name=self.table_name,
                )
            if created:
                self.enable_time_to_live()
        elif not self.schema.hash_key_name:
            status = self.describe_status(discover_keys=True)
            if status is TableStatus.ABSENT:
                raise TableUnusableError(self.table_name, "table does not exist and hash key name is empty")
            self._check_usable(status)
            if not self.schema.hash_key_name:
                raise TableUnusableError(self.table_name, f"cannot discover keys while table is {status.value}")
        return self.schema

    def _check_usable(self, status: TableStatus) -> None:
        if status is TableStatus.DELETING:
            raise TableUnusableError(self.table_name, "table is being deleted")
