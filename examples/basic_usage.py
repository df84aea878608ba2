#!/usr/bin/env python3
"""
Basic usage of dynamomap against DynamoDB Local.

Run DynamoDB Local on port 8000 first:
    docker run -p 8000:8000 amazon/dynamodb-local
"""

import logging
from typing import Optional

from pydantic import BaseModel

from dynamomap import (
    DynamoDBConfig,
    DynamoMap,
    LifecycleOptions,
    RuntimeOptions,
    ScalarType,
    TableConfig,
    TableSchema,
)


class Person(BaseModel):
    id: int
    name: str
    version: int = 1
    email: Optional[str] = None


def main():
    """Walk through the map operations."""
    logging.basicConfig(level=logging.INFO)

    # 1. Configure the table and the connection
    config = TableConfig(
        table_schema=TableSchema(
            table_name="people",
            hash_key_name="id",
            hash_key_type=ScalarType.NUMBER,
            version_name="version",
        ),
        lifecycle=LifecycleOptions(create_table_if_absent=True),
        runtime=RuntimeOptions(scan_concurrency=4, consistent_read=True),
        connection=DynamoDBConfig.for_local_development(),
    )

    # 2. Build the map; the table is created if it does not exist
    people = DynamoMap(config, value_type=Person)

    # 3. Plain and conditional writes
    people.store(Person(id=1, name="Bob"))
    print("store_if_absent(id=1):", people.store_if_absent(Person(id=1, name="Kit")))
    print("store_if_version(id=1, v1->v2):",
          people.store_if_version(Person(id=1, name="Bob Jr", version=2), expected_version=1))

    person, loaded = people.load_or_store(Person(id=2, name="Ada"))
    print("load_or_store(id=2):", person, "loaded" if loaded else "stored")

    # 4. Reads
    person, found = people.load({"id": 1})
    print("load(id=1):", person if found else "not found")

    # 5. Full-table scan over 4 segments, stopping after 10 values
    seen = []
    people.range(lambda p: seen.append(p) or len(seen) < 10)
    print("first values:", [p.name for p in seen])

    # 6. Delete
    people.delete({"id": 2})


if __name__ == "__main__":
    main()
