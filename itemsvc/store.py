"""Key-value store adapters used by the front door.

The front door only needs three calls: an unconditional ``put``, a point
``get`` and a cheap ``describe`` probe for health checks. Every adapter
converts its library errors into :class:`StoreError` so handlers never see
backend-specific exceptions.
"""
from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import closing
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .api_models import Item
from .errors import ConfigError, StoreError

logger = logging.getLogger(__name__)


class ItemStore:
    """Interface of the external key-value store."""

    def put(self, item: Item) -> None:
        raise NotImplementedError

    def get(self, item_id: str) -> Item | None:
        raise NotImplementedError

    def describe(self) -> dict[str, Any]:
        raise NotImplementedError


class DynamoItemStore(ItemStore):
    """Items table in DynamoDB, keyed by the string attribute ``id``."""

    def __init__(self, client: Any, table_name: str) -> None:
        self.client = client
        self.table_name = table_name

    @classmethod
    def from_region(cls, region: str | None, table_name: str) -> "DynamoItemStore":
        try:
            client = boto3.client("dynamodb", region_name=region)
        except BotoCoreError as e:
            raise ConfigError(f"Cannot create DynamoDB client: {e}") from e
        return cls(client, table_name)

    def put(self, item: Item) -> None:
        try:
            self.client.put_item(
                TableName=self.table_name,
                Item={"id": {"S": item.id}, "name": {"S": item.name}},
            )
        except (BotoCoreError, ClientError) as e:
            raise StoreError(f"Failed to put item: {e}") from e

    def get(self, item_id: str) -> Item | None:
        try:
            resp = self.client.get_item(TableName=self.table_name, Key={"id": {"S": item_id}})
        except (BotoCoreError, ClientError) as e:
            raise StoreError(f"Failed to get item: {e}") from e
        record = resp.get("Item")
        if not record:
            return None
        return Item(id=record["id"]["S"], name=record.get("name", {}).get("S", ""))

    def describe(self) -> dict[str, Any]:
        try:
            resp = self.client.describe_table(TableName=self.table_name)
        except (BotoCoreError, ClientError) as e:
            raise StoreError(str(e)) from e
        return resp.get("Table", {})


def _resolve_db_path(path: str) -> str:
    """Return a file path usable by sqlite.

    A bind-mounted path that does not exist is often created as a directory
    by Docker; in that case the database file is placed inside it.
    """
    p = os.path.abspath(path)
    if os.path.isdir(p):
        p = os.path.join(p, "items.db")

    parent = os.path.dirname(p)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)

    return p


class SqliteItemStore(ItemStore):
    """Single-file store for running the front door without AWS."""

    def __init__(self, db_path: str) -> None:
        self.db_path = _resolve_db_path(db_path)
        self.init_db()

    def connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create the items table if it does not exist."""
        try:
            with closing(self.connect()) as conn, conn:
                conn.execute("CREATE TABLE IF NOT EXISTS items (id TEXT PRIMARY KEY, name TEXT NOT NULL)")
        except sqlite3.Error as e:
            raise StoreError(f"Failed to initialise {self.db_path}: {e}") from e

    def put(self, item: Item) -> None:
        try:
            with closing(self.connect()) as conn, conn:
                conn.execute(
                    """
                    INSERT INTO items (id, name) VALUES (?, ?)
                    ON CONFLICT(id) DO UPDATE SET name=excluded.name
                    """,
                    (item.id, item.name),
                )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to put item: {e}") from e

    def get(self, item_id: str) -> Item | None:
        try:
            with closing(self.connect()) as conn:
                row = conn.execute("SELECT id, name FROM items WHERE id=?", (item_id,)).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to get item: {e}") from e
        return Item(**dict(row)) if row else None

    def describe(self) -> dict[str, Any]:
        try:
            with closing(self.connect()) as conn:
                count = conn.execute("SELECT COUNT(*) FROM items").fetchone()[0]
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        return {"TableName": "items", "ItemCount": count, "Path": self.db_path}


def build_store(backend: str, *, region: str | None, table_name: str, db_path: str) -> ItemStore:
    if backend == "sqlite":
        logger.info("Using sqlite item store at %s", db_path)
        return SqliteItemStore(db_path)
    logger.info("Using DynamoDB table %s", table_name)
    return DynamoItemStore.from_region(region, table_name)
