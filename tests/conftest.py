"""
Pytest configuration and shared fixtures for docmigrate tests.

This module provides schema snapshots for the common migration scenarios
plus store doubles used across the test suite.
"""

import os
import tempfile
from typing import Any, Dict
from unittest.mock import AsyncMock

import pytest
import yaml

from docmigrate.schema.model import (
    FieldDescriptor,
    SchemaSnapshot,
    SnapshotRole,
    TypeDescriptor,
)
from docmigrate.store.base import DocumentStore
from docmigrate.store.memory import InMemoryDocumentStore


def make_type(name: str, *fields: FieldDescriptor) -> TypeDescriptor:
    return TypeDescriptor(name=name, fields=tuple(fields))


def make_field(name: str, type_: str = "str", index: bool = False, **kwargs) -> FieldDescriptor:
    return FieldDescriptor(name=name, type=type_, has_index=index, **kwargs)


# ============================================================================
# Snapshot Fixtures
# ============================================================================

@pytest.fixture
def player_old() -> SchemaSnapshot:
    """Player with an indexed name and a field that is about to disappear."""
    return SchemaSnapshot(
        role=SnapshotRole.OLD,
        version="1",
        types=(
            make_type(
                "Player",
                make_field("name", "str", index=True),
                make_field("level", "int"),
                make_field("gold", "int"),
                make_field("jinwoo", "str"),
            ),
        ),
    )


@pytest.fixture
def player_new() -> SchemaSnapshot:
    """Player with the index moved from name to level."""
    return SchemaSnapshot(
        role=SnapshotRole.NEW,
        version="2",
        types=(
            make_type(
                "Player",
                make_field("name", "str"),
                make_field("level", "int", index=True),
                make_field("gold", "int"),
            ),
        ),
    )


@pytest.fixture
def replaced_types_old() -> SchemaSnapshot:
    return SchemaSnapshot(
        role=SnapshotRole.OLD,
        types=(make_type("Jinwoo", make_field("iidex", "int", index=True)),),
    )


@pytest.fixture
def replaced_types_new() -> SchemaSnapshot:
    return SchemaSnapshot(
        role=SnapshotRole.NEW,
        types=(
            make_type(
                "Player",
                make_field("name", "str", index=True),
                make_field("level", "int"),
                make_field("gold", "int"),
            ),
            make_type(
                "Log",
                make_field("id", "int", index=True),
                make_field("msg", "str"),
            ),
        ),
    )


@pytest.fixture
def empty_old() -> SchemaSnapshot:
    return SchemaSnapshot(role=SnapshotRole.OLD)


@pytest.fixture
def empty_new() -> SchemaSnapshot:
    return SchemaSnapshot(role=SnapshotRole.NEW)


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    """In-memory store seeded with a few players and log-era documents."""
    store = InMemoryDocumentStore()
    store.insert_many(
        "Player",
        [
            {"_id": 1, "name": "alice", "level": 3, "gold": 10, "jinwoo": "x"},
            {"_id": 2, "name": "bob", "level": 7, "gold": 0, "jinwoo": "y"},
        ],
    )
    store.insert_many("Jinwoo", [{"_id": 1, "iidex": 5}])
    return store


@pytest.fixture
def mock_store() -> AsyncMock:
    """Store double recording every call."""
    store = AsyncMock(spec=DocumentStore)
    store.delete_all_documents.return_value = 0
    return store


# ============================================================================
# File Fixtures
# ============================================================================

def snapshot_document(role: str, models: Dict[str, Any], version: str = None) -> Dict[str, Any]:
    document: Dict[str, Any] = {
        "role": role,
        "models": [{"name": name, "fields": fields} for name, fields in models.items()],
    }
    if version:
        document["version"] = version
    return document


@pytest.fixture
def config_dir():
    """Directory holding a config file and an old/new snapshot pair."""
    with tempfile.TemporaryDirectory() as tmp:
        schema_dir = os.path.join(tmp, "schema")
        os.makedirs(schema_dir)

        old = snapshot_document(
            "old",
            {
                "Player": [
                    {"name": "name", "type": "str", "index": True},
                    {"name": "level", "type": "int"},
                    {"name": "gold", "type": "int"},
                    {"name": "jinwoo", "type": "str"},
                ]
            },
            version="1",
        )
        new = snapshot_document(
            "new",
            {
                "Player": [
                    {"name": "name", "type": "str"},
                    {"name": "level", "type": "int", "index": True, "default": 1},
                    {"name": "gold", "type": "int"},
                ]
            },
            version="2",
        )
        with open(os.path.join(schema_dir, "old.yaml"), "w") as f:
            yaml.dump(old, f)
        with open(os.path.join(schema_dir, "new.yaml"), "w") as f:
            yaml.dump(new, f)

        config = {
            "store": {"backend": "memory", "database": "game"},
            "snapshots": ["schema/old.yaml", "schema/new.yaml"],
            "migration": {"concurrency_limit": 2},
        }
        with open(os.path.join(tmp, "docmigrate.yaml"), "w") as f:
            yaml.dump(config, f)

        yield tmp


@pytest.fixture
def config_file(config_dir) -> str:
    return os.path.join(config_dir, "docmigrate.yaml")
