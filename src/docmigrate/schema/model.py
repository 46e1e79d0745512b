"""
In-memory schema model for docmigrate.

A schema snapshot is one labelled generation of the data model. It holds
record types (one per store collection), and each record type holds its
declared fields with their index and default-value annotations. Everything
here is immutable once constructed.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..exceptions import ConfigurationError


# Spellings that name the same stored type.
TYPE_ALIASES: Dict[str, str] = {
    "string": "str",
    "text": "str",
    "integer": "int",
    "int32": "int",
    "int64": "int",
    "long": "int",
    "boolean": "bool",
    "double": "float",
    "number": "float",
    "decimal": "float",
    "date": "datetime",
    "timestamp": "datetime",
    "array": "list",
    "object": "dict",
    "document": "dict",
}

_TYPE_TOKEN = re.compile(r"[a-z0-9_]+")


def normalize_type(type_name: str) -> str:
    """Return the canonical spelling of a semantic type identifier.

    Whitespace and case are ignored and each alphanumeric token is resolved
    through ``TYPE_ALIASES``, so ``List[String]`` and ``list[str]`` compare
    equal.
    """
    compact = "".join(str(type_name).split()).lower()
    return _TYPE_TOKEN.sub(lambda m: TYPE_ALIASES.get(m.group(0), m.group(0)), compact)


def types_equivalent(left: str, right: str) -> bool:
    """Check whether two type identifiers describe the same stored type."""
    return normalize_type(left) == normalize_type(right)


class SnapshotRole(str, Enum):
    """Role a snapshot plays in a migration run."""

    OLD = "old"
    NEW = "new"


@dataclass(frozen=True)
class FieldDescriptor:
    """One declared field of a record type."""

    name: str
    type: str
    has_index: bool = False
    has_default: bool = False
    default_value: Any = None

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError("Field name must not be empty")

    def is_equivalent_to(self, other: "FieldDescriptor") -> bool:
        """Same name and an equivalent type."""
        return self.name == other.name and types_equivalent(self.type, other.type)


@dataclass(frozen=True)
class TypeDescriptor:
    """A record type; its name is also the name of its store collection."""

    name: str
    fields: Tuple[FieldDescriptor, ...] = ()

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError("Type name must not be empty")

        object.__setattr__(self, "fields", tuple(self.fields))

        duplicates = _duplicates(f.name for f in self.fields)
        if duplicates:
            raise ConfigurationError(
                f"Type '{self.name}' declares duplicate fields",
                {"fields": ", ".join(duplicates)},
            )

    @property
    def collection(self) -> str:
        return self.name

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    @property
    def indexed_fields(self) -> List[FieldDescriptor]:
        return [f for f in self.fields if f.has_index]

    def get_field(self, name: str) -> Optional[FieldDescriptor]:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def __contains__(self, name: str) -> bool:
        return self.get_field(name) is not None


@dataclass(frozen=True)
class SchemaSnapshot:
    """One labelled generation of the data model."""

    role: SnapshotRole
    types: Tuple[TypeDescriptor, ...] = ()
    version: Optional[str] = None
    source: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "role", SnapshotRole(self.role))
        object.__setattr__(self, "types", tuple(self.types))

        duplicates = _duplicates(t.name for t in self.types)
        if duplicates:
            raise ConfigurationError(
                f"Snapshot '{self.label}' declares duplicate types",
                {"types": ", ".join(duplicates)},
            )

    @property
    def label(self) -> str:
        """Human readable name used in logs and reports."""
        if self.version:
            return f"{self.role.value}@{self.version}"
        return self.role.value

    @property
    def type_names(self) -> List[str]:
        return [t.name for t in self.types]

    def get_type(self, name: str) -> Optional[TypeDescriptor]:
        for t in self.types:
            if t.name == name:
                return t
        return None

    def __contains__(self, name: str) -> bool:
        return self.get_type(name) is not None

    def __len__(self) -> int:
        return len(self.types)


def select_snapshots(
    snapshots: Iterable[SchemaSnapshot],
) -> Tuple[SchemaSnapshot, SchemaSnapshot]:
    """Pick the single old and the single new snapshot out of ``snapshots``.

    Raises:
        ConfigurationError: if zero or more than one snapshot plays either role.
    """
    by_role: Dict[SnapshotRole, List[SchemaSnapshot]] = {
        SnapshotRole.OLD: [],
        SnapshotRole.NEW: [],
    }
    for snapshot in snapshots:
        by_role[snapshot.role].append(snapshot)

    for role, found in by_role.items():
        if len(found) != 1:
            sources = [s.source or s.label for s in found]
            raise ConfigurationError(
                f"Expected exactly one '{role.value}' snapshot, found {len(found)}",
                {"snapshots": ", ".join(sources)} if sources else None,
            )

    return by_role[SnapshotRole.OLD][0], by_role[SnapshotRole.NEW][0]


def _duplicates(names: Iterable[str]) -> List[str]:
    seen = set()
    duplicates = []
    for name in names:
        if name in seen and name not in duplicates:
            duplicates.append(name)
        seen.add(name)
    return duplicates
