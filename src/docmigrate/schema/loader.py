"""
Loading schema snapshots from declarative documents.

Snapshot documents are plain mappings (usually YAML files) validated with
Pydantic and then frozen into the schema model.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .model import FieldDescriptor, SchemaSnapshot, SnapshotRole, TypeDescriptor
from ..exceptions import ConfigurationError, SnapshotError


logger = logging.getLogger(__name__)


class FieldSpec(BaseModel):
    """Declared field as written in a snapshot document."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, description="Field name")
    type: str = Field(..., min_length=1, description="Semantic type identifier")
    index: bool = Field(False, description="Back the field with an ascending index")
    default: Any = Field(None, description="Default for newly inserted documents")

    def to_descriptor(self) -> FieldDescriptor:
        return FieldDescriptor(
            name=self.name,
            type=self.type,
            has_index=self.index,
            has_default="default" in self.model_fields_set,
            default_value=self.default,
        )


class ModelSpec(BaseModel):
    """Declared record type as written in a snapshot document."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, description="Model (collection) name")
    fields: List[FieldSpec] = Field(default_factory=list, description="Declared fields")

    def to_descriptor(self) -> TypeDescriptor:
        return TypeDescriptor(
            name=self.name,
            fields=tuple(f.to_descriptor() for f in self.fields),
        )


class SnapshotSpec(BaseModel):
    """A whole snapshot document."""

    model_config = ConfigDict(extra="forbid")

    role: Literal["old", "new"] = Field(..., description="Role in the migration run")
    version: Optional[Union[str, int, float]] = Field(None, description="Free-form version label")
    models: List[ModelSpec] = Field(default_factory=list, description="Record types")


def snapshot_from_dict(data: Dict[str, Any], source: Optional[str] = None) -> SchemaSnapshot:
    """Build a ``SchemaSnapshot`` from a snapshot mapping.

    Raises:
        SnapshotError: if the mapping does not describe a valid snapshot.
        ConfigurationError: if a model repeats a field name or a type name
            is repeated.
    """
    if not isinstance(data, dict):
        raise SnapshotError("Snapshot document must be a mapping", source=source)

    try:
        spec = SnapshotSpec(**data)
    except ValidationError as e:
        raise SnapshotError(f"Invalid snapshot document: {e}", source=source, cause=e)

    version = str(spec.version) if spec.version is not None else None
    snapshot = SchemaSnapshot(
        role=SnapshotRole(spec.role),
        types=tuple(m.to_descriptor() for m in spec.models),
        version=version,
        source=source,
    )
    logger.debug(f"Loaded snapshot {snapshot.label} with {len(snapshot)} types from {source or '<dict>'}")
    return snapshot


def load_snapshot(path: Union[str, Path]) -> SchemaSnapshot:
    """Load a snapshot from a YAML file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise SnapshotError("Snapshot file not found", source=str(path))
    except yaml.YAMLError as e:
        raise SnapshotError(f"Invalid YAML in snapshot file: {e}", source=str(path), cause=e)

    try:
        return snapshot_from_dict(data, source=str(path))
    except SnapshotError:
        raise
    except ConfigurationError as e:
        e.details.setdefault("source", str(path))
        raise


def snapshot_to_dict(snapshot: SchemaSnapshot) -> Dict[str, Any]:
    """Render a snapshot back into its document form."""
    data: Dict[str, Any] = {"role": snapshot.role.value}
    if snapshot.version:
        data["version"] = snapshot.version
    data["models"] = []
    for type_descriptor in snapshot.types:
        fields = []
        for f in type_descriptor.fields:
            entry: Dict[str, Any] = {"name": f.name, "type": f.type}
            if f.has_index:
                entry["index"] = True
            if f.has_default:
                entry["default"] = f.default_value
            fields.append(entry)
        data["models"].append({"name": type_descriptor.name, "fields": fields})
    return data
