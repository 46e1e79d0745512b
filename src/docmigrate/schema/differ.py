"""
Structural diffing of schema snapshots.

Two differs live here. The type-set differ partitions record types by name
only. The field differ partitions the fields of a mutual type pair by name
and type, so a field whose type changed is reported as both removed (old
storage) and added (new storage) and never as mutual.
"""

import logging
from dataclasses import dataclass, field
from typing import Generic, List, Optional, Set, TypeVar

from .model import FieldDescriptor, SchemaSnapshot, TypeDescriptor, types_equivalent
from ..exceptions import DiffInconsistencyError


logger = logging.getLogger(__name__)

T = TypeVar("T", TypeDescriptor, FieldDescriptor)


@dataclass(frozen=True)
class Pair(Generic[T]):
    """Old and new side of one diffed element; either side may be missing."""

    old: Optional[T] = None
    new: Optional[T] = None

    def __post_init__(self):
        if self.old is None and self.new is None:
            raise ValueError("Pair needs at least one side")

    @property
    def name(self) -> str:
        return (self.new or self.old).name

    @property
    def is_mutual(self) -> bool:
        return self.old is not None and self.new is not None


@dataclass
class DiffResult(Generic[T]):
    """Three-way partition produced by a differ."""

    mutual: List[Pair[T]] = field(default_factory=list)
    added: List[Pair[T]] = field(default_factory=list)
    removed: List[Pair[T]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.mutual or self.added or self.removed)

    @property
    def mutual_names(self) -> List[str]:
        return [p.name for p in self.mutual]

    @property
    def added_names(self) -> List[str]:
        return [p.name for p in self.added]

    @property
    def removed_names(self) -> List[str]:
        return [p.name for p in self.removed]

    @property
    def changed_names(self) -> Set[str]:
        """Names reported in both added and removed (type changes)."""
        return set(self.added_names) & set(self.removed_names)


def diff_types(old: SchemaSnapshot, new: SchemaSnapshot) -> DiffResult[TypeDescriptor]:
    """Partition record types of two snapshots by exact (case-sensitive) name."""
    old_names = set(old.type_names)
    new_names = set(new.type_names)

    result: DiffResult[TypeDescriptor] = DiffResult()
    for new_type in new.types:
        if new_type.name in old_names:
            result.mutual.append(Pair(old=old.get_type(new_type.name), new=new_type))
        else:
            result.added.append(Pair(new=new_type))

    for old_type in old.types:
        if old_type.name not in new_names:
            result.removed.append(Pair(old=old_type))

    logger.debug(
        f"Type diff {old.label} -> {new.label}: "
        f"mutual={result.mutual_names} added={result.added_names} "
        f"removed={result.removed_names}"
    )
    return result


def diff_fields(old: TypeDescriptor, new: TypeDescriptor) -> DiffResult[FieldDescriptor]:
    """Partition the fields of a mutual type pair by name and type.

    A field is mutual when both sides declare it with an equivalent type.
    A field is added when ``old`` lacks it or declares it with another type,
    and removed when ``new`` lacks it or declares it with another type.
    """
    result: DiffResult[FieldDescriptor] = DiffResult()

    for new_field in new.fields:
        old_field = old.get_field(new_field.name)
        if old_field is None:
            result.added.append(Pair(new=new_field))
        elif types_equivalent(old_field.type, new_field.type):
            result.mutual.append(Pair(old=old_field, new=new_field))
        else:
            result.added.append(Pair(new=new_field))

    for old_field in old.fields:
        new_field = new.get_field(old_field.name)
        if new_field is None or not types_equivalent(old_field.type, new_field.type):
            result.removed.append(Pair(old=old_field))

    _check_partitions(new.name, result)

    if result.changed_names:
        logger.debug(f"Type {new.name}: type changed for {sorted(result.changed_names)}")
    return result


def _check_partitions(owner: str, result: DiffResult) -> None:
    mutual = set(result.mutual_names)
    overlap = mutual & (set(result.added_names) | set(result.removed_names))
    if overlap:
        raise DiffInconsistencyError(owner, overlap)
