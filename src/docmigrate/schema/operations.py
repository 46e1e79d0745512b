"""
Store operations, change plans and execution outcomes for docmigrate.

An operation is one abstract, idempotent mutation request against the
document store. The planner groups operations into work units (one per
collection and phase); the reconciler turns each executed operation into an
``OperationOutcome``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from ..exceptions import StoreError
from ..store.base import DocumentStore


class OperationKind(str, Enum):
    """Kinds of store mutations."""

    UNSET_FIELD = "unset_field"
    CREATE_INDEX = "create_index"
    DROP_INDEX = "drop_index"
    DELETE_ALL_DOCUMENTS = "delete_all_documents"
    DROP_ALL_INDEXES = "drop_all_indexes"


class Phase(str, Enum):
    """Reconciliation phases, in execution order."""

    MUTUAL = "mutual"
    ADDED = "added"
    REMOVED = "removed"


PHASE_ORDER = (Phase.MUTUAL, Phase.ADDED, Phase.REMOVED)


class IndexDirection(int, Enum):
    """Single-field index direction. Only ascending is planned."""

    ASCENDING = 1
    DESCENDING = -1


class OutcomeStatus(str, Enum):
    """Result of one executed (or skipped) operation."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


DESTRUCTIVE_KINDS = frozenset(
    {
        OperationKind.UNSET_FIELD,
        OperationKind.DROP_INDEX,
        OperationKind.DELETE_ALL_DOCUMENTS,
        OperationKind.DROP_ALL_INDEXES,
    }
)


def index_name(field_name: str, direction: IndexDirection = IndexDirection.ASCENDING) -> str:
    """Name of the single-field index a store derives for ``field_name``."""
    return DocumentStore.index_name(field_name, ascending=direction == IndexDirection.ASCENDING)


@dataclass(frozen=True)
class Operation:
    """Represents one store operation."""

    kind: OperationKind
    phase: Phase
    collection: str
    field: Optional[str] = None
    direction: Optional[IndexDirection] = None

    @property
    def is_destructive(self) -> bool:
        return self.kind in DESTRUCTIVE_KINDS

    @property
    def index_name(self) -> Optional[str]:
        if self.kind not in (OperationKind.CREATE_INDEX, OperationKind.DROP_INDEX):
            return None
        return index_name(self.field, self.direction or IndexDirection.ASCENDING)

    @property
    def operation_id(self) -> str:
        """Stable identifier, unique within one plan."""
        target = self.field or "*"
        return f"{self.phase.value}:{self.kind.value}:{self.collection}.{target}"

    @property
    def description(self) -> str:
        if self.kind == OperationKind.UNSET_FIELD:
            return f"Unset field {self.field} in {self.collection}"
        if self.kind == OperationKind.CREATE_INDEX:
            return f"Create index {self.index_name} on {self.collection}"
        if self.kind == OperationKind.DROP_INDEX:
            return f"Drop index {self.index_name} on {self.collection}"
        if self.kind == OperationKind.DELETE_ALL_DOCUMENTS:
            return f"Delete all documents in {self.collection}"
        return f"Drop all indexes on {self.collection}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "kind": self.kind.value,
            "phase": self.phase.value,
            "collection": self.collection,
        }
        if self.field is not None:
            data["field"] = self.field
        if self.direction is not None:
            data["direction"] = "ascending" if self.direction == IndexDirection.ASCENDING else "descending"
        return data


@dataclass
class WorkUnit:
    """Operations for one collection within one phase, executed in order."""

    phase: Phase
    collection: str
    operations: List[Operation] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.operations)

    def __iter__(self) -> Iterator[Operation]:
        return iter(self.operations)


@dataclass
class ChangePlan:
    """Ordered set of work units produced by the planner."""

    units: List[WorkUnit] = field(default_factory=list)
    old_label: Optional[str] = None
    new_label: Optional[str] = None

    @property
    def operations(self) -> List[Operation]:
        return [op for unit in self.units for op in unit.operations]

    @property
    def is_empty(self) -> bool:
        return not any(unit.operations for unit in self.units)

    @property
    def has_destructive_operations(self) -> bool:
        return any(op.is_destructive for op in self.operations)

    def units_for(self, phase: Phase) -> List[WorkUnit]:
        return [unit for unit in self.units if unit.phase == phase]

    def operations_for(self, phase: Phase) -> List[Operation]:
        return [op for unit in self.units_for(phase) for op in unit.operations]

    def __len__(self) -> int:
        return len(self.operations)

    def __iter__(self) -> Iterator[Operation]:
        return iter(self.operations)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "old": self.old_label,
            "new": self.new_label,
            "operations": [op.to_dict() for op in self.operations],
        }


@dataclass
class OperationOutcome:
    """Execution result of one planned operation."""

    operation: Operation
    status: OutcomeStatus
    error: Optional[StoreError] = None
    documents_affected: Optional[int] = None
    duration_ms: Optional[float] = None
    reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == OutcomeStatus.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status == OutcomeStatus.FAILED

    @property
    def skipped(self) -> bool:
        return self.status == OutcomeStatus.SKIPPED

    def to_dict(self) -> Dict[str, Any]:
        data = self.operation.to_dict()
        data["status"] = self.status.value
        if self.error is not None:
            data["error"] = str(self.error)
        if self.reason:
            data["reason"] = self.reason
        if self.documents_affected is not None:
            data["documents_affected"] = self.documents_affected
        if self.duration_ms is not None:
            data["duration_ms"] = round(self.duration_ms, 3)
        return data
