"""
Schema management package for docmigrate.

This package provides:
- The immutable schema model (snapshots, record types, fields)
- Snapshot loading from declarative documents
- Type-set and field differs
- Reconciliation planning and execution
"""

from .model import (
    FieldDescriptor,
    TypeDescriptor,
    SchemaSnapshot,
    SnapshotRole,
    select_snapshots,
    types_equivalent,
)
from .loader import load_snapshot, snapshot_from_dict, snapshot_to_dict
from .differ import Pair, DiffResult, diff_types, diff_fields
from .operations import (
    ChangePlan,
    IndexDirection,
    Operation,
    OperationKind,
    OperationOutcome,
    OutcomeStatus,
    Phase,
    WorkUnit,
)
from .planner import ReconciliationPlanner
from .reconciler import SchemaReconciler, MigrationResult, ReconciliationStatus

__all__ = [
    "FieldDescriptor",
    "TypeDescriptor",
    "SchemaSnapshot",
    "SnapshotRole",
    "select_snapshots",
    "types_equivalent",
    "load_snapshot",
    "snapshot_from_dict",
    "snapshot_to_dict",
    "Pair",
    "DiffResult",
    "diff_types",
    "diff_fields",
    "ChangePlan",
    "IndexDirection",
    "Operation",
    "OperationKind",
    "OperationOutcome",
    "OutcomeStatus",
    "Phase",
    "WorkUnit",
    "ReconciliationPlanner",
    "SchemaReconciler",
    "MigrationResult",
    "ReconciliationStatus",
]
