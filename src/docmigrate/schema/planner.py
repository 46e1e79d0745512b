"""
Reconciliation planning for docmigrate.

Turns the type and field diffs of two snapshots into a ``ChangePlan``. The
planner never touches a store; it is a pure function of its inputs.
"""

import logging
from typing import List

from .differ import DiffResult, Pair, diff_fields, diff_types
from .model import SchemaSnapshot, TypeDescriptor
from .operations import (
    ChangePlan,
    IndexDirection,
    Operation,
    OperationKind,
    Phase,
    WorkUnit,
)


logger = logging.getLogger(__name__)


class ReconciliationPlanner:
    """Builds the ordered operation plan for one migration run."""

    def plan(self, old: SchemaSnapshot, new: SchemaSnapshot) -> ChangePlan:
        """Compute the change plan that brings a store from ``old`` to ``new``.

        Work units are emitted phase by phase (mutual, added, removed). Units
        without operations are left out.
        """
        type_diff = diff_types(old, new)

        units: List[WorkUnit] = []
        units.extend(self._plan_mutual_types(type_diff))
        units.extend(self._plan_added_types(type_diff))
        units.extend(self._plan_removed_types(type_diff))

        plan = ChangePlan(
            units=[unit for unit in units if unit.operations],
            old_label=old.label,
            new_label=new.label,
        )
        logger.info(
            f"Planned {len(plan)} operations across {len(plan.units)} collections "
            f"({old.label} -> {new.label})"
        )
        return plan

    def _plan_mutual_types(self, type_diff: DiffResult[TypeDescriptor]) -> List[WorkUnit]:
        return [self.plan_mutual_type(pair) for pair in type_diff.mutual]

    def plan_mutual_type(self, pair: Pair[TypeDescriptor]) -> WorkUnit:
        """Unset removed fields, then drop indexes, then create indexes."""
        collection = pair.old.name
        field_diff = diff_fields(pair.old, pair.new)
        unit = WorkUnit(phase=Phase.MUTUAL, collection=collection)

        for removed in field_diff.removed:
            unit.operations.append(
                Operation(
                    kind=OperationKind.UNSET_FIELD,
                    phase=Phase.MUTUAL,
                    collection=collection,
                    field=removed.old.name,
                )
            )

        creates = []
        for mutual in field_diff.mutual:
            if mutual.old.has_index and not mutual.new.has_index:
                unit.operations.append(
                    Operation(
                        kind=OperationKind.DROP_INDEX,
                        phase=Phase.MUTUAL,
                        collection=collection,
                        field=mutual.old.name,
                        direction=IndexDirection.ASCENDING,
                    )
                )
            elif mutual.new.has_index and not mutual.old.has_index:
                creates.append(mutual.new.name)

        # No old field to compare against: an annotation alone means create.
        creates.extend(added.new.name for added in field_diff.added if added.new.has_index)

        unit.operations.extend(self._create_index(Phase.MUTUAL, collection, name) for name in creates)
        return unit

    def _plan_added_types(self, type_diff: DiffResult[TypeDescriptor]) -> List[WorkUnit]:
        units = []
        for pair in type_diff.added:
            collection = pair.new.name
            units.append(
                WorkUnit(
                    phase=Phase.ADDED,
                    collection=collection,
                    operations=[
                        self._create_index(Phase.ADDED, collection, f.name)
                        for f in pair.new.indexed_fields
                    ],
                )
            )
        return units

    def _plan_removed_types(self, type_diff: DiffResult[TypeDescriptor]) -> List[WorkUnit]:
        units = []
        for pair in type_diff.removed:
            collection = pair.old.name
            units.append(
                WorkUnit(
                    phase=Phase.REMOVED,
                    collection=collection,
                    operations=[
                        Operation(
                            kind=OperationKind.DELETE_ALL_DOCUMENTS,
                            phase=Phase.REMOVED,
                            collection=collection,
                        ),
                        Operation(
                            kind=OperationKind.DROP_ALL_INDEXES,
                            phase=Phase.REMOVED,
                            collection=collection,
                        ),
                    ],
                )
            )
        return units

    @staticmethod
    def _create_index(phase: Phase, collection: str, field_name: str) -> Operation:
        return Operation(
            kind=OperationKind.CREATE_INDEX,
            phase=phase,
            collection=collection,
            field=field_name,
            direction=IndexDirection.ASCENDING,
        )
