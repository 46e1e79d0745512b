"""
Schema reconciliation core logic for docmigrate.

Executes a ``ChangePlan`` against a ``DocumentStore`` phase by phase. Phases
run in a fixed order with a barrier between them; work units inside a phase
fan out up to the configured concurrency limit, while the operations of one
unit run strictly in sequence. Store failures are recorded per operation and
stop later phases from starting; they never abort the run with an exception.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .model import SchemaSnapshot, select_snapshots
from .operations import (
    PHASE_ORDER,
    ChangePlan,
    Operation,
    OperationKind,
    OperationOutcome,
    OutcomeStatus,
    Phase,
    WorkUnit,
)
from .planner import ReconciliationPlanner
from ..config import MigrationSettings
from ..exceptions import MigrationError, StoreError
from ..store.base import DocumentStore


logger = logging.getLogger(__name__)

CANCELLED_REASON = "cancelled"


class ReconciliationStatus(str, Enum):
    """Overall status of a migration run."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    DRY_RUN = "dry_run"
    CANCELLED = "cancelled"


@dataclass
class MigrationResult:
    """Result of a schema reconciliation run."""

    status: ReconciliationStatus
    plan: ChangePlan
    outcomes: List[OperationOutcome] = field(default_factory=list)
    skipped_phases: List[Phase] = field(default_factory=list)
    cancelled: bool = False
    execution_time_ms: float = 0.0

    @property
    def succeeded(self) -> int:
        """Count of successfully applied operations."""
        return sum(1 for o in self.outcomes if o.succeeded)

    @property
    def failed(self) -> int:
        """Count of failed operations."""
        return sum(1 for o in self.outcomes if o.failed)

    @property
    def skipped(self) -> int:
        """Count of operations that were never attempted."""
        return sum(1 for o in self.outcomes if o.skipped)

    @property
    def errors(self) -> List[StoreError]:
        return [o.error for o in self.outcomes if o.error is not None]

    @property
    def is_success(self) -> bool:
        return self.status in (ReconciliationStatus.SUCCESS, ReconciliationStatus.DRY_RUN)

    def outcomes_for(self, phase: Phase) -> List[OperationOutcome]:
        return [o for o in self.outcomes if o.operation.phase == phase]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "old": self.plan.old_label,
            "new": self.plan.new_label,
            "planned": len(self.plan),
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "skipped_phases": [p.value for p in self.skipped_phases],
            "cancelled": self.cancelled,
            "execution_time_ms": round(self.execution_time_ms, 3),
            "operations": (
                [o.to_dict() for o in self.outcomes]
                if self.outcomes
                else [op.to_dict() for op in self.plan.operations]
            ),
        }


class SchemaReconciler:
    """Brings a document store from an old schema snapshot to a new one."""

    def __init__(
        self,
        store: Optional[DocumentStore],
        settings: Optional[MigrationSettings] = None,
        planner: Optional[ReconciliationPlanner] = None,
    ):
        self.settings = settings or MigrationSettings()
        if store is None and not self.settings.dry_run:
            raise MigrationError("A document store is required unless running in dry-run mode")

        self.store = store
        self.planner = planner or ReconciliationPlanner()
        self._cancel_event = asyncio.Event()

    @property
    def dry_run(self) -> bool:
        return self.settings.dry_run

    @property
    def concurrency_limit(self) -> int:
        return self.settings.concurrency_limit

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self) -> None:
        """Stop the run at the next phase or work-unit boundary.

        Operations already in flight finish on their own terms. The request
        applies to the current (or next) ``reconcile()`` call only; it is
        cleared once that call returns.
        """
        if not self._cancel_event.is_set():
            logger.warning("Cancellation requested, stopping at the next boundary")
        self._cancel_event.set()

    def plan(self, old: SchemaSnapshot, new: SchemaSnapshot) -> ChangePlan:
        return self.planner.plan(old, new)

    async def run(self, snapshots: Iterable[SchemaSnapshot]) -> MigrationResult:
        """Select the single old and new snapshot, then reconcile them."""
        old, new = select_snapshots(snapshots)
        return await self.reconcile(old, new)

    async def reconcile(self, old: SchemaSnapshot, new: SchemaSnapshot) -> MigrationResult:
        """Plan the migration from ``old`` to ``new`` and apply it.

        Configuration and diff errors propagate before any store call. Store
        errors are collected into the returned result.
        """
        try:
            return await self._reconcile(old, new)
        finally:
            self._cancel_event.clear()

    async def _reconcile(self, old: SchemaSnapshot, new: SchemaSnapshot) -> MigrationResult:
        start_time = time.time()
        plan = self.planner.plan(old, new)

        if self.dry_run:
            logger.info(f"DRY RUN: {len(plan)} operations planned, store not called")
            for op in plan.operations:
                logger.info(f"DRY RUN: Would execute {op.description}")
            return MigrationResult(
                status=ReconciliationStatus.DRY_RUN,
                plan=plan,
                execution_time_ms=(time.time() - start_time) * 1000,
            )

        outcomes: Dict[int, List[OperationOutcome]] = {}
        skipped_phases: List[Phase] = []
        blocked_by: Optional[str] = None

        for phase in PHASE_ORDER:
            indexed_units = [(i, u) for i, u in enumerate(plan.units) if u.phase == phase]

            if blocked_by is None and self.cancelled:
                blocked_by = CANCELLED_REASON

            if blocked_by is not None:
                if indexed_units:
                    logger.warning(f"Skipping {phase.value} phase: {blocked_by}")
                    skipped_phases.append(phase)
                for i, unit in indexed_units:
                    outcomes[i] = _skip_all(unit.operations, blocked_by)
                continue

            if not indexed_units:
                logger.debug(f"Nothing to do in {phase.value} phase")
                continue

            logger.info(f"Starting {phase.value} phase ({len(indexed_units)} collections)")
            phase_outcomes = await self._execute_phase([u for _, u in indexed_units])
            for (i, _), unit_outcomes in zip(indexed_units, phase_outcomes):
                outcomes[i] = unit_outcomes

            failures = sum(1 for unit_outcomes in phase_outcomes for o in unit_outcomes if o.failed)
            if failures:
                logger.error(f"{phase.value} phase finished with {failures} failed operations")
                blocked_by = f"{phase.value} phase had {failures} failed operations"

        flat = [o for i in sorted(outcomes) for o in outcomes[i]]
        cancelled = any(o.reason == CANCELLED_REASON for o in flat)
        result = MigrationResult(
            status=_overall_status(flat, cancelled),
            plan=plan,
            outcomes=flat,
            skipped_phases=skipped_phases,
            cancelled=cancelled,
            execution_time_ms=(time.time() - start_time) * 1000,
        )
        logger.info(
            f"Reconciliation {result.status.value}: {result.succeeded} succeeded, "
            f"{result.failed} failed, {result.skipped} skipped "
            f"({result.execution_time_ms:.1f}ms)"
        )
        return result

    async def _execute_phase(self, units: List[WorkUnit]) -> List[List[OperationOutcome]]:
        """Run all units of one phase and wait for every one of them."""
        semaphore = asyncio.Semaphore(self.concurrency_limit)
        tasks = [asyncio.create_task(self._run_unit(unit, semaphore)) for unit in units]

        try:
            return await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _run_unit(self, unit: WorkUnit, semaphore: asyncio.Semaphore) -> List[OperationOutcome]:
        async with semaphore:
            if self.cancelled:
                return _skip_all(unit.operations, CANCELLED_REASON)

            logger.info(f"  {unit.collection} ({unit.phase.value}): {len(unit)} operations")
            outcomes: List[OperationOutcome] = []
            for position, op in enumerate(unit.operations):
                outcome = await self._execute_operation(op)
                outcomes.append(outcome)
                if outcome.failed:
                    remaining = unit.operations[position + 1:]
                    if remaining:
                        logger.warning(
                            f"Skipping {len(remaining)} remaining operations on {unit.collection}"
                        )
                    outcomes.extend(
                        _skip_all(remaining, f"earlier operation on {unit.collection} failed")
                    )
                    break
            return outcomes

    async def _execute_operation(self, op: Operation) -> OperationOutcome:
        start_time = time.time()
        logger.info(f"    {op.description}")

        try:
            affected = await self._dispatch(op)
        except StoreError as e:
            logger.error(f"Failed to execute {op.operation_id}: {e}")
            return OperationOutcome(
                operation=op,
                status=OutcomeStatus.FAILED,
                error=e,
                duration_ms=(time.time() - start_time) * 1000,
            )

        return OperationOutcome(
            operation=op,
            status=OutcomeStatus.SUCCEEDED,
            documents_affected=affected,
            duration_ms=(time.time() - start_time) * 1000,
        )

    async def _dispatch(self, op: Operation) -> Optional[int]:
        if op.kind == OperationKind.UNSET_FIELD:
            await self.store.unset_field(op.collection, op.field)
        elif op.kind == OperationKind.CREATE_INDEX:
            await self.store.create_index(op.collection, op.field, ascending=True)
        elif op.kind == OperationKind.DROP_INDEX:
            await self.store.drop_index(op.collection, op.field)
        elif op.kind == OperationKind.DELETE_ALL_DOCUMENTS:
            deleted = await self.store.delete_all_documents(op.collection)
            logger.info(f"    Deleted {deleted} documents from {op.collection}")
            return deleted
        elif op.kind == OperationKind.DROP_ALL_INDEXES:
            await self.store.drop_all_indexes(op.collection)
        else:
            raise MigrationError(f"Unsupported operation kind: {op.kind}")
        return None


def _skip_all(operations: Iterable[Operation], reason: str) -> List[OperationOutcome]:
    return [
        OperationOutcome(operation=op, status=OutcomeStatus.SKIPPED, reason=reason)
        for op in operations
    ]


def _overall_status(outcomes: List[OperationOutcome], cancelled: bool) -> ReconciliationStatus:
    if cancelled:
        return ReconciliationStatus.CANCELLED
    failed = sum(1 for o in outcomes if o.failed)
    if not failed:
        return ReconciliationStatus.SUCCESS
    if any(o.succeeded for o in outcomes):
        return ReconciliationStatus.PARTIAL
    return ReconciliationStatus.FAILED
