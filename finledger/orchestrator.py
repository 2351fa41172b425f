"""
Main Orchestrator for FinLedger

This module ties the pure engine to the ledger store and defines the
end-to-end flows for:
1. Recurring sync (snapshot → materialize → append → audit)
2. Template edits (validate → propagate → store → sync)
3. Read views (dashboard and planning)

DESIGN DECISION: Materialization is never a side effect of reading.
It runs only when this orchestrator is told to, after a mutation that can
change its outcome. One sync is awaited to completion before the next one
takes a snapshot, so a batch is always visible to the next dedup check.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field

from finledger.audit import AuditLogger, configure_logging, create_correlation_id
from finledger.config import EngineSettings, get_settings
from finledger.models.ledger import (
    Budget,
    RecurringTemplate,
    TemplateFieldUpdates,
    Transaction,
)
from finledger.models.validation import ValidationResult
from finledger.models.views import (
    BudgetStatus,
    CategorySpend,
    MonthProjection,
    Period,
    PeriodStats,
    TemplateEditResult,
    TimelinePoint,
    TransactionFilter,
)
from finledger.queries import (
    category_distribution,
    compute_budget_status,
    compute_stats,
    filter_transactions,
    forward_projection,
    monthly_timeline,
)
from finledger.recurrence import apply_template_edit, materialize
from finledger.services.storage import (
    DuplicateError,
    InMemoryAuditStorage,
    InMemoryLedgerStore,
    LedgerStoreInterface,
    NotFoundError,
    StorageError,
)
from finledger.validation import LedgerValidator


class DashboardView(BaseModel):
    """Everything the dashboard shows for one period."""

    reference_date: date
    period: Period
    stats: PeriodStats
    distribution: list[CategorySpend] = Field(default_factory=list)
    budget_status: list[BudgetStatus] = Field(default_factory=list)
    projection: list[MonthProjection] = Field(default_factory=list)
    timeline: list[TimelinePoint] = Field(default_factory=list)


class LedgerService:
    """
    Orchestrates every flow that touches the ledger.

    Flow for a template edit:
    1. Validate → report degenerate windows and unknown categories
    2. Propagate → compute template and transaction updates (pure)
    3. Store → apply both through the ledger store
    4. Sync → materialize months the edit made newly valid

    Mutations are serialized through one lock, so an edit and a sync of
    the same template never interleave.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[LedgerValidator] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().engine
        self._validator = validator or LedgerValidator(self._settings)
        self._lock = asyncio.Lock()

    @property
    def store(self) -> LedgerStoreInterface:
        return self._store

    # ------------------------------------------------------------------
    # Recurring sync
    # ------------------------------------------------------------------

    async def sync_recurring(
        self,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """
        Materialize missing recurring transactions and append them.

        Returns:
            The transactions that were appended (empty when up to date)
        """
        async with self._lock:
            return await self._sync_locked(today or date.today(), correlation_id)

    async def _sync_locked(
        self,
        today: date,
        correlation_id: Optional[UUID],
    ) -> list[Transaction]:
        correlation_id = correlation_id or create_correlation_id()

        templates = await self._store.list_templates()
        transactions = await self._store.list_transactions()
        created = materialize(templates, transactions, today, self._settings)
        if not created:
            return []

        try:
            await self._store.append_transactions(created)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="append_transactions",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_transactions_materialized(
                transaction_ids=[t.id for t in created],
                today=today.isoformat(),
                correlation_id=correlation_id,
            )
        return created

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    async def create_template(
        self,
        template: RecurringTemplate,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[ValidationResult, list[Transaction]]:
        """
        Store a new template and materialize it.

        Raises:
            DuplicateError: If a template with the same id exists

        Returns:
            (validation_result, created_transactions)
        """
        correlation_id = correlation_id or create_correlation_id()

        async with self._lock:
            if await self._store.get_template(template.id) is not None:
                raise DuplicateError(f"Template already exists: {template.id}")

            result = self._validator.validate_template(
                template, await self._store.list_categories()
            )
            await self._store.save_template(template)

            if self._audit_logger:
                await self._audit_logger.log_template_created(
                    template_id=template.id,
                    description=template.description,
                    correlation_id=correlation_id,
                )

            created = await self._sync_locked(today or date.today(), correlation_id)
        return result, created

    async def edit_template(
        self,
        template_id: str,
        updates: Union[TemplateFieldUpdates, dict],
        impact_past: bool,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[TemplateEditResult, ValidationResult, list[Transaction]]:
        """
        Edit a template, optionally rewriting its past transactions.

        Raises:
            TemplateNotFoundError: If the template doesn't exist

        Returns:
            (edit_result, validation_result, newly_materialized)
        """
        correlation_id = correlation_id or create_correlation_id()
        if not isinstance(updates, TemplateFieldUpdates):
            updates = TemplateFieldUpdates.model_validate(updates)

        async with self._lock:
            edit = apply_template_edit(
                template_id,
                updates,
                impact_past,
                await self._store.list_templates(),
                await self._store.list_transactions(),
            )
            validation = self._validator.validate_template(
                edit.template_update, await self._store.list_categories()
            )

            await self._store.save_template(edit.template_update)
            for txn in edit.transaction_updates:
                await self._store.update_transaction(txn)

            if self._audit_logger:
                await self._audit_logger.log_template_updated(
                    template_id=template_id,
                    changed_fields=sorted(updates.changes),
                    impact_past=impact_past,
                    correlation_id=correlation_id,
                )
                if edit.transaction_updates:
                    await self._audit_logger.log_propagation_applied(
                        template_id=template_id,
                        transaction_ids=[t.id for t in edit.transaction_updates],
                        correlation_id=correlation_id,
                    )

            created = await self._sync_locked(today or date.today(), correlation_id)
        return edit, validation, created

    async def set_template_active(
        self,
        template_id: str,
        active: bool,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """
        Pause or resume a template.

        Pausing keeps everything already materialized. Resuming fills the
        missing months in the window.
        """
        correlation_id = correlation_id or create_correlation_id()

        async with self._lock:
            template = await self._store.get_template(template_id)
            if template is None:
                raise NotFoundError(f"Template not found: {template_id}")

            await self._store.save_template(template.model_copy(update={"active": active}))
            if self._audit_logger:
                await self._audit_logger.log_template_active_changed(
                    template_id=template_id,
                    active=active,
                    correlation_id=correlation_id,
                )

            if not active:
                return []
            return await self._sync_locked(today or date.today(), correlation_id)

    async def delete_template(
        self,
        template_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Delete a template. Its materialized transactions stay."""
        correlation_id = correlation_id or create_correlation_id()

        async with self._lock:
            deleted = await self._store.delete_template(template_id)
            if not deleted:
                return False

            kept = sum(
                1 for t in await self._store.list_transactions()
                if t.recurring_id == template_id
            )
            if self._audit_logger:
                await self._audit_logger.log_template_deleted(
                    template_id=template_id,
                    kept_transactions=kept,
                    correlation_id=correlation_id,
                )
        return True

    # ------------------------------------------------------------------
    # Budgets and categories
    # ------------------------------------------------------------------

    async def set_budget(
        self,
        category_id: str,
        amount: Union[Decimal, str, int],
        correlation_id: Optional[UUID] = None,
    ) -> Budget:
        """Create or replace the monthly budget of a category."""
        correlation_id = correlation_id or create_correlation_id()
        budget = Budget(category_id=category_id, amount=amount)

        async with self._lock:
            await self._store.save_budget(budget)

        if self._audit_logger:
            await self._audit_logger.log_budget_updated(
                category_id=category_id,
                amount=str(budget.amount),
                correlation_id=correlation_id,
            )
        return budget

    async def delete_category(
        self,
        category_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Delete a category; the store moves its references to unassigned."""
        correlation_id = correlation_id or create_correlation_id()

        async with self._lock:
            await self._store.delete_category(category_id)

        if self._audit_logger:
            await self._audit_logger.log_category_deleted(
                category_id=category_id,
                reassigned_to=self._settings.unassigned_category_id,
                correlation_id=correlation_id,
            )
        return True

    # ------------------------------------------------------------------
    # Read views
    # ------------------------------------------------------------------

    async def dashboard(
        self,
        period: Optional[Period] = None,
        reference_date: Optional[date] = None,
    ) -> DashboardView:
        """Build the dashboard for a period. Never mutates the ledger."""
        period = period or Period.month()
        reference_date = reference_date or date.today()
        snapshot = await self._store.snapshot()

        return DashboardView(
            reference_date=reference_date,
            period=period,
            stats=compute_stats(snapshot.transactions, period, reference_date),
            distribution=category_distribution(
                snapshot.transactions, snapshot.categories, period,
                reference_date, self._settings,
            ),
            budget_status=[
                row for row in compute_budget_status(
                    snapshot.transactions, snapshot.categories, snapshot.budgets,
                    reference_date, self._settings,
                )
                if row.budget > 0 or row.spent > 0
            ],
            projection=forward_projection(
                snapshot.transactions, snapshot.categories, snapshot.budgets,
                reference_date, self._settings,
            ),
            timeline=monthly_timeline(snapshot.transactions, reference_date),
        )

    async def planning(
        self,
        reference_date: Optional[date] = None,
    ) -> list[BudgetStatus]:
        """Budget status for every tracked category in the reference month."""
        snapshot = await self._store.snapshot()
        return compute_budget_status(
            snapshot.transactions,
            snapshot.categories,
            snapshot.budgets,
            reference_date or date.today(),
            self._settings,
        )

    async def list_transactions(
        self,
        criteria: Optional[TransactionFilter] = None,
    ) -> list[Transaction]:
        """Filtered transaction list, newest first."""
        return filter_transactions(await self._store.list_transactions(), criteria)

    async def check_integrity(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> ValidationResult:
        """Validate the invariants of the whole ledger."""
        correlation_id = correlation_id or create_correlation_id()
        snapshot = await self._store.snapshot()
        result = self._validator.validate_ledger(
            snapshot.transactions, snapshot.categories, snapshot.budgets
        )

        if self._audit_logger and result.has_errors:
            await self._audit_logger.log_integrity_check_failed(
                issues=[
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in result.issues
                    if i.severity == "error"
                ],
                correlation_id=correlation_id,
            )
        return result


def create_app_components(
    store: Optional[LedgerStoreInterface] = None,
    persist_audit: bool = True,
) -> LedgerService:
    """
    Factory function to create the ledger service.

    Args:
        store: Ledger store to use. Defaults to an empty in-memory store
              seeded with the default categories.
        persist_audit: Keep audit events in an in-memory audit storage
                      in addition to the structured log.

    Returns:
        A ready LedgerService
    """
    configure_logging()

    audit_logger = AuditLogger(InMemoryAuditStorage() if persist_audit else None)
    return LedgerService(
        store=store or InMemoryLedgerStore(),
        audit_logger=audit_logger,
    )
