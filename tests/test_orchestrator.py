"""
Flow tests for LedgerService against the in-memory store.

The audit trail is checked through InMemoryAuditStorage.
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from finledger.audit import AuditLogger
from finledger.config import EngineSettings
from finledger.models import (
    UNASSIGNED_CATEGORY_ID,
    AuditEventBuilder,
    AuditEventType,
    Budget,
    Period,
    RecurringTemplate,
    Transaction,
    TransactionFilter,
)
from finledger.orchestrator import LedgerService, create_app_components
from finledger.recurrence import TemplateNotFoundError
from finledger.services.storage import (
    AuditStorageInterface,
    DuplicateError,
    InMemoryAuditStorage,
    InMemoryLedgerStore,
    NotFoundError,
    ReservedCategoryError,
    StorageError,
)


TODAY = date(2024, 3, 15)


def _rent(**overrides) -> RecurringTemplate:
    fields = dict(id="rent", description="Rent", amount="1200.00", category_id="cat-housing", day_of_month=5)
    fields.update(overrides)
    return RecurringTemplate(**fields)


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore(settings=EngineSettings())


@pytest.fixture
def service(store, audit_storage) -> LedgerService:
    return LedgerService(store, AuditLogger(audit_storage), settings=EngineSettings())


def _event_types(audit_storage):
    return [e.event_type for e in audit_storage.events]


class TestRecurringSync:
    
    @pytest.mark.asyncio
    async def test_create_template_materializes(self, service, store, audit_storage):
        validation, created = await service.create_template(_rent(), today=TODAY)
        
        assert validation.is_valid
        assert len(created) == 25
        assert len(await store.list_transactions()) == 25
        assert _event_types(audit_storage) == [
            AuditEventType.TEMPLATE_CREATED,
            AuditEventType.TRANSACTIONS_MATERIALIZED,
        ]
    
    @pytest.mark.asyncio
    async def test_sync_is_idempotent(self, service, store):
        await service.create_template(_rent(), today=TODAY)
        assert await service.sync_recurring(TODAY) == []
        assert len(await store.list_transactions()) == 25
    
    @pytest.mark.asyncio
    async def test_duplicate_template_rejected(self, service):
        await service.create_template(_rent(), today=TODAY)
        with pytest.raises(DuplicateError):
            await service.create_template(_rent(), today=TODAY)
    
    @pytest.mark.asyncio
    async def test_pause_and_resume(self, service, store):
        await service.create_template(_rent(), today=TODAY)
        assert await service.set_template_active("rent", False, today=TODAY) == []
        
        # Paused: moving forward generates nothing, history stays
        assert await service.sync_recurring(date(2024, 6, 1)) == []
        assert len(await store.list_transactions()) == 25
        
        resumed = await service.set_template_active("rent", True, today=date(2024, 6, 1))
        assert [t.id for t in resumed] == [
            "rec-commit-rent-2025-04",
            "rec-commit-rent-2025-05",
            "rec-commit-rent-2025-06",
        ]
    
    @pytest.mark.asyncio
    async def test_set_active_unknown_template(self, service):
        with pytest.raises(NotFoundError):
            await service.set_template_active("missing", True, today=TODAY)
    
    @pytest.mark.asyncio
    async def test_delete_template_keeps_transactions(self, service, store, audit_storage):
        await service.create_template(_rent(), today=TODAY)
        assert await service.delete_template("rent") is True
        assert await service.delete_template("rent") is False
        assert len(await store.list_transactions()) == 25
        assert audit_storage.events[-1].details["kept_transactions"] == 25
    
    @pytest.mark.asyncio
    async def test_storage_failure_is_audited_and_raised(self, audit_storage):
        class BrokenStore(InMemoryLedgerStore):
            async def append_transactions(self, transactions):
                raise StorageError("disk full")
        
        store = BrokenStore(templates=[_rent()], settings=EngineSettings())
        service = LedgerService(store, AuditLogger(audit_storage), settings=EngineSettings())
        with pytest.raises(StorageError):
            await service.sync_recurring(TODAY)
        assert _event_types(audit_storage) == [AuditEventType.STORAGE_ERROR]


class TestTemplateEdits:
    
    @pytest.mark.asyncio
    async def test_edit_without_impact_past(self, service, store):
        await service.create_template(_rent(), today=TODAY)
        before = await store.list_transactions()
        
        edit, _, created = await service.edit_template("rent", {"amount": "1300.00"}, False, today=TODAY)
        
        assert edit.transaction_updates == []
        assert created == []
        assert await store.list_transactions() == before
        assert (await store.get_template("rent")).amount == Decimal("1300.00")
    
    @pytest.mark.asyncio
    async def test_edit_with_impact_past(self, service, store, audit_storage):
        await service.create_template(_rent(), today=TODAY)
        edit, _, _ = await service.edit_template(
            "rent", {"description": "Rent v2", "amount": "1300.00"}, True, today=TODAY
        )
        
        assert edit.touched_count == 25
        for txn in await store.list_transactions():
            assert txn.description == "Rent v2"
            assert txn.amount == Decimal("1300.00")
        assert AuditEventType.PROPAGATION_APPLIED in _event_types(audit_storage)
    
    @pytest.mark.asyncio
    async def test_edit_that_widens_window_materializes(self, service, store):
        await service.create_template(_rent(end_date=date(2024, 1, 31)), today=TODAY)
        assert len(await store.list_transactions()) == 11
        
        _, _, created = await service.edit_template("rent", {"end_date": None}, False, today=TODAY)
        assert len(created) == 14
        assert len(await store.list_transactions()) == 25
    
    @pytest.mark.asyncio
    async def test_edit_reports_validation_warnings(self, service):
        await service.create_template(_rent(), today=TODAY)
        _, validation, _ = await service.edit_template(
            "rent", {"category_id": "cat-unknown"}, False, today=TODAY
        )
        assert [i.issue_type for i in validation.warnings] == ["unknown_category"]
    
    @pytest.mark.asyncio
    async def test_edit_unknown_template(self, service):
        with pytest.raises(TemplateNotFoundError):
            await service.edit_template("missing", {"amount": "1"}, True, today=TODAY)


class TestCategoriesAndBudgets:
    
    @pytest.mark.asyncio
    async def test_delete_category_reassigns(self, service, store):
        await store.append_transactions([
            Transaction(id="t1", date=TODAY, amount="40", type="expense", category_id="cat-leisure"),
        ])
        await service.create_template(_rent(category_id="cat-leisure"), today=TODAY)
        await service.set_budget("cat-leisure", "200")
        
        assert await service.delete_category("cat-leisure") is True
        
        assert all(t.category_id == UNASSIGNED_CATEGORY_ID for t in await store.list_transactions())
        assert (await store.get_template("rent")).category_id == UNASSIGNED_CATEGORY_ID
        assert await store.list_budgets() == [Budget(category_id=UNASSIGNED_CATEGORY_ID, amount="200")]
        assert "cat-leisure" not in {c.id for c in await store.list_categories()}
    
    @pytest.mark.asyncio
    async def test_delete_category_drops_budget_when_unassigned_has_one(self, service, store):
        await service.set_budget(UNASSIGNED_CATEGORY_ID, "10")
        await service.set_budget("cat-leisure", "200")
        await service.delete_category("cat-leisure")
        assert await store.list_budgets() == [Budget(category_id=UNASSIGNED_CATEGORY_ID, amount="10")]
    
    @pytest.mark.asyncio
    async def test_reserved_categories_cannot_be_deleted(self, service):
        with pytest.raises(ReservedCategoryError):
            await service.delete_category(UNASSIGNED_CATEGORY_ID)
        with pytest.raises(ReservedCategoryError):
            await service.delete_category("cat-income")
    
    @pytest.mark.asyncio
    async def test_delete_unknown_category(self, service):
        with pytest.raises(NotFoundError):
            await service.delete_category("cat-nope")
    
    @pytest.mark.asyncio
    async def test_set_budget_replaces(self, service, store):
        await service.set_budget("cat-food", "100")
        await service.set_budget("cat-food", Decimal("250.50"))
        budgets = await store.list_budgets()
        assert len(budgets) == 1
        assert budgets[0].amount == Decimal("250.50")


class TestReadViews:
    
    @pytest.mark.asyncio
    async def test_dashboard(self, service, store):
        await service.create_template(_rent(), today=TODAY)
        await service.create_template(
            _rent(id="salary", description="Salary", amount="5000", category_id="cat-income", type="income", day_of_month=1),
            today=TODAY,
        )
        await store.append_transactions([
            Transaction(id="food-1", date=date(2024, 3, 10), amount="300", type="expense", category_id="cat-food"),
        ])
        await service.set_budget("cat-food", "600")
        before = await store.list_transactions()
        
        view = await service.dashboard(Period.month(), reference_date=TODAY)
        
        assert view.stats.income == Decimal("5000")
        assert view.stats.expense == Decimal("1500")
        assert view.stats.fixed == Decimal("1200")
        assert view.stats.variable == Decimal("300")
        assert [s.category_id for s in view.distribution] == ["cat-housing", "cat-food"]
        assert {r.category_id for r in view.budget_status} == {"cat-housing", "cat-food"}
        assert len(view.projection) == 4
        assert len(view.timeline) == 12
        # Read views never mutate the ledger
        assert await store.list_transactions() == before
    
    @pytest.mark.asyncio
    async def test_planning_lists_all_tracked_categories(self, service):
        rows = await service.planning(reference_date=TODAY)
        assert len(rows) == 5
    
    @pytest.mark.asyncio
    async def test_list_transactions(self, service):
        await service.create_template(_rent(), today=TODAY)
        found = await service.list_transactions(
            TransactionFilter(date_from=date(2024, 1, 1), date_to=date(2024, 3, 31))
        )
        assert [t.id for t in found] == [
            "rec-commit-rent-2024-03",
            "rec-commit-rent-2024-02",
            "rec-commit-rent-2024-01",
        ]
    
    @pytest.mark.asyncio
    async def test_integrity_check(self, service, store, audit_storage):
        await service.create_template(_rent(), today=TODAY)
        assert (await service.check_integrity()).is_valid
        
        await store.append_transactions([
            Transaction(id="dup", date=date(2024, 3, 28), amount="1", type="expense", recurring_id="rent"),
        ])
        result = await service.check_integrity()
        assert result.has_errors
        assert audit_storage.events[-1].event_type == AuditEventType.INTEGRITY_CHECK_FAILED


class TestAuditLogger:
    
    @pytest.mark.asyncio
    async def test_storage_failure_does_not_raise(self):
        class FailingAudit(AuditStorageInterface):
            async def append_event(self, event):
                raise RuntimeError("unavailable")
            
            async def get_events_by_entity(self, entity_type, entity_id):
                return []
            
            async def get_recent_events(self, limit=100):
                return []
        
        logger = AuditLogger(FailingAudit())
        event = AuditEventBuilder.budget_updated("cat-food", "10.00", uuid4())
        assert await logger.log(event) is False
    
    @pytest.mark.asyncio
    async def test_recent_and_entity_queries(self, service, audit_storage):
        await service.create_template(_rent(), today=TODAY)
        await service.set_template_active("rent", False, today=TODAY)
        
        recent = await audit_storage.get_recent_events(limit=1)
        assert recent[0].event_type == AuditEventType.TEMPLATE_DEACTIVATED
        by_template = await audit_storage.get_events_by_entity("template", "rent")
        assert [e.event_type for e in by_template] == [
            AuditEventType.TEMPLATE_CREATED,
            AuditEventType.TEMPLATE_DEACTIVATED,
        ]


class TestFactory:
    
    @pytest.mark.asyncio
    async def test_create_app_components(self):
        service = create_app_components()
        categories = await service.store.list_categories()
        assert UNASSIGNED_CATEGORY_ID in {c.id for c in categories}
        assert await service.sync_recurring(TODAY) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
