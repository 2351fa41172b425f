"""
In-Memory Storage Implementation

Reference implementation of the ledger store contract. Used by tests and by
local sessions without a backend. Keeps insertion order so snapshots are
reproducible.
"""

from typing import Iterable, Optional

from finledger.config import EngineSettings, get_settings
from finledger.models.audit import AuditEvent
from finledger.models.ledger import (
    DEFAULT_CATEGORIES,
    Budget,
    Category,
    RecurringTemplate,
    Transaction,
)
from finledger.services.storage.interface import (
    AuditStorageInterface,
    LedgerStoreInterface,
    NotFoundError,
    ReservedCategoryError,
)


class InMemoryLedgerStore(LedgerStoreInterface):
    """Dict-backed ledger store."""

    def __init__(
        self,
        transactions: Iterable[Transaction] = (),
        templates: Iterable[RecurringTemplate] = (),
        categories: Optional[Iterable[Category]] = None,
        budgets: Iterable[Budget] = (),
        settings: Optional[EngineSettings] = None,
    ):
        self._settings = settings or get_settings().engine
        self._transactions: dict[str, Transaction] = {t.id: t for t in transactions}
        self._templates: dict[str, RecurringTemplate] = {t.id: t for t in templates}
        self._categories: dict[str, Category] = {
            c.id: c for c in (DEFAULT_CATEGORIES if categories is None else categories)
        }
        self._budgets: dict[str, Budget] = {}
        for budget in budgets:
            self._budgets.setdefault(budget.category_id, budget)

    async def list_transactions(self) -> list[Transaction]:
        return list(self._transactions.values())

    async def list_templates(self) -> list[RecurringTemplate]:
        return list(self._templates.values())

    async def list_categories(self) -> list[Category]:
        return list(self._categories.values())

    async def list_budgets(self) -> list[Budget]:
        return list(self._budgets.values())

    async def append_transactions(self, transactions: list[Transaction]) -> int:
        added = 0
        for txn in transactions:
            if txn.id in self._transactions:
                continue
            self._transactions[txn.id] = txn
            added += 1
        return added

    async def update_transaction(self, transaction: Transaction) -> bool:
        if transaction.id not in self._transactions:
            raise NotFoundError(f"Transaction not found: {transaction.id}")
        self._transactions[transaction.id] = transaction
        return True

    async def delete_transaction(self, transaction_id: str) -> bool:
        return self._transactions.pop(transaction_id, None) is not None

    async def get_template(self, template_id: str) -> Optional[RecurringTemplate]:
        return self._templates.get(template_id)

    async def save_template(self, template: RecurringTemplate) -> bool:
        self._templates[template.id] = template
        return True

    async def delete_template(self, template_id: str) -> bool:
        return self._templates.pop(template_id, None) is not None

    async def save_category(self, category: Category) -> bool:
        self._categories[category.id] = category
        return True

    async def delete_category(self, category_id: str) -> bool:
        if category_id in self._settings.administrative_category_ids:
            raise ReservedCategoryError(f"Category {category_id} is reserved")
        if category_id not in self._categories:
            raise NotFoundError(f"Category not found: {category_id}")

        fallback = self._settings.unassigned_category_id
        del self._categories[category_id]

        for txn_id, txn in list(self._transactions.items()):
            if txn.category_id == category_id:
                self._transactions[txn_id] = txn.model_copy(update={"category_id": fallback})

        for template_id, template in list(self._templates.items()):
            if template.category_id == category_id:
                self._templates[template_id] = template.model_copy(
                    update={"category_id": fallback}
                )

        # One budget per category: the moved budget only lands if the
        # unassigned category has none yet.
        budget = self._budgets.pop(category_id, None)
        if budget is not None and fallback not in self._budgets:
            self._budgets[fallback] = budget.model_copy(update={"category_id": fallback})

        return True

    async def save_budget(self, budget: Budget) -> bool:
        self._budgets[budget.category_id] = budget
        return True


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        return [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
