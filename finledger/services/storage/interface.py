"""
Abstract Storage Interface

DESIGN DECISION: The ledger store is an external collaborator.
The engine only needs read-all and append/update/delete by id. Defining that
contract here allows us to:
1. Use in-memory storage for testing
2. Put SQL or a REST backend behind the same methods later
3. Keep the pure engine decoupled from persistence

The store exclusively owns the four collections. The engine borrows a
snapshot for one computation pass and hands back mutations.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel, Field

from finledger.models.audit import AuditEvent
from finledger.models.ledger import Budget, Category, RecurringTemplate, Transaction


class LedgerSnapshot(BaseModel):
    """Everything the engine reads, captured at one moment."""

    transactions: list[Transaction] = Field(default_factory=list)
    templates: list[RecurringTemplate] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
    budgets: list[Budget] = Field(default_factory=list)


class LedgerStoreInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation must implement these methods.
    """

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @abstractmethod
    async def list_transactions(self) -> list[Transaction]:
        """Return every transaction."""
        pass

    @abstractmethod
    async def list_templates(self) -> list[RecurringTemplate]:
        """Return every recurring template, active or not."""
        pass

    @abstractmethod
    async def list_categories(self) -> list[Category]:
        """Return every category, reserved ones included."""
        pass

    @abstractmethod
    async def list_budgets(self) -> list[Budget]:
        """Return every budget (at most one per category)."""
        pass

    async def snapshot(self) -> LedgerSnapshot:
        """Read all four collections."""
        return LedgerSnapshot(
            transactions=await self.list_transactions(),
            templates=await self.list_templates(),
            categories=await self.list_categories(),
            budgets=await self.list_budgets(),
        )

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @abstractmethod
    async def append_transactions(self, transactions: list[Transaction]) -> int:
        """
        Append transactions.

        Ids that already exist are skipped, which makes replaying a
        materialization batch harmless.

        Returns:
            Number of transactions actually added
        """
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> bool:
        """
        Replace a transaction by id.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: str) -> bool:
        """
        Delete a transaction by id.

        Returns:
            True if something was deleted
        """
        pass

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_template(self, template_id: str) -> Optional[RecurringTemplate]:
        """Return a template by id, or None."""
        pass

    @abstractmethod
    async def save_template(self, template: RecurringTemplate) -> bool:
        """Insert or replace a template by id."""
        pass

    @abstractmethod
    async def delete_template(self, template_id: str) -> bool:
        """
        Delete a template by id.

        Transactions materialized from it are kept.
        """
        pass

    # ------------------------------------------------------------------
    # Categories and budgets
    # ------------------------------------------------------------------

    @abstractmethod
    async def save_category(self, category: Category) -> bool:
        """Insert or replace a category by id."""
        pass

    @abstractmethod
    async def delete_category(self, category_id: str) -> bool:
        """
        Delete a category and move everything that references it to the
        unassigned category.

        Raises:
            ReservedCategoryError: For the unassigned or income categories
            NotFoundError: If the category doesn't exist
        """
        pass

    @abstractmethod
    async def save_budget(self, budget: Budget) -> bool:
        """Insert or replace the budget of a category."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Get all events for a specific entity, oldest first."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ReservedCategoryError(StorageError):
    """Attempted to delete a category the engine depends on."""
    pass
