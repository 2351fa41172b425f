"""Services package."""

from finledger.services.storage import (
    AuditStorageInterface,
    DuplicateError,
    InMemoryAuditStorage,
    InMemoryLedgerStore,
    LedgerSnapshot,
    LedgerStoreInterface,
    NotFoundError,
    ReservedCategoryError,
    StorageError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "DuplicateError",
    "InMemoryAuditStorage",
    "InMemoryLedgerStore",
    "LedgerSnapshot",
    "LedgerStoreInterface",
    "NotFoundError",
    "ReservedCategoryError",
    "StorageError",
]
