"""
Storage Services Package

Provides the abstract ledger store contract and an in-memory implementation.
Real persistence (SQL, REST, spreadsheets) plugs in behind the same interface.
"""

from finledger.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerSnapshot,
    LedgerStoreInterface,
    NotFoundError,
    ReservedCategoryError,
    StorageError,
)
from finledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerSnapshot",
    "LedgerStoreInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "ReservedCategoryError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStore",
]
