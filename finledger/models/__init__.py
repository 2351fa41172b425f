"""
Data Models Package

This package contains all Pydantic models used in FinLedger.
All data flowing through the engine must conform to these schemas.
"""

from finledger.models.ledger import (
    DEFAULT_CATEGORIES,
    INCOME_CATEGORY_ID,
    UNASSIGNED_CATEGORY_ID,
    Budget,
    Category,
    RecurringTemplate,
    TemplateFieldUpdates,
    Transaction,
    TransactionType,
)
from finledger.models.views import (
    BudgetStatus,
    CategoryProjection,
    CategorySpend,
    MonthProjection,
    Period,
    PeriodKind,
    PeriodStats,
    RecurrenceFilter,
    TemplateEditResult,
    TimelinePoint,
    TransactionFilter,
)
from finledger.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from finledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "DEFAULT_CATEGORIES",
    "INCOME_CATEGORY_ID",
    "UNASSIGNED_CATEGORY_ID",
    "Budget",
    "Category",
    "RecurringTemplate",
    "TemplateFieldUpdates",
    "Transaction",
    "TransactionType",
    # View models
    "BudgetStatus",
    "CategoryProjection",
    "CategorySpend",
    "MonthProjection",
    "Period",
    "PeriodKind",
    "PeriodStats",
    "RecurrenceFilter",
    "TemplateEditResult",
    "TimelinePoint",
    "TransactionFilter",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
