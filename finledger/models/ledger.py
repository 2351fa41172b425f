"""
Core Ledger Models for FinLedger

These models define the strict schemas for every record the engine reads:
categories, transactions, recurring templates and budgets.
They are designed to:
1. Reject invalid input shapes at construction time
2. Keep one canonical amount representation
3. Be serializable for storage and logging

DESIGN DECISION: Amounts are unsigned magnitudes.
The sign of a transaction lives only in its `type`. A negative amount is a
caller error and is rejected, never flipped silently.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


UNASSIGNED_CATEGORY_ID = "cat-unassigned"
INCOME_CATEGORY_ID = "cat-income"

Money = Annotated[
    Decimal,
    Field(ge=0, max_digits=14, decimal_places=2, description="Unsigned amount"),
]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction. The only carrier of sign."""
    INCOME = "income"
    EXPENSE = "expense"


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class Category(BaseModel):
    """
    A user-defined spending or income category.

    The id is a stable key. Deleting a category is the store's job; the
    aggregation engine only has to tolerate ids that no longer resolve.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Stable category key"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    color: str = Field(
        default="#94a3b8",
        pattern=r"^#[0-9a-fA-F]{6}$",
        description="Display colour as #rrggbb"
    )


class Transaction(BaseModel):
    """
    A single ledger entry.

    CRITICAL: when `recurring_id` is set, exactly one transaction may exist
    per (recurring_id, calendar month). The materializer upholds this.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Unique transaction id"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the entry"
    )
    description: str = Field(
        default="",
        max_length=500,
        description="Free-text description"
    )
    amount: Money
    category_id: str = Field(
        default=UNASSIGNED_CATEGORY_ID,
        min_length=1,
        description="Category key (may point to a deleted category)"
    )
    type: TransactionType = Field(
        ...,
        description="income or expense"
    )
    is_recurring: bool = Field(
        default=False,
        description="Counts as a fixed expense when True"
    )
    recurring_id: Optional[str] = Field(
        default=None,
        description="Template this entry was materialized from"
    )

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign implied by type (expenses negative)."""
        if self.type == TransactionType.EXPENSE:
            return -self.amount
        return self.amount

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME


class RecurringTemplate(BaseModel):
    """
    Definition of a transaction that repeats every month.

    Inactive templates never generate new transactions, but whatever they
    generated before stays in the ledger.
    A start_date after end_date is accepted: it is a valid template that
    simply never produces anything.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Unique template id"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Description copied to every materialized transaction"
    )
    amount: Money
    category_id: str = Field(
        default=UNASSIGNED_CATEGORY_ID,
        min_length=1
    )
    type: TransactionType = Field(
        default=TransactionType.EXPENSE
    )
    day_of_month: int = Field(
        ...,
        ge=1,
        le=31,
        description="Day the entry lands on, clamped to the month's last day"
    )
    active: bool = Field(
        default=True
    )
    start_date: Optional[dt.date] = Field(
        default=None,
        description="No month before this one is materialized"
    )
    end_date: Optional[dt.date] = Field(
        default=None,
        description="No month after this one is materialized"
    )

    @property
    def has_inverted_window(self) -> bool:
        return bool(
            self.start_date and self.end_date and self.start_date > self.end_date
        )


class Budget(BaseModel):
    """Monthly spending target for one category, reused every month."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    category_id: str = Field(
        ...,
        min_length=1
    )
    amount: Money


class TemplateFieldUpdates(BaseModel):
    """
    Partial update for a recurring template.

    Only fields explicitly set by the caller are applied; use
    `model_dump(exclude_unset=True)` to read them.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    amount: Optional[Money] = None
    category_id: Optional[str] = Field(default=None, min_length=1)
    type: Optional[TransactionType] = None
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)
    active: Optional[bool] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None

    @model_validator(mode='after')
    def reject_null_required_fields(self) -> 'TemplateFieldUpdates':
        """Required template fields may be changed but not cleared."""
        required = ("description", "amount", "category_id", "type", "day_of_month", "active")
        for name in required:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"Template field '{name}' cannot be cleared")
        return self

    @property
    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="cat-housing", name="Housing", color="#3b82f6"),
    Category(id="cat-food", name="Food", color="#ef4444"),
    Category(id="cat-transport", name="Transport", color="#f59e0b"),
    Category(id="cat-leisure", name="Leisure", color="#10b981"),
    Category(id="cat-health", name="Health", color="#8b5cf6"),
    Category(id=INCOME_CATEGORY_ID, name="Income", color="#14b8a6"),
    Category(id=UNASSIGNED_CATEGORY_ID, name="Unassigned", color="#94a3b8"),
)
