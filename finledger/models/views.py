"""
View and Result Models for FinLedger

These are the plain records the engine hands back to its callers:
period filters, statistics, budget status rows, projections and the
outcome of a template edit. Nothing in here is persisted.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from finledger.dates import month_end, month_start
from finledger.models.ledger import RecurringTemplate, Transaction, TransactionType


# =============================================================================
# PERIOD FILTER
# =============================================================================

class PeriodKind(str, Enum):
    """How a period is resolved against the reference date."""
    MONTH = "month"
    YEAR = "year"
    ALL = "all"
    RANGE = "range"


class Period(BaseModel):
    """
    A date filter for period statistics.

    `month` and `year` are resolved around the reference date, `all` has no
    bounds, and `range` uses the explicit inclusive `start`/`end`.
    An inverted range is valid and simply matches nothing.
    """
    model_config = ConfigDict(frozen=True)

    kind: PeriodKind = PeriodKind.MONTH
    start: Optional[date] = None
    end: Optional[date] = None

    @classmethod
    def month(cls) -> 'Period':
        return cls(kind=PeriodKind.MONTH)

    @classmethod
    def year(cls) -> 'Period':
        return cls(kind=PeriodKind.YEAR)

    @classmethod
    def all(cls) -> 'Period':
        return cls(kind=PeriodKind.ALL)

    @classmethod
    def between(cls, start: date, end: date) -> 'Period':
        return cls(kind=PeriodKind.RANGE, start=start, end=end)

    def bounds(self, reference_date: date) -> Optional[tuple[date, date]]:
        """
        Resolve to an inclusive (start, end) pair.

        Returns None for `all`. A `range` with a missing side is open on
        that side.
        """
        if self.kind == PeriodKind.ALL:
            return None
        if self.kind == PeriodKind.MONTH:
            return month_start(reference_date), month_end(reference_date)
        if self.kind == PeriodKind.YEAR:
            return date(reference_date.year, 1, 1), date(reference_date.year, 12, 31)
        return self.start or date.min, self.end or date.max


# =============================================================================
# AGGREGATION RESULTS
# =============================================================================

class PeriodStats(BaseModel):
    """Totals for one period. Expense figures are magnitudes."""

    income: Decimal = Decimal("0.00")
    expense: Decimal = Decimal("0.00")
    balance: Decimal = Decimal("0.00")
    fixed: Decimal = Field(
        default=Decimal("0.00"),
        description="Expenses that came from recurring templates"
    )
    variable: Decimal = Field(
        default=Decimal("0.00"),
        description="All other expenses"
    )
    transaction_count: int = Field(default=0, ge=0)


class CategorySpend(BaseModel):
    """One slice of the expense distribution."""

    category_id: str
    name: str
    color: str
    value: Decimal


class BudgetStatus(BaseModel):
    """Budget versus actual for one category in the reference month."""

    category_id: str
    name: str
    color: str
    spent: Decimal
    budget: Decimal
    remaining: Decimal
    is_over: bool
    projected: Decimal = Field(
        ...,
        description="Linear run-rate estimate of month-end spend"
    )
    will_exceed: bool
    percent_used: Decimal = Field(
        ...,
        description="spent / budget as a percentage, capped at 100; 0 without a budget"
    )

    @property
    def has_budget(self) -> bool:
        return self.budget > 0


class CategoryProjection(BaseModel):
    """Projected spend for one category in one month."""

    category_id: str
    name: str
    amount: Decimal
    method: str = Field(
        ...,
        pattern="^(run_rate|historical_or_budget)$",
        description="Which heuristic produced the figure"
    )


class MonthProjection(BaseModel):
    """Forward projection for one month across all tracked categories."""

    month: str = Field(..., description="YYYY-MM")
    label: str
    categories: list[CategoryProjection] = Field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((c.amount for c in self.categories), Decimal("0.00"))

    def amount_for(self, category_id: str) -> Decimal:
        for item in self.categories:
            if item.category_id == category_id:
                return item.amount
        return Decimal("0.00")


class TimelinePoint(BaseModel):
    """Income and expense totals for one calendar month."""

    month: str = Field(..., description="YYYY-MM")
    label: str
    income: Decimal = Decimal("0.00")
    expense: Decimal = Decimal("0.00")


class RecurrenceFilter(str, Enum):
    ALL = "all"
    FIXED = "fixed"
    VARIABLE = "variable"


class TransactionFilter(BaseModel):
    """
    Filters for the transaction list.

    Every criterion is optional; an empty filter matches everything.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    search: Optional[str] = Field(
        default=None,
        description="Case-insensitive substring of the description"
    )
    type: Optional[TransactionType] = None
    category_id: Optional[str] = None
    recurrence: RecurrenceFilter = RecurrenceFilter.ALL
    date_from: Optional[date] = None
    date_to: Optional[date] = None


# =============================================================================
# TEMPLATE EDIT RESULT
# =============================================================================

class TemplateEditResult(BaseModel):
    """
    Mutations produced by a template edit.

    The caller applies both: the template update always, the transaction
    updates only when non-empty.
    """

    template_update: RecurringTemplate
    transaction_updates: list[Transaction] = Field(default_factory=list)
    impact_past: bool

    @property
    def touched_count(self) -> int:
        return len(self.transaction_updates)
