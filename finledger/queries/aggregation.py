"""
Aggregation Engine

DESIGN DECISION: Aggregation is DETERMINISTIC and READ-ONLY.
Every function takes an in-memory snapshot of the ledger and returns plain
result models. Nothing here mutates a transaction, not even when its
category has been deleted: the unassigned category is substituted for
display only.

All money is summed as Decimal. Figures that involve a division (averages,
run-rate projections, percentages) are rounded half-up to cents.
"""

from collections import defaultdict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from finledger.config import EngineSettings, get_settings
from finledger.dates import (
    add_months,
    days_in_month,
    format_month_label,
    month_end,
    month_key,
    month_start,
)
from finledger.models.ledger import Budget, Category, Transaction, TransactionType
from finledger.models.views import (
    BudgetStatus,
    CategoryProjection,
    CategorySpend,
    MonthProjection,
    Period,
    PeriodStats,
    RecurrenceFilter,
    TimelinePoint,
    TransactionFilter,
)


ZERO = Decimal("0.00")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _settings(settings: Optional[EngineSettings]) -> EngineSettings:
    return settings or get_settings().engine


def _unassigned(categories: dict[str, Category], settings: EngineSettings) -> Category:
    """The category shown for ids that no longer resolve."""
    fallback_id = settings.unassigned_category_id
    return categories.get(fallback_id) or Category(id=fallback_id, name="Unassigned")


def _budget_index(budgets: Iterable[Budget]) -> dict[str, Decimal]:
    index: dict[str, Decimal] = {}
    for budget in budgets:
        index.setdefault(budget.category_id, budget.amount)
    return index


def _tracked_categories(
    categories: Iterable[Category],
    settings: EngineSettings,
) -> list[Category]:
    """Categories that take part in budgeting (administrative ones excluded)."""
    excluded = settings.administrative_category_ids
    return [cat for cat in categories if cat.id not in excluded]


def _expenses_between(
    transactions: Iterable[Transaction],
    start: date,
    end: date,
) -> dict[str, Decimal]:
    """Expense magnitude per raw category id within [start, end]."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for txn in transactions:
        if txn.is_expense and start <= txn.date <= end:
            totals[txn.category_id] += txn.amount
    return totals


# =============================================================================
# PERIOD STATISTICS
# =============================================================================

def filter_by_period(
    transactions: Iterable[Transaction],
    period: Period,
    reference_date: Optional[date] = None,
) -> list[Transaction]:
    """Transactions whose date falls in the period (inclusive on both ends)."""
    bounds = period.bounds(reference_date or date.today())
    if bounds is None:
        return list(transactions)
    start, end = bounds
    return [txn for txn in transactions if start <= txn.date <= end]


def compute_stats(
    transactions: Iterable[Transaction],
    period: Period,
    reference_date: Optional[date] = None,
) -> PeriodStats:
    """
    Income, expense and balance for a period.

    Expenses are further split into fixed (materialized from a template)
    and variable (everything else).
    """
    income = ZERO
    expense = ZERO
    fixed = ZERO
    selected = filter_by_period(transactions, period, reference_date)

    for txn in selected:
        if txn.type == TransactionType.INCOME:
            income += txn.amount
        else:
            expense += txn.amount
            if txn.is_recurring:
                fixed += txn.amount

    return PeriodStats(
        income=income,
        expense=expense,
        balance=income - expense,
        fixed=fixed,
        variable=expense - fixed,
        transaction_count=len(selected),
    )


def category_distribution(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    period: Period,
    reference_date: Optional[date] = None,
    settings: Optional[EngineSettings] = None,
) -> list[CategorySpend]:
    """
    Expense totals per category for a period, largest first.

    Ids of deleted categories are folded into the unassigned slice.
    """
    settings = _settings(settings)
    index = {cat.id: cat for cat in categories}
    unassigned = _unassigned(index, settings)

    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for txn in filter_by_period(transactions, period, reference_date):
        if not txn.is_expense:
            continue
        category = index.get(txn.category_id, unassigned)
        totals[category.id] += txn.amount

    slices = []
    for category_id, value in totals.items():
        category = index.get(category_id, unassigned)
        slices.append(CategorySpend(
            category_id=category.id,
            name=category.name,
            color=category.color,
            value=value,
        ))
    return sorted(slices, key=lambda s: (-s.value, s.name))


# =============================================================================
# BUDGETS AND PROJECTIONS
# =============================================================================

def run_rate_projection(spent: Decimal, reference_date: date) -> Decimal:
    """
    Linear month-end estimate: spend so far per elapsed day times month length.

    Assumes uniform daily spend. No seasonality, no weighting.
    """
    elapsed = max(reference_date.day, 1)
    total_days = days_in_month(reference_date.year, reference_date.month)
    return _cents(Decimal(spent) / elapsed * total_days)


def compute_budget_status(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    budgets: Iterable[Budget],
    reference_date: Optional[date] = None,
    settings: Optional[EngineSettings] = None,
) -> list[BudgetStatus]:
    """
    Budget versus actual for the reference month, one row per tracked category.

    The period filter of the dashboard does not apply here: this always
    looks at the calendar month containing reference_date.
    """
    settings = _settings(settings)
    reference_date = reference_date or date.today()
    spent_by_category = _expenses_between(
        transactions, month_start(reference_date), month_end(reference_date)
    )
    budget_by_category = _budget_index(budgets)

    rows = []
    for category in _tracked_categories(categories, settings):
        spent = spent_by_category.get(category.id, ZERO)
        budget = budget_by_category.get(category.id, ZERO)
        projected = run_rate_projection(spent, reference_date)
        has_budget = budget > 0

        percent_used = ZERO
        if has_budget:
            percent_used = _cents(min(spent / budget * HUNDRED, HUNDRED))

        rows.append(BudgetStatus(
            category_id=category.id,
            name=category.name,
            color=category.color,
            spent=spent,
            budget=budget,
            remaining=budget - spent,
            is_over=has_budget and spent > budget,
            projected=projected,
            will_exceed=has_budget and projected > budget,
            percent_used=percent_used,
        ))
    return rows


def rolling_average(
    transactions: Iterable[Transaction],
    category_id: str,
    reference_date: Optional[date] = None,
    settings: Optional[EngineSettings] = None,
) -> Decimal:
    """
    Mean monthly expense of a category over the trailing complete months.

    The current month is excluded. Months without spend count as zero: the
    divisor is always the full window length.
    """
    settings = _settings(settings)
    reference_date = reference_date or date.today()
    window = settings.rolling_window_months

    start = month_start(add_months(reference_date, -window))
    end = month_end(add_months(reference_date, -1))
    total = _expenses_between(transactions, start, end).get(category_id, ZERO)
    return _cents(total / window)


def forward_projection(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    budgets: Iterable[Budget],
    reference_date: Optional[date] = None,
    settings: Optional[EngineSettings] = None,
) -> list[MonthProjection]:
    """
    Planning projection for the current month and the ones after it.

    Month 0 uses the run-rate of the current month. Later months use the
    larger of the rolling average and the budget, so a committed budget is
    never projected away by a quiet history.
    """
    settings = _settings(settings)
    reference_date = reference_date or date.today()
    transactions = list(transactions)
    tracked = _tracked_categories(categories, settings)
    budget_by_category = _budget_index(budgets)
    current_spend = _expenses_between(
        transactions, month_start(reference_date), month_end(reference_date)
    )
    averages = {
        cat.id: rolling_average(transactions, cat.id, reference_date, settings)
        for cat in tracked
    }

    projection = []
    for offset in range(settings.projection_months):
        target = add_months(month_start(reference_date), offset)
        entries = []
        for cat in tracked:
            if offset == 0:
                amount = run_rate_projection(current_spend.get(cat.id, ZERO), reference_date)
                method = "run_rate"
            else:
                amount = max(averages[cat.id], budget_by_category.get(cat.id, ZERO))
                method = "historical_or_budget"
            entries.append(CategoryProjection(
                category_id=cat.id,
                name=cat.name,
                amount=amount,
                method=method,
            ))
        projection.append(MonthProjection(
            month=month_key(target),
            label=format_month_label(target),
            categories=entries,
        ))
    return projection


# =============================================================================
# TIMELINE AND LISTING
# =============================================================================

def monthly_timeline(
    transactions: Iterable[Transaction],
    reference_date: Optional[date] = None,
    months: int = 12,
) -> list[TimelinePoint]:
    """Income and expense per month, oldest first, ending at the reference month."""
    reference_date = reference_date or date.today()
    if months <= 0:
        return []

    first = month_start(add_months(reference_date, -(months - 1)))
    points = {}
    for offset in range(months):
        current = add_months(first, offset)
        points[month_key(current)] = TimelinePoint(
            month=month_key(current),
            label=format_month_label(current),
        )

    for txn in transactions:
        point = points.get(month_key(txn.date))
        if point is None:
            continue
        if txn.is_income:
            point.income += txn.amount
        else:
            point.expense += txn.amount

    return list(points.values())


def filter_transactions(
    transactions: Iterable[Transaction],
    criteria: Optional[TransactionFilter] = None,
) -> list[Transaction]:
    """Apply list filters and return matches newest first."""
    criteria = criteria or TransactionFilter()
    needle = criteria.search.lower() if criteria.search else None

    def matches(txn: Transaction) -> bool:
        if needle and needle not in txn.description.lower():
            return False
        if criteria.type and txn.type != criteria.type:
            return False
        if criteria.category_id and txn.category_id != criteria.category_id:
            return False
        if criteria.recurrence == RecurrenceFilter.FIXED and not txn.is_recurring:
            return False
        if criteria.recurrence == RecurrenceFilter.VARIABLE and txn.is_recurring:
            return False
        if criteria.date_from and txn.date < criteria.date_from:
            return False
        if criteria.date_to and txn.date > criteria.date_to:
            return False
        return True

    selected = [txn for txn in transactions if matches(txn)]
    return sorted(selected, key=lambda t: (t.date, t.id), reverse=True)
