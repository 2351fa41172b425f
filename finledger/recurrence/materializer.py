"""
Recurrence Materializer

Turns recurring templates into concrete transactions for a bounded window
of months around `today`.

DESIGN DECISION: The materializer is a pure function.
It reads a snapshot of templates and transactions and returns only the
transactions that must be appended. The caller performs the append and
must not re-run it before that append is visible.

GUARANTEES:
- One transaction per (template, calendar month), forever
- Deduplication uses recurring_id + month only; descriptions and amounts
  are free to be edited without causing a second copy
- Generated ids are deterministic, so a repeated append is also harmless
"""

from collections import Counter
from datetime import date
from typing import Iterable, Optional

import structlog

from finledger.config import EngineSettings, get_settings
from finledger.dates import add_months, clamp_day, iter_months, month_key, month_start
from finledger.models.ledger import RecurringTemplate, Transaction


logger = structlog.get_logger(__name__)


def recurring_transaction_id(template_id: str, year: int, month: int) -> str:
    """Stable key of the transaction a template produces for one month."""
    return f"rec-commit-{template_id}-{year}-{month:02d}"


def materialization_window(
    today: date,
    settings: Optional[EngineSettings] = None,
) -> tuple[date, date]:
    """
    Month-aligned scan window around today.

    Returns (first month, exclusive end month), both first-of-month dates.
    """
    settings = settings or get_settings().engine
    start = month_start(add_months(today, -settings.lookback_months))
    end = month_start(add_months(today, settings.lookahead_months))
    return start, end


def _template_months(
    template: RecurringTemplate,
    window_start: date,
    window_end: date,
) -> Iterable[date]:
    """Months in the window this template applies to."""
    if template.has_inverted_window:
        return

    scan_start = window_start
    if template.start_date and template.start_date > scan_start:
        scan_start = month_start(template.start_date)

    for month in iter_months(scan_start, window_end):
        if template.end_date and month > template.end_date:
            break
        yield month


def materialize(
    templates: Iterable[RecurringTemplate],
    transactions: Iterable[Transaction],
    today: date,
    settings: Optional[EngineSettings] = None,
) -> list[Transaction]:
    """
    Compute the recurring transactions that should exist but do not.

    Args:
        templates: All recurring templates (inactive ones are skipped)
        transactions: Every transaction currently in the ledger
        today: Reference date for the scan window

    Returns:
        New transactions for the caller to append, in template then
        month order. Empty when the ledger is already complete.
    """
    window_start, window_end = materialization_window(today, settings)

    existing_ids: set[str] = set()
    materialized_months: set[tuple[str, str]] = set()
    for txn in transactions:
        existing_ids.add(txn.id)
        if txn.recurring_id:
            materialized_months.add((txn.recurring_id, month_key(txn.date)))

    created: list[Transaction] = []
    for template in templates:
        if not template.active:
            continue

        for month in _template_months(template, window_start, window_end):
            key = (template.id, month_key(month))
            if key in materialized_months:
                continue

            txn_id = recurring_transaction_id(template.id, month.year, month.month)
            if txn_id in existing_ids:
                continue

            created.append(Transaction(
                id=txn_id,
                date=clamp_day(month.year, month.month, template.day_of_month),
                description=template.description,
                amount=template.amount,
                category_id=template.category_id,
                type=template.type,
                is_recurring=True,
                recurring_id=template.id,
            ))
            existing_ids.add(txn_id)
            materialized_months.add(key)

    logger.debug(
        "materialization_scan",
        today=today.isoformat(),
        window_start=window_start.isoformat(),
        window_end=window_end.isoformat(),
        created=len(created),
    )
    return created


def recurring_month_collisions(
    transactions: Iterable[Transaction],
) -> list[tuple[str, str]]:
    """
    Find (recurring_id, YYYY-MM) pairs held by more than one transaction.

    An empty list means the one-per-month invariant holds.
    """
    counts = Counter(
        (txn.recurring_id, month_key(txn.date))
        for txn in transactions
        if txn.recurring_id
    )
    return sorted(key for key, count in counts.items() if count > 1)
