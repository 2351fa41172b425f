"""Recurring-transaction materialization and retroactive propagation."""

from finledger.recurrence.errors import LedgerError, TemplateNotFoundError
from finledger.recurrence.materializer import (
    materialize,
    materialization_window,
    recurring_month_collisions,
    recurring_transaction_id,
)
from finledger.recurrence.propagator import apply_template_edit

__all__ = [
    "LedgerError",
    "TemplateNotFoundError",
    "apply_template_edit",
    "materialization_window",
    "materialize",
    "recurring_month_collisions",
    "recurring_transaction_id",
]
