"""Errors raised by the recurrence engine."""


class LedgerError(Exception):
    """Base exception for ledger core operations."""
    pass


class TemplateNotFoundError(LedgerError, LookupError):
    """The template named by an edit is not in the snapshot."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Recurring template not found: {template_id}")
