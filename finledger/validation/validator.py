"""
Ledger Validation

DESIGN DECISION: Validation happens in two distinct places:

TEMPLATE VALIDATION:
- Runs before a template is saved or edited
- Flags degenerate but valid windows and dangling category ids
- Shape errors never get here: the pydantic models reject them first

LEDGER VALIDATION:
- Runs over a full snapshot
- Checks the one-transaction-per-template-per-month invariant
- Checks that every category has at most one budget

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for the caller to act on.
"""

from collections import Counter
from typing import Iterable, Optional

from finledger.config import EngineSettings, get_settings
from finledger.models.ledger import Budget, Category, RecurringTemplate, Transaction
from finledger.models.validation import ValidationIssue, ValidationResult
from finledger.recurrence import recurring_month_collisions


class LedgerValidator:
    """
    Validates templates and ledger snapshots.

    Holds no state beyond the engine settings; every call is independent.
    """

    def __init__(self, settings: Optional[EngineSettings] = None):
        self._settings = settings or get_settings().engine

    def validate_template(
        self,
        template: RecurringTemplate,
        categories: Optional[Iterable[Category]] = None,
    ) -> ValidationResult:
        """
        Check a template before it is stored.

        Nothing found here blocks the save: an inverted window or an
        unknown category are valid inputs that just produce little.
        """
        issues = []

        if template.has_inverted_window:
            issues.append(ValidationIssue(
                field="start_date",
                issue_type="inverted_window",
                message=(
                    f"Start date {template.start_date} is after end date "
                    f"{template.end_date}; no transactions will be generated"
                ),
                severity="warning",
                entity_id=template.id,
                suggested_fix="Swap or clear one of the dates",
            ))

        if categories is not None:
            known = {cat.id for cat in categories}
            if template.category_id not in known:
                issues.append(ValidationIssue(
                    field="category_id",
                    issue_type="unknown_category",
                    message=f"Category '{template.category_id}' does not exist",
                    severity="warning",
                    entity_id=template.id,
                    suggested_fix="Pick an existing category",
                ))

        if template.day_of_month > 28:
            issues.append(ValidationIssue(
                field="day_of_month",
                issue_type="clamped_day",
                message=(
                    f"Day {template.day_of_month} does not exist in every month; "
                    "shorter months use their last day"
                ),
                severity="info",
                entity_id=template.id,
            ))

        if not template.active:
            issues.append(ValidationIssue(
                field="active",
                issue_type="inactive",
                message="Template is inactive and will not generate transactions",
                severity="info",
                entity_id=template.id,
            ))

        return ValidationResult(subject=f"template:{template.id}", issues=issues)

    def validate_ledger(
        self,
        transactions: Iterable[Transaction],
        categories: Iterable[Category],
        budgets: Iterable[Budget],
    ) -> ValidationResult:
        """Check the invariants the engine relies on across a whole snapshot."""
        transactions = list(transactions)
        budgets = list(budgets)
        known = {cat.id for cat in categories}
        issues = []

        for recurring_id, month in recurring_month_collisions(transactions):
            issues.append(ValidationIssue(
                field="recurring_id",
                issue_type="duplicate_month",
                message=f"Template '{recurring_id}' has more than one transaction in {month}",
                severity="error",
                entity_id=recurring_id,
                suggested_fix="Delete the extra transaction for that month",
            ))

        id_counts = Counter(txn.id for txn in transactions)
        for txn_id, count in sorted(id_counts.items()):
            if count > 1:
                issues.append(ValidationIssue(
                    field="id",
                    issue_type="duplicate_id",
                    message=f"Transaction id '{txn_id}' appears {count} times",
                    severity="error",
                    entity_id=txn_id,
                ))

        budget_counts = Counter(budget.category_id for budget in budgets)
        for category_id, count in sorted(budget_counts.items()):
            if count > 1:
                issues.append(ValidationIssue(
                    field="budgets",
                    issue_type="duplicate_budget",
                    message=f"Category '{category_id}' has {count} budgets",
                    severity="error",
                    entity_id=category_id,
                    suggested_fix="Keep a single budget per category",
                ))

        dangling = sorted({
            txn.category_id for txn in transactions if txn.category_id not in known
        })
        for category_id in dangling:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="unknown_category",
                message=(
                    f"Transactions reference missing category '{category_id}'; "
                    f"they are shown as '{self._settings.unassigned_category_id}'"
                ),
                severity="warning",
                entity_id=category_id,
            ))

        return ValidationResult(subject="ledger", issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Summarize validation results for display."""
        if not result.issues:
            return "✅ Everything looks consistent."

        lines = []
        errors = [i for i in result.issues if i.severity == "error"]
        warnings = result.warnings

        if errors:
            lines.append(f"❌ {len(errors)} problem(s) need attention:")
            lines.extend(f"   • {issue.message}" for issue in errors)
        if warnings:
            lines.append(f"⚠️ {len(warnings)} warning(s):")
            lines.extend(f"   • {issue.message}" for issue in warnings)
        if not errors and not warnings:
            lines.append("ℹ️ Nothing blocking, just notes:")
            lines.extend(f"   • {issue.message}" for issue in result.issues)
        return "\n".join(lines)
