"""
Retroactive Update Propagator

Applies an edit to a recurring template and, when asked to, rewrites the
transactions that were already materialized from it.

IMPORTANT: Dates are never rewritten here. A changed day_of_month only
affects months the materializer has not generated yet.
"""

from typing import Iterable, Union

from finledger.models.ledger import RecurringTemplate, TemplateFieldUpdates, Transaction
from finledger.models.views import TemplateEditResult
from finledger.recurrence.errors import TemplateNotFoundError


# Template fields copied onto materialized transactions. The type is left
# alone: an expense stays an expense even if the template flips.
PROPAGATED_FIELDS = ("description", "category_id", "amount")


def _find_template(
    template_id: str,
    templates: Iterable[RecurringTemplate],
) -> RecurringTemplate:
    for template in templates:
        if template.id == template_id:
            return template
    raise TemplateNotFoundError(template_id)


def apply_template_edit(
    template_id: str,
    updates: Union[TemplateFieldUpdates, dict],
    impact_past: bool,
    templates: Iterable[RecurringTemplate],
    transactions: Iterable[Transaction],
) -> TemplateEditResult:
    """
    Compute the mutations for a template edit.

    Args:
        template_id: Template being edited
        updates: Fields to change (partial)
        impact_past: Also rewrite already materialized transactions
        templates: Current templates snapshot
        transactions: Current transactions snapshot

    Returns:
        The updated template plus the rewritten transactions. Only
        transactions whose fields actually change are returned.

    Raises:
        TemplateNotFoundError: If template_id is not in the snapshot
        pydantic.ValidationError: If the edited template is not a valid template
    """
    if not isinstance(updates, TemplateFieldUpdates):
        updates = TemplateFieldUpdates.model_validate(updates)

    current = _find_template(template_id, templates)
    edited = RecurringTemplate.model_validate(
        {**current.model_dump(), **updates.changes, "id": current.id}
    )

    if not impact_past:
        return TemplateEditResult(template_update=edited, impact_past=False)

    target = {name: getattr(edited, name) for name in PROPAGATED_FIELDS}
    rewritten: list[Transaction] = []
    for txn in transactions:
        if txn.recurring_id != template_id:
            continue
        if all(getattr(txn, name) == value for name, value in target.items()):
            continue
        rewritten.append(txn.model_copy(update=target))

    return TemplateEditResult(
        template_update=edited,
        transaction_updates=rewritten,
        impact_past=True,
    )
