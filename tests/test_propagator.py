"""Tests for retroactive template edits."""

import pytest
from datetime import date
from decimal import Decimal

from pydantic import ValidationError

from finledger.models import RecurringTemplate, TemplateFieldUpdates, Transaction, TransactionType
from finledger.recurrence import TemplateNotFoundError, apply_template_edit, materialize


TODAY = date(2024, 3, 15)


@pytest.fixture
def rent() -> RecurringTemplate:
    return RecurringTemplate(
        id="rent",
        description="Rent",
        amount=Decimal("1200.00"),
        category_id="cat-housing",
        day_of_month=5,
    )


@pytest.fixture
def ledger(rent) -> list[Transaction]:
    manual = Transaction(
        id="groceries",
        date=date(2024, 3, 2),
        description="Groceries",
        amount="85.20",
        category_id="cat-food",
        type="expense",
    )
    return [manual] + materialize([rent], [], TODAY)


def _apply(updates, result_ledger):
    """Apply transaction updates to a ledger list the way a store would."""
    by_id = {t.id: t for t in result_ledger}
    for txn in updates:
        by_id[txn.id] = txn
    return list(by_id.values())


class TestApplyTemplateEdit:
    """Tests for apply_template_edit()."""
    
    def test_template_is_always_updated(self, rent, ledger):
        result = apply_template_edit("rent", {"amount": "1300.00"}, False, [rent], ledger)
        assert result.template_update.amount == Decimal("1300.00")
        assert result.template_update.id == "rent"
        assert result.impact_past is False
    
    def test_no_impact_past_touches_nothing(self, rent, ledger):
        result = apply_template_edit(
            "rent",
            TemplateFieldUpdates(description="Rent v2", amount="1300.00", category_id="cat-leisure"),
            False,
            [rent],
            ledger,
        )
        assert result.transaction_updates == []
        assert result.touched_count == 0
    
    def test_impact_past_rewrites_fields_not_dates(self, rent, ledger):
        result = apply_template_edit(
            "rent",
            {"description": "Rent v2", "amount": "1300.00", "category_id": "cat-leisure", "day_of_month": 20},
            True,
            [rent],
            ledger,
        )
        originals = {t.id: t for t in ledger}
        assert len(result.transaction_updates) == 25
        for txn in result.transaction_updates:
            assert txn.description == "Rent v2"
            assert txn.amount == Decimal("1300.00")
            assert txn.category_id == "cat-leisure"
            assert txn.date == originals[txn.id].date
            assert txn.recurring_id == "rent"
            assert txn.is_recurring is True
    
    def test_impact_past_keeps_transaction_type(self, rent, ledger):
        """An expense stays an expense even if the template flips to income."""
        result = apply_template_edit("rent", {"type": "income", "amount": "10"}, True, [rent], ledger)
        assert result.template_update.type == TransactionType.INCOME
        assert all(t.type == TransactionType.EXPENSE for t in result.transaction_updates)
        assert all(t.amount == Decimal("10") for t in result.transaction_updates)
    
    def test_non_template_transactions_untouched(self, rent, ledger):
        result = apply_template_edit("rent", {"description": "Rent v2"}, True, [rent], ledger)
        assert "groceries" not in {t.id for t in result.transaction_updates}
    
    def test_repeated_edit_is_idempotent(self, rent, ledger):
        first = apply_template_edit("rent", {"amount": "1300.00"}, True, [rent], ledger)
        updated_ledger = _apply(first.transaction_updates, ledger)
        second = apply_template_edit(
            "rent", {"amount": "1300.00"}, True, [first.template_update], updated_ledger
        )
        assert second.transaction_updates == []
    
    def test_no_materialized_transactions_is_noop(self, rent):
        result = apply_template_edit("rent", {"amount": "1.00"}, True, [rent], [])
        assert result.transaction_updates == []
    
    def test_unknown_template(self, rent, ledger):
        with pytest.raises(TemplateNotFoundError) as exc:
            apply_template_edit("missing", {"amount": "1"}, True, [rent], ledger)
        assert exc.value.template_id == "missing"
        assert isinstance(exc.value, LookupError)
    
    def test_invalid_update_rejected(self, rent, ledger):
        with pytest.raises(ValidationError):
            apply_template_edit("rent", {"day_of_month": 0}, True, [rent], ledger)
    
    def test_edit_can_clear_end_date(self, rent):
        ended = rent.model_copy(update={"end_date": date(2024, 1, 31)})
        result = apply_template_edit("rent", {"end_date": None}, False, [ended], [])
        assert result.template_update.end_date is None


class TestPropagationAndMaterialization:
    """Propagation and materialization commute."""
    
    def test_no_impact_past_then_materialize_keeps_history(self, rent, ledger):
        edit = apply_template_edit("rent", {"amount": "1300.00"}, False, [rent], ledger)
        later = date(2024, 6, 10)
        created = materialize([edit.template_update], ledger, later)
        
        assert [t.id for t in created] == [
            "rec-commit-rent-2025-04",
            "rec-commit-rent-2025-05",
            "rec-commit-rent-2025-06",
        ]
        assert all(t.amount == Decimal("1300.00") for t in created)
        assert all(t.amount == Decimal("1200.00") for t in ledger if t.recurring_id == "rent")
    
    def test_materialize_order_does_not_matter_for_past(self, rent, ledger):
        edit = apply_template_edit("rent", {"amount": "1300.00"}, False, [rent], ledger)
        
        before = materialize([rent], ledger, TODAY)
        after = materialize([edit.template_update], ledger, TODAY)
        assert before == [] and after == []
    
    def test_impact_past_then_materialize(self, rent, ledger):
        edit = apply_template_edit("rent", {"description": "Rent v2"}, True, [rent], ledger)
        updated = _apply(edit.transaction_updates, ledger)
        created = materialize([edit.template_update], updated, date(2024, 4, 1))
        
        recurring = [t for t in updated + created if t.recurring_id == "rent"]
        assert all(t.description == "Rent v2" for t in recurring)
        assert [t.id for t in created] == ["rec-commit-rent-2025-04"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
