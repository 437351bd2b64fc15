"""
End-to-end ledger scenarios.

Each test walks a short user story through Ledger, UndoController and
the aggregation functions together.
"""

from decimal import Decimal

import pytest

from expense_tracker.aggregation import category_breakdown, compute_totals
from expense_tracker.ledger import Ledger
from expense_tracker.services.storage import InMemoryKeyValueStore, PersistenceAdapter
from expense_tracker.undo import UndoController
from expense_tracker.validation import ValidationError, ValidationRule


@pytest.fixture
def undo(ledger, scheduler):
    return UndoController(ledger, scheduler, window_seconds=5)


def _ids(ledger):
    return [tx.id for tx in ledger.snapshot()]


class TestLedgerScenarios:
    """User stories from an empty ledger."""

    def test_coffee(self, ledger):
        ledger.add("Coffee", Decimal("-4.50"), "food")
        totals = compute_totals(ledger.snapshot())
        assert totals.income == Decimal("0")
        assert totals.expense == Decimal("4.50")
        assert totals.balance == Decimal("-4.50")

    def test_paycheck_and_rent(self, ledger):
        ledger.add("Paycheck", 2000, "salary")
        ledger.add("Rent", -1200, "bills")
        [share] = category_breakdown(ledger.snapshot())
        assert share.category == "bills"
        assert share.amount == Decimal("1200")
        assert share.percentage == Decimal("100.0")

    @pytest.mark.parametrize("title,amount,category", [
        ("Coffee", Decimal("-4.50"), "food"),
        ("Paycheck", 2000, "salary"),
        ("Odd", "0.01", "unknown"),
        ("Limit", "-1000000", "bills"),
    ])
    def test_add_then_remove_leaves_ids_unchanged(self, ledger, title, amount, category):
        ledger.add("Existing", 10, "other")
        before = set(_ids(ledger))
        tx = ledger.add(title, amount, category)
        ledger.remove_by_id(tx.id)
        assert set(_ids(ledger)) == before

    def test_totals_are_additive(self, ledger):
        for title, amount in [("a", 5), ("b", "-2.25"), ("c", 100), ("d", "-0.75")]:
            ledger.add(title, amount)
        snapshot = ledger.snapshot()
        head, tail = snapshot[:2], snapshot[2:]
        assert compute_totals(snapshot) == compute_totals(head) + compute_totals(tail)

    def test_amount_boundaries(self, ledger):
        ledger.add("At limit", "1000000.00")
        with pytest.raises(ValidationError) as exc_info:
            ledger.add("Over limit", "1000000.01")
        assert exc_info.value.rule == ValidationRule.TOO_LARGE
        with pytest.raises(ValidationError) as exc_info:
            ledger.add("Nothing", 0)
        assert exc_info.value.rule == ValidationRule.NOT_POSITIVE
        assert len(ledger) == 1

    def test_load_drops_entry_without_amount_or_id(self):
        store = InMemoryKeyValueStore({"et_transactions_v1": '[{"title":"x"}]'})
        ledger = Ledger(PersistenceAdapter(store))
        ledger.load()
        assert ledger.snapshot() == []


class TestUndoScenarios:
    """User stories involving delete and undo."""

    def test_restore_round_trip(self, ledger, undo):
        for title in ["c", "b", "a"]:
            ledger.add(title, 1)
        before = ledger.snapshot()
        ledger.remove_by_id(before[1].id)
        undo.restore()
        assert ledger.snapshot() == before

    def test_expiry_is_final(self, ledger, undo, scheduler):
        tx = ledger.add("a", 1)
        ledger.remove_by_id(tx.id)
        scheduler.advance(5)
        assert undo.restore() is None
        assert undo.restore() is None
        assert tx.id not in ledger

    def test_double_restore_does_not_duplicate(self, ledger, undo):
        tx = ledger.add("a", 1)
        ledger.remove_by_id(tx.id)
        undo.restore()
        undo.restore()
        assert _ids(ledger) == [tx.id]
