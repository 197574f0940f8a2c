from datetime import date

import pytest

from billshare.db.models import Bill, SplitType
from billshare.services.bills import (
    BillValidationError,
    add_entry,
    bill_participants,
    bill_total,
    clear_entries,
    delete_entry,
    duplicate_bill,
    edit_entry,
    finalize_bill,
    new_bill,
    recalculate_totals,
    validate_bill,
)
from billshare.services.split import build_entry


def _bill() -> Bill:
    bill = new_bill("  Weekend trip ", date(2024, 6, 1), category="Travel")
    add_entry(bill, build_entry(300, "Z", SplitType.EQUAL, ["Z", "U", "M"], description="Fuel"))
    add_entry(bill, build_entry(120, "U", SplitType.CUSTOM, ["Z", "U"], {"Z": 20, "U": 100}))
    return bill


def test_new_bill_normalises_fields():
    bill = new_bill("  Weekend trip ", date(2024, 6, 1), category="Travel")
    assert bill.name == "Weekend trip"
    assert bill.category == "travel"
    assert bill.final_totals is None
    assert bill.created_at is not None


def test_new_bill_requires_name():
    with pytest.raises(BillValidationError):
        new_bill("   ")


def test_add_entry_updates_totals():
    bill = _bill()
    assert bill.totals == {"Z": 20000 - 2000, "U": -10000 + 12000 - 10000, "M": -10000}
    assert sum(bill.totals.values()) == 0
    assert bill_total(bill) == 42000


def test_edit_entry_replaces_contribution():
    bill = _bill()
    first = bill.entries[0]

    edit_entry(bill, first.id, build_entry(300, "M", SplitType.EQUAL, ["Z", "U", "M"]))

    assert bill.entries[0].id == first.id
    assert bill.entries[0].payer == "M"
    assert bill.totals == {"Z": -10000 - 2000, "U": -10000 + 2000, "M": 20000}


def test_delete_entry_subtracts_contribution():
    bill = _bill()
    removed = delete_entry(bill, bill.entries[1].id)

    assert removed.amount_cents == 12000
    assert bill.totals == {"Z": 20000, "U": -10000, "M": -10000}


def test_unknown_entry_id():
    bill = _bill()
    with pytest.raises(BillValidationError):
        delete_entry(bill, "missing")


def test_recalculate_matches_incremental_totals():
    bill = _bill()
    incremental = dict(bill.totals)
    bill.totals = {"Z": 1}

    recalculated = recalculate_totals(bill, ["Z", "U", "M", "B"])

    assert recalculated == {**incremental, "B": 0}


def test_clear_entries_zeroes_totals():
    bill = clear_entries(_bill())
    assert bill.entries == []
    assert set(bill.totals.values()) == {0}


def test_finalize_freezes_until_refresh():
    bill = _bill()
    frozen = finalize_bill(bill)
    add_entry(bill, build_entry(30, "M", SplitType.EQUAL, ["Z", "M"]))

    assert finalize_bill(bill) == frozen
    assert finalize_bill(bill, refresh=True) == bill.totals


def test_validate_bill():
    bill = new_bill("Empty", date(2024, 1, 1))
    with pytest.raises(BillValidationError, match="at least one"):
        validate_bill(bill)

    validate_bill(_bill())

    broken = _bill()
    broken.entries[0].shares["Z"] += 1
    with pytest.raises(BillValidationError, match="add up"):
        validate_bill(broken)


def test_duplicate_drops_final_totals():
    bill = _bill()
    finalize_bill(bill)

    copy = duplicate_bill(bill, "copy-1")

    assert copy.id == "copy-1"
    assert copy.final_totals is None
    assert copy.entries == bill.entries
    assert copy.entries[0] is not bill.entries[0]


def test_bill_participants_order():
    assert bill_participants(_bill()) == ["Z", "U", "M"]
