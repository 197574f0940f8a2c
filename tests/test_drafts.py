from datetime import date

import pytest

from billshare.db.models import Participant
from billshare.handlers.drafts import _entry_from_command, format_entries
from billshare.services.bills import add_entry, new_bill
from billshare.services.roster import Roster, UnknownParticipantError
from billshare.state import UserStateManager
from billshare.utils.parse import parse_entry

ROSTER = Roster(
    [
        Participant(code="Z", name="Zeshan"),
        Participant(code="U", name="Umam"),
        Participant(code="M", name="Rasool"),
    ]
)


def test_entry_from_command():
    entry = _entry_from_command(parse_entry("90 Z ZUM | Chai"), ROSTER)
    assert entry.payer == "Z"
    assert entry.shares == {"Z": 3000, "U": 3000, "M": 3000}
    assert entry.description == "Chai"


def test_entry_from_command_unknown_payer():
    with pytest.raises(UnknownParticipantError):
        _entry_from_command(parse_entry("90 Q ZU"), ROSTER)


def test_format_entries():
    bill = new_bill("Tea", date(2024, 5, 10))
    assert format_entries(bill, ROSTER, "₹") == "No expenses yet."

    add_entry(bill, _entry_from_command(parse_entry("90 Z ZUM | Chai"), ROSTER))
    text = format_entries(bill, ROSTER, "₹")
    assert "1. ₹90.00 Chai - paid by Zeshan (equal: Zeshan ₹30.00, Umam ₹30.00, Rasool ₹30.00)" in text
    assert text.endswith("Total: ₹90.00")


def test_state_drafts_are_per_chat():
    manager = UserStateManager()
    bill = new_bill("Tea", date(2024, 5, 10))
    manager.set_draft(1, bill)
    manager.set_pending_import(1)

    assert manager.get_draft(1) is bill
    assert manager.get_draft(2) is None
    assert manager.is_pending_import(1)

    manager.clear_chat(1)
    assert manager.get_draft(1) is None
    assert not manager.is_pending_import(1)
