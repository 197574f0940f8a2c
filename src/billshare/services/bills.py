"""Bill composition.

A bill keeps live ``totals`` (net position per participant) up to date as
entries are added, edited and deleted. ``finalize_bill`` freezes those totals
into ``final_totals``; from then on aggregation across bills uses the frozen
snapshot until the bill is explicitly finalised again with ``refresh=True``.
"""

from __future__ import annotations

import copy
from datetime import date, datetime, timezone
from typing import Optional
from uuid import uuid4

from billshare.db.models import Bill, Entry
from billshare.services.balances import effective_totals
from billshare.services.split import entry_net, merge_shares


class BillValidationError(ValueError):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def new_bill(
    name: str,
    bill_date: Optional[date] = None,
    *,
    category: str = "other",
    description: str = "",
    bill_id: Optional[str] = None,
) -> Bill:
    name = name.strip()
    if not name:
        raise BillValidationError("bill name is required")
    now = _now()
    return Bill(
        id=bill_id or uuid4().hex,
        name=name,
        date=bill_date or now.date(),
        category=category.strip().lower() or "other",
        description=description.strip(),
        created_at=now,
        updated_at=now,
    )


def _add_into(totals: dict[str, int], contribution: dict[str, int], sign: int) -> None:
    for code, amount in contribution.items():
        totals[code] = totals.get(code, 0) + sign * amount


def _find_entry(bill: Bill, entry_id: str) -> int:
    for index, entry in enumerate(bill.entries):
        if entry.id == entry_id:
            return index
    raise BillValidationError(f"entry {entry_id} not found in bill {bill.id}")


def add_entry(bill: Bill, entry: Entry) -> Bill:
    bill.entries.append(entry)
    _add_into(bill.totals, entry_net(entry), 1)
    bill.updated_at = _now()
    return bill


def edit_entry(bill: Bill, entry_id: str, entry: Entry) -> Bill:
    index = _find_entry(bill, entry_id)
    old = bill.entries[index]
    _add_into(bill.totals, entry_net(old), -1)

    entry.id = old.id
    entry.created_at = old.created_at
    bill.entries[index] = entry
    _add_into(bill.totals, entry_net(entry), 1)
    bill.updated_at = _now()
    return bill


def delete_entry(bill: Bill, entry_id: str) -> Entry:
    index = _find_entry(bill, entry_id)
    entry = bill.entries.pop(index)
    _add_into(bill.totals, entry_net(entry), -1)
    bill.updated_at = _now()
    return entry


def clear_entries(bill: Bill) -> Bill:
    bill.entries = []
    bill.totals = {code: 0 for code in bill.totals}
    bill.updated_at = _now()
    return bill


def recalculate_totals(bill: Bill, participants: Optional[list[str]] = None) -> dict[str, int]:
    totals = {code: 0 for code in participants or []}
    for code, amount in merge_shares(entry_net(entry) for entry in bill.entries).items():
        totals[code] = totals.get(code, 0) + amount
    bill.totals = totals
    bill.updated_at = _now()
    return totals


def finalize_bill(bill: Bill, *, refresh: bool = False) -> dict[str, int]:
    if bill.final_totals is None or refresh:
        bill.final_totals = dict(bill.totals)
        bill.updated_at = _now()
    return bill.final_totals


def bill_total(bill: Bill) -> int:
    return sum(entry.amount_cents for entry in bill.entries)


def bill_participants(bill: Bill) -> list[str]:
    codes: list[str] = []
    for entry in bill.entries:
        for code in [entry.payer, *entry.participants]:
            if code not in codes:
                codes.append(code)
    if not codes:
        codes = [code for code, amount in effective_totals(bill).items() if amount]
    return codes


def validate_bill(bill: Bill) -> None:
    missing = [name for name in ("id", "name", "date") if not getattr(bill, name)]
    if missing:
        raise BillValidationError(f"missing required fields: {', '.join(missing)}")
    if not bill.entries:
        raise BillValidationError("add at least one expense before saving")
    for entry in bill.entries:
        if entry.amount_cents <= 0:
            raise BillValidationError(f"entry {entry.id}: amount must be positive")
        if not entry.shares:
            raise BillValidationError(f"entry {entry.id}: no participants")
        if sum(entry.shares.values()) != entry.amount_cents:
            raise BillValidationError(f"entry {entry.id}: shares do not add up to the amount")


def duplicate_bill(bill: Bill, new_id: Optional[str] = None) -> Bill:
    now = _now()
    duplicated = copy.deepcopy(bill)
    duplicated.id = new_id or uuid4().hex
    duplicated.name = f"{bill.name} (copy)"
    duplicated.final_totals = None
    duplicated.created_at = now
    duplicated.updated_at = now
    return duplicated
