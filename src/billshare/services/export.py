"""JSON and CSV (de)serialisation of bills.

Money is written as decimal strings (``"12.50"``) and read back through
``to_cents``. ``bill_from_dict`` also accepts records written by older
versions and fills in missing fields.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import date, datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Sequence
from uuid import uuid4

from billshare.db.models import Bill, Entry, SplitType
from billshare.services.bills import bill_participants, bill_total, finalize_bill, recalculate_totals
from billshare.services.roster import Roster
from billshare.services.settlement import Transfer
from billshare.services.split import reconcile_shares, split_amount
from billshare.utils.money import from_cents, to_cents


class ImportFormatError(ValueError):
    pass


def _money_map(values: Mapping[str, int]) -> dict[str, str]:
    return {code: str(from_cents(amount)) for code, amount in values.items()}


def _cents_map(values: Optional[Mapping[str, Any]]) -> dict[str, int]:
    return {code: to_cents(amount) for code, amount in (values or {}).items()}


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    if not value:
        return datetime.now(timezone.utc).date()
    return date.fromisoformat(str(value)[:10])


def entry_to_dict(entry: Entry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "amount": str(from_cents(entry.amount_cents)),
        "payer": entry.payer,
        "split_type": entry.split_type.value,
        "shares": _money_map(entry.shares),
        "description": entry.description,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }


def entry_from_dict(data: Mapping[str, Any]) -> Entry:
    amount_cents = to_cents(data.get("amount", data.get("price", 0)))
    # Older records stored float shares, e.g. 100/3 each.
    shares = reconcile_shares(_cents_map(data.get("shares")), amount_cents)
    if not shares and data.get("participants"):
        # Records without shares were split equally among their participants.
        participants = data["participants"]
        if isinstance(participants, str):
            participants = list(participants)
        shares = split_amount(amount_cents, list(participants))
    payer = data.get("payer") or next(iter(shares), "")
    return Entry(
        id=str(data.get("id") or uuid4().hex),
        amount_cents=amount_cents,
        payer=payer,
        split_type=SplitType(data.get("split_type", SplitType.EQUAL.value)),
        shares=shares,
        description=data.get("description") or "",
        created_at=_parse_datetime(data.get("created_at") or data.get("createdAt")),
    )


def bill_to_dict(bill: Bill) -> dict[str, Any]:
    return {
        "id": bill.id,
        "name": bill.name,
        "date": bill.date.isoformat(),
        "category": bill.category,
        "description": bill.description,
        "entries": [entry_to_dict(entry) for entry in bill.entries],
        "totals": _money_map(bill.totals),
        "final_totals": _money_map(bill.final_totals) if bill.final_totals is not None else None,
        "total_amount": str(from_cents(bill_total(bill))),
        "participants": bill_participants(bill),
        "created_at": bill.created_at.isoformat() if bill.created_at else None,
        "updated_at": bill.updated_at.isoformat() if bill.updated_at else None,
    }


def bill_from_dict(data: Mapping[str, Any]) -> Bill:
    if not isinstance(data, Mapping):
        raise ImportFormatError("bill record must be an object")

    created_at = _parse_datetime(data.get("created_at") or data.get("createdAt")) or datetime.now(timezone.utc)
    final_totals = data.get("final_totals", data.get("finalTotals"))
    raw_entries = data.get("entries") or []
    # Records without payers kept consumption totals rather than net positions.
    legacy = any(isinstance(entry, Mapping) and not entry.get("payer") for entry in raw_entries)
    bill = Bill(
        id=str(data.get("id") or uuid4().hex),
        name=data.get("name") or "Unnamed Bill",
        date=_parse_date(data.get("date")),
        category=data.get("category") or "other",
        description=data.get("description") or "",
        entries=[entry_from_dict(entry) for entry in raw_entries],
        totals=_cents_map(data.get("totals")),
        final_totals=_cents_map(final_totals) if final_totals is not None else None,
        created_at=created_at,
    )
    if legacy or (data.get("totals") is None and bill.entries):
        recalculate_totals(bill)
        if legacy and bill.final_totals is not None:
            finalize_bill(bill, refresh=True)
    bill.updated_at = _parse_datetime(data.get("updated_at") or data.get("updatedAt")) or created_at
    return bill


def bills_to_json(bills: Iterable[Bill]) -> str:
    return json.dumps([bill_to_dict(bill) for bill in bills], ensure_ascii=False, indent=2)


def bills_from_json(payload: str | bytes) -> list[Bill]:
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ImportFormatError(f"not valid JSON: {exc.msg}") from exc
    if isinstance(data, Mapping) and "bills" in data:
        data = data["bills"]
    if not isinstance(data, list):
        raise ImportFormatError("expected a list of bills")
    try:
        return [bill_from_dict(item) for item in data]
    except ImportFormatError:
        raise
    except (KeyError, TypeError, ValueError) as exc:
        raise ImportFormatError(f"invalid bill record: {exc}") from exc


def _write_csv(header: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def bills_to_csv(bills: Iterable[Bill], roster: Roster) -> str:
    rows = (
        [
            bill.date.isoformat(),
            bill.name,
            bill.category,
            str(from_cents(bill_total(bill))),
            "; ".join(roster.display_name(code) for code in bill_participants(bill)),
            bill.description,
        ]
        for bill in bills
    )
    return _write_csv(["Date", "Name", "Category", "Amount", "Participants", "Description"], rows)


def entries_to_csv(bill: Bill, roster: Roster) -> str:
    rows = (
        [
            str(from_cents(entry.amount_cents)),
            entry.description,
            roster.display_name(entry.payer),
            "; ".join(roster.display_name(code) for code in entry.participants),
            entry.created_at.isoformat() if entry.created_at else "",
        ]
        for entry in bill.entries
    )
    return _write_csv(["Amount", "Description", "Payer", "Participants", "Date"], rows)


def transfers_to_csv(transfers: Iterable[Transfer], roster: Roster) -> str:
    rows = (
        [roster.display_name(t.from_code), roster.display_name(t.to_code), str(from_cents(t.amount_cents))]
        for t in transfers
    )
    return _write_csv(["From", "To", "Amount"], rows)
