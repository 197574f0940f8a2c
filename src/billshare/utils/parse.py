from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from billshare.db.models import SplitType

SPLIT_ALIASES = {
    "equal": SplitType.EQUAL,
    "eq": SplitType.EQUAL,
    "custom": SplitType.CUSTOM,
    "amount": SplitType.CUSTOM,
    "percent": SplitType.PERCENTAGE,
    "percentage": SplitType.PERCENTAGE,
    "pct": SplitType.PERCENTAGE,
}

DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y", "%d-%m-%Y")

_VALUE_RE = re.compile(r"^(\w+)[=:]([\d.,]+)%?$")


class ParseError(ValueError):
    pass


@dataclass(slots=True)
class EntryCommand:
    amount: Decimal
    payer: str
    participants: str
    split_type: SplitType = SplitType.EQUAL
    values: dict[str, Decimal] = field(default_factory=dict)
    description: str = ""


@dataclass(slots=True)
class NewBillCommand:
    name: str
    bill_date: Optional[date] = None
    category: str = "other"


def parse_amount(text: str) -> Decimal:
    cleaned = text.strip().lstrip("₹$€£").replace(" ", "")
    if "," in cleaned and "." not in cleaned:
        cleaned = cleaned.replace(",", ".")
    else:
        cleaned = cleaned.replace(",", "")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation as exc:
        raise ParseError(f"Invalid amount: {text}") from exc
    if not amount.is_finite() or amount <= 0:
        raise ParseError("Amount must be a positive number")
    return amount


def parse_date(text: str) -> date:
    value = text.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise ParseError("Expected a date like 2024-05-10 or 10.05.2024")


def _command_body(text: str) -> str:
    parts = text.strip().split(maxsplit=1)
    if parts and parts[0].startswith("/"):
        return parts[1] if len(parts) > 1 else ""
    return text.strip()


def parse_new_bill(text: str) -> NewBillCommand:
    """``/newbill Dinner | 2024-05-10 | food``; date and category are optional."""
    parts = [part.strip() for part in _command_body(text).split("|")]
    if not parts or not parts[0]:
        raise ParseError("Usage: /newbill <name> | [date] | [category]")

    bill_date = parse_date(parts[1]) if len(parts) > 1 and parts[1] else None
    category = parts[2].lower() if len(parts) > 2 and parts[2] else "other"
    return NewBillCommand(name=parts[0], bill_date=bill_date, category=category)


def parse_entry(text: str) -> EntryCommand:
    """Parse ``<amount> <payer> <codes> [split] [CODE=value ...] | [description]``.

    Examples::

        300 Z ZUM | Pizza
        300 Z ZUM custom Z=100 U=150 M=50 | Groceries
        250 U ZU percent Z=60 U=40
    """
    head, _, description = text.partition("|")
    tokens = head.split()
    if len(tokens) < 3:
        raise ParseError("Usage: <amount> <payer> <participants> [equal|custom|percent] [CODE=value ...] | [description]")

    amount = parse_amount(tokens[0])
    payer, participants = tokens[1], tokens[2]

    split_type = SplitType.EQUAL
    rest = tokens[3:]
    if rest and rest[0].lower() in SPLIT_ALIASES:
        split_type = SPLIT_ALIASES[rest[0].lower()]
        rest = rest[1:]

    values: dict[str, Decimal] = {}
    for token in rest:
        match = _VALUE_RE.match(token)
        if not match:
            raise ParseError(f"Expected CODE=value, got {token!r}")
        try:
            values[match.group(1)] = Decimal(match.group(2).replace(",", "."))
        except InvalidOperation as exc:
            raise ParseError(f"Invalid value in {token!r}") from exc

    if split_type == SplitType.EQUAL and values:
        raise ParseError("Equal split takes no per-participant values")
    if split_type != SplitType.EQUAL and not values:
        raise ParseError(f"{split_type.value} split needs CODE=value for each participant")

    return EntryCommand(
        amount=amount,
        payer=payer,
        participants=participants,
        split_type=split_type,
        values=values,
        description=description.strip(),
    )


def parse_entry_command(text: str) -> EntryCommand:
    return parse_entry(_command_body(text))


def parse_index_command(text: str) -> tuple[int, str]:
    """``/edit 2 300 Z ZU`` -> ``(2, "300 Z ZU")``; indexes are 1-based."""
    parts = _command_body(text).split(maxsplit=1)
    if not parts:
        raise ParseError("Entry number is required")
    try:
        index = int(parts[0])
    except ValueError as exc:
        raise ParseError(f"Invalid entry number: {parts[0]}") from exc
    if index < 1:
        raise ParseError("Entry numbers start at 1")
    return index, parts[1] if len(parts) > 1 else ""
