"""Fold bill totals into one net balance per participant.

Positive balance: the group owes this participant. Negative: they owe the
group. The fold is pure and never rejects input; entry validation happens
when entries are built (see ``billshare.services.split``).
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from billshare.db.models import Bill


def effective_totals(bill: Bill) -> Mapping[str, int]:
    """Frozen ``final_totals`` when the bill was finalised, otherwise live totals."""
    if bill.final_totals is not None:
        return bill.final_totals
    return bill.totals or {}


def aggregate(bills: Iterable[Bill], participants: Sequence[str]) -> dict[str, int]:
    balances: dict[str, int] = {code: 0 for code in participants}
    for bill in bills:
        for code, amount in effective_totals(bill).items():
            balances[code] = balances.get(code, 0) + amount
    return balances


def balance_total(balances: Mapping[str, int]) -> int:
    return sum(balances.values())


def is_balanced(balances: Mapping[str, int]) -> bool:
    return balance_total(balances) == 0
