from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from billshare.db.models import Bill
from billshare.services.bills import bill_total
from billshare.services.split import merge_shares


@dataclass(slots=True)
class MonthSpending:
    month: str
    total_cents: int
    count: int


def participant_spending(bills: Iterable[Bill], participants: Sequence[str]) -> dict[str, int]:
    """What each participant consumed (their shares), not what they paid."""
    spending = {code: 0 for code in participants}
    consumed = merge_shares(entry.shares for bill in bills for entry in bill.entries)
    for code, amount in consumed.items():
        spending[code] = spending.get(code, 0) + amount
    return spending


def category_spending(bills: Iterable[Bill]) -> dict[str, int]:
    spending: dict[str, int] = {}
    for bill in bills:
        category = bill.category or "other"
        spending[category] = spending.get(category, 0) + bill_total(bill)
    return dict(sorted(spending.items(), key=lambda item: item[1], reverse=True))


def spending_trend(bills: Iterable[Bill]) -> list[MonthSpending]:
    months: dict[str, MonthSpending] = {}
    for bill in bills:
        key = bill.date.strftime("%Y-%m")
        month = months.setdefault(key, MonthSpending(month=key, total_cents=0, count=0))
        month.total_cents += bill_total(bill)
        month.count += 1
    return [months[key] for key in sorted(months)]


def monthly_spending(bills: Iterable[Bill]) -> dict[str, int]:
    return {month.month: month.total_cents for month in spending_trend(bills)}
