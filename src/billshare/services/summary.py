from __future__ import annotations

from typing import Iterable, Mapping

from billshare.db.models import Bill
from billshare.services.bills import bill_total
from billshare.services.roster import Roster
from billshare.services.settlement import SettlementPlan, Transfer
from billshare.utils.money import format_amount


def format_transfer(transfer: Transfer, roster: Roster, currency: str) -> str:
    return (
        f"{roster.display_name(transfer.from_code)} → {roster.display_name(transfer.to_code)}: "
        f"{format_amount(transfer.amount_cents, currency)}"
    )


def format_transfers(transfers: Iterable[Transfer], roster: Roster, currency: str) -> list[str]:
    lines = [f"• {format_transfer(t, roster, currency)}" for t in transfers]
    return lines or ["✅ All settled up!"]


def format_balances(balances: Mapping[str, int], roster: Roster, currency: str) -> str:
    lines = []
    for code, amount in balances.items():
        if amount > 0:
            status = "gets back"
        elif amount < 0:
            status = "owes"
        else:
            status = "settled"
        lines.append(f"{roster.label(code)}: {status} {format_amount(abs(amount), currency)}")
    return "\n".join(lines)


def format_plan(plan: SettlementPlan, roster: Roster, currency: str) -> str:
    lines = ["Settlements:", *format_transfers(plan.transfers, roster, currency)]
    if not plan.is_settled:
        lines.append("")
        lines.append("⚠️ Balances do not add up to zero, left unsettled:")
        for code, amount in plan.residual.items():
            lines.append(f"• {roster.display_name(code)}: {format_amount(amount, currency)}")
    return "\n".join(lines)


def format_bill_share_text(bill: Bill, transfers: Iterable[Transfer], roster: Roster, currency: str) -> str:
    lines = [
        f"💸 {bill.name}",
        f"Date: {bill.date.strftime('%d %b %Y')}",
        f"Total: {format_amount(bill_total(bill), currency)}",
        "",
        "Expenses:",
    ]
    for entry in bill.entries:
        lines.append(
            f"• {format_amount(entry.amount_cents, currency)} - {entry.description or 'No description'}"
            f" (paid by {roster.display_name(entry.payer)})"
        )
    lines.append("")
    lines.append("Settlements:")
    lines.extend(format_transfers(transfers, roster, currency))
    return "\n".join(lines)


def format_bill_line(bill: Bill, currency: str) -> str:
    marker = "🔒" if bill.final_totals is not None else "📝"
    return f"{marker} {bill.id[:8]} {bill.date.isoformat()} {bill.name} - {format_amount(bill_total(bill), currency)}"
