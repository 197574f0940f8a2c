from __future__ import annotations

from datetime import datetime

from aiogram import Bot, F, Router
from aiogram.filters import Command
from aiogram.types import BufferedInputFile, CallbackQuery, Message

from billshare.config import get_settings
from billshare.db.repo import get_global_repository
from billshare.handlers.basic import get_roster
from billshare.keyboards import bill_keyboard, draft_keyboard
from billshare.logging import get_logger
from billshare.services.analytics import category_spending, participant_spending, spending_trend
from billshare.services.balances import aggregate
from billshare.services.bills import duplicate_bill
from billshare.services.export import ImportFormatError, bills_from_json, bills_to_csv, bills_to_json
from billshare.services.settlement import settle, solve
from billshare.services.summary import format_balances, format_bill_line, format_bill_share_text, format_plan
from billshare.state import state
from billshare.utils.money import format_amount

ledger_router = Router()
log = get_logger(__name__)


def _argument(message: Message) -> str:
    parts = (message.text or "").split(maxsplit=1)
    return parts[1].strip() if len(parts) > 1 else ""


async def show_bills(message: Message) -> None:
    bills = await get_global_repository().list_bills()
    if not bills:
        await message.answer("No saved bills yet.")
        return
    currency = get_settings().currency
    lines = ["<b>Saved bills</b>", *(format_bill_line(bill, currency) for bill in bills)]
    lines.append("\nOpen one with /bill id")
    await message.answer("\n".join(lines))


async def show_balance(message: Message) -> None:
    roster = get_roster()
    currency = get_settings().currency
    bills = await get_global_repository().list_bills()
    balances = aggregate(bills, roster.codes())
    plan = settle(balances)
    log.info("balance.settled", bills=len(bills), transfers=len(plan.transfers), settled=plan.is_settled)
    await message.answer(
        f"<b>Group balance over {len(bills)} bills</b>\n\n"
        f"{format_balances(balances, roster, currency)}\n\n"
        f"{format_plan(plan, roster, currency)}"
    )


async def show_stats(message: Message) -> None:
    roster = get_roster()
    currency = get_settings().currency
    bills = await get_global_repository().list_bills()
    if not bills:
        await message.answer("No saved bills yet.")
        return

    lines = ["<b>Consumed per participant</b>"]
    for code, amount in participant_spending(bills, roster.codes()).items():
        lines.append(f"{roster.label(code)}: {format_amount(amount, currency)}")
    lines.append("\n<b>By category</b>")
    for category, amount in category_spending(bills).items():
        lines.append(f"{category}: {format_amount(amount, currency)}")
    lines.append("\n<b>By month</b>")
    for month in spending_trend(bills)[-12:]:
        lines.append(f"{month.month}: {format_amount(month.total_cents, currency)} ({month.count} bills)")
    await message.answer("\n".join(lines))


@ledger_router.message(Command("bills"))
async def cmd_bills(message: Message) -> None:
    await show_bills(message)


@ledger_router.message(Command("bill"))
async def cmd_bill(message: Message) -> None:
    bill_id = _argument(message)
    if not bill_id:
        await message.answer("Usage: /bill id")
        return
    bill = await get_global_repository().get_bill(bill_id)
    if bill is None:
        await message.answer("Bill not found.")
        return

    roster = get_roster()
    currency = get_settings().currency
    totals = bill.final_totals if bill.final_totals is not None else bill.totals
    await message.answer(
        f"{format_bill_line(bill, currency)}\n\n{format_balances(totals, roster, currency)}",
        reply_markup=bill_keyboard(bill.id),
    )


@ledger_router.message(Command("share"))
async def cmd_share(message: Message) -> None:
    await share_bill(message, _argument(message))


async def share_bill(message: Message, bill_id: str) -> None:
    bill = await get_global_repository().get_bill(bill_id) if bill_id else None
    if bill is None:
        await message.answer("Bill not found.")
        return
    totals = bill.final_totals if bill.final_totals is not None else bill.totals
    text = format_bill_share_text(bill, solve(totals), get_roster(), get_settings().currency)
    await message.answer(text)


async def delete_saved_bill(message: Message, bill_id: str) -> None:
    repo = get_global_repository()
    bill = await repo.get_bill(bill_id) if bill_id else None
    if bill is None or not await repo.delete_bill(bill.id):
        await message.answer("Bill not found.")
        return
    await message.answer(f"Bill <b>{bill.name}</b> deleted.")


@ledger_router.message(Command("deletebill"))
async def cmd_deletebill(message: Message) -> None:
    await delete_saved_bill(message, _argument(message))


@ledger_router.message(Command("balance"))
async def cmd_balance(message: Message) -> None:
    await show_balance(message)


@ledger_router.message(Command("stats"))
async def cmd_stats(message: Message) -> None:
    await show_stats(message)


@ledger_router.message(Command("export"))
async def cmd_export(message: Message) -> None:
    fmt = (_argument(message) or "json").lower()
    if fmt not in {"json", "csv"}:
        await message.answer("Usage: /export json|csv")
        return

    bills = await get_global_repository().list_bills()
    if not bills:
        await message.answer("No saved bills to export.")
        return

    stamp = datetime.now().strftime("%Y-%m-%d")
    if fmt == "json":
        payload = bills_to_json(bills)
    else:
        payload = bills_to_csv(bills, get_roster())
    document = BufferedInputFile(payload.encode("utf-8"), filename=f"bills_{stamp}.{fmt}")
    await message.answer_document(document, caption=f"{len(bills)} bills")


@ledger_router.message(Command("import"))
async def cmd_import(message: Message) -> None:
    state.set_pending_import(message.chat.id)
    await message.answer("Send the exported JSON file. It replaces all saved bills.")


@ledger_router.message(F.document)
async def on_document(message: Message, bot: Bot) -> None:
    if not state.is_pending_import(message.chat.id) or not message.document:
        return
    state.clear_pending_import(message.chat.id)

    buffer = await bot.download(message.document)
    if buffer is None:
        await message.answer("Could not download the file.")
        return
    try:
        bills = bills_from_json(buffer.read())
    except ImportFormatError as exc:
        await message.answer(f"⚠️ Import failed: {exc}")
        return

    count = await get_global_repository().replace_all(bills)
    await message.answer(f"Imported {count} bills.")


@ledger_router.callback_query(lambda c: c.data in {"menu:bills", "menu:balance", "menu:stats"})
async def cb_menu(callback: CallbackQuery) -> None:
    if callback.message:
        if callback.data == "menu:bills":
            await show_bills(callback.message)
        elif callback.data == "menu:balance":
            await show_balance(callback.message)
        else:
            await show_stats(callback.message)
    await callback.answer()


@ledger_router.callback_query(lambda c: bool(c.data) and c.data.startswith("bill:"))
async def cb_bill(callback: CallbackQuery) -> None:
    if not callback.message:
        await callback.answer()
        return

    _, action, bill_id = callback.data.split(":", 2)
    repo = get_global_repository()
    message = callback.message

    if action == "share":
        await share_bill(message, bill_id)
    elif action == "delete":
        await delete_saved_bill(message, bill_id)
    elif action == "dup":
        bill = await repo.get_bill(bill_id)
        if bill is None:
            await message.answer("Bill not found.")
        else:
            copy = duplicate_bill(bill)
            state.set_draft(message.chat.id, copy)
            await message.answer(f"Draft <b>{copy.name}</b> created from the bill.", reply_markup=draft_keyboard())
    elif action == "edit":
        bill = await repo.get_bill(bill_id)
        if bill is None:
            await message.answer("Bill not found.")
        else:
            state.set_draft(message.chat.id, bill)
            await message.answer(
                f"Editing <b>{bill.name}</b>. Its settled totals stay frozen until you /settle again.",
                reply_markup=draft_keyboard(),
            )
    await callback.answer()
