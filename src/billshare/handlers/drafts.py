from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from billshare.config import get_settings
from billshare.db.models import Bill, Entry
from billshare.db.repo import get_global_repository
from billshare.handlers.basic import get_roster
from billshare.keyboards import draft_keyboard
from billshare.logging import get_logger
from billshare.services.bills import (
    BillValidationError,
    add_entry,
    bill_total,
    delete_entry,
    edit_entry,
    finalize_bill,
    new_bill,
    recalculate_totals,
    validate_bill,
)
from billshare.services.roster import Roster, UnknownParticipantError
from billshare.services.settlement import settle
from billshare.services.split import ShareValidationError, build_entry
from billshare.services.summary import format_balances, format_plan
from billshare.state import state
from billshare.utils.money import format_amount
from billshare.utils.parse import EntryCommand, ParseError, parse_entry, parse_entry_command, parse_index_command, parse_new_bill

drafts_router = Router()
log = get_logger(__name__)

NO_DRAFT = "No bill in progress. Start one with /newbill <name>."


def _entry_from_command(command: EntryCommand, roster: Roster) -> Entry:
    payer = command.payer
    if payer not in roster:
        raise UnknownParticipantError(payer)
    participants = roster.parse_codes(command.participants)
    return build_entry(
        command.amount,
        payer,
        command.split_type,
        participants,
        command.values,
        description=command.description,
        roster=roster,
    )


def format_entries(bill: Bill, roster: Roster, currency: str) -> str:
    if not bill.entries:
        return "No expenses yet."
    lines = [f"<b>{bill.name}</b> ({bill.date.isoformat()})"]
    for number, entry in enumerate(bill.entries, start=1):
        shares = ", ".join(
            f"{roster.display_name(code)} {format_amount(share, currency)}" for code, share in entry.shares.items()
        )
        lines.append(
            f"{number}. {format_amount(entry.amount_cents, currency)} {entry.description or ''}"
            f" - paid by {roster.display_name(entry.payer)} ({entry.split_type.value}: {shares})"
        )
    lines.append(f"Total: {format_amount(bill_total(bill), currency)}")
    return "\n".join(lines)


def _draft_status(bill: Bill, roster: Roster, currency: str) -> str:
    return f"{format_entries(bill, roster, currency)}\n\n{format_balances(bill.totals, roster, currency)}"


@drafts_router.message(Command("newbill"))
async def cmd_newbill(message: Message) -> None:
    try:
        command = parse_new_bill(message.text or "")
        bill = new_bill(command.name, command.bill_date, category=command.category)
    except (ParseError, BillValidationError) as exc:
        await message.answer(str(exc))
        return

    recalculate_totals(bill, get_roster().codes())
    state.set_draft(message.chat.id, bill)
    log.info("draft.created", chat_id=message.chat.id, bill_id=bill.id)
    await message.answer(
        f"Started <b>{bill.name}</b> for {bill.date.isoformat()}.\nAdd expenses with /add.",
        reply_markup=draft_keyboard(),
    )


@drafts_router.message(Command("add"))
async def cmd_add(message: Message) -> None:
    bill = state.get_draft(message.chat.id)
    if bill is None:
        await message.answer(NO_DRAFT)
        return

    roster = get_roster()
    try:
        entry = _entry_from_command(parse_entry_command(message.text or ""), roster)
    except (ParseError, ShareValidationError) as exc:
        await message.answer(f"⚠️ {exc}")
        return
    except UnknownParticipantError as exc:
        await message.answer(f"⚠️ Unknown participant: {exc.args[0]}")
        return

    add_entry(bill, entry)
    settings = get_settings()
    await message.answer(
        f"Expense added: {format_amount(entry.amount_cents, settings.currency)} {entry.description}".strip(),
        reply_markup=draft_keyboard(),
    )


@drafts_router.message(Command("edit"))
async def cmd_edit(message: Message) -> None:
    bill = state.get_draft(message.chat.id)
    if bill is None:
        await message.answer(NO_DRAFT)
        return

    roster = get_roster()
    try:
        index, rest = parse_index_command(message.text or "")
        if index > len(bill.entries):
            raise ParseError(f"No entry number {index}")
        entry = _entry_from_command(parse_entry(rest), roster)
        edit_entry(bill, bill.entries[index - 1].id, entry)
    except (ParseError, ShareValidationError, BillValidationError) as exc:
        await message.answer(f"⚠️ {exc}")
        return
    except UnknownParticipantError as exc:
        await message.answer(f"⚠️ Unknown participant: {exc.args[0]}")
        return

    await message.answer(f"Entry {index} updated.", reply_markup=draft_keyboard())


@drafts_router.message(Command("del"))
async def cmd_delete_entry(message: Message) -> None:
    bill = state.get_draft(message.chat.id)
    if bill is None:
        await message.answer(NO_DRAFT)
        return

    try:
        index, _ = parse_index_command(message.text or "")
        if index > len(bill.entries):
            raise ParseError(f"No entry number {index}")
        delete_entry(bill, bill.entries[index - 1].id)
    except (ParseError, BillValidationError) as exc:
        await message.answer(f"⚠️ {exc}")
        return

    await message.answer(f"Entry {index} deleted.", reply_markup=draft_keyboard())


async def show_entries(message: Message, chat_id: int) -> None:
    bill = state.get_draft(chat_id)
    if bill is None:
        await message.answer(NO_DRAFT)
        return
    await message.answer(_draft_status(bill, get_roster(), get_settings().currency), reply_markup=draft_keyboard())


async def recalc_draft(message: Message, chat_id: int) -> None:
    bill = state.get_draft(chat_id)
    if bill is None:
        await message.answer(NO_DRAFT)
        return
    recalculate_totals(bill, get_roster().codes())
    await message.answer("Totals recalculated.\n\n" + format_balances(bill.totals, get_roster(), get_settings().currency))


async def settle_draft(message: Message, chat_id: int) -> None:
    bill = state.get_draft(chat_id)
    if bill is None:
        await message.answer(NO_DRAFT)
        return

    final_totals = finalize_bill(bill, refresh=True)
    plan = settle(final_totals)
    log.info("draft.settled", chat_id=chat_id, bill_id=bill.id, transfers=len(plan.transfers))
    await message.answer(format_plan(plan, get_roster(), get_settings().currency), reply_markup=draft_keyboard())


async def save_draft(message: Message, chat_id: int) -> None:
    bill = state.get_draft(chat_id)
    if bill is None:
        await message.answer(NO_DRAFT)
        return

    try:
        validate_bill(bill)
        finalize_bill(bill)
        await get_global_repository().save_bill(bill)
    except BillValidationError as exc:
        await message.answer(f"⚠️ {exc}")
        return

    state.pop_draft(chat_id)
    await message.answer(f"✅ Bill <b>{bill.name}</b> saved as <code>{bill.id[:8]}</code>.")


@drafts_router.message(Command("entries"))
async def cmd_entries(message: Message) -> None:
    await show_entries(message, message.chat.id)


@drafts_router.message(Command("recalc"))
async def cmd_recalc(message: Message) -> None:
    await recalc_draft(message, message.chat.id)


@drafts_router.message(Command("settle"))
async def cmd_settle(message: Message) -> None:
    await settle_draft(message, message.chat.id)


@drafts_router.message(Command("save"))
async def cmd_save(message: Message) -> None:
    await save_draft(message, message.chat.id)


@drafts_router.callback_query(lambda c: bool(c.data) and c.data.startswith("draft:"))
async def cb_draft(callback: CallbackQuery) -> None:
    if not callback.message:
        await callback.answer()
        return

    chat_id = callback.message.chat.id
    action = callback.data.split(":", 1)[1]
    if action == "entries":
        await show_entries(callback.message, chat_id)
    elif action == "recalc":
        await recalc_draft(callback.message, chat_id)
    elif action == "settle":
        await settle_draft(callback.message, chat_id)
    elif action == "save":
        await save_draft(callback.message, chat_id)
    elif action == "discard":
        state.pop_draft(chat_id)
        await callback.message.answer("Draft discarded.")
    await callback.answer()
