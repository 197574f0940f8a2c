from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import CallbackQuery, Message

from billshare.config import get_settings
from billshare.keyboards import main_menu_keyboard
from billshare.services.roster import Roster
from billshare.state import state

basic_router = Router()

HELP_TEXT = (
    "<b>Composing a bill</b>\n"
    "/newbill name | [date] | [category] - start a draft\n"
    "/add amount payer codes [equal|custom|percent] [CODE=value ...] | [description]\n"
    "/entries - list draft entries\n"
    "/edit n amount payer codes ... - replace entry n\n"
    "/del n - delete entry n\n"
    "/recalc - rebuild totals from entries\n"
    "/settle - freeze totals and show who pays whom\n"
    "/save - store the draft\n\n"
    "<b>Saved bills</b>\n"
    "/bills, /bill id, /share id, /deletebill id\n"
    "/balance - settle all saved bills\n"
    "/stats - spending by participant, category and month\n"
    "/export json|csv, /import\n\n"
    "<b>Examples</b>\n"
    "<code>/add 300 Z ZUM | Pizza</code>\n"
    "<code>/add 250 U ZU percent Z=60 U=40 | Taxi</code>"
)


def get_roster() -> Roster:
    return Roster.from_settings(get_settings())


def roster_text(roster: Roster) -> str:
    return "\n".join(f"<code>{p.code}</code> {p.avatar} {p.name}" for p in roster)


@basic_router.message(CommandStart())
async def cmd_start(message: Message) -> None:
    state.clear_chat(message.chat.id)
    await message.answer(
        "💸 <b>Bill splitter</b>\n\n"
        "Participants:\n"
        f"{roster_text(get_roster())}\n\n"
        "Start a bill with /newbill or see /help.",
        reply_markup=main_menu_keyboard(),
    )


@basic_router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)


@basic_router.callback_query(lambda c: c.data == "menu:help")
async def cb_menu_help(callback: CallbackQuery) -> None:
    if callback.message:
        await callback.message.answer(HELP_TEXT)
    await callback.answer()
