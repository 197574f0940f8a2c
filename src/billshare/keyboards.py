from __future__ import annotations

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup


def main_menu_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="📋 Previous bills", callback_data="menu:bills")],
            [InlineKeyboardButton(text="⚖️ Group balance", callback_data="menu:balance")],
            [InlineKeyboardButton(text="📊 Spending", callback_data="menu:stats")],
            [InlineKeyboardButton(text="ℹ️ Help", callback_data="menu:help")],
        ]
    )


def draft_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="📝 Entries", callback_data="draft:entries"),
                InlineKeyboardButton(text="🔄 Recalculate", callback_data="draft:recalc"),
            ],
            [
                InlineKeyboardButton(text="🤝 Settle", callback_data="draft:settle"),
                InlineKeyboardButton(text="💾 Save", callback_data="draft:save"),
            ],
            [InlineKeyboardButton(text="🗑 Discard", callback_data="draft:discard")],
        ]
    )


def bill_keyboard(bill_id: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="📤 Share", callback_data=f"bill:share:{bill_id}"),
                InlineKeyboardButton(text="✏️ Edit", callback_data=f"bill:edit:{bill_id}"),
            ],
            [
                InlineKeyboardButton(text="📄 Duplicate", callback_data=f"bill:dup:{bill_id}"),
                InlineKeyboardButton(text="🗑 Delete", callback_data=f"bill:delete:{bill_id}"),
            ],
        ]
    )
