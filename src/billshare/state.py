"""Per-chat drafting state of the bot."""

from __future__ import annotations

from typing import Optional

from billshare.db.models import Bill


class UserStateManager:
    def __init__(self) -> None:
        self._draft_bills: dict[int, Bill] = {}
        self._pending_import: dict[int, bool] = {}

    def set_draft(self, chat_id: int, bill: Bill) -> None:
        self._draft_bills[chat_id] = bill

    def get_draft(self, chat_id: int) -> Optional[Bill]:
        return self._draft_bills.get(chat_id)

    def pop_draft(self, chat_id: int) -> Optional[Bill]:
        return self._draft_bills.pop(chat_id, None)

    def set_pending_import(self, chat_id: int) -> None:
        self._pending_import[chat_id] = True

    def is_pending_import(self, chat_id: int) -> bool:
        return self._pending_import.get(chat_id, False)

    def clear_pending_import(self, chat_id: int) -> None:
        self._pending_import.pop(chat_id, None)

    def clear_chat(self, chat_id: int) -> None:
        self._draft_bills.pop(chat_id, None)
        self._pending_import.pop(chat_id, None)


state = UserStateManager()
