from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class SplitType(str, Enum):
    EQUAL = "equal"
    CUSTOM = "custom"
    PERCENTAGE = "percentage"


@dataclass(slots=True)
class Participant:
    code: str
    name: str
    avatar: str = ""
    color: str = ""


@dataclass(slots=True)
class Entry:
    id: str
    amount_cents: int
    payer: str
    split_type: SplitType
    shares: dict[str, int]
    description: str = ""
    created_at: Optional[datetime] = None

    @property
    def participants(self) -> list[str]:
        return list(self.shares)


@dataclass(slots=True)
class Bill:
    id: str
    name: str
    date: date
    category: str = "other"
    description: str = ""
    entries: list[Entry] = field(default_factory=list)
    totals: dict[str, int] = field(default_factory=dict)
    final_totals: Optional[dict[str, int]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
