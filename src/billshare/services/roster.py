from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Iterator

from billshare.db.models import Participant

if TYPE_CHECKING:
    from billshare.config import Settings


class UnknownParticipantError(KeyError):
    pass


class Roster:
    """Ordered, immutable set of the group's participants."""

    def __init__(self, participants: Iterable[Participant]) -> None:
        self._participants: dict[str, Participant] = {}
        for participant in participants:
            if participant.code in self._participants:
                raise ValueError(f"duplicate participant code: {participant.code}")
            self._participants[participant.code] = participant

    @classmethod
    def from_settings(cls, settings: "Settings") -> "Roster":
        return cls(
            Participant(code=item.code, name=item.name, avatar=item.avatar, color=item.color)
            for item in settings.roster
        )

    def codes(self) -> list[str]:
        return list(self._participants)

    def get(self, code: str) -> Participant:
        try:
            return self._participants[code]
        except KeyError:
            raise UnknownParticipantError(code) from None

    def display_name(self, code: str) -> str:
        participant = self._participants.get(code)
        return participant.name if participant else code

    def label(self, code: str) -> str:
        participant = self._participants.get(code)
        if participant is None:
            return code
        return f"{participant.avatar} {participant.name}".strip()

    def parse_codes(self, text: str) -> list[str]:
        """``"ZUM"`` -> ``["Z", "U", "M"]``.

        Separated text (``"Z,U"`` or ``"Z U"``) is split on the separators so
        multi-letter codes work too; otherwise each character is one code.
        """
        text = text.strip()
        if "," in text or " " in text:
            tokens = [token for token in text.replace(",", " ").split() if token]
        else:
            tokens = list(text)

        codes: list[str] = []
        for token in tokens:
            if token not in self._participants:
                raise UnknownParticipantError(token)
            if token not in codes:
                codes.append(token)
        return codes

    def __contains__(self, code: object) -> bool:
        return code in self._participants

    def __iter__(self) -> Iterator[Participant]:
        return iter(self._participants.values())

    def __len__(self) -> int:
        return len(self._participants)
