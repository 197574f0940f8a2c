import pytest

from billshare.config import Settings
from billshare.db.models import Participant
from billshare.services.roster import Roster, UnknownParticipantError


def _roster() -> Roster:
    return Roster(
        [
            Participant(code="Z", name="Zeshan", avatar="👨‍💼"),
            Participant(code="U", name="Umam"),
            Participant(code="M", name="Rasool"),
        ]
    )


def test_codes_keep_order():
    roster = _roster()
    assert roster.codes() == ["Z", "U", "M"]
    assert len(roster) == 3
    assert "U" in roster
    assert "Q" not in roster


def test_lookup_and_display():
    roster = _roster()
    assert roster.get("Z").name == "Zeshan"
    assert roster.display_name("Q") == "Q"
    assert roster.label("Z") == "👨‍💼 Zeshan"
    with pytest.raises(UnknownParticipantError):
        roster.get("Q")


def test_parse_codes():
    roster = _roster()
    assert roster.parse_codes("ZUZ") == ["Z", "U"]
    assert roster.parse_codes("M, Z") == ["M", "Z"]
    with pytest.raises(UnknownParticipantError):
        roster.parse_codes("ZX")


def test_duplicate_codes_rejected():
    with pytest.raises(ValueError):
        Roster([Participant(code="Z", name="a"), Participant(code="Z", name="b")])


def test_from_settings_default_group():
    roster = Roster.from_settings(Settings(_env_file=None))
    assert roster.codes() == ["Z", "U", "M", "B", "A"]
