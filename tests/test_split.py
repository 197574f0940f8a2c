from decimal import Decimal

import pytest

from billshare.db.models import SplitType
from billshare.services.roster import Roster
from billshare.db.models import Participant
from billshare.services.split import (
    ShareValidationError,
    build_entry,
    custom_split,
    entry_net,
    percentage_split,
    reconcile_shares,
    resolve_shares,
    split_amount,
)


def test_split_amount_even():
    shares = split_amount(1000, ["A", "B", "C", "D"])
    assert shares == {"A": 250, "B": 250, "C": 250, "D": 250}


def test_split_amount_remainder():
    shares = split_amount(1001, ["A", "B", "C"])
    assert sum(shares.values()) == 1001
    assert sorted(shares.values()) == [333, 334, 334]


def test_split_amount_requires_consumers():
    with pytest.raises(ShareValidationError):
        split_amount(1000, [])


def test_percentage_split_sums_exactly():
    shares = percentage_split(10000, {"A": "33.3", "B": "33.3", "C": "33.4"})
    assert shares == {"A": 3330, "B": 3330, "C": 3340}

    shares = percentage_split(1000, {"A": 33.33, "B": 33.33, "C": 33.34})
    assert sum(shares.values()) == 1000


def test_percentage_split_rejects_bad_total():
    with pytest.raises(ShareValidationError):
        percentage_split(1000, {"A": 50, "B": 40})


def test_percentage_split_rejects_nan():
    with pytest.raises(ShareValidationError):
        percentage_split(1000, {"A": "NaN", "B": 100})


def test_custom_split_absorbs_one_cent():
    shares = custom_split(1000, {"A": "3.33", "B": "3.33", "C": "3.33"})
    assert sum(shares.values()) == 1000


def test_custom_split_rejects_mismatch():
    with pytest.raises(ShareValidationError, match="add up"):
        custom_split(1000, {"A": "5", "B": "4"})


def test_resolve_shares_rejects_unselected_values():
    with pytest.raises(ShareValidationError):
        resolve_shares(SplitType.CUSTOM, 1000, ["A"], {"A": 5, "B": 5})


def test_resolve_shares_unknown_type():
    with pytest.raises(ShareValidationError):
        resolve_shares("weighted", 1000, ["A"])


def test_build_entry_equal():
    entry = build_entry("100", "A", SplitType.EQUAL, ["A", "B", "C"], description=" Pizza ")
    assert entry.amount_cents == 10000
    assert entry.shares == {"A": 3334, "B": 3333, "C": 3333}
    assert entry.description == "Pizza"
    assert entry.participants == ["A", "B", "C"]


def test_build_entry_percentage():
    entry = build_entry(Decimal("250"), "U", "percentage", ["Z", "U"], {"Z": 60, "U": 40})
    assert entry.shares == {"Z": 15000, "U": 10000}


def test_build_entry_checks_roster():
    roster = Roster([Participant(code="A", name="Ann"), Participant(code="B", name="Ben")])
    with pytest.raises(ShareValidationError, match="X"):
        build_entry(10, "X", SplitType.EQUAL, ["A", "B"], roster=roster)


def test_build_entry_rejects_non_positive_amount():
    with pytest.raises(ShareValidationError):
        build_entry(0, "A", SplitType.EQUAL, ["A"])


def test_entry_net_sums_to_zero():
    entry = build_entry(90, "A", SplitType.EQUAL, ["B", "C"])
    net = entry_net(entry)
    assert net == {"B": -4500, "C": -4500, "A": 9000}
    assert sum(net.values()) == 0


def test_reconcile_shares_spreads_rounding():
    assert reconcile_shares({"A": 3333, "B": 3333, "C": 3333}, 10000) == {"A": 3334, "B": 3333, "C": 3333}
    assert reconcile_shares({"A": 3334, "B": 3334}, 6667) == {"A": 3333, "B": 3334}


def test_reconcile_shares_leaves_real_mismatch():
    assert reconcile_shares({"A": 1000, "B": 1000}, 5000) == {"A": 1000, "B": 1000}
