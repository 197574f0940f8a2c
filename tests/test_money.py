from decimal import Decimal

import pytest

from billshare.utils.money import format_amount, from_cents, to_cents


def test_to_cents():
    assert to_cents("12.34") == 1234
    assert to_cents(0.1) == 10
    assert to_cents(5) == 500
    assert to_cents(Decimal("0.015")) == 2
    assert to_cents(0.005) == 0
    assert to_cents(-0.005) == 0


@pytest.mark.parametrize("value", ["abc", "NaN", True])
def test_to_cents_rejects(value):
    with pytest.raises(ValueError):
        to_cents(value)


def test_format_amount():
    assert from_cents(1234) == Decimal("12.34")
    assert format_amount(1234, "₹") == "₹12.34"
    assert format_amount(-5, "$") == "-$0.05"
    assert format_amount(0) == "0.00"
