from datetime import date
from decimal import Decimal

import pytest

from billshare.db.models import SplitType
from billshare.utils.parse import (
    ParseError,
    parse_amount,
    parse_date,
    parse_entry,
    parse_entry_command,
    parse_index_command,
    parse_new_bill,
)


def test_parse_amount_formats():
    assert parse_amount("300") == Decimal("300")
    assert parse_amount("₹1,250.50") == Decimal("1250.50")
    assert parse_amount("12,5") == Decimal("12.5")


@pytest.mark.parametrize("text", ["abc", "-5", "0"])
def test_parse_amount_rejects(text):
    with pytest.raises(ParseError):
        parse_amount(text)


def test_parse_date_formats():
    assert parse_date("2024-05-10") == date(2024, 5, 10)
    assert parse_date("10.05.2024") == date(2024, 5, 10)
    with pytest.raises(ParseError):
        parse_date("May 10")


def test_parse_new_bill():
    command = parse_new_bill("/newbill Dinner | 10.05.2024 | Food")
    assert command.name == "Dinner"
    assert command.bill_date == date(2024, 5, 10)
    assert command.category == "food"

    command = parse_new_bill("/newbill Taxi")
    assert command.bill_date is None
    assert command.category == "other"

    with pytest.raises(ParseError):
        parse_new_bill("/newbill")


def test_parse_equal_entry():
    command = parse_entry_command("/add 300 Z ZUM | Pizza night")
    assert command.amount == Decimal("300")
    assert command.payer == "Z"
    assert command.participants == "ZUM"
    assert command.split_type == SplitType.EQUAL
    assert command.values == {}
    assert command.description == "Pizza night"


def test_parse_percentage_entry():
    command = parse_entry("250 U ZU percent Z=60% U=40")
    assert command.split_type == SplitType.PERCENTAGE
    assert command.values == {"Z": Decimal("60"), "U": Decimal("40")}


def test_parse_custom_entry_requires_values():
    with pytest.raises(ParseError):
        parse_entry("100 Z ZU custom")
    with pytest.raises(ParseError):
        parse_entry("100 Z ZU Z=50 U=50")
    with pytest.raises(ParseError):
        parse_entry("100 Z")


def test_parse_index_command():
    assert parse_index_command("/edit 2 300 Z ZU") == (2, "300 Z ZU")
    assert parse_index_command("/del 1") == (1, "")
    with pytest.raises(ParseError):
        parse_index_command("/del x")
    with pytest.raises(ParseError):
        parse_index_command("/del 0")
