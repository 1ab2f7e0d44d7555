"""Tests for regional date parsing."""

from datetime import date

import pytest

from sms_parser_core.date_parser import (
    clean_date_string,
    find_transaction_date,
    parse_compact_month,
    parse_date_string,
    parse_numeric,
    parse_separated_month,
    parse_spelled_month,
)


@pytest.mark.parametrize("value, expected", [
    ("02Dec25", date(2025, 12, 2)),
    ("21-Jun-24", date(2024, 6, 21)),
    ("07-12-25", date(2025, 12, 7)),
    ("15 October 2024", date(2024, 10, 15)),
    ("21/Jun/2024", date(2024, 6, 21)),
    ("15/10/2025", date(2025, 10, 15)),
    ("3 Sept 2024", date(2024, 9, 3)),
])
def test_supported_shapes(value, expected):
    assert parse_date_string(value) == expected


def test_each_interpreter_only_accepts_its_shape():
    assert parse_compact_month("02Dec25") == date(2025, 12, 2)
    assert parse_compact_month("02-Dec-25") is None
    assert parse_separated_month("21-Jun-24") == date(2024, 6, 21)
    assert parse_separated_month("21Jun24") is None
    assert parse_numeric("07-12-25") == date(2025, 12, 7)
    assert parse_numeric("07 Dec 25") is None
    assert parse_spelled_month("15 October 2024") == date(2024, 10, 15)
    assert parse_spelled_month("15-10-2024") is None


@pytest.mark.parametrize("value", ["31-02-25", "45/13/25", "02Xyz25", "not a date", "", None])
def test_unparsable_values_return_none(value):
    assert parse_date_string(value) is None


def test_trailing_punctuation_is_stripped():
    assert clean_date_string("07-12-25.") == "07-12-25"
    assert clean_date_string(" 02Dec25, ") == "02Dec25"
    assert parse_date_string("21-Jun-24;") == date(2024, 6, 21)


def test_first_parsable_candidate_in_message_wins():
    message = "Rs 100 debited on 31-02-25 (value date 02Dec25) ref 99"
    assert find_transaction_date(message) == date(2025, 12, 2)


def test_message_without_date():
    assert find_transaction_date("You received Rs 5000 from RAHUL SHARMA") is None


def test_date_after_amount_and_intent_word():
    # "45 spent 02" looks like a spelled-month date and overlaps the real one
    assert find_transaction_date("Rs 45 spent 02-Dec-25 at STARBUCKS") == date(2025, 12, 2)
