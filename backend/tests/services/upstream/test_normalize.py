# backend/tests/services/upstream/test_normalize.py
"""
Tests for upstream payload normalization.

Test Coverage:
- to_float / unwrap primitives
- extract_items: key probing per ResponseShape, singleton unwrapping
- parse_accounts, parse_daily_records, parse_trades, parse_gain
"""

from datetime import date

import pytest

from gateway.services.upstream import (
    ResponseShape,
    extract_items,
    parse_accounts,
    parse_daily_records,
    parse_gain,
    parse_trades,
    to_float,
    unwrap,
)


class TestPrimitives:
    """Tests for to_float and unwrap."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (12, 12.0),
            (1.5, 1.5),
            ("1,234.56", 1234.56),
            (" -3.2 ", -3.2),
            ("", 0.0),
            (None, 0.0),
            ("n/a", 0.0),
            (True, 0.0),
        ],
    )
    def test_to_float(self, value, expected):
        assert to_float(value) == expected

    def test_unwrap_nested_singletons(self):
        assert unwrap([[{"a": 1}]]) == {"a": 1}

    def test_unwrap_leaves_longer_lists(self):
        assert unwrap([1, 2]) == [1, 2]


class TestExtractItems:
    """Tests for extract_items."""

    def test_first_candidate_key_wins(self):
        payload = {"history": [{"id": 1}], "data": [{"id": 2}]}

        assert extract_items(payload, ResponseShape.HISTORY) == [{"id": 1}]

    def test_falls_back_to_later_keys(self):
        payload = {"error": False, "trades": [{"id": 3}]}

        assert extract_items(payload, ResponseShape.HISTORY) == [{"id": 3}]

    def test_bare_list_payload(self):
        assert extract_items([{"id": 1}], ResponseShape.ACCOUNTS) == [{"id": 1}]

    def test_items_wrapped_in_singleton_arrays(self):
        payload = {"dataDaily": [[{"date": "01/01/2024"}], [{"date": "01/02/2024"}]]}

        assert extract_items(payload, ResponseShape.DAILY_DATA) == [
            {"date": "01/01/2024"},
            {"date": "01/02/2024"},
        ]

    def test_missing_list_returns_empty(self):
        assert extract_items({"error": False}, ResponseShape.DAILY_DATA) == []

    def test_non_dict_items_dropped(self):
        assert extract_items({"accounts": [{"id": 1}, "junk", 5]}, ResponseShape.ACCOUNTS) == [{"id": 1}]


class TestParsers:
    """Tests for the record parsers."""

    def test_parse_accounts(self):
        payload = {
            "accounts": [
                {"id": 12345, "name": "Main", "balance": "1,000.50", "profit": 50, "equity": 990,
                 "monthly": "2.5", "gain": 10},
                {"id": "", "name": "No id"},
                {"id": "67890", "balance": 200},
            ]
        }

        accounts = parse_accounts(payload)

        assert [a.id for a in accounts] == ["12345", "67890"]
        assert accounts[0].balance == 1000.5
        assert accounts[0].monthly == 2.5
        assert accounts[1].monthly is None
        assert accounts[1].gain is None
        assert accounts[0].to_dict()["name"] == "Main"

    def test_parse_daily_records_field_variants(self):
        payload = {
            "dataDaily": [
                [{"date": "03/01/2024", "balance": "100", "profit": "5", "pips": 10}],
                [{"date": "03/02/2024", "balance": 110, "profite": 7, "pip": "3"}],
                [{"date": "garbage", "balance": 90}],
            ]
        }

        records = parse_daily_records(payload)

        assert [r.day for r in records] == [date(2024, 3, 1), date(2024, 3, 2), None]
        assert [r.profit for r in records] == [5.0, 7.0, 0.0]
        assert [r.pips for r in records] == [10.0, 3.0, 0.0]
        assert records[2].date == "garbage"

    def test_parse_trades_keeps_raw(self):
        payload = {
            "history": [
                {"openTime": "01/01/2024 10:00", "closeTime": "01/01/2024 12:00", "symbol": "EURUSD"},
                {"open_time": "01/02/2024 09:00"},
            ]
        }

        trades = parse_trades(payload)

        assert trades[0].open_time == "01/01/2024 10:00"
        assert trades[0].to_dict()["symbol"] == "EURUSD"
        assert trades[1].open_time == "01/02/2024 09:00"
        assert trades[1].close_time is None

    @pytest.mark.parametrize(
        "payload, expected",
        [
            ({"error": False, "value": 12.5}, 12.5),
            ({"error": False, "gain": "3.25"}, 3.25),
            ({"error": False, "value": [7]}, 7.0),
            ({"error": False}, 0.0),
            (None, 0.0),
        ],
    )
    def test_parse_gain(self, payload, expected):
        assert parse_gain(payload) == expected
