"""
Unit tests for candidate-path field extraction.

Covers:
- dotted path traversal over missing / non-dict intermediates
- lenient numeric parsing (strings, percent suffixes, NaN/inf, booleans)
- first-match-wins ordering across several payloads
"""

import pytest

from stock_screener.data.extractors import (
    dig,
    extract_int,
    extract_number,
    extract_text,
    parse_float,
)


class TestDig:
    def test_nested_path(self):
        assert dig({"a": {"b": {"c": 5}}}, "a.b.c") == 5

    def test_missing_intermediate_key(self):
        assert dig({"a": {}}, "a.b.c") is None

    def test_non_dict_intermediate(self):
        assert dig({"a": [1, 2]}, "a.b") is None
        assert dig({"a": "text"}, "a.b") is None

    def test_none_source(self):
        assert dig(None, "a") is None

    def test_list_source(self):
        assert dig([{"a": 1}], "a") is None


class TestParseFloat:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (12, 12.0),
            (0, 0.0),
            (-3.5, -3.5),
            ("175.43", 175.43),
            ("  28.5 ", 28.5),
            ("28.5%", 28.5),
            ("1e3", 1000.0),
            ("2,800,000", 2800000.0),
            ("-4.2", -4.2),
        ],
    )
    def test_parseable(self, value, expected):
        assert parse_float(value) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "value",
        [None, True, False, "", "N/A", "abc", float("nan"), float("inf"), "inf", {}, [1]],
    )
    def test_unparseable(self, value):
        assert parse_float(value) is None


class TestExtractNumber:
    def test_first_resolving_candidate_wins(self):
        stats = {"valuation": {"pe_ratio": "22"}, "pe_ratio": 30}
        result = extract_number([(stats, "valuations_metrics.pe_ratio"), (stats, "valuation.pe_ratio"), (stats, "pe_ratio")])
        assert result == 22.0

    def test_unparseable_value_falls_through(self):
        stats = {"pe_ratio": "N/A", "valuation": {"pe_ratio": 18.2}}
        assert extract_number([(stats, "pe_ratio"), (stats, "valuation.pe_ratio")]) == 18.2

    def test_zero_is_a_resolved_value(self):
        quote = {"close": 0, "price": 50}
        assert extract_number([(quote, "close"), (quote, "price")]) == 0.0

    def test_walks_across_sources(self):
        statistics = {}
        quote = {"pe_ratio": "14.1"}
        assert extract_number([(statistics, "pe_ratio"), (quote, "pe_ratio")]) == 14.1

    def test_default_when_nothing_resolves(self):
        assert extract_number([({}, "a"), (None, "b")]) == 0.0
        assert extract_number([], default=-1.0) == -1.0


class TestExtractInt:
    def test_truncates(self):
        assert extract_int([({"years": "4.7"}, "years")]) == 4

    def test_default(self):
        assert extract_int([({}, "years")]) == 1


class TestExtractText:
    def test_skips_blank_and_non_string(self):
        profile = {"name": "  ", "longName": 42, "title": " Apple Inc. "}
        result = extract_text([(profile, "name"), (profile, "longName"), (profile, "title")])
        assert result == "Apple Inc."

    def test_default(self):
        assert extract_text([({}, "name")], default="X Inc.") == "X Inc."
