"""Tests for the stored value codec."""

import re
from datetime import date

import pytest

from sentinel_cache.cache.codec import decode, encode


class TestIntegers:
    @pytest.mark.parametrize("value", [0, 1, -1, 42, -9000, 2**63 - 1, -(2**63)])
    def test_integers_are_bare_decimal_text(self, value):
        data = encode(value)
        assert re.fullmatch(rb"-?\d+", data)
        assert data == str(value).encode()
        assert decode(data) == value

    def test_bool_is_not_stored_as_integer(self):
        assert encode(True) == b"true"
        assert decode(encode(True)) is True
        assert decode(encode(False)) is False

    def test_decode_accepts_str(self):
        assert decode("17") == 17


class TestStructuredValues:
    @pytest.mark.parametrize("value", [
        None,
        "hello",
        "",
        3.25,
        [1, "two", None, [3.5]],
        {"name": "Alice", "tags": ["a", "b"], "meta": {"active": True, "score": None}},
    ])
    def test_round_trip(self, value):
        assert decode(encode(value)) == value

    @pytest.mark.parametrize("value", [
        {1: "a", 2: "b"},
        (1, 2),
        {"k": (1, 2)},
        [{"ids": (3, 4)}, {5: None}],
        frozenset({"x", "y"}),
    ])
    def test_values_json_would_alter_keep_their_types(self, value):
        result = decode(encode(value))
        assert result == value
        assert type(result) is type(value)

    def test_json_is_used_for_plain_structures(self):
        assert encode({"a": [1, None]}) == b'{"a": [1, null]}'

    def test_digit_string_written_by_us_stays_a_string(self):
        assert decode(encode("123")) == "123"

    def test_raw_digit_string_reads_as_integer(self):
        # A bare numeral from another writer cannot be told apart from an int
        assert decode(b"123") == 123

    def test_non_json_values_fall_back_to_pickle(self):
        value = {"when": date(2024, 1, 31), "ids": {1, 2}}
        assert decode(encode(value)) == value

    def test_undecodable_data_raises_value_error(self):
        with pytest.raises(ValueError):
            decode(b"\x00garbage")
