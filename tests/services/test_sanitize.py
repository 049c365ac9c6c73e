"""Tests for inbound text normalization and count clamping."""

from __future__ import annotations

import math

import pytest

from services.generation.sanitize import clamp_count, normalize, pick_choice


class TestNormalize:
    def test_strips_backslashes_backticks_and_whitespace(self) -> None:
        assert normalize("  ```photo\\synthesis```  ") == "photosynthesis"

    @pytest.mark.parametrize("raw", [None, "", "   ", "``", "\\\\"])
    def test_empty_like_input_gives_empty_string(self, raw) -> None:
        assert normalize(raw) == ""

    def test_non_string_scalars_are_stringified(self) -> None:
        assert normalize(42) == "42"

    @pytest.mark.parametrize(
        "raw",
        ["plain", "  padded  ", " `\\ ` inner ", "a\\ b", "\t`x`\n", " \\ "],
    )
    def test_is_idempotent(self, raw: str) -> None:
        once = normalize(raw)
        assert normalize(once) == once

    def test_removal_never_exposes_outer_whitespace(self) -> None:
        # Removing the backtick would leave a leading space if trimming came first
        assert normalize("` leading") == "leading"


class TestClampCount:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (5, 5),
            (0, 1),
            (-3, 1),
            (99, 20),
            ("5", 5),
            ("5.9", 5),
            (7.8, 7),
            (" 12 ", 12),
        ],
    )
    def test_numbers_are_truncated_and_clamped(self, value, expected: int) -> None:
        assert clamp_count(value, 1, 20, 10) == expected

    @pytest.mark.parametrize(
        "value", [None, "abc", "", True, False, math.nan, math.inf, -math.inf, [3], {}]
    )
    def test_non_numeric_values_take_default(self, value) -> None:
        assert clamp_count(value, 1, 20, 10) == 10

    def test_default_is_clamped_into_range(self) -> None:
        assert clamp_count(None, 1, 5, 50) == 5
        assert clamp_count("junk", 10, 20, 0) == 10

    def test_huge_integers_do_not_overflow(self) -> None:
        assert clamp_count(10**400, 1, 20, 10) == 20

    @pytest.mark.parametrize("value", [-(10**9), -1, 0, 1, 3, 19, 20, 21, 10**9])
    def test_result_is_always_within_bounds(self, value: int) -> None:
        assert 1 <= clamp_count(value, 1, 20, 10) <= 20

    def test_inverted_range_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            clamp_count(3, 10, 1, 5)


class TestPickChoice:
    def test_known_values_are_lower_cased(self) -> None:
        assert pick_choice(" KID ", ("kid", "teen"), "teen") == "kid"

    def test_unknown_values_take_default(self) -> None:
        assert pick_choice("toddler", ("kid", "teen"), "teen") == "teen"
        assert pick_choice(None, ("kid", "teen"), "teen") == "teen"
