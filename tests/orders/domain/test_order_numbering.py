"""Tests for order number generation."""

import re
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime

import pytest
from orders.errors import NumberGenerationExhausted
from orders.order.numbering import OrderNumberGenerator

FIXED_DAY = datetime(2026, 5, 14, 23, 59, tzinfo=UTC)


def _clock():
    return FIXED_DAY


def _sequence(*values):
    remaining = list(values)
    return lambda upper: remaining.pop(0)


class TestFormat:
    def test_prefix_date_and_suffix(self):
        generator = OrderNumberGenerator(exists=lambda number: False, clock=_clock, rng=_sequence(42))
        assert generator.generate() == "BB2605140042"

    def test_matches_pattern_with_real_randomness(self):
        generator = OrderNumberGenerator(exists=lambda number: False)
        assert re.fullmatch(r"BB\d{6}\d{4}", generator.generate())

    def test_custom_prefix(self):
        generator = OrderNumberGenerator(exists=lambda number: False, prefix="XY", clock=_clock, rng=_sequence(7))
        assert generator.generate() == "XY2605140007"

    def test_suffix_covers_full_range(self):
        generator = OrderNumberGenerator(exists=lambda number: False, clock=_clock, rng=_sequence(0, 9999))
        assert generator.candidate() == "BB2605140000"
        assert generator.candidate() == "BB2605149999"


class TestCollisions:
    def test_regenerates_until_free(self):
        taken = {"BB2605140001", "BB2605140002"}
        generator = OrderNumberGenerator(exists=taken.__contains__, clock=_clock, rng=_sequence(1, 2, 3))
        assert generator.generate() == "BB2605140003"

    def test_exhausted_after_max_attempts(self):
        checked = []

        def exists(number):
            checked.append(number)
            return True

        generator = OrderNumberGenerator(exists=exists, max_attempts=5, clock=_clock, rng=lambda upper: 1)
        with pytest.raises(NumberGenerationExhausted) as exc_info:
            generator.generate()
        assert len(checked) == 5
        assert exc_info.value.details == {"attempts": 5}

    def test_succeeds_on_last_attempt(self):
        taken = {f"BB260514000{n}" for n in range(4)}
        generator = OrderNumberGenerator(
            exists=taken.__contains__, max_attempts=5, clock=_clock, rng=_sequence(0, 1, 2, 3, 4)
        )
        assert generator.generate() == "BB2605140004"


@pytest.mark.slow
class TestConcurrentGeneration:
    def test_ten_thousand_generations_never_hand_out_a_duplicate(self):
        """Simulates 10,000 placements sharing one day's number space.

        Each worker generates a number and claims it in a store that rejects
        duplicates, regenerating when the claim loses a race. Every number
        that is handed out must be unique, and every attempt must end either
        with a claimed number or a reported exhaustion.
        """
        claimed = set()
        lock = threading.Lock()
        generator = OrderNumberGenerator(exists=claimed.__contains__, clock=_clock)

        def claim(number):
            with lock:
                if number in claimed:
                    return False
                claimed.add(number)
                return True

        def place():
            for _ in range(3):
                try:
                    number = generator.generate()
                except NumberGenerationExhausted:
                    return None
                if claim(number):
                    return number
            return None

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: place(), range(10_000)))

        handed_out = [number for number in results if number is not None]
        exhausted = results.count(None)

        assert len(handed_out) == len(set(handed_out))
        assert set(handed_out) == claimed
        assert len(handed_out) + exhausted == 10_000
        assert all(number.startswith("BB260514") for number in handed_out)
