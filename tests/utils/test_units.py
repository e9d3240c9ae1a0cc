"""Tests for size and duration formatting."""

import pytest

from parallel_downloader.utils.units import format_binary_bytes, format_elapsed, format_number


class TestFormatBinaryBytes:

    @pytest.mark.parametrize("size, expected", [
        (0, "0 B"),
        (100, "100 B"),
        (1023, "1023 B"),
        (1024, "1.00 KiB"),
        (1536, "1.50 KiB"),
        (5 * 1024 ** 2, "5.00 MiB"),
        (3 * 1024 ** 3, "3.00 GiB"),
    ])
    def test_sizes(self, size, expected):
        assert format_binary_bytes(size) == expected

    def test_negative_is_zero(self):
        assert format_binary_bytes(-5) == "0 B"


class TestFormatElapsed:

    @pytest.mark.parametrize("seconds, expected", [
        (0, "0s"),
        (0.0004, "0s"),
        (0.03, "30ms"),
        (0.05, "50ms"),
        (1.25, "1.25s"),
        (2, "2s"),
        (123, "2m3s"),
        (3605, "1h0m5s"),
    ])
    def test_millisecond_precision(self, seconds, expected):
        assert format_elapsed(seconds) == expected

    @pytest.mark.parametrize("seconds, expected", [
        (0.2, "0s"),
        (0.6, "1s"),
        (59.4, "59s"),
        (61, "1m1s"),
    ])
    def test_second_precision(self, seconds, expected):
        assert format_elapsed(seconds, precision=1) == expected

    def test_negative_is_zero(self):
        assert format_elapsed(-1) == "0s"

    def test_invalid_precision(self):
        with pytest.raises(ValueError):
            format_elapsed(1, precision=0)


def test_format_number():
    assert format_number(1234567) == "1,234,567"
