"""Tests for metric text formatting."""

import pytest

from usagewidget.formatting import GB, KB, MB, format_cpu, format_memory, format_rate


class TestFormatRate:
    """Tests for format_rate."""

    def test_zero(self):
        """Test a zero rate."""
        assert format_rate(0) == "0.00B/s"

    def test_bytes_band(self):
        """Test rates below one kilobyte stay in B/s."""
        assert format_rate(1023).endswith("B/s")
        assert format_rate(1023) == "1023.00B/s"
        assert format_rate(512.5) == "512.50B/s"

    def test_unit_boundaries(self):
        """Test each unit starts exactly at its power of 1024."""
        assert format_rate(KB) == "1.00KB/s"
        assert format_rate(MB) == "1.00MB/s"
        assert format_rate(GB) == "1.00GB/s"

    def test_gigabytes_is_largest_unit(self):
        """Test rates beyond 1024 GB/s keep the GB/s unit."""
        assert format_rate(2048 * GB) == "2048.00GB/s"

    def test_megabytes(self):
        """Test a typical download rate."""
        assert format_rate(2_500_000) == "2.38MB/s"

    @pytest.mark.parametrize("rate", [-1, -1024.0, float("nan")])
    def test_invalid_rate_clamped_to_zero(self, rate):
        """Test negative and NaN rates render as zero."""
        assert format_rate(rate) == "0.00B/s"

    def test_monotonic_within_band(self):
        """Test the formatted value never decreases within a unit band."""
        rates = [KB + step * 997 for step in range(1000)]
        values = [float(format_rate(rate)[:-4]) for rate in rates]
        assert all(format_rate(rate).endswith("KB/s") for rate in rates)
        assert values == sorted(values)


def test_format_cpu():
    """Test CPU text has two decimals and a percent sign."""
    assert format_cpu(12.3456) == "12.35%"
    assert format_cpu(0) == "0.00%"
    assert format_cpu(100) == "100.00%"


class TestFormatMemory:
    """Tests for format_memory."""

    def test_half_used(self):
        """Test 8GB available out of 16GB."""
        text = format_memory(16 * GB, 8 * GB)
        assert text == "50.00% (8.00GB/16.00GB)"
        assert text.startswith("50.00%")
        assert "8.00GB/16.00GB" in text

    def test_zero_total_is_unknown(self):
        """Test a zero total renders as unknown."""
        assert format_memory(0, 8 * GB) == "unknown (8.00GB available)"

    def test_zero_total_keeps_available_amount(self):
        """Test the absolute amount is still shown without a total."""
        text = format_memory(0, 2 * GB)
        assert text.startswith("unknown")
        assert "2.00GB" in text
        assert "%" not in text

    def test_available_above_total(self):
        """Test used memory never goes negative."""
        assert format_memory(16 * GB, 32 * GB) == "0.00% (0.00GB/16.00GB)"

    def test_nothing_available(self):
        """Test fully used memory."""
        assert format_memory(4 * GB, 0) == "100.00% (4.00GB/4.00GB)"
