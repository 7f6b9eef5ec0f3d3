"""Unit tests for precision helpers."""

import math

import pytest

from stackfolio.utils.precision import (
    MAX_BASIS_POINTS,
    basis_points_to_percent,
    clamp_percentage,
    percent_to_basis_points,
    percent_to_weight,
    relative_percent,
    round_for_display,
    round_half_up,
    weight_to_percent,
)


class TestRounding:
    """Test cases for rounding helpers."""

    def test_round_half_up_rounds_half_away(self) -> None:
        """Test .5 always rounds up, unlike round()."""
        assert round_half_up(0.25, 1) == pytest.approx(0.3)
        assert round_half_up(2.5) == 3.0
        assert round_half_up(3.5) == 4.0

    def test_round_for_display(self) -> None:
        """Test display rounding keeps one decimal."""
        assert round_for_display(100 / 3) == pytest.approx(33.3)
        assert round_for_display(50 / 3) == pytest.approx(16.7)
        assert round_for_display(25.0) == 25.0


class TestClampPercentage:
    """Test cases for clamp_percentage."""

    def test_in_range_unchanged(self) -> None:
        """Test valid values pass through."""
        assert clamp_percentage(42.5) == 42.5
        assert clamp_percentage(0) == 0.0
        assert clamp_percentage(100) == 100.0

    def test_out_of_range_clamped(self) -> None:
        """Test values outside [0, 100] are clamped."""
        assert clamp_percentage(150) == 100.0
        assert clamp_percentage(-5) == 0.0
        assert clamp_percentage(math.inf) == 100.0

    def test_nan_becomes_zero(self) -> None:
        """Test NaN input becomes 0."""
        assert clamp_percentage(float("nan")) == 0.0

    def test_non_numeric_becomes_zero(self) -> None:
        """Test non-numeric input becomes 0."""
        assert clamp_percentage(None) == 0.0
        assert clamp_percentage("abc") == 0.0

    def test_numeric_string_parsed(self) -> None:
        """Test numeric strings are parsed."""
        assert clamp_percentage("42.5") == 42.5


class TestConversions:
    """Test cases for unit conversions."""

    def test_percent_to_basis_points(self) -> None:
        """Test percentage to basis point conversion."""
        assert percent_to_basis_points(100.0) == MAX_BASIS_POINTS
        assert percent_to_basis_points(25.5) == 2550
        assert percent_to_basis_points(100 / 3) == 3333
        assert percent_to_basis_points(0.0) == 0

    def test_percent_to_basis_points_returns_int(self) -> None:
        """Test basis points are integers."""
        assert isinstance(percent_to_basis_points(12.34), int)

    def test_basis_points_to_percent(self) -> None:
        """Test basis point to percentage conversion."""
        assert basis_points_to_percent(2550) == 25.5
        assert basis_points_to_percent(MAX_BASIS_POINTS) == 100.0

    def test_weight_conversions(self) -> None:
        """Test percentage and weight conversions."""
        assert percent_to_weight(25) == 0.25
        assert weight_to_percent(0.25) == 25.0


class TestRelativePercent:
    """Test cases for relative_percent."""

    def test_share_of_total(self) -> None:
        """Test relative share calculation."""
        assert relative_percent(50, 200) == 25.0

    def test_zero_total(self) -> None:
        """Test zero total never divides by zero."""
        assert relative_percent(1.0, 0.0) == 0.0
        assert relative_percent(0.0, 0.0) == 0.0
