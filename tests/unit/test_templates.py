"""Unit tests for built-in portfolio templates."""

import pytest

from stackfolio.portfolio.base import Holding
from stackfolio.portfolio.serialization import SerializedPortfolio
from stackfolio.portfolio.templates import (
    DEFAULT_SAVED_PORTFOLIOS,
    EXAMPLE_PORTFOLIOS,
    create_portfolio,
    find_template,
    merge_saved_portfolios,
)
from stackfolio.utils.exceptions import AllocationError


class TestCreatePortfolio:
    """Test cases for create_portfolio."""

    def test_keeps_order(self) -> None:
        """Test holdings keep the given order."""
        portfolio = create_portfolio("HFEA", [("UPRO", 55), ("TMF", 45)])

        assert list(portfolio.holdings) == ["UPRO", "TMF"]
        assert portfolio.holdings["UPRO"] == Holding(55.0)

    def test_total_must_be_100(self) -> None:
        """Test totals off by more than 0.01 are rejected."""
        with pytest.raises(AllocationError, match="must add up to 100%"):
            create_portfolio("Bad", [("UPRO", 55), ("TMF", 40)])

    def test_duplicate_ticker(self) -> None:
        """Test a ticker may appear only once."""
        with pytest.raises(AllocationError, match="lists UPRO twice"):
            create_portfolio("Bad", [("UPRO", 50), ("UPRO", 50)])


class TestBuiltInTemplates:
    """Test cases for the shipped templates."""

    @pytest.mark.parametrize(
        "portfolio",
        EXAMPLE_PORTFOLIOS + DEFAULT_SAVED_PORTFOLIOS,
        ids=lambda p: p.name,
    )
    def test_adds_up_to_100(self, portfolio) -> None:
        """Test every template is fully allocated."""
        total = sum(h.percentage for h in portfolio.holdings.values())

        assert total == pytest.approx(100.0, abs=0.01)

    def test_template_names(self) -> None:
        """Test the shipped template names."""
        assert [p.name for p in EXAMPLE_PORTFOLIOS] == [
            "SSO/ZROZ/GLD",
            "HFEA",
            "Return Stacked® Max",
            "Value Barbell",
        ]
        assert len(DEFAULT_SAVED_PORTFOLIOS) == 4

    def test_find_template(self) -> None:
        """Test lookup by name over both lists."""
        assert find_template("HFEA").holdings["UPRO"].percentage == 55.0
        assert find_template("HFEA Tamed") is DEFAULT_SAVED_PORTFOLIOS[2]
        assert find_template("Missing") is None
        assert find_template("HFEA", templates=DEFAULT_SAVED_PORTFOLIOS) is None


class TestMergeSavedPortfolios:
    """Test cases for merge_saved_portfolios."""

    def test_defaults_first(self) -> None:
        """Test defaults precede user portfolios."""
        mine = SerializedPortfolio("Mine", [("VOO", Holding(100.0))], created_at=5)

        merged = merge_saved_portfolios([mine], created_at=1)

        assert [p.name for p in merged] == [
            p.name for p in DEFAULT_SAVED_PORTFOLIOS
        ] + ["Mine"]
        assert merged[0].created_at == 1
        assert merged[-1] is mine

    def test_user_overrides_default(self) -> None:
        """Test a user portfolio replaces the default of the same name."""
        mine = SerializedPortfolio("HFEA Tamed", [("SSO", Holding(100.0))])

        merged = merge_saved_portfolios([mine])
        names = [p.name for p in merged]

        assert names.count("HFEA Tamed") == 1
        assert merged[-1] is mine
        assert len(merged) == len(DEFAULT_SAVED_PORTFOLIOS)
