"""Unit tests for ExposureEngine."""

import pandas as pd
import pytest

from stackfolio.analysis.exposure import ExposureEngine, PortfolioAnalysis
from stackfolio.catalog.base import (
    AssetClass,
    ExposureKey,
    FactorStyle,
    LeverageType,
    MarketRegion,
    SizeFactor,
)
from stackfolio.catalog.etf_catalog import EtfCatalog
from stackfolio.portfolio.base import Holding, Portfolio
from stackfolio.utils.exceptions import DataIntegrityError


US_LARGE_BLEND = ExposureKey(
    AssetClass.EQUITY, MarketRegion.US, FactorStyle.BLEND, SizeFactor.LARGE_CAP
)


@pytest.fixture
def engine(catalog: EtfCatalog) -> ExposureEngine:
    """Exposure engine over the test catalog."""
    return ExposureEngine(catalog)


@pytest.fixture
def global_60_40() -> Portfolio:
    """Half global equity, half treasuries."""
    return Portfolio("Global", {"VT": Holding(50.0), "TLT": Holding(50.0)})


class TestAnalyze:
    """Test cases for ExposureEngine.analyze."""

    def test_weighted_exposures(self, engine: ExposureEngine, global_60_40: Portfolio) -> None:
        """Test ETF exposures are scaled by holding weight."""
        analysis = engine.analyze(global_60_40)

        assert analysis.exposures[US_LARGE_BLEND] == pytest.approx(0.3)
        intl = ExposureKey(
            AssetClass.EQUITY,
            MarketRegion.INTERNATIONAL_DEVELOPED,
            FactorStyle.BLEND,
            SizeFactor.LARGE_CAP,
        )
        assert analysis.exposures[intl] == pytest.approx(0.15)
        assert analysis.exposures[ExposureKey(AssetClass.US_TREASURIES)] == pytest.approx(0.5)
        assert analysis.asset_class_totals[AssetClass.EQUITY] == pytest.approx(0.5)
        assert analysis.total_leverage == pytest.approx(1.0)
        assert not analysis.is_levered
        assert analysis.data_errors == []

    def test_levered_portfolio(self, engine: ExposureEngine) -> None:
        """Test leverage above 1.0 is reported."""
        portfolio = Portfolio("HFEA", {"UPRO": Holding(55.0), "TLT": Holding(45.0)})

        analysis = engine.analyze(portfolio)

        assert analysis.total_leverage == pytest.approx(2.1)
        assert analysis.is_levered

    def test_empty_portfolio(self, engine: ExposureEngine) -> None:
        """Test an empty portfolio analyzes to zeros."""
        analysis = engine.analyze(Portfolio("Empty"))

        assert analysis.exposures == {}
        assert analysis.total_leverage == 0.0
        assert not analysis.is_levered

    def test_missing_ticker_recorded(self, engine: ExposureEngine) -> None:
        """Test unknown tickers are skipped and recorded."""
        portfolio = Portfolio("P", {"VT": Holding(50.0), "XYZ": Holding(50.0)})

        analysis = engine.analyze(portfolio)

        assert analysis.total_leverage == pytest.approx(0.5)
        assert analysis.skipped_tickers == ["XYZ"]
        assert isinstance(analysis.data_errors[0], DataIntegrityError)

    def test_disabled_holdings_skipped(self, engine: ExposureEngine) -> None:
        """Test disabled holdings contribute nothing."""
        portfolio = Portfolio(
            "P", {"TLT": Holding(100.0), "SSO": Holding(50.0, disabled=True)}
        )

        analysis = engine.analyze(portfolio)

        assert set(analysis.asset_class_totals) == {AssetClass.US_TREASURIES}
        assert analysis.total_leverage == pytest.approx(1.0)

    def test_is_levered_tolerates_float_noise(self) -> None:
        """Test sums a hair over 1.0 are not levered."""
        assert not PortfolioAnalysis(total_leverage=1.0 + 1e-12).is_levered
        assert PortfolioAnalysis(total_leverage=1.01).is_levered


class TestDimensions:
    """Test cases for dimension aggregation and breakdowns."""

    def test_market_region(self, engine: ExposureEngine, global_60_40: Portfolio) -> None:
        """Test regions only cover equity exposure."""
        totals = engine.aggregate_by_dimension(global_60_40, "market_region")

        assert set(totals) == {
            MarketRegion.US,
            MarketRegion.INTERNATIONAL_DEVELOPED,
            MarketRegion.EMERGING,
        }
        assert totals[MarketRegion.EMERGING] == pytest.approx(0.05)

    def test_size_factor(self, engine: ExposureEngine) -> None:
        """Test size aggregation."""
        portfolio = Portfolio("P", {"VT": Holding(50.0), "AVUV": Holding(50.0)})

        totals = engine.aggregate_by_dimension(portfolio, "size_factor")

        assert totals[SizeFactor.LARGE_CAP] == pytest.approx(0.5)
        assert totals[SizeFactor.SMALL_CAP] == pytest.approx(0.5)

    def test_unknown_dimension(self, engine: ExposureEngine, global_60_40: Portfolio) -> None:
        """Test unknown dimension is rejected."""
        with pytest.raises(ValueError, match="dimension must be one of"):
            engine.aggregate_by_dimension(global_60_40, "sector")

    def test_breakdown_order_and_percentages(
        self, engine: ExposureEngine, global_60_40: Portfolio
    ) -> None:
        """Test buckets sort by amount then name."""
        buckets = engine.breakdown(global_60_40, "asset_class")

        assert [b.name for b in buckets] == ["Equity", "U.S. Treasuries"]
        assert buckets[0].absolute_percent == pytest.approx(50.0)
        assert buckets[0].relative_percent == pytest.approx(50.0)

    def test_breakdown_ties_ignore_float_noise(
        self,
        engine: ExposureEngine,
        global_60_40: Portfolio,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test amounts equal up to rounding error fall back to name order."""
        monkeypatch.setattr(
            engine,
            "aggregate_by_dimension",
            lambda portfolio, dimension: {
                AssetClass.US_TREASURIES: 0.5,
                AssetClass.EQUITY: 0.49999999999999994,
            },
        )

        buckets = engine.breakdown(global_60_40, "asset_class")

        assert [b.name for b in buckets] == ["Equity", "U.S. Treasuries"]

    def test_breakdown_empty(self, engine: ExposureEngine) -> None:
        """Test an empty portfolio has no buckets."""
        assert engine.breakdown(Portfolio("Empty"), "asset_class") == []

    def test_exposure_table(self, engine: ExposureEngine, global_60_40: Portfolio) -> None:
        """Test DataFrame view of a breakdown."""
        df = engine.exposure_table(global_60_40, "market_region")

        assert isinstance(df, pd.DataFrame)
        assert df.index.name == "market_region"
        assert list(df.columns) == ["amount", "absolute_percent", "relative_percent"]
        assert df.index[0] == "U.S."
        assert df.loc["U.S.", "relative_percent"] == pytest.approx(60.0)
        assert df["relative_percent"].sum() == pytest.approx(100.0)


class TestEquityBreakdown:
    """Test cases for equity_breakdown."""

    def test_us_vs_ex_us(self, engine: ExposureEngine, global_60_40: Portfolio) -> None:
        """Test the relative regional split."""
        breakdown = engine.equity_breakdown(global_60_40)

        assert breakdown.us == pytest.approx(60.0)
        assert breakdown.ex_us == pytest.approx(40.0)
        assert breakdown.total_equity == pytest.approx(0.5)

    def test_no_equity(self, engine: ExposureEngine) -> None:
        """Test portfolios without equity have no breakdown."""
        assert engine.equity_breakdown(Portfolio("P", {"TLT": Holding(100.0)})) is None


class TestTemplateDetails:
    """Test cases for template_details and dominant_asset_classes."""

    def test_dominant_asset_classes(self, engine: ExposureEngine) -> None:
        """Test asset classes ranked by exposure."""
        portfolio = Portfolio(
            "P", {"SSO": Holding(30.0), "GLDM": Holding(45.0), "TLT": Holding(25.0)}
        )

        analysis = engine.analyze(portfolio)

        assert engine.dominant_asset_classes(analysis) == [
            AssetClass.EQUITY,
            AssetClass.GOLD,
            AssetClass.US_TREASURIES,
        ]
        assert engine.dominant_asset_classes(analysis, top_n=1) == [AssetClass.EQUITY]

    def test_details(self, engine: ExposureEngine) -> None:
        """Test per-ETF rows and leverage types."""
        portfolio = Portfolio(
            "Stacked",
            {
                "SSO": Holding(40.0),
                "RSST": Holding(40.0),
                "TLT": Holding(20.0),
                "GLDM": Holding(10.0, disabled=True),
            },
        )

        details = engine.template_details(portfolio)

        assert details.name == "Stacked"
        assert details.etf_count == 4
        assert [d.ticker for d in details.etf_details] == ["SSO", "RSST", "TLT"]
        assert details.etf_details[0].leverage_amount == 2.0
        assert details.etf_details[1].asset_classes == [
            AssetClass.EQUITY,
            AssetClass.MANAGED_FUTURES,
        ]
        assert details.leverage_types_with_amounts == {
            LeverageType.DAILY_RESET: 2.0,
            LeverageType.STACKED: 1.0,
        }
        assert details.total_leverage == pytest.approx(1.8)
        assert details.is_levered
        assert details.equity_breakdown.us == pytest.approx(100.0)
