"""Shared fixtures for unit tests."""

import pytest

from stackfolio.catalog.etf_catalog import EtfCatalog


def equity(region: str, weight: float, style: str = "Blend", size: str = "Large Cap") -> dict:
    return {
        "asset_class": "Equity",
        "market_region": region,
        "factor_style": style,
        "size_factor": size,
        "weight": weight,
    }


CATALOG_RECORDS = [
    {
        "ticker": "VT",
        "exposures": [
            equity("U.S.", 0.6),
            equity("International Developed", 0.3),
            equity("Emerging", 0.1),
        ],
    },
    {"ticker": "SSO", "leverage_type": "Daily Reset", "exposures": [equity("U.S.", 2.0)]},
    {"ticker": "UPRO", "leverage_type": "Daily Reset", "exposures": [equity("U.S.", 3.0)]},
    {"ticker": "TLT", "exposures": [{"asset_class": "U.S. Treasuries", "weight": 1.0}]},
    {"ticker": "AVUV", "exposures": [equity("U.S.", 1.0, style="Value", size="Small Cap")]},
    {
        "ticker": "RSST",
        "leverage_type": "Stacked",
        "exposures": [equity("U.S.", 1.0), {"asset_class": "Managed Futures", "weight": 1.0}],
    },
    {"ticker": "GLDM", "exposures": [{"asset_class": "Gold", "weight": 1.0}]},
]


@pytest.fixture
def catalog() -> EtfCatalog:
    """Small seven-fund catalog."""
    return EtfCatalog.from_records(CATALOG_RECORDS)
