"""User-friendly APIs for stackfolio.

This package provides the high-level interface the portfolio builder UI
talks to.

Components:
- PortfolioAPI: Portfolio creation, allocation editing, analysis and
  import/export
"""

from stackfolio.api.portfolio_api import PortfolioAPI

__all__ = [
    "PortfolioAPI",
]
