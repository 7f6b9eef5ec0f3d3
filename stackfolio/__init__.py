"""stackfolio: ETF portfolio allocation and exposure analysis.

Keeps a portfolio of ETF holdings allocated to exactly 100% and computes its
aggregate exposure by asset class, region, factor style, size and leverage.
"""

__version__ = "0.1.0"
