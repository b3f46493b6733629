"""Upstream data aggregation layer for the portfolio site."""

__version__ = "0.1.0"
