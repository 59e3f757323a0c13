"""Streamlit console for configuring, running and reviewing strategy backtests."""

__version__ = "0.4.0"
