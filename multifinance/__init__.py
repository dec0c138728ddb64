"""Multifinance service: consumers, credit limits and instalment transactions over HTTP."""

__version__ = "0.1.0"