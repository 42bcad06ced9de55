"""Evaluation aggregation and selection toolkit."""

__version__ = "0.1.0"
