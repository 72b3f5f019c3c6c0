"""Grocerly: a grocery list kept in a spreadsheet, with a local cache."""

__version__ = "0.1.0"
