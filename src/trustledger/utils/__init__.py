"""Utility functions for trustledger."""

from trustledger.utils.date_parser import parse_date, get_date_range
from trustledger.utils.amount_parser import parse_amount, format_amount

__all__ = ["parse_date", "get_date_range", "parse_amount", "format_amount"]
