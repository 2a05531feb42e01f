"""Utility functions for finsight."""

from finsight.utils.date_parser import parse_date, parse_absolute_date, get_date_range
from finsight.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_absolute_date", "get_date_range", "parse_amount"]
