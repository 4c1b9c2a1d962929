"""Utility functions for walletwise."""

from walletwise.utils.date_parser import parse_date, start_of_week
from walletwise.utils.amount_parser import format_amount, parse_amount, parse_balance

__all__ = ["parse_date", "start_of_week", "parse_amount", "parse_balance", "format_amount"]
