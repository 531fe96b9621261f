"""Utility functions for timegrid."""

from timegrid.utils.date_parser import format_grid_date, parse_date, parse_grid_date
from timegrid.utils.time_parser import format_time_input, is_valid_time

__all__ = ["parse_date", "parse_grid_date", "format_grid_date", "format_time_input", "is_valid_time"]
