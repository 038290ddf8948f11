"""Command log parsing package."""

from bbucks.parsing.parser import (
    format_timestamp,
    parse_command_line,
    parse_timestamp,
    timestamp,
)

__all__ = [
    "format_timestamp",
    "parse_command_line",
    "parse_timestamp",
    "timestamp",
]
