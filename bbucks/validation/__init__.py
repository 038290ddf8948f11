"""Command validation package."""

from bbucks.validation.validator import CommandValidator, parse_integer_text

__all__ = ["CommandValidator", "parse_integer_text"]
