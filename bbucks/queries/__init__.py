"""Temporal query package."""

from bbucks.queries.temporal import TemporalQueryEngine

__all__ = ["TemporalQueryEngine"]
