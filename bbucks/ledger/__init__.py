"""Ledger state machine package."""

from bbucks.ledger.state_machine import Ledger

__all__ = ["Ledger"]
