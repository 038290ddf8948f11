"""
Ledger Error Taxonomy

Every way a command can be refused has its own exception class.
All of them derive from LedgerError and carry a LedgerErrorKind,
so callers can either catch a specific class or switch on `kind`.

Rejections are never retried here. The caller decides whether to
resubmit corrected input.
"""

from enum import Enum


class LedgerErrorKind(str, Enum):
    """Reasons a ledger command can be rejected."""
    MALFORMED_COMMAND = "malformed_command"
    OUT_OF_ORDER_COMMAND = "out_of_order_command"
    DUPLICATE_USER = "duplicate_user"
    UNKNOWN_USER = "unknown_user"
    DUPLICATE_CLAIM_ID = "duplicate_claim_id"
    UNKNOWN_CLAIM = "unknown_claim"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    SELF_CLAIM = "self_claim"
    INVALID_VOTE = "invalid_vote"
    DUPLICATE_VOTE = "duplicate_vote"
    SELF_CONFIRMATION = "self_confirmation"
    CLAIM_ALREADY_MATURE = "claim_already_mature"
    UNKNOWN_COMMAND = "unknown_command"


class LedgerError(Exception):
    """Base exception for rejected ledger commands."""

    kind: LedgerErrorKind

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MalformedCommand(LedgerError):
    """Line could not be parsed, or has the wrong number of parameters."""
    kind = LedgerErrorKind.MALFORMED_COMMAND


class OutOfOrderCommand(LedgerError):
    """Command is timestamped before the last applied command."""
    kind = LedgerErrorKind.OUT_OF_ORDER_COMMAND


class DuplicateUser(LedgerError):
    kind = LedgerErrorKind.DUPLICATE_USER


class UnknownUser(LedgerError):
    kind = LedgerErrorKind.UNKNOWN_USER


class DuplicateClaimID(LedgerError):
    kind = LedgerErrorKind.DUPLICATE_CLAIM_ID


class UnknownClaim(LedgerError):
    kind = LedgerErrorKind.UNKNOWN_CLAIM


class InvalidAmount(LedgerError):
    """Amount is not an integer, or is zero or negative."""
    kind = LedgerErrorKind.INVALID_AMOUNT


class InsufficientFunds(LedgerError):
    """Source balance at the command's timestamp is below the amount."""
    kind = LedgerErrorKind.INSUFFICIENT_FUNDS


class SelfClaim(LedgerError):
    """Source and destination of a claim are the same user."""
    kind = LedgerErrorKind.SELF_CLAIM


class InvalidVote(LedgerError):
    """Vote is anything other than +1 or -1."""
    kind = LedgerErrorKind.INVALID_VOTE


class DuplicateVote(LedgerError):
    kind = LedgerErrorKind.DUPLICATE_VOTE


class SelfConfirmation(LedgerError):
    """Destination of a claim tried to vote +1 on it."""
    kind = LedgerErrorKind.SELF_CONFIRMATION


class ClaimAlreadyMature(LedgerError):
    """Vote arrived at or after the claim's maturation timestamp."""
    kind = LedgerErrorKind.CLAIM_ALREADY_MATURE


class UnknownCommand(LedgerError):
    kind = LedgerErrorKind.UNKNOWN_COMMAND


ERRORS_BY_KIND: dict[LedgerErrorKind, type[LedgerError]] = {
    cls.kind: cls
    for cls in (
        MalformedCommand,
        OutOfOrderCommand,
        DuplicateUser,
        UnknownUser,
        DuplicateClaimID,
        UnknownClaim,
        InvalidAmount,
        InsufficientFunds,
        SelfClaim,
        InvalidVote,
        DuplicateVote,
        SelfConfirmation,
        ClaimAlreadyMature,
        UnknownCommand,
    )
}


def error_for(kind: LedgerErrorKind, message: str) -> LedgerError:
    """Build the exception matching an error kind."""
    return ERRORS_BY_KIND[kind](message)
