"""
Command Validation

DESIGN DECISION: Each command kind has exactly one validating factory.
A factory checks, in order:

STAGE 1 - SHAPE:
- Parameter count
- Parameter formats (integers, timestamps, vote values)

STAGE 2 - LEDGER STATE:
- Names and claim IDs exist (or do not, for new ones)
- Funds are available
- Voting rules

The factory returns a CommandCheck: either a validated command ready to
be applied, or the specific error kind with a message. It never raises
and never touches ledger state, so a rejected command cannot leave a
partial mutation behind.
"""

import re
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Optional

from bbucks.errors import LedgerErrorKind, MalformedCommand
from bbucks.models.ledger import (
    ClaimCommand,
    CommandCheck,
    CommandKeyword,
    MintCommand,
    NewUserCommand,
    ParsedCommand,
    VoteCommand,
)
from bbucks.parsing import parse_timestamp

if TYPE_CHECKING:
    from bbucks.ledger.state_machine import Ledger


INTEGER_RE = re.compile(r"(?P<digits>[+-]?[0-9]+)(?:\.0*)?")
MAX_AMOUNT_DIGITS = 18


def parse_integer_text(text: str) -> Optional[int]:
    """
    Parse an integer amount written in plain decimal digits.

    Returns None for anything else: fractions, exponents, underscores,
    or more than MAX_AMOUNT_DIGITS digits. "1000.0" is an integer;
    "1000.1" and "1e3" are not.
    """
    matches = INTEGER_RE.fullmatch(text)
    if matches is None:
        return None

    digits = matches["digits"]
    if len(digits.lstrip("+-")) > MAX_AMOUNT_DIGITS:
        return None

    return int(digits)


def _wrong_count(keyword: str, expected: int, given: int) -> CommandCheck:
    return CommandCheck.rejected(
        LedgerErrorKind.MALFORMED_COMMAND,
        f"Wrong number of parameters for {keyword}: expected {expected}, got {given}",
    )


class CommandValidator:
    """
    Validates parsed commands against the current state of a ledger.

    The validator only reads from the ledger.
    """

    def __init__(self, ledger: "Ledger"):
        self._ledger = ledger
        self._factories: dict[CommandKeyword, Callable[[ParsedCommand], CommandCheck]] = {
            CommandKeyword.NEW_USER: self.validate_new_user,
            CommandKeyword.MINT: self.validate_mint,
            CommandKeyword.CLAIM: self.validate_claim,
            CommandKeyword.VOTE: self.validate_vote,
        }

    def validate(self, parsed: ParsedCommand) -> CommandCheck:
        """Dispatch to the factory for the command's keyword."""
        keyword = parsed.command_keyword
        if keyword is None:
            return CommandCheck.rejected(
                LedgerErrorKind.UNKNOWN_COMMAND,
                f'Unknown command: "{parsed.keyword}"',
            )
        return self._factories[keyword](parsed)

    def _check_amount(self, amount_text: str) -> tuple[Optional[int], Optional[CommandCheck]]:
        amount = parse_integer_text(amount_text)
        if amount is None:
            return None, CommandCheck.rejected(
                LedgerErrorKind.INVALID_AMOUNT,
                f"Amount is not an integer: {amount_text!r}",
            )
        if amount <= 0:
            return None, CommandCheck.rejected(
                LedgerErrorKind.INVALID_AMOUNT,
                "Amount being claimed is negative or zero",
            )
        return amount, None

    def validate_new_user(self, parsed: ParsedCommand) -> CommandCheck:
        """new_user <name>"""
        if len(parsed.parameters) != 1:
            return _wrong_count(parsed.keyword, 1, len(parsed.parameters))

        (name,) = parsed.parameters

        if self._ledger.lookup_user_id(name) is not None:
            return CommandCheck.rejected(
                LedgerErrorKind.DUPLICATE_USER,
                f"User already exists: {name}",
            )

        return CommandCheck.ok(NewUserCommand(timestamp=parsed.timestamp, name=name))

    def validate_mint(self, parsed: ParsedCommand) -> CommandCheck:
        """mint <claimID> <userName> <amount>"""
        if len(parsed.parameters) != 3:
            return _wrong_count(parsed.keyword, 3, len(parsed.parameters))

        claim_id, user_name, amount_text = parsed.parameters

        if self._ledger.get_claim(claim_id) is not None:
            return CommandCheck.rejected(
                LedgerErrorKind.DUPLICATE_CLAIM_ID,
                f"Claim ID already exists: {claim_id}",
            )

        user_id = self._ledger.lookup_user_id(user_name)
        if user_id is None:
            return CommandCheck.rejected(
                LedgerErrorKind.UNKNOWN_USER,
                f"User to mint funds for does not exist: {user_name}",
            )

        amount, rejection = self._check_amount(amount_text)
        if rejection is not None:
            return rejection

        return CommandCheck.ok(MintCommand(
            timestamp=parsed.timestamp,
            claim_id=claim_id,
            user_id=user_id,
            amount=amount,
        ))

    def validate_claim(self, parsed: ParsedCommand) -> CommandCheck:
        """claim <claimID> <matureAt> <toName> <fromName> <amount>"""
        if len(parsed.parameters) != 5:
            return _wrong_count(parsed.keyword, 5, len(parsed.parameters))

        claim_id, matures_text, to_name, from_name, amount_text = parsed.parameters

        try:
            matures_at: datetime = parse_timestamp(matures_text)
        except MalformedCommand as e:
            return CommandCheck.rejected(
                LedgerErrorKind.MALFORMED_COMMAND,
                f"Invalid maturation date: {e.message}",
            )

        if self._ledger.get_claim(claim_id) is not None:
            return CommandCheck.rejected(
                LedgerErrorKind.DUPLICATE_CLAIM_ID,
                f"Claim ID already exists: {claim_id}",
            )

        to_id = self._ledger.lookup_user_id(to_name)
        if to_id is None:
            return CommandCheck.rejected(
                LedgerErrorKind.UNKNOWN_USER,
                f"Username of user claiming funds does not exist: {to_name}",
            )

        from_id = self._ledger.lookup_user_id(from_name)
        if from_id is None:
            return CommandCheck.rejected(
                LedgerErrorKind.UNKNOWN_USER,
                f"Username of user whose funds are being claimed does not exist: {from_name}",
            )

        amount, rejection = self._check_amount(amount_text)
        if rejection is not None:
            return rejection

        if from_id == to_id:
            return CommandCheck.rejected(
                LedgerErrorKind.SELF_CLAIM,
                "User cannot claim their own funds",
            )

        # Balance as of this command, before the command itself
        if self._ledger.get_balance(from_name, parsed.timestamp) < amount:
            return CommandCheck.rejected(
                LedgerErrorKind.INSUFFICIENT_FUNDS,
                f"{from_name} does not have enough funds to fulfill claim",
            )

        return CommandCheck.ok(ClaimCommand(
            timestamp=parsed.timestamp,
            claim_id=claim_id,
            matures_at=matures_at,
            to_id=to_id,
            from_id=from_id,
            amount=amount,
        ))

    def validate_vote(self, parsed: ParsedCommand) -> CommandCheck:
        """vote <claimID> <voterName> <+1|-1>"""
        if len(parsed.parameters) != 3:
            return _wrong_count(parsed.keyword, 3, len(parsed.parameters))

        claim_id, voter_name, vote_text = parsed.parameters

        claim = self._ledger.get_claim(claim_id)
        if claim is None:
            return CommandCheck.rejected(
                LedgerErrorKind.UNKNOWN_CLAIM,
                f"Claim with given ID does not exist: {claim_id}",
            )

        voter_id = self._ledger.lookup_user_id(voter_name)
        if voter_id is None:
            return CommandCheck.rejected(
                LedgerErrorKind.UNKNOWN_USER,
                f"User with given name does not exist: {voter_name}",
            )

        try:
            delta = int(vote_text)
        except ValueError:
            delta = None
        if delta not in (1, -1):
            return CommandCheck.rejected(
                LedgerErrorKind.INVALID_VOTE,
                "Only +1 or -1 votes are allowed",
            )

        if self._ledger.has_voted(claim_id, voter_id):
            return CommandCheck.rejected(
                LedgerErrorKind.DUPLICATE_VOTE,
                f"{voter_name} has already voted on this claim",
            )

        if claim.to_id == voter_id and delta > 0:
            return CommandCheck.rejected(
                LedgerErrorKind.SELF_CONFIRMATION,
                "User cannot vote to confirm their own claim",
            )

        if claim.is_mature_at(parsed.timestamp):
            return CommandCheck.rejected(
                LedgerErrorKind.CLAIM_ALREADY_MATURE,
                "Cannot vote on a mature claim",
            )

        return CommandCheck.ok(VoteCommand(
            timestamp=parsed.timestamp,
            claim_id=claim_id,
            voter_id=voter_id,
            delta=delta,
        ))
