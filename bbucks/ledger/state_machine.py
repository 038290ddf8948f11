"""
Ledger State Machine

The ledger owns four structures:
1. users      - name -> user ID, IDs assigned from 0 in creation order
2. claims     - claim ID -> Claim (frozen; a vote swaps in a new copy)
3. voters     - claim ID -> set of user IDs that have voted on it
4. history    - every applied command, in order, with its original text

`apply` is the only way in. It parses a line, refuses it if it is older
than the last applied command, validates it against current state, and
only then mutates and appends. A refused line leaves the ledger exactly
as it was.

Everything handed out (snapshots, claims) is a copy or a frozen model.
"""

from datetime import datetime
from typing import Iterable, Iterator, Optional

import structlog

from bbucks.errors import LedgerError, OutOfOrderCommand, SelfClaim, UnknownUser
from bbucks.models.ledger import (
    Claim,
    ClaimCommand,
    LedgerCommand,
    MintCommand,
    NewUserCommand,
    ParsedCommand,
    VoteCommand,
)
from bbucks.parsing import parse_command_line
from bbucks.queries import TemporalQueryEngine
from bbucks.validation import CommandValidator


logger = structlog.get_logger(__name__)


class Ledger:
    """
    Event-sourced ledger of users, claims and votes.

    Usage:
        ledger = Ledger()
        ledger.apply("2021-06-04T15:23:00.000Z new_user universe")
        ledger.apply("2021-06-04T15:24:00.000Z mint abc universe 1000")
        ledger.get_balance("universe")  # 1000
    """

    def __init__(self):
        self._users: dict[str, int] = {}
        self._next_user_id = 0
        self._claims: dict[str, Claim] = {}
        self._voters: dict[str, set[int]] = {}
        self._last_claim: Optional[Claim] = None
        self._history: list[ParsedCommand] = []

        self._validator = CommandValidator(self)
        self._queries = TemporalQueryEngine(self)

    @classmethod
    def replay(cls, lines: Iterable[str]) -> "Ledger":
        """Build a ledger by applying lines in order."""
        ledger = cls()
        for line in lines:
            ledger.apply(line)
        return ledger

    # =========================================================================
    # MUTATION
    # =========================================================================

    def apply(self, line: str) -> "Ledger":
        """
        Apply one log line.

        Returns the ledger itself so calls can be chained.

        Raises:
            LedgerError: The matching subclass for whatever is wrong
        """
        try:
            parsed = parse_command_line(line)

            last = self.last_timestamp
            if last is not None and parsed.timestamp < last:
                raise OutOfOrderCommand("Command is from before earlier commands")

            check = self._validator.validate(parsed)
            if not check.is_valid:
                raise check.to_error()

            self._execute(check.command)
        except LedgerError as e:
            logger.info(
                "command_rejected",
                error_kind=e.kind.value,
                error=e.message,
                line=line,
            )
            raise

        self._history.append(parsed)
        logger.debug(
            "command_applied",
            keyword=parsed.keyword,
            timestamp=parsed.timestamp.isoformat(),
        )
        return self

    def _execute(self, command: LedgerCommand) -> None:
        if isinstance(command, NewUserCommand):
            self._users[command.name] = self._next_user_id
            self._next_user_id += 1
        elif isinstance(command, MintCommand):
            # Minted funds have no source and mature immediately
            self._add_claim(
                claim_id=command.claim_id,
                created_at=command.timestamp,
                matures_at=command.timestamp,
                from_id=None,
                to_id=command.user_id,
                amount=command.amount,
            )
        elif isinstance(command, ClaimCommand):
            self._add_claim(
                claim_id=command.claim_id,
                created_at=command.timestamp,
                matures_at=command.matures_at,
                from_id=command.from_id,
                to_id=command.to_id,
                amount=command.amount,
            )
        elif isinstance(command, VoteCommand):
            self._claims[command.claim_id] = self._claims[command.claim_id].with_vote(command.delta)
            self._voters[command.claim_id].add(command.voter_id)
        else:
            raise TypeError(f"Unsupported command: {command!r}")

    def _add_claim(
        self,
        claim_id: str,
        created_at: datetime,
        matures_at: datetime,
        from_id: Optional[int],
        to_id: int,
        amount: int,
    ) -> Claim:
        if from_id == to_id:
            raise SelfClaim("User cannot claim their own funds")

        claim = Claim(
            claim_id=claim_id,
            created_at=created_at,
            matures_at=matures_at,
            from_id=from_id,
            to_id=to_id,
            amount=amount,
        )

        self._claims[claim_id] = claim
        self._voters[claim_id] = set()
        self._last_claim = claim
        return claim

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    @property
    def last_timestamp(self) -> Optional[datetime]:
        """Timestamp of the most recently applied command."""
        if not self._history:
            return None
        return self._history[-1].timestamp

    def history(self) -> tuple[ParsedCommand, ...]:
        return tuple(self._history)

    def iter_claims(self) -> Iterator[Claim]:
        """Claims in creation order."""
        return iter(list(self._claims.values()))

    def users_snapshot(self) -> dict[str, int]:
        """Copy of the name -> user ID mapping."""
        return dict(self._users)

    def claims_snapshot(self) -> dict[str, Claim]:
        """Copy of the claim ID -> Claim mapping."""
        return {
            claim_id: claim.model_copy()
            for claim_id, claim in self._claims.items()
        }

    def voters_snapshot(self) -> dict[str, frozenset[int]]:
        return {
            claim_id: frozenset(voters)
            for claim_id, voters in self._voters.items()
        }

    def last_claim(self) -> Optional[Claim]:
        """The most recently created claim, if any."""
        return self._last_claim

    def get_claim(self, claim_id: str) -> Optional[Claim]:
        return self._claims.get(claim_id)

    def lookup_user_id(self, user_name: str) -> Optional[int]:
        return self._users.get(user_name)

    def get_user_id(self, user_name: str) -> int:
        """
        Raises:
            UnknownUser: If no user has that name
        """
        if user_name not in self._users:
            raise UnknownUser(f"User with given name does not exist: {user_name}")
        return self._users[user_name]

    def get_user_names_by_id(self, user_id: Optional[int]) -> list[str]:
        return [name for name, uid in self._users.items() if uid == user_id]

    def has_voted(self, claim_id: str, user_id: int) -> bool:
        return user_id in self._voters.get(claim_id, ())

    # =========================================================================
    # TEMPORAL QUERIES
    # =========================================================================

    def get_balance(self, user_name: str, as_of: Optional[datetime] = None) -> int:
        """Balance at `as_of` (default: now). Unknown users have 0."""
        return self._queries.balance(user_name, as_of)

    def get_pending_claims(
        self,
        user_name: str,
        as_of: Optional[datetime] = None,
    ) -> list[Claim]:
        """Claims touching the user that have not matured by `as_of`."""
        return self._queries.pending_claims(user_name, as_of)
