"""
Temporal Query Engine

DESIGN DECISION: Queries are answered from the log, never from guesses.

- Asked about "now or later" (at or after the last applied command),
  the engine aggregates the live claims directly.
- Asked about an earlier instant, it replays every command strictly
  before that instant into a fresh ledger and asks the replica instead.

The replica only ever sees the causal prefix of the log, so a
point-in-time balance can never depend on later commands. The live
ledger is never rewound.

Cost: a historical query replays the whole prefix, which is linear in
log length (and each replayed claim checks a balance of its own).
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import structlog

from bbucks.models.ledger import Claim

if TYPE_CHECKING:
    from bbucks.ledger.state_machine import Ledger


logger = structlog.get_logger(__name__)


def _resolve_moment(as_of: Optional[datetime]) -> datetime:
    """Default to now; read naive datetimes as UTC."""
    if as_of is None:
        return datetime.now(timezone.utc)
    if as_of.tzinfo is None:
        return as_of.replace(tzinfo=timezone.utc)
    return as_of


class TemporalQueryEngine:
    """
    Answers balance and pending-claim questions for a ledger.

    GUARANTEES:
    - Read-only: the ledger it is bound to is never mutated
    - Historical answers come from replaying the log prefix
    - Unknown users have a balance of 0 and no pending claims
    """

    def __init__(self, ledger: "Ledger"):
        self._ledger = ledger

    def _is_live(self, moment: datetime) -> bool:
        last = self._ledger.last_timestamp
        return last is None or last <= moment

    def balance(self, user_name: str, as_of: Optional[datetime] = None) -> int:
        """
        Balance of a user at an instant.

        + mature, non-denied claims paid to the user
        - non-denied claims on the user's funds, mature or not
        """
        user_id = self._ledger.lookup_user_id(user_name)
        if user_id is None:
            return 0

        moment = _resolve_moment(as_of)

        if not self._is_live(moment):
            return self.rebuild_at(moment).get_balance(user_name, moment)

        owed_to_user = sum(
            claim.amount
            for claim in self._ledger.iter_claims()
            if claim.to_id == user_id
            and claim.is_mature_at(moment)
            and not claim.is_denied
        )
        owed_by_user = sum(
            claim.amount
            for claim in self._ledger.iter_claims()
            if claim.from_id == user_id
            and not claim.is_denied
        )

        return owed_to_user - owed_by_user

    def pending_claims(
        self,
        user_name: str,
        as_of: Optional[datetime] = None,
    ) -> list[Claim]:
        """Claims touching the user that mature strictly after `as_of`."""
        user_id = self._ledger.lookup_user_id(user_name)
        if user_id is None:
            return []

        moment = _resolve_moment(as_of)

        return [
            claim
            for claim in self._ledger.iter_claims()
            if (claim.from_id == user_id or claim.to_id == user_id)
            and claim.matures_at > moment
        ]

    def rebuild_at(self, moment: datetime) -> "Ledger":
        """
        Fresh ledger holding every command strictly before `moment`.
        """
        prefix = [
            command.text
            for command in self._ledger.history()
            if command.timestamp < moment
        ]

        replica = type(self._ledger).replay(prefix)

        logger.debug(
            "ledger_replayed",
            as_of=moment.isoformat(),
            replayed=len(prefix),
            total=len(self._ledger.history()),
        )
        return replica
