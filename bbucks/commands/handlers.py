"""
Chat Command Handlers

DESIGN DECISION: Chat commands are TRANSLATORS, not writers.

Each handler turns slash-command text into:
- ledger lines to append (without timestamps - the orchestrator stamps them)
- a public message and/or a private message

Handlers never mutate the ledger. They read it to produce friendly
errors early, but the ledger has the final word when the lines are
appended: a handler that lets a bad line through only delays the
rejection, it cannot corrupt anything.

Supported commands:
    /claim 15 for cleaning the dishes
    /nominate 15 to @bob for cleaning the dishes
    /deny <claim id> because they didn't do it
    /confirm <claim id> because they did do it
    /give 10 to @bob
    /destroy 10
    /balance @bob
    /pending @bob
"""

import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from bbucks.config import LedgerSettings, get_settings
from bbucks.ledger import Ledger
from bbucks.models.ledger import Claim, CommandResponse
from bbucks.parsing import format_timestamp


CLAIM_RE = re.compile(r"(?P<amount>[0-9]+)\s+(?:for\s+)?(?P<reason>.+)")
NOMINATE_RE = re.compile(
    r"(?P<amount>[0-9]+)\s+(?:to\s+)?@(?P<user_name>\S+)\s+(?:for\s+)?(?P<reason>.+)"
)
VOTE_RE = re.compile(r"(?P<claim_id>\w+)\s+(?:because\s+)?(?P<reason>.+)")
GIVE_RE = re.compile(
    r"(?P<amount>[0-9]+)\s+(?:to\s+)?@(?P<user_name>\S+)(?:\s+(?:for\s+)?(?P<reason>.+))?"
)
DESTROY_RE = re.compile(r"(?P<amount>[0-9]+)")
USER_RE = re.compile(r"@(?P<user_name>\S+)")

HELP_EXAMPLES = {
    "claim": "/claim 15 for cleaning the dishes",
    "nominate": "/nominate 15 to @bob for cleaning the dishes",
    "deny": "/deny a10a7e7f0e49e6cfdd2f5678ee3aa363 because they didn't do it",
    "confirm": "/confirm a10a7e7f0e49e6cfdd2f5678ee3aa363 because they did do it",
    "give": "/give 10 to @bob",
    "destroy": "/destroy 10",
    "balance": "/balance @bob",
    "pending": "/pending @bob",
}


class CommandError(Exception):
    """User-facing error in a chat command."""
    pass


def generate_claim_id() -> str:
    """32 hex characters."""
    return secrets.token_hex(16)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _match(pattern: re.Pattern, text: str) -> re.Match:
    matches = pattern.fullmatch(text.strip())
    if matches is None:
        raise CommandError("Incorrect syntax")
    return matches


def _positive_amount(amount_text: str, what: str) -> int:
    amount = int(amount_text)
    if amount <= 0:
        raise CommandError(f"Amount {what} must be greater than zero")
    return amount


def _is_help(text: str) -> bool:
    return text.strip() == "help"


def _display_name(ledger: Ledger, user_id: Optional[int]) -> str:
    if user_id is None:
        return "(minted)"
    names = ledger.get_user_names_by_id(user_id)
    return names[0] if names else f"#{user_id}"


class ChatCommandHandler:
    """
    Translates chat commands into ledger lines and responses.

    Clock and claim ID generation are injectable so tests can pin them.
    """

    def __init__(
        self,
        settings: Optional[LedgerSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Callable[[], str] = generate_claim_id,
    ):
        self._settings = settings or get_settings().ledger
        self._clock = clock or _utcnow
        self._id_factory = id_factory
        self._handlers: dict[str, Callable[[Ledger, str, str], CommandResponse]] = {
            "claim": self.claim,
            "nominate": self.nominate,
            "deny": self.deny,
            "confirm": self.confirm,
            "give": self.give,
            "destroy": self.destroy,
            "balance": self.balance,
            "pending": self.pending,
        }

    @property
    def commands(self) -> list[str]:
        """Slash commands this handler answers to."""
        return [f"/{name}" for name in self._handlers]

    @property
    def treasury(self) -> str:
        return self._settings.treasury_user

    def handle(
        self,
        ledger: Ledger,
        user_name: str,
        command: str,
        text: str,
    ) -> CommandResponse:
        """
        Route a slash command to its handler.

        Raises:
            CommandError: For unknown commands and malformed text
        """
        name = command.lstrip("/")
        if name not in self._handlers:
            raise CommandError(f"Unrecognized command: {command}")

        if _is_help(text):
            return CommandResponse(ephemeral=f"Here is an example: {HELP_EXAMPLES[name]}")

        return self._handlers[name](ledger, user_name, text)

    def _maturation(self) -> str:
        return format_timestamp(self._clock() + timedelta(days=self._settings.days_to_mature))

    def _now(self) -> str:
        return format_timestamp(self._clock())

    def claim(self, ledger: Ledger, user_name: str, text: str) -> CommandResponse:
        """Claim funds from the treasury for yourself."""
        matches = _match(CLAIM_RE, text)
        amount = _positive_amount(matches["amount"], "of bbucks being claimed")
        reason = matches["reason"]

        claim_id = self._id_factory()

        return CommandResponse(
            say=(
                f"Transaction [{claim_id}]: {user_name} is claiming "
                f'{amount} bbucks for "{reason}"'
            ),
            commands=[
                f"claim {claim_id} {self._maturation()} {user_name} {self.treasury} {amount}"
            ],
        )

    def nominate(self, ledger: Ledger, user_name: str, text: str) -> CommandResponse:
        """Claim funds from the treasury on someone else's behalf."""
        matches = _match(NOMINATE_RE, text)
        amount = _positive_amount(matches["amount"], "of bbucks")
        nominee = matches["user_name"]
        reason = matches["reason"]

        if ledger.lookup_user_id(nominee) is None:
            raise CommandError("Nominee does not have an identity in the ledger")

        claim_id = self._id_factory()

        return CommandResponse(
            say=(
                f"Transaction [{claim_id}]: {user_name} nominates {nominee} "
                f'to receive {amount} bbucks for "{reason}"'
            ),
            commands=[
                f"claim {claim_id} {self._maturation()} {nominee} {self.treasury} {amount}"
            ],
        )

    def _vote(
        self,
        ledger: Ledger,
        user_name: str,
        text: str,
        delta: int,
    ) -> CommandResponse:
        matches = _match(VOTE_RE, text)
        claim_id = matches["claim_id"]

        claim: Optional[Claim] = ledger.get_claim(claim_id)
        if claim is None:
            raise CommandError("Transaction with given ID does not exist")

        verb = "confirm" if delta > 0 else "deny"
        from_name = _display_name(ledger, claim.from_id)
        to_name = _display_name(ledger, claim.to_id)

        return CommandResponse(
            say=(
                f"{user_name} votes to {verb} claim [{claim_id}] of {claim.amount} "
                f"from {from_name} for {to_name}\n"
                f"There are now {claim.votes + delta} votes for the claim."
            ),
            commands=[f"vote {claim_id} {user_name} {delta}"],
        )

    def deny(self, ledger: Ledger, user_name: str, text: str) -> CommandResponse:
        return self._vote(ledger, user_name, text, -1)

    def confirm(self, ledger: Ledger, user_name: str, text: str) -> CommandResponse:
        return self._vote(ledger, user_name, text, 1)

    def give(self, ledger: Ledger, user_name: str, text: str) -> CommandResponse:
        """Transfer funds to another user, effective immediately."""
        matches = _match(GIVE_RE, text)
        amount = _positive_amount(matches["amount"], "being given")
        recipient = matches["user_name"]

        if ledger.lookup_user_id(recipient) is None:
            raise CommandError("User to give the funds to does not exist")

        claim_id = self._id_factory()

        return CommandResponse(
            say=f"{user_name} gave {amount} to {recipient}",
            commands=[
                f"claim {claim_id} {self._now()} {recipient} {user_name} {amount}"
            ],
        )

    def destroy(self, ledger: Ledger, user_name: str, text: str) -> CommandResponse:
        """Hand funds back to the treasury, effective immediately."""
        matches = _match(DESTROY_RE, text)
        amount = _positive_amount(matches["amount"], "being destroyed")

        if amount > ledger.get_balance(user_name):
            raise CommandError("Cannot destroy more than your total balance")

        claim_id = self._id_factory()

        return CommandResponse(
            say=f"{user_name} destroyed {amount}",
            commands=[
                f"claim {claim_id} {self._now()} {self.treasury} {user_name} {amount}"
            ],
        )

    def balance(self, ledger: Ledger, user_name: str, text: str) -> CommandResponse:
        matches = _match(USER_RE, text)
        target = matches["user_name"]

        if ledger.lookup_user_id(target) is None:
            raise CommandError("User does not exist")

        return CommandResponse(
            ephemeral=f"{target} has {ledger.get_balance(target)} bbucks",
        )

    def pending(self, ledger: Ledger, user_name: str, text: str) -> CommandResponse:
        matches = _match(USER_RE, text)
        target = matches["user_name"]

        target_id = ledger.lookup_user_id(target)
        if target_id is None:
            raise CommandError("User does not exist")

        claims = ledger.get_pending_claims(target, self._clock())

        lines = [f"{target} has {len(claims)} claims:"]
        for claim in claims:
            matures = format_timestamp(claim.matures_at)
            if claim.from_id == target_id:
                lines.append(
                    f"\t{claim.amount} to {_display_name(ledger, claim.to_id)} at {matures}"
                )
            else:
                lines.append(
                    f"\t{claim.amount} from {_display_name(ledger, claim.from_id)} at {matures}"
                )

        return CommandResponse(ephemeral="\n".join(lines))
