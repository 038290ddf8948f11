"""
Core Data Models for bbucks

These models define the strict schemas for everything the ledger holds.
They are designed to:
1. Enforce type safety at runtime
2. Be immutable once created (a vote replaces a claim, it never edits one)
3. Be serializable for logging and display
4. Carry enough context to replay the log

DESIGN DECISION: Models are frozen Pydantic v2 models.
Handing one out of the ledger can never corrupt ledger state.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)

from bbucks.errors import LedgerError, LedgerErrorKind, error_for


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class CommandKeyword(str, Enum):
    """
    Keywords understood by the ledger.

    The keyword is the second token of every log line.
    """
    NEW_USER = "new_user"
    MINT = "mint"
    CLAIM = "claim"
    VOTE = "vote"


# =============================================================================
# LEDGER STATE
# =============================================================================

class Claim(BaseModel):
    """
    A transfer of funds, pending or resolved.

    Minted funds have no source (from_id is None) and mature when created.
    Every other claim debits its source as soon as it exists and credits
    its destination once mature, unless the vote tally went negative.
    """
    model_config = ConfigDict(frozen=True)

    claim_id: str = Field(..., min_length=1)
    created_at: datetime
    matures_at: datetime
    from_id: Optional[int] = Field(
        default=None,
        description="Source user ID, None for minted funds"
    )
    to_id: int
    amount: int = Field(..., gt=0)
    votes: int = Field(
        default=0,
        description="Signed sum of +1/-1 votes"
    )

    @model_validator(mode="after")
    def validate_not_self_claim(self) -> "Claim":
        """A user cannot claim their own funds."""
        if self.from_id is not None and self.from_id == self.to_id:
            raise ValueError("User cannot claim their own funds")
        return self

    @property
    def is_mint(self) -> bool:
        return self.from_id is None

    @property
    def is_denied(self) -> bool:
        """Negative tally: the claim never pays out."""
        return self.votes < 0

    def is_mature_at(self, moment: datetime) -> bool:
        return moment >= self.matures_at

    def with_vote(self, delta: int) -> "Claim":
        """Copy of this claim with a vote added to the tally."""
        return self.model_copy(update={"votes": self.votes + delta})


class ParsedCommand(BaseModel):
    """
    One parsed log line.

    The original text is kept so history can be replayed verbatim.
    """
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    keyword: str
    parameters: tuple[str, ...] = ()
    text: str

    @property
    def command_keyword(self) -> Optional[CommandKeyword]:
        """The keyword as an enum member, or None if unrecognised."""
        try:
            return CommandKeyword(self.keyword)
        except ValueError:
            return None


# =============================================================================
# VALIDATED COMMANDS
# =============================================================================

class NewUserCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    name: str


class MintCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    claim_id: str
    user_id: int
    amount: int = Field(..., gt=0)


class ClaimCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    claim_id: str
    matures_at: datetime
    to_id: int
    from_id: int
    amount: int = Field(..., gt=0)


class VoteCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    claim_id: str
    voter_id: int
    delta: int


LedgerCommand = Union[NewUserCommand, MintCommand, ClaimCommand, VoteCommand]


class CommandCheck(BaseModel):
    """
    Tagged result of validating one command.

    Either `command` is set (valid) or `error_kind` and `message` are.
    Validation never raises; the ledger turns a rejected check into
    the matching exception.
    """
    model_config = ConfigDict(frozen=True)

    command: Optional[LedgerCommand] = None
    error_kind: Optional[LedgerErrorKind] = None
    message: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.error_kind is None

    @classmethod
    def ok(cls, command: LedgerCommand) -> "CommandCheck":
        return cls(command=command)

    @classmethod
    def rejected(cls, kind: LedgerErrorKind, message: str) -> "CommandCheck":
        return cls(error_kind=kind, message=message)

    def to_error(self) -> LedgerError:
        """Exception for a rejected check."""
        if self.error_kind is None:
            raise ValueError("Check is valid, there is no error to raise")
        return error_for(self.error_kind, self.message or self.error_kind.value)


# =============================================================================
# CHAT RESPONSES
# =============================================================================

class CommandResponse(BaseModel):
    """
    What a chat command produces.

    - say: public message for the bot channel
    - ephemeral: private message for the invoking user
    - commands: ledger lines (without timestamps) to append, in order
    """

    say: Optional[str] = None
    ephemeral: Optional[str] = None
    commands: list[str] = Field(default_factory=list)
