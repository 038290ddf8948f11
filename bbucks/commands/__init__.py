"""Chat commands package."""

from bbucks.commands.handlers import (
    HELP_EXAMPLES,
    ChatCommandHandler,
    CommandError,
    generate_claim_id,
)

__all__ = [
    "HELP_EXAMPLES",
    "ChatCommandHandler",
    "CommandError",
    "generate_claim_id",
]
