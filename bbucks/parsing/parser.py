"""
Command Log Parser

Turns one log line into a ParsedCommand:

    <ISO-8601 timestamp> <keyword> <param1> <param2> ...

Tokens are whitespace-delimited and there is no quoting. The parser only
checks structure; whether the parameters make sense is the ledger's job.

DESIGN DECISION: Every timestamp in the system is timezone-aware.
A timestamp without an offset is read as UTC so that any two timestamps
can be compared.
"""

from datetime import datetime, timezone
from typing import Optional

from bbucks.errors import MalformedCommand
from bbucks.models.ledger import ParsedCommand


def parse_timestamp(text: str) -> datetime:
    """
    Parse an ISO-8601 timestamp.

    Accepts a trailing 'Z' for UTC. Naive values are assumed to be UTC.

    Raises:
        MalformedCommand: If the text is not a valid timestamp
    """
    candidate = text.strip()
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        raise MalformedCommand(f"Invalid timestamp: {text!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(moment: datetime) -> str:
    """
    Render a timestamp the way log lines are written.

    e.g. 2021-06-04T15:23:00.000Z
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def timestamp(moment: Optional[datetime] = None) -> str:
    """Log-line timestamp for `moment`, or for now."""
    return format_timestamp(moment or datetime.now(timezone.utc))


def parse_command_line(line: str) -> ParsedCommand:
    """
    Split a log line into timestamp, keyword and parameters.

    Raises:
        MalformedCommand: If there are fewer than two tokens or the
                          timestamp does not parse
    """
    parts = line.split()

    if len(parts) < 2:
        raise MalformedCommand("Must give at least a timestamp and a command")

    return ParsedCommand(
        timestamp=parse_timestamp(parts[0]),
        keyword=parts[1],
        parameters=tuple(parts[2:]),
        text=line,
    )
