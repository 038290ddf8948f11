"""Tests for command validation"""

from datetime import datetime, timedelta, timezone

import pytest

from bbucks.errors import LedgerErrorKind
from bbucks.ledger import Ledger
from bbucks.models.ledger import ClaimCommand, MintCommand, VoteCommand
from bbucks.parsing import format_timestamp, parse_command_line
from bbucks.validation import CommandValidator, parse_integer_text


T0 = datetime(2021, 6, 4, 15, 23, tzinfo=timezone.utc)


def ts(seconds: float = 0) -> str:
    return format_timestamp(T0 + timedelta(seconds=seconds))


@pytest.fixture
def ledger():
    return Ledger.replay([
        f"{ts(0)} new_user bank",
        f"{ts(0)} new_user foo",
        f"{ts(0)} mint m1 bank 50",
    ])


@pytest.fixture
def validator(ledger):
    return CommandValidator(ledger)


class TestParseIntegerText:

    @pytest.mark.parametrize("text,expected", [
        ("10", 10),
        ("-3", -3),
        ("1000.0", 1000),
        ("+5", 5),
        ("007", 7),
        ("999999999999999999", 999999999999999999),
        ("1e3", None),
        ("1_000", None),
        ("1e999999999", None),
        ("1000000000000000000", None),
        ("١٢", None),
        ("1000.1", None),
        ("abc", None),
        ("", None),
        ("NaN", None),
        ("Infinity", None),
    ])
    def test_parse(self, text, expected):
        assert parse_integer_text(text) == expected


class TestCommandValidator:

    def test_valid_mint_yields_typed_command(self, validator):
        check = validator.validate(parse_command_line(f"{ts(1)} mint m2 foo 10"))

        assert check.is_valid
        assert isinstance(check.command, MintCommand)
        assert check.command.user_id == 1
        assert check.command.amount == 10

    def test_valid_claim_yields_typed_command(self, validator):
        check = validator.validate(parse_command_line(f"{ts(1)} claim c1 {ts(9)} foo bank 50"))

        assert check.is_valid
        assert isinstance(check.command, ClaimCommand)
        assert check.command.from_id == 0
        assert check.command.to_id == 1
        assert check.command.matures_at == T0 + timedelta(seconds=9)

    def test_valid_vote_yields_typed_command(self, ledger, validator):
        ledger.apply(f"{ts(1)} claim c1 {ts(9)} foo bank 50")
        check = validator.validate(parse_command_line(f"{ts(2)} vote c1 bank -1"))

        assert check.is_valid
        assert isinstance(check.command, VoteCommand)
        assert check.command.delta == -1

    def test_validation_does_not_mutate(self, ledger, validator):
        validator.validate(parse_command_line(f"{ts(1)} new_user bar"))
        validator.validate(parse_command_line(f"{ts(1)} mint m2 foo 10"))

        assert ledger.lookup_user_id("bar") is None
        assert ledger.get_claim("m2") is None

    @pytest.mark.parametrize("line,kind", [
        ("frobnicate", LedgerErrorKind.UNKNOWN_COMMAND),
        ("new_user foo", LedgerErrorKind.DUPLICATE_USER),
        ("new_user", LedgerErrorKind.MALFORMED_COMMAND),
        ("mint m1 foo 10", LedgerErrorKind.DUPLICATE_CLAIM_ID),
        ("mint m2 nobody 10", LedgerErrorKind.UNKNOWN_USER),
        ("mint m2 foo ten", LedgerErrorKind.INVALID_AMOUNT),
        ("mint m2 foo", LedgerErrorKind.MALFORMED_COMMAND),
        ("claim c1 soon foo bank 10", LedgerErrorKind.MALFORMED_COMMAND),
        ("claim m1 2021-06-05T00:00:00Z foo bank 10", LedgerErrorKind.DUPLICATE_CLAIM_ID),
        ("claim c1 2021-06-05T00:00:00Z foo bank 51", LedgerErrorKind.INSUFFICIENT_FUNDS),
        ("claim c1 2021-06-05T00:00:00Z bank bank 10", LedgerErrorKind.SELF_CLAIM),
        ("claim c1 2021-06-05T00:00:00Z foo bank -1", LedgerErrorKind.INVALID_AMOUNT),
        ("vote nope foo 1", LedgerErrorKind.UNKNOWN_CLAIM),
        ("vote m1 foo 1 extra", LedgerErrorKind.MALFORMED_COMMAND),
        ("vote m1 foo 1", LedgerErrorKind.CLAIM_ALREADY_MATURE),
    ])
    def test_rejections(self, validator, line, kind):
        check = validator.validate(parse_command_line(f"{ts(1)} {line}"))

        assert not check.is_valid
        assert check.error_kind == kind
        assert check.to_error().kind == kind

    def test_vote_checks_value_before_duplicate(self, ledger, validator):
        ledger.apply(f"{ts(1)} claim c1 {ts(9)} foo bank 50")
        ledger.apply(f"{ts(2)} vote c1 bank 1")

        check = validator.validate(parse_command_line(f"{ts(3)} vote c1 bank 5"))
        assert check.error_kind == LedgerErrorKind.INVALID_VOTE

    def test_self_confirm_checked_before_maturity(self, ledger, validator):
        ledger.apply(f"{ts(1)} claim c1 {ts(2)} foo bank 50")

        check = validator.validate(parse_command_line(f"{ts(3)} vote c1 foo 1"))
        assert check.error_kind == LedgerErrorKind.SELF_CONFIRMATION
