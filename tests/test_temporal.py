"""
Tests for point-in-time balances and pending claims

Historical answers must come from the prefix of the log before the
instant asked about, never from later commands.
"""

from datetime import datetime, timedelta, timezone

import pytest

from bbucks.ledger import Ledger
from bbucks.parsing import format_timestamp
from bbucks.queries import TemporalQueryEngine


T0 = datetime(2021, 6, 4, 15, 23, tzinfo=timezone.utc)


def at(seconds: float = 0) -> datetime:
    return T0 + timedelta(seconds=seconds)


def ts(seconds: float = 0) -> str:
    return format_timestamp(at(seconds))


@pytest.fixture
def ledger():
    return Ledger.replay([
        f"{ts(0)} new_user bank",
        f"{ts(0)} new_user foo",
        f"{ts(0)} new_user bar",
        f"{ts(0)} mint m1 bank 1000",
        f"{ts(10)} claim c1 {ts(20)} foo bank 100",
        f"{ts(15)} vote c1 bar -1",
        f"{ts(30)} new_user baz",
    ])


def circulating(ledger: Ledger, moment: datetime) -> int:
    """Sum of balances plus funds that have left a source but not yet arrived."""
    balances = sum(ledger.get_balance(name, moment) for name in ledger.users_snapshot())
    in_flight = sum(
        claim.amount
        for claim in ledger.claims_snapshot().values()
        if claim.from_id is not None
        and not claim.is_denied
        and not claim.is_mature_at(moment)
    )
    return balances + in_flight


class TestHistoricalBalance:

    def test_before_claim(self, ledger):
        assert ledger.get_balance("bank", at(5)) == 1000

    def test_claim_excluded_at_its_own_instant(self, ledger):
        """The prefix is strictly before the instant asked about."""
        assert ledger.get_balance("bank", at(10)) == 1000

    def test_after_claim_before_vote(self, ledger):
        assert ledger.get_balance("bank", at(12)) == 900

    def test_after_denial(self, ledger):
        assert ledger.get_balance("bank", at(16)) == 1000
        assert ledger.get_balance("foo", at(25)) == 0

    def test_before_first_command(self, ledger):
        assert ledger.get_balance("bank", at(-60)) == 0

    def test_user_created_later_has_zero_in_past(self, ledger):
        assert ledger.get_balance("baz", at(5)) == 0

    def test_naive_datetime_read_as_utc(self, ledger):
        naive = datetime(2021, 6, 4, 15, 23, 12)
        assert ledger.get_balance("bank", naive) == 900

    def test_live_ledger_is_not_rewound(self, ledger):
        history = ledger.history()
        ledger.get_balance("bank", at(12))
        assert ledger.history() == history
        assert ledger.get_claim("c1").votes == -1


class TestLiveBalance:

    def test_now_uses_live_claims(self, ledger):
        assert ledger.get_balance("bank") == 1000
        assert ledger.get_balance("foo") == 0

    def test_future_instant(self, ledger):
        assert ledger.get_balance("bank", at(3600)) == 1000

    def test_unknown_user(self, ledger):
        assert ledger.get_balance("nobody", at(12)) == 0
        assert ledger.get_balance("nobody") == 0


class TestDeniedClaimAccounting:
    """A denied claim counts on neither side: the source gets its funds back."""

    def test_denied_claim_returns_funds_to_source(self):
        ledger = Ledger.replay([
            f"{ts(0)} new_user bank",
            f"{ts(0)} new_user foo",
            f"{ts(0)} new_user bar",
            f"{ts(0)} mint m1 bank 1000",
            f"{ts(1)} claim c1 {ts(100)} foo bank 100",
            f"{ts(2)} vote c1 bar -1",
        ])

        assert ledger.get_balance("foo", at(200)) == 0
        assert ledger.get_balance("bank", at(200)) == 1000

    def test_denied_funds_are_spendable_again(self):
        ledger = Ledger.replay([
            f"{ts(0)} new_user bank",
            f"{ts(0)} new_user foo",
            f"{ts(0)} new_user bar",
            f"{ts(0)} mint m1 bank 100",
            f"{ts(1)} claim c1 {ts(100)} foo bank 100",
            f"{ts(2)} vote c1 bar -1",
        ])

        ledger.apply(f"{ts(3)} claim c2 {ts(100)} bar bank 100")
        assert ledger.get_balance("bank", at(3)) == 0


class TestConservation:

    @pytest.mark.parametrize("seconds", [0, 5, 10, 12, 16, 20, 25, 60])
    def test_minted_supply_is_conserved(self, ledger, seconds):
        ledger.apply(f"{ts(40)} claim c2 {ts(50)} bar bank 300")
        ledger.apply(f"{ts(41)} claim c3 {ts(41)} foo bank 200")

        moment = at(seconds)
        replica = ledger if moment >= ledger.last_timestamp else None
        if replica is None:
            replica = TemporalQueryEngine(ledger).rebuild_at(moment)

        minted = sum(
            claim.amount
            for claim in replica.claims_snapshot().values()
            if claim.is_mint
        )
        assert circulating(replica, moment) == minted


class TestPendingClaims:

    def test_pending_before_maturity(self, ledger):
        pending = ledger.get_pending_claims("foo", at(12))
        assert [claim.claim_id for claim in pending] == ["c1"]

    def test_source_sees_pending_claim(self, ledger):
        pending = ledger.get_pending_claims("bank", at(12))
        assert [claim.claim_id for claim in pending] == ["c1"]

    def test_not_pending_at_maturity(self, ledger):
        assert ledger.get_pending_claims("foo", at(20)) == []

    def test_denied_claims_still_listed(self, ledger):
        assert ledger.get_pending_claims("foo", at(16))[0].votes == -1

    def test_uninvolved_user(self, ledger):
        assert ledger.get_pending_claims("bar", at(12)) == []

    def test_mint_not_pending_once_minted(self, ledger):
        assert all(claim.claim_id != "m1" for claim in ledger.get_pending_claims("bank", at(0)))

    def test_claims_listed_regardless_of_creation_time(self, ledger):
        """Pending claims are read from the live ledger, not a replayed prefix."""
        pending = ledger.get_pending_claims("foo", at(5))
        assert [claim.claim_id for claim in pending] == ["c1"]

    def test_unknown_user(self, ledger):
        assert ledger.get_pending_claims("nobody", at(12)) == []


class TestRebuild:

    def test_rebuild_holds_strict_prefix(self, ledger):
        engine = TemporalQueryEngine(ledger)
        replica = engine.rebuild_at(at(15))

        assert len(replica.history()) == 5
        assert replica.get_claim("c1").votes == 0
        assert "baz" not in replica.users_snapshot()

    def test_rebuild_before_everything_is_empty(self, ledger):
        replica = TemporalQueryEngine(ledger).rebuild_at(at(-1))
        assert replica.history() == ()
