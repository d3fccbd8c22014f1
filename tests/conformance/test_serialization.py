"""
Serialization Conformance Tests

INVARIANT: Transactions built from the same view serialize or are rejected.

    ∀ pendings P1, P2 built from view V, touching a common unit u:
        execute(P1) = APPLIED ⟹ execute(P2) = REJECTED ("stale state for u")
        state after both = state after P1 alone

Vesting entries of every holder live in one unit state, and every claim
burns against the Locked Token's recorded supply. A pending carrying the
state it was built on can therefore only be applied while that state is
still current; otherwise a holder's claim or release would silently undo
another holder's. The per-caller nonce does not cover this, because the
pendings come from different callers.
"""

from hypothesis import given, settings
from hypothesis import strategies as st
from decimal import Decimal

from vestledger import ExecuteResult
from vestledger.units.vesting import transact
from tests.deployment import CUSTODY, HOLDERS, deploy_system, ledger_snapshot, locked_supply_matches_balances


def _owed(system):
    return sum(
        (e.remaining for h in HOLDERS for e in system.vesting.entries(h)),
        Decimal("0"),
    )


class TestSerializationProperties:

    @given(st.permutations(HOLDERS), st.integers(min_value=60, max_value=200))
    @settings(max_examples=30, deadline=None)
    def test_one_release_per_view_then_retries_apply(self, order, day):
        system = deploy_system()
        for holder in HOLDERS:
            system.convert_and_claim(holder, Decimal("90"))
        system.advance_days(day)
        ledger = system.ledger

        pendings = {h: transact(ledger, "VEST", "RELEASE", h, entry_id=0) for h in order}
        results = [ledger.execute(pendings[h]) for h in order]

        assert results[0] == ExecuteResult.APPLIED
        assert results[1:] == [ExecuteResult.REJECTED] * (len(order) - 1)
        assert system.vesting.custody_balance() == _owed(system)

        for holder in order[1:]:
            retry = transact(ledger, "VEST", "RELEASE", holder, entry_id=0)
            assert ledger.execute(retry) == ExecuteResult.APPLIED

        paid = {h: system.vesting.entry(h, 0).released_amount for h in HOLDERS}
        assert len(set(paid.values())) == 1
        assert system.vesting.custody_balance() == _owed(system)

    @given(st.permutations(HOLDERS))
    @settings(max_examples=10, deadline=None)
    def test_concurrent_claims_never_lose_entries(self, order):
        system = deploy_system()
        for holder in HOLDERS:
            system.cruize.approve(holder, CUSTODY, 50)
            system.vesting.convert(holder, 50)
        ledger = system.ledger

        pendings = {h: transact(ledger, "VEST", "CLAIM", h, amount=Decimal("50")) for h in order}
        first, *rest = order
        assert ledger.execute(pendings[first]) == ExecuteResult.APPLIED
        for holder in rest:
            assert ledger.execute(pendings[holder]) == ExecuteResult.REJECTED
            assert ledger.last_rejection.startswith("stale state for")

        assert system.vesting.entries(first)[0].total_amount == Decimal("50")
        for holder in rest:
            assert system.vesting.entries(holder) == []
            assert system.armada.balance_of(holder) == Decimal("50")
        assert locked_supply_matches_balances(system.armada)
        assert system.vesting.custody_balance() == system.armada.total_supply() + _owed(system)


class TestSerializationExamples:

    def test_stale_release_cannot_reset_another_holders_entry(self):
        system = deploy_system()
        system.convert_and_claim("alice", Decimal("90"))
        system.convert_and_claim("bob", Decimal("90"))
        system.advance_days(200)
        ledger = system.ledger

        for_alice = transact(ledger, "VEST", "RELEASE", "alice", entry_id=0)
        for_bob = transact(ledger, "VEST", "RELEASE", "bob", entry_id=0)
        assert ledger.execute(for_bob) == ExecuteResult.APPLIED
        before = ledger_snapshot(ledger)

        assert ledger.execute(for_alice) == ExecuteResult.REJECTED
        assert ledger.last_rejection == "stale state for VEST"
        assert ledger_snapshot(ledger) == before
        assert system.vesting.entry("bob", 0).released_amount == Decimal("90")

        assert system.vesting.release("alice", 0) == Decimal("90")
        assert system.vesting.entry("bob", 0).released_amount == Decimal("90")
        assert system.vesting.custody_balance() == Decimal("0")

    def test_stale_claim_cannot_drop_another_holders_entry(self):
        system = deploy_system()
        for holder in ("alice", "bob"):
            system.cruize.approve(holder, CUSTODY, 50)
            system.vesting.convert(holder, 50)
        ledger = system.ledger

        for_alice = transact(ledger, "VEST", "CLAIM", "alice", amount=Decimal("50"))
        for_bob = transact(ledger, "VEST", "CLAIM", "bob", amount=Decimal("50"))
        assert ledger.execute(for_bob) == ExecuteResult.APPLIED
        assert ledger.execute(for_alice) == ExecuteResult.REJECTED

        assert system.vesting.claim("alice", 50) == 0
        assert [len(system.vesting.entries(h)) for h in ("alice", "bob")] == [1, 1]
        assert system.armada.total_supply() == Decimal("0")
        assert locked_supply_matches_balances(system.armada)

    def test_disjoint_units_still_serialize_freely(self, claimed):
        ledger = claimed.ledger
        claimed.advance_days(60)
        release = transact(ledger, "VEST", "RELEASE", "alice", entry_id=0)
        claimed.cruize.transfer("bob", "carol", 10)

        assert ledger.execute(release) == ExecuteResult.APPLIED
        assert claimed.vesting.entry("alice", 0).released_amount == Decimal("11.111111111111111111")
