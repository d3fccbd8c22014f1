"""
Tests for source_token.py - Freely Transferable Source Token

Tests:
- create_source_token factory
- compute_issue (owner-only genesis issuance)
- compute_approve / get_allowance (replace semantics, unlimited allowance)
- compute_transfer / compute_transfer_from (balance and allowance checks)
- compute_burn (holder burns its own balance)
- SourceToken handle
"""

import pytest
from datetime import datetime
from decimal import Decimal

from vestledger import (
    SYSTEM_WALLET, UNIT_TYPE_SOURCE_TOKEN, UNLIMITED_ALLOWANCE,
    Unauthorized, ZeroAmount, InsufficientBalance, InsufficientAllowance,
    WalletNotRegistered,
)
from vestledger.units.source_token import (
    create_source_token, get_allowance,
    compute_issue, compute_approve, compute_transfer, compute_transfer_from,
    compute_burn,
)
from tests.fake_view import FakeView


DEPLOYER = "deployer"


def _view(alice=Decimal("100"), allowances=None) -> FakeView:
    return FakeView(
        balances={
            'alice': {'CRUIZE': alice},
            'bob': {},
            'vesting': {},
            DEPLOYER: {},
        },
        states={'CRUIZE': {
            'owner': DEPLOYER,
            'total_supply': alice,
            'allowances': allowances or {},
        }},
        time=datetime(2025, 1, 1),
    )


class TestCreateSourceToken:

    def test_create_basic(self):
        unit = create_source_token("CRUIZE", "Cruize", owner=DEPLOYER)
        assert unit.unit_type == UNIT_TYPE_SOURCE_TOKEN
        assert unit.decimal_places == 18
        assert unit.min_balance == Decimal("0")
        assert unit.transfer_rule is None
        assert unit.state == {'owner': DEPLOYER, 'total_supply': Decimal("0"), 'allowances': {}}

    def test_owner_required(self):
        with pytest.raises(ValueError, match="owner cannot be empty"):
            create_source_token("CRUIZE", "Cruize", owner=" ")


class TestComputeIssue:

    def test_issue_moves_from_system(self):
        pending = compute_issue(_view(), "CRUIZE", DEPLOYER, "bob", 50)
        assert len(pending.moves) == 1
        move = pending.moves[0]
        assert (move.source, move.dest, move.quantity) == (SYSTEM_WALLET, "bob", Decimal("50"))
        assert pending.state_changes[0].new_state['total_supply'] == Decimal("150")

    def test_only_owner_can_issue(self):
        with pytest.raises(Unauthorized, match="only deployer can issue"):
            compute_issue(_view(), "CRUIZE", "alice", "alice", 50)

    def test_zero_issue_rejected(self):
        with pytest.raises(ZeroAmount):
            compute_issue(_view(), "CRUIZE", DEPLOYER, "bob", 0)

    def test_unknown_recipient_rejected(self):
        with pytest.raises(WalletNotRegistered):
            compute_issue(_view(), "CRUIZE", DEPLOYER, "mallory", 5)


class TestComputeApprove:

    def test_approve_sets_allowance(self):
        pending = compute_approve(_view(), "CRUIZE", "alice", "vesting", "40")
        new_state = pending.state_changes[0].new_state
        assert new_state['allowances'] == {'alice': {'vesting': Decimal("40")}}
        assert pending.moves == ()

    def test_approve_replaces_previous(self):
        view = _view(allowances={'alice': {'vesting': Decimal("40")}})
        pending = compute_approve(view, "CRUIZE", "alice", "vesting", 10)
        assert pending.state_changes[0].new_state['allowances']['alice']['vesting'] == Decimal("10")

    def test_approve_zero_revokes(self):
        view = _view(allowances={'alice': {'vesting': Decimal("40")}})
        pending = compute_approve(view, "CRUIZE", "alice", "vesting", 0)
        assert pending.state_changes[0].new_state['allowances']['alice']['vesting'] == Decimal("0")

    def test_approve_does_not_mutate_view_state(self):
        allowances = {'alice': {'bob': Decimal("1")}}
        view = _view(allowances=allowances)
        compute_approve(view, "CRUIZE", "alice", "vesting", 10)
        assert allowances == {'alice': {'bob': Decimal("1")}}

    def test_unlimited_allowance(self):
        pending = compute_approve(_view(), "CRUIZE", "alice", "vesting", UNLIMITED_ALLOWANCE)
        assert pending.state_changes[0].new_state['allowances']['alice']['vesting'] == UNLIMITED_ALLOWANCE

    def test_self_approval_rejected(self):
        with pytest.raises(ValueError, match="owner and spender must be different"):
            compute_approve(_view(), "CRUIZE", "alice", "alice", 1)

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            compute_approve(_view(), "CRUIZE", "alice", "vesting", -1)

    def test_get_allowance_defaults_to_zero(self):
        assert get_allowance(_view(), "CRUIZE", "alice", "vesting") == Decimal("0")


class TestComputeTransfer:

    def test_transfer(self):
        pending = compute_transfer(_view(), "CRUIZE", "alice", "bob", Decimal("60"))
        move = pending.moves[0]
        assert (move.source, move.dest, move.quantity) == ("alice", "bob", Decimal("60"))
        assert pending.state_changes == ()

    def test_transfer_more_than_balance(self):
        with pytest.raises(InsufficientBalance, match="alice has 100, needs 101"):
            compute_transfer(_view(), "CRUIZE", "alice", "bob", 101)

    def test_transfer_zero(self):
        with pytest.raises(ZeroAmount):
            compute_transfer(_view(), "CRUIZE", "alice", "bob", 0)

    def test_transfer_to_self(self):
        with pytest.raises(ValueError, match="different"):
            compute_transfer(_view(), "CRUIZE", "alice", "alice", 1)


class TestComputeTransferFrom:

    def test_pull_decrements_allowance(self):
        view = _view(allowances={'alice': {'vesting': Decimal("70")}})
        pending = compute_transfer_from(view, "CRUIZE", "vesting", "alice", "vesting", 50)
        move = pending.moves[0]
        assert (move.source, move.dest, move.quantity) == ("alice", "vesting", Decimal("50"))
        assert pending.state_changes[0].new_state['allowances']['alice']['vesting'] == Decimal("20")

    def test_unlimited_allowance_not_decremented(self):
        view = _view(allowances={'alice': {'vesting': UNLIMITED_ALLOWANCE}})
        pending = compute_transfer_from(view, "CRUIZE", "vesting", "alice", "vesting", 50)
        assert pending.state_changes == ()

    def test_insufficient_allowance(self):
        view = _view(allowances={'alice': {'vesting': Decimal("10")}})
        with pytest.raises(InsufficientAllowance, match="vesting may pull 10 from alice"):
            compute_transfer_from(view, "CRUIZE", "vesting", "alice", "vesting", 50)

    def test_allowance_checked_before_balance(self):
        with pytest.raises(InsufficientAllowance):
            compute_transfer_from(_view(alice=Decimal("0")), "CRUIZE", "vesting", "alice", "vesting", 50)

    def test_insufficient_balance(self):
        view = _view(alice=Decimal("10"), allowances={'alice': {'vesting': Decimal("70")}})
        with pytest.raises(InsufficientBalance):
            compute_transfer_from(view, "CRUIZE", "vesting", "alice", "vesting", 50)


class TestComputeBurn:

    def test_burn_moves_to_system_and_shrinks_supply(self):
        pending = compute_burn(_view(), "CRUIZE", "alice", 40)
        move = pending.moves[0]
        assert (move.source, move.dest, move.quantity) == ("alice", SYSTEM_WALLET, Decimal("40"))
        assert pending.state_changes[0].new_state['total_supply'] == Decimal("60")

    def test_burn_more_than_balance(self):
        with pytest.raises(InsufficientBalance):
            compute_burn(_view(), "CRUIZE", "alice", 101)

    def test_burn_zero(self):
        with pytest.raises(ZeroAmount, match="CRUIZE burn"):
            compute_burn(_view(), "CRUIZE", "alice", 0)


class TestSourceTokenHandle:

    def test_issue_approve_transfer_from(self, token_ledger):
        ledger, cruize, _ = token_ledger
        cruize.approve("alice", "bob", 300)
        cruize.transfer_from("bob", "alice", "carol", 200)
        assert cruize.balance_of("alice") == Decimal("800")
        assert cruize.balance_of("carol") == Decimal("200")
        assert cruize.allowance("alice", "bob") == Decimal("100")
        assert cruize.total_supply() == Decimal("1000")

    def test_repeated_identical_transfers_all_apply(self, token_ledger):
        ledger, cruize, _ = token_ledger
        for _ in range(3):
            cruize.transfer("alice", "bob", 10)
        assert cruize.balance_of("bob") == Decimal("30")
        assert ledger.get_nonce("alice") == 3

    def test_failed_call_leaves_ledger_untouched(self, token_ledger):
        ledger, cruize, _ = token_ledger
        log_length = len(ledger.transaction_log)
        with pytest.raises(InsufficientBalance):
            cruize.transfer("bob", "alice", 1)
        assert len(ledger.transaction_log) == log_length
        assert ledger.get_nonce("bob") == 0

    def test_static_call_does_not_commit(self, token_ledger):
        ledger, cruize, _ = token_ledger
        tx = cruize.static_call("transfer", "alice", "bob", 10)
        assert tx.moves[0].quantity == Decimal("10")
        assert cruize.balance_of("bob") == Decimal("0")
        assert ledger.get_nonce("alice") == 0

    def test_verbose_handle_prints_one_line(self, token_ledger, capsys):
        ledger, cruize, _ = token_ledger
        ledger.verbose = True
        cruize.transfer("alice", "bob", 10)
        out = capsys.readouterr().out
        assert "✓ CRUIZE.transfer by alice [exec:tokens:" in out

    def test_owner_burn_dry_run_then_commit(self, token_ledger):
        ledger, cruize, _ = token_ledger
        cruize.issue(DEPLOYER, DEPLOYER, 500)

        tx = cruize.static_call("burn", DEPLOYER, 100)
        assert tx.origin.event_type == "BURN"
        assert cruize.total_supply() == Decimal("1500")

        cruize.burn(DEPLOYER, 100)
        assert cruize.balance_of(DEPLOYER) == Decimal("400")
        assert cruize.total_supply() == Decimal("1400")
        assert ledger.total_supply("CRUIZE") == Decimal("0")

    def test_cannot_burn_without_balance(self, token_ledger):
        _, cruize, _ = token_ledger
        with pytest.raises(InsufficientBalance):
            cruize.burn("bob", 1)
