"""
conftest.py - Shared pytest fixtures for vesting ledger tests

Provides common fixtures used across unit, functional and conformance tests:
- Empty and wallet-populated ledgers
- A fully deployed Source Token / Locked Token / vesting ledger system
- Holders with claimed balances
"""

import pytest
from datetime import timedelta
from decimal import Decimal

from vestledger import Ledger, SourceToken, RestrictedToken, VestingSchedule

from tests.deployment import T0, DEPLOYER, HOLDERS, deploy_system


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def empty_ledger():
    """Fresh ledger with no registrations."""
    return Ledger("test", T0, verbose=False)


@pytest.fixture
def test_mode_ledger():
    """Ledger allowing set_balance(), with two wallets."""
    ledger = Ledger("test", T0, verbose=False, test_mode=True)
    ledger.register_wallet("alice")
    ledger.register_wallet("bob")
    return ledger


@pytest.fixture
def token_ledger():
    """Ledger with an uninitialized Locked Token and a funded Source Token."""
    ledger = Ledger("tokens", T0, verbose=False)
    ledger.register_wallet(DEPLOYER)
    for holder in HOLDERS:
        ledger.register_wallet(holder)
    cruize = SourceToken.deploy(ledger, "CRUIZE", "Cruize", owner=DEPLOYER)
    armada = RestrictedToken.deploy(ledger, "ARMADA", "Armada")
    cruize.issue(DEPLOYER, "alice", Decimal("1000"))
    return ledger, cruize, armada


@pytest.fixture
def initialized_armada(token_ledger):
    """Locked Token initialized with the deployer as admin."""
    ledger, cruize, armada = token_ledger
    armada.initialize(DEPLOYER)
    return armada


# =============================================================================
# SYSTEM FIXTURES
# =============================================================================

@pytest.fixture
def system():
    """Fully deployed system; every holder owns 10,000 Source Token."""
    return deploy_system()


@pytest.fixture
def claimed(system):
    """alice has claimed 100 into entry 0 at T0."""
    entry_id = system.convert_and_claim("alice", Decimal("100"))
    assert entry_id == 0
    return system


@pytest.fixture
def short_schedule():
    """Cliff of 2 days then 4 daily tranches."""
    return VestingSchedule(cliff=timedelta(days=2), epoch=timedelta(days=1), epoch_count=4)
