"""
Tests for the vesting schedule - pure calculation functions and adapters

Tests:
- VestingSchedule validation and full_unlock
- calculate_vested_epochs: cliff gating, epoch stepping, cap
- calculate_unlocked_amount: rounding down, exact total at the end
- calculate_payable: never negative, net of released amount
- VestingEntry derived properties
- load_schedule / load_entries / load_entry / get_releasable_amount adapters
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from vestledger import NoEntry
from vestledger.units.vesting import (
    DEFAULT_VESTING_SCHEDULE, EntryStatus, VestingEntry, VestingSchedule,
    calculate_vested_epochs, calculate_unlocked_amount, calculate_payable,
    create_vesting_ledger, load_schedule, load_entries, load_entry,
    get_entry_count, get_releasable_amount,
)
from tests.fake_view import FakeView


T0 = datetime(2025, 1, 1)
NINTH = Decimal("11.111111111111111111")


def days(n: float) -> timedelta:
    return timedelta(days=n)


def _entry(total="100", released="0", start=T0) -> VestingEntry:
    return VestingEntry(0, "alice", Decimal(total), Decimal(released), start)


class TestVestingSchedule:

    def test_default_schedule(self):
        assert DEFAULT_VESTING_SCHEDULE.cliff == days(60)
        assert DEFAULT_VESTING_SCHEDULE.epoch == days(10)
        assert DEFAULT_VESTING_SCHEDULE.epoch_count == 9
        assert DEFAULT_VESTING_SCHEDULE.full_unlock == days(140)

    def test_single_epoch_is_cliff_only(self):
        schedule = VestingSchedule(cliff=days(30), epoch=days(1), epoch_count=1)
        assert schedule.full_unlock == days(30)

    @pytest.mark.parametrize("kwargs, message", [
        (dict(cliff=days(-1), epoch=days(1), epoch_count=1), "cliff"),
        (dict(cliff=days(1), epoch=days(0), epoch_count=1), "epoch must be positive"),
        (dict(cliff=days(1), epoch=days(1), epoch_count=0), "epoch_count"),
        (dict(cliff=days(1), epoch=days(1), epoch_count=True), "epoch_count"),
        (dict(cliff=days(1), epoch=days(1), epoch_count=2.0), "epoch_count"),
    ])
    def test_invalid_schedules(self, kwargs, message):
        with pytest.raises(ValueError, match=message):
            VestingSchedule(**kwargs)


class TestCalculateVestedEpochs:

    @pytest.mark.parametrize("elapsed, expected", [
        (days(0), 0),
        (days(50), 0),
        (days(60) - timedelta(seconds=1), 0),
        (days(60), 1),
        (days(69), 1),
        (days(70), 2),
        (days(73), 2),
        (days(139), 8),
        (days(140), 9),
        (days(153), 9),
        (days(10_000), 9),
    ])
    def test_default_schedule_steps(self, elapsed, expected):
        assert calculate_vested_epochs(DEFAULT_VESTING_SCHEDULE, elapsed) == expected

    def test_zero_cliff_unlocks_first_tranche_immediately(self):
        schedule = VestingSchedule(cliff=days(0), epoch=days(1), epoch_count=4)
        assert calculate_vested_epochs(schedule, days(0)) == 1
        assert calculate_vested_epochs(schedule, days(3)) == 4


class TestCalculateUnlockedAmount:

    @pytest.mark.parametrize("elapsed, expected", [
        (days(50), Decimal("0")),
        (days(60), NINTH),
        (days(73), Decimal("22.222222222222222222")),
        (days(139), Decimal("88.888888888888888888")),
        (days(140), Decimal("100")),
        (days(153), Decimal("100")),
    ])
    def test_default_schedule_amounts(self, elapsed, expected):
        assert calculate_unlocked_amount(Decimal("100"), DEFAULT_VESTING_SCHEDULE, elapsed) == expected

    def test_rounding_respects_decimal_places(self):
        unlocked = calculate_unlocked_amount(Decimal("100"), DEFAULT_VESTING_SCHEDULE, days(60), decimal_places=2)
        assert unlocked == Decimal("11.11")

    def test_even_split_is_exact(self):
        assert calculate_unlocked_amount(Decimal("90"), DEFAULT_VESTING_SCHEDULE, days(80)) == Decimal("30")

    def test_smallest_amount_unlocks_only_at_the_end(self):
        one_wei = Decimal("1e-18")
        assert calculate_unlocked_amount(one_wei, DEFAULT_VESTING_SCHEDULE, days(130)) == Decimal("0")
        assert calculate_unlocked_amount(one_wei, DEFAULT_VESTING_SCHEDULE, days(140)) == one_wei


class TestCalculatePayable:

    def test_payable_nets_out_released(self):
        entry = _entry(released="22.222222222222222222")
        payable = calculate_payable(entry, DEFAULT_VESTING_SCHEDULE, T0 + days(153))
        assert payable == Decimal("77.777777777777777778")

    def test_payable_zero_within_same_epoch(self):
        entry = _entry(released="22.222222222222222222")
        assert calculate_payable(entry, DEFAULT_VESTING_SCHEDULE, T0 + days(79)) == Decimal("0")

    def test_payable_never_negative(self):
        entry = _entry(released="50")
        assert calculate_payable(entry, DEFAULT_VESTING_SCHEDULE, T0 + days(61)) == Decimal("0")

    def test_payable_before_cliff(self):
        assert calculate_payable(_entry(), DEFAULT_VESTING_SCHEDULE, T0 + days(10)) == Decimal("0")


class TestVestingEntry:

    def test_open_entry(self):
        entry = _entry(released="40")
        assert not entry.fully_released
        assert entry.status == EntryStatus.OPEN
        assert entry.remaining == Decimal("60")

    def test_closed_entry(self):
        entry = _entry(released="100")
        assert entry.fully_released
        assert entry.status == EntryStatus.CLOSED
        assert entry.remaining == Decimal("0")


class TestAdapters:

    @pytest.fixture
    def view(self):
        state = create_vesting_ledger("VEST", "vesting").state
        state['entries'] = {
            'alice': [
                {'total_amount': Decimal("100"), 'released_amount': Decimal("0"), 'start_time': T0},
                {'total_amount': Decimal("9"), 'released_amount': Decimal("9"), 'start_time': T0 + days(1)},
            ],
        }
        return FakeView({'alice': {}, 'bob': {}}, states={'VEST': state}, time=T0 + days(73))

    def test_factory_rejects_empty_custody(self):
        with pytest.raises(ValueError, match="custody_wallet"):
            create_vesting_ledger("VEST", "")

    def test_factory_state(self):
        unit = create_vesting_ledger("VEST", "vesting")
        state = unit.state
        assert state['initialized'] is False
        assert state['custody_wallet'] == "vesting"
        assert state['entries'] == {}
        assert unit.max_balance == Decimal("0")

    def test_load_schedule_round_trips_factory(self):
        schedule = VestingSchedule(cliff=days(2), epoch=days(1), epoch_count=4)
        state = create_vesting_ledger("VEST", "vesting", schedule).state
        assert load_schedule(state) == schedule

    def test_load_entries_assigns_dense_ids(self, view):
        entries = load_entries(view, "VEST", "alice")
        assert [e.id for e in entries] == [0, 1]
        assert entries[1].status == EntryStatus.CLOSED
        assert entries[0].owner == "alice"

    def test_unknown_holder_has_no_entries(self, view):
        assert load_entries(view, "VEST", "bob") == []
        assert get_entry_count(view, "VEST", "bob") == 0
        assert get_entry_count(view, "VEST", "alice") == 2

    @pytest.mark.parametrize("entry_id", [2, -1, "0", True, None])
    def test_load_entry_missing(self, view, entry_id):
        with pytest.raises(NoEntry):
            load_entry(view, "VEST", "alice", entry_id)

    def test_entries_are_holder_scoped(self, view):
        with pytest.raises(NoEntry):
            load_entry(view, "VEST", "bob", 0)

    def test_get_releasable_amount(self, view):
        assert get_releasable_amount(view, "VEST", "alice", 0) == Decimal("22.222222222222222222")
        assert get_releasable_amount(view, "VEST", "alice", 1) == Decimal("0")
