"""
vesting.py - Conversion and Vesting Ledger

Holders convert Source Token into Locked Token, claim Locked Token into
time-scheduled vesting entries, and release unlocked Source Token back.

ARCHITECTURE (Pure Function Pattern):
=====================================

1. FROZEN DATACLASSES (explicit inputs):
   - VestingSchedule: cliff, epoch length and epoch count (fixed per ledger)
   - VestingEntry: one claim (total fixed, released grows until drained)

2. PURE CALCULATION FUNCTIONS (calculate_*):
   - Take all inputs explicitly, no LedgerView
   - calculate_vested_epochs, calculate_unlocked_amount, calculate_payable

3. ADAPTER FUNCTIONS (load_*):
   - Read unit state once and convert to the frozen dataclasses

4. OPERATIONS (compute_*):
   - Take (view, symbol, caller, ...), validate, and return one atomic
     PendingTransaction spanning the Source Token, the Locked Token and the
     vesting ledger's own state

Flow:
    convert(amount)   Source Token: holder -> custody   (allowance pull)
                      Locked Token: system -> holder    (mint)
    claim(amount)     Locked Token: holder -> system    (burn)
                      new entry {total=amount, released=0, start=now}
    release(id, amt)  Source Token: custody -> holder
                      entry.released += amt

Schedule:
    elapsed < cliff                     -> nothing unlocked (NotReleasable)
    k = min(n, (elapsed - cliff) // epoch + 1)
    unlocked = total * k / n            (rounded down; k == n gives total)

With the default schedule (60-day cliff, 10-day epochs, 9 epochs) an entry
unlocks 1/9 at day 60, 2/9 at day 70, and is fully unlocked at day 140.

Entry state machine: OPEN (released < total) -> CLOSED (released == total).
Entries are never deleted; ids are dense per holder starting at 0.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_DOWN
from enum import Enum
from typing import Any, Dict, List, Union

from ..core import (
    LedgerView, PendingTransaction, Unit, UnitStateChange,
    TOKEN_DECIMAL_PLACES, UNIT_TYPE_VESTING_LEDGER,
    AlreadyInitialized, AlreadyReleased, InsufficientAllowance, InsufficientBalance,
    InsufficientLockedBalance, NoEntry, NotEnoughReleasableAmount, NotInitialized,
    NotReleasable, TransferFailed,
    build_transaction, merge_transactions, require_positive, require_wallet,
    to_amount, user_origin,
    _freeze_state,
)
from . import restricted_token, source_token


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_CLIFF = timedelta(days=60)
DEFAULT_EPOCH = timedelta(days=10)
DEFAULT_EPOCH_COUNT = 9


class ReleaseMode(str, Enum):
    """Tagged release request that is not an exact amount."""
    ALL = "all"  # Everything currently payable


RELEASE_ALL = ReleaseMode.ALL

ReleaseAmount = Union[Decimal, int, str, ReleaseMode]


class EntryStatus(str, Enum):
    """Lifecycle status of a vesting entry."""
    OPEN = "open"       # released < total
    CLOSED = "closed"   # fully drained, terminal


# =============================================================================
# FROZEN DATACLASSES
# =============================================================================

@dataclass(frozen=True, slots=True)
class VestingSchedule:
    """
    Cliff-then-epoch unlock schedule.

    Attributes:
        cliff: Time after the claim before the first tranche unlocks
        epoch: Time between subsequent tranches
        epoch_count: Number of equal tranches (the first unlocks at the cliff)
    """
    cliff: timedelta
    epoch: timedelta
    epoch_count: int

    def __post_init__(self):
        if self.cliff < timedelta(0):
            raise ValueError(f"cliff must be non-negative, got {self.cliff}")
        if self.epoch <= timedelta(0):
            raise ValueError(f"epoch must be positive, got {self.epoch}")
        if isinstance(self.epoch_count, bool) or not isinstance(self.epoch_count, int) or self.epoch_count < 1:
            raise ValueError(f"epoch_count must be a positive integer, got {self.epoch_count}")

    @property
    def full_unlock(self) -> timedelta:
        """Elapsed time at which the whole entry is unlocked."""
        return self.cliff + self.epoch * (self.epoch_count - 1)


DEFAULT_VESTING_SCHEDULE = VestingSchedule(
    cliff=DEFAULT_CLIFF,
    epoch=DEFAULT_EPOCH,
    epoch_count=DEFAULT_EPOCH_COUNT,
)


@dataclass(frozen=True, slots=True)
class VestingEntry:
    """Immutable snapshot of one claim."""
    id: int
    owner: str
    total_amount: Decimal
    released_amount: Decimal
    start_time: datetime

    @property
    def fully_released(self) -> bool:
        return self.released_amount == self.total_amount

    @property
    def status(self) -> EntryStatus:
        return EntryStatus.CLOSED if self.fully_released else EntryStatus.OPEN

    @property
    def remaining(self) -> Decimal:
        return self.total_amount - self.released_amount


# =============================================================================
# PURE CALCULATION FUNCTIONS
# =============================================================================

def calculate_vested_epochs(schedule: VestingSchedule, elapsed: timedelta) -> int:
    """
    Number of tranches unlocked after `elapsed` time since the claim.

    Returns 0 before the cliff, 1 at the cliff, and never more than
    schedule.epoch_count.
    """
    if elapsed < schedule.cliff:
        return 0
    return min(schedule.epoch_count, (elapsed - schedule.cliff) // schedule.epoch + 1)


def calculate_unlocked_amount(
    total_amount: Decimal,
    schedule: VestingSchedule,
    elapsed: timedelta,
    decimal_places: int = TOKEN_DECIMAL_PLACES,
) -> Decimal:
    """
    Unlocked part of `total_amount`, rounded down to the token precision.

    Never exceeds total_amount; equals it exactly once all tranches unlocked.
    """
    epochs = calculate_vested_epochs(schedule, elapsed)
    if epochs >= schedule.epoch_count:
        return total_amount
    if epochs == 0:
        return Decimal("0")
    quantizer = Decimal(10) ** -decimal_places
    unlocked = (total_amount * epochs / schedule.epoch_count).quantize(quantizer, rounding=ROUND_DOWN)
    return min(unlocked, total_amount)


def calculate_payable(
    entry: VestingEntry,
    schedule: VestingSchedule,
    now: datetime,
    decimal_places: int = TOKEN_DECIMAL_PLACES,
) -> Decimal:
    """Unlocked-but-unpaid amount of an entry at `now`; never negative."""
    unlocked = calculate_unlocked_amount(
        entry.total_amount, schedule, now - entry.start_time, decimal_places
    )
    return max(Decimal("0"), unlocked - entry.released_amount)


# =============================================================================
# FACTORY
# =============================================================================

def create_vesting_ledger(
    symbol: str,
    custody_wallet: str,
    schedule: VestingSchedule = DEFAULT_VESTING_SCHEDULE,
    decimal_places: int = TOKEN_DECIMAL_PLACES,
) -> Unit:
    """
    Create an uninitialized vesting ledger unit.

    Args:
        symbol: Identifier of the vesting ledger (e.g., "VEST")
        custody_wallet: Wallet that holds converted Source Token. It must also
                        be registered as the Locked Token's vesting address.
        schedule: Unlock schedule applied to every entry
        decimal_places: Precision used when splitting an entry into tranches

    The unit itself is never held by wallets (max_balance 0); it carries the
    ledger's configuration and entries in its state.
    """
    if not custody_wallet or not custody_wallet.strip():
        raise ValueError("custody_wallet cannot be empty")
    return Unit(
        symbol=symbol,
        name=f"Vesting Ledger ({schedule.epoch_count} x {schedule.epoch.days}d after {schedule.cliff.days}d cliff)",
        unit_type=UNIT_TYPE_VESTING_LEDGER,
        min_balance=Decimal("0"),
        max_balance=Decimal("0"),
        decimal_places=decimal_places,
        _frozen_state=_freeze_state({
            'initialized': False,
            'custody_wallet': custody_wallet,
            'source_token': None,
            'locked_token': None,
            'cliff': schedule.cliff,
            'epoch': schedule.epoch,
            'epoch_count': schedule.epoch_count,
            'decimal_places': decimal_places,
            'entries': {},
        })
    )


# =============================================================================
# ADAPTER FUNCTIONS
# =============================================================================

def load_schedule(state: Dict[str, Any]) -> VestingSchedule:
    """Extract the VestingSchedule from a vesting ledger's state."""
    return VestingSchedule(
        cliff=state['cliff'],
        epoch=state['epoch'],
        epoch_count=state['epoch_count'],
    )


def _to_entry(holder: str, index: int, raw: Dict[str, Any]) -> VestingEntry:
    return VestingEntry(
        id=index,
        owner=holder,
        total_amount=raw['total_amount'],
        released_amount=raw['released_amount'],
        start_time=raw['start_time'],
    )


def load_entries(view: LedgerView, symbol: str, holder: str) -> List[VestingEntry]:
    """All entries of a holder in id order."""
    raw_entries = view.get_unit_state(symbol).get('entries', {}).get(holder, [])
    return [_to_entry(holder, i, raw) for i, raw in enumerate(raw_entries)]


def load_entry(view: LedgerView, symbol: str, holder: str, entry_id: int) -> VestingEntry:
    """
    One entry of a holder.

    Raises:
        NoEntry: If the holder has no entry with this id
    """
    if isinstance(entry_id, bool) or not isinstance(entry_id, int):
        raise NoEntry(f"{symbol}: invalid entry id {entry_id!r}")
    raw_entries = view.get_unit_state(symbol).get('entries', {}).get(holder, [])
    if not 0 <= entry_id < len(raw_entries):
        raise NoEntry(f"{symbol}: {holder} has no entry {entry_id}")
    return _to_entry(holder, entry_id, raw_entries[entry_id])


def get_entry_count(view: LedgerView, symbol: str, holder: str) -> int:
    return len(view.get_unit_state(symbol).get('entries', {}).get(holder, []))


def get_releasable_amount(view: LedgerView, symbol: str, holder: str, entry_id: int) -> Decimal:
    """Amount release() would currently pay for the entry (0 before the cliff)."""
    state = view.get_unit_state(symbol)
    entry = load_entry(view, symbol, holder, entry_id)
    return calculate_payable(entry, load_schedule(state), view.current_time, state['decimal_places'])


def _initialized_state(view: LedgerView, symbol: str) -> Dict[str, Any]:
    state = view.get_unit_state(symbol)
    if not state.get('initialized'):
        raise NotInitialized(f"{symbol} has not been initialized")
    return state


def _with_entries(state: Dict[str, Any], holder: str, raw_entries: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Return a copy of state with one holder's entry list replaced. Pure function."""
    entries = dict(state.get('entries', {}))
    entries[holder] = raw_entries
    return {**state, 'entries': entries}


# =============================================================================
# OPERATIONS
# =============================================================================

def compute_initialize(
    view: LedgerView,
    symbol: str,
    caller: str,
    source_symbol: str,
    locked_symbol: str,
) -> PendingTransaction:
    """
    Bind the vesting ledger to its Source Token and Locked Token. One-time.

    Raises:
        AlreadyInitialized: If called a second time
    """
    require_wallet(view, caller)
    state = view.get_unit_state(symbol)
    if state.get('initialized'):
        raise AlreadyInitialized(f"{symbol} already initialized")
    # Both collaborators must be registered units
    view.get_unit(source_symbol)
    view.get_unit(locked_symbol)

    new_state = {
        **state,
        'initialized': True,
        'source_token': source_symbol,
        'locked_token': locked_symbol,
    }
    origin = user_origin(view, caller, symbol, "INITIALIZE")
    return build_transaction(view, [], [UnitStateChange(symbol, state, new_state)], origin)


def compute_convert(view: LedgerView, symbol: str, caller: str, amount: Any) -> PendingTransaction:
    """
    Convert Source Token into Locked Token one-for-one.

    The caller must have approved the custody wallet beforehand.

    Raises:
        NotInitialized: Before initialize()
        ZeroAmount: If amount is zero
        TransferFailed: If the Source Token pull fails (allowance or balance)
        Unauthorized: If the custody wallet is not the Locked Token's vesting address
    """
    amount = to_amount(amount)
    state = _initialized_state(view, symbol)
    require_positive(amount, f"{symbol} convert")
    require_wallet(view, caller)
    custody = state['custody_wallet']

    try:
        pull = source_token.compute_transfer_from(
            view, state['source_token'], custody, caller, custody, amount
        )
    except (InsufficientAllowance, InsufficientBalance) as e:
        raise TransferFailed(f"{symbol} convert: {e}") from e

    mint = restricted_token.compute_mint(view, state['locked_token'], custody, caller, amount)
    origin = user_origin(view, caller, symbol, "CONVERT")
    return merge_transactions(view, [pull, mint], origin)


def compute_claim(view: LedgerView, symbol: str, caller: str, amount: Any) -> PendingTransaction:
    """
    Lock `amount` of the caller's Locked Token into a new vesting entry.

    The Locked Token is burned; the matching Source Token stays in custody
    until released. The entry gets the next id in the caller's sequence and
    starts vesting at the current ledger time.

    Raises:
        NotInitialized: Before initialize()
        ZeroAmount: If amount is zero
        InsufficientLockedBalance: If the caller holds less Locked Token than amount
    """
    amount = to_amount(amount)
    state = _initialized_state(view, symbol)
    require_positive(amount, f"{symbol} claim")
    locked = state['locked_token']

    balance = view.get_balance(caller, locked)
    if balance < amount:
        raise InsufficientLockedBalance(f"{symbol}: {caller} holds {balance} {locked}, claims {amount}")

    burn = restricted_token.compute_burn(view, locked, state['custody_wallet'], caller, amount)

    raw_entries = list(state.get('entries', {}).get(caller, []))
    raw_entries.append({
        'total_amount': amount,
        'released_amount': Decimal("0"),
        'start_time': view.current_time,
    })
    new_state = _with_entries(state, caller, raw_entries)
    record = build_transaction(view, [], [UnitStateChange(symbol, state, new_state)])

    origin = user_origin(view, caller, symbol, "CLAIM")
    return merge_transactions(view, [burn, record], origin)


def compute_release(
    view: LedgerView,
    symbol: str,
    caller: str,
    entry_id: int,
    amount: ReleaseAmount = RELEASE_ALL,
) -> PendingTransaction:
    """
    Pay out unlocked Source Token from one of the caller's entries.

    Args:
        entry_id: Position of the entry in the caller's sequence
        amount: Exact amount, or RELEASE_ALL for everything currently payable

    Checks, in order:
        NoEntry                    - entry id does not exist for the caller
        AlreadyReleased            - entry is closed
        NotReleasable              - cliff not reached (whatever the amount)
        ZeroAmount                 - exact amount of zero
        NotEnoughReleasableAmount  - amount above payable, or nothing payable

    Raises:
        NotInitialized: Before initialize()
    """
    if not isinstance(amount, ReleaseMode):
        amount = to_amount(amount)
    state = _initialized_state(view, symbol)
    schedule = load_schedule(state)
    entry = load_entry(view, symbol, caller, entry_id)

    if entry.fully_released:
        raise AlreadyReleased(f"{symbol}: entry {entry_id} of {caller} is fully released")

    now = view.current_time
    if now - entry.start_time < schedule.cliff:
        raise NotReleasable(
            f"{symbol}: entry {entry_id} of {caller} is releasable from "
            f"{entry.start_time + schedule.cliff}"
        )

    payable = calculate_payable(entry, schedule, now, state['decimal_places'])
    if amount is RELEASE_ALL:
        if payable <= 0:
            raise NotEnoughReleasableAmount(
                f"{symbol}: nothing releasable on entry {entry_id} of {caller} until the next epoch"
            )
        amount = payable
    else:
        require_positive(amount, f"{symbol} release")
        if amount > payable:
            raise NotEnoughReleasableAmount(
                f"{symbol}: requested {amount}, releasable {payable} on entry {entry_id} of {caller}"
            )

    pay = source_token.compute_transfer(
        view, state['source_token'], state['custody_wallet'], caller, amount
    )

    raw_entries = list(state['entries'][caller])
    raw_entries[entry_id] = {
        **raw_entries[entry_id],
        'released_amount': entry.released_amount + amount,
    }
    new_state = _with_entries(state, caller, raw_entries)
    record = build_transaction(view, [], [UnitStateChange(symbol, state, new_state)])

    origin = user_origin(view, caller, symbol, "RELEASE")
    return merge_transactions(view, [pay, record], origin)


# =============================================================================
# TRANSACTION INTERFACE
# =============================================================================

def transact(
    view: LedgerView,
    symbol: str,
    event_type: str,
    caller: str,
    **kwargs
) -> PendingTransaction:
    """
    Route a caller's vesting ledger event to its compute_* function.

    Args:
        view: Read-only ledger access
        symbol: Vesting ledger symbol
        event_type: Type of event:
            - INITIALIZE: Bind collaborators (requires 'source_token', 'locked_token')
            - CONVERT: Source Token -> Locked Token (requires 'amount')
            - CLAIM: Open a vesting entry (requires 'amount')
            - RELEASE: Pay out an entry (requires 'entry_id', optional 'amount')
        caller: Wallet performing the operation
        **kwargs: Event-specific parameters

    Example:
        pending = transact(view, "VEST", "CLAIM", "alice", amount=Decimal("100"))
        ledger.execute(pending)

    Raises:
        ValueError: If event_type is unknown or a required parameter is missing
    """
    def required(name: str) -> Any:
        if kwargs.get(name) is None:
            raise ValueError(f"Missing '{name}' parameter for {event_type} event on {symbol}")
        return kwargs[name]

    if event_type == 'INITIALIZE':
        return compute_initialize(view, symbol, caller, required('source_token'), required('locked_token'))

    elif event_type == 'CONVERT':
        return compute_convert(view, symbol, caller, required('amount'))

    elif event_type == 'CLAIM':
        return compute_claim(view, symbol, caller, required('amount'))

    elif event_type == 'RELEASE':
        amount = kwargs.get('amount')
        return compute_release(
            view, symbol, caller, required('entry_id'),
            RELEASE_ALL if amount is None else amount,
        )

    raise ValueError(f"Unknown event type {event_type!r} for {symbol}")
