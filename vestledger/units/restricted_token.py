"""
restricted_token.py - Access-Gated Locked Token

The Locked Token is intentionally illiquid: ordinary holders cannot move it.
Only three kinds of sender may transfer:

    admin            - set once by initialize()
    whitelisted      - curated by the admin via toggle_whitelist()
    vesting address  - the ConversionVestingLedger custody wallet

Mint and burn are admin operations. The vesting ledger's custody wallet is
also accepted as operator, because conversion mints Locked Token and a
claim burns it on the holder's behalf.

Unit state:
    initialized      bool
    admin            wallet id or None
    whitelist        sorted list of wallet ids (treated as a set)
    vesting_address  wallet id or None (set once)
    total_supply     Decimal, equal to the sum of all non-system balances

Functions:
1. create_restricted_token() - Factory with restricted_transfer_rule attached
2. compute_initialize / compute_mint / compute_burn / compute_transfer
3. compute_toggle_whitelist / compute_set_vesting_address
4. Queries: get_admin, get_vesting_address, is_whitelisted, get_total_supply,
   circulating_supply
"""

from __future__ import annotations
from decimal import Decimal
from typing import Any, Dict

from ..core import (
    LedgerView, Move, PendingTransaction, Unit, UnitStateChange,
    SYSTEM_WALLET, TOKEN_DECIMAL_PLACES, UNIT_TYPE_RESTRICTED_TOKEN,
    AlreadyInitialized, AlreadySet, InsufficientBalance, NotInitialized,
    NotTransferable, Unauthorized,
    build_transaction, require_positive, require_wallet, to_amount,
    _freeze_state,
)


# =============================================================================
# TRANSFER RULE
# =============================================================================

def can_transfer(state: Dict[str, Any], sender: str) -> bool:
    """True if `sender` is exempt from the transfer restriction. Pure function."""
    return (
        sender == state.get('admin')
        or sender == state.get('vesting_address')
        or sender in state.get('whitelist', [])
    )


def restricted_transfer_rule(view: LedgerView, move: Move) -> None:
    """
    Reject moves whose source is not admin, whitelisted or the vesting address.

    Moves from SYSTEM_WALLET (mint) and to SYSTEM_WALLET (burn) are issuance
    and redemption; their authorization is checked by compute_mint and
    compute_burn before the move is built.

    Raises:
        NotTransferable: If the source wallet is not exempt.
    """
    if move.source == SYSTEM_WALLET or move.dest == SYSTEM_WALLET:
        return
    state = view.get_unit_state(move.unit_symbol)
    if not can_transfer(state, move.source):
        raise NotTransferable(f"{move.unit_symbol}: NOT-TRANSFERRABLE from {move.source}")


# =============================================================================
# FACTORY
# =============================================================================

def create_restricted_token(
    symbol: str,
    name: str,
    decimal_places: int = TOKEN_DECIMAL_PLACES,
) -> Unit:
    """
    Create an uninitialized Locked Token unit.

    The admin is assigned by the first compute_initialize() call.
    """
    return Unit(
        symbol=symbol,
        name=name,
        unit_type=UNIT_TYPE_RESTRICTED_TOKEN,
        min_balance=Decimal("0"),
        decimal_places=decimal_places,
        transfer_rule=restricted_transfer_rule,
        _frozen_state=_freeze_state({
            'initialized': False,
            'admin': None,
            'whitelist': [],
            'vesting_address': None,
            'total_supply': Decimal("0"),
        })
    )


# =============================================================================
# QUERIES
# =============================================================================

def _initialized_state(view: LedgerView, symbol: str) -> Dict[str, Any]:
    state = view.get_unit_state(symbol)
    if not state.get('initialized'):
        raise NotInitialized(f"{symbol} has not been initialized")
    return state


def get_admin(view: LedgerView, symbol: str):
    return view.get_unit_state(symbol).get('admin')


def get_vesting_address(view: LedgerView, symbol: str):
    return view.get_unit_state(symbol).get('vesting_address')


def is_whitelisted(view: LedgerView, symbol: str, wallet: str) -> bool:
    return wallet in view.get_unit_state(symbol).get('whitelist', [])


def get_total_supply(view: LedgerView, symbol: str) -> Decimal:
    return view.get_unit_state(symbol).get('total_supply', Decimal("0"))


def circulating_supply(view: LedgerView, symbol: str) -> Decimal:
    """Sum of all holder balances, excluding the system wallet."""
    return sum(
        (qty for wallet, qty in view.get_positions(symbol).items() if wallet != SYSTEM_WALLET),
        Decimal("0"),
    )


# =============================================================================
# OPERATIONS
# =============================================================================

def compute_initialize(view: LedgerView, symbol: str, caller: str) -> PendingTransaction:
    """
    One-time setup: the caller becomes admin, supply starts at zero.

    Raises:
        AlreadyInitialized: If called a second time
    """
    require_wallet(view, caller)
    state = view.get_unit_state(symbol)
    if state.get('initialized'):
        raise AlreadyInitialized(f"{symbol} already initialized")
    new_state = {**state, 'initialized': True, 'admin': caller, 'total_supply': Decimal("0")}
    return build_transaction(view, [], [UnitStateChange(symbol, state, new_state)])


def _require_operator(state: Dict[str, Any], symbol: str, caller: str, operation: str) -> None:
    if caller not in (state['admin'], state.get('vesting_address')):
        raise Unauthorized(f"{symbol}: only the admin or the vesting address may {operation}, not {caller}")


def compute_mint(
    view: LedgerView,
    symbol: str,
    caller: str,
    to: str,
    amount: Any,
) -> PendingTransaction:
    """
    Create new Locked Token for `to`.

    Zero-amount mints are rejected rather than treated as no-ops.

    Raises:
        NotInitialized: Before initialize()
        Unauthorized: If caller is neither admin nor the vesting address
        ZeroAmount: If amount is zero
    """
    amount = to_amount(amount)
    state = _initialized_state(view, symbol)
    _require_operator(state, symbol, caller, "mint")
    require_positive(amount, f"{symbol} mint")
    require_wallet(view, to)

    new_state = {**state, 'total_supply': state['total_supply'] + amount}
    moves = [Move(amount, symbol, SYSTEM_WALLET, to, f'{symbol}_mint')]
    return build_transaction(view, moves, [UnitStateChange(symbol, state, new_state)])


def compute_burn(
    view: LedgerView,
    symbol: str,
    caller: str,
    holder: str,
    amount: Any,
) -> PendingTransaction:
    """
    Destroy `amount` of `holder`'s Locked Token.

    Raises:
        NotInitialized: Before initialize()
        Unauthorized: If caller is neither admin nor the vesting address
        ZeroAmount: If amount is zero
        InsufficientBalance: If holder has less than amount
    """
    amount = to_amount(amount)
    state = _initialized_state(view, symbol)
    _require_operator(state, symbol, caller, "burn")
    require_positive(amount, f"{symbol} burn")

    balance = view.get_balance(holder, symbol)
    if balance < amount:
        raise InsufficientBalance(f"{symbol}: {holder} has {balance}, cannot burn {amount}")

    new_state = {**state, 'total_supply': state['total_supply'] - amount}
    moves = [Move(amount, symbol, holder, SYSTEM_WALLET, f'{symbol}_burn')]
    return build_transaction(view, moves, [UnitStateChange(symbol, state, new_state)])


def compute_transfer(
    view: LedgerView,
    symbol: str,
    caller: str,
    to: str,
    amount: Any,
) -> PendingTransaction:
    """
    Transfer Locked Token from the caller's balance.

    Raises:
        NotInitialized: Before initialize()
        NotTransferable: If caller is not admin, whitelisted or the vesting address
        ZeroAmount: If amount is zero
        InsufficientBalance: If caller holds less than amount
    """
    amount = to_amount(amount)
    state = _initialized_state(view, symbol)
    if not can_transfer(state, caller):
        raise NotTransferable(f"{symbol}: NOT-TRANSFERRABLE from {caller}")
    require_positive(amount, f"{symbol} transfer")
    require_wallet(view, to)
    if caller == to:
        raise ValueError("sender and recipient must be different")

    balance = view.get_balance(caller, symbol)
    if balance < amount:
        raise InsufficientBalance(f"{symbol}: {caller} has {balance}, needs {amount}")

    moves = [Move(amount, symbol, caller, to, f'{symbol}_transfer')]
    return build_transaction(view, moves)


def compute_toggle_whitelist(
    view: LedgerView,
    symbol: str,
    caller: str,
    address: str,
) -> PendingTransaction:
    """
    Flip `address`'s whitelist membership.

    Raises:
        NotInitialized: Before initialize()
        Unauthorized: If caller is not admin
    """
    state = _initialized_state(view, symbol)
    if caller != state['admin']:
        raise Unauthorized(f"{symbol}: only admin can toggle the whitelist")
    require_wallet(view, address)

    members = set(state.get('whitelist', []))
    members.symmetric_difference_update({address})
    new_state = {**state, 'whitelist': sorted(members)}
    return build_transaction(view, [], [UnitStateChange(symbol, state, new_state)])


def compute_set_vesting_address(
    view: LedgerView,
    symbol: str,
    caller: str,
    address: str,
) -> PendingTransaction:
    """
    Register the vesting ledger's custody wallet. Can be set once.

    Raises:
        NotInitialized: Before initialize()
        Unauthorized: If caller is not admin
        AlreadySet: If a vesting address is already registered
    """
    state = _initialized_state(view, symbol)
    if caller != state['admin']:
        raise Unauthorized(f"{symbol}: only admin can set the vesting address")
    if state.get('vesting_address') is not None:
        raise AlreadySet(f"{symbol}: vesting address already set to {state['vesting_address']}")
    require_wallet(view, address)

    new_state = {**state, 'vesting_address': address}
    return build_transaction(view, [], [UnitStateChange(symbol, state, new_state)])
