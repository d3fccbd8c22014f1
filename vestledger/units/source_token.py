"""
source_token.py - Freely Transferable Source Token (ERC20-like)

This module provides the fungible token holders start with:
1. create_source_token() - Factory for the token unit
2. compute_issue() - Owner-only genesis issuance
3. compute_approve() - Set a spender's allowance
4. compute_transfer() - Move tokens from the sender
5. compute_transfer_from() - Pull tokens on behalf of an owner (allowance-checked)
6. compute_burn() - Holder destroys its own tokens

Allowances live in the unit state as a nested mapping
    allowances[owner][spender] -> Decimal
and UNLIMITED_ALLOWANCE is never decremented, matching the usual
"approve max" convention of ERC20 wallets.

All functions take LedgerView (read-only) and return a PendingTransaction.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Any, Dict

from ..core import (
    LedgerView, Move, PendingTransaction, Unit, UnitStateChange,
    SYSTEM_WALLET, TOKEN_DECIMAL_PLACES, UNIT_TYPE_SOURCE_TOKEN,
    InsufficientAllowance, InsufficientBalance, Unauthorized,
    build_transaction, require_positive, require_wallet, to_amount,
    _freeze_state,
)


UNLIMITED_ALLOWANCE = Decimal("Infinity")


def create_source_token(
    symbol: str,
    name: str,
    owner: str,
    decimal_places: int = TOKEN_DECIMAL_PLACES,
) -> Unit:
    """
    Create a Source Token unit.

    Args:
        symbol: Token symbol (e.g., "CRZ")
        name: Human-readable name
        owner: Wallet allowed to issue the genesis supply
        decimal_places: Fractional digits of an amount (default: 18)
    """
    if not owner or not owner.strip():
        raise ValueError("owner cannot be empty")
    return Unit(
        symbol=symbol,
        name=name,
        unit_type=UNIT_TYPE_SOURCE_TOKEN,
        min_balance=Decimal("0"),
        decimal_places=decimal_places,
        _frozen_state=_freeze_state({
            'owner': owner,
            'total_supply': Decimal("0"),
            'allowances': {},
        })
    )


def get_allowance(view: LedgerView, symbol: str, owner: str, spender: str) -> Decimal:
    """Amount `spender` may still pull from `owner`."""
    allowances = view.get_unit_state(symbol).get('allowances', {})
    return allowances.get(owner, {}).get(spender, Decimal("0"))


def _set_allowance(state: Dict[str, Any], owner: str, spender: str, amount: Decimal) -> Dict[str, Any]:
    """Return a copy of state with one allowance replaced. Pure function."""
    allowances = {o: dict(s) for o, s in state.get('allowances', {}).items()}
    allowances.setdefault(owner, {})[spender] = amount
    return {**state, 'allowances': allowances}


def compute_issue(
    view: LedgerView,
    symbol: str,
    caller: str,
    to: str,
    amount: Any,
) -> PendingTransaction:
    """
    Issue new Source Token to a wallet (genesis distribution).

    Raises:
        Unauthorized: If caller is not the token owner
        ZeroAmount: If amount is zero
    """
    amount = to_amount(amount)
    state = view.get_unit_state(symbol)
    if caller != state['owner']:
        raise Unauthorized(f"{symbol}: only {state['owner']} can issue, not {caller}")
    require_positive(amount, f"{symbol} issue")
    require_wallet(view, to)

    new_state = {**state, 'total_supply': state['total_supply'] + amount}
    moves = [Move(amount, symbol, SYSTEM_WALLET, to, f'{symbol}_issue')]
    return build_transaction(view, moves, [UnitStateChange(symbol, state, new_state)])


def compute_approve(
    view: LedgerView,
    symbol: str,
    owner: str,
    spender: str,
    amount: Any,
) -> PendingTransaction:
    """
    Set `spender`'s allowance over `owner`'s tokens (replaces, not adds).

    A zero amount revokes the allowance.
    """
    if amount == UNLIMITED_ALLOWANCE:
        amount = UNLIMITED_ALLOWANCE
    else:
        amount = to_amount(amount)
    require_wallet(view, owner)
    require_wallet(view, spender)
    if owner == spender:
        raise ValueError("owner and spender must be different")

    state = view.get_unit_state(symbol)
    new_state = _set_allowance(state, owner, spender, amount)
    return build_transaction(view, [], [UnitStateChange(symbol, state, new_state)])


def _debit_check(view: LedgerView, symbol: str, holder: str, amount: Decimal) -> None:
    balance = view.get_balance(holder, symbol)
    if balance < amount:
        raise InsufficientBalance(f"{symbol}: {holder} has {balance}, needs {amount}")


def compute_transfer(
    view: LedgerView,
    symbol: str,
    sender: str,
    to: str,
    amount: Any,
) -> PendingTransaction:
    """
    Transfer tokens from the sender's own balance.

    Raises:
        ZeroAmount: If amount is zero
        InsufficientBalance: If sender holds less than amount
    """
    amount = to_amount(amount)
    require_positive(amount, f"{symbol} transfer")
    require_wallet(view, to)
    if sender == to:
        raise ValueError("sender and recipient must be different")
    _debit_check(view, symbol, sender, amount)

    moves = [Move(amount, symbol, sender, to, f'{symbol}_transfer')]
    return build_transaction(view, moves)


def compute_transfer_from(
    view: LedgerView,
    symbol: str,
    spender: str,
    owner: str,
    to: str,
    amount: Any,
) -> PendingTransaction:
    """
    Pull tokens from `owner` to `to` using `spender`'s allowance.

    Returns:
        PendingTransaction with the move and, for finite allowances, the
        decremented allowance.

    Raises:
        ZeroAmount: If amount is zero
        InsufficientAllowance: If the allowance is below amount
        InsufficientBalance: If owner holds less than amount
    """
    amount = to_amount(amount)
    require_positive(amount, f"{symbol} transferFrom")
    require_wallet(view, to)
    if owner == to:
        raise ValueError("owner and recipient must be different")

    state = view.get_unit_state(symbol)
    allowed = get_allowance(view, symbol, owner, spender)
    if allowed < amount:
        raise InsufficientAllowance(
            f"{symbol}: {spender} may pull {allowed} from {owner}, needs {amount}"
        )
    _debit_check(view, symbol, owner, amount)

    moves = [Move(amount, symbol, owner, to, f'{symbol}_transfer_from')]
    state_changes = []
    if allowed != UNLIMITED_ALLOWANCE:
        new_state = _set_allowance(state, owner, spender, allowed - amount)
        state_changes.append(UnitStateChange(symbol, state, new_state))
    return build_transaction(view, moves, state_changes)


def compute_burn(
    view: LedgerView,
    symbol: str,
    holder: str,
    amount: Any,
) -> PendingTransaction:
    """
    Destroy `amount` of the holder's own tokens.

    Any holder may burn from its own balance; nobody may burn from another's.

    Raises:
        ZeroAmount: If amount is zero
        InsufficientBalance: If holder has less than amount
    """
    amount = to_amount(amount)
    require_positive(amount, f"{symbol} burn")
    require_wallet(view, holder)
    _debit_check(view, symbol, holder, amount)

    state = view.get_unit_state(symbol)
    new_state = {**state, 'total_supply': state['total_supply'] - amount}
    moves = [Move(amount, symbol, holder, SYSTEM_WALLET, f'{symbol}_burn')]
    return build_transaction(view, moves, [UnitStateChange(symbol, state, new_state)])
