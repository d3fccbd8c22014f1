"""
contracts.py - Caller-facing handles over the pure token and vesting functions

Each handle binds a ledger and a unit symbol and exposes the operation names
of the deployed contract. A call builds the PendingTransaction through the
unit's compute_* function, stamps the caller's nonce into its origin, and
executes it. Domain failures surface as the LedgerError subclasses raised by
the compute_* functions; a rejection by the engine itself raises
TransactionRejected with the ledger's reason.

    ledger = Ledger("main", datetime(2025, 1, 1), verbose=False)
    for w in ("deployer", "alice"):
        ledger.register_wallet(w)

    cruize = SourceToken.deploy(ledger, "CRUIZE", "Cruize", owner="deployer")
    armada = RestrictedToken.deploy(ledger, "ARMADA", "Armada")
    vesting = ConversionVestingLedger.deploy(ledger, "VEST", custody_wallet="vesting")

    armada.initialize("deployer")
    armada.set_vesting_address("deployer", vesting.custody_wallet)
    vesting.initialize("deployer", cruize, armada)

    cruize.issue("deployer", "alice", 1000)
    cruize.approve("alice", vesting.custody_wallet, 100)
    vesting.convert("alice", 100)
    entry_id = vesting.claim("alice", 100)

static_call() evaluates any operation against a clone of the ledger and
returns its result without committing anything.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Any, List, Optional

from .core import (
    ExecuteResult, PendingTransaction, Transaction, TransactionRejected,
    merge_transactions, user_origin,
)
from .ledger import Ledger
from .units import restricted_token, source_token, vesting
from .units.vesting import RELEASE_ALL, ReleaseAmount, VestingEntry, VestingSchedule, DEFAULT_VESTING_SCHEDULE


def _symbol_of(token: Any) -> str:
    return getattr(token, 'symbol', token)


class ContractHandle:
    """Base for handles bound to one registered unit."""

    def __init__(self, ledger: Ledger, symbol: str):
        ledger.get_unit(symbol)
        self.ledger = ledger
        self.symbol = symbol

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.symbol!r} on {self.ledger.name!r})"

    def _submit(self, caller: str, event_type: str, pending: PendingTransaction) -> Transaction:
        """Execute one operation's transaction or raise."""
        if pending.origin.nonce is None:
            origin = user_origin(self.ledger, caller, self.symbol, event_type)
            pending = merge_transactions(self.ledger, [pending], origin)

        result = self.ledger.execute(pending)
        if result != ExecuteResult.APPLIED:
            raise TransactionRejected(
                f"{self.symbol}.{event_type.lower()} by {caller}: "
                f"{result.value} ({self.ledger.last_rejection})"
            )
        tx = self.ledger.transaction_log[-1]
        if self.ledger.verbose:
            print(f"✓ {self.symbol}.{event_type.lower()} by {caller} [{tx.exec_id}]")
        return tx

    def static_call(self, method: str, *args, **kwargs) -> Any:
        """
        Run `method` on a throwaway clone of the ledger and return its result.

        Errors propagate exactly as from the real call; the ledger this
        handle is bound to is never modified.
        """
        sandbox = self.ledger.clone()
        sandbox.verbose = False
        handle = type(self)(sandbox, self.symbol)
        return getattr(handle, method)(*args, **kwargs)


class SourceToken(ContractHandle):
    """Freely transferable ERC20-like token."""

    @classmethod
    def deploy(cls, ledger: Ledger, symbol: str, name: str, owner: str, decimal_places: int = 18) -> SourceToken:
        ledger.register_unit(source_token.create_source_token(symbol, name, owner, decimal_places))
        return cls(ledger, symbol)

    def issue(self, caller: str, to: str, amount) -> Transaction:
        return self._submit(caller, "ISSUE", source_token.compute_issue(self.ledger, self.symbol, caller, to, amount))

    def approve(self, caller: str, spender: str, amount) -> Transaction:
        pending = source_token.compute_approve(self.ledger, self.symbol, caller, spender, amount)
        return self._submit(caller, "APPROVE", pending)

    def transfer(self, caller: str, to: str, amount) -> Transaction:
        pending = source_token.compute_transfer(self.ledger, self.symbol, caller, to, amount)
        return self._submit(caller, "TRANSFER", pending)

    def transfer_from(self, caller: str, owner: str, to: str, amount) -> Transaction:
        pending = source_token.compute_transfer_from(self.ledger, self.symbol, caller, owner, to, amount)
        return self._submit(caller, "TRANSFER_FROM", pending)

    def burn(self, caller: str, amount) -> Transaction:
        return self._submit(caller, "BURN", source_token.compute_burn(self.ledger, self.symbol, caller, amount))

    def balance_of(self, wallet: str) -> Decimal:
        return self.ledger.get_balance(wallet, self.symbol)

    def allowance(self, owner: str, spender: str) -> Decimal:
        return source_token.get_allowance(self.ledger, self.symbol, owner, spender)

    def total_supply(self) -> Decimal:
        return self.ledger.get_unit_state(self.symbol)['total_supply']


class RestrictedToken(ContractHandle):
    """
    Access-gated Locked Token.

    Only the admin, whitelisted wallets and the vesting address may transfer.
    Mint and burn require the admin (or the vesting address).
    """

    @classmethod
    def deploy(cls, ledger: Ledger, symbol: str, name: str, decimal_places: int = 18) -> RestrictedToken:
        ledger.register_unit(restricted_token.create_restricted_token(symbol, name, decimal_places))
        return cls(ledger, symbol)

    def initialize(self, caller: str) -> Transaction:
        return self._submit(caller, "INITIALIZE", restricted_token.compute_initialize(self.ledger, self.symbol, caller))

    def mint(self, caller: str, to: str, amount) -> Transaction:
        pending = restricted_token.compute_mint(self.ledger, self.symbol, caller, to, amount)
        return self._submit(caller, "MINT", pending)

    def burn(self, caller: str, holder: str, amount) -> Transaction:
        pending = restricted_token.compute_burn(self.ledger, self.symbol, caller, holder, amount)
        return self._submit(caller, "BURN", pending)

    def transfer(self, caller: str, to: str, amount) -> Transaction:
        pending = restricted_token.compute_transfer(self.ledger, self.symbol, caller, to, amount)
        return self._submit(caller, "TRANSFER", pending)

    def toggle_whitelist(self, caller: str, address: str) -> Transaction:
        pending = restricted_token.compute_toggle_whitelist(self.ledger, self.symbol, caller, address)
        return self._submit(caller, "TOGGLE_WHITELIST", pending)

    def set_vesting_address(self, caller: str, address: str) -> Transaction:
        pending = restricted_token.compute_set_vesting_address(self.ledger, self.symbol, caller, address)
        return self._submit(caller, "SET_VESTING_ADDRESS", pending)

    def balance_of(self, wallet: str) -> Decimal:
        return self.ledger.get_balance(wallet, self.symbol)

    def total_supply(self) -> Decimal:
        return restricted_token.get_total_supply(self.ledger, self.symbol)

    def is_whitelisted(self, wallet: str) -> bool:
        return restricted_token.is_whitelisted(self.ledger, self.symbol, wallet)

    def admin(self) -> Optional[str]:
        return restricted_token.get_admin(self.ledger, self.symbol)

    def vesting_address(self) -> Optional[str]:
        return restricted_token.get_vesting_address(self.ledger, self.symbol)


class ConversionVestingLedger(ContractHandle):
    """Converts Source Token into Locked Token and vests it back on a schedule."""

    @classmethod
    def deploy(
        cls,
        ledger: Ledger,
        symbol: str,
        custody_wallet: str,
        schedule: VestingSchedule = DEFAULT_VESTING_SCHEDULE,
    ) -> ConversionVestingLedger:
        """Register the vesting ledger unit, and its custody wallet if new."""
        if not ledger.is_registered(custody_wallet):
            ledger.register_wallet(custody_wallet)
        ledger.register_unit(vesting.create_vesting_ledger(symbol, custody_wallet, schedule))
        return cls(ledger, symbol)

    @property
    def custody_wallet(self) -> str:
        return self.ledger.get_unit_state(self.symbol)['custody_wallet']

    @property
    def schedule(self) -> VestingSchedule:
        return vesting.load_schedule(self.ledger.get_unit_state(self.symbol))

    def _transact(self, caller: str, event_type: str, **kwargs) -> Transaction:
        pending = vesting.transact(self.ledger, self.symbol, event_type, caller, **kwargs)
        return self._submit(caller, event_type, pending)

    def initialize(self, caller: str, source, locked) -> Transaction:
        """Bind the Source Token and Locked Token (handles or symbols)."""
        return self._transact(caller, "INITIALIZE", source_token=_symbol_of(source), locked_token=_symbol_of(locked))

    def convert(self, caller: str, amount) -> Transaction:
        return self._transact(caller, "CONVERT", amount=amount)

    def claim(self, caller: str, amount) -> int:
        """Open a vesting entry and return its id."""
        entry_id = vesting.get_entry_count(self.ledger, self.symbol, caller)
        self._transact(caller, "CLAIM", amount=amount)
        return entry_id

    def release(self, caller: str, entry_id: int, amount: ReleaseAmount = RELEASE_ALL) -> Decimal:
        """Release from one entry and return the amount paid out."""
        pending = vesting.transact(self.ledger, self.symbol, "RELEASE", caller, entry_id=entry_id, amount=amount)
        before = self.entry(caller, entry_id).released_amount
        self._submit(caller, "RELEASE", pending)
        return self.entry(caller, entry_id).released_amount - before

    def entries(self, holder: str) -> List[VestingEntry]:
        return vesting.load_entries(self.ledger, self.symbol, holder)

    def entry(self, holder: str, entry_id: int) -> VestingEntry:
        return vesting.load_entry(self.ledger, self.symbol, holder, entry_id)

    def releasable_amount(self, holder: str, entry_id: int) -> Decimal:
        return vesting.get_releasable_amount(self.ledger, self.symbol, holder, entry_id)

    def custody_balance(self) -> Decimal:
        """Source Token held in custody against Locked Token supply and open entries."""
        state = self.ledger.get_unit_state(self.symbol)
        if state['source_token'] is None:
            return Decimal("0")
        return self.ledger.get_balance(state['custody_wallet'], state['source_token'])
