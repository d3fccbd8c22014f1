"""
vestledger - Token Conversion and Vesting Ledger

Holders convert a freely transferable Source Token into a restricted Locked
Token, claim Locked Token into time-scheduled vesting entries, and release
the unlocked Source Token back after a cliff.

Usage:
    from datetime import datetime, timedelta
    from vestledger import Ledger, SourceToken, RestrictedToken, ConversionVestingLedger

    ledger = Ledger("main", datetime(2025, 1, 1))
    ledger.register_wallet("deployer")
    ledger.register_wallet("alice")

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

    ledger.advance_time(datetime(2025, 3, 15))
    paid = vesting.release("alice", entry_id)
"""

# Core types
from .core import (
    LedgerView,
    Move,
    Transaction,
    PendingTransaction,
    TransactionOrigin,
    OriginType,
    build_transaction,
    merge_transactions,
    empty_pending_transaction,
    Unit,
    UnitStateChange,
    ExecuteResult,
    SYSTEM_WALLET,
    TOKEN_DECIMAL_PLACES,
    UNIT_TYPE_SOURCE_TOKEN,
    UNIT_TYPE_RESTRICTED_TOKEN,
    UNIT_TYPE_VESTING_LEDGER,
    to_amount,
    # Exceptions
    LedgerError,
    InsufficientFunds,
    TransferRuleViolation,
    UnitNotRegistered,
    WalletNotRegistered,
    TransactionRejected,
    Unauthorized,
    NotTransferable,
    InsufficientBalance,
    InsufficientLockedBalance,
    InsufficientAllowance,
    TransferFailed,
    ZeroAmount,
    NoEntry,
    NotReleasable,
    NotEnoughReleasableAmount,
    AlreadyReleased,
    AlreadyInitialized,
    AlreadySet,
    NotInitialized,
)

# Ledger
from .ledger import Ledger

# Units
from .units import (
    UNLIMITED_ALLOWANCE,
    create_source_token,
    create_restricted_token,
    restricted_transfer_rule,
    create_vesting_ledger,
    DEFAULT_VESTING_SCHEDULE,
    RELEASE_ALL,
    ReleaseMode,
    EntryStatus,
    VestingSchedule,
    VestingEntry,
    calculate_vested_epochs,
    calculate_unlocked_amount,
    calculate_payable,
)

# Contract handles
from .contracts import (
    ContractHandle,
    SourceToken,
    RestrictedToken,
    ConversionVestingLedger,
)


__all__ = [
    # Core
    'LedgerView', 'Move', 'Transaction', 'PendingTransaction', 'TransactionOrigin', 'OriginType',
    'build_transaction', 'merge_transactions', 'empty_pending_transaction',
    'Unit', 'UnitStateChange', 'ExecuteResult',
    'SYSTEM_WALLET', 'TOKEN_DECIMAL_PLACES',
    'UNIT_TYPE_SOURCE_TOKEN', 'UNIT_TYPE_RESTRICTED_TOKEN', 'UNIT_TYPE_VESTING_LEDGER',
    'to_amount',
    # Exceptions
    'LedgerError', 'InsufficientFunds', 'TransferRuleViolation', 'UnitNotRegistered',
    'WalletNotRegistered', 'TransactionRejected', 'Unauthorized', 'NotTransferable',
    'InsufficientBalance', 'InsufficientLockedBalance', 'InsufficientAllowance',
    'TransferFailed', 'ZeroAmount', 'NoEntry', 'NotReleasable', 'NotEnoughReleasableAmount',
    'AlreadyReleased', 'AlreadyInitialized', 'AlreadySet', 'NotInitialized',
    # Ledger
    'Ledger',
    # Units
    'UNLIMITED_ALLOWANCE', 'create_source_token', 'create_restricted_token',
    'restricted_transfer_rule', 'create_vesting_ledger',
    'DEFAULT_VESTING_SCHEDULE', 'RELEASE_ALL', 'ReleaseMode', 'EntryStatus',
    'VestingSchedule', 'VestingEntry',
    'calculate_vested_epochs', 'calculate_unlocked_amount', 'calculate_payable',
    # Contract handles
    'ContractHandle', 'SourceToken', 'RestrictedToken', 'ConversionVestingLedger',
]

__version__ = '1.0.0'
