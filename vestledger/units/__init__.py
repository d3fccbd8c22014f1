"""
Units module - Token and vesting ledger units.

This module provides the three units of the conversion flow:
- Source Token: freely transferable, allowance-based
- Restricted (Locked) Token: admin/whitelist-gated transfers
- Vesting ledger: conversion, claims and scheduled release

Functions whose names clash across units are re-exported with a unit prefix.
"""

# Source Token
from .source_token import (
    UNLIMITED_ALLOWANCE,
    create_source_token,
    get_allowance,
    compute_issue,
    compute_approve,
    compute_transfer as compute_source_transfer,
    compute_transfer_from,
    compute_burn as compute_source_burn,
)

# Restricted (Locked) Token
from .restricted_token import (
    can_transfer,
    restricted_transfer_rule,
    create_restricted_token,
    get_admin,
    get_vesting_address,
    is_whitelisted,
    get_total_supply,
    circulating_supply,
    compute_initialize as compute_restricted_initialize,
    compute_mint,
    compute_burn,
    compute_transfer as compute_restricted_transfer,
    compute_toggle_whitelist,
    compute_set_vesting_address,
)

# Vesting ledger
from .vesting import (
    DEFAULT_CLIFF,
    DEFAULT_EPOCH,
    DEFAULT_EPOCH_COUNT,
    DEFAULT_VESTING_SCHEDULE,
    RELEASE_ALL,
    ReleaseMode,
    EntryStatus,
    VestingSchedule,
    VestingEntry,
    calculate_vested_epochs,
    calculate_unlocked_amount,
    calculate_payable,
    create_vesting_ledger,
    load_schedule,
    load_entries,
    load_entry,
    get_entry_count,
    get_releasable_amount,
    compute_initialize as compute_vesting_initialize,
    compute_convert,
    compute_claim,
    compute_release,
    transact as vesting_transact,
)

__all__ = [
    # Source Token
    'UNLIMITED_ALLOWANCE', 'create_source_token', 'get_allowance',
    'compute_issue', 'compute_approve', 'compute_source_transfer', 'compute_transfer_from',
    'compute_source_burn',
    # Restricted Token
    'can_transfer', 'restricted_transfer_rule', 'create_restricted_token',
    'get_admin', 'get_vesting_address', 'is_whitelisted', 'get_total_supply', 'circulating_supply',
    'compute_restricted_initialize', 'compute_mint', 'compute_burn', 'compute_restricted_transfer',
    'compute_toggle_whitelist', 'compute_set_vesting_address',
    # Vesting ledger
    'DEFAULT_CLIFF', 'DEFAULT_EPOCH', 'DEFAULT_EPOCH_COUNT', 'DEFAULT_VESTING_SCHEDULE',
    'RELEASE_ALL', 'ReleaseMode', 'EntryStatus', 'VestingSchedule', 'VestingEntry',
    'calculate_vested_epochs', 'calculate_unlocked_amount', 'calculate_payable',
    'create_vesting_ledger', 'load_schedule', 'load_entries', 'load_entry',
    'get_entry_count', 'get_releasable_amount',
    'compute_vesting_initialize', 'compute_convert', 'compute_claim', 'compute_release',
    'vesting_transact',
]
