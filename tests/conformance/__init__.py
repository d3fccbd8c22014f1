"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the token and vesting ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Supply and custody accounting invariants
2. atomicity.py - Failed operations leave no trace
3. idempotency.py - Duplicate and stale submissions
4. temporal.py - Cliff gating and monotone release over time
5. determinism.py - Identical replays give identical ledgers
6. serialization.py - Pendings built from one view cannot overwrite each other

These tests use hypothesis for property-based testing.
"""
