"""
Conformance Test Suite

These tests state the invariants every validator must keep, for arbitrary
inputs rather than hand-picked scenarios:

1. traversal_properties.py - Chunked reductions equal a single pass,
   pointer lists must follow the group chain
2. vault_properties.py - Vault diff conserves value, declared counters
   reconcile exactly when the vault moved the same amounts

These tests use hypothesis for property-based testing.
"""
