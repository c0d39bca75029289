"""Test suite for convoform.

This package contains tests for:
- Validation pass (required, length boundaries, purity)
- Form state transitions (reducer, phase table)
- Event system (emission, serialization, listener isolation)
- Remote mutation adapter (response translation, tag normalization)
- Submission controller (validate-then-submit-once, double submit, retry)
"""
