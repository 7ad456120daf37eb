"""
krbdiag Test Suite

Tests for the diagnostic pipeline:
- unit/: Unit tests for individual modules
- property/: Property-based tests using Hypothesis
"""
