"""
Test Suite
==========

Test suite matching the storefront/ package structure.

Test Categories:
- unit: Unit tests for individual components
- integration: API contracts and cross-engine consistency
"""
