"""
Test Suite
==========

Test Categories:
- unit: Unit tests for individual components
- integration: HTTP tests against the FastAPI application
"""
