"""
Test Data Package
=================

Fixture HTML documents and preset definitions.
"""
