"""
Test Utilities
==============

Fake collaborators shared by unit and integration tests.
"""

from .fakes import FAKE_PDF, FakeFetcher, FakeRenderer
