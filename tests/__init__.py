#!/usr/bin/env python3
"""
Test suite for TalentScout.

All tests run with standard Python tools and need no external services:

    # Run all tests
    python -m pytest tests/ -v

    # Only the tests that touch the store
    python -m pytest tests/ -v -m "db"

Store-backed tests use an in-memory SQLite database created from the
SQLAlchemy models (see tests/conftest.py); the email provider and the
classification service are replaced with the fakes in tests/mocks.
"""
