"""
AfterHeal Test Suite
====================

This package contains all tests for the AfterHeal missed-dose engine.

Test Structure:
- test_api/: API endpoint tests for FastAPI routes
- test_actions/: Missed-dose detector and scan scheduler tests
- test_services/: Service layer tests against in-memory SQLite
- test_tools/: Validator, dose generator and SMS gateway tests
- test_scripts/: Demo seed script tests
- conftest.py: Shared pytest fixtures

Running Tests:
    # Run all tests
    pytest

    # Run specific test module
    pytest tests/test_api/

    # Run only marked tests
    pytest -m "api"
"""
