# worklog/tests/__init__.py
"""
Work Log Test Suite
===================

Unit and integration tests for the worklog application.

Modules:
--------
- test_engine: Fallback scoring engine (deterministic task points, weekly rating)
- test_orchestration: Oracle adapter, response parsing and the scoring pipeline
- test_lifecycle: Create/complete/delete/batch-delete and ledger conservation
- test_api: HTTP endpoints

Running Tests:
--------------
    # Run all work log tests
    python manage.py test worklog

    # Run specific test module
    python manage.py test worklog.tests.test_engine

    # Or with pytest from the repository root
    pytest backend/worklog
"""
