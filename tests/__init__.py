"""
Test suite for the fitting production tracker.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_lifecycle_service.py -v
"""
