"""
Test suite for tableprep.

- Unit tests for individual components (tests/unit)
- Integration tests against a live MySQL server (tests/integration)
"""
