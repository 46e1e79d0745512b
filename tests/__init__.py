"""
Test suite for docmigrate.

- Unit tests for the schema model, differs, planner and reconciler
- Store adapter tests against in-memory and mocked MongoDB backends
- CLI tests through click's test runner
"""
