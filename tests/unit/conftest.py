"""
Unit test fixtures. Services run against the in-memory DB from the root conftest; no HTTP.
"""
