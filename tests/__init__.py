"""
loreguard test suite.

Tests are organized by layer:
    tests/unit/         Unit tests (engine, resolver, allow-lists, guards, config)
    tests/integration/  CLI tests through click's CliRunner

Run all tests:
    pytest

Run unit tests only:
    pytest tests/unit/
"""
