"""Shared pytest configuration for notecal_lite tests."""

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers used across the suite."""
    config.addinivalue_line("markers", "unit: fast, isolated unit tests")
    config.addinivalue_line("markers", "smoke: critical-path checks")
