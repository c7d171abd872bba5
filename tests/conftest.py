"""Shared pytest configuration for the calendarbot_recur test suite."""

from typing import Any


def pytest_configure(config: Any) -> None:
    """Configure pytest with test markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "critical_path: Core functionality tests")
    config.addinivalue_line("markers", "smoke: Basic smoke tests")
    config.addinivalue_line("markers", "fast: Tests that finish in milliseconds")
