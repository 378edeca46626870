"""
Shared test configuration and fixtures.

Provides fake header sources for the filename resolver, an isolated
environment for configuration loading, and custom marker registration.
"""

import pytest

from dlkit.core.exceptions import HeaderFetchError
from dlkit.core.templates import TemplateEngine


class FakeHeaderSource:
    """Async header source returning canned headers and recording calls."""

    def __init__(self, headers=None, error=None):
        self.headers = headers or {}
        self.error = error
        self.calls = []

    async def __call__(self, url, header_names):
        self.calls.append((url, list(header_names)))
        if self.error is not None:
            raise self.error
        return {name: self.headers.get(name) for name in header_names}


@pytest.fixture
def header_source_factory():
    """Build FakeHeaderSource instances from a header dict or an error."""
    def factory(headers=None, error=None):
        return FakeHeaderSource(headers=headers, error=error)
    return factory


@pytest.fixture
def not_found_error():
    """A header fetch failure as a transport would report it."""
    return HeaderFetchError(404, "Not Found", url="https://example.com/missing.jpg")


@pytest.fixture
def engine():
    """Template engine with the default presets."""
    return TemplateEngine()


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run in an empty directory with no DLKIT_* variables or user config."""
    import os
    for key in list(os.environ):
        if key.startswith("DLKIT_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# Pytest Configuration
def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "cli: marks tests that drive the command line interface"
    )
