"""Shared fixtures for the valora test suite."""
import pytest

from valora import catalog, unregister_type


@pytest.fixture
def custom_types():
    """Names registered here are unregistered from the global registry on teardown."""
    names: list[str] = []
    yield names
    for name in names:
        unregister_type(name)


@pytest.fixture(autouse=True)
def reset_catalog():
    yield
    catalog.reset()
