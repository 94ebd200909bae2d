"""Shared pytest fixtures for adminforge tests."""

from collections.abc import Iterator

import pytest
from jinja2 import Environment

from adminforge import Admin, AdminConfig, setup
from adminforge.runtime.template_renderer import create_jinja_env


@pytest.fixture
def admin_config() -> AdminConfig:
    """Return a config with credentials and an in-memory database."""
    return AdminConfig(
        path="/admin",
        database=":memory:",
        title="Test Admin",
        username="root",
        password="hunter2",
    )


@pytest.fixture
def admin(admin_config: AdminConfig) -> Iterator[Admin]:
    """Return an Admin that has been through setup()."""
    instance = setup(admin_config)
    yield instance
    instance.close()


@pytest.fixture
def templates() -> Environment:
    """Return an environment with the built-in templates only."""
    return create_jinja_env()
