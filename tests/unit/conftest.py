"""Shared fixtures for unit tests."""

import logging

import pytest

from fileshare.domain.sandbox import SandboxedPath, sandbox_root


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Ensure logs propagate to root so caplog can catch them."""
    logger = logging.getLogger("fileshare")
    old_propagate = logger.propagate
    logger.propagate = True
    yield
    logger.propagate = old_propagate


@pytest.fixture(name="root")
def root_fixture(tmp_path) -> SandboxedPath:
    """A sandbox rooted at a private subdirectory of tmp_path."""
    shared = tmp_path / "shared"
    shared.mkdir()
    return sandbox_root(shared.as_posix())
