"""Pytest fixtures for Build Tree tests."""

import pytest

from buildtree.process_runner import set_default_process_runner


@pytest.fixture(autouse=True)
def reset_default_process_runner():
    """The CLI installs a process-wide default runner; undo it after each test."""
    yield
    set_default_process_runner(None)
