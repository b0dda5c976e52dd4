"""Shared fixtures for the backend tests."""

import sys
from pathlib import Path

import pytest

backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from errorlog import (  # noqa: E402
    default_inhibit_set,
    default_registry,
    set_log_call_stack_directly,
    set_max_chain_depth,
)
from errorlog.unwrap import DEFAULT_MAX_DEPTH  # noqa: E402


@pytest.fixture(autouse=True)
def reset_error_logging():
    """Give every test empty process-wide registries and default settings."""
    default_registry.clear()
    default_inhibit_set.clear()
    yield
    default_registry.clear()
    default_inhibit_set.clear()
    set_log_call_stack_directly(False)
    set_max_chain_depth(DEFAULT_MAX_DEPTH)
