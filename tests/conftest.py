"""Shared fixtures."""

import pytest

from fakempi import run_ranks


@pytest.fixture
def ranks():
    """Run a function on N fake MPI ranks: ``ranks(size, fn, *args)``."""
    return run_ranks
