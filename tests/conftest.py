"""
Pytest configuration and shared fixtures.

Kernels run on numba's CUDA simulator so the suite needs no GPU; the variable
must be set before anything imports numba.cuda.
"""
import os

os.environ.setdefault("NUMBA_ENABLE_CUDASIM", "1")

import numpy as np
import pytest

from heat_simulation.buffers import DeviceAllocator, GridBuffer
from heat_simulation.config import SimulationConfig


@pytest.fixture
def allocator():
    return DeviceAllocator()


@pytest.fixture
def small_config():
    """A 4x4 grid covered by a single 4x4 tile."""
    return SimulationConfig(dim=4, tile=4, steps_per_frame=2)


@pytest.fixture
def make_grid(allocator):
    def _make(name, values):
        return GridBuffer.from_host(name, np.asarray(values, dtype=np.float32), allocator)
    return _make
