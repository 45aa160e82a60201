"""
Shared pytest setup: Taichi runs on the CPU backend once per session.

Modules under test allocate no fields at import time, so collection can
happen before ti.init().
"""

import numpy as np
import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def taichi_cpu():
    ti.init(arch=ti.cpu, random_seed=0)
    yield


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
