"""Shared utility functions for the random Clifford samplers.

Contains the default constants, environment overrides and random-source
normalization used across multiple modules to keep them consistent.
"""

from __future__ import annotations

import os
from typing import Optional, Union

import numpy as np


# Simplified error handling - let standard exceptions bubble up naturally


# Constants to replace magic numbers
DEFAULT_PRECISE_INV_THRESHOLD = 200
DEFAULT_GF2_BACKEND = "galois"
DEFAULT_RANDOM_INVERTIBLE_MAX_TRIES = 10_000
GEOMETRIC_EXACT_LIMIT = 30
GEOMETRIC_FLOAT_LIMIT = 500
DEFAULT_SAMPLES = 1

PRECISE_INV_THRESHOLD_ENV = "CLIFFORD_PRECISE_INV_THRESHOLD"
GF2_BACKEND_ENV = "CLIFFORD_GF2_BACKEND"

SeedLike = Union[None, int, np.random.Generator]

_default_rng = np.random.default_rng()


def int_from_env(name: str, default: int) -> int:
    """Read a positive integer override from the environment.

    Args:
        name: Environment variable name
        default: Value used when the variable is unset or empty

    Returns:
        The parsed integer, or ``default``

    Raises:
        ValueError: If the variable is set but is not a positive integer
    """
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = int(raw)
    if value < 1:
        raise ValueError(f"{name} must be a positive integer, got {raw!r}")
    return value


def str_from_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower()


def default_rng() -> np.random.Generator:
    """Return the process-wide default generator."""
    return _default_rng


def seed_default_rng(seed: Optional[int]) -> np.random.Generator:
    """Replace the process-wide default generator with a freshly seeded one."""
    global _default_rng
    _default_rng = np.random.default_rng(seed)
    return _default_rng


def as_rng(seed: SeedLike = None) -> np.random.Generator:
    """Normalize a seed argument into a numpy Generator.

    ``None`` selects the process-wide default generator, an integer seeds a
    new generator and a Generator is passed through unchanged.
    """
    if seed is None:
        return _default_rng
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)
