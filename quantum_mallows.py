"""Sampling of (Hadamard layer, permutation) pairs for random Cliffords.

Implements Algorithm 1 of Bravyi and Maslov, "Hadamard-free circuits expose
the structure of the Clifford group" (arXiv:2003.09412): the quantum Mallows
distribution P_n(h, S) over Hadamard masks h and permutations S, built from a
truncated geometric sampler with P(i) proportional to 2^i.
"""

from __future__ import annotations

import logging
import math
from typing import List, Tuple

import numpy as np

from shared_utilities import GEOMETRIC_EXACT_LIMIT, GEOMETRIC_FLOAT_LIMIT, SeedLike, as_rng

logger = logging.getLogger(__name__)


def _ceil_log2(k: int) -> int:
    """Exact ceil(log2(k)) for an integer k >= 1."""
    return (k - 1).bit_length()


def _uniform_bigint(rng: np.random.Generator, low: int, high: int) -> int:
    """Uniform integer in [low, high] for bounds beyond 64 bits."""
    span = high - low
    nbits = span.bit_length()
    nbytes = (nbits + 7) // 8
    mask = (1 << nbits) - 1
    while True:
        r = int.from_bytes(rng.bytes(nbytes), "little") & mask
        if r <= span:
            return low + r


def sample_geometric_2(rng: SeedLike, n: int) -> int:
    """Sample an integer from 1 to ``n`` with probability of ``i`` proportional to 2^i.

    Small bounds draw an exact integer in [2, 2^n] and take ceil(log2), moderate
    bounds apply the same transform in floating point, and large bounds fall
    back to arbitrary-precision integers since 2^n no longer fits a double.

    Raises:
        ValueError: If ``n < 1``
    """
    if n < 1:
        raise ValueError(f"Geometric sampler bound must be >= 1, got {n}")
    rng = as_rng(rng)
    if n < GEOMETRIC_EXACT_LIMIT:
        k = int(rng.integers(2, 2**n, endpoint=True))
        return _ceil_log2(k)
    elif n < GEOMETRIC_FLOAT_LIMIT:
        k = rng.random() * (2.0**n - 1) + 1
        # k == 1.0 only when the uniform draw is exactly zero
        return max(1, int(math.ceil(math.log2(k))))
    else:
        k = _uniform_bigint(rng, 2, 2**n)
        return _ceil_log2(k)


def quantum_mallows(rng: SeedLike, n: int) -> Tuple[np.ndarray, np.ndarray]:
    """Sample (h, S) from the distribution P_n(h, S) of Bravyi-Maslov Algorithm 1.

    Returns:
        hadamard: bool array of length n, True where a Hadamard is applied
        perm: int64 array holding a permutation of 0..n-1
    """
    if n < 1:
        raise ValueError(f"Number of qubits must be >= 1, got {n}")
    rng = as_rng(rng)
    arr: List[int] = list(range(n))
    hadamard = np.zeros(n, dtype=bool)
    perm = np.zeros(n, dtype=np.int64)
    for idx in range(n):
        m = len(arr)
        # sample h_i from the given prob distribution
        l = sample_geometric_2(rng, 2 * m)
        weight = 2 * m - l
        hadamard[idx] = weight < m
        k = weight if weight < m else 2 * m - weight - 1
        # list.pop keeps the remaining elements in order
        perm[idx] = arr.pop(k)
    logger.debug("[MALLOWS] n=%d, %d Hadamards", n, int(hadamard.sum()))
    return hadamard, perm
