"""Exact linear algebra over GF(2) for the tableau samplers.

Provides the invertibility test, rejection sampling of invertible matrices and
matrix inversion. Inversion follows a dual strategy: small orders go through
floating point and are rounded back to {0, 1}; large orders (or any float
result that fails the check) go through an exact GF(2) backend.
"""

from __future__ import annotations

import logging
from typing import Optional

import galois
import numpy as np
from ldpc import mod2

from shared_utilities import (
    DEFAULT_GF2_BACKEND,
    DEFAULT_PRECISE_INV_THRESHOLD,
    DEFAULT_RANDOM_INVERTIBLE_MAX_TRIES,
    GF2_BACKEND_ENV,
    PRECISE_INV_THRESHOLD_ENV,
    SeedLike,
    as_rng,
    int_from_env,
    str_from_env,
)

logger = logging.getLogger(__name__)

_GF2 = galois.GF(2)


class SingularMatrixError(ValueError):
    """Raised when a matrix has no inverse over GF(2)."""


class SamplingExhaustedError(RuntimeError):
    """Raised when rejection sampling does not terminate within its cap."""


def _as_square_gf2(a: np.ndarray) -> np.ndarray:
    """Return ``a`` reduced mod 2 as uint8, checking that it is square."""
    arr = np.asarray(a)
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
        raise ValueError(f"Expected a square matrix, got shape {arr.shape}")
    return (arr.astype(np.int64) % 2).astype(np.uint8)


def gf2_matmul(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Matrix product reduced mod 2, returned as uint8."""
    prod = np.asarray(a, dtype=np.int64) @ np.asarray(b, dtype=np.int64)
    return (prod % 2).astype(np.uint8)


def gf2_is_invertible(mat: np.ndarray) -> bool:
    """Return True if the square binary matrix ``mat`` is invertible over GF(2)."""
    arr = np.asarray(mat)
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
        return False
    n = arr.shape[0]
    if n == 0:
        return True
    return int(mod2.rank(_as_square_gf2(arr))) == n


def random_invertible_gf2(
    n: int, rng: SeedLike = None, max_tries: Optional[int] = None
) -> np.ndarray:
    """Draw a uniformly random invertible n x n matrix over GF(2).

    Fair-coin matrices are drawn until one is invertible. About 29% of large
    binary matrices are invertible, so a handful of draws suffices; the loop is
    still capped by ``max_tries``.

    Raises:
        ValueError: If ``n < 1``
        SamplingExhaustedError: If no invertible matrix was found in time
    """
    if n < 1:
        raise ValueError(f"Matrix order must be >= 1, got {n}")
    rng = as_rng(rng)
    if max_tries is None:
        max_tries = DEFAULT_RANDOM_INVERTIBLE_MAX_TRIES
    for attempt in range(1, max_tries + 1):
        mat = rng.integers(0, 2, size=(n, n), dtype=np.uint8)
        if gf2_is_invertible(mat):
            logger.debug("[GF2] invertible %dx%d matrix after %d draws", n, n, attempt)
            return mat
    raise SamplingExhaustedError(
        f"No invertible {n}x{n} matrix over GF(2) found in {max_tries} draws"
    )


def _galois_inv(a: np.ndarray) -> np.ndarray:
    try:
        inverted = np.linalg.inv(_GF2(a))
    except np.linalg.LinAlgError as exc:
        raise SingularMatrixError("Matrix is singular over GF(2)") from exc
    return inverted.view(np.ndarray).astype(np.uint8)


def _elimination_inv(a: np.ndarray) -> np.ndarray:
    """Gauss-Jordan elimination on [a | I] with XOR row operations."""
    n = a.shape[0]
    aug = np.concatenate([a, np.identity(n, dtype=np.uint8)], axis=1)
    for col in range(n):
        candidates = np.flatnonzero(aug[col:, col])
        if candidates.size == 0:
            raise SingularMatrixError("Matrix is singular over GF(2)")
        pivot = col + int(candidates[0])
        if pivot != col:
            aug[[col, pivot]] = aug[[pivot, col]]
        # clear the column everywhere except the pivot row
        rows = aug[:, col].astype(bool)
        rows[col] = False
        aug[rows] ^= aug[col]
    return aug[:, n:].copy()


_EXACT_BACKENDS = {
    "galois": _galois_inv,
    "elimination": _elimination_inv,
}


def gf2_inv(a: np.ndarray, backend: Optional[str] = None) -> np.ndarray:
    """Invert a square binary matrix exactly over GF(2).

    Args:
        a: Square binary matrix
        backend: ``"galois"`` or ``"elimination"``; defaults to the
            ``CLIFFORD_GF2_BACKEND`` environment variable, then ``"galois"``

    Returns:
        The inverse as a uint8 matrix

    Raises:
        SingularMatrixError: If ``a`` is not invertible over GF(2)
        ValueError: If ``a`` is not square or the backend is unknown
    """
    mat = _as_square_gf2(a)
    name = backend or str_from_env(GF2_BACKEND_ENV, DEFAULT_GF2_BACKEND)
    try:
        invert = _EXACT_BACKENDS[name]
    except KeyError:
        raise ValueError(
            f"Unknown GF(2) backend {name!r}; expected one of {sorted(_EXACT_BACKENDS)}"
        ) from None
    if mat.shape[0] == 0:
        return mat.copy()
    return invert(mat)


def float_inv_mod2(a: np.ndarray) -> Optional[np.ndarray]:
    """Invert through floating point and round back to GF(2).

    Uses adj(a) = det(a) * inv(a), which is an integer matrix, and the fact that
    det(a) is odd whenever ``a`` is invertible over GF(2). Returns None when
    the float computation fails or the rounded result is not an inverse
    (singular input, or round-off at large orders).
    """
    mat = _as_square_gf2(a)
    n = mat.shape[0]
    af = mat.astype(np.float64)
    try:
        inverted = np.linalg.inv(af)
    except np.linalg.LinAlgError:
        return None
    det = np.linalg.det(af)
    with np.errstate(over="ignore", invalid="ignore"):
        adjugate = np.rint(inverted * det)
    if not np.all(np.isfinite(adjugate)):
        return None
    candidate = np.mod(adjugate, 2).astype(np.uint8)
    if not np.array_equal(gf2_matmul(candidate, mat), np.identity(n, dtype=np.uint8)):
        return None
    return candidate


def precise_inv(
    a: np.ndarray, threshold: Optional[int] = None, backend: Optional[str] = None
) -> np.ndarray:
    """Invert a binary matrix: floating point for small orders, exact GF(2) otherwise.

    The crossover order defaults to ``CLIFFORD_PRECISE_INV_THRESHOLD`` from the
    environment, then 200. Float round-off cannot be trusted to keep entries
    recoverable past that size, and every float result is checked before it is
    returned.
    """
    mat = _as_square_gf2(a)
    n = mat.shape[0]
    if threshold is None:
        threshold = int_from_env(PRECISE_INV_THRESHOLD_ENV, DEFAULT_PRECISE_INV_THRESHOLD)
    if n < threshold:
        inverted = float_inv_mod2(mat)
        if inverted is not None:
            return inverted
        logger.debug("[GF2] float inverse rejected for n=%d, using exact backend", n)
    return gf2_inv(mat, backend=backend)


def symplectic_form(n: int) -> np.ndarray:
    """Return the 2n x 2n matrix [[0, I], [I, 0]] over GF(2)."""
    eye = np.identity(n, dtype=np.uint8)
    zero = np.zeros((n, n), dtype=np.uint8)
    return np.block([[zero, eye], [eye, zero]])


def symplectic_products(xzs: np.ndarray) -> np.ndarray:
    """Pairwise symplectic inner products of the rows of an [X | Z] matrix.

    Entry (i, j) is 1 exactly when rows i and j anticommute as Pauli operators.
    """
    arr = np.asarray(xzs, dtype=np.int64)
    if arr.ndim != 2 or arr.shape[1] % 2:
        raise ValueError(f"Expected a (rows, 2n) matrix, got shape {arr.shape}")
    n = arr.shape[1] // 2
    xs, zs = arr[:, :n], arr[:, n:]
    return ((xs @ zs.T + zs @ xs.T) % 2).astype(np.uint8)


def is_symplectic(mat: np.ndarray) -> bool:
    """True if the rows of a 2n x 2n binary matrix form a symplectic basis."""
    arr = np.asarray(mat)
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1] or arr.shape[0] % 2:
        return False
    n = arr.shape[0] // 2
    return bool(np.array_equal(symplectic_products(arr), symplectic_form(n)))
