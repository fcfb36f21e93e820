"""Random stabilizer, destabilizer, Clifford and Pauli sampling.

Tableaux are generated with Algorithm 2 of Bravyi and Maslov,
"Hadamard-free circuits expose the structure of the Clifford group"
(arXiv:2003.09412). A pair (h, S) from the quantum Mallows distribution fixes
the Hadamard layer and qubit permutation; the matrices delta, delta', gamma,
gamma' of the canonical form F1 H S F2 are drawn at random subject to the
conditions C1-C5 of the paper, and the block matrices are multiplied out into
a symplectic tableau.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

import numpy as np
import stim

from gf2_linalg import precise_inv
from quantum_mallows import quantum_mallows
from shared_utilities import SeedLike, as_rng
from tableau_types import Destabilizer, MixedDestabilizer, Stabilizer

logger = logging.getLogger(__name__)

# stim Pauli codes (0=I, 1=X, 2=Y, 3=Z) indexed by x + 2*z
_STIM_CODES = np.array([0, 1, 3, 2], dtype=np.uint8)
_SIGNS = (1 + 0j, 1j, -1 + 0j, -1j)


def _check_qubits(n: int) -> None:
    if n < 1:
        raise ValueError(f"Number of qubits must be >= 1, got {n}")


def _check_rank(rank: int, n: int) -> None:
    if not 0 <= rank <= n:
        raise ValueError(f"Rank must be in [0, {n}], got {rank}")


def fill_tril(
    rng: np.random.Generator, matrix: np.ndarray, n: int, *, symmetric: bool = False
) -> np.ndarray:
    """Assign (symmetric) random bits to the strictly lower triangle of ``matrix``."""
    rows, cols = np.tril_indices(n, k=-1)
    bits = rng.integers(0, 2, size=rows.size)
    matrix[rows, cols] = bits
    if symmetric:
        matrix[cols, rows] = bits
    return matrix


def _fill_constrained_off_diagonal(
    rng: np.random.Generator,
    gamma: np.ndarray,
    delta: np.ndarray,
    hadamard: np.ndarray,
    perm: np.ndarray,
    n: int,
) -> None:
    """Draw the off-diagonal entries of gamma and delta allowed by C1-C5.

    For every pair row > col, the Hadamard bits of both qubits and the order of
    their images under the permutation decide which entries are free.
    """
    rows, cols = np.tril_indices(n, k=-1)
    h_row, h_col = hadamard[rows], hadamard[cols]
    later = perm[rows] > perm[cols]

    # both Hadamard: gamma free; delta free only if S[row] > S[col] (C4)
    # row Hadamard only: C5 zeroes delta, C2 zeroes gamma when S[row] > S[col]
    # col Hadamard only: delta free; gamma free if S[row] > S[col]
    # no Hadamard: C1 zeroes gamma, C3 zeroes delta when S[row] > S[col]
    gamma_free = (h_row & h_col) | (h_row & ~h_col & ~later) | (~h_row & h_col & later)
    delta_free = (h_row & h_col & later) | (~h_row & h_col) | (~h_row & ~h_col & ~later)

    gamma_bits = rng.integers(0, 2, size=rows.size) * gamma_free
    delta_bits = rng.integers(0, 2, size=rows.size) * delta_free
    gamma[rows, cols] = gamma_bits
    gamma[cols, rows] = gamma_bits
    delta[rows, cols] = delta_bits


def canonical_destabilizer(
    n: int,
    hadamard: np.ndarray,
    perm: np.ndarray,
    rng: SeedLike = None,
    *,
    phases: bool = True,
) -> Destabilizer:
    """Build a random destabilizer in Bravyi-Maslov canonical form for fixed (h, S).

    Args:
        n: Number of qubits
        hadamard: Boolean Hadamard mask of length n
        perm: Permutation of 0..n-1
        rng: Random source for the free entries and the phases
        phases: Draw random real phases; otherwise all phases are +1

    Returns:
        A full-rank Destabilizer
    """
    _check_qubits(n)
    rng = as_rng(rng)
    hadamard = np.asarray(hadamard, dtype=bool)
    perm = np.asarray(perm, dtype=np.int64)
    if hadamard.shape != (n,) or perm.shape != (n,):
        raise ValueError(f"Hadamard mask and permutation must have length {n}")
    if not np.array_equal(np.sort(perm), np.arange(n)):
        raise ValueError(f"perm is not a permutation of 0..{n - 1}: {perm.tolist()}")
    had_idxs = np.flatnonzero(hadamard)

    # delta, delta', gamma, gamma' appear in the canonical form
    # of a Clifford operator (Eq. 3/Theorem 1)
    # delta is unit lower triangular, gamma is symmetric
    F1 = np.zeros((2 * n, 2 * n), dtype=np.int64)
    F2 = np.zeros((2 * n, 2 * n), dtype=np.int64)
    delta, delta_p = F1[:n, :n], F2[:n, :n]
    prod, prod_p = F1[n:, :n], F2[n:, :n]
    gamma, gamma_p = F1[:n, n:], F2[:n, n:]
    inv_delta, inv_delta_p = F1[n:, n:], F2[n:, n:]

    diag = np.arange(n)
    delta[diag, diag] = 1
    delta_p[diag, diag] = 1
    gamma_p[diag, diag] = rng.integers(0, 2, size=n)
    # gamma_ii is zero if h[i] = 0
    gamma[had_idxs, had_idxs] = rng.integers(0, 2, size=had_idxs.size)

    # gamma' and delta' are unconstrained on the lower triangle
    fill_tril(rng, gamma_p, n, symmetric=True)
    fill_tril(rng, delta_p, n)

    _fill_constrained_off_diagonal(rng, gamma, delta, hadamard, perm, n)

    # tableau of F(I, Gamma, Delta) in block form
    prod[:] = gamma @ delta
    prod_p[:] = gamma_p @ delta_p
    inv_delta[:] = precise_inv(delta.T)
    inv_delta_p[:] = precise_inv(delta_p.T)
    F1 %= 2
    F2 %= 2
    gamma[:] = 0
    gamma_p[:] = 0

    # qubit permutation S acts on the rows of F2
    perm_inds = np.concatenate([perm, perm + n])
    U = F2[perm_inds, :]

    # Hadamard layer swaps X and Z rows
    lhs_inds = np.concatenate([had_idxs, had_idxs + n])
    rhs_inds = np.concatenate([had_idxs + n, had_idxs])
    U[lhs_inds, :] = U[rhs_inds, :]

    xzs = (F1 @ U) % 2 == 1

    # a random Pauli layer amounts to random signs on the tableau rows
    if phases:
        phase_array = rng.choice(np.array([0, 2], dtype=np.uint8), size=2 * n)
    else:
        phase_array = np.zeros(2 * n, dtype=np.uint8)
    return Destabilizer(phase_array, xzs)


def random_destabilizer(
    n: int,
    rank: Optional[int] = None,
    *,
    phases: bool = True,
    rng: SeedLike = None,
) -> Union[Destabilizer, MixedDestabilizer]:
    """A random destabilizer tableau from Bravyi-Maslov Algorithm 2.

    ``random_destabilizer(n)`` gives an n-qubit tableau of rank n;
    ``random_destabilizer(n, r)`` gives the same tableau read at rank r.
    """
    _check_qubits(n)
    if rank is not None:
        _check_rank(rank, n)
    rng = as_rng(rng)
    hadamard, perm = quantum_mallows(rng, n)
    destab = canonical_destabilizer(n, hadamard, perm, rng, phases=phases)
    logger.debug("[GEN] destabilizer n=%d rank=%s", n, n if rank is None else rank)
    if rank is None:
        return destab
    return MixedDestabilizer(destab, rank)


def random_stabilizer(
    n: int,
    rank: Optional[int] = None,
    *,
    phases: bool = True,
    rng: SeedLike = None,
) -> Stabilizer:
    """A random stabilizer tableau from Bravyi-Maslov Algorithm 2.

    With ``rank`` set, ``rank`` of the n stabilizer rows are kept, chosen
    uniformly without replacement.
    """
    _check_qubits(n)
    if rank is not None:
        _check_rank(rank, n)
    rng = as_rng(rng)
    # TODO: build only the stabilizer half instead of discarding the destabilizers
    stab = random_destabilizer(n, phases=phases, rng=rng).stabilizer_view().copy()
    if rank is None:
        return stab
    return stab[rng.permutation(n)[:rank]]


def random_clifford(n: int, *, phases: bool = True, rng: SeedLike = None) -> stim.Tableau:
    """A random Clifford operator from Bravyi-Maslov Algorithm 2."""
    return random_destabilizer(n, phases=phases, rng=rng).to_stim()


def randomize_pauli(
    pauli: stim.PauliString,
    p: Optional[float] = None,
    *,
    nophase: bool = True,
    realphase: bool = True,
    rng: SeedLike = None,
) -> stim.PauliString:
    """Overwrite ``pauli`` in place with a random Pauli operator and return it.

    Without ``p`` every X and Z bit is a fair coin. With a flip probability
    ``p`` each qubit is I with probability 1-p and X, Y or Z with probability
    p/3 each, as for unbiased Pauli noise.

    Use ``nophase=False`` to randomize the phase and ``realphase=False`` to
    allow the phases +-i.
    """
    rng = as_rng(rng)
    n = len(pauli)
    if p is None:
        xs = rng.integers(0, 2, size=n).astype(bool)
        zs = rng.integers(0, 2, size=n).astype(bool)
    else:
        if not 0.0 <= p <= 1.0:
            raise ValueError(f"Flip probability must be in [0, 1], got {p}")
        third = p / 3
        r = rng.random(n)
        xs = r < 2 * third
        zs = (third <= r) & (r < p)
    codes = _STIM_CODES[xs.astype(np.uint8) + 2 * zs.astype(np.uint8)]
    for k, code in enumerate(codes):
        pauli[k] = int(code)

    if nophase:
        phase = 0
    elif realphase:
        phase = int(rng.choice([0, 2]))
    else:
        phase = int(rng.integers(0, 4))
    pauli.sign = _SIGNS[phase]
    return pauli


def random_pauli(
    n: int,
    p: Optional[float] = None,
    *,
    nophase: bool = True,
    realphase: bool = True,
    rng: SeedLike = None,
) -> stim.PauliString:
    """A random Pauli operator on n qubits; see :func:`randomize_pauli`."""
    _check_qubits(n)
    return randomize_pauli(
        stim.PauliString(n), p, nophase=nophase, realphase=realphase, rng=rng
    )
