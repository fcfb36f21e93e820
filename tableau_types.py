"""Tableau containers produced by the random samplers.

Rows are Pauli operators stored as an [X | Z] boolean matrix plus a phase
vector with entries in {0, 1, 2, 3} meaning {+1, +i, -1, -i}. A destabilizer
holds 2n rows (n destabilizers followed by n stabilizers) and converts to a
``stim.Tableau`` where X_i maps to destabilizer row i and Z_i to stabilizer row i.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Union

import numpy as np
import stim

from gf2_linalg import is_symplectic, symplectic_products

_PHASE_PREFIX = ("+", "+i", "-", "-i")
# indexed by x + 2*z
_PAULI_CHARS = "_XZY"

RowIndex = Union[int, slice, Sequence[int], np.ndarray]


def _row_strings(phases: np.ndarray, xzs: np.ndarray) -> List[str]:
    n = xzs.shape[1] // 2
    codes = xzs[:, :n].astype(np.uint8) + 2 * xzs[:, n:].astype(np.uint8)
    return [
        _PHASE_PREFIX[int(p) % 4] + "".join(_PAULI_CHARS[c] for c in row)
        for p, row in zip(phases, codes)
    ]


@dataclass(eq=False)
class Stabilizer:
    """A list of Pauli rows; the rows of a valid stabilizer commute pairwise."""

    phases: np.ndarray
    xzs: np.ndarray

    def __post_init__(self) -> None:
        self.xzs = np.asarray(self.xzs, dtype=bool)
        self.phases = np.asarray(self.phases, dtype=np.uint8) % 4
        if self.xzs.ndim != 2 or self.xzs.shape[1] % 2:
            raise ValueError(f"xzs must have shape (rows, 2n), got {self.xzs.shape}")
        if self.phases.shape != (self.xzs.shape[0],):
            raise ValueError(
                f"Expected {self.xzs.shape[0]} phases, got shape {self.phases.shape}"
            )

    @property
    def n(self) -> int:
        return self.xzs.shape[1] // 2

    @property
    def xs(self) -> np.ndarray:
        return self.xzs[:, : self.n]

    @property
    def zs(self) -> np.ndarray:
        return self.xzs[:, self.n :]

    def __len__(self) -> int:
        return self.xzs.shape[0]

    def __getitem__(self, rows: RowIndex) -> Stabilizer:
        if isinstance(rows, (int, np.integer)):
            rows = [int(rows)]
        return Stabilizer(self.phases[rows].copy(), self.xzs[rows].copy())

    def copy(self) -> Stabilizer:
        return Stabilizer(self.phases.copy(), self.xzs.copy())

    def is_commuting(self) -> bool:
        return not symplectic_products(self.xzs).any()

    def to_strings(self) -> List[str]:
        return _row_strings(self.phases, self.xzs)

    def to_stim_paulis(self) -> List[stim.PauliString]:
        return [stim.PauliString(s) for s in self.to_strings()]

    def __str__(self) -> str:
        return "\n".join(self.to_strings())


@dataclass(eq=False)
class Destabilizer:
    """Full-rank tableau: n destabilizer rows followed by n stabilizer rows."""

    phases: np.ndarray
    xzs: np.ndarray

    def __post_init__(self) -> None:
        self.xzs = np.asarray(self.xzs, dtype=bool)
        self.phases = np.asarray(self.phases, dtype=np.uint8) % 4
        rows, cols = self.xzs.shape
        if rows != cols or rows % 2:
            raise ValueError(f"xzs must have shape (2n, 2n), got {self.xzs.shape}")
        if self.phases.shape != (rows,):
            raise ValueError(f"Expected {rows} phases, got shape {self.phases.shape}")

    @property
    def n(self) -> int:
        return self.xzs.shape[0] // 2

    def destabilizer_view(self) -> Stabilizer:
        return Stabilizer(self.phases[: self.n], self.xzs[: self.n])

    def stabilizer_view(self) -> Stabilizer:
        return Stabilizer(self.phases[self.n :], self.xzs[self.n :])

    def is_valid(self) -> bool:
        """True if destabilizer/stabilizer rows obey the symplectic pairing."""
        return is_symplectic(self.xzs)

    def to_stim(self) -> stim.Tableau:
        """Reinterpret the tableau as the Clifford operator it encodes.

        Raises:
            ValueError: If any phase is imaginary
        """
        if np.any(self.phases % 2):
            raise ValueError("Only real phases can be expressed as stim.Tableau signs")
        n = self.n
        xs = np.ascontiguousarray(self.xzs[:, :n])
        zs = np.ascontiguousarray(self.xzs[:, n:])
        return stim.Tableau.from_numpy(
            x2x=xs[:n],
            x2z=zs[:n],
            z2x=xs[n:],
            z2z=zs[n:],
            x_signs=self.phases[:n] == 2,
            z_signs=self.phases[n:] == 2,
        )

    def __str__(self) -> str:
        destab = self.destabilizer_view().to_strings()
        stab = self.stabilizer_view().to_strings()
        width = max(len(s) for s in destab + stab)
        return "\n".join(destab + ["━" * width] + stab)


@dataclass(eq=False)
class MixedDestabilizer:
    """A destabilizer read at rank r <= n.

    Rows 0..r-1 of each half are destabilizers and stabilizers; the remaining
    rows are the logical X and logical Z operators.
    """

    tableau: Destabilizer
    rank: int

    def __post_init__(self) -> None:
        self.rank = int(self.rank)
        if not 0 <= self.rank <= self.tableau.n:
            raise ValueError(f"Rank must be in [0, {self.tableau.n}], got {self.rank}")

    @property
    def n(self) -> int:
        return self.tableau.n

    def _rows(self, start: int, stop: int) -> Stabilizer:
        return Stabilizer(self.tableau.phases[start:stop], self.tableau.xzs[start:stop])

    def destabilizer_view(self) -> Stabilizer:
        return self._rows(0, self.rank)

    def stabilizer_view(self) -> Stabilizer:
        return self._rows(self.n, self.n + self.rank)

    def logical_x_view(self) -> Stabilizer:
        return self._rows(self.rank, self.n)

    def logical_z_view(self) -> Stabilizer:
        return self._rows(self.n + self.rank, 2 * self.n)
