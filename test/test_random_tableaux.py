"""Tests for the Bravyi-Maslov tableau constructor and the public generators."""

from __future__ import annotations

import unittest
from collections import Counter

import numpy as np
import pytest
import stim
from ldpc import mod2
from scipy.stats import chisquare

from gf2_linalg import symplectic_products
from random_tableaux import (
    _fill_constrained_off_diagonal,
    canonical_destabilizer,
    fill_tril,
    random_clifford,
    random_destabilizer,
    random_pauli,
    random_stabilizer,
    randomize_pauli,
)
from shared_utilities import seed_default_rng
from tableau_types import Destabilizer, MixedDestabilizer, Stabilizer


@pytest.mark.parametrize("n", list(range(1, 21)))
def test_destabilizer_is_symplectic(n: int) -> None:
    rng = np.random.default_rng(n)
    for _ in range(5):
        destab = random_destabilizer(n, rng=rng)
        assert isinstance(destab, Destabilizer)
        assert destab.xzs.shape == (2 * n, 2 * n)
        assert destab.is_valid()
        assert destab.stabilizer_view().is_commuting()
        assert destab.destabilizer_view().is_commuting()
        assert set(np.unique(destab.phases).tolist()) <= {0, 2}


@pytest.mark.parametrize("n", [1, 2, 3, 6])
def test_clifford_matches_destabilizer_rows(n: int) -> None:
    rng = np.random.default_rng(40 + n)
    destab = random_destabilizer(n, rng=rng)
    tableau = destab.to_stim()
    destabs = destab.destabilizer_view().to_stim_paulis()
    stabs = destab.stabilizer_view().to_stim_paulis()
    for k in range(n):
        assert tableau.x_output(k) == destabs[k]
        assert tableau.z_output(k) == stabs[k]
    assert tableau.then(tableau.inverse()) == stim.Tableau(n)


def test_large_destabilizer_crosses_the_exact_inversion_path() -> None:
    destab = random_destabilizer(210, rng=np.random.default_rng(9))
    assert destab.is_valid()


class TestSingleQubit(unittest.TestCase):
    def test_all_six_stabilizer_states_appear(self) -> None:
        rng = np.random.default_rng(1)
        seen = set()
        for _ in range(600):
            stab = random_stabilizer(1, rng=rng)
            (row,) = stab.to_stim_paulis()
            self.assertEqual(row * row, stim.PauliString("+_"))
            seen.add(str(row))
        self.assertEqual(seen, {"+X", "-X", "+Y", "-Y", "+Z", "-Z"})

    def test_symplectic_part_is_uniform(self) -> None:
        draws = 6_000
        rng = np.random.default_rng(2)
        counts = Counter(
            random_destabilizer(1, phases=False, rng=rng).xzs.tobytes() for _ in range(draws)
        )
        self.assertEqual(len(counts), 6)
        self.assertGreater(chisquare(list(counts.values())).pvalue, 1e-3)

    def test_every_signed_clifford_appears(self) -> None:
        rng = np.random.default_rng(3)
        seen = {str(random_clifford(1, rng=rng)) for _ in range(2_400)}
        self.assertEqual(len(seen), 24)


def test_phases_disabled_gives_zero_phases() -> None:
    rng = np.random.default_rng(4)
    for _ in range(20):
        destab = random_destabilizer(2, phases=False, rng=rng)
        assert not destab.phases.any()
        x2x, x2z, z2x, z2z, x_signs, z_signs = destab.to_stim().to_numpy()
        assert not x_signs.any() and not z_signs.any()


def test_mixed_destabilizer_rank() -> None:
    n, r = 6, 3
    mixed = random_destabilizer(n, r, rng=np.random.default_rng(5))
    assert isinstance(mixed, MixedDestabilizer)
    stab = mixed.stabilizer_view()
    destab = mixed.destabilizer_view()
    assert len(stab) == r and len(destab) == r
    assert len(mixed.logical_x_view()) == n - r
    assert len(mixed.logical_z_view()) == n - r
    assert np.array_equal(stab.xzs, mixed.tableau.xzs[n : n + r])
    assert stab.is_commuting()
    assert mod2.rank(stab.xzs.astype(np.uint8)) == r
    # each stabilizer anticommutes with exactly its paired destabilizer
    pairing = symplectic_products(np.vstack([destab.xzs, stab.xzs]))[:r, r:]
    assert np.array_equal(pairing, np.identity(r, dtype=np.uint8))


@pytest.mark.parametrize("n, r", [(4, 0), (5, 2), (8, 3), (8, 8)])
def test_rank_limited_stabilizer_rows_come_from_full_tableau(n: int, r: int) -> None:
    sub = random_stabilizer(n, r, rng=np.random.default_rng(60 + n + r))
    full = random_stabilizer(n, rng=np.random.default_rng(60 + n + r))
    assert isinstance(sub, Stabilizer)
    assert len(sub) == r
    assert sub.is_commuting()
    full_rows = full.to_strings()
    sub_rows = sub.to_strings()
    assert len(set(sub_rows)) == r
    assert set(sub_rows) <= set(full_rows)
    if r:
        assert mod2.rank(sub.xzs.astype(np.uint8)) == r


@pytest.mark.parametrize("n, rank", [(3, -1), (3, 4)])
def test_rank_out_of_range(n: int, rank: int) -> None:
    with pytest.raises(ValueError):
        random_destabilizer(n, rank)
    with pytest.raises(ValueError):
        random_stabilizer(n, rank)


def test_zero_qubits_rejected() -> None:
    with pytest.raises(ValueError):
        random_destabilizer(0)
    with pytest.raises(ValueError):
        random_pauli(0)


def test_canonical_destabilizer_with_fixed_layers() -> None:
    rng = np.random.default_rng(6)
    n = 5
    for hadamard in (np.zeros(n, dtype=bool), np.ones(n, dtype=bool)):
        for perm in (np.arange(n), np.arange(n)[::-1]):
            destab = canonical_destabilizer(n, hadamard, perm, rng, phases=False)
            assert destab.is_valid()
            assert not destab.phases.any()


def test_canonical_destabilizer_rejects_bad_permutation() -> None:
    with pytest.raises(ValueError):
        canonical_destabilizer(3, np.zeros(3, dtype=bool), np.array([0, 0, 2]))
    with pytest.raises(ValueError):
        canonical_destabilizer(3, np.zeros(2, dtype=bool), np.arange(3))


def test_fill_tril() -> None:
    rng = np.random.default_rng(7)
    n = 6
    sym = fill_tril(rng, np.zeros((n, n), dtype=np.int64), n, symmetric=True)
    assert np.array_equal(sym, sym.T)
    assert not np.diag(sym).any()
    tri = fill_tril(rng, np.zeros((n, n), dtype=np.int64), n)
    assert not np.triu(tri).any()


def test_off_diagonal_constraints() -> None:
    rng = np.random.default_rng(8)
    n = 5
    identity_perm = np.arange(n)
    reversed_perm = identity_perm[::-1].copy()
    no_h = np.zeros(n, dtype=bool)
    all_h = np.ones(n, dtype=bool)

    def draw(hadamard, perm):
        gamma = np.zeros((n, n), dtype=np.int64)
        delta = np.zeros((n, n), dtype=np.int64)
        for _ in range(30):
            g = np.zeros((n, n), dtype=np.int64)
            d = np.zeros((n, n), dtype=np.int64)
            _fill_constrained_off_diagonal(rng, g, d, hadamard, perm, n)
            assert np.array_equal(g, g.T)
            assert not np.triu(d).any()
            gamma |= g
            delta |= d
        return gamma, delta

    # no Hadamards, S[row] > S[col]: both zero
    gamma, delta = draw(no_h, identity_perm)
    assert not gamma.any() and not delta.any()
    # no Hadamards, S[row] < S[col]: gamma zero, delta free
    gamma, delta = draw(no_h, reversed_perm)
    assert not gamma.any() and delta.any()
    # all Hadamards, S[row] < S[col]: gamma free, delta zero
    gamma, delta = draw(all_h, reversed_perm)
    assert gamma.any() and not delta.any()
    # all Hadamards, S[row] > S[col]: both free
    gamma, delta = draw(all_h, identity_perm)
    assert gamma.any() and delta.any()


class TestRandomPauli(unittest.TestCase):
    def test_identity_when_flip_probability_zero(self) -> None:
        rng = np.random.default_rng(10)
        for _ in range(200):
            self.assertEqual(random_pauli(7, 0.0, rng=rng).weight, 0)

    def test_never_identity_when_flip_probability_one(self) -> None:
        rng = np.random.default_rng(11)
        for _ in range(200):
            self.assertEqual(random_pauli(7, 1.0, rng=rng).weight, 7)

    def test_biased_noise_distribution(self) -> None:
        p = 0.3
        rng = np.random.default_rng(12)
        counts = Counter()
        for _ in range(500):
            pauli = random_pauli(10, p, rng=rng)
            counts.update(pauli[k] for k in range(10))
        observed = [counts[code] for code in range(4)]
        expected = 5_000 * np.array([1 - p, p / 3, p / 3, p / 3])
        self.assertGreater(chisquare(observed, expected).pvalue, 1e-3)

    def test_phase_options(self) -> None:
        rng = np.random.default_rng(13)
        no_phase = {random_pauli(3, rng=rng).sign for _ in range(100)}
        real = {random_pauli(3, nophase=False, rng=rng).sign for _ in range(100)}
        full = {random_pauli(3, nophase=False, realphase=False, rng=rng).sign for _ in range(200)}
        self.assertEqual(no_phase, {1})
        self.assertEqual(real, {1, -1})
        self.assertEqual(full, {1, 1j, -1, -1j})

    def test_invalid_flip_probability(self) -> None:
        with self.assertRaises(ValueError):
            random_pauli(2, 1.5)
        with self.assertRaises(ValueError):
            random_pauli(2, -0.1)

    def test_randomize_in_place(self) -> None:
        pauli = stim.PauliString("XXXX")
        out = randomize_pauli(pauli, 0.0, rng=np.random.default_rng(14))
        self.assertIs(out, pauli)
        self.assertEqual(pauli, stim.PauliString("____"))


def test_default_rng_is_reproducible_after_reseed() -> None:
    seed_default_rng(123)
    first = random_clifford(4)
    seed_default_rng(123)
    assert random_clifford(4) == first


def test_integer_seed_is_reproducible() -> None:
    assert random_clifford(5, rng=99) == random_clifford(5, rng=99)


def test_tableau_text_rendering() -> None:
    destab = Destabilizer(np.array([0, 2], dtype=np.uint8), np.array([[1, 0], [1, 1]], dtype=bool))
    assert destab.destabilizer_view().to_strings() == ["+X"]
    assert destab.stabilizer_view().to_strings() == ["-Y"]
    assert str(destab).splitlines() == ["+X", "━━", "-Y"]
    imaginary = Destabilizer(np.array([1, 0], dtype=np.uint8), np.identity(2, dtype=bool))
    with pytest.raises(ValueError):
        imaginary.to_stim()


if __name__ == "__main__":
    unittest.main()
