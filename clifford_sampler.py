"""Command-line driver for the random Clifford samplers.

Draws destabilizers, stabilizers, Clifford operators or Pauli operators from a
JSON configuration or from flags, and benchmarks the floating-point against
the exact GF(2) inversion path used by the tableau constructor.
"""

from __future__ import annotations

import os
import csv
import json
import time
import argparse
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np

from gf2_linalg import float_inv_mod2, gf2_inv
from random_tableaux import random_clifford, random_destabilizer, random_pauli, random_stabilizer
from shared_utilities import DEFAULT_SAMPLES, SeedLike, as_rng
from tableau_types import MixedDestabilizer

KINDS = ("destabilizer", "stabilizer", "clifford", "pauli")

logger = logging.getLogger(__name__)


def load_config_from_json(json_path: str) -> Any:
    """Load sampling configuration from JSON file.

    Supports:
    - Single experiment (dict).
    - Multi-experiment: either a list of dicts, or a dict with key
      "experiments": list[dict]. No implicit parameter merging is performed.
    """
    with open(json_path, "r") as f:
        return json.load(f)


def expand_experiments(config: Any) -> List[dict]:
    """Normalize config into a list of experiment dicts.

    Accepted forms:
    - Single dict: returns [dict]
    - List[dict]: returns as-is (filters to dict items)
    - Dict with {"experiments": [dict]}: returns that list (no merging)
    """
    if isinstance(config, list):
        return [c for c in config if isinstance(c, dict)]
    if isinstance(config, dict) and isinstance(config.get("experiments"), list):
        return [c for c in config["experiments"] if isinstance(c, dict)]
    if isinstance(config, dict):
        # Treat as single experiment
        return [config]
    raise ValueError("Unsupported config format. Expected dict, list[dict], or {experiments:[...]}.")


def _render(obj: Any) -> str:
    if isinstance(obj, MixedDestabilizer):
        return str(obj.tableau)
    return str(obj)


def _draw_one(exp: Dict[str, Any], rng: np.random.Generator) -> Any:
    kind = exp["kind"]
    n = exp["n"]
    rank = exp.get("rank")
    phases = bool(exp.get("phases", True))
    if kind == "destabilizer":
        return random_destabilizer(n, rank, phases=phases, rng=rng)
    if kind == "stabilizer":
        return random_stabilizer(n, rank, phases=phases, rng=rng)
    if kind == "clifford":
        return random_clifford(n, phases=phases, rng=rng)
    return random_pauli(
        n,
        exp.get("p"),
        nophase=bool(exp.get("nophase", True)),
        realphase=bool(exp.get("realphase", True)),
        rng=rng,
    )


def sample_from_config(config: Union[dict, List[dict]]) -> List[Dict[str, Any]]:
    """Draw samples for every experiment in ``config``.

    Each experiment needs ``kind`` (one of KINDS) and ``n``; ``rank``,
    ``samples``, ``seed``, ``phases``, ``p``, ``nophase`` and ``realphase`` are
    optional. Returns one record per sample.
    """
    records: List[Dict[str, Any]] = []
    for exp in expand_experiments(config):
        exp = dict(exp)
        if "n" not in exp and "qubits" in exp:
            exp["n"] = exp.pop("qubits")
        kind = exp.get("kind", "clifford")
        if kind not in KINDS:
            raise ValueError(f"Unknown kind {kind!r}; expected one of {KINDS}")
        exp["kind"] = kind
        if "n" not in exp:
            raise ValueError(f"Experiment {exp} is missing the number of qubits 'n'")
        exp["n"] = int(exp["n"])
        if exp.get("rank") is not None:
            exp["rank"] = int(exp["rank"])
        samples = int(exp.get("samples", DEFAULT_SAMPLES))
        seed = exp.get("seed")
        rng = as_rng(None if seed is None else int(seed))

        t0 = time.time()
        for index in range(samples):
            obj = _draw_one(exp, rng)
            records.append({
                "kind": kind,
                "n": exp["n"],
                "rank": exp.get("rank"),
                "seed": seed,
                "index": index,
                "text": _render(obj),
            })
        logger.info(
            "[CLI] drew %d %s sample(s) on n=%d in %.2fs", samples, kind, exp["n"], time.time() - t0
        )
    return records


def _random_unit_lower_triangular(n: int, rng: np.random.Generator) -> np.ndarray:
    mat = np.tril(rng.integers(0, 2, size=(n, n), dtype=np.uint8), k=-1)
    mat[np.arange(n), np.arange(n)] = 1
    return mat


def benchmark_inversion(
    sizes: Iterable[int],
    repeats: int = 3,
    rng: SeedLike = None,
    backend: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Time floating-point against exact inversion on unit lower triangular matrices.

    The matrices are of the kind the tableau constructor inverts. For each
    order, ``float_ok`` is the fraction of repeats where the rounded float
    inverse was accepted and matched the exact one.
    """
    rng = as_rng(rng)
    rows: List[Dict[str, Any]] = []
    for n in sizes:
        float_secs = 0.0
        exact_secs = 0.0
        ok = 0
        for _ in range(repeats):
            mat = _random_unit_lower_triangular(int(n), rng)
            t0 = time.time()
            approx = float_inv_mod2(mat)
            t1 = time.time()
            exact = gf2_inv(mat, backend=backend)
            t2 = time.time()
            float_secs += t1 - t0
            exact_secs += t2 - t1
            if approx is not None and np.array_equal(approx, exact):
                ok += 1
        row = {
            "n": int(n),
            "float_seconds": float_secs / repeats,
            "exact_seconds": exact_secs / repeats,
            "float_ok": ok / repeats,
        }
        logger.info(
            "[BENCH] n=%d float %.4fs | exact %.4fs | float ok %.2f",
            row["n"], row["float_seconds"], row["exact_seconds"], row["float_ok"],
        )
        rows.append(row)
    return rows


def save_records_csv(records: List[Dict[str, Any]], path: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    header = ["kind", "n", "rank", "seed", "index", "text"]
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=header)
        writer.writeheader()
        for rec in records:
            writer.writerow({k: rec.get(k) for k in header})


def main() -> None:
    parser = argparse.ArgumentParser(description="Random Clifford / stabilizer sampler")
    parser.add_argument('--config', type=str, default=None, help='JSON configuration file path')
    parser.add_argument('--kind', choices=KINDS, default='clifford', help='Object to sample')
    parser.add_argument('--qubits', '-n', type=int, default=2, help='Number of qubits')
    parser.add_argument('--rank', type=int, default=None, help='Rank for destabilizer/stabilizer samples')
    parser.add_argument('--samples', type=int, default=DEFAULT_SAMPLES, help='Number of samples')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--no-phases', dest='phases', action='store_false', help='Disable random tableau phases')
    parser.add_argument('--p', type=float, default=None, help='Flip probability for Pauli noise samples')
    parser.add_argument('--output', type=str, default=None, help='CSV file for the samples')
    parser.add_argument('--benchmark', type=int, nargs='*', default=None, help='Benchmark inversion at these matrix orders')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    args = parser.parse_args()

    # Basic logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    if args.benchmark is not None:
        sizes = args.benchmark or [50, 100, 150, 199, 200, 250]
        for row in benchmark_inversion(sizes, rng=args.seed):
            print(
                f"n={row['n']}: float {row['float_seconds']:.4f}s, "
                f"exact {row['exact_seconds']:.4f}s, float ok {row['float_ok']:.2f}"
            )
        return

    if args.config:
        print(f"Loading configuration from {args.config}")
        config = load_config_from_json(args.config)
    else:
        config = {
            "kind": args.kind,
            "n": args.qubits,
            "rank": args.rank,
            "samples": args.samples,
            "seed": args.seed,
            "phases": args.phases,
            "p": args.p,
        }

    records = sample_from_config(config)
    if args.output:
        save_records_csv(records, args.output)
        print(f"Saved {len(records)} samples to {args.output}")
    else:
        for rec in records:
            print(f"[{rec['kind']} n={rec['n']} #{rec['index']}]")
            print(rec["text"])


if __name__ == "__main__":
    main()
