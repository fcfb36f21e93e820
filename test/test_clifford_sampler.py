"""Tests for config handling, sampling records and the inversion benchmark."""

from __future__ import annotations

import csv
import json

import pytest

from clifford_sampler import (
    benchmark_inversion,
    expand_experiments,
    load_config_from_json,
    sample_from_config,
    save_records_csv,
)


def test_expand_experiments_forms() -> None:
    single = {"kind": "pauli", "n": 2}
    assert expand_experiments(single) == [single]
    assert expand_experiments([single, "junk", single]) == [single, single]
    assert expand_experiments({"experiments": [single]}) == [single]
    with pytest.raises(ValueError):
        expand_experiments("clifford")


def test_sample_from_config_counts_and_kinds() -> None:
    config = {
        "experiments": [
            {"kind": "destabilizer", "n": 3, "samples": 2, "seed": 1},
            {"kind": "stabilizer", "qubits": 4, "rank": 2, "samples": 3, "seed": 2},
            {"kind": "clifford", "n": 2, "seed": 3},
            {"kind": "pauli", "n": 5, "p": 0.0, "samples": 2, "seed": 4},
        ]
    }
    records = sample_from_config(config)
    assert [r["kind"] for r in records] == (
        ["destabilizer"] * 2 + ["stabilizer"] * 3 + ["clifford"] + ["pauli"] * 2
    )
    stabilizer_rows = [r["text"].splitlines() for r in records if r["kind"] == "stabilizer"]
    assert all(len(rows) == 2 for rows in stabilizer_rows)
    assert [r["text"] for r in records if r["kind"] == "pauli"] == ["+_____", "+_____"]
    assert sample_from_config(config) == records


def test_sample_from_config_rejects_bad_experiments() -> None:
    with pytest.raises(ValueError):
        sample_from_config({"kind": "qudit", "n": 2})
    with pytest.raises(ValueError):
        sample_from_config({"kind": "clifford"})


def test_config_file_and_csv_output(tmp_path) -> None:
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text(json.dumps([{"kind": "destabilizer", "n": 2, "rank": 1, "samples": 4, "seed": 7}]))
    records = sample_from_config(load_config_from_json(str(cfg_path)))
    assert len(records) == 4

    out_path = tmp_path / "out" / "samples.csv"
    save_records_csv(records, str(out_path))
    with open(out_path, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 4
    assert rows[0]["kind"] == "destabilizer"
    assert rows[0]["rank"] == "1"
    assert rows[2]["index"] == "2"
    assert rows[0]["text"] == records[0]["text"]


def test_benchmark_inversion_small_orders() -> None:
    rows = benchmark_inversion([4, 12], repeats=2, rng=0, backend="elimination")
    assert [row["n"] for row in rows] == [4, 12]
    # unit triangular inverses of this size are exact in floating point
    assert all(row["float_ok"] == 1.0 for row in rows)
    assert all(row["exact_seconds"] >= 0.0 for row in rows)
