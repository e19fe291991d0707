#!/usr/bin/env python3
"""
synthesize_hospital.py

Generate a hospital-style table for cleaning stress tests (CSV or Parquet).

Columns
-------
zipcode  : Utf8   blocking key; each zipcode has one canonical city/state
city     : Utf8   occasionally replaced by a misspelling (breaks zipcode -> city)
state    : Utf8
phone    : Utf8   filler
name     : Utf8   filler

Imperfection knobs are per-row probabilities; set to 0.0 for clean data.
"""

from __future__ import annotations

import argparse
import os
from typing import List, Optional, Tuple

import numpy as np
import polars as pl

CITIES: List[Tuple[str, str]] = [
    ("Birmingham", "AL"), ("Dothan", "AL"), ("Boaz", "AL"), ("Florence", "AL"),
    ("Opp", "AL"), ("Anchorage", "AK"), ("Phoenix", "AZ"), ("Tucson", "AZ"),
    ("Little Rock", "AR"), ("Fresno", "CA"), ("Oakland", "CA"), ("Denver", "CO"),
    ("Hartford", "CT"), ("Dover", "DE"), ("Miami", "FL"), ("Atlanta", "GA"),
]


def _rng(seed: int) -> np.random.Generator:
    return np.random.default_rng(seed)


def _inject_probability_mask(n: int, rate: float, rng: np.random.Generator) -> np.ndarray:
    if rate <= 0.0:
        return np.zeros(n, dtype=bool)
    if rate >= 1.0:
        return np.ones(n, dtype=bool)
    return rng.uniform(0, 1, size=n) < rate


def _misspell(word: str, rng: np.random.Generator) -> str:
    i = int(rng.integers(0, len(word)))
    typo = "q" if word[i] == "x" else "x"
    return word[:i] + typo + word[i + 1:]


def generate_hospital(
    n: int,
    seed: int = 123,
    zipcodes: int = 500,
    bad_city_rate: float = 0.05,
    null_city_rate: float = 0.0,
) -> pl.DataFrame:
    rng = _rng(seed)

    # canonical city per zipcode
    zip_codes = np.array([f"{35000 + i:05d}" for i in range(zipcodes)])
    zip_city = rng.integers(0, len(CITIES), size=zipcodes)

    # vectorised row draws
    zip_idx = rng.integers(0, zipcodes, size=n)
    city_idx = zip_city[zip_idx]
    area = rng.integers(200, 999, size=n)
    local = rng.integers(1_000_000, 9_999_999, size=n)

    null_mask = _inject_probability_mask(n, null_city_rate, rng)
    bad_mask = _inject_probability_mask(n, bad_city_rate, rng) & ~null_mask

    cities: List[Optional[str]] = [CITIES[c][0] for c in city_idx]
    for i in np.flatnonzero(bad_mask):
        cities[i] = _misspell(cities[i], rng)
    for i in np.flatnonzero(null_mask):
        cities[i] = None

    return pl.DataFrame(
        {
            "zipcode": zip_codes[zip_idx].tolist(),
            "city": cities,
            "state": [CITIES[c][1] for c in city_idx],
            "phone": [f"{a}{b}" for a, b in zip(area, local)],
            "name": [f"hospital {i}" for i in range(n)],
        },
        schema={c: pl.Utf8 for c in ("zipcode", "city", "state", "phone", "name")},
    )


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Generate synthetic hospital data.")
    p.add_argument("--rows", type=int, default=40_000, help="Number of rows to generate.")
    p.add_argument("--out", type=str, required=True, help="Output file path (.csv or .parquet).")
    p.add_argument("--seed", type=int, default=123, help="Random seed for reproducibility.")
    p.add_argument("--zipcodes", type=int, default=500, help="Number of distinct zipcodes.")
    p.add_argument("--bad-city-rate", type=float, default=0.05, help="Fraction of rows with a misspelled city.")
    p.add_argument("--null-city-rate", type=float, default=0.0, help="Fraction of rows with NULL city.")
    return p.parse_args()


def main() -> None:
    args = parse_args()
    df = generate_hospital(
        n=args.rows,
        seed=args.seed,
        zipcodes=args.zipcodes,
        bad_city_rate=args.bad_city_rate,
        null_city_rate=args.null_city_rate,
    )
    os.makedirs(os.path.dirname(os.path.abspath(args.out)), exist_ok=True)
    if args.out.endswith(".parquet"):
        df.write_parquet(args.out)
    else:
        df.write_csv(args.out)
    print(f"Wrote {df.height:,} rows -> {args.out}")


if __name__ == "__main__":
    main()
