"""Sequence vs. vectorised unique-indexing throughput across input sizes."""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict, dataclass
from pathlib import Path

import jax
import jax.numpy as jnp

from vecx_jax import FixedArray, UniqueIndexer
from _bench_utils import host_metadata, mean as _mean, percentile as _percentile, sample_ms, stddev as _stddev


@dataclass(frozen=True)
class IndexerRow:
    path: str
    size: int
    palette: int
    num_values: int
    mean_ms: float
    stdev_ms: float
    p50_ms: float
    p95_ms: float


def _powers_of_two(min_exp: int, max_exp: int) -> list[int]:
    if min_exp > max_exp:
        raise ValueError("minimum exponent cannot be greater than maximum exponent")
    return [1 << exp for exp in range(min_exp, max_exp + 1)]


def _random_colors(size: int, palette: int, *, seed: int) -> jnp.ndarray:
    key_palette, key_pick = jax.random.split(jax.random.PRNGKey(seed))
    colors = jax.random.randint(key_palette, (palette, 3), 0, 256, dtype=jnp.int32).astype(jnp.uint8)
    picks = jax.random.randint(key_pick, (size,), 0, palette, dtype=jnp.int32)
    return colors[picks]


def _row(path: str, size: int, palette: int, fn, args, *, repeats: int, warmup: int, samples: int) -> IndexerRow:
    result = fn(*args)
    timings = sample_ms(fn, args, repeats=repeats, warmup=warmup, samples=samples)
    return IndexerRow(
        path=path,
        size=size,
        palette=palette,
        num_values=result.num_values,
        mean_ms=_mean(timings),
        stdev_ms=_stddev(timings),
        p50_ms=_percentile(timings, 0.5),
        p95_ms=_percentile(timings, 0.95),
    )


def _print_rows(rows: list[IndexerRow]) -> None:
    print(f"{'path':<10} {'size':>8} {'palette':>8} {'values':>8} {'mean ms':>10} {'p95 ms':>10}")
    for row in rows:
        print(
            f"{row.path:<10} {row.size:>8} {row.palette:>8} {row.num_values:>8} "
            f"{row.mean_ms:>10.3f} {row.p95_ms:>10.3f}"
        )


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark UniqueIndexer sequence and array paths.")
    parser.add_argument("--min-exp", type=int, default=6, help="minimum exponent for input sizes (2^exp)")
    parser.add_argument("--max-exp", type=int, default=12, help="maximum exponent for input sizes (2^exp)")
    parser.add_argument("--palette", type=int, default=16, help="number of distinct colors to draw from")
    parser.add_argument("--samples", type=int, default=5)
    parser.add_argument("--warmup", type=int, default=1)
    parser.add_argument("--repeats", type=int, default=3)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--json-out", default="", help="optional path to write machine-readable results")
    args = parser.parse_args()

    rows: list[IndexerRow] = []
    for size in _powers_of_two(args.min_exp, args.max_exp):
        colors = _random_colors(size, args.palette, seed=args.seed)
        sequence = [FixedArray(row) for row in colors]
        common = {"repeats": args.repeats, "warmup": args.warmup, "samples": args.samples}
        rows.append(_row("sequence", size, args.palette, UniqueIndexer.from_sequence, (sequence,), **common))
        rows.append(_row("array", size, args.palette, UniqueIndexer.from_array, (colors,), **common))

    _print_rows(rows)

    if args.json_out:
        outpath = Path(args.json_out)
        outpath.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "host": host_metadata(),
            "config": {
                "exp_range": [args.min_exp, args.max_exp],
                "palette": args.palette,
                "samples": args.samples,
                "repeats": args.repeats,
            },
            "results": [asdict(row) for row in rows],
        }
        outpath.write_text(json.dumps(payload, indent=2), encoding="utf-8")


if __name__ == "__main__":
    main()
