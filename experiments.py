"""
Benchmark: tree-header Huffman on synthetic data

Runs repeated compress/decompress round trips and records size and timing

Outputs (in --outdir):
  - metrics.csv     (raw row per run per configuration)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 128 --exp2_max_kb 2048
  python experiments.py --outdir results --runs 5 --exp1_generators uniform256,zipf128,all_bytes,empty

Notes:
  The bit I/O is pure Python, so sizes default to well under a megabyte
"""

from __future__ import annotations

import argparse
import bisect
import csv
import io
import itertools
import random
import statistics
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple, Callable

import matplotlib.pyplot as plt

import huffman as huff
from bitio import BitInputStream, BitOutputStream


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


# Synthetic dataset generators

def gen_uniform(size: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.getrandbits(8) for _ in range(size))

def _sample_cdf(rng: random.Random, cdf: List[float]) -> int:
    return min(bisect.bisect_left(cdf, rng.random()), len(cdf) - 1)

def _cdf(weights: List[float]) -> List[float]:
    total = sum(weights)
    return [acc / total for acc in itertools.accumulate(weights)]

def gen_weighted(size: int, symbols: bytes, weights: List[float], seed: int = 0) -> bytes:
    rng = random.Random(seed)
    cdf = _cdf(weights)
    return bytes(symbols[_sample_cdf(rng, cdf)] for _ in range(size))

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> bytes:
    return gen_weighted(size, bytes(range(alphabet)), [(i + 1) ** -s for i in range(alphabet)], seed)

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    # dominant byte takes dom_frac, the other 255 values split the rest evenly
    weights = [(1.0 - dom_frac) / 255] * 256
    weights[dominant] = dom_frac
    return gen_weighted(size, bytes(range(256)), weights, seed)

# relative letter weights for a rough English text mix
ENGLISH_WEIGHTS = {" ": 13.0, "\n": 1.5}
ENGLISH_WEIGHTS.update({c: 6.0 for c in "etaoinshrdlu"})
ENGLISH_WEIGHTS.update({c: 2.5 for c in "cmfwgypbvk"})
ENGLISH_WEIGHTS.update({c: 1.2 for c in "jxqz"})

def gen_english_like(size: int, seed: int = 0) -> bytes:
    pairs = list(ENGLISH_WEIGHTS.items())
    # capitals at a tenth of the lower-case weight
    pairs += [(c.upper(), w / 10) for c, w in pairs if c.isalpha()]
    symbols = "".join(c for c, _ in pairs).encode("ascii")
    return gen_weighted(size, symbols, [w for _, w in pairs], seed)

def gen_all_bytes(size: int, seed: int = 0) -> bytes:
    # every byte value equally often, shuffled; worst case for the header
    rng = random.Random(seed)
    out = bytearray(i % 256 for i in range(size))
    rng.shuffle(out)
    return bytes(out)

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": lambda size, seed: gen_uniform(size, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dom_frac=0.90, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "all_bytes": lambda size, seed: gen_all_bytes(size, seed=seed),
    "empty": lambda size, seed: b"",
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> Tuple[str, bytes]:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown generator {name!r}, choose from {', '.join(sorted(GENERATOR_REGISTRY))}")
    return name, fn(size_bytes, seed)




# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    unique_symbols: int # leaves in the tree, PSEUDO_EOF included
    tree_height: int

    compress_ms: float
    decompress_ms: float
    total_ms: float

    compressed_bytes: int
    header_bits: int
    body_bits: int
    header_fraction: float
    compression_ratio: float
    bits_per_symbol: float

    correctness_ok: int  # 1 or 0


def run_one(data: bytes) -> MetricRow:
    # compress
    t0 = now_ns()
    sink = BitOutputStream(io.BytesIO(), closefd=False)
    stats = huff.compress(BitInputStream(io.BytesIO(data)), sink)
    packed = sink.stream.getvalue()
    t1 = now_ns()
    compress_ms = ns_to_ms(t1 - t0)

    # decompress
    t2 = now_ns()
    decoded = huff.decompress_bytes(packed)
    t3 = now_ns()
    decompress_ms = ns_to_ms(t3 - t2)

    bits_in = BitInputStream(io.BytesIO(packed))
    bits_in.read_bits(huff.BITS_PER_INT)
    root = huff.read_header(bits_in)

    comp_bytes = len(packed)
    return MetricRow(
        exp_name="",
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        unique_symbols=stats.leaves,
        tree_height=huff.tree_height(root),
        compress_ms=compress_ms,
        decompress_ms=decompress_ms,
        total_ms=compress_ms + decompress_ms,
        compressed_bytes=comp_bytes,
        header_bits=stats.header_bits,
        body_bits=stats.body_bits,
        header_fraction=stats.header_bits / max(1, stats.total_bits),
        compression_ratio=comp_bytes / max(1, len(data)),
        bits_per_symbol=stats.body_bits / max(1, len(data)),
        correctness_ok=1 if decoded == data else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    fields = list(MetricRow.__dataclass_fields__.keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in fields})


SUMMARY_METRICS = (
    "compression_ratio", "header_fraction", "bits_per_symbol",
    "compress_ms", "decompress_ms", "total_ms",
)

def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, file_size_bytes and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.file_size_bytes)
        key_to.setdefault(key, []).append(r)

    summary_fields = ["exp_name", "dataset_name", "file_size_bytes", "n_runs", "unique_symbols"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, size_b = key
            row = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "file_size_bytes": size_b,
                "n_runs": len(items),
                "unique_symbols": max(x.unique_symbols for x in items),
            }
            for m in SUMMARY_METRICS:
                row[f"{m}_mean"], row[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            row["correctness_ok_rate"] = sum(x.correctness_ok for x in items) / len(items)
            w.writerow(row)



# Plotting

PHASES = (("compress_ms", "compress"), ("decompress_ms", "decompress"))

def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))

    def mean_for(dataset: str, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dataset]
        return statistics.mean(vals) if vals else float("nan")

    x = list(range(len(datasets)))

    plt.figure()
    plt.plot(x, [mean_for(d, "compression_ratio") for d in datasets], marker="o")
    plt.axhline(1.0, linestyle="--", color="gray")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Compressed Bytes / Original Bytes")
    plt.title("Experiment 1: Compression Ratio by Distribution")
    plt.tight_layout()
    plt.savefig(outdir / "exp1_compression_ratio.png", dpi=200)
    plt.close()

    plt.figure()
    plt.bar(x, [mean_for(d, "header_fraction") for d in datasets])
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Header Bits / Total Bits")
    plt.title("Experiment 1: Tree Header Overhead by Distribution")
    plt.tight_layout()
    plt.savefig(outdir / "exp1_header_overhead.png", dpi=200)
    plt.close()

    plt.figure()
    for field, label in PHASES:
        plt.plot(x, [mean_for(d, field) for d in datasets], marker="o", label=label)
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Time (ms)")
    plt.title("Experiment 1: Runtime by Distribution")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "exp1_time.png", dpi=200)
    plt.close()


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return

    distributions = sorted(set(r.dataset_name for r in exp_rows))

    for dist in distributions:
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.file_size_bytes for r in dist_rows))

        def mean_size(size: int, field: str) -> float:
            vals = [getattr(r, field) for r in dist_rows if r.file_size_bytes == size]
            return statistics.mean(vals) if vals else float("nan")

        plt.figure()
        for field, label in PHASES:
            plt.plot(sizes, [mean_size(s, field) for s in sizes], marker="o", label=label)
        plt.xlabel("File Size (bytes)")
        plt.ylabel("Time (ms)")
        plt.title(f"Experiment 2: Runtime vs Size ({dist})")
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / f"exp2_time_{dist}.png", dpi=200)
        plt.close()

        plt.figure()
        plt.plot(sizes, [mean_size(s, "compression_ratio") for s in sizes], marker="o", label="ratio")
        plt.plot(sizes, [mean_size(s, "header_fraction") for s in sizes], marker="o", label="header fraction")
        plt.xscale("log", base=2)
        plt.xlabel("File Size (bytes)")
        plt.ylabel("Fraction")
        plt.title(f"Experiment 2: Ratio and Header Overhead vs Size ({dist})")
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / f"exp2_compression_ratio_{dist}.png", dpi=200)
        plt.close()





# Main 

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def main(argv: List[str] = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")

    # Experiment toggles
    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")
    ap.add_argument("--no_plots", action="store_true", help="Write CSVs only")

    # Experiment 1 controls
    ap.add_argument("--exp1_size_kb", type=int, default=64, help="Experiment 1 fixed file size in KB")
    ap.add_argument("--exp1_generators", type=str, default="uniform256,zipf128,repetitive90,english_like,all_bytes",
                    help="Comma-separated dataset generator names for experiment 1")

    # Experiment 2 controls
    ap.add_argument("--exp2_min_kb", type=int, default=1, help="Experiment 2 min size in KB (power-of-two growth)")
    ap.add_argument("--exp2_max_kb", type=int, default=256, help="Experiment 2 max size in KB (power-of-two growth)")
    ap.add_argument("--exp2_generators", type=str, default="uniform256,zipf128,repetitive90",
                    help="Comma-separated dataset generator names for experiment 2")

    args = ap.parse_args(argv)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    rows: List[MetricRow] = []

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.exp1_size_kb) * 1024
        gen_names = parse_csv_list(args.exp1_generators)

        for gen_name in gen_names:
            for run_id in range(1, args.runs + 1):
                dataset_name, data = generate_dataset(gen_name, fixed_size, args.seed + run_id)
                row = run_one(data)
                row.exp_name = "exp1_distribution"
                row.dataset_name = dataset_name
                row.run_id = run_id
                rows.append(row)

    # Experiment 2: size scaling (multiple sizes, powers of 2)
    if not args.no_exp2:
        min_bytes = max(1, args.exp2_min_kb) * 1024
        max_bytes = max(1, args.exp2_max_kb) * 1024

        sizes: List[int] = []
        s = min_bytes
        while s <= max_bytes:
            sizes.append(s)
            s *= 2

        gen_names = parse_csv_list(args.exp2_generators)

        for gen_name in gen_names:
            for size_b in sizes:
                for run_id in range(1, args.runs + 1):
                    dataset_name, data = generate_dataset(gen_name, size_b, args.seed + 10_000 + size_b + run_id)
                    row = run_one(data)
                    row.exp_name = "exp2_size_scaling"
                    row.dataset_name = dataset_name
                    row.run_id = run_id
                    rows.append(row)

    # Write raw and summary
    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    # Plots
    if not args.no_plots:
        plot_experiment_1(rows, outdir)
        plot_experiment_2(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
