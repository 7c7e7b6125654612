"""
Benchmark: CodeBook growth and prefix-code encode/decode throughput

Runs repeated experiments over synthetic alphabets and texts and records how
the code book's hash table behaves while it grows, and how fast text goes
through encode (code book) and decode (code tree).

Outputs (in --outdir):
  - metrics.csv     (raw row per run per configuration)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_max_symbols 4096
  python experiments.py --outdir results --runs 5 --exp1_generators ascii_letters,cjk,collide16

Notes:
  Codes come from a balanced code tree over the alphabet, so every code has
  length floor(log2 n) or ceil(log2 n). No frequency analysis is done.
"""

from __future__ import annotations

import argparse
import csv
import random
import statistics
import string
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple, Callable

import matplotlib.pyplot as plt
from bitarray import bitarray

from codebook import CodeBook
from huffman import HuffmanCodeTree, build_balanced_tree, generate_huffman_codes


PIPELINES = ("codebook", "codes_dict")


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def balanced_codes(alphabet: List[str]) -> Dict[str, bitarray]:
    return generate_huffman_codes(build_balanced_tree(alphabet))

def encode_with_dict(text: str, codes: Dict[str, bitarray]) -> bitarray:
    """
    Baseline encoder: plain dict lookups, unknown symbols skipped like CodeBook.encode
    """
    out = bitarray()
    for ch in text:
        seq = codes.get(ch)
        if seq is not None:
            out.extend(seq)
    return out


# Synthetic alphabet / text generators

def gen_from_pool(pool: str, n: int, seed: int) -> List[str]:
    rng = random.Random(seed)
    if n > len(pool):
        n = len(pool)
    return rng.sample(pool, n)

def gen_cjk(n: int, seed: int) -> List[str]:
    rng = random.Random(seed)
    codepoints = rng.sample(range(0x4E00, 0x9FFF), n)
    return [chr(cp) for cp in codepoints]

def gen_colliding(n: int, seed: int, modulus: int = 16) -> List[str]:
    # every key lands in the same bucket of a fresh 16-slot table
    rng = random.Random(seed)
    start = rng.randrange(0x100, 0x200)
    return [chr(start + modulus * i) for i in range(n)]

def gen_text(alphabet: List[str], size: int, seed: int, s: float = 1.1) -> str:
    """
    Zipf-like text over the alphabet, first symbols most frequent
    """
    rng = random.Random(seed)
    weights = [1.0 / ((i + 1) ** s) for i in range(len(alphabet))]
    return "".join(rng.choices(alphabet, weights=weights, k=size))

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], List[str]]] = {
    "ascii_letters": lambda n, seed: gen_from_pool(string.ascii_letters, n, seed),
    "printable": lambda n, seed: gen_from_pool(string.printable, n, seed),
    "cjk": lambda n, seed: gen_cjk(n, seed),
    "collide16": lambda n, seed: gen_colliding(n, seed),
}

def generate_alphabet(name: str, n: int, seed: int) -> Tuple[str, List[str]]:
    """
    Helper: if a generator name is not recognized, we fall back to cjk
    so the run does not fail completely
    """
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        return f"{name}_fallback_cjk", gen_cjk(n, seed)
    return name, fn(n, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    pipeline: str  # "codebook" or "codes_dict"
    run_id: int
    unique_symbols: int
    text_length: int

    insert_ms: float
    lookup_ms: float
    build_tree_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    capacity: int
    occupied_buckets: int
    load_factor: float
    max_bucket_size: int
    resize_count: int

    encoded_bits: int
    bits_per_symbol: float
    correctness_ok: int  # 1 or 0


def run_growth(alphabet: List[str]) -> MetricRow:
    """
    Insert a balanced code for every symbol, then look every symbol up again
    """
    codes = balanced_codes(alphabet)

    t0 = now_ns()
    book = CodeBook()
    for symbol in alphabet:
        book.insert(symbol, codes[symbol])
    t1 = now_ns()

    ok = len(book) == len(alphabet)
    for symbol in alphabet:
        if book.lookup(symbol) != codes[symbol]:
            ok = False
    t2 = now_ns()

    insert_ms = ns_to_ms(t1 - t0)
    lookup_ms = ns_to_ms(t2 - t1)

    return MetricRow(
        exp_name="",
        dataset_name="",
        pipeline="codebook",
        run_id=0,
        unique_symbols=len(alphabet),
        text_length=0,
        insert_ms=insert_ms,
        lookup_ms=lookup_ms,
        build_tree_ms=0.0,
        encode_ms=0.0,
        decode_ms=0.0,
        total_ms=insert_ms + lookup_ms,
        capacity=book.capacity,
        occupied_buckets=book.occupied,
        load_factor=book.load_factor,
        max_bucket_size=book.max_bucket_size,
        resize_count=book.resize_count,
        encoded_bits=0,
        bits_per_symbol=0.0,
        correctness_ok=1 if ok else 0,
    )


def run_codec(alphabet: List[str], text: str, pipeline: str) -> MetricRow:
    codes = balanced_codes(alphabet)

    t0 = now_ns()
    book = CodeBook.from_mapping(codes)
    t1 = now_ns()
    tree = HuffmanCodeTree.from_codebook(book)
    t2 = now_ns()
    insert_ms = ns_to_ms(t1 - t0)
    build_tree_ms = ns_to_ms(t2 - t1)

    if pipeline == "codebook":
        t3 = now_ns()
        encoded = book.encode(text)
        t4 = now_ns()
    elif pipeline == "codes_dict":
        t3 = now_ns()
        encoded = encode_with_dict(text, codes)
        t4 = now_ns()
    else:
        raise ValueError("pipeline must be 'codebook' or 'codes_dict'")
    encode_ms = ns_to_ms(t4 - t3)

    t5 = now_ns()
    decoded = tree.decode(encoded)
    t6 = now_ns()
    decode_ms = ns_to_ms(t6 - t5)

    return MetricRow(
        exp_name="",
        dataset_name="",
        pipeline=pipeline,
        run_id=0,
        unique_symbols=len(alphabet),
        text_length=len(text),
        insert_ms=insert_ms,
        lookup_ms=0.0,
        build_tree_ms=build_tree_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=insert_ms + build_tree_ms + encode_ms + decode_ms,
        capacity=book.capacity,
        occupied_buckets=book.occupied,
        load_factor=book.load_factor,
        max_bucket_size=book.max_bucket_size,
        resize_count=book.resize_count,
        encoded_bits=len(encoded),
        bits_per_symbol=len(encoded) / max(1, len(text)),
        correctness_ok=1 if decoded == text else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    fields = list(MetricRow.__dataclass_fields__.keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in fields})


def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)


def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, unique_symbols, text_length, pipeline and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.unique_symbols, r.text_length, r.pipeline)
        key_to.setdefault(key, []).append(r)

    averaged = ["insert_ms", "lookup_ms", "encode_ms", "decode_ms", "total_ms",
                "load_factor", "max_bucket_size", "bits_per_symbol"]
    summary_fields = ["exp_name", "dataset_name", "unique_symbols", "text_length", "pipeline", "n_runs"]
    for field in averaged:
        summary_fields += [f"{field}_mean", f"{field}_stdev"]
    summary_fields += ["capacity", "resize_count", "correctness_ok_rate"]

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, n_symbols, text_length, pipeline = key
            row = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "unique_symbols": n_symbols,
                "text_length": text_length,
                "pipeline": pipeline,
                "n_runs": len(items),
                # the table layout only depends on the alphabet, so any run will do
                "capacity": items[0].capacity,
                "resize_count": items[0].resize_count,
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            }
            for field in averaged:
                m, s = mean_stdev([getattr(x, field) for x in items])
                row[f"{field}_mean"] = m
                row[f"{field}_stdev"] = s
            w.writerow(row)


# Plotting

def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_table_growth"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))

    def mean_for(dataset: str, n: int, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dataset and r.unique_symbols == n]
        return statistics.mean(vals) if vals else float("nan")

    charts = [
        ("insert_ms", "Insert Time (ms)", "Insert Time vs Alphabet Size", "exp1_insert_time.png"),
        ("capacity", "Bucket Array Length", "Table Capacity vs Alphabet Size", "exp1_capacity.png"),
        ("load_factor", "Occupied Buckets / Capacity", "Load Factor vs Alphabet Size", "exp1_load_factor.png"),
        ("max_bucket_size", "Largest Bucket (entries)", "Largest Bucket vs Alphabet Size", "exp1_max_bucket.png"),
    ]

    for field, ylabel, title, filename in charts:
        plt.figure()
        for d in datasets:
            sizes = sorted(set(r.unique_symbols for r in exp_rows if r.dataset_name == d))
            y = [mean_for(d, n, field) for n in sizes]
            plt.plot(sizes, y, marker="o", label=d)
        plt.xlabel("Unique Symbols")
        plt.ylabel(ylabel)
        plt.title(f"Experiment 1: {title}")
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / filename, dpi=200)
        plt.close()


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_codec_scaling"]
    if not exp_rows:
        return

    distributions = sorted(set(r.dataset_name for r in exp_rows))

    for dist in distributions:
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.text_length for r in dist_rows))

        def mean_size(size: int, pipeline: str, field: str) -> float:
            vals = [getattr(r, field) for r in dist_rows if r.text_length == size and r.pipeline == pipeline]
            return statistics.mean(vals) if vals else float("nan")

        plt.figure()
        for p in PIPELINES:
            y = [mean_size(s, p, "encode_ms") for s in sizes]
            plt.plot(sizes, y, marker="o", label=p)
        plt.xlabel("Text Length (symbols)")
        plt.ylabel("Encode Time (ms)")
        plt.title(f"Experiment 2: Encode Time vs Size ({dist})")
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / f"exp2_encode_time_{dist}.png", dpi=200)
        plt.close()

        plt.figure()
        y = [mean_size(s, "codebook", "decode_ms") for s in sizes]
        plt.plot(sizes, y, marker="o")
        plt.xlabel("Text Length (symbols)")
        plt.ylabel("Decode Time (ms)")
        plt.title(f"Experiment 2: Tree Decode Time vs Size ({dist})")
        plt.tight_layout()
        plt.savefig(outdir / f"exp2_decode_time_{dist}.png", dpi=200)
        plt.close()


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def power_of_two_sizes(lo: int, hi: int) -> List[int]:
    sizes: List[int] = []
    s = max(1, lo)
    while s <= hi:
        sizes.append(s)
        s *= 2
    return sizes

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="CodeBook / code tree benchmark")
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--no_plots", action="store_true", help="Only write the CSV files")

    # Experiment toggles
    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (table growth)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (codec scaling)")

    # Experiment 1 controls
    ap.add_argument("--exp1_min_symbols", type=int, default=4, help="Experiment 1 smallest alphabet (power-of-two growth)")
    ap.add_argument("--exp1_max_symbols", type=int, default=2048, help="Experiment 1 largest alphabet")
    ap.add_argument("--exp1_generators", type=str, default="printable,cjk,collide16",
                    help="Comma-separated alphabet generator names for experiment 1")

    # Experiment 2 controls
    ap.add_argument("--exp2_symbols", type=int, default=64, help="Experiment 2 alphabet size")
    ap.add_argument("--exp2_min_kb", type=int, default=4, help="Experiment 2 min text size in K symbols (power-of-two growth)")
    ap.add_argument("--exp2_max_kb", type=int, default=256, help="Experiment 2 max text size in K symbols")
    ap.add_argument("--exp2_generators", type=str, default="printable,cjk",
                    help="Comma-separated alphabet generator names for experiment 2")
    return ap

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    rows: List[MetricRow] = []

    # Experiment 1: table growth (alphabet sizes, powers of 2)
    if not args.no_exp1:
        sizes = power_of_two_sizes(args.exp1_min_symbols, args.exp1_max_symbols)
        for gen_name in parse_csv_list(args.exp1_generators):
            for n in sizes:
                for run_id in range(1, args.runs + 1):
                    dataset_name, alphabet = generate_alphabet(gen_name, n, args.seed + run_id)
                    row = run_growth(alphabet)
                    row.exp_name = "exp1_table_growth"
                    row.dataset_name = dataset_name
                    row.run_id = run_id
                    rows.append(row)
            print(f"[exp1] {gen_name}: {len(sizes)} alphabet sizes x {args.runs} runs")

    # Experiment 2: encode/decode scaling (text sizes, powers of 2)
    if not args.no_exp2:
        sizes = power_of_two_sizes(args.exp2_min_kb * 1024, args.exp2_max_kb * 1024)
        for gen_name in parse_csv_list(args.exp2_generators):
            for size in sizes:
                for run_id in range(1, args.runs + 1):
                    seed = args.seed + 10_000 + size + run_id
                    dataset_name, alphabet = generate_alphabet(gen_name, args.exp2_symbols, seed)
                    text = gen_text(alphabet, size, seed)
                    for pipeline in PIPELINES:
                        row = run_codec(alphabet, text, pipeline)
                        row.exp_name = "exp2_codec_scaling"
                        row.dataset_name = dataset_name
                        row.run_id = run_id
                        rows.append(row)
            print(f"[exp2] {gen_name}: {len(sizes)} text sizes x {args.runs} runs")

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
