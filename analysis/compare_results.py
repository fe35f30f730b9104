#!/usr/bin/env python3
"""
compare_results.py - Compare two boutique load test summaries (baseline vs candidate)

Usage:
    python -m analysis.compare_results --baseline results/baseline.json --candidate results/load-test-summary.json

    # Custom output directory
    python -m analysis.compare_results --baseline a.json --candidate b.json --output results/comparison
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

# Configuration
RESULTS_DIR = Path("results")
BASELINE_FILE = RESULTS_DIR / "baseline.json"
CANDIDATE_FILE = RESULTS_DIR / "load-test-summary.json"
OUTPUT_DIR = RESULTS_DIR / "comparison"

LATENCY_METRICS = [
    ("http_req_duration", "All requests"),
    ("homepage_load_time", "Homepage"),
    ("product_page_load_time", "Product page"),
    ("checkout_time", "Checkout"),
]

PERCENTILES = [("med", "P50"), ("p(90)", "P90"), ("p(95)", "P95"), ("p(99)", "P99")]

COLORS = {"Baseline": "#2ecc71", "Candidate": "#3498db"}


def load_summary(path: Path) -> dict | None:
    """Load a JSON summary artifact into a dict of its top-level sections."""
    if not path or not path.exists():
        return None
    return pd.read_json(path, typ="series", dtype=False, convert_dates=False).to_dict()


def metric_value(data: dict, metric: str, stat: str):
    """Return a metric statistic, or None when the run did not record it."""
    return data.get("metrics", {}).get(metric, {}).get("values", {}).get(stat)


def checks_frame(data: dict) -> pd.DataFrame:
    """One row per named check with its pass rate (%)."""
    checks = data.get("root_group", {}).get("checks", [])
    df = pd.DataFrame(checks, columns=["name", "passes", "fails"])
    total = (df["passes"] + df["fails"]).replace(0, 1)
    df["Pass Rate"] = df["passes"] / total * 100
    return df


def create_summary(baseline: dict, candidate: dict) -> pd.DataFrame:
    """Create comparison summary table."""

    def calc_diff(base_val, cand_val):
        if base_val is None or cand_val is None or base_val == 0:
            return "N/A"
        diff = ((cand_val - base_val) / base_val) * 100
        return f"{diff:+.1f}%"

    def pct(value):
        return None if value is None else round(value * 100, 2)

    def ms(value):
        return None if value is None else round(value, 2)

    rows = [
        ("Total Requests", lambda d: metric_value(d, "http_reqs", "count")),
        ("Failure Rate (%)", lambda d: pct(metric_value(d, "http_req_failed", "rate"))),
        ("Avg Response Time (ms)", lambda d: ms(metric_value(d, "http_req_duration", "avg"))),
        ("P95 Response Time (ms)", lambda d: ms(metric_value(d, "http_req_duration", "p(95)"))),
        ("P99 Response Time (ms)", lambda d: ms(metric_value(d, "http_req_duration", "p(99)"))),
        ("Error Rate (%)", lambda d: pct(metric_value(d, "errors", "rate"))),
        ("Homepage P95 (ms)", lambda d: ms(metric_value(d, "homepage_load_time", "p(95)"))),
        ("Product Page P95 (ms)", lambda d: ms(metric_value(d, "product_page_load_time", "p(95)"))),
        ("Checkout P95 (ms)", lambda d: ms(metric_value(d, "checkout_time", "p(95)"))),
        ("Iterations", lambda d: metric_value(d, "iterations", "count")),
        ("Peak VUs", lambda d: metric_value(d, "vus", "max")),
    ]

    base_values = [extract(baseline) for _, extract in rows]
    cand_values = [extract(candidate) for _, extract in rows]

    summary = pd.DataFrame({
        "Metric": [name for name, _ in rows],
        "Baseline": ["N/A" if v is None else v for v in base_values],
        "Candidate": ["N/A" if v is None else v for v in cand_values],
    })
    summary["Difference"] = [calc_diff(b, c) for b, c in zip(base_values, cand_values)]

    return summary


def latency_frame(baseline: dict, candidate: dict, stat: str = "avg") -> pd.DataFrame:
    """Long-form latency table for the journey's trend metrics."""
    records = []
    for run, data in (("Baseline", baseline), ("Candidate", candidate)):
        for metric, label in LATENCY_METRICS:
            value = metric_value(data, metric, stat)
            if value is not None:
                records.append({"Metric": label, "Run": run, "Value": value})
    return pd.DataFrame(records, columns=["Metric", "Run", "Value"])


def plot_latency_comparison(baseline: dict, candidate: dict, output_dir: Path):
    """Create latency comparison bar chart."""
    df = latency_frame(baseline, candidate, "avg")
    if df.empty:
        print("  ⚠️  Skipping latency chart (no trend data)")
        return

    fig, ax = plt.subplots(figsize=(12, 6))
    sns.barplot(data=df, x="Metric", y="Value", hue="Run", palette=COLORS, ax=ax)

    ax.set_xlabel("Metric", fontsize=12)
    ax.set_ylabel("Average Duration (ms)", fontsize=12)
    ax.set_title("Latency Comparison: Baseline vs Candidate", fontsize=14, fontweight="bold")
    ax.grid(axis="y", alpha=0.3)

    for container in ax.containers:
        ax.bar_label(container, fmt="%.0f", fontsize=8, padding=3)

    plt.tight_layout()
    plt.savefig(output_dir / "latency_comparison.png", dpi=150)
    plt.close()
    print("  ✅ Saved: latency_comparison.png")


def plot_percentile_comparison(baseline: dict, candidate: dict, output_dir: Path):
    """Create request duration percentile comparison."""
    fig, ax = plt.subplots(figsize=(10, 6))

    x = range(len(PERCENTILES))
    width = 0.35
    base_vals = [metric_value(baseline, "http_req_duration", p) or 0 for p, _ in PERCENTILES]
    cand_vals = [metric_value(candidate, "http_req_duration", p) or 0 for p, _ in PERCENTILES]

    ax.bar([i - width / 2 for i in x], base_vals, width, label="Baseline", color=COLORS["Baseline"])
    ax.bar([i + width / 2 for i in x], cand_vals, width, label="Candidate", color=COLORS["Candidate"])

    ax.set_xlabel("Percentile", fontsize=12)
    ax.set_ylabel("Response Time (ms)", fontsize=12)
    ax.set_title("Response Time Percentiles: Baseline vs Candidate", fontsize=14, fontweight="bold")
    ax.set_xticks(list(x))
    ax.set_xticklabels([label for _, label in PERCENTILES])
    ax.legend()
    ax.grid(axis="y", alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_dir / "percentile_comparison.png", dpi=150)
    plt.close()
    print("  ✅ Saved: percentile_comparison.png")


def plot_check_comparison(baseline: dict, candidate: dict, output_dir: Path):
    """Create check pass rate comparison."""
    base = checks_frame(baseline).assign(Run="Baseline")
    cand = checks_frame(candidate).assign(Run="Candidate")
    df = pd.concat([base, cand], ignore_index=True)
    if df.empty:
        print("  ⚠️  Skipping checks chart (no checks recorded)")
        return

    fig, ax = plt.subplots(figsize=(10, max(4, len(df["name"].unique()) * 0.5)))
    sns.barplot(data=df, y="name", x="Pass Rate", hue="Run", palette=COLORS, ax=ax)

    ax.set_xlabel("Pass Rate (%)", fontsize=12)
    ax.set_ylabel("")
    ax.set_xlim(0, 100)
    ax.set_title("Check Pass Rate: Baseline vs Candidate", fontsize=14, fontweight="bold")
    ax.grid(axis="x", alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_dir / "check_comparison.png", dpi=150)
    plt.close()
    print("  ✅ Saved: check_comparison.png")


def threshold_rows(data: dict) -> list[tuple[str, str, bool]]:
    rows = []
    for metric, entry in data.get("metrics", {}).items():
        for expression, result in entry.get("thresholds", {}).items():
            rows.append((metric, expression, bool(result.get("ok"))))
    return rows


def generate_report(summary: pd.DataFrame, baseline: dict, candidate: dict, output_dir: Path):
    """Generate markdown report."""
    threshold_lines = []
    for run, data in (("Baseline", baseline), ("Candidate", candidate)):
        for metric, expression, ok in threshold_rows(data):
            threshold_lines.append(f"| {run} | `{metric}` | `{expression}` | {'✅' if ok else '❌'} |")
    thresholds = "\n".join(threshold_lines) or "| - | - | - | - |"

    report = f"""# Boutique Load Test Comparison Report

**Generated:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}

## Performance Comparison

{summary.to_markdown(index=False)}

## Thresholds

| Run | Metric | Expression | Result |
|-----|--------|------------|--------|
{thresholds}

## Latency

![Latency Comparison](latency_comparison.png)

## Response Time Distribution

![Percentile Comparison](percentile_comparison.png)

## Checks

![Check Comparison](check_comparison.png)
"""

    with open(output_dir / "comparison_report.md", "w") as f:
        f.write(report)
    print("  ✅ Saved: comparison_report.md")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Compare two boutique load test summaries")
    parser.add_argument("--baseline", type=Path, default=BASELINE_FILE, help="Baseline summary JSON")
    parser.add_argument("--candidate", type=Path, default=CANDIDATE_FILE, help="Candidate summary JSON")
    parser.add_argument("--output", type=Path, default=OUTPUT_DIR, help="Output directory")
    args = parser.parse_args(argv)

    print("\n" + "=" * 60)
    print("  BASELINE vs CANDIDATE COMPARISON")
    print("=" * 60 + "\n")

    baseline = load_summary(args.baseline)
    candidate = load_summary(args.candidate)

    if baseline is None:
        print(f"❌ Baseline summary not found: {args.baseline}")
        sys.exit(1)

    if candidate is None:
        print(f"❌ Candidate summary not found: {args.candidate}")
        sys.exit(1)

    print(f"📁 Baseline:  {args.baseline}")
    print(f"📁 Candidate: {args.candidate}")

    args.output.mkdir(parents=True, exist_ok=True)

    print("\n📊 Creating summary...")
    summary = create_summary(baseline, candidate)
    print("\n" + summary.to_string(index=False))

    summary.to_csv(args.output / "summary.csv", index=False)
    print("\n  ✅ Saved: summary.csv")

    sns.set_theme(style="whitegrid")
    print("\n🎨 Generating charts...")
    plot_latency_comparison(baseline, candidate, args.output)
    plot_percentile_comparison(baseline, candidate, args.output)
    plot_check_comparison(baseline, candidate, args.output)

    print("\n📝 Generating report...")
    generate_report(summary, baseline, candidate, args.output)

    print("\n" + "=" * 60)
    print("  ✅ Comparison complete!")
    print(f"  📁 Results: {args.output}")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    main()
