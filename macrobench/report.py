"""Report generation for macro benchmark comparisons and summaries."""

import csv
import json
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from .analysis import StatisticalCompareResults, StatisticalSingleResult
from .stats import ComparisonResult, StatisticalSummary

# Human-readable labels for each dimension
DIMENSION_LABELS = {
    "qps_total": "QPS Total",
    "qps_reads": "QPS Reads",
    "qps_writes": "QPS Writes",
    "qps_other": "QPS Other",
    "tps": "TPS",
    "latency": "Latency",
    "errors": "Errors",
    "reconnects": "Reconnects",
    "time": "Time",
    "threads": "Threads",
    "total_components_cpu_time": "Total CPU time",
    "total_components_mem_stats_alloc_bytes": "Total allocated",
    "components_cpu_time": "CPU time",
    "components_mem_stats_alloc_bytes": "Allocated",
}

# Dimensions where an increase is an improvement
HIGHER_IS_BETTER = {"qps_total", "qps_reads", "qps_writes", "qps_other", "tps"}

# Dimensions where an increase is a regression
LOWER_IS_BETTER = {
    "latency",
    "errors",
    "reconnects",
    "total_components_cpu_time",
    "total_components_mem_stats_alloc_bytes",
    "components_cpu_time",
    "components_mem_stats_alloc_bytes",
}


def dimension_label(dimension: str, component: Optional[str] = None) -> str:
    """Return the display label of a dimension, optionally for one component."""
    label = DIMENSION_LABELS.get(dimension, dimension)
    if component:
        return f"{label} ({component})"
    return label


def iter_dimension_comparisons(
    bundle: StatisticalCompareResults,
) -> Iterator[Tuple[str, Optional[str], ComparisonResult]]:
    """Yield (dimension, component, comparison) for every entry of a bundle."""
    for dimension, comparison in bundle.dimensions.items():
        yield dimension, None, comparison
    for dimension, by_component in bundle.components.items():
        for component, comparison in by_component.items():
            yield dimension, component, comparison


def iter_comparisons(
    bundle: StatisticalCompareResults,
) -> Iterator[Tuple[str, ComparisonResult]]:
    """Yield (label, comparison) for every dimension and component of a bundle."""
    for dimension, component, comparison in iter_dimension_comparisons(bundle):
        yield dimension_label(dimension, component), comparison


def iter_summaries(
    bundle: StatisticalSingleResult,
) -> Iterator[Tuple[str, StatisticalSummary]]:
    """Yield (label, summary) for every dimension and component of a bundle."""
    for dimension, summary in bundle.dimensions.items():
        yield dimension_label(dimension), summary
    for dimension, by_component in bundle.components.items():
        for component, summary in by_component.items():
            yield dimension_label(dimension, component), summary


def format_value(summary: StatisticalSummary) -> str:
    """Format a mean with its standard deviation."""
    if summary.insufficient_data:
        return "N/A"
    return f"{summary.mean:,.2f} ±{summary.stddev:,.2f}"


def format_change(comparison: ComparisonResult) -> str:
    """Format the relative change of a comparison."""
    if comparison.change_undefined:
        return "undefined"
    if comparison.relative_change_percent is None:
        return "N/A"
    return f"{comparison.relative_change_percent:+.2f}%"


def format_p_value(comparison: ComparisonResult) -> str:
    """Format the p-value of a comparison."""
    if comparison.p_value is None:
        return "n<2"
    return f"{comparison.p_value:.3f}"


def print_console_report(
    comparisons: Dict[str, StatisticalCompareResults],
    old: str,
    new: str,
) -> None:
    """
    Print comparisons to console in formatted tables.

    Args:
        comparisons: Benchmark type -> comparison bundle
        old: Baseline git ref
        new: Candidate git ref
    """
    print("\n" + "=" * 100)
    print("MACRO BENCHMARK COMPARISON")
    print(f"Baseline:       {old}")
    print(f"Candidate:      {new}")

    for benchmark_type, bundle in comparisons.items():
        print(f"\n{benchmark_type.upper()}")
        print("-" * 100)
        if bundle.is_empty:
            print("No runs recorded")
            continue

        print(
            f"{'Dimension':<34} {'Baseline':>20} {'Candidate':>20} "
            f"{'Change':>10} {'p':>6} {'Sig':>6}"
        )
        print("-" * 100)
        for label, c in iter_comparisons(bundle):
            print(
                f"{label:<34} {format_value(c.baseline):>20} {format_value(c.candidate):>20} "
                f"{format_change(c):>10} {format_p_value(c):>6} "
                f"{'yes' if c.significant else 'no':>6}"
            )

    print("=" * 100)


def print_summary_report(
    summaries: Dict[str, StatisticalSingleResult],
    git_ref: str,
) -> None:
    """
    Print summaries to console in formatted tables.

    Args:
        summaries: Benchmark type -> summary bundle
        git_ref: Summarized git ref
    """
    print("\n" + "=" * 100)
    print("MACRO BENCHMARK SUMMARY")
    print(f"Git ref:        {git_ref}")

    for benchmark_type, bundle in summaries.items():
        print(f"\n{benchmark_type.upper()}")
        print("-" * 100)
        if bundle.is_empty:
            print("No runs recorded")
            continue

        print(
            f"{'Dimension':<34} {'N':>5} {'Mean':>16} {'Stddev':>14} "
            f"{'Median':>14} {'Min':>14}"
        )
        print("-" * 100)
        for label, s in iter_summaries(bundle):
            print(
                f"{label:<34} {s.count:>5} {s.mean:>16,.2f} {s.stddev:>14,.2f} "
                f"{s.median:>14,.2f} {s.minimum:>14,.2f}"
            )

    print("=" * 100)


def comparisons_to_markdown(
    comparisons: Dict[str, StatisticalCompareResults],
    old: str,
    new: str,
) -> str:
    """Render comparisons as a markdown report."""
    lines = []
    lines.append("# Macro Benchmark Comparison")
    lines.append(f"\nGenerated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
    lines.append(f"- **Baseline**: `{old}`")
    lines.append(f"- **Candidate**: `{new}`")
    lines.append("")

    for benchmark_type, bundle in comparisons.items():
        lines.append(f"## {benchmark_type.upper()}")
        lines.append("")
        if bundle.is_empty:
            lines.append("_No runs recorded._")
            lines.append("")
            continue

        lines.append("| Dimension | Baseline | Candidate | Change | p-value | Significant |")
        lines.append("|-----------|----------|-----------|--------|---------|-------------|")
        for label, c in iter_comparisons(bundle):
            lines.append(
                f"| {label} | {format_value(c.baseline)} | {format_value(c.candidate)} | "
                f"{format_change(c)} | {format_p_value(c)} | "
                f"{'**yes**' if c.significant else 'no'} |"
            )
        lines.append("")

    return "\n".join(lines)


def summaries_to_markdown(
    summaries: Dict[str, StatisticalSingleResult],
    git_ref: str,
) -> str:
    """Render summaries as a markdown report."""
    lines = []
    lines.append("# Macro Benchmark Summary")
    lines.append(f"\nGenerated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
    lines.append(f"- **Git ref**: `{git_ref}`")
    lines.append("")

    for benchmark_type, bundle in summaries.items():
        lines.append(f"## {benchmark_type.upper()}")
        lines.append("")
        if bundle.is_empty:
            lines.append("_No runs recorded._")
            lines.append("")
            continue

        lines.append("| Dimension | N | Mean | Stddev | Median | Min | Max |")
        lines.append("|-----------|---|------|--------|--------|-----|-----|")
        for label, s in iter_summaries(bundle):
            if s.insufficient_data:
                lines.append(f"| {label} | 0 | N/A | N/A | N/A | N/A | N/A |")
                continue
            lines.append(
                f"| {label} | {s.count} | {s.mean:,.2f} | {s.stddev:,.2f} | "
                f"{s.median:,.2f} | {s.minimum:,.2f} | {s.maximum:,.2f} |"
            )
        lines.append("")

    return "\n".join(lines)


def to_json(bundles: Dict[str, object]) -> str:
    """Serialize comparison or summary bundles to JSON."""
    return json.dumps(
        {benchmark_type: bundle.to_dict() for benchmark_type, bundle in bundles.items()},
        indent=2,
        sort_keys=True,
    )


def save_comparison_csv(
    comparisons: Dict[str, StatisticalCompareResults],
    output_path: str,
) -> None:
    """
    Save comparisons to CSV, one row per benchmark type and dimension.

    Args:
        comparisons: Benchmark type -> comparison bundle
        output_path: Path to output CSV file
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", newline="") as f:
        writer = csv.writer(f)

        # Header
        writer.writerow([
            "benchmark_type",
            "dimension",
            "baseline_count",
            "baseline_mean",
            "candidate_count",
            "candidate_mean",
            "relative_change",
            "p_value",
            "significance",
        ])

        # Data
        for benchmark_type, bundle in comparisons.items():
            for label, c in iter_comparisons(bundle):
                writer.writerow([
                    benchmark_type,
                    label,
                    c.baseline.count,
                    f"{c.baseline.mean:.6f}",
                    c.candidate.count,
                    f"{c.candidate.mean:.6f}",
                    "" if c.relative_change is None else f"{c.relative_change:.6f}",
                    "" if c.p_value is None else f"{c.p_value:.6f}",
                    c.significance,
                ])

    print(f"Saved comparison to {path}")


def save_summary_csv(
    summaries: Dict[str, StatisticalSingleResult],
    output_path: str,
) -> None:
    """
    Save summaries to CSV, one row per benchmark type and dimension.

    Args:
        summaries: Benchmark type -> summary bundle
        output_path: Path to output CSV file
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", newline="") as f:
        writer = csv.writer(f)

        writer.writerow([
            "benchmark_type",
            "dimension",
            "count",
            "mean",
            "stddev",
            "median",
            "minimum",
            "maximum",
        ])

        for benchmark_type, bundle in summaries.items():
            for label, s in iter_summaries(bundle):
                writer.writerow([
                    benchmark_type,
                    label,
                    s.count,
                    f"{s.mean:.6f}",
                    f"{s.stddev:.6f}",
                    f"{s.median:.6f}",
                    f"{s.minimum:.6f}",
                    f"{s.maximum:.6f}",
                ])

    print(f"Saved summary to {path}")


def change_color(dimension: str, comparison: ComparisonResult) -> str:
    """
    Pick the bar color of a comparison.

    Insignificant changes are gray, improvements green, regressions red.
    Dimensions with no better direction (e.g. threads) are blue.
    """
    if not comparison.significant or comparison.relative_change is None:
        return "lightgray"
    if dimension in HIGHER_IS_BETTER:
        improved = comparison.relative_change > 0
    elif dimension in LOWER_IS_BETTER:
        improved = comparison.relative_change < 0
    else:
        return "steelblue"
    return "green" if improved else "red"


def plot_relative_changes(
    comparisons: Dict[str, StatisticalCompareResults],
    output_path: str,
    title: str = "Relative change vs baseline",
) -> None:
    """
    Create a horizontal bar chart of the relative change of each dimension.

    Dimensions without a defined change are left out. Significant changes
    are colored by whether they improve or regress the dimension.

    Args:
        comparisons: Benchmark type -> comparison bundle
        output_path: Path to save the plot
        title: Plot title
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    labels = []
    changes = []
    colors = []
    for benchmark_type, bundle in comparisons.items():
        for dimension, component, c in iter_dimension_comparisons(bundle):
            if c.relative_change_percent is None:
                continue
            labels.append(f"{benchmark_type}: {dimension_label(dimension, component)}")
            changes.append(c.relative_change_percent)
            colors.append(change_color(dimension, c))

    fig, ax = plt.subplots(figsize=(10, max(3, 0.35 * len(labels) + 1)))

    y = np.arange(len(labels))
    ax.barh(y, changes, color=colors)
    ax.set_yticks(y)
    ax.set_yticklabels(labels, fontsize=8)
    ax.axvline(0, color="black", linewidth=0.8)
    ax.set_xlabel("Change (%)", fontsize=12)
    ax.set_title(title, fontsize=14)
    ax.grid(True, axis="x", alpha=0.3)
    ax.invert_yaxis()

    plt.tight_layout()
    plt.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)

    print(f"Saved plot to {path}")
