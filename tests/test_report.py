"""
Unit tests for report rendering
"""

import csv
import json

import pytest

from macrobench.analysis import compare_results, summarize_results
from macrobench.report import (
    change_color,
    comparisons_to_markdown,
    dimension_label,
    format_change,
    plot_relative_changes,
    print_console_report,
    print_summary_report,
    save_comparison_csv,
    save_summary_csv,
    summaries_to_markdown,
    to_json,
)
from macrobench.results import BenchmarkResults
from macrobench.stats import compare

from .conftest import make_metrics, make_result


@pytest.fixture
def comparisons():
    old = BenchmarkResults(
        results=tuple(make_result(tps) for tps in (100.0, 110.0, 90.0)),
        metrics=tuple(make_metrics(cpu={"vtgate": 10.0}) for _ in range(3)),
    )
    new = BenchmarkResults(
        results=tuple(make_result(tps) for tps in (150.0, 140.0)),
        metrics=tuple(make_metrics(cpu={"vtgate": 12.0, "vttablet": 30.0}) for _ in range(2)),
    )
    return {
        "oltp": compare_results(old, new),
        "tpcc": compare_results(BenchmarkResults(), BenchmarkResults()),
    }


def test_dimension_label():
    assert dimension_label("tps") == "TPS"
    assert dimension_label("components_cpu_time", "vttablet") == "CPU time (vttablet)"
    assert dimension_label("custom") == "custom"


def test_format_change():
    assert format_change(compare([100.0], [145.0])) == "+45.00%"
    assert format_change(compare([0.0], [1.0])) == "undefined"
    assert format_change(compare([], [1.0])) == "N/A"


def test_markdown_report(comparisons):
    report = comparisons_to_markdown(comparisons, "old", "new")
    assert "# Macro Benchmark Comparison" in report
    assert "## OLTP" in report
    assert "| TPS |" in report
    assert "+45.00%" in report
    assert "CPU time (vttablet)" in report
    assert "_No runs recorded._" in report


def test_console_reports(comparisons, capsys):
    print_console_report(comparisons, "old", "new")
    out = capsys.readouterr().out
    assert "MACRO BENCHMARK COMPARISON" in out
    assert "No runs recorded" in out

    print_summary_report({"oltp": summarize_results(BenchmarkResults(results=(make_result(),)))}, "old")
    out = capsys.readouterr().out
    assert "MACRO BENCHMARK SUMMARY" in out
    assert "TPS" in out


def test_json_report(comparisons):
    payload = json.loads(to_json(comparisons))
    assert payload["tpcc"] == {}
    assert payload["oltp"]["tps"]["baseline"]["mean"] == pytest.approx(100.0)


def test_save_comparison_csv(comparisons, tmp_path):
    path = tmp_path / "out" / "compare.csv"
    save_comparison_csv(comparisons, str(path))
    with open(path, newline="") as f:
        rows = list(csv.DictReader(f))
    tps = next(r for r in rows if r["dimension"] == "TPS")
    assert tps["benchmark_type"] == "oltp"
    assert float(tps["relative_change"]) == pytest.approx(0.45)
    vttablet = next(r for r in rows if r["dimension"] == "CPU time (vttablet)")
    assert vttablet["relative_change"] == ""
    assert vttablet["baseline_count"] == "0"


def test_plot_relative_changes(comparisons, tmp_path):
    path = tmp_path / "plots" / "changes.png"
    plot_relative_changes(comparisons, str(path))
    assert path.exists()
    assert path.stat().st_size > 0


@pytest.fixture
def summaries():
    runs = BenchmarkResults(
        results=tuple(make_result(tps) for tps in (100.0, 110.0, 90.0)),
        metrics=tuple(make_metrics(cpu={"vtgate": 10.0}) for _ in range(3)),
    )
    return {
        "oltp": summarize_results(runs),
        "tpcc": summarize_results(BenchmarkResults()),
    }


def test_summary_markdown_report(summaries):
    report = summaries_to_markdown(summaries, "old")
    assert "# Macro Benchmark Summary" in report
    assert "`old`" in report
    assert "## OLTP" in report
    assert "| TPS | 3 | 100.00 | 10.00 | 100.00 | 90.00 | 110.00 |" in report
    assert "CPU time (vtgate)" in report
    assert "_No runs recorded._" in report


def test_save_summary_csv(summaries, tmp_path, capsys):
    path = tmp_path / "out" / "summary.csv"
    save_summary_csv(summaries, str(path))
    assert "Saved summary to" in capsys.readouterr().out
    with open(path, newline="") as f:
        rows = list(csv.DictReader(f))
    assert {r["benchmark_type"] for r in rows} == {"oltp"}
    tps = next(r for r in rows if r["dimension"] == "TPS")
    assert tps["count"] == "3"
    assert float(tps["mean"]) == pytest.approx(100.0)
    assert float(tps["minimum"]) == pytest.approx(90.0)
    assert float(tps["maximum"]) == pytest.approx(110.0)


LOW = [100.0 + i for i in range(10)]
HIGH = [200.0 + i for i in range(10)]


@pytest.mark.parametrize("dimension, baseline, candidate, color", [
    ("tps", LOW, HIGH, "green"),
    ("tps", HIGH, LOW, "red"),
    ("qps_total", LOW, HIGH, "green"),
    ("latency", LOW, HIGH, "red"),
    ("latency", HIGH, LOW, "green"),
    ("components_cpu_time", LOW, HIGH, "red"),
    ("threads", LOW, HIGH, "steelblue"),
    ("latency", [100.0, 102.0, 98.0], [101.0, 99.0, 100.0], "lightgray"),
    ("tps", [100.0], [200.0], "lightgray"),
])
def test_change_color_follows_better_direction(dimension, baseline, candidate, color):
    assert change_color(dimension, compare(baseline, candidate)) == color
