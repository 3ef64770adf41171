"""Comparison and summary of macro benchmarks across git refs."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

from .projection import COMPONENT_DIMENSIONS, METRIC_DIMENSIONS, STANDARD_DIMENSIONS
from .results import BenchmarkResults
from .stats import DEFAULT_ALPHA, ComparisonResult, StatisticalSummary, compare, summarize
from .store import SampleStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatisticalSingleResult:
    """Summaries of every dimension of one benchmark type at one git ref."""

    dimensions: Dict[str, StatisticalSummary] = field(default_factory=dict)
    components: Dict[str, Dict[str, StatisticalSummary]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.dimensions and not any(self.components.values())

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {name: s.to_dict() for name, s in self.dimensions.items()}
        for dimension, by_component in self.components.items():
            d[dimension] = {name: s.to_dict() for name, s in by_component.items()}
        return d


@dataclass(frozen=True)
class StatisticalCompareResults:
    """Comparisons of every dimension of one benchmark type between two git refs."""

    dimensions: Dict[str, ComparisonResult] = field(default_factory=dict)
    components: Dict[str, Dict[str, ComparisonResult]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.dimensions and not any(self.components.values())

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {name: c.to_dict() for name, c in self.dimensions.items()}
        for dimension, by_component in self.components.items():
            d[dimension] = {name: c.to_dict() for name, c in by_component.items()}
        return d


def get_benchmark_results(
    store: SampleStore,
    benchmark_type: str,
    git_ref: str,
    planner: str,
    last_days: Optional[int] = None,
) -> BenchmarkResults:
    """
    Fetch the results of a benchmark type and join each run to its metrics.

    Args:
        store: Sample store to read from
        benchmark_type: Benchmark type (e.g., 'oltp', 'tpcc')
        git_ref: Commit the benchmarks ran against
        planner: Planner version
        last_days: Only consider runs created in the last N days

    Returns:
        BenchmarkResults, empty when no run matches

    Raises:
        RetrievalError: If the store fails or a run has no metrics
    """
    runs = store.fetch_runs(benchmark_type, git_ref, planner, last_days=last_days)
    if not runs:
        return BenchmarkResults()

    results = []
    metrics = []
    for run in runs:
        results.append(run.result)
        if run.metrics is not None:
            metrics.append(run.metrics)
        else:
            metrics.append(store.fetch_metrics(run.benchmark_id.exec_uuid))

    return BenchmarkResults(results=tuple(results), metrics=tuple(metrics))


def compare_results(
    old: BenchmarkResults,
    new: BenchmarkResults,
    alpha: float = DEFAULT_ALPHA,
) -> StatisticalCompareResults:
    """
    Compare every dimension of two result sets.

    Components are compared over the union of names seen on either side; a
    component missing from one side is compared against an empty column.
    """
    if not old and not new:
        return StatisticalCompareResults()

    left = old.as_columns()
    right = new.as_columns()

    dimensions = {
        name: compare(left.column(name), right.column(name), alpha=alpha)
        for name in STANDARD_DIMENSIONS + METRIC_DIMENSIONS
    }

    components = {}
    for dimension in COMPONENT_DIMENSIONS:
        left_columns = left.component_columns(dimension)
        right_columns = right.component_columns(dimension)
        names = sorted(set(left_columns) | set(right_columns))
        components[dimension] = {
            name: compare(left_columns.get(name, []), right_columns.get(name, []), alpha=alpha)
            for name in names
        }

    return StatisticalCompareResults(dimensions=dimensions, components=components)


def summarize_results(results: BenchmarkResults) -> StatisticalSingleResult:
    """Summarize every dimension of a result set."""
    if not results:
        return StatisticalSingleResult()

    columns = results.as_columns()
    dimensions = {
        name: summarize(columns.column(name))
        for name in STANDARD_DIMENSIONS + METRIC_DIMENSIONS
    }
    components = {
        dimension: {
            name: summarize(values)
            for name, values in sorted(columns.component_columns(dimension).items())
        }
        for dimension in COMPONENT_DIMENSIONS
    }
    return StatisticalSingleResult(dimensions=dimensions, components=components)


def compare_revisions(
    store: SampleStore,
    benchmark_types: Iterable[str],
    old: str,
    new: str,
    planner: str,
    alpha: float = DEFAULT_ALPHA,
    last_days: Optional[int] = None,
) -> Dict[str, StatisticalCompareResults]:
    """
    Compare the benchmarks of two git refs, one entry per benchmark type.

    Any retrieval error aborts the whole request; no partial map is returned.

    Args:
        store: Sample store to read from
        benchmark_types: Benchmark types to compare
        old: Baseline git ref
        new: Candidate git ref
        planner: Planner version
        alpha: Significance level
        last_days: Only consider runs created in the last N days

    Returns:
        Dictionary mapping benchmark type to StatisticalCompareResults
    """
    comparisons = {}
    for benchmark_type in sorted(set(benchmark_types)):
        left = get_benchmark_results(store, benchmark_type, old, planner, last_days)
        right = get_benchmark_results(store, benchmark_type, new, planner, last_days)
        logger.info(
            "Comparing %s: %d runs of %s vs %d runs of %s",
            benchmark_type, len(left), old, len(right), new,
        )
        comparisons[benchmark_type] = compare_results(left, right, alpha=alpha)
    return comparisons


def summarize_revision(
    store: SampleStore,
    benchmark_types: Iterable[str],
    git_ref: str,
    planner: str,
    last_days: Optional[int] = None,
) -> Dict[str, StatisticalSingleResult]:
    """
    Summarize the benchmarks of one git ref, one entry per benchmark type.

    A benchmark type without runs yields an empty StatisticalSingleResult.

    Args:
        store: Sample store to read from
        benchmark_types: Benchmark types to summarize
        git_ref: Git ref to summarize
        planner: Planner version
        last_days: Only consider runs created in the last N days

    Returns:
        Dictionary mapping benchmark type to StatisticalSingleResult
    """
    summaries = {}
    for benchmark_type in sorted(set(benchmark_types)):
        results = get_benchmark_results(store, benchmark_type, git_ref, planner, last_days)
        logger.info("Summarizing %s: %d runs of %s", benchmark_type, len(results), git_ref)
        summaries[benchmark_type] = summarize_results(results)
    return summaries
