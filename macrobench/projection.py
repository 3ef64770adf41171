"""Columnar projection of benchmark results."""

from dataclasses import dataclass, field
from typing import Dict, List

from .errors import ProjectionError
from .results import BenchmarkResults

# Scalar dimensions read from each Result, in display order
STANDARD_DIMENSIONS = (
    "qps_total",
    "qps_reads",
    "qps_writes",
    "qps_other",
    "tps",
    "latency",
    "errors",
    "reconnects",
    "time",
    "threads",
)

# Scalar dimensions read from each ExecutionMetrics
METRIC_DIMENSIONS = (
    "total_components_cpu_time",
    "total_components_mem_stats_alloc_bytes",
)

# Per-component dimensions, keyed by component name at read time
COMPONENT_DIMENSIONS = (
    "components_cpu_time",
    "components_mem_stats_alloc_bytes",
)


@dataclass(frozen=True)
class ColumnProjection:
    """Parallel numeric columns built from a BenchmarkResults."""

    run_count: int = 0
    columns: Dict[str, List[float]] = field(default_factory=dict)
    components: Dict[str, Dict[str, List[float]]] = field(default_factory=dict)

    def column(self, name: str) -> List[float]:
        """Return the column for a standard or metric dimension."""
        return self.columns.get(name, [])

    def component_columns(self, dimension: str) -> Dict[str, List[float]]:
        """Return the component name -> column mapping for a component dimension."""
        return self.components.get(dimension, {})


def project(results: BenchmarkResults) -> ColumnProjection:
    """
    Convert benchmark results into one column per measured dimension.

    Standard dimensions always have one entry per run. A component that a run
    did not report is skipped for that run, so its column can be shorter than
    the run count.

    Args:
        results: Results and their execution metrics, in run order

    Returns:
        ColumnProjection for the results

    Raises:
        ProjectionError: If metrics are present but do not match the run count
    """
    if results.metrics and len(results.metrics) != len(results.results):
        raise ProjectionError(
            f"Metrics/results mismatch: {len(results.metrics)} metric rows "
            f"for {len(results.results)} results"
        )

    columns: Dict[str, List[float]] = {
        name: [] for name in STANDARD_DIMENSIONS + METRIC_DIMENSIONS
    }
    for r in results.results:
        columns["qps_total"].append(float(r.qps.total))
        columns["qps_reads"].append(float(r.qps.reads))
        columns["qps_writes"].append(float(r.qps.writes))
        columns["qps_other"].append(float(r.qps.other))
        columns["tps"].append(float(r.tps))
        columns["latency"].append(float(r.latency))
        columns["errors"].append(float(r.errors))
        columns["reconnects"].append(float(r.reconnects))
        columns["time"].append(float(r.time))
        columns["threads"].append(float(r.threads))

    components: Dict[str, Dict[str, List[float]]] = {
        name: {} for name in COMPONENT_DIMENSIONS
    }
    cpu = components["components_cpu_time"]
    mem = components["components_mem_stats_alloc_bytes"]
    for m in results.metrics:
        columns["total_components_cpu_time"].append(float(m.total_components_cpu_time))
        for name, value in m.components_cpu_time.items():
            cpu.setdefault(name, []).append(float(value))

        columns["total_components_mem_stats_alloc_bytes"].append(
            float(m.total_components_mem_stats_alloc_bytes)
        )
        for name, value in m.components_mem_stats_alloc_bytes.items():
            mem.setdefault(name, []).append(float(value))

    return ColumnProjection(
        run_count=len(results.results),
        columns=columns,
        components=components,
    )
