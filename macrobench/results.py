"""Data classes for macro benchmark results."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class QPS:
    """Query throughput breakdown of a single run."""

    total: float = 0.0
    reads: float = 0.0
    writes: float = 0.0
    other: float = 0.0


@dataclass(frozen=True)
class Result:
    """Raw outcome of one macro benchmark execution (OLTP or TPCC)."""

    qps: QPS = field(default_factory=QPS)
    tps: float = 0.0
    latency: float = 0.0
    errors: float = 0.0
    reconnects: float = 0.0
    time: int = 0
    threads: float = 0.0
    queries: int = 0


@dataclass(frozen=True)
class ExecutionMetrics:
    """Resource usage recorded for one execution.

    Component maps are keyed by component name (e.g. ``vtgate``,
    ``vttablet``); the set of names depends on what the execution reported.
    """

    total_components_cpu_time: float = 0.0
    components_cpu_time: Dict[str, float] = field(default_factory=dict)
    total_components_mem_stats_alloc_bytes: float = 0.0
    components_mem_stats_alloc_bytes: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class BenchmarkID:
    """Identifies a macro benchmark: database ID, trigger source, creation date."""

    id: int
    source: str
    created_at: Optional[datetime] = None
    exec_uuid: str = ""


@dataclass(frozen=True)
class Details:
    """A complete macro benchmark run.

    ``metrics`` is None when the store leaves the metrics join to
    :meth:`macrobench.store.SampleStore.fetch_metrics`.
    """

    benchmark_id: BenchmarkID
    git_ref: str
    result: Result
    metrics: Optional[ExecutionMetrics] = None


@dataclass(frozen=True)
class BenchmarkResults:
    """Results of one (benchmark type, git ref, planner) combination, in run order."""

    results: Tuple[Result, ...] = ()
    metrics: Tuple[ExecutionMetrics, ...] = ()

    def __len__(self) -> int:
        return len(self.results)

    def as_columns(self):
        """Return the :class:`~macrobench.projection.ColumnProjection` of these results."""
        from .projection import project

        return project(self)
