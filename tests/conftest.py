"""Shared fixtures for macrobench tests."""

from typing import Dict, Optional

import pytest

from macrobench.db import BenchmarkDatabase
from macrobench.results import QPS, ExecutionMetrics, Result


def make_result(tps: float = 100.0, **overrides) -> Result:
    """Build a Result with plausible defaults."""
    values = dict(
        qps=QPS(total=tps * 20, reads=tps * 14, writes=tps * 4, other=tps * 2),
        tps=tps,
        latency=10.0,
        errors=0.0,
        reconnects=0.0,
        time=30,
        threads=16.0,
        queries=int(tps * 600),
    )
    values.update(overrides)
    return Result(**values)


def make_metrics(
    cpu: Optional[Dict[str, float]] = None,
    mem: Optional[Dict[str, float]] = None,
) -> ExecutionMetrics:
    """Build ExecutionMetrics whose totals are the sums of the components."""
    cpu = {"vtgate": 10.0, "vttablet": 20.0} if cpu is None else cpu
    mem = {"vtgate": 1000.0, "vttablet": 3000.0} if mem is None else mem
    return ExecutionMetrics(
        total_components_cpu_time=sum(cpu.values()),
        components_cpu_time=cpu,
        total_components_mem_stats_alloc_bytes=sum(mem.values()),
        components_mem_stats_alloc_bytes=mem,
    )


@pytest.fixture
def db(tmp_path):
    database = BenchmarkDatabase(str(tmp_path / "macrobench.db"))
    yield database
    database.close()
