"""Abstract base class for benchmark sample stores."""

from abc import ABC, abstractmethod
from typing import List, Optional

from .results import Details, ExecutionMetrics


class SampleStore(ABC):
    """
    Read access to recorded macro benchmark runs.

    Implementations raise :class:`~macrobench.errors.RetrievalError` when the
    underlying storage fails. Timeouts and retries are their responsibility.
    """

    @abstractmethod
    def fetch_runs(
        self,
        benchmark_type: str,
        git_ref: str,
        planner: str,
        last_days: Optional[int] = None,
    ) -> List[Details]:
        """
        Fetch the runs of a benchmark type for a git ref and planner version.

        Args:
            benchmark_type: Benchmark type (e.g., 'oltp', 'tpcc')
            git_ref: Commit the benchmarks ran against
            planner: Planner version the benchmarks ran with
            last_days: Only return runs created in the last N days

        Returns:
            Runs in run order; an empty list when nothing matches
        """
        pass

    @abstractmethod
    def fetch_metrics(self, exec_uuid: str) -> ExecutionMetrics:
        """
        Fetch the execution metrics recorded for an execution.

        Raises:
            MissingMetricsError: If no metrics exist for exec_uuid
        """
        pass
