"""Exceptions raised by the macrobench engine."""


class MacrobenchError(Exception):
    """Base class for all macrobench errors."""


class RetrievalError(MacrobenchError):
    """The sample store could not be read or returned a malformed row."""


class MissingMetricsError(RetrievalError):
    """A benchmark run has no recorded execution metrics."""

    def __init__(self, exec_uuid: str):
        super().__init__(f"No execution metrics recorded for exec_uuid={exec_uuid!r}")
        self.exec_uuid = exec_uuid


class ProjectionError(MacrobenchError):
    """Result and metric rows do not line up one to one."""


class GitError(MacrobenchError):
    """The commit hash of a repository could not be resolved."""
