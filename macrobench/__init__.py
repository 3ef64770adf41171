# Macro benchmark analysis package
from .analysis import (
    StatisticalCompareResults,
    StatisticalSingleResult,
    compare_revisions,
    summarize_revision,
)
from .db import BenchmarkDatabase
from .errors import (
    GitError,
    MacrobenchError,
    MissingMetricsError,
    ProjectionError,
    RetrievalError,
)
from .stats import ComparisonResult, StatisticalSummary, compare, summarize
from .store import SampleStore

__version__ = "0.1.0"

__all__ = [
    'BenchmarkDatabase',
    'ComparisonResult',
    'GitError',
    'MacrobenchError',
    'MissingMetricsError',
    'ProjectionError',
    'RetrievalError',
    'SampleStore',
    'StatisticalCompareResults',
    'StatisticalSingleResult',
    'StatisticalSummary',
    'compare',
    'compare_revisions',
    'summarize',
    'summarize_revision',
]
