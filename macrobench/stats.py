"""Statistical summaries and two-sample comparisons for benchmark columns."""

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, Optional, Sequence

import numpy as np
from scipy import stats as scipy_stats

logger = logging.getLogger(__name__)

# Significance level used when the caller does not provide one
DEFAULT_ALPHA = 0.05

# Confidence level of the interval reported around each mean
CONFIDENCE_LEVEL = 0.95

SIGNIFICANT = "significant"
INSIGNIFICANT = "insignificant"
NOT_ENOUGH_SAMPLES = "not_enough_samples"


@dataclass(frozen=True)
class StatisticalSummary:
    """Descriptive statistics of one column."""

    count: int = 0
    mean: float = 0.0
    stddev: float = 0.0
    median: float = 0.0
    minimum: float = 0.0
    maximum: float = 0.0
    ci_low: Optional[float] = None
    ci_high: Optional[float] = None

    @property
    def insufficient_data(self) -> bool:
        """True when the column had no values."""
        return self.count == 0

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["insufficient_data"] = self.insufficient_data
        return d


@dataclass(frozen=True)
class ComparisonResult:
    """Baseline vs candidate comparison of one dimension."""

    baseline: StatisticalSummary = field(default_factory=StatisticalSummary)
    candidate: StatisticalSummary = field(default_factory=StatisticalSummary)
    delta: Optional[float] = None
    relative_change: Optional[float] = None
    change_undefined: bool = False
    p_value: Optional[float] = None
    significance: str = NOT_ENOUGH_SAMPLES
    alpha: float = DEFAULT_ALPHA

    @property
    def significant(self) -> bool:
        return self.significance == SIGNIFICANT

    @property
    def relative_change_percent(self) -> Optional[float]:
        if self.relative_change is None:
            return None
        return self.relative_change * 100.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "baseline": self.baseline.to_dict(),
            "candidate": self.candidate.to_dict(),
            "delta": self.delta,
            "relative_change": self.relative_change,
            "change_undefined": self.change_undefined,
            "p_value": self.p_value,
            "significance": self.significance,
            "alpha": self.alpha,
        }


def _welford(values: Sequence[float]):
    """Return (count, mean, M2) using Welford's online algorithm."""
    count = 0
    mean = 0.0
    m2 = 0.0
    for x in values:
        count += 1
        delta = x - mean
        mean += delta / count
        m2 += delta * (x - mean)
    return count, mean, m2


def summarize(values: Sequence[float]) -> StatisticalSummary:
    """
    Summarize a column of measurements.

    An empty column yields a zero-valued summary whose ``insufficient_data``
    flag is set; this is not an error.

    Args:
        values: Measurements in run order

    Returns:
        StatisticalSummary of the values
    """
    values = [float(v) for v in values]
    count, mean, m2 = _welford(values)
    if count == 0:
        return StatisticalSummary()

    arr = np.asarray(values, dtype=float)
    stddev = 0.0
    ci_low = ci_high = None
    if count >= 2:
        stddev = math.sqrt(m2 / (count - 1))
        if stddev > 0:
            standard_error = stddev / math.sqrt(count)
            low, high = scipy_stats.t.interval(
                CONFIDENCE_LEVEL, count - 1, loc=mean, scale=standard_error
            )
            ci_low, ci_high = float(low), float(high)
        else:
            ci_low = ci_high = mean

    return StatisticalSummary(
        count=count,
        mean=mean,
        stddev=stddev,
        median=float(np.median(arr)),
        minimum=float(arr.min()),
        maximum=float(arr.max()),
        ci_low=ci_low,
        ci_high=ci_high,
    )


def _mann_whitney_p_value(baseline: Sequence[float], candidate: Sequence[float]) -> float:
    """Two-sided Mann-Whitney U p-value; 1.0 when every value is identical."""
    combined = np.concatenate([np.asarray(baseline, dtype=float), np.asarray(candidate, dtype=float)])
    if np.ptp(combined) == 0:
        return 1.0
    _, p_value = scipy_stats.mannwhitneyu(baseline, candidate, alternative="two-sided")
    return float(p_value)


def compare(
    baseline: Iterable[float],
    candidate: Iterable[float],
    alpha: float = DEFAULT_ALPHA,
) -> ComparisonResult:
    """
    Compare a baseline column against a candidate column.

    The relative change is ``(candidate.mean - baseline.mean) / baseline.mean``.
    It is None when either side has no data, and it is flagged as undefined
    when the baseline mean is zero. Significance uses a two-sided
    Mann-Whitney U test and needs at least two samples per side.

    Args:
        baseline: Measurements of the baseline revision
        candidate: Measurements of the candidate revision
        alpha: Significance level

    Returns:
        ComparisonResult for the two columns
    """
    baseline = [float(v) for v in baseline]
    candidate = [float(v) for v in candidate]
    old = summarize(baseline)
    new = summarize(candidate)

    delta = None
    relative_change = None
    change_undefined = False
    if not old.insufficient_data and not new.insufficient_data:
        delta = new.mean - old.mean
        if old.mean == 0:
            change_undefined = True
        else:
            relative_change = delta / old.mean

    p_value = None
    significance = NOT_ENOUGH_SAMPLES
    if old.count >= 2 and new.count >= 2:
        p_value = _mann_whitney_p_value(baseline, candidate)
        significance = SIGNIFICANT if p_value < alpha else INSIGNIFICANT
    else:
        logger.debug(
            "Skipping significance test: %d baseline vs %d candidate samples",
            old.count,
            new.count,
        )

    return ComparisonResult(
        baseline=old,
        candidate=new,
        delta=delta,
        relative_change=relative_change,
        change_undefined=change_undefined,
        p_value=p_value,
        significance=significance,
        alpha=alpha,
    )
