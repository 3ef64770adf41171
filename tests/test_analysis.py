"""
Unit tests for comparing and summarizing git refs
"""

import json

import pytest

from macrobench.analysis import (
    StatisticalCompareResults,
    StatisticalSingleResult,
    compare_revisions,
    get_benchmark_results,
    summarize_revision,
)
from macrobench.errors import MissingMetricsError, RetrievalError
from macrobench.projection import METRIC_DIMENSIONS, STANDARD_DIMENSIONS
from macrobench.stats import NOT_ENOUGH_SAMPLES
from macrobench.store import SampleStore

from .conftest import make_metrics, make_result


class FailingStore(SampleStore):
    """Store that fails for one benchmark type."""

    def __init__(self, inner, failing_type):
        self.inner = inner
        self.failing_type = failing_type

    def fetch_runs(self, benchmark_type, git_ref, planner, last_days=None):
        if benchmark_type == self.failing_type:
            raise RetrievalError("store unreachable")
        return self.inner.fetch_runs(benchmark_type, git_ref, planner, last_days)

    def fetch_metrics(self, exec_uuid):
        return self.inner.fetch_metrics(exec_uuid)


@pytest.fixture
def populated_db(db):
    for tps in (100.0, 110.0, 90.0):
        db.save_run("oltp", "old", "V3", make_result(tps), make_metrics(cpu={"vtgate": 10.0}))
    for tps in (150.0, 140.0):
        db.save_run(
            "oltp", "new", "V3", make_result(tps),
            make_metrics(cpu={"vtgate": 12.0, "vttablet": 30.0}),
        )
    return db


def test_compare_revisions_tps(populated_db):
    comparisons = compare_revisions(populated_db, {"oltp"}, "old", "new", "V3")
    tps = comparisons["oltp"].dimensions["tps"]
    assert tps.baseline.mean == pytest.approx(100.0)
    assert tps.candidate.mean == pytest.approx(145.0)
    assert tps.relative_change == pytest.approx(0.45)


def test_compare_revisions_covers_every_dimension(populated_db):
    bundle = compare_revisions(populated_db, ["oltp"], "old", "new", "V3")["oltp"]
    assert set(bundle.dimensions) == set(STANDARD_DIMENSIONS + METRIC_DIMENSIONS)


def test_component_on_one_side_gets_one_sided_comparison(populated_db):
    bundle = compare_revisions(populated_db, ["oltp"], "old", "new", "V3")["oltp"]
    cpu = bundle.components["components_cpu_time"]
    assert set(cpu) == {"vtgate", "vttablet"}

    vttablet = cpu["vttablet"]
    assert vttablet.baseline.insufficient_data
    assert vttablet.candidate.count == 2
    assert vttablet.candidate.mean == pytest.approx(30.0)
    assert vttablet.relative_change is None
    assert vttablet.significance == NOT_ENOUGH_SAMPLES

    assert cpu["vtgate"].relative_change == pytest.approx(0.2)


def test_compare_revisions_without_runs_is_empty(populated_db):
    comparisons = compare_revisions(populated_db, ["tpcc", "oltp"], "old", "new", "V3")
    assert list(comparisons) == ["oltp", "tpcc"]
    assert comparisons["tpcc"].is_empty
    assert not comparisons["oltp"].is_empty


def test_compare_revisions_with_one_empty_side(populated_db):
    bundle = compare_revisions(populated_db, ["oltp"], "old", "missing", "V3")["oltp"]
    tps = bundle.dimensions["tps"]
    assert tps.baseline.count == 3
    assert tps.candidate.insufficient_data
    assert tps.relative_change is None


def test_compare_revisions_fails_fast(populated_db):
    store = FailingStore(populated_db, "tpcc")
    with pytest.raises(RetrievalError):
        compare_revisions(store, ["oltp", "tpcc"], "old", "new", "V3")


def test_summarize_revision(populated_db):
    summaries = summarize_revision(populated_db, ["oltp"], "old", "V3")
    bundle = summaries["oltp"]
    assert isinstance(bundle, StatisticalSingleResult)
    assert bundle.dimensions["tps"].count == 3
    assert bundle.dimensions["tps"].mean == pytest.approx(100.0)
    assert bundle.components["components_cpu_time"]["vtgate"].count == 3
    assert "vttablet" not in bundle.components["components_cpu_time"]


def test_summarize_revision_without_runs_is_empty(db):
    summaries = summarize_revision(db, ["oltp"], "nothing", "V3")
    assert summaries["oltp"].is_empty
    assert summaries["oltp"].to_dict() == {}


def test_summarize_revision_fails_fast(populated_db):
    store = FailingStore(populated_db, "oltp")
    with pytest.raises(RetrievalError):
        summarize_revision(store, ["oltp", "tpcc"], "old", "V3")


def test_missing_metrics_aborts_request(db):
    db.save_run("oltp", "old", "V3", make_result(), metrics=None)
    with pytest.raises(MissingMetricsError):
        get_benchmark_results(db, "oltp", "old", "V3")


def test_bundles_serialize_to_json(populated_db):
    comparisons = compare_revisions(populated_db, ["oltp"], "old", "new", "V3")
    payload = json.loads(json.dumps({k: v.to_dict() for k, v in comparisons.items()}))
    assert payload["oltp"]["tps"]["relative_change"] == pytest.approx(0.45)
    assert payload["oltp"]["components_cpu_time"]["vttablet"]["baseline"]["insufficient_data"] is True


def test_empty_bundles():
    assert StatisticalCompareResults().is_empty
    assert StatisticalSingleResult().is_empty
