"""
Unit tests for configuration loading
"""

import pytest

from macrobench.config import AnalysisConfig, load_analysis_config, load_yaml_config


def test_defaults():
    config = load_analysis_config(None)
    assert config == AnalysisConfig()
    assert config.planner == "V3"
    assert config.alpha == 0.05
    assert config.benchmark_types == ["oltp", "tpcc"]
    assert config.last_days is None


def test_load_from_yaml(tmp_path):
    path = tmp_path / "macrobench.yaml"
    path.write_text(
        "db_path: /tmp/bench.db\n"
        "planner: Gen4\n"
        "alpha: 0.01\n"
        "last_days: 30\n"
        "benchmark_types: [oltp]\n"
    )
    config = load_analysis_config(str(path))
    assert config.db_path == "/tmp/bench.db"
    assert config.planner == "Gen4"
    assert config.alpha == 0.01
    assert config.last_days == 30
    assert config.benchmark_types == ["oltp"]


def test_comma_separated_types(tmp_path):
    path = tmp_path / "macrobench.yaml"
    path.write_text("benchmark_types: oltp, tpcc\n")
    assert load_analysis_config(str(path)).benchmark_types == ["oltp", "tpcc"]


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_yaml_config(str(path)) == {}
    assert load_analysis_config(str(path)) == AnalysisConfig()


@pytest.mark.parametrize("content", [
    "unknown_key: 1\n",
    "alpha: 1.5\n",
    "alpha: 0\n",
    "last_days: -3\n",
    "benchmark_types: []\n",
    "- just\n- a list\n",
    "db_path: [unclosed\n",
    "benchmark_types: 5\n",
    "benchmark_types: [1, 2]\n",
    "alpha: [0.1]\n",
    "last_days: soon\n",
])
def test_invalid_config(tmp_path, content):
    path = tmp_path / "bad.yaml"
    path.write_text(content)
    with pytest.raises(ValueError):
        load_analysis_config(str(path))


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        load_analysis_config("/nonexistent/macrobench.yaml")
