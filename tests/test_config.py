# tests/test_config.py
"""
Tests for clean plans and executor settings.
"""

import json

import pytest
from pydantic import ValidationError

from klean.config import CleanPlan, CleanPlanLoader, ExecutorConfig, SourceSpec
from klean.config.settings import DEFAULT_BATCH_SIZE
from klean.errors import ConfigError


# ---------------------------------------------------------------------------
# Clean plans
# ---------------------------------------------------------------------------


class TestCleanPlanLoader:
    def test_yaml(self, write_plan):
        path = write_plan(
            source={"uri": "duckdb:///tmp/h.db", "csv": "hospital.csv"},
            rules=[{"name": "fd", "params": {"fd": "zipcode | city"}}],
        )
        plan = CleanPlanLoader.from_path(path)
        assert isinstance(plan, CleanPlan)
        assert plan.source.uri == "duckdb:///tmp/h.db"
        assert plan.source.overwrite is True
        assert plan.rules[0].name == "fd"
        assert plan.rules[0].params == {"fd": "zipcode | city"}
        assert plan.rules[0].id is None

    def test_json(self, tmp_path):
        path = tmp_path / "plan.json"
        path.write_text(json.dumps({
            "source": {"table": "hospital"},
            "rules": [{"id": "zc", "name": "fd", "params": {"lhs": ["zipcode"], "rhs": ["city"]}}],
        }))
        plan = CleanPlanLoader.from_path(path)
        assert plan.source.uri == "memory://"
        assert plan.rules[0].id == "zc"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CleanPlanLoader.from_path(tmp_path / "nope.yml")

    def test_unparseable(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("source: [unclosed\n")
        with pytest.raises(ConfigError, match="Cannot parse"):
            CleanPlanLoader.from_path(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            CleanPlanLoader.from_path(path)

    def test_no_rules(self, write_plan):
        path = write_plan(source={"table": "hospital"}, rules=[])
        with pytest.raises(ConfigError, match="Invalid clean plan"):
            CleanPlanLoader.from_path(path)

    def test_source_needs_table_or_csv(self):
        with pytest.raises(ValidationError):
            SourceSpec(uri="memory://")
        with pytest.raises(ConfigError):
            CleanPlanLoader.from_dict({"source": {}, "rules": [{"name": "fd"}]})


# ---------------------------------------------------------------------------
# Executor settings
# ---------------------------------------------------------------------------


class TestExecutorConfig:
    def _clear_env(self, monkeypatch):
        for var in ("KLEAN_WORKERS", "KLEAN_VERBOSE", "KLEAN_BATCH_SIZE"):
            monkeypatch.delenv(var, raising=False)

    def test_defaults(self):
        config = ExecutorConfig()
        assert config.workers == 1
        assert config.verbose is False
        assert config.batch_size == DEFAULT_BATCH_SIZE
        assert config.persist_fixes is True

    def test_validation(self):
        with pytest.raises(ValidationError):
            ExecutorConfig(workers=0)
        with pytest.raises(ValidationError):
            ExecutorConfig(batch_size=0)

    def test_frozen(self):
        config = ExecutorConfig()
        with pytest.raises(ValidationError):
            config.workers = 8

    def test_from_env(self, monkeypatch):
        self._clear_env(monkeypatch)
        monkeypatch.setenv("KLEAN_WORKERS", "4")
        monkeypatch.setenv("KLEAN_VERBOSE", "yes")
        monkeypatch.setenv("KLEAN_BATCH_SIZE", "50")
        config = ExecutorConfig.from_env()
        assert (config.workers, config.verbose, config.batch_size) == (4, True, 50)

    def test_overrides_win(self, monkeypatch):
        self._clear_env(monkeypatch)
        monkeypatch.setenv("KLEAN_WORKERS", "4")
        assert ExecutorConfig.from_env(workers=2).workers == 2
        assert ExecutorConfig.from_env(workers=None).workers == 4

    @pytest.mark.parametrize("raw", ["many", "0"])
    def test_bad_env(self, monkeypatch, raw):
        self._clear_env(monkeypatch)
        monkeypatch.setenv("KLEAN_WORKERS", raw)
        with pytest.raises(ConfigError):
            ExecutorConfig.from_env()

    def test_instances_are_independent(self):
        a = ExecutorConfig(workers=2)
        b = ExecutorConfig(workers=8)
        assert (a.workers, b.workers) == (2, 8)
