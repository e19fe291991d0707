from pathlib import Path

import polars as pl
import pytest

from klean.rules.builtin.fd import FunctionalDependencyRule
from klean.store.duckdb import DuckDBStore
from klean.store.memory import MemoryStore

# ---------- sample data ----------
# zipcode -> city is violated twice in 35233 (Bham vs Birmingham x2)
# and once in 10001; 10002 is a singleton group.
HOSPITAL = {
    "zipcode": ["10001", "10001", "10002", "35233", "35233", "35233"],
    "city": ["NYC", "New York", "Boston", "Birmingham", "Birmingham", "Bham"],
    "state": ["NY", "NY", "MA", "AL", "AL", "AL"],
}
HOSPITAL_TABLE = "hospital"


@pytest.fixture()
def hospital_frame() -> pl.DataFrame:
    return pl.DataFrame(HOSPITAL)


@pytest.fixture()
def memory_store(hospital_frame) -> MemoryStore:
    store = MemoryStore()
    store.add_table(HOSPITAL_TABLE, hospital_frame)
    return store


@pytest.fixture()
def duckdb_store(tmp_path, hospital_frame):
    store = DuckDBStore(f"duckdb://{tmp_path / 'klean.duckdb'}")
    frame = hospital_frame.with_row_index("tid", offset=1).with_columns(pl.col("tid").cast(pl.Int64))
    store.create_table(HOSPITAL_TABLE, frame)
    store.insert_batch(HOSPITAL_TABLE, frame)
    yield store
    store.close()


@pytest.fixture()
def make_fd():
    """
    Build an initialized FD rule.
    Usage:
        rule = make_fd("zipcode | city")
    """
    def _make(fd: str, table: str = HOSPITAL_TABLE, rule_id: str = "fd0", cls=FunctionalDependencyRule):
        rule = cls("fd", {"fd": fd})
        rule.initialize(rule_id, [table])
        return rule
    return _make


@pytest.fixture()
def hospital_csv(tmp_path) -> Path:
    out = tmp_path / "hospital.csv"
    pl.DataFrame(HOSPITAL).write_csv(out)
    return out


@pytest.fixture()
def write_plan(tmp_path):
    """
    Write a minimal YAML clean plan on the fly and return its path.
    Usage:
        path = write_plan(source={"csv": ...}, rules=[{"name": "fd", "params": {...}}])
    """
    import yaml

    def _writer(source: dict, rules: list, name: str = "plan.yml") -> str:
        out = tmp_path / name
        out.write_text(yaml.safe_dump({"source": source, "rules": rules}))
        return str(out)
    return _writer
