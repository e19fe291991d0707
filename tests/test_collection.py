# tests/test_collection.py
"""
Tests for TupleCollection: construction, projection, blocking and ordering.
"""

import polars as pl
import pytest

from klean.datamodel import Column, TupleCollection
from klean.errors import InvalidArgumentError, NotFoundError

ZIP = Column("hospital", "zipcode")
CITY = Column("hospital", "city")


def _hospital(rows=None) -> TupleCollection:
    rows = rows or [
        ("10001", "NYC"),
        ("10002", "Boston"),
        ("10001", "New York"),
        (None, "Nowhere"),
        ("10002", "Boston"),
        (None, "Elsewhere"),
    ]
    return TupleCollection.from_rows("hospital", ["zipcode", "city"], rows)


class TestConstruction:
    def test_ids_default_to_row_order(self):
        coll = _hospital()
        assert [t.tuple_id for t in coll] == [1, 2, 3, 4, 5, 6]
        assert coll.size() == len(coll) == 6
        assert coll.get(2).get("city") == "New York"

    def test_ids_from_tid_column(self):
        coll = TupleCollection.from_rows("t", ["tid", "a"], [(10, "x"), (20, "y")])
        assert [t.tuple_id for t in coll] == [10, 20]

    def test_polars_round_trip(self):
        df = pl.DataFrame({"tid": [1, 2], "city": ["NYC", None]})
        coll = TupleCollection.from_polars(df, "hospital")
        assert coll.table_name == "hospital"
        assert coll[1].get("city") is None
        assert coll.to_polars().equals(df)

    def test_foreign_tuple_rejected(self):
        other = TupleCollection.from_rows("clinic", ["city"], [("NYC",)])
        with pytest.raises(InvalidArgumentError):
            TupleCollection(_hospital().schema, list(other))


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


class TestProject:
    def test_scope_and_values(self):
        projected = _hospital().project(["city"])
        assert projected.scope == (CITY,)
        first = projected[0]
        assert {c.column for c in first.get_cells()} == {CITY}
        assert first.get("zipcode") == "10001"

    def test_union(self):
        projected = _hospital().project([ZIP]).project([CITY])
        assert projected.scope == (ZIP, CITY)
        assert {c.column for c in projected[0].get_cells()} == {ZIP, CITY}

    def test_unknown_column(self):
        with pytest.raises(NotFoundError):
            _hospital().project(["phone"])

    def test_scope_survives_grouping_and_ordering(self):
        projected = _hospital().project(["city"])
        for group in projected.group_on(["zipcode"]):
            assert group.scope == (CITY,)
            assert group.order_by(["city"]).scope == (CITY,)


# ---------------------------------------------------------------------------
# Blocking
# ---------------------------------------------------------------------------


class TestGroupOn:
    def test_homogeneous_and_separated(self):
        coll = _hospital()
        groups = coll.group_on(["zipcode"])
        keys = []
        for group in groups:
            values = {t.get("zipcode") for t in group}
            assert len(values) == 1
            keys.append(values.pop())
        assert len(keys) == len(set(keys))
        assert sum(len(g) for g in groups) == len(coll)

    def test_null_equals_null(self):
        groups = _hospital().group_on(["zipcode"])
        null_group = [g for g in groups if g[0].get("zipcode") is None][0]
        assert [t.tuple_id for t in null_group] == [4, 6]

    def test_nan_equals_nan(self):
        nan = float("nan")
        coll = TupleCollection.from_rows(
            "readings", ["level", "site"], [(nan, "a"), (1.5, "b"), (nan, "c"), (None, "d")]
        )
        groups = coll.group_on(["level"])
        assert [[t.tuple_id for t in g] for g in groups] == [[1, 3], [2], [4]]

    def test_dotted_attribute_name(self):
        coll = TupleCollection.from_rows(
            "clinics", ["addr.city", "zip"], [("NYC", "1"), ("Boston", "2"), ("NYC", "3")]
        )
        groups = coll.group_on(["addr.city"])
        assert [[t.tuple_id for t in g] for g in groups] == [[1, 3], [2]]
        assert coll.project(["addr.city"]).scope == (Column("clinics", "addr.city"),)

    def test_first_seen_order_and_member_order(self):
        groups = _hospital().group_on(["zipcode"])
        assert [[t.tuple_id for t in g] for g in groups] == [[1, 3], [2, 5], [4, 6]]

    def test_multi_column_key(self):
        groups = _hospital().group_on(["zipcode", "city"])
        assert [len(g) for g in groups] == [1, 2, 1, 1, 1]

    def test_no_columns_is_one_group(self):
        groups = _hospital().group_on([])
        assert len(groups) == 1
        assert len(groups[0]) == 6


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


class TestOrderBy:
    def test_ascending_nulls_last(self):
        ordered = _hospital().order_by(["zipcode"])
        assert [t.get("zipcode") for t in ordered] == ["10001", "10001", "10002", "10002", None, None]

    def test_nan_after_numbers_before_nulls(self):
        nan = float("nan")
        coll = TupleCollection.from_rows("readings", ["level"], [(None,), (nan,), (2.0,), (1.0,)])
        assert [t.tuple_id for t in coll.order_by(["level"])] == [4, 3, 2, 1]

    def test_stable(self):
        ordered = _hospital().order_by(["zipcode"])
        assert [t.tuple_id for t in ordered] == [1, 3, 2, 5, 4, 6]

    def test_priority_order(self):
        ordered = _hospital().order_by(["zipcode", "city"])
        assert [t.get("city") for t in ordered][:2] == ["NYC", "New York"]

    def test_does_not_mutate_input(self):
        coll = _hospital()
        coll.order_by(["city"])
        assert [t.tuple_id for t in coll] == [1, 2, 3, 4, 5, 6]
