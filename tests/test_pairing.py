# tests/test_pairing.py
"""
Tests for the pairing engine (contiguous-run expansion).
"""

from itertools import combinations

import numpy as np
import pytest

from klean.datamodel import Column, TupleCollection
from klean.rules.pairing import all_pairs, contiguous_run_pairs, values_differ

CITY = Column("t", "city")


def _group(values) -> TupleCollection:
    return TupleCollection.from_rows("t", ["city"], [(v,) for v in values])


def _ids(pairs):
    return [(p.left.tuple_id, p.right.tuple_id) for p in pairs]


class TestValuesDiffer:
    @pytest.mark.parametrize(
        "left, right, expected",
        [
            ("a", "a", False),
            ("a", "b", True),
            (None, None, False),
            (None, "a", True),
            ("a", None, True),
            (float("nan"), float("nan"), False),
            (float("nan"), 1.0, True),
            (None, float("nan"), True),
        ],
    )
    def test_null_aware(self, left, right, expected):
        group = _group([left, right])
        assert values_differ(group[0], group[1], [CITY]) is expected

    def test_any_column(self):
        coll = TupleCollection.from_rows("t", ["a", "b"], [(1, 2), (1, 3)])
        a, b = Column("t", "a"), Column("t", "b")
        assert not values_differ(coll[0], coll[1], [a])
        assert values_differ(coll[0], coll[1], [a, b])


class TestContiguousRunPairs:
    def test_empty_and_singleton(self):
        assert list(contiguous_run_pairs(_group([]), [CITY])) == []
        assert list(contiguous_run_pairs(_group(["a"]), [CITY])) == []

    def test_all_equal_yields_nothing(self):
        assert list(contiguous_run_pairs(_group(["a"] * 5), [CITY])) == []

    def test_run_then_boundary(self):
        # run [1,2] is paired with everything after the boundary
        pairs = _ids(contiguous_run_pairs(_group(["a", "a", "b"]), [CITY]))
        assert pairs == [(1, 3), (2, 3)]

    def test_all_distinct(self):
        pairs = _ids(contiguous_run_pairs(_group(["a", "b", "c"]), [CITY]))
        assert pairs == [(1, 2), (1, 3), (2, 3)]

    def test_trailing_nulls_form_a_run(self):
        pairs = _ids(contiguous_run_pairs(_group(["a", None, None]), [CITY]))
        assert pairs == [(1, 2), (1, 3)]

    def test_is_lazy(self):
        gen = contiguous_run_pairs(_group(["a", "b"]), [CITY])
        assert iter(gen) is gen

    def test_adjacent_boundaries_are_covered(self):
        group = _group(["a", "a", "b", "c", "c", "d"])
        pairs = set(_ids(contiguous_run_pairs(group, [CITY])))
        for i in range(len(group) - 1):
            left, right = group[i], group[i + 1]
            if values_differ(left, right, [CITY]):
                assert (left.tuple_id, right.tuple_id) in pairs

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_sorted_group_pairs_exactly_the_differing_ones(self, seed):
        """On a sorted group every differing pair is emitted once, no equal pair ever."""
        rng = np.random.default_rng(seed)
        values = rng.choice(np.array(["a", "b", "c", None], dtype=object), size=25).tolist()
        group = _group(values).order_by([CITY])
        emitted = _ids(contiguous_run_pairs(group, [CITY]))
        expected = [
            (left.tuple_id, right.tuple_id)
            for left, right in combinations(group, 2)
            if values_differ(left, right, [CITY])
        ]
        assert len(emitted) == len(set(emitted))
        assert sorted(emitted) == sorted(expected)


class TestAllPairs:
    def test_every_pair_once(self):
        pairs = _ids(all_pairs(_group(["a", "a", "b"])))
        assert pairs == [(1, 2), (1, 3), (2, 3)]
