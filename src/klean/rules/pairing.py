# src/klean/rules/pairing.py
"""
Pairing engine: turns one sorted group into the tuple pairs worth comparing.

Contiguous-run expansion
------------------------
The group is sorted on the comparison columns, so equal tuples sit in runs.
Starting at ``pos1``, scan ``pos2`` forward until the comparison values first
differ from those at ``pos1``. Every tuple of the closed run ``[pos1, pos2)``
is then paired with every tuple of ``[pos2, n)``, and scanning resumes at
``pos2``. A run that reaches the end of the group without a difference emits
nothing.

Cost follows the number of run boundaries, not n²: n equal tuples followed by
one different tuple cost n pairs. Only input where nearly every neighbour
differs is quadratic, which is why rules block before they pair.
"""

from __future__ import annotations

from itertools import combinations
from typing import Iterator, Sequence

from klean.datamodel.collection import TupleCollection, value_key
from klean.datamodel.column import Column
from klean.datamodel.tuples import Tuple, TuplePair


def values_differ(left: Tuple, right: Tuple, columns: Sequence[Column]) -> bool:
    """
    True if any column differs. Null equals null and NaN equals NaN; null
    never equals a value.
    """
    for column in columns:
        lvalue = value_key(left.get(column))
        rvalue = value_key(right.get(column))
        if lvalue is None and rvalue is None:
            continue
        if lvalue is None or rvalue is None or lvalue != rvalue:
            return True
    return False


def contiguous_run_pairs(
    group: TupleCollection, columns: Sequence[Column]
) -> Iterator[TuplePair]:
    """
    Yield the candidate pairs of a group already ordered by ``columns``.
    """
    n = len(group)
    pos1 = 0
    while pos1 < n:
        pos2 = pos1 + 1
        while pos2 < n and not values_differ(group[pos1], group[pos2], columns):
            pos2 += 1

        if pos2 < n:
            for i in range(pos1, pos2):
                left = group[i]
                for j in range(pos2, n):
                    yield TuplePair(left, group[j])

        pos1 = pos2


def all_pairs(group: TupleCollection) -> Iterator[TuplePair]:
    """Every unordered pair once, in positional order. Quadratic."""
    for left, right in combinations(group, 2):
        yield TuplePair(left, right)
