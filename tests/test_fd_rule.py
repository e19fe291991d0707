# tests/test_fd_rule.py
"""
Tests for the functional dependency rule, the rule registry and RuleFactory.
"""

import pytest

from klean.config.models import RuleSpec
from klean.datamodel import Cell, Column, TupleCollection, TuplePair, Violation
from klean.errors import InvalidArgumentError, UnknownRuleError
from klean.rules.builtin.fd import FunctionalDependencyRule, parse_fd
from klean.rules.factory import RuleFactory
from klean.rules.registry import get_rule, register_default_rules, registered_rules

ZIP = Column("hospital", "zipcode")
CITY = Column("hospital", "city")
STATE = Column("hospital", "state")


def _rows(*rows) -> TupleCollection:
    return TupleCollection.from_rows("hospital", ["tid", "zipcode", "city", "state"], rows)


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


class TestParams:
    def test_parse_fd(self):
        assert parse_fd("zipcode, state | city") == (["zipcode", "state"], ["city"])

    @pytest.mark.parametrize("expr", ["zipcode city", "a | b | c", " | city", "zipcode | "])
    def test_parse_fd_malformed(self, expr):
        with pytest.raises(InvalidArgumentError):
            parse_fd(expr)

    def test_lhs_rhs_params(self):
        rule = FunctionalDependencyRule("fd", {"lhs": ["zipcode"], "rhs": "city"})
        rule.initialize("fd0", ["hospital"])
        assert rule.lhs == [ZIP]
        assert rule.rhs == [CITY]

    def test_missing_params(self):
        with pytest.raises(InvalidArgumentError, match="requires parameter 'lhs'"):
            FunctionalDependencyRule("fd", {})

    def test_wrong_param_type(self):
        with pytest.raises(InvalidArgumentError, match="must be list or str"):
            FunctionalDependencyRule("fd", {"lhs": 5, "rhs": "city"})

    def test_single_table_only(self):
        rule = FunctionalDependencyRule("fd", {"fd": "hospital.zipcode | clinic.city"})
        with pytest.raises(InvalidArgumentError, match="one table"):
            rule.initialize("fd0", ["hospital", "clinic"])

    def test_dotted_attribute_names(self):
        rule = FunctionalDependencyRule("fd", {"lhs": ["zip"], "rhs": ["addr.city"]})
        rule.initialize("fd0", ["h"])
        assert rule.lhs == [Column("h", "zip")]
        assert rule.rhs == [Column("h", "addr.city")]

    def test_qualified_names_of_target_table(self):
        rule = FunctionalDependencyRule("fd", {"fd": "hospital.zipcode | hospital.city"})
        rule.initialize("fd0", ["hospital"])
        assert rule.lhs == [ZIP]
        assert rule.rhs == [CITY]

    def test_initialize_needs_id_and_tables(self):
        rule = FunctionalDependencyRule("fd", {"fd": "zipcode | city"})
        assert not rule.is_initialized
        with pytest.raises(InvalidArgumentError):
            rule.initialize("", ["hospital"])
        with pytest.raises(InvalidArgumentError):
            rule.initialize("fd0", [])


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------


class TestStages:
    def test_scope_and_block(self, make_fd):
        rule = make_fd("zipcode | city")
        coll = _rows((1, "10001", "NYC", "NY"), (2, "10002", "Boston", "MA"), (3, "10001", "New York", "NY"))
        scoped = rule.horizontal_scope([coll])
        assert scoped[0].scope == (ZIP, CITY)
        groups = rule.block(scoped)
        assert [[t.tuple_id for t in g] for g in groups] == [[1, 3], [2]]

    def test_iterator_skips_small_groups(self, make_fd):
        rule = make_fd("zipcode | city")
        assert rule.iterator(_rows((1, "10001", "NYC", "NY"))) == []

    def test_iterator_orders_by_rhs(self, make_fd):
        rule = make_fd("zipcode | city")
        group = _rows(
            (1, "35233", "Birmingham", "AL"),
            (2, "35233", "Birmingham", "AL"),
            (3, "35233", "Bham", "AL"),
        )
        pairs = rule.iterator(group)
        assert [(p.left.tuple_id, p.right.tuple_id) for p in pairs] == [(3, 1), (3, 2)]

    def test_detect_differing_rhs(self, make_fd):
        rule = make_fd("zipcode | city")
        group = rule.horizontal_scope([_rows((1, "10001", "NYC", "NY"), (2, "10001", "New York", "NY"))])[0]
        violations = rule.detect(TuplePair(group[0], group[1]))
        assert len(violations) == 1
        v = violations[0]
        assert v.rule_id == "fd0"
        assert [(c.tuple_id, c.attribute_name) for c in v.cells] == [
            (1, "zipcode"), (1, "city"), (2, "zipcode"), (2, "city"),
        ]

    def test_detect_equal_rhs(self, make_fd):
        rule = make_fd("zipcode | city")
        group = _rows((1, "10001", "NYC", "NY"), (2, "10001", "NYC", "NJ"))
        assert rule.detect(TuplePair(group[0], group[1])) == []

    def test_detect_null_rhs(self, make_fd):
        rule = make_fd("zipcode | city")
        both_null = _rows((1, "10001", None, "NY"), (2, "10001", None, "NY"))
        one_null = _rows((1, "10001", None, "NY"), (2, "10001", "NYC", "NY"))
        assert rule.detect(TuplePair(both_null[0], both_null[1])) == []
        assert len(rule.detect(TuplePair(one_null[0], one_null[1]))) == 1

    def test_detect_orientation_invariant(self, make_fd):
        rule = make_fd("zipcode | city, state")
        group = _rows((1, "10001", "NYC", "NY"), (2, "10001", "NYC", "NJ"))
        pair = TuplePair(group[0], group[1])
        forward = rule.detect(pair)
        backward = rule.detect(pair.swapped())
        assert len(forward) == len(backward) == 1
        assert forward[0].cell_set() == backward[0].cell_set()

    def test_one_violation_per_pair(self, make_fd):
        rule = make_fd("zipcode | city, state")
        group = _rows((1, "10001", "NYC", "NY"), (2, "10001", "New York", "NJ"))
        assert len(rule.detect(TuplePair(group[0], group[1]))) == 1


class TestRepair:
    def test_two_cells_one_fix(self, make_fd):
        rule = make_fd("zipcode | city")
        a, b = Cell(CITY, 1, "NYC"), Cell(CITY, 2, "New York")
        v = Violation("fd0", (Cell(ZIP, 1, "10001"), a, Cell(ZIP, 2, "10001"), b), vid=7)
        fixes = rule.repair(v)
        assert len(fixes) == 1
        assert (fixes[0].vid, fixes[0].left, fixes[0].right) == (7, b, a)

    def test_three_distinct_cells_two_fixes(self, make_fd):
        rule = make_fd("zipcode | city")
        a, b, c = Cell(CITY, 1, "NYC"), Cell(CITY, 2, "New York"), Cell(CITY, 3, "Manhattan")
        fixes = rule.repair(Violation("fd0", (a, b, c), vid=1))
        assert [(f.left, f.right) for f in fixes] == [(b, a), (c, a)]

    def test_lhs_cells_ignored(self, make_fd):
        rule = make_fd("zipcode | city")
        v = Violation("fd0", (Cell(ZIP, 1, "10001"), Cell(ZIP, 2, "10001")), vid=1)
        assert rule.repair(v) == []

    def test_per_column_candidates(self, make_fd):
        rule = make_fd("zipcode | city, state")
        cells = (
            Cell(CITY, 1, "NYC"), Cell(STATE, 1, "NY"),
            Cell(CITY, 2, "New York"), Cell(STATE, 2, "NJ"),
        )
        fixes = rule.repair(Violation("fd0", cells, vid=3))
        assert [(f.left.column, f.right.tuple_id) for f in fixes] == [(CITY, 1), (STATE, 1)]


# ---------------------------------------------------------------------------
# Registry / Factory
# ---------------------------------------------------------------------------


class TestRegistry:
    def test_fd_registered(self):
        register_default_rules()
        assert "fd" in registered_rules()
        assert get_rule("fd") is FunctionalDependencyRule
        assert FunctionalDependencyRule.rule_name == "fd"

    def test_import_path(self):
        assert get_rule("klean.rules.builtin.fd:FunctionalDependencyRule") is FunctionalDependencyRule

    def test_unknown(self):
        with pytest.raises(UnknownRuleError):
            get_rule("no_such_rule")
        with pytest.raises(UnknownRuleError):
            get_rule("klean.rules.builtin.fd:Nope")


class TestRuleFactory:
    def test_derived_ids_and_default_table(self):
        specs = [
            RuleSpec(name="fd", params={"fd": "zipcode | city"}),
            RuleSpec(name="fd", params={"fd": "zipcode | state"}),
        ]
        rules = RuleFactory(specs, default_table="hospital").build_rules()
        assert [r.rule_id for r in rules] == ["fd0", "fd1"]
        assert all(r.table_names == ["hospital"] for r in rules)
        assert rules[1].rhs == [STATE]

    def test_explicit_id_and_tables(self):
        spec = RuleSpec(id="zip_city", name="fd", tables=["clinic"], params={"fd": "zipcode | city"})
        (rule,) = RuleFactory([spec], default_table="hospital").build_rules()
        assert rule.rule_id == "zip_city"
        assert rule.rhs == [Column("clinic", "city")]

    def test_duplicate_ids(self):
        specs = [
            RuleSpec(id="r", name="fd", params={"fd": "zipcode | city"}),
            RuleSpec(id="r", name="fd", params={"fd": "zipcode | state"}),
        ]
        with pytest.raises(InvalidArgumentError, match="Duplicate"):
            RuleFactory(specs, default_table="hospital").build_rules()

    def test_missing_table(self):
        spec = RuleSpec(name="fd", params={"fd": "zipcode | city"})
        with pytest.raises(InvalidArgumentError):
            RuleFactory([spec]).build_rules()

    def test_not_a_rule(self):
        with pytest.raises(UnknownRuleError):
            RuleFactory([RuleSpec(name="klean.datamodel:Cell")], default_table="t").build_rules()

    def test_summarize(self, make_fd):
        summary = RuleFactory.summarize_rules([make_fd("zipcode | city")])
        assert summary == [
            {
                "rule_id": "fd0",
                "tables": ["hospital"],
                "params": {"fd": "zipcode | city"},
                "class": "FunctionalDependencyRule",
            }
        ]
