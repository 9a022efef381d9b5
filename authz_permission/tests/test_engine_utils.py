"""
Tests for the rule conversion helpers in engine/utils.py.

These helpers map Casbin rules to the fixed-width ``casbin_rule`` row and back,
and build the ORM lookups used to match stored rows.
"""

import unittest

from ddt import data, ddt, unpack

from authz_permission.engine.exceptions import TupleTooLongError
from authz_permission.engine.utils import (
    field_index_lookup,
    load_policy_rule,
    rule_lookup,
    rule_to_columns,
    trim_rule,
)
from authz_permission.tests.test_utils import make_model


@ddt
class TestTrimRule(unittest.TestCase):
    """Tests for trim_rule."""

    @data(
        (["alice", "data1", "read", "", "", ""], ["alice", "data1", "read"]),
        (["alice", "data1", "read", None, None, None], ["alice", "data1", "read"]),
        (["a", "", "c", "", "", ""], ["a", "", "c"]),
        (["a", None, "c", None, "", None], ["a", "", "c"]),
        (["", "", "", "", "", ""], []),
        ([None] * 6, []),
        ([], []),
        (["a", "b", "c", "d", "e", "f"], ["a", "b", "c", "d", "e", "f"]),
        (["", "b"], ["", "b"]),
    )
    @unpack
    def test_trim_rule(self, values, expected):
        """Only the trailing empty values are removed."""
        self.assertEqual(trim_rule(values), expected)

    @data(
        ["a", "", "c", "", "", ""],
        ["alice", None, None],
        ["", ""],
        ["x"],
    )
    def test_trim_rule_is_idempotent(self, values):
        """Trimming an already trimmed rule changes nothing."""
        trimmed = trim_rule(values)
        self.assertEqual(trim_rule(trimmed), trimmed)

    def test_trim_rule_accepts_tuples(self):
        """Rows read with values_list are tuples."""
        self.assertEqual(trim_rule(("bob", "data2", "write", None, None, None)), ["bob", "data2", "write"])


@ddt
class TestRuleToColumns(unittest.TestCase):
    """Tests for rule_to_columns."""

    def test_maps_values_to_positional_columns(self):
        """Each value lands in the column of its position."""
        self.assertEqual(
            rule_to_columns("p", ["alice", "data1", "read"]),
            {"ptype": "p", "v0": "alice", "v1": "data1", "v2": "read"},
        )

    def test_empty_rule(self):
        """A rule without values only sets the ptype."""
        self.assertEqual(rule_to_columns("g", []), {"ptype": "g"})

    def test_six_values(self):
        """Six values fill every column."""
        columns = rule_to_columns("p", ["0", "1", "2", "3", "4", "5"])
        self.assertEqual(columns["v5"], "5")

    @data(7, 10)
    def test_too_many_values_raises(self, length):
        """Rules longer than the available columns are rejected."""
        with self.assertRaises(TupleTooLongError):
            rule_to_columns("p", ["x"] * length)

    def test_too_many_values_is_value_error(self):
        """TupleTooLongError can be handled as a ValueError."""
        with self.assertRaises(ValueError):
            rule_to_columns("p", ["x"] * 7)

    @data(
        ["alice", "data1", "read"],
        ["a", "", "c"],
        [],
        ["a", "b", "c", "d", "e", "f"],
    )
    def test_columns_trim_back_to_rule(self, rule):
        """A rule without trailing empties survives the column mapping."""
        columns = rule_to_columns("p", rule)
        values = [columns.get(f"v{i}") for i in range(6)]
        self.assertEqual(trim_rule(values), rule)


@ddt
class TestRuleLookup(unittest.TestCase):
    """Tests for rule_lookup."""

    def test_full_rule(self):
        self.assertEqual(
            rule_lookup(["alice", "data1", "read"]),
            {"v0": "alice", "v1": "data1", "v2": "read"},
        )

    def test_partial_rule(self):
        """A shorter rule only constrains its own positions."""
        self.assertEqual(rule_lookup(["alice"]), {"v0": "alice"})

    def test_empty_values_are_unconstrained(self):
        self.assertEqual(rule_lookup(["", "data1", None]), {"v1": "data1"})

    def test_too_long(self):
        with self.assertRaises(TupleTooLongError):
            rule_lookup(["x"] * 7)


@ddt
class TestFieldIndexLookup(unittest.TestCase):
    """Tests for field_index_lookup."""

    @data(
        (0, ["alice"], {"v0": "alice"}),
        (1, ["data1"], {"v1": "data1"}),
        (1, ["data1", "read"], {"v1": "data1", "v2": "read"}),
        (0, ["", "data1"], {"v1": "data1"}),
        (0, [None, "data1", ""], {"v1": "data1"}),
        (0, [], {}),
        (3, [], {}),
        (5, ["x", "y"], {"v5": "x"}),
        (6, ["x"], {}),
        (-1, ["x", "y"], {"v0": "y"}),
    )
    @unpack
    def test_field_index_lookup(self, field_index, field_values, expected):
        """Values constrain consecutive columns inside v0..v5 only."""
        self.assertEqual(field_index_lookup(field_index, field_values), expected)


class TestLoadPolicyRule(unittest.TestCase):
    """Tests for load_policy_rule."""

    def setUp(self):
        self.model = make_model()

    def test_appends_to_ptype_section(self):
        load_policy_rule("p", ["alice", "data1", "read"], self.model)
        load_policy_rule("g", ["alice", "admin"], self.model)
        self.assertEqual(self.model.model["p"]["p"].policy, [["alice", "data1", "read"]])
        self.assertEqual(self.model.model["g"]["g"].policy, [["alice", "admin"]])

    def test_preserves_order(self):
        load_policy_rule("p", ["bob", "data2", "write"], self.model)
        load_policy_rule("p", ["alice", "data1", "read"], self.model)
        self.assertEqual(
            self.model.model["p"]["p"].policy,
            [["bob", "data2", "write"], ["alice", "data1", "read"]],
        )

    def test_skips_unknown_ptype(self):
        """Rules of ptypes the model does not define are ignored."""
        load_policy_rule("g3", ["x", "y"], self.model)
        load_policy_rule("x", ["x", "y"], self.model)
        self.assertNotIn("g3", self.model.model["g"])
