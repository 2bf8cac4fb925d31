"""Tests for budget item dependency resolution."""

import logging

import pytest

from budgetpilot.analyzers.dependencies import (
    dependency_first_order,
    find_dependency_cycles,
    items_on_cycles,
    resolve_dependency_order,
)
from budgetpilot.models.budget import BudgetItem, CalcType


def _item(item_id: str, priority: int = 0, depends_on=None, is_active: bool = True) -> BudgetItem:
    return BudgetItem(
        id=item_id,
        name=item_id.title(),
        calc_type=CalcType.FIXED,
        value=100,
        priority=priority,
        depends_on=depends_on or [],
        is_active=is_active,
    )


def _ids(items: list[BudgetItem]) -> list[str]:
    return [item.id for item in items]


class TestResolveDependencyOrder:
    """Test dependency ordering."""

    def test_dependency_comes_first(self):
        """Test a dependency precedes its dependent."""
        items = [_item("savings", 1, ["rent"]), _item("rent", 2)]
        order = _ids(resolve_dependency_order(items))
        assert order.index("rent") < order.index("savings")

    def test_chain(self):
        """Test a three-item chain."""
        items = [
            _item("c", 1, ["b"]),
            _item("b", 2, ["a"]),
            _item("a", 3),
        ]
        assert _ids(resolve_dependency_order(items)) == ["a", "b", "c"]

    def test_independent_items_come_out_in_reverse_priority(self):
        """Test independent items reverse priority order."""
        items = [_item("x", 1), _item("y", 2)]
        assert _ids(resolve_dependency_order(items)) == ["y", "x"]

    def test_equal_priorities_keep_input_order_before_scan(self):
        """Test stable handling of equal priorities."""
        # Stable sort keeps [first, second]; the backward scan then reverses them
        items = [_item("first", 1), _item("second", 1)]
        assert _ids(resolve_dependency_order(items)) == ["second", "first"]
        assert _ids(resolve_dependency_order(list(reversed(items)))) == ["first", "second"]

    def test_inactive_items_dropped(self):
        """Test inactive items are excluded."""
        items = [_item("a"), _item("b", is_active=False)]
        assert _ids(resolve_dependency_order(items)) == ["a"]

    def test_every_active_item_exactly_once(self):
        """Test no item is lost or duplicated."""
        items = [
            _item("a", 3, ["b"]),
            _item("b", 1, ["a"]),
            _item("c", 2, ["missing"]),
            _item("d", 0),
        ]
        order = _ids(resolve_dependency_order(items))
        assert sorted(order) == ["a", "b", "c", "d"]

    def test_cycle_terminates_and_logs(self, caplog: pytest.LogCaptureFixture):
        """Test cycles are appended with a warning."""
        items = [_item("a", 1, ["b"]), _item("b", 2, ["a"]), _item("c", 3)]
        with caplog.at_level(logging.WARNING, logger="budgetpilot.analyzers.dependencies"):
            order = _ids(resolve_dependency_order(items))
        assert order == ["c", "a", "b"]
        assert "Unresolvable dependencies" in caplog.text

    def test_dependency_on_inactive_item_is_unresolvable(self):
        """Test dependency on an inactive item."""
        items = [_item("a", 1, ["gone"]), _item("gone", 0, is_active=False)]
        assert _ids(resolve_dependency_order(items)) == ["a"]

    def test_empty(self):
        """Test empty input."""
        assert resolve_dependency_order([]) == []

    def test_deep_chain(self):
        """Test a long dependency chain."""
        depth = 2000
        items = [_item(f"n{i}", i, [f"n{i - 1}"] if i else []) for i in range(depth)]
        order = _ids(resolve_dependency_order(items))
        assert order[0] == "n0"
        assert order[-1] == f"n{depth - 1}"


class TestDependencyFirstOrder:
    """Test ordering used for priority renumbering."""

    def test_keeps_priority_order_for_independent_items(self):
        """Test independent items stay in priority order."""
        items = [_item("y", 2), _item("x", 1), _item("z", 3)]
        assert _ids(dependency_first_order(items)) == ["x", "y", "z"]

    def test_moves_item_after_its_dependency(self):
        """Test an item moves after its dependency."""
        items = [_item("savings", 1, ["rent"]), _item("rent", 2)]
        assert _ids(dependency_first_order(items)) == ["rent", "savings"]

    def test_ignores_unknown_and_self_dependencies(self):
        """Test unknown and self dependencies are ignored."""
        items = [_item("a", 1, ["a", "ghost"]), _item("b", 2)]
        assert _ids(dependency_first_order(items)) == ["a", "b"]

    def test_cycle_appended(self):
        """Test cycle members are appended."""
        items = [_item("a", 1, ["b"]), _item("b", 2, ["a"]), _item("c", 3)]
        assert _ids(dependency_first_order(items)) == ["c", "a", "b"]


class TestFindDependencyCycles:
    """Test cycle detection."""

    def test_no_cycles(self):
        """Test acyclic input."""
        items = [_item("a"), _item("b", depends_on=["a"])]
        assert find_dependency_cycles(items) == []

    def test_two_item_cycle(self):
        """Test a mutual dependency."""
        items = [_item("a", depends_on=["b"]), _item("b", depends_on=["a"])]
        assert find_dependency_cycles(items) == [["a", "b"]]

    def test_self_loop(self):
        """Test a self-dependency is a cycle."""
        items = [_item("a", depends_on=["a"]), _item("b")]
        assert find_dependency_cycles(items) == [["a"]]

    def test_separate_groups_in_input_order(self):
        """Test separate cycles come out in input order."""
        items = [
            _item("x", depends_on=["y"]),
            _item("a", depends_on=["c"]),
            _item("y", depends_on=["x"]),
            _item("b", depends_on=["a"]),
            _item("c", depends_on=["b"]),
            _item("tail", depends_on=["a"]),
        ]
        assert find_dependency_cycles(items) == [["x", "y"], ["a", "b", "c"]]

    def test_item_leading_into_cycle_not_included(self):
        """Test an item feeding a cycle is not part of it."""
        items = [
            _item("entry", depends_on=["a"]),
            _item("a", depends_on=["b"]),
            _item("b", depends_on=["a"]),
        ]
        assert find_dependency_cycles(items) == [["a", "b"]]

    def test_unknown_dependencies_ignored(self):
        """Test unknown dependency ids are skipped."""
        items = [_item("a", depends_on=["ghost"])]
        assert find_dependency_cycles(items) == []

    def test_deep_chain_without_recursion(self):
        """Test a long chain without hitting recursion limits."""
        depth = 5000
        items = [_item(f"n{i}", depends_on=[f"n{i + 1}"]) for i in range(depth)]
        items.append(_item(f"n{depth}", depends_on=["n0"]))
        cycles = find_dependency_cycles(items)
        assert len(cycles) == 1
        assert len(cycles[0]) == depth + 1

    def test_items_on_cycles_maps_members(self):
        """Test mapping from item to its cycle."""
        items = [_item("a", depends_on=["b"]), _item("b", depends_on=["a"]), _item("c")]
        membership = items_on_cycles(items)
        assert membership == {"a": ["a", "b"], "b": ["a", "b"]}
