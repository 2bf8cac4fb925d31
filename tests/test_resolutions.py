"""Tests for generating and applying conflict resolutions."""

from decimal import Decimal

import pytest

from budgetpilot.analyzers.resolutions import (
    apply_resolution,
    apply_resolutions,
    generate_resolutions,
    sequential_priority_changes,
)
from budgetpilot.analyzers.validation import validate
from budgetpilot.models.budget import BudgetItem, CalcType, IncomeSource
from budgetpilot.models.validation import (
    ConflictResolution,
    FieldChange,
    IssueKind,
    ItemField,
    ResolutionType,
)


@pytest.fixture
def income() -> list[IncomeSource]:
    return [IncomeSource(id="salary", gross_amount=1250, net_amount=1000)]


def _item(item_id: str, calc_type: CalcType = CalcType.FIXED, value=100, **kwargs) -> BudgetItem:
    return BudgetItem(id=item_id, name=item_id.title(), calc_type=calc_type, value=value, **kwargs)


def _fix(items: list[BudgetItem], income: list[IncomeSource]) -> list[BudgetItem]:
    result = validate(items, income)
    return apply_resolutions(generate_resolutions(result.issues, items), items)


class TestGenerateResolutions:
    """Test resolution generation."""

    def test_clamps_percentage(self, income: list[IncomeSource]):
        """Test percentages are clamped to 100."""
        items = [_item("tithe", CalcType.GROSS_PERCENT, 150)]
        result = validate(items, income)

        resolutions = generate_resolutions(result.issues, items)

        assert len(resolutions) == 1
        resolution = resolutions[0]
        assert resolution.type == ResolutionType.ADJUST_VALUES
        assert resolution.issue_ids == ["percentage-too-high-tithe"]
        assert resolution.changes == [
            FieldChange(item_id="tithe", field=ItemField.VALUE, old_value=Decimal("150"), new_value=Decimal("100")),
        ]

        fixed = apply_resolution(resolution, items)
        assert fixed[0].value == Decimal("100")
        assert not validate(fixed, income).issues_of_kind(IssueKind.PERCENTAGE_TOO_HIGH)

    def test_clears_missing_dependencies(self, income: list[IncomeSource]):
        """Test missing dependencies are cleared."""
        items = [_item("savings", CalcType.REMAINING_PERCENT, 10, depends_on=["ghost", "phantom"])]

        fixed = _fix(items, income)

        assert fixed[0].depends_on == []

    def test_duplicate_edits_merged(self, income: list[IncomeSource]):
        """Test identical edits are merged."""
        items = [_item("savings", CalcType.REMAINING_PERCENT, 10, depends_on=["ghost", "phantom"])]
        result = validate(items, income)

        resolutions = generate_resolutions(result.issues, items)

        assert len(resolutions) == 1
        assert resolutions[0].issue_ids == [
            "missing-dependency-savings-ghost",
            "missing-dependency-savings-phantom",
        ]

    def test_drops_self_dependency(self, income: list[IncomeSource]):
        """Test the self id is removed."""
        items = [
            _item("rent", value=500, priority=1),
            _item("loop", depends_on=["loop", "rent"], priority=2),
        ]
        fixed = _fix(items, income)
        assert fixed[1].depends_on == ["rent"]

    def test_renumbers_priorities_dependencies_first(self, income: list[IncomeSource]):
        """Test priorities are renumbered dependencies first."""
        items = [
            _item("savings", CalcType.REMAINING_PERCENT, 10, depends_on=["rent"], priority=1),
            _item("rent", value=500, priority=5),
            _item("food", value=100, priority=7),
        ]
        result = validate(items, income)

        resolutions = generate_resolutions(result.issues, items)

        assert [r.type for r in resolutions] == [ResolutionType.REORDER_PRIORITIES]
        fixed = apply_resolution(resolutions[0], items)
        assert {item.id: item.priority for item in fixed} == {"rent": 1, "food": 2, "savings": 3}
        assert not validate(fixed, income).issues_of_kind(IssueKind.PRIORITY_CONFLICT)

    def test_same_priority_renumbered(self, income: list[IncomeSource]):
        """Test shared priorities are renumbered."""
        items = [_item("rent", value=500, priority=1), _item("food", value=300, priority=1)]
        fixed = _fix(items, income)
        assert [item.priority for item in fixed] == [1, 2]
        assert not validate(fixed, income).issues_of_kind(IssueKind.SAME_PRIORITY)

    def test_priority_fixes_share_one_resolution(self, income: list[IncomeSource]):
        """Test priority fixes share one resolution."""
        items = [
            _item("savings", CalcType.REMAINING_PERCENT, 10, depends_on=["rent"], priority=1),
            _item("rent", value=500, priority=1),
        ]
        result = validate(items, income)

        resolutions = generate_resolutions(result.issues, items)

        assert len(resolutions) == 1
        assert resolutions[0].issue_ids == ["priority-conflict-savings-rent", "same-priority-1"]

    def test_nothing_for_structural_issues(self, income: list[IncomeSource]):
        """Test cycles get no dependency edits."""
        items = [
            _item("a", depends_on=["b"], priority=1),
            _item("b", depends_on=["a"], priority=2),
        ]
        result = validate(items, income)
        resolutions = generate_resolutions(result.issues, items)
        changed_fields = {c.field for r in resolutions for c in r.changes}
        assert ItemField.DEPENDS_ON not in changed_fields

    def test_no_changes_when_already_sequential(self):
        """Test sequential priorities need no change."""
        items = [_item("a", priority=1), _item("b", priority=2)]
        assert sequential_priority_changes(items) == []


class TestApplyResolution:
    """Test applying resolutions."""

    def test_does_not_mutate_input(self):
        """Test input items are not mutated."""
        items = [_item("rent", priority=3), _item("food", priority=4)]
        resolution = ConflictResolution(
            type=ResolutionType.REORDER_PRIORITIES,
            description="renumber",
            changes=[FieldChange(item_id="rent", field=ItemField.PRIORITY, old_value=3, new_value=1)],
        )

        fixed = apply_resolution(resolution, items)

        assert items[0].priority == 3
        assert fixed[0].priority == 1
        assert fixed[1] is items[1]

    def test_unknown_item_ignored(self):
        """Test changes for unknown items are ignored."""
        items = [_item("rent")]
        resolution = ConflictResolution(
            type=ResolutionType.ADJUST_VALUES,
            description="clamp",
            changes=[FieldChange(item_id="ghost", field=ItemField.VALUE, old_value=150, new_value=100)],
        )
        assert apply_resolution(resolution, items) == items

    def test_applied_list_is_not_shared(self):
        """Test list values are copied."""
        items = [_item("rent", depends_on=["x"])]
        new_deps: list[str] = []
        resolution = ConflictResolution(
            type=ResolutionType.REMOVE_DEPENDENCIES,
            description="clear",
            changes=[FieldChange(item_id="rent", field=ItemField.DEPENDS_ON, old_value=["x"], new_value=new_deps)],
        )
        fixed = apply_resolution(resolution, items)
        new_deps.append("y")
        assert fixed[0].depends_on == []

    def test_auto_fix_resolves_everything_fixable(self, income: list[IncomeSource]):
        """Test applying all resolutions clears fixable issues."""
        items = [
            _item("tithe", CalcType.GROSS_PERCENT, 120, priority=1),
            _item("savings", CalcType.REMAINING_PERCENT, 10, depends_on=["rent", "ghost"], priority=1),
            _item("rent", value=500, priority=4),
        ]
        fixed = _fix(items, income)
        remaining = [i for i in validate(fixed, income).issues if i.auto_fixable]
        assert remaining == []
