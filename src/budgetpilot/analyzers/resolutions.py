"""
Conflict Resolution — turn auto-fixable validation issues into field edits.

A resolution is a list of ``(item_id, field, old_value, new_value)``
changes. Generating resolutions never touches the items; applying one
returns a new list and leaves the input untouched. Saving the result is up
to the caller.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable

from budgetpilot.analyzers.dependencies import dependency_first_order
from budgetpilot.models.budget import BudgetItem, active_items
from budgetpilot.models.validation import (
    ConflictResolution,
    FieldChange,
    IssueKind,
    ItemField,
    ResolutionType,
)

if TYPE_CHECKING:
    from budgetpilot.models.validation import ValidationIssue

logger = logging.getLogger("budgetpilot.analyzers.resolutions")

MAX_PERCENTAGE = Decimal("100")


def _clamp_percentages(
    issue: ValidationIssue,
    items: dict[str, BudgetItem],
    all_items: list[BudgetItem],
) -> ConflictResolution:
    return ConflictResolution(
        type=ResolutionType.ADJUST_VALUES,
        description=f"Reduce {len(issue.affected_items)} item(s) to 100% or less",
        changes=[
            FieldChange(
                item_id=item_id,
                field=ItemField.VALUE,
                old_value=items[item_id].value,
                new_value=MAX_PERCENTAGE,
            )
            for item_id in issue.affected_items
            if item_id in items
        ],
    )


def _clear_dependencies(
    issue: ValidationIssue,
    items: dict[str, BudgetItem],
    all_items: list[BudgetItem],
) -> ConflictResolution:
    return ConflictResolution(
        type=ResolutionType.REMOVE_DEPENDENCIES,
        description="Remove invalid dependencies",
        changes=[
            FieldChange(
                item_id=item_id,
                field=ItemField.DEPENDS_ON,
                old_value=list(items[item_id].depends_on),
                new_value=[],
            )
            for item_id in issue.affected_items
            if item_id in items
        ],
    )


def _drop_self_dependency(
    issue: ValidationIssue,
    items: dict[str, BudgetItem],
    all_items: list[BudgetItem],
) -> ConflictResolution:
    return ConflictResolution(
        type=ResolutionType.REMOVE_DEPENDENCIES,
        description="Remove self-dependencies",
        changes=[
            FieldChange(
                item_id=item_id,
                field=ItemField.DEPENDS_ON,
                old_value=list(items[item_id].depends_on),
                new_value=[d for d in items[item_id].depends_on if d != item_id],
            )
            for item_id in issue.affected_items
            if item_id in items
        ],
    )


def _renumber_priorities(description: str) -> Callable[..., ConflictResolution]:
    def build(
        issue: ValidationIssue,
        items: dict[str, BudgetItem],
        all_items: list[BudgetItem],
    ) -> ConflictResolution:
        return ConflictResolution(
            type=ResolutionType.REORDER_PRIORITIES,
            description=description,
            changes=sequential_priority_changes(all_items),
        )

    return build


_BUILDERS: dict[IssueKind, Callable[..., ConflictResolution]] = {
    IssueKind.PERCENTAGE_TOO_HIGH: _clamp_percentages,
    IssueKind.MISSING_DEPENDENCY: _clear_dependencies,
    IssueKind.SELF_DEPENDENCY: _drop_self_dependency,
    IssueKind.PRIORITY_CONFLICT: _renumber_priorities(
        "Automatically reorder priorities based on dependencies"
    ),
    IssueKind.SAME_PRIORITY: _renumber_priorities("Assign unique priorities"),
}


def sequential_priority_changes(items: list[BudgetItem]) -> list[FieldChange]:
    """Renumber active items 1..n so dependencies come first.

    Independent items keep their relative priority order; only items whose
    priority actually changes are returned.
    """
    changes = []
    for new_priority, item in enumerate(dependency_first_order(active_items(items)), start=1):
        if item.priority != new_priority:
            changes.append(FieldChange(
                item_id=item.id,
                field=ItemField.PRIORITY,
                old_value=item.priority,
                new_value=new_priority,
            ))
    return changes


def _signature(resolution: ConflictResolution) -> tuple[Any, ...]:
    return (
        resolution.type,
        tuple((c.item_id, c.field, repr(c.new_value)) for c in resolution.changes),
    )


def generate_resolutions(
    issues: list[ValidationIssue],
    items: list[BudgetItem],
) -> list[ConflictResolution]:
    """
    Build a resolution for every auto-fixable issue.

    Several issues can call for the same edit (e.g. two missing
    dependencies on one item, or every priority conflict); such
    resolutions are returned once, listing all of their issue IDs.
    Resolutions that would change nothing are dropped.

    Args:
        issues: Issues from a validation run.
        items: The items that were validated.

    Returns:
        Resolutions in the order their first issue appeared.
    """
    item_map = {item.id: item for item in items}
    resolutions: list[ConflictResolution] = []
    by_signature: dict[tuple[Any, ...], ConflictResolution] = {}

    for issue in issues:
        if not issue.auto_fixable:
            continue
        builder = _BUILDERS.get(issue.kind)
        if builder is None:
            logger.debug("No automatic fix for issue kind %s", issue.kind.value)
            continue

        resolution = builder(issue, item_map, items)
        if not resolution.changes:
            continue

        key = _signature(resolution)
        existing = by_signature.get(key)
        if existing is not None:
            existing.issue_ids.append(issue.id)
            continue

        resolution.issue_ids.append(issue.id)
        by_signature[key] = resolution
        resolutions.append(resolution)

    return resolutions


def apply_resolution(
    resolution: ConflictResolution,
    items: list[BudgetItem],
) -> list[BudgetItem]:
    """
    Apply a resolution's changes to a copy of the item list.

    Changed items are rebuilt through model validation; items the
    resolution does not mention are returned as they are. Changes for IDs
    not in ``items`` are ignored.
    """
    updates: dict[str, dict[str, Any]] = {}
    for change in resolution.changes:
        new_value = change.new_value
        if isinstance(new_value, list):
            new_value = list(new_value)
        updates.setdefault(change.item_id, {})[change.field.value] = new_value

    updated_items = []
    for item in items:
        fields = updates.get(item.id)
        if fields is None:
            updated_items.append(item)
        else:
            updated_items.append(BudgetItem.model_validate({**item.model_dump(), **fields}))
    return updated_items


def apply_resolutions(
    resolutions: list[ConflictResolution],
    items: list[BudgetItem],
) -> list[BudgetItem]:
    """Apply several resolutions in order."""
    for resolution in resolutions:
        items = apply_resolution(resolution, items)
    return items
