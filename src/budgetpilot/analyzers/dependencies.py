"""
Dependency resolution — order budget items so dependencies are calculated first.

Budget items form a graph through ``depends_on`` (an adjacency list of
item IDs). The resolver never raises on a cyclic graph: items it cannot
place are appended at the end in priority order, and the validator reports
the cycle separately.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from budgetpilot.models.budget import BudgetItem

logger = logging.getLogger("budgetpilot.analyzers.dependencies")


def _by_priority(items: list[BudgetItem]) -> list[BudgetItem]:
    # sorted() is stable: equal priorities keep their input order
    return sorted(items, key=lambda item: item.priority)


def resolve_dependency_order(items: list[BudgetItem]) -> list[BudgetItem]:
    """Order active items so each one follows everything it depends on.

    Pending items are sorted by priority, then scanned repeatedly from the
    end; any item whose dependencies are all resolved moves to the output.
    When a full scan moves nothing the remaining items (cycles, or
    references to items that are not in the set) are appended as they are.

    Args:
        items: Budget items. Inactive items are dropped.

    Returns:
        Active items in calculation order, each exactly once.
    """
    pending = _by_priority([item for item in items if item.is_active])
    resolved: list[BudgetItem] = []
    resolved_ids: set[str] = set()

    while pending:
        previous_length = len(pending)

        for i in range(len(pending) - 1, -1, -1):
            item = pending[i]
            if all(dep_id in resolved_ids for dep_id in item.depends_on):
                resolved.append(item)
                resolved_ids.add(item.id)
                del pending[i]

        if len(pending) == previous_length:
            logger.warning(
                "Unresolvable dependencies among budget items: %s",
                [item.id for item in pending],
            )
            resolved.extend(pending)
            break

    return resolved


def dependency_first_order(items: list[BudgetItem]) -> list[BudgetItem]:
    """Order items by priority, moving an item later only when it must wait.

    Unlike :func:`resolve_dependency_order`, independent items stay in
    ascending priority order. Used to renumber priorities without
    reshuffling items that have no dependency relationship. Inactive
    items are kept; only IDs present in ``items`` count as dependencies.
    """
    known_ids = {item.id for item in items}
    pending = _by_priority(items)
    ordered: list[BudgetItem] = []
    placed: set[str] = set()

    while pending:
        remaining: list[BudgetItem] = []
        for item in pending:
            deps = [d for d in item.depends_on if d in known_ids and d != item.id]
            if all(d in placed for d in deps):
                ordered.append(item)
                placed.add(item.id)
            else:
                remaining.append(item)

        if len(remaining) == len(pending):
            ordered.extend(remaining)
            break
        pending = remaining

    return ordered


def find_dependency_cycles(items: list[BudgetItem]) -> list[list[str]]:
    """Find every group of items that lies on a dependency cycle.

    Runs Tarjan's strongly-connected-components algorithm with an explicit
    stack, so arbitrarily deep dependency chains cannot overflow the
    interpreter's recursion limit. Only edges between IDs present in
    ``items`` are followed.

    Returns:
        One list of item IDs per cycle group, members and groups both in
        input order. An item that depends on itself is a group of one.
    """
    position = {item.id: idx for idx, item in enumerate(items)}
    edges: dict[str, list[str]] = {
        item.id: [d for d in item.depends_on if d in position] for item in items
    }

    index_of: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    on_stack: set[str] = set()
    component_stack: list[str] = []
    components: list[list[str]] = []
    counter = 0

    for root in edges:
        if root in index_of:
            continue

        # (node, index of the next edge to follow)
        work: list[tuple[str, int]] = [(root, 0)]
        while work:
            node, edge_idx = work.pop()

            if edge_idx == 0:
                index_of[node] = lowlink[node] = counter
                counter += 1
                component_stack.append(node)
                on_stack.add(node)

            descended = False
            neighbours = edges[node]
            while edge_idx < len(neighbours):
                nxt = neighbours[edge_idx]
                edge_idx += 1
                if nxt not in index_of:
                    work.append((node, edge_idx))
                    work.append((nxt, 0))
                    descended = True
                    break
                if nxt in on_stack:
                    lowlink[node] = min(lowlink[node], index_of[nxt])

            if descended:
                continue

            if lowlink[node] == index_of[node]:
                members: list[str] = []
                while True:
                    member = component_stack.pop()
                    on_stack.discard(member)
                    members.append(member)
                    if member == node:
                        break
                if len(members) > 1 or node in edges[node]:
                    components.append(sorted(members, key=position.__getitem__))

            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])

    components.sort(key=lambda group: position[group[0]])
    return components


def items_on_cycles(items: list[BudgetItem]) -> dict[str, list[str]]:
    """Map each item ID on a cycle to the full cycle group it belongs to."""
    membership: dict[str, list[str]] = {}
    for group in find_dependency_cycles(items):
        for item_id in group:
            membership[item_id] = group
    return membership
