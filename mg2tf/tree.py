"""
Tree builder: turns the flat descendants listing into a NodeTable.

Each wire entry only knows its parent. Building the table takes two passes:
the first records id -> index and appends every entry to its parent's child
list, the second copies those lists onto the nodes themselves. Duplicate IDs,
unknown types and dangling parent references are all skipped silently.
"""
import logging
from dataclasses import replace
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from .constants import MANAGEMENT_GROUP_ID_PREFIX, TENANT_ROOT_DISPLAY_NAME, TYPE_MANAGEMENT_GROUP
from .models import Node, NodeKind, NodeTable

logger = logging.getLogger(__name__)

ChildMap = Dict[str, List[int]]


def make_root_node(tenant_id: str) -> Node:
    """Synthetic tenant root group. The descendants API never returns it."""
    return Node(
        id=MANAGEMENT_GROUP_ID_PREFIX + tenant_id,
        kind=NodeKind.GROUP,
        display_name=TENANT_ROOT_DISPLAY_NAME,
        parent_id='',
        name=tenant_id,
        type=TYPE_MANAGEMENT_GROUP,
    )


def index_nodes(nodes: Sequence[Node]) -> Tuple[Dict[str, int], ChildMap, ChildMap]:
    """
    First pass over the full node list.

    Returns:
        (id_to_index, child_groups, child_subscriptions). The child maps are
        keyed by parent ID and hold indices in table order.
    """
    id_to_index: Dict[str, int] = {}
    child_groups: ChildMap = {}
    child_subscriptions: ChildMap = {}

    for i, node in enumerate(nodes):
        # Last write wins on duplicate IDs
        id_to_index[node.id] = i
        if not node.parent_id:
            continue
        if node.kind is NodeKind.GROUP:
            child_groups.setdefault(node.parent_id, []).append(i)
        elif node.kind is NodeKind.SUBSCRIPTION:
            child_subscriptions.setdefault(node.parent_id, []).append(i)

    return id_to_index, child_groups, child_subscriptions


def attach_children(
    nodes: Sequence[Node],
    child_groups: ChildMap,
    child_subscriptions: ChildMap,
) -> Tuple[Node, ...]:
    """Second pass: give every node the child indices recorded under its own ID."""
    return tuple(
        replace(
            node,
            child_group_indices=tuple(child_groups.get(node.id, ())),
            child_subscription_indices=tuple(child_subscriptions.get(node.id, ())),
        )
        for node in nodes
    )


def _count_dangling(id_to_index: Dict[str, int], *child_maps: ChildMap) -> int:
    return sum(
        len(indices)
        for child_map in child_maps
        for parent_id, indices in child_map.items()
        if parent_id not in id_to_index
    )


def build_node_table(entries: Iterable[Dict[str, Any]], tenant_id: str) -> NodeTable:
    """
    Build the frozen node table from raw descendants entries.

    The synthetic tenant root is appended last, so rendering order is fetch
    order followed by the root.
    """
    nodes: List[Node] = [Node.from_api(entry) for entry in entries]
    nodes.append(make_root_node(tenant_id))

    logger.info(f"There are {len(nodes)} groups and subscriptions")

    id_to_index, child_groups, child_subscriptions = index_nodes(nodes)

    dangling = _count_dangling(id_to_index, child_groups, child_subscriptions)
    if dangling:
        logger.debug(f"{dangling} entries reference a parent that is not in the listing")

    return NodeTable(
        nodes=attach_children(nodes, child_groups, child_subscriptions),
        index=MappingProxyType(id_to_index),
    )
