"""
Data models for the mg2tf exporter.
"""
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Tuple

from .constants import TYPE_MANAGEMENT_GROUP, TYPE_SUBSCRIPTION


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ''


class NodeKind(Enum):
    """Kind of a hierarchy entry, derived from its wire type."""
    GROUP = "group"
    SUBSCRIPTION = "subscription"
    OTHER = "other"

    @classmethod
    def from_type(cls, wire_type: str) -> "NodeKind":
        if wire_type == TYPE_MANAGEMENT_GROUP:
            return cls.GROUP
        if wire_type == TYPE_SUBSCRIPTION:
            return cls.SUBSCRIPTION
        return cls.OTHER


@dataclass(frozen=True)
class Node:
    """
    One management group or subscription from the descendants listing.

    Only the parent link comes from the wire. The child indices are filled in
    by the tree builder and point into the owning NodeTable.
    """
    id: str
    kind: NodeKind
    display_name: str = ""
    parent_id: str = ""
    name: str = ""
    type: str = ""

    # Derived adjacency (indices into NodeTable.nodes)
    child_group_indices: Tuple[int, ...] = ()
    child_subscription_indices: Tuple[int, ...] = ()

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "Node":
        """Build a node from one entry of the descendants response.

        Missing or wrongly typed fields become empty strings and unknown
        fields are ignored.
        """
        properties = _as_dict(item.get('properties'))
        parent = _as_dict(properties.get('parent'))
        wire_type = _as_str(item.get('type'))
        return cls(
            id=_as_str(item.get('id')),
            kind=NodeKind.from_type(wire_type),
            display_name=_as_str(properties.get('displayName')),
            parent_id=_as_str(parent.get('id')),
            name=_as_str(item.get('name')),
            type=wire_type,
        )

    @property
    def is_group(self) -> bool:
        return self.kind is NodeKind.GROUP

    @property
    def is_subscription(self) -> bool:
        return self.kind is NodeKind.SUBSCRIPTION


@dataclass(frozen=True)
class NodeTable:
    """
    Frozen node listing: fetch order, synthetic tenant root last.

    ``index`` maps each node ID to its position in ``nodes``.
    """
    nodes: Tuple[Node, ...]
    index: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    @property
    def root(self) -> Node:
        return self.nodes[-1]

    def get(self, node_id: str) -> Node:
        """Look up a node by ID. Raises KeyError if absent."""
        return self.nodes[self.index[node_id]]

    def groups(self) -> Iterator[Node]:
        return (node for node in self if node.is_group)

    def children_groups(self, node: Node) -> Tuple[Node, ...]:
        return tuple(self.nodes[i] for i in node.child_group_indices)

    def children_subscriptions(self, node: Node) -> Tuple[Node, ...]:
        return tuple(self.nodes[i] for i in node.child_subscription_indices)

    def count_by_kind(self) -> Dict[NodeKind, int]:
        counts = {kind: 0 for kind in NodeKind}
        for node in self.nodes:
            counts[node.kind] += 1
        return counts
