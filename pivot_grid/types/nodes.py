"""
nodes.py - Hierarchy node types

Row and column groupings are trees of Branch | Leaf. Aggregates are never
stored on nodes; they are derived from the records reachable under a node.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Mapping, Optional, Tuple, Union

from .dataset import MeasureDescriptor
from .group_key import GroupKey, ROOT


@dataclass(frozen=True)
class Leaf:
    """Terminal group: owns references to the records it matched."""
    key: GroupKey
    value: Any
    records: Tuple[Mapping[str, Any], ...] = ()

    @property
    def is_branch(self) -> bool:
        return False

    def iter_records(self) -> Iterator[Mapping[str, Any]]:
        return iter(self.records)

    def iter_leaves(self) -> Iterator["Leaf"]:
        yield self


@dataclass(frozen=True)
class Branch:
    """Non-terminal group: owns its ordered children exclusively."""
    key: GroupKey
    value: Any
    children: Tuple["GroupNode", ...] = ()

    @property
    def is_branch(self) -> bool:
        return True

    def iter_leaves(self) -> Iterator[Leaf]:
        for child in self.children:
            yield from child.iter_leaves()

    def iter_records(self) -> Iterator[Mapping[str, Any]]:
        # Walk every depth, not just the immediate children
        for leaf in self.iter_leaves():
            yield from leaf.records


GroupNode = Union[Branch, Leaf]


@dataclass(frozen=True)
class GrandTotalRow:
    """Row pseudo-node matching every record of the dataset."""
    records: Tuple[Mapping[str, Any], ...] = ()
    key: GroupKey = ROOT

    @property
    def is_branch(self) -> bool:
        return False

    def iter_records(self) -> Iterator[Mapping[str, Any]]:
        return iter(self.records)


class ColumnKind(str, Enum):
    """Column node variants"""
    GROUP = "group"
    MEASURE = "measure"
    TOTAL = "total"
    GRAND_TOTAL = "grand_total"


@dataclass(frozen=True)
class ColumnNode:
    """
    A node of the column hierarchy.

    GROUP nodes come from a column dimension value; MEASURE nodes are the leaf
    columns that resolve cells; TOTAL and GRAND_TOTAL nodes are synthetic and
    carry no toggleable key. `criteria` is the filter applied to row records
    when resolving cells beneath this node.
    """
    kind: ColumnKind
    criteria: GroupKey
    value: Any = None
    key: Optional[GroupKey] = None
    measure: Optional[MeasureDescriptor] = None
    children: Tuple["ColumnNode", ...] = field(default_factory=tuple)
    expandable: bool = False

    @property
    def is_branch(self) -> bool:
        return bool(self.children)

    def iter_descendants(self) -> Iterator["ColumnNode"]:
        for child in self.children:
            yield child
            yield from child.iter_descendants()
