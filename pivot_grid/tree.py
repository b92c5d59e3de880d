"""
Tree Expansion State Management for Pivot Grids

Tracks which row and column groups are expanded. The state is keyed by
GroupKey, not by node identity, so it survives hierarchy rebuilds as long as
the same keys recur.
"""

from typing import Dict, Any, Iterable, Optional, Set, Union
from dataclasses import dataclass, field
from enum import Enum
import time
import json

from .types.group_key import GroupKey


class Axis(str, Enum):
    """Hierarchy axis"""
    ROWS = "rows"
    COLUMNS = "columns"


AxisLike = Union[Axis, str]


def _axis(axis: AxisLike) -> Axis:
    try:
        return Axis(axis)
    except ValueError:
        raise ValueError(f"Unknown axis: {axis!r}") from None


@dataclass
class ExpansionState:
    """Tracks expanded group keys for both axes"""
    rows: Set[GroupKey] = field(default_factory=set)
    columns: Set[GroupKey] = field(default_factory=set)
    timestamp: float = field(default_factory=time.time, compare=False)

    def expanded(self, axis: AxisLike) -> Set[GroupKey]:
        """The live expanded set for an axis"""
        return self.rows if _axis(axis) is Axis.ROWS else self.columns

    def is_expanded(self, axis: AxisLike, key: GroupKey) -> bool:
        """Check if key is expanded"""
        return key in self.expanded(axis)

    def is_visible(self, axis: AxisLike, key: GroupKey) -> bool:
        """A node is visible when every one of its ancestors is expanded."""
        expanded = self.expanded(axis)
        return all(ancestor in expanded for ancestor in key.ancestors())

    def toggle(self, axis: AxisLike, key: GroupKey, valid_keys: Optional[Iterable[GroupKey]] = None) -> bool:
        """
        Flip the expansion of `key`.

        Collapsing removes the key and every expanded descendant. Keys that are
        the root, or absent from `valid_keys` when it is given, are ignored.

        Returns:
            True if the state changed.
        """
        if key.is_root:
            return False
        if valid_keys is not None and key not in valid_keys:
            return False

        expanded = self.expanded(axis)
        if key in expanded:
            doomed = {k for k in expanded if k == key or key.is_ancestor_of(k)}
            expanded.difference_update(doomed)
        else:
            expanded.add(key)
        self.timestamp = time.time()
        return True

    def expand_all(self, axis: AxisLike, keys: Iterable[GroupKey]):
        """Mark every given key as expanded"""
        self.expanded(axis).update(k for k in keys if not k.is_root)
        self.timestamp = time.time()

    def collapse_all(self, axis: AxisLike):
        """Collapse every group on an axis"""
        self.expanded(axis).clear()
        self.timestamp = time.time()

    def copy(self) -> "ExpansionState":
        return ExpansionState(rows=set(self.rows), columns=set(self.columns), timestamp=self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": sorted(k.encode() for k in self.rows),
            "columns": sorted(k.encode() for k in self.columns),
            "timestamp": self.timestamp,
        }

    @staticmethod
    def from_dict(obj: Dict[str, Any]) -> "ExpansionState":
        return ExpansionState(
            rows={GroupKey.decode(k) for k in obj.get("rows", [])},
            columns={GroupKey.decode(k) for k in obj.get("columns", [])},
            timestamp=obj.get("timestamp", time.time()),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @staticmethod
    def from_json(data: str) -> "ExpansionState":
        return ExpansionState.from_dict(json.loads(data))
