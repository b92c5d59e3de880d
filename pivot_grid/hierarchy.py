"""
hierarchy.py - Row and column hierarchy builders

Both builders are pure functions of the dataset. Expansion is applied later,
during projection, so a rebuilt hierarchy is always the full tree.
"""
from dataclasses import dataclass
from typing import FrozenSet, Iterator, List, Sequence, Tuple

from .grouper import group_records
from .types.dataset import Dataset, MeasureDescriptor
from .types.group_key import GroupKey, ROOT
from .types.nodes import Branch, ColumnKind, ColumnNode, GrandTotalRow, GroupNode, Leaf


def _iter_nodes(nodes: Sequence[GroupNode]) -> Iterator[GroupNode]:
    for node in nodes:
        yield node
        if isinstance(node, Branch):
            yield from _iter_nodes(node.children)


@dataclass(frozen=True)
class RowHierarchy:
    nodes: Tuple[GroupNode, ...]
    grand_total: GrandTotalRow

    @property
    def expandable_keys(self) -> FrozenSet[GroupKey]:
        return frozenset(n.key for n in _iter_nodes(self.nodes) if isinstance(n, Branch))

    def find(self, key: GroupKey):
        """Locate a row node by key; the root key resolves to the grand total."""
        if key.is_root:
            return self.grand_total
        for node in _iter_nodes(self.nodes):
            if node.key == key:
                return node
        return None


@dataclass(frozen=True)
class ColumnHierarchy:
    nodes: Tuple[ColumnNode, ...]
    total: ColumnNode
    grand_total: ColumnNode

    @property
    def expandable_keys(self) -> FrozenSet[GroupKey]:
        keys = set()
        for node in self.nodes:
            for n in (node, *node.iter_descendants()):
                if n.expandable:
                    keys.add(n.key)
        return frozenset(keys)

    @property
    def top_level(self) -> Tuple[ColumnNode, ...]:
        return self.nodes + (self.total, self.grand_total)


def build_row_hierarchy(dataset: Dataset) -> RowHierarchy:
    """Group the records by the row dimensions and append the grand total."""
    nodes = group_records(dataset.data, dataset.rows)
    return RowHierarchy(nodes=nodes, grand_total=GrandTotalRow(records=tuple(dataset.data)))


def _measure_columns(criteria: GroupKey, measures: Sequence[MeasureDescriptor]) -> Tuple[ColumnNode, ...]:
    return tuple(
        ColumnNode(kind=ColumnKind.MEASURE, criteria=criteria, value=m.name, measure=m)
        for m in measures
    )


def _to_column(node: GroupNode, measures: Sequence[MeasureDescriptor]) -> ColumnNode:
    if isinstance(node, Leaf):
        # Deepest column level: one leaf column per measure, always shown
        return ColumnNode(
            kind=ColumnKind.GROUP,
            criteria=node.key,
            value=node.value,
            key=node.key,
            children=_measure_columns(node.key, measures),
            expandable=False,
        )

    children: List[ColumnNode] = [_to_column(child, measures) for child in node.children]
    children.append(ColumnNode(
        kind=ColumnKind.TOTAL,
        criteria=node.key,
        value=node.value,
        children=_measure_columns(node.key, measures),
    ))
    return ColumnNode(
        kind=ColumnKind.GROUP,
        criteria=node.key,
        value=node.value,
        key=node.key,
        children=tuple(children),
        expandable=True,
    )


def build_column_hierarchy(dataset: Dataset) -> ColumnHierarchy:
    """
    Group the records by the column dimensions.

    Every branch level, the top level included, ends with a TOTAL sibling
    scoped to the parent key. The deepest groups fan out into one column per
    measure, and a GRAND_TOTAL column with empty criteria comes last.
    """
    grouped = group_records(dataset.data, dataset.columns)
    nodes = tuple(_to_column(node, dataset.values) for node in grouped)
    total = ColumnNode(
        kind=ColumnKind.TOTAL,
        criteria=ROOT,
        children=_measure_columns(ROOT, dataset.values),
    )
    grand_total = ColumnNode(
        kind=ColumnKind.GRAND_TOTAL,
        criteria=ROOT,
        children=_measure_columns(ROOT, dataset.values),
    )
    return ColumnHierarchy(nodes=nodes, total=total, grand_total=grand_total)
