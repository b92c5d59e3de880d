"""
projection.py - Prune hierarchies to the currently visible slice

Traversal is pre-order and stops descending at any collapsed group, so the
work done here is proportional to what is on screen rather than to the full
cross product of dimension values.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .hierarchy import ColumnHierarchy, RowHierarchy
from .tree import Axis, ExpansionState
from .types.dataset import MeasureDescriptor
from .types.group_key import BLANK, GroupKey
from .types.nodes import Branch, ColumnKind, ColumnNode


@dataclass(frozen=True)
class Labels:
    blank: str = "(blank)"
    total: str = "Total"
    grand_total: str = "Grand Total"

    def value(self, value: Any) -> str:
        if value is BLANK:
            return self.blank
        return str(value)


DEFAULT_LABELS = Labels()


@dataclass
class VisibleRow:
    depth: int
    key: GroupKey
    label: str
    is_grand_total: bool = False
    expandable: bool = False
    expanded: bool = False
    leaf_span: int = 1
    node: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "depth": self.depth,
            "key": self.key.encode(),
            "label": self.label,
            "is_grand_total": self.is_grand_total,
            "expandable": self.expandable,
            "expanded": self.expanded,
            "leaf_span": self.leaf_span,
        }


@dataclass
class VisibleColumn:
    label: str
    depth: int
    kind: ColumnKind
    criteria: GroupKey
    key: Optional[GroupKey] = None
    measure: Optional[MeasureDescriptor] = None
    expandable: bool = False
    expanded: bool = False
    leaf_span: int = 1
    children: List["VisibleColumn"] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "depth": self.depth,
            "kind": self.kind.value,
            "key": self.key.encode() if self.key is not None else None,
            "criteria": self.criteria.encode(),
            "measure": self.measure.id if self.measure is not None else None,
            "expandable": self.expandable,
            "expanded": self.expanded,
            "leaf_span": self.leaf_span,
            "children": [c.to_dict() for c in self.children],
        }


@dataclass(frozen=True)
class HeaderCell:
    column: VisibleColumn
    col_span: int
    is_placeholder: bool = False


def _project_row_nodes(nodes, state: ExpansionState, depth: int, labels: Labels, out: List[VisibleRow]) -> int:
    span = 0
    for node in nodes:
        expandable = isinstance(node, Branch)
        expanded = expandable and state.is_expanded(Axis.ROWS, node.key)
        row = VisibleRow(
            depth=depth,
            key=node.key,
            label=labels.value(node.value),
            expandable=expandable,
            expanded=expanded,
            node=node,
        )
        out.append(row)
        if expanded:
            row.leaf_span = _project_row_nodes(node.children, state, depth + 1, labels, out) or 1
        span += row.leaf_span
    return span


def project_rows(hierarchy: RowHierarchy, state: ExpansionState, labels: Labels = DEFAULT_LABELS) -> List[VisibleRow]:
    """
    Flatten the visible part of the row hierarchy, grand total last.

    Each entry carries its nesting depth for indentation; collapsed branches
    appear once and stand for their whole subtree.
    """
    rows: List[VisibleRow] = []
    _project_row_nodes(hierarchy.nodes, state, 0, labels, rows)
    rows.append(VisibleRow(
        depth=0,
        key=hierarchy.grand_total.key,
        label=labels.grand_total,
        is_grand_total=True,
        node=hierarchy.grand_total,
    ))
    return rows


def _column_label(node: ColumnNode, labels: Labels) -> str:
    if node.kind is ColumnKind.MEASURE:
        return node.measure.name
    if node.kind is ColumnKind.TOTAL:
        if node.criteria.is_root:
            return labels.total
        return f"{labels.value(node.value)} {labels.total}"
    if node.kind is ColumnKind.GRAND_TOTAL:
        return labels.grand_total
    return labels.value(node.value)


def _project_column(
    node: ColumnNode,
    state: ExpansionState,
    depth: int,
    primary_measure: Optional[MeasureDescriptor],
    labels: Labels,
) -> VisibleColumn:
    column = VisibleColumn(
        label=_column_label(node, labels),
        depth=depth,
        kind=node.kind,
        criteria=node.criteria,
        key=node.key,
        measure=node.measure,
        expandable=node.expandable,
    )
    if node.expandable and not state.is_expanded(Axis.COLUMNS, node.key):
        # A collapsed group is one slot showing the primary measure for its key
        column.measure = primary_measure
        return column

    column.expanded = node.expandable
    column.children = [
        _project_column(child, state, depth + 1, primary_measure, labels) for child in node.children
    ]
    if column.children:
        column.leaf_span = sum(c.leaf_span for c in column.children)
    return column


def project_columns(
    hierarchy: ColumnHierarchy,
    state: ExpansionState,
    primary_measure: Optional[MeasureDescriptor] = None,
    labels: Labels = DEFAULT_LABELS,
) -> List[VisibleColumn]:
    """Visible column header tree, grand total column last."""
    return [_project_column(node, state, 0, primary_measure, labels) for node in hierarchy.top_level]


def leaf_columns(tree: List[VisibleColumn]) -> List[VisibleColumn]:
    """Visible leaf slots in display order; each resolves one cell per row."""
    out: List[VisibleColumn] = []

    def walk(columns):
        for column in columns:
            if column.is_leaf:
                out.append(column)
            else:
                walk(column.children)

    walk(tree)
    return out


def header_depth(tree: List[VisibleColumn]) -> int:
    return max((c.depth for c in leaf_columns(tree)), default=-1) + 1


def header_rows(tree: List[VisibleColumn]) -> List[List[HeaderCell]]:
    """
    Lay the header tree out as table header rows.

    A leaf that ends above the deepest row is padded with placeholder cells
    below it so every header row spans the same number of leaf columns.
    """
    rows: List[List[HeaderCell]] = []
    for level in range(header_depth(tree)):
        cells: List[HeaderCell] = []

        def collect(column: VisibleColumn):
            if column.depth == level:
                cells.append(HeaderCell(column=column, col_span=column.leaf_span))
            elif column.is_leaf:
                cells.append(HeaderCell(column=column, col_span=1, is_placeholder=True))
            else:
                for child in column.children:
                    collect(child)

        for column in tree:
            collect(column)
        rows.append(cells)
    return rows
