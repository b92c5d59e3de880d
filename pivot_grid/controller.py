"""
PivotGridController - renderer-facing facade over the pivot grid engine.

Coordinates: Dataset -> Hierarchy builders -> Projection (ExpansionState) -> Aggregator
"""
from typing import Optional, Any, Callable, Dict, List, Mapping, Union
from dataclasses import dataclass, field
import hashlib
import json
import logging

import pyarrow as pa

from .aggregator import Aggregator
from .cache.memory_cache import MemoryCache
from .config import GridConfig, get_config
from .hierarchy import ColumnHierarchy, RowHierarchy, build_column_hierarchy, build_row_hierarchy
from .projection import (
    HeaderCell,
    Labels,
    VisibleColumn,
    VisibleRow,
    header_rows,
    leaf_columns,
    project_columns,
    project_rows,
)
from .tree import Axis, AxisLike, ExpansionState
from .types.dataset import Dataset
from .types.errors import ConfigurationError
from .types.group_key import GroupKey
from .util.arrow_utils import table_from_columns

logger = logging.getLogger(__name__)

RowRef = Union[VisibleRow, GroupKey]


@dataclass
class PivotView:
    """Everything a renderer needs for one frame"""
    row_header: str
    columns: List[VisibleColumn]
    leaf_columns: List[VisibleColumn]
    header_rows: List[List[HeaderCell]]
    rows: List[VisibleRow]
    row_height: int
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "row_header": self.row_header,
            "columns": [c.to_dict() for c in self.columns],
            "leaf_columns": [
                {"index": i, "label": c.label, "criteria": c.criteria.encode(),
                 "measure": c.measure.id if c.measure is not None else None}
                for i, c in enumerate(self.leaf_columns)
            ],
            "rows": [r.to_dict() for r in self.rows],
            "row_count": self.row_count,
            "row_height": self.row_height,
            "stats": self.stats,
        }


class PivotGridController:
    """
    Owns the current dataset, both hierarchies and the expansion state of one
    display session. Every state change recomputes the view from scratch.
    """

    def __init__(
        self,
        config: Optional[GridConfig] = None,
        aggregator: Optional[Aggregator] = None,
        cache: Optional[MemoryCache] = None,
        state: Optional[ExpansionState] = None,
    ):
        self.config = config or get_config()
        self.aggregator = aggregator or Aggregator()
        self.cache = cache if cache is not None else MemoryCache(
            ttl=self.config.cache_ttl, max_size=self.config.cache_max_size
        )
        self.state = state or ExpansionState()
        self.labels = Labels(
            blank=self.config.blank_label,
            total=self.config.total_label,
            grand_total=self.config.grand_total_label,
        )

        self._dataset: Optional[Dataset] = None
        self._rows: Optional[RowHierarchy] = None
        self._columns: Optional[ColumnHierarchy] = None

        self._request_count = 0

    # Dataset lifecycle

    def load_dataset(self, dataset: Union[Dataset, Mapping[str, Any]]) -> Dataset:
        """
        Validate a dataset and rebuild both hierarchies.

        The expansion state is kept, so groups whose keys recur in the new data
        stay expanded.
        """
        if not isinstance(dataset, Dataset):
            dataset = Dataset.from_dict(dataset)
        else:
            dataset.validate()

        # Fail before building anything if a measure cannot be aggregated
        for measure in dataset.values:
            self.aggregator.resolve(measure.aggregation_function)

        self._rows = build_row_hierarchy(dataset)
        self._columns = build_column_hierarchy(dataset)
        self._dataset = dataset
        self.cache.clear()

        logger.info(
            "Loaded dataset: %d records, rows=%s, columns=%s, values=%s",
            len(dataset.data),
            [f.id for f in dataset.rows],
            [f.id for f in dataset.columns],
            [m.id for m in dataset.values],
        )
        return dataset

    def load_arrow(self, table: Any, rows, columns, values) -> Dataset:
        """Load a pyarrow Table (or pandas DataFrame) as the dataset."""
        return self.load_dataset(Dataset.from_arrow(table, rows, columns, values))

    @property
    def dataset(self) -> Dataset:
        self._require_dataset()
        return self._dataset

    @property
    def row_hierarchy(self) -> RowHierarchy:
        self._require_dataset()
        return self._rows

    @property
    def column_hierarchy(self) -> ColumnHierarchy:
        self._require_dataset()
        return self._columns

    def _require_dataset(self):
        if self._dataset is None:
            raise ConfigurationError("No dataset loaded", "dataset")

    # Projection

    def view(self) -> PivotView:
        """Project both hierarchies through the current expansion state."""
        self._request_count += 1
        dataset = self.dataset
        columns = project_columns(self._columns, self.state, dataset.values[0], self.labels)
        return PivotView(
            row_header=" / ".join(f.name for f in dataset.rows),
            columns=columns,
            leaf_columns=leaf_columns(columns),
            header_rows=header_rows(columns),
            rows=project_rows(self._rows, self.state, self.labels),
            row_height=self.config.row_height,
            stats=self.get_stats(),
        )

    # Cells

    def _row_node(self, row: RowRef):
        if isinstance(row, VisibleRow):
            return row.key, row.node
        node = self.row_hierarchy.find(row)
        if node is None:
            raise KeyError(f"Unknown row key: {row!r}")
        return row, node

    def _cache_key(self, row_key: GroupKey, column: VisibleColumn) -> str:
        payload = json.dumps([
            row_key.encode(),
            column.criteria.encode(),
            column.measure.aggregation_function.lower(),
            column.measure.id,
        ])
        return f"cell:{hashlib.sha256(payload.encode()).hexdigest()[:32]}"

    def cell(self, row: RowRef, column: VisibleColumn):
        """Aggregate for one visible row and one visible leaf column."""
        if column.measure is None:
            raise ValueError(f"Column {column.label!r} is not a leaf column")
        row_key, node = self._row_node(row)

        cache_key = None
        if self.config.enable_aggregate_cache:
            cache_key = self._cache_key(row_key, column)
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        value = self.aggregator.aggregate_node(
            node, column.criteria, column.measure.aggregation_function, column.measure.id
        )
        if cache_key is not None:
            self.cache.set(cache_key, value)
        return value

    def describe_cell(self, row: RowRef, column: VisibleColumn) -> Dict[str, Any]:
        """
        Data behind a cell tooltip: the row group, the column group, and the
        measure with its aggregate.
        """
        row_key, _ = self._row_node(row)
        dataset = self.dataset

        def describe(key: GroupKey):
            if key is None or key.is_root:
                return None
            return {
                "field": dataset.field_name(key.field_id) or key.field_id,
                "value": self.labels.value(key.value),
            }

        return {
            "row": describe(row_key),
            "column": describe(column.criteria),
            "measure": column.measure.name if column.measure is not None else None,
            "function": column.measure.aggregation_function if column.measure is not None else None,
            "value": self.cell(row_key, column),
        }

    # Expansion

    def _expandable_keys(self, axis: AxisLike):
        if Axis(axis) is Axis.ROWS:
            return self.row_hierarchy.expandable_keys
        return self.column_hierarchy.expandable_keys

    def resolve_key(self, axis: AxisLike, encoded: str) -> GroupKey:
        """
        Turn an encoded key from the wire into a GroupKey.

        Keys of the current hierarchy are matched on their encoding first, so
        values whose type does not survive decode() still resolve to the live
        key. Raises ValueError for a malformed encoding.
        """
        for key in self._expandable_keys(axis):
            if key.encode() == encoded:
                return key
        return GroupKey.decode(encoded)

    def toggle(self, axis: AxisLike, key: GroupKey) -> bool:
        """Toggle a group; keys missing from the current hierarchy are ignored."""
        changed = self.state.toggle(axis, key, self._expandable_keys(axis))
        if not changed:
            logger.debug("Ignored toggle of unknown %s key %r", Axis(axis).value, key)
        return changed

    def toggle_row(self, key: GroupKey) -> bool:
        return self.toggle(Axis.ROWS, key)

    def toggle_column(self, key: GroupKey) -> bool:
        return self.toggle(Axis.COLUMNS, key)

    def row_toggle_handles(self, view: Optional[PivotView] = None) -> Dict[GroupKey, Callable[[], bool]]:
        """Bound toggle callables for every visible expandable row."""
        view = view or self.view()
        return {
            r.key: (lambda key=r.key: self.toggle_row(key))
            for r in view.rows if r.expandable
        }

    def column_toggle_handles(self, view: Optional[PivotView] = None) -> Dict[GroupKey, Callable[[], bool]]:
        """Bound toggle callables for every visible expandable column."""
        view = view or self.view()
        handles: Dict[GroupKey, Callable[[], bool]] = {}

        def walk(columns):
            for c in columns:
                if c.expandable:
                    handles[c.key] = (lambda key=c.key: self.toggle_column(key))
                walk(c.children)

        walk(view.columns)
        return handles

    def expand_all(self):
        """Pre-seed the state so every group on both axes is expanded."""
        self.state.expand_all(Axis.ROWS, self.row_hierarchy.expandable_keys)
        self.state.expand_all(Axis.COLUMNS, self.column_hierarchy.expandable_keys)

    # Export

    def to_arrow(self, view: Optional[PivotView] = None) -> pa.Table:
        """
        The visible grid as an Arrow table, one row per visible row.

        Cell columns carry their encoded criteria and measure id as field
        metadata, since header paths alone may repeat.
        """
        view = view or self.view()

        names = ["depth", view.row_header or "label"]
        for path in _leaf_paths(view.columns):
            names.append(" / ".join(path))

        data: List[List[Any]] = [[r.depth for r in view.rows], [r.label for r in view.rows]]
        metadata: List[Optional[Dict[str, str]]] = [None, None]
        for column in view.leaf_columns:
            data.append([self.cell(r, column) for r in view.rows])
            metadata.append({
                "criteria": column.criteria.encode(),
                "measure": column.measure.id,
                "kind": column.kind.value,
            })
        return table_from_columns(names, data, metadata)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "requests": self._request_count,
            "cache_hits": self.cache.hits,
            "cache_misses": self.cache.misses,
            "expanded_rows": len(self.state.rows),
            "expanded_columns": len(self.state.columns),
        }


def _leaf_paths(columns: List[VisibleColumn], prefix=()) -> List[List[str]]:
    paths = []
    for c in columns:
        path = prefix + (c.label,)
        if c.is_leaf:
            paths.append(list(path))
        else:
            paths.extend(_leaf_paths(c.children, path))
    return paths
