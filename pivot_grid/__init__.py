"""
pivot_grid package - pivot/cross-tab aggregation engine

Expose the controller and the core building blocks.
"""
from .aggregator import Aggregator
from .controller import PivotGridController, PivotView
from .hierarchy import build_column_hierarchy, build_row_hierarchy
from .projection import project_columns, project_rows
from .tree import Axis, ExpansionState
from .types import (
    BLANK,
    ConfigurationError,
    Dataset,
    FieldDescriptor,
    GroupKey,
    MeasureDescriptor,
    UnsupportedAggregationError,
)

__all__ = [
    "Aggregator",
    "PivotGridController",
    "PivotView",
    "build_column_hierarchy",
    "build_row_hierarchy",
    "project_columns",
    "project_rows",
    "Axis",
    "ExpansionState",
    "BLANK",
    "ConfigurationError",
    "Dataset",
    "FieldDescriptor",
    "GroupKey",
    "MeasureDescriptor",
    "UnsupportedAggregationError",
]
