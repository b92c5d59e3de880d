from .dataset import AggregationFunction, Dataset, FieldDescriptor, MeasureDescriptor
from .errors import ConfigurationError, UnsupportedAggregationError
from .group_key import BLANK, ROOT, GroupKey
from .nodes import Branch, ColumnKind, ColumnNode, GrandTotalRow, GroupNode, Leaf

__all__ = [
    "AggregationFunction",
    "Dataset",
    "FieldDescriptor",
    "MeasureDescriptor",
    "ConfigurationError",
    "UnsupportedAggregationError",
    "BLANK",
    "ROOT",
    "GroupKey",
    "Branch",
    "ColumnKind",
    "ColumnNode",
    "GrandTotalRow",
    "GroupNode",
    "Leaf",
]
