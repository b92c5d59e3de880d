"""
Types and validation for pivot grid datasets.

A Dataset bundles the flat records with the row dimensions, column dimensions
and measures that drive the grid.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any, Mapping, Optional, Sequence

from .errors import ConfigurationError


class AggregationFunction(str, Enum):
    """Built-in aggregation functions"""
    SUM = "Sum"
    COUNT = "Count"
    AVERAGE = "Average"
    MIN = "Min"
    MAX = "Max"


def _pick(d: Mapping[str, Any], *names: str, default: Any = None) -> Any:
    # Accept both PascalCase JSON keys (Id, Name) and snake_case keys
    for name in names:
        if name in d:
            return d[name]
    return default


@dataclass(frozen=True)
class FieldDescriptor:
    id: str
    name: str = ""

    def __post_init__(self):
        if not self.name:
            object.__setattr__(self, "name", str(self.id))

    @staticmethod
    def from_dict(d: Any, section: str = "rows") -> "FieldDescriptor":
        if isinstance(d, FieldDescriptor):
            return d
        if isinstance(d, str):
            return FieldDescriptor(id=d)
        if not isinstance(d, Mapping):
            raise ConfigurationError(f"Invalid field descriptor in '{section}': {d!r}", section)
        field_id = _pick(d, "Id", "id")
        if field_id is None or field_id == "":
            raise ConfigurationError(f"Field descriptor in '{section}' has no Id: {dict(d)!r}", section)
        return FieldDescriptor(id=str(field_id), name=str(_pick(d, "Name", "name", default="") or ""))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class MeasureDescriptor:
    id: str
    name: str = ""
    aggregation_function: str = AggregationFunction.SUM.value

    def __post_init__(self):
        if not self.name:
            object.__setattr__(self, "name", str(self.id))
        if isinstance(self.aggregation_function, AggregationFunction):
            object.__setattr__(self, "aggregation_function", self.aggregation_function.value)

    @staticmethod
    def from_dict(d: Any) -> "MeasureDescriptor":
        if isinstance(d, MeasureDescriptor):
            return d
        if not isinstance(d, Mapping):
            raise ConfigurationError(f"Invalid measure descriptor in 'values': {d!r}", "values")
        measure_id = _pick(d, "Id", "id")
        if measure_id is None or measure_id == "":
            raise ConfigurationError(f"Measure descriptor in 'values' has no Id: {dict(d)!r}", "values")
        fn = _pick(d, "AggregationFunction", "aggregation_function", "agg",
                   default=AggregationFunction.SUM.value)
        return MeasureDescriptor(
            id=str(measure_id),
            name=str(_pick(d, "Name", "name", default="") or ""),
            aggregation_function=fn,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "aggregation_function": self.aggregation_function}


@dataclass
class Dataset:
    rows: List[FieldDescriptor] = field(default_factory=list)
    columns: List[FieldDescriptor] = field(default_factory=list)
    values: List[MeasureDescriptor] = field(default_factory=list)
    data: Sequence[Mapping[str, Any]] = field(default_factory=list)

    def validate(self) -> None:
        """Reject datasets that cannot be grouped; never groups partially."""
        for section in ("rows", "columns", "values"):
            if not getattr(self, section):
                raise ConfigurationError(f"Dataset is missing required section '{section}'", section)

        if isinstance(self.data, (str, bytes, Mapping)) or not isinstance(self.data, Sequence):
            raise ConfigurationError("Dataset 'data' must be a sequence of records", "data")

        for i, record in enumerate(self.data):
            if not isinstance(record, Mapping):
                raise ConfigurationError(f"Record {i} in 'data' is not a mapping: {record!r}", "data")

        row_ids = [f.id for f in self.rows]
        col_ids = [f.id for f in self.columns]
        if len(set(row_ids)) != len(row_ids):
            raise ConfigurationError("Dataset 'rows' declares the same field twice", "rows")
        if len(set(col_ids)) != len(col_ids):
            raise ConfigurationError("Dataset 'columns' declares the same field twice", "columns")

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Dataset":
        if not isinstance(d, Mapping):
            raise ConfigurationError(f"Dataset must be a mapping, got {type(d).__name__}")

        rows = _pick(d, "Rows", "rows") or []
        columns = _pick(d, "Columns", "columns") or []
        values = _pick(d, "Values", "values") or []
        data = _pick(d, "Data", "data", default=[])

        for section, items in (("rows", rows), ("columns", columns), ("values", values)):
            if not isinstance(items, (list, tuple)):
                raise ConfigurationError(f"Dataset section '{section}' must be a list", section)

        dataset = Dataset(
            rows=[FieldDescriptor.from_dict(r, "rows") for r in rows],
            columns=[FieldDescriptor.from_dict(c, "columns") for c in columns],
            values=[MeasureDescriptor.from_dict(v) for v in values],
            data=list(data) if isinstance(data, (list, tuple)) else data,
        )
        dataset.validate()
        return dataset

    @staticmethod
    def from_arrow(
        table: Any,
        rows: Sequence[Any],
        columns: Sequence[Any],
        values: Sequence[Any],
    ) -> "Dataset":
        """Build a dataset from a pyarrow Table, pandas DataFrame or list of dicts."""
        from ..util.arrow_utils import records_from_table

        return Dataset.from_dict({
            "rows": list(rows),
            "columns": list(columns),
            "values": list(values),
            "data": records_from_table(table),
        })

    def field_name(self, field_id: str) -> Optional[str]:
        """Display name of a declared row or column field."""
        for f in list(self.rows) + list(self.columns):
            if f.id == field_id:
                return f.name
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": [f.to_dict() for f in self.rows],
            "columns": [f.to_dict() for f in self.columns],
            "values": [m.to_dict() for m in self.values],
            "data": [dict(r) for r in self.data],
        }
