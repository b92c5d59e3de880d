"""
Utilities for Arrow table handling.
"""
from typing import List, Dict, Any, Mapping, Optional, Sequence

import pyarrow as pa


def ensure_arrow_table(data: Any) -> pa.Table:
    """
    Ensure the input data is a PyArrow Table.

    Args:
        data: Input data (pa.Table, pandas.DataFrame, list of dicts, dict of lists)

    Returns:
        pa.Table
    """
    if isinstance(data, pa.Table):
        return data

    # Check for pandas DataFrame without importing pandas
    if hasattr(data, "to_dict") and hasattr(data, "columns"):
        return pa.Table.from_pandas(data, preserve_index=False)

    if isinstance(data, list):
        if not data:
            return pa.Table.from_pydict({})
        return pa.Table.from_pylist(data)

    if isinstance(data, dict):
        return pa.Table.from_pydict(data)

    raise ValueError(f"Could not convert {type(data)} to PyArrow Table")


def records_from_table(data: Any) -> List[Dict[str, Any]]:
    """
    Flatten tabular input into a list of record dicts.

    Nulls come back as None, which the grouper files under BLANK.
    """
    if isinstance(data, list) and all(isinstance(r, Mapping) for r in data):
        return [dict(r) for r in data]
    return ensure_arrow_table(data).to_pylist()


def unique_names(names: Sequence[str]) -> List[str]:
    """Suffix repeated column names so an Arrow schema stays unambiguous."""
    seen: Dict[str, int] = {}
    out = []
    for name in names:
        count = seen.get(name, 0) + 1
        seen[name] = count
        out.append(name if count == 1 else f"{name} ({count})")
    return out


def table_from_columns(
    names: Sequence[str],
    columns: Sequence[Sequence[Any]],
    metadata: Optional[Sequence[Optional[Dict[str, str]]]] = None,
) -> pa.Table:
    """Build a table from parallel column lists, with optional per-field metadata."""
    arrays = [pa.array(list(values)) for values in columns]
    metadata = metadata or [None] * len(arrays)
    fields = [
        pa.field(name, array.type, metadata=meta)
        for name, array, meta in zip(unique_names(names), arrays, metadata)
    ]
    return pa.Table.from_arrays(arrays, schema=pa.schema(fields))
