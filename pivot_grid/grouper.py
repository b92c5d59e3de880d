"""
grouper.py - Recursive partitioning of records by ordered dimension fields
"""
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from .types.dataset import FieldDescriptor
from .types.group_key import GroupKey, ROOT, normalize_value
from .types.nodes import Branch, GroupNode, Leaf


def distinct_values(records: Sequence[Mapping[str, Any]], field_id: str) -> List[Any]:
    """
    Distinct values of a field, missing values folded into BLANK.

    Ordered ascending by their text form; values with the same text keep their
    first-occurrence order.
    """
    seen = dict.fromkeys(normalize_value(r.get(field_id)) for r in records)
    return sorted(seen, key=str)


def partition(records: Sequence[Mapping[str, Any]], field_id: str) -> Dict[Any, List[Mapping[str, Any]]]:
    """Single pass split of records by one field, in distinct_values order."""
    buckets: Dict[Any, List[Mapping[str, Any]]] = {}
    for record in records:
        buckets.setdefault(normalize_value(record.get(field_id)), []).append(record)
    return {value: buckets[value] for value in sorted(buckets, key=str)}


def group_records(
    records: Sequence[Mapping[str, Any]],
    fields: Sequence[FieldDescriptor],
    parent_key: GroupKey = ROOT,
) -> Tuple[GroupNode, ...]:
    """
    Build a grouping tree over `records`.

    With no fields left the records come back unchanged as a single Leaf under
    `parent_key`. Otherwise each distinct value of fields[0] becomes a Branch
    over the remaining fields, or a Leaf when fields[0] is the last level.
    """
    if not fields:
        return (Leaf(key=parent_key, value=parent_key.value, records=tuple(records)),)

    current, remaining = fields[0], fields[1:]
    nodes: List[GroupNode] = []
    for value, subset in partition(records, current.id).items():
        key = parent_key.child(current.id, value)
        if remaining:
            nodes.append(Branch(key=key, value=value, children=group_records(subset, remaining, key)))
        else:
            nodes.append(Leaf(key=key, value=value, records=tuple(subset)))
    return tuple(nodes)
