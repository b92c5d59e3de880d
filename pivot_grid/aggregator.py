"""
aggregator.py - Measure aggregation over row records and column criteria
"""
import math
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from .types.dataset import AggregationFunction
from .types.errors import UnsupportedAggregationError
from .types.group_key import GroupKey, ROOT

Number = Union[int, float]
AggregateFn = Callable[[List[Number]], Number]


def coerce_measure(value: Any) -> Number:
    """
    Numeric value of a measure field.

    Missing, non-numeric, boolean and NaN values count as 0.
    """
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return 0
        return value
    return 0


def _sum(values: List[Number]) -> Number:
    return sum(values)


def _count(values: List[Number]) -> Number:
    return len(values)


def _average(values: List[Number]) -> Number:
    if not values:
        return 0
    return sum(values) / len(values)


def _min(values: List[Number]) -> Number:
    return min(values) if values else 0


def _max(values: List[Number]) -> Number:
    return max(values) if values else 0


BUILTIN_FUNCTIONS: Dict[str, AggregateFn] = {
    AggregationFunction.SUM.value: _sum,
    AggregationFunction.COUNT.value: _count,
    AggregationFunction.AVERAGE.value: _average,
    AggregationFunction.MIN.value: _min,
    AggregationFunction.MAX.value: _max,
}


class Aggregator:
    """
    Applies aggregation functions to the records of a row subtree.

    Functions are looked up case-insensitively. Additional functions can be
    registered; they receive the coerced measure values of the matching
    records, one entry per record.
    """

    def __init__(self, functions: Optional[Dict[str, AggregateFn]] = None):
        self._functions: Dict[str, AggregateFn] = {}
        for name, func in BUILTIN_FUNCTIONS.items():
            self.register(name, func)
        for name, func in (functions or {}).items():
            self.register(name, func)

    def register(self, name: str, func: AggregateFn) -> None:
        if not callable(func):
            raise TypeError(f"Aggregation function {name!r} is not callable")
        self._functions[str(name).lower()] = func

    @property
    def supported(self) -> List[str]:
        return sorted(self._functions)

    def resolve(self, name: Any) -> AggregateFn:
        if isinstance(name, AggregationFunction):
            name = name.value
        func = self._functions.get(str(name).lower()) if name is not None else None
        if func is None:
            raise UnsupportedAggregationError(str(name))
        return func

    def aggregate(
        self,
        records: Iterable[Mapping[str, Any]],
        criteria: GroupKey,
        fn: Any,
        measure_id: str,
    ) -> Number:
        """
        Aggregate `measure_id` over the records matching every criteria pair.

        `records` must already be the flattened leaf records of the row
        subtree; use aggregate_node to start from a hierarchy node.
        """
        func = self.resolve(fn)
        if criteria is None:
            criteria = ROOT
        if criteria.is_root:
            matches = records
        else:
            matches = (r for r in records if criteria.matches(r))
        values = [coerce_measure(r.get(measure_id)) for r in matches]
        return func(values)

    def aggregate_node(self, node, criteria: GroupKey, fn: Any, measure_id: str) -> Number:
        """Aggregate over every record reachable under a row node, at any depth."""
        return self.aggregate(node.iter_records(), criteria, fn, measure_id)
