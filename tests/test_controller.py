"""
Tests for PivotGridController: the worked example, totals, toggling and export.
"""
import pytest
import pyarrow as pa
from datetime import date
from fractions import Fraction

from pivot_grid.config import GridConfig
from pivot_grid.controller import PivotGridController
from pivot_grid.tree import Axis
from pivot_grid.types.errors import ConfigurationError, UnsupportedAggregationError
from pivot_grid.types.group_key import BLANK, GroupKey, ROOT
from pivot_grid.types.nodes import ColumnKind

WORKED_EXAMPLE = {
    "Rows": [{"Id": "Region", "Name": "Region"}],
    "Columns": [{"Id": "Rep", "Name": "Sales Rep"}],
    "Values": [{"Id": "Sales", "Name": "Sales", "AggregationFunction": "Sum"}],
    "Data": [
        {"Region": "East", "Rep": "A", "Sales": 10},
        {"Region": "East", "Rep": "B", "Sales": 5},
        {"Region": "West", "Rep": "C", "Sales": 7},
    ],
}


@pytest.fixture
def controller() -> PivotGridController:
    """Fixture with the worked example loaded."""
    controller = PivotGridController(config=GridConfig())
    controller.load_dataset(WORKED_EXAMPLE)
    return controller


@pytest.fixture
def nested_controller() -> PivotGridController:
    """Fixture with two row levels and two column levels."""
    controller = PivotGridController(config=GridConfig())
    controller.load_dataset({
        "rows": [{"id": "Region"}, {"id": "Country"}],
        "columns": [{"id": "Year"}, {"id": "Quarter"}],
        "values": [
            {"id": "Sales", "aggregation_function": "Sum"},
            {"id": "Sales", "name": "Orders", "aggregation_function": "Count"},
        ],
        "data": [
            {"Region": "East", "Country": "US", "Year": 2024, "Quarter": "Q1", "Sales": 100},
            {"Region": "East", "Country": "US", "Year": 2024, "Quarter": "Q2", "Sales": 50},
            {"Region": "East", "Country": "CA", "Year": 2025, "Quarter": "Q1", "Sales": 70},
            {"Region": "West", "Country": "US", "Year": 2025, "Quarter": "Q2", "Sales": 30},
            {"Region": "West", "Year": 2024, "Quarter": "Q1", "Sales": 8},
        ],
    })
    return controller


def _row(view, label):
    return next(r for r in view.rows if r.label == label)


def _leaf(view, criteria: GroupKey, measure: str = "Sales"):
    return next(c for c in view.leaf_columns if c.criteria == criteria and c.measure.name == measure)


def test_worked_example(controller):
    """East=15, West=7, A=10, C=7, grand total 22"""
    view = controller.view()
    grand_column = _leaf(view, ROOT)
    grand_row = _row(view, "Grand Total")

    assert controller.cell(_row(view, "East"), grand_column) == 15
    assert controller.cell(_row(view, "West"), grand_column) == 7
    assert controller.cell(grand_row, grand_column) == 22
    assert controller.cell(grand_row, _leaf(view, GroupKey([("Rep", "A")]))) == 10
    assert controller.cell(grand_row, _leaf(view, GroupKey([("Rep", "C")]))) == 7
    assert controller.cell(_row(view, "West"), _leaf(view, GroupKey([("Rep", "A")]))) == 0


def test_view_shape(controller):
    view = controller.view()
    assert view.row_count == 3
    assert view.row_height == 28
    assert view.row_header == "Region"
    assert [c.label for c in view.columns] == ["A", "B", "C", "Total", "Grand Total"]
    assert len(view.leaf_columns) == 5
    assert view.rows[-1].is_grand_total


def test_cell_by_row_key(controller):
    view = controller.view()
    assert controller.cell(GroupKey([("Region", "East")]), _leaf(view, GroupKey([("Rep", "B")]))) == 5
    with pytest.raises(KeyError):
        controller.cell(GroupKey([("Region", "North")]), view.leaf_columns[0])


def test_grand_total_matches_dataset_aggregate(nested_controller):
    nested_controller.expand_all()
    view = nested_controller.view()
    grand_row = _row(view, "Grand Total")
    assert nested_controller.cell(grand_row, _leaf(view, ROOT)) == 258
    assert nested_controller.cell(grand_row, _leaf(view, ROOT, "Orders")) == 5


def test_collapsed_column_matches_its_total(nested_controller):
    """A collapsed group shows the same aggregate as its TOTAL column"""
    y2024 = GroupKey([("Year", 2024)])
    collapsed = nested_controller.view()
    collapsed_slot = next(c for c in collapsed.leaf_columns if c.key == y2024)
    grand_row = _row(collapsed, "Grand Total")
    assert nested_controller.cell(grand_row, collapsed_slot) == 158

    nested_controller.toggle_column(y2024)
    expanded = nested_controller.view()
    total = next(c for c in expanded.leaf_columns
                 if c.criteria == y2024 and c.measure.name == "Sales")
    q1 = _leaf(expanded, y2024.child("Quarter", "Q1"))
    q2 = _leaf(expanded, y2024.child("Quarter", "Q2"))
    grand_row = _row(expanded, "Grand Total")

    assert nested_controller.cell(grand_row, total) == 158
    assert nested_controller.cell(grand_row, q1) + nested_controller.cell(grand_row, q2) == 158


def test_row_additivity(nested_controller):
    nested_controller.toggle_row(GroupKey([("Region", "East")]))
    nested_controller.toggle_row(GroupKey([("Region", "West")]))
    view = nested_controller.view()

    for column in view.leaf_columns:
        for parent in (r for r in view.rows if r.expanded):
            children = [r for r in view.rows if parent.key.is_ancestor_of(r.key) and r.depth == parent.depth + 1]
            assert nested_controller.cell(parent, column) == sum(nested_controller.cell(c, column) for c in children)


def test_blank_row_counted_once(nested_controller):
    west = GroupKey([("Region", "West")])
    nested_controller.toggle_row(west)
    view = nested_controller.view()
    blank = _row(view, "(blank)")
    orders = _leaf(view, ROOT, "Orders")
    assert blank.depth == 1
    assert nested_controller.cell(blank, orders) == 1
    assert nested_controller.cell(blank, _leaf(view, ROOT)) == 8


def test_toggle_unknown_key_is_noop(nested_controller):
    assert not nested_controller.toggle_row(GroupKey([("Region", "North")]))
    # Leaves are not expandable either
    assert not nested_controller.toggle_row(GroupKey([("Region", "East"), ("Country", "US")]))
    assert nested_controller.state.rows == set()


def test_toggle_handles(nested_controller):
    handles = nested_controller.row_toggle_handles()
    east = GroupKey([("Region", "East")])
    assert set(handles) == {east, GroupKey([("Region", "West")])}

    assert handles[east]()
    assert nested_controller.state.is_expanded(Axis.ROWS, east)

    column_handles = nested_controller.column_toggle_handles()
    assert set(column_handles) == {GroupKey([("Year", 2024)]), GroupKey([("Year", 2025)])}


def test_expansion_survives_reload(nested_controller):
    east = GroupKey([("Region", "East")])
    nested_controller.toggle_row(east)
    nested_controller.load_dataset(nested_controller.dataset.to_dict())
    view = nested_controller.view()
    assert _row(view, "East").expanded
    assert [r.label for r in view.rows][:3] == ["East", "CA", "US"]


def test_describe_cell(controller):
    view = controller.view()
    detail = controller.describe_cell(_row(view, "East"), _leaf(view, GroupKey([("Rep", "A")])))
    assert detail == {
        "row": {"field": "Region", "value": "East"},
        "column": {"field": "Sales Rep", "value": "A"},
        "measure": "Sales",
        "function": "Sum",
        "value": 10,
    }
    grand = controller.describe_cell(_row(view, "Grand Total"), _leaf(view, ROOT))
    assert grand["row"] is None and grand["column"] is None
    assert grand["value"] == 22


def test_cells_are_memoized(controller):
    view = controller.view()
    column = view.leaf_columns[0]
    controller.cell(view.rows[0], column)
    hits = controller.cache.hits
    controller.cell(view.rows[0], column)
    assert controller.cache.hits == hits + 1


def test_to_arrow(controller):
    table = controller.to_arrow()
    assert isinstance(table, pa.Table)
    assert table.column_names == [
        "depth", "Region", "A / Sales", "B / Sales", "C / Sales", "Total / Sales", "Grand Total / Sales",
    ]
    assert table.column("Region").to_pylist() == ["East", "West", "Grand Total"]
    assert table.column("Grand Total / Sales").to_pylist() == [15, 7, 22]


def test_to_arrow_field_metadata_tells_columns_apart():
    """Columns whose headers stringify alike carry their own criteria"""
    controller = PivotGridController(config=GridConfig())
    controller.load_dataset({
        "rows": [{"id": "Region"}],
        "columns": [{"id": "Rep"}],
        "values": [{"id": "Sales"}],
        "data": [
            {"Region": "East", "Rep": 1, "Sales": 3},
            {"Region": "East", "Rep": "1", "Sales": 4},
        ],
    })
    table = controller.to_arrow()
    first = table.schema.field("1 / Sales")
    second = table.schema.field("1 / Sales (2)")

    assert first.metadata[b"criteria"] == GroupKey([("Rep", 1)]).encode().encode()
    assert second.metadata[b"criteria"] == GroupKey([("Rep", "1")]).encode().encode()
    assert first.metadata[b"measure"] == b"Sales"
    assert table.schema.field("depth").metadata is None
    assert table.column("1 / Sales").to_pylist() == [3, 3]
    assert table.column("1 / Sales (2)").to_pylist() == [4, 4]


def test_load_arrow_table():
    controller = PivotGridController(config=GridConfig())
    table = pa.table({
        "Region": ["East", "East", None],
        "Rep": ["A", "B", "C"],
        "Sales": [10, 5, 7],
    })
    controller.load_arrow(table, rows=["Region"], columns=["Rep"], values=[{"id": "Sales"}])
    view = controller.view()
    assert [r.label for r in view.rows] == ["(blank)", "East", "Grand Total"]
    assert controller.cell(view.rows[0], view.leaf_columns[-1]) == 7


@pytest.mark.parametrize("section", ["Rows", "Columns", "Values"])
def test_missing_section_rejected(section):
    controller = PivotGridController(config=GridConfig())
    bad = dict(WORKED_EXAMPLE)
    bad[section] = []
    with pytest.raises(ConfigurationError) as exc_info:
        controller.load_dataset(bad)
    assert exc_info.value.section == section.lower()
    assert section.lower() in str(exc_info.value)


def test_unsupported_measure_rejected_on_load():
    controller = PivotGridController(config=GridConfig())
    bad = dict(WORKED_EXAMPLE)
    bad["Values"] = [{"Id": "Sales", "AggregationFunction": "Median"}]
    with pytest.raises(UnsupportedAggregationError):
        controller.load_dataset(bad)
    with pytest.raises(ConfigurationError):
        controller.view()


def test_grand_total_column_is_last(nested_controller):
    view = nested_controller.view()
    assert view.columns[-1].kind is ColumnKind.GRAND_TOTAL
    assert [c.measure.name for c in view.columns[-1].children] == ["Sales", "Orders"]


def test_nan_dimension_keeps_columns_additive():
    """NaN column values land under BLANK, so leaf columns add up to the total"""
    controller = PivotGridController(config=GridConfig())
    controller.load_dataset({
        "rows": [{"id": "Region"}],
        "columns": [{"id": "Rep"}],
        "values": [{"id": "Sales"}],
        "data": [
            {"Region": "East", "Rep": float("nan"), "Sales": 5},
            {"Region": "East", "Rep": "A", "Sales": 1},
        ],
    })
    view = controller.view()
    grand_row = _row(view, "Grand Total")

    assert [c.criteria for c in view.leaf_columns] == [
        GroupKey([("Rep", BLANK)]), GroupKey([("Rep", "A")]), ROOT, ROOT,
    ]
    assert [controller.cell(grand_row, c) for c in view.leaf_columns] == [5, 1, 6, 6]


def test_date_keys_resolve_from_encoded_form():
    controller = PivotGridController(config=GridConfig())
    table = pa.table({
        "Day": pa.array([date(2024, 1, 1), date(2024, 1, 1), date(2024, 1, 2)], pa.date32()),
        "Rep": ["A", "B", "A"],
        "Sales": [1, 2, 3],
    })
    controller.load_arrow(table, rows=["Day", "Rep"], columns=["Rep"], values=[{"id": "Sales"}])
    first = controller.view().rows[0]

    key = controller.resolve_key(Axis.ROWS, first.to_dict()["key"])
    assert key == first.key
    assert controller.toggle(Axis.ROWS, key)
    assert [r.label for r in controller.view().rows] == [
        "2024-01-01", "A", "B", "2024-01-02", "Grand Total",
    ]


def test_undecodable_values_resolve_against_hierarchy():
    """Values without a dedicated encoding still map back to the live key"""
    controller = PivotGridController(config=GridConfig())
    controller.load_dataset({
        "rows": [{"id": "Share"}, {"id": "Rep"}],
        "columns": [{"id": "Rep"}],
        "values": [{"id": "Sales"}],
        "data": [{"Share": Fraction(1, 2), "Rep": "A", "Sales": 1}],
    })
    share = controller.view().rows[0].key
    encoded = share.encode()

    assert GroupKey.decode(encoded) != share
    assert controller.resolve_key(Axis.ROWS, encoded) == share
    with pytest.raises(ValueError):
        controller.resolve_key(Axis.ROWS, "Share_1/2")
