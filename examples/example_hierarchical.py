"""
Example usage of pivot_grid with nested row and column dimensions.
"""
import json

from pivot_grid.config import GridConfig
from pivot_grid.controller import PivotGridController
from pivot_grid.types.group_key import GroupKey


def print_grid(controller, view):
    header = [view.row_header] + [c.label for c in view.leaf_columns]
    print(" | ".join(header))
    for row in view.rows:
        cells = [str(controller.cell(row, c)) for c in view.leaf_columns]
        print(" | ".join(["  " * row.depth + row.label] + cells))


def main():
    controller = PivotGridController(config=GridConfig())

    dataset = {
        "Rows": [{"Id": "region", "Name": "Region"}, {"Id": "product", "Name": "Product"}],
        "Columns": [{"Id": "year", "Name": "Year"}, {"Id": "quarter", "Name": "Quarter"}],
        "Values": [{"Id": "sales", "Name": "Sales", "AggregationFunction": "Sum"}],
        "Data": [
            {"region": "East", "product": "A", "year": 2024, "quarter": "Q1", "sales": 100},
            {"region": "East", "product": "B", "year": 2024, "quarter": "Q2", "sales": 150},
            {"region": "West", "product": "A", "year": 2024, "quarter": "Q1", "sales": 200},
            {"region": "West", "product": "B", "year": 2025, "quarter": "Q1", "sales": 250},
            {"region": "East", "product": "A", "year": 2025, "quarter": "Q2", "sales": 50},
        ],
    }
    controller.load_dataset(dataset)

    # =================================================================
    # 1. Fully collapsed grid
    # =================================================================
    print("\nCollapsed:")
    print_grid(controller, controller.view())

    # =================================================================
    # 2. Expand a region and a year
    # =================================================================
    controller.toggle_row(GroupKey([("region", "East")]))
    controller.toggle_column(GroupKey([("year", 2024)]))

    view = controller.view()
    print("\nExpanded East and 2024:")
    print_grid(controller, view)

    # =================================================================
    # 3. Tooltip data and expansion snapshot
    # =================================================================
    print("\nCell detail:")
    print(json.dumps(controller.describe_cell(view.rows[1], view.leaf_columns[0]), indent=2))
    print("\nExpansion state:")
    print(json.dumps(controller.state.to_dict(), indent=2))


if __name__ == "__main__":
    main()
