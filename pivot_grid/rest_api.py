"""
rest_api.py - REST API for the pivot grid engine

Group keys travel over the wire in their encoded string form.
"""
import logging
from typing import Dict, Any, List, Optional
from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel

from pivot_grid.controller import PivotGridController, PivotView
from pivot_grid.tree import Axis
from pivot_grid.types.errors import ConfigurationError, UnsupportedAggregationError

logger = logging.getLogger(__name__)


# Pydantic models for API requests/responses
class FieldModel(BaseModel):
    """Pydantic model for a row or column dimension"""
    id: str
    name: Optional[str] = None


class MeasureModel(BaseModel):
    """Pydantic model for a measure"""
    id: str
    name: Optional[str] = None
    aggregation_function: str = "Sum"


class DatasetRequest(BaseModel):
    """Pydantic model for loading a dataset"""
    rows: List[FieldModel] = []
    columns: List[FieldModel] = []
    values: List[MeasureModel] = []
    data: List[Dict[str, Any]] = []


class ToggleRequest(BaseModel):
    """Pydantic model for an expand/collapse request"""
    axis: Axis
    key: str


class APIResponse(BaseModel):
    """Base API response model"""
    status: str
    data: Optional[Any] = None
    metadata: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class PivotGridAPI:
    """REST API over a single PivotGridController session"""

    def __init__(self, controller: Optional[PivotGridController] = None):
        self.controller = controller or PivotGridController()
        self.app = FastAPI(title="Pivot Grid Engine API")
        self._setup_routes()

    def _view(self) -> PivotView:
        try:
            return self.controller.view()
        except ConfigurationError as e:
            raise HTTPException(status_code=400, detail=str(e))

    def _resolve(self, row: int, column: int):
        view = self._view()
        if not 0 <= row < view.row_count:
            raise HTTPException(status_code=404, detail=f"Row index {row} is not visible")
        if not 0 <= column < len(view.leaf_columns):
            raise HTTPException(status_code=404, detail=f"Column index {column} is not visible")
        return view.rows[row], view.leaf_columns[column]

    def _setup_routes(self):
        """Setup all API routes"""

        @self.app.get("/health")
        async def health_check():
            return {"status": "healthy", "service": "pivot-grid", "version": "1.0"}

        @self.app.post("/dataset")
        async def load_dataset(request: DatasetRequest):
            try:
                dataset = self.controller.load_dataset(request.model_dump())
            except (ConfigurationError, UnsupportedAggregationError) as e:
                logger.warning("Rejected dataset: %s", e)
                raise HTTPException(status_code=400, detail=str(e))
            return APIResponse(
                status="success",
                metadata={"records": len(dataset.data)},
            )

        @self.app.get("/view")
        async def get_view():
            view = self._view()
            return APIResponse(status="success", data=view.to_dict())

        @self.app.post("/toggle")
        async def toggle(request: ToggleRequest):
            try:
                key = self.controller.resolve_key(request.axis, request.key)
                changed = self.controller.toggle(request.axis, key)
            except (ConfigurationError, ValueError) as e:
                raise HTTPException(status_code=400, detail=str(e))
            return APIResponse(
                status="success",
                data={
                    "changed": changed,
                    "expanded": self.controller.state.is_expanded(request.axis, key),
                },
                metadata={"expansion_state": self.controller.state.to_dict()},
            )

        @self.app.get("/cell")
        async def get_cell(row: int = Query(..., ge=0), column: int = Query(..., ge=0)):
            visible_row, leaf = self._resolve(row, column)
            return APIResponse(status="success", data={"value": self.controller.cell(visible_row, leaf)})

        @self.app.get("/cell/describe")
        async def describe_cell(row: int = Query(..., ge=0), column: int = Query(..., ge=0)):
            visible_row, leaf = self._resolve(row, column)
            return APIResponse(status="success", data=self.controller.describe_cell(visible_row, leaf))

    def get_app(self) -> FastAPI:
        return self.app


def create_api(controller: Optional[PivotGridController] = None) -> PivotGridAPI:
    """Create the REST API around a new or given controller"""
    return PivotGridAPI(controller)
