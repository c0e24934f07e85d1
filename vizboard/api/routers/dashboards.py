# vizboard/api/routers/dashboards.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field
from vizboard.api.dependencies.database import get_db
from vizboard.services import dashboard_service
from vizboard.utils.logger import get_logger
from vizboard.utils.exceptions import ResourceNotFoundError

logger = get_logger(__name__)

router = APIRouter(prefix="/Dashboard")


class DashboardRequest(BaseModel):
    """Dashboard save request; jsonFormat is the opaque chart spec"""

    model_config = ConfigDict(populate_by_name=True)

    dashboard_name: Optional[str] = Field(None, alias="dashboardName")
    dataset_name: Optional[str] = Field(None, alias="datasetName")
    json_format: Optional[Any] = Field(None, alias="jsonFormat")
    is_multiple: Optional[bool] = Field(None, alias="isMultiple")


@router.get("")
async def list_dashboards(db: Session = Depends(get_db)):
    """List dashboards"""
    dashboards = dashboard_service.list_dashboards(db)
    return {"success": True, "data": dashboards, "count": len(dashboards)}


@router.post("")
async def save_dashboard(request: DashboardRequest, db: Session = Depends(get_db)):
    """Create or update a dashboard by name"""
    logger.info(
        "Saving dashboard",
        dashboard_name=request.dashboard_name,
        dataset_name=request.dataset_name,
    )

    dashboard = dashboard_service.upsert_dashboard(
        db, request.model_dump(by_alias=True, exclude_none=True)
    )

    return {
        "success": True,
        "message": "Dashboard saved successfully",
        "data": dashboard.to_dict(),
    }


@router.get("/stats")
async def get_dashboard_stats(db: Session = Depends(get_db)):
    """Counts of dashboards and datasets"""
    return {"success": True, "data": dashboard_service.get_dashboard_stats(db)}


@router.get("/{name}")
async def get_dashboard(name: str, db: Session = Depends(get_db)):
    dashboard = dashboard_service.get_dashboard(db, name)
    if dashboard is None:
        raise ResourceNotFoundError("Dashboard", name)
    return {"success": True, "data": dashboard.to_dict()}


@router.delete("/{name}")
async def delete_dashboard(name: str, db: Session = Depends(get_db)):
    if not dashboard_service.delete_dashboard(db, name):
        raise ResourceNotFoundError("Dashboard", name)
    return {"success": True, "message": "Dashboard deleted successfully"}
