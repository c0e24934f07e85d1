# vizboard/api/routers/csv.py
"""
Raw CSV inspection endpoints.

These read files straight from disk and bypass the dataset store. Only files
under the upload or data directory can be read.
"""

from fastapi import APIRouter, Query
from typing import Optional
from pathlib import Path
from vizboard.core.config import settings
from vizboard.services import csv_service
from vizboard.utils.logger import get_logger
from vizboard.utils.exceptions import ResourceNotFoundError, ValidationError

logger = get_logger(__name__)

router = APIRouter(prefix="/api/csv")


def resolve_csv_path(csv_path: Optional[str]) -> str:
    """Resolve csvPath and make sure it points inside an allowed directory"""
    if not csv_path or not csv_path.strip():
        raise ValidationError("CSV path is required", "csvPath")

    resolved = Path(csv_path.strip()).resolve()
    roots = [
        Path(settings.files.upload_dir).resolve(),
        Path(settings.files.data_dir).resolve(),
    ]
    if not any(resolved == root or root in resolved.parents for root in roots):
        logger.warning("Rejected CSV path outside allowed directories", csv_path=csv_path)
        raise ValidationError(
            "CSV path must be inside the upload or data directory", "csvPath"
        )

    return str(resolved)


def _columns_of(rows):
    return list(rows[0].keys()) if rows else []


@router.get("/read")
async def read_csv(csv_path: Optional[str] = Query(None, alias="csvPath")):
    """Read every row of a CSV file"""
    path = resolve_csv_path(csv_path)
    logger.info("Reading CSV data", csv_path=path)

    rows = csv_service.read_all(path)
    if not rows:
        raise ResourceNotFoundError("CSV data", path)

    return {
        "success": True,
        "data": rows,
        "recordCount": len(rows),
        "columns": _columns_of(rows),
    }


@router.get("/info")
async def csv_info(csv_path: Optional[str] = Query(None, alias="csvPath")):
    """File metadata, row and column counts"""
    return {"success": True, "data": csv_service.info(resolve_csv_path(csv_path))}


@router.get("/columns")
async def read_csv_columns(
    csv_path: Optional[str] = Query(None, alias="csvPath"),
    columns: Optional[str] = None,
):
    """Read selected columns; ``columns`` is a comma-separated list"""
    path = resolve_csv_path(csv_path)
    if not columns or not columns.strip():
        raise ValidationError(
            "Columns parameter is required (comma-separated list)", "columns"
        )

    column_list = [column.strip() for column in columns.split(",") if column.strip()]
    rows = csv_service.read_columns(path, column_list)
    if not rows or not any(rows):
        raise ResourceNotFoundError("CSV columns", ", ".join(column_list))

    return {
        "success": True,
        "data": rows,
        "recordCount": len(rows),
        "requestedColumns": column_list,
    }


@router.get("/paginated")
async def read_csv_paginated(
    csv_path: Optional[str] = Query(None, alias="csvPath"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.csv.default_page_size, ge=1, le=settings.csv.max_page_size),
):
    """Read one page of rows; out-of-range page or limit is a 400"""
    result = csv_service.read_page(resolve_csv_path(csv_path), page, limit)
    return {
        "success": True,
        "data": result["data"],
        "pagination": result["pagination"],
        "columns": _columns_of(result["data"]),
    }


@router.get("/stats")
async def csv_stats(csv_path: Optional[str] = Query(None, alias="csvPath")):
    """Info plus per-column types from a small sample"""
    return {"success": True, "data": csv_service.stats(resolve_csv_path(csv_path))}
