# vizboard/services/dataset_service.py
"""
Dataset store.

Rows live inline on the dataset record as a JSON array of objects. An uploaded
CSV is converted once and the source file is not kept, so reading a dataset
never touches the filesystem.
"""

import json
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from vizboard.api.models.dataset import Dataset
from vizboard.core.config import settings
from vizboard.services import csv_service
from vizboard.utils.exceptions import (
    AlreadyExistsError,
    APIException,
    ResourceNotFoundError,
    ValidationError,
)
from vizboard.utils.logger import get_logger
from vizboard.utils.validators import validate_json_text, validate_resource_name

logger = get_logger(__name__)

JSON_MIME_TYPE = "application/json"


def _serialized_size(rows: Any) -> int:
    if isinstance(rows, str):
        return len(rows.encode("utf-8"))
    return len(json.dumps(rows, default=str).encode("utf-8"))


def parse_json_data(json_data: Any) -> List[Any]:
    """Accept a row array or its serialized form; enforce the inline size limit"""
    if _serialized_size(json_data) > settings.max_dataset_json_bytes:
        raise ValidationError("JSON data size cannot exceed 50MB", "jsonData")

    rows = json_data
    if isinstance(json_data, str):
        rows = validate_json_text(json_data, "jsonData", "Invalid JSON data format")

    if not isinstance(rows, list):
        raise ValidationError("JSON data must be an array", "jsonData")

    return rows


def derive_headers(rows: List[Any]) -> List[str]:
    """Column names taken from the first row"""
    if rows and isinstance(rows[0], dict):
        return [str(key) for key in rows[0].keys()]
    return []


def list_datasets(db: Session) -> List[Dict[str, Any]]:
    """All dataset summaries, most recently updated first"""
    datasets = (
        db.query(Dataset)
        .order_by(Dataset.updated_at.desc(), Dataset.dataset_name)
        .all()
    )
    logger.debug("Fetched datasets", count=len(datasets))
    return [dataset.to_dict() for dataset in datasets]


def get_dataset(db: Session, name: str) -> Optional[Dataset]:
    return db.query(Dataset).filter(Dataset.dataset_name == name).first()


def get_dataset_or_404(db: Session, name: str) -> Dataset:
    dataset = get_dataset(db, name)
    if dataset is None:
        raise ResourceNotFoundError("Dataset", name)
    return dataset


def upsert_dataset(db: Session, payload: Dict[str, Any]) -> Dataset:
    """
    Create or update a dataset keyed by its name.

    An update keeps ``createdAt``; when no ``jsonData`` is sent the stored
    rows are kept as well. Headers and counts fall back to values derived
    from the rows.
    """
    name = validate_resource_name(
        payload.get("datasetName"), "datasetName", "Dataset name"
    )

    rows = None
    if payload.get("jsonData") is not None:
        rows = parse_json_data(payload["jsonData"])

    dataset = get_dataset(db, name)
    created = dataset is None
    if created:
        dataset = Dataset(dataset_name=name)
        db.add(dataset)

    if rows is not None:
        dataset.json_data = rows
    elif created:
        dataset.json_data = []

    stored_rows = dataset.json_data or []
    headers = payload.get("headers")
    if headers is None and (rows is not None or created):
        headers = derive_headers(stored_rows)
    if headers is not None:
        dataset.headers = [str(header) for header in headers]

    if payload.get("rowCount") is not None:
        dataset.row_count = int(payload["rowCount"])
    elif rows is not None or created:
        dataset.row_count = len(stored_rows)

    if payload.get("columnCount") is not None:
        dataset.column_count = int(payload["columnCount"])
    elif headers is not None:
        dataset.column_count = len(dataset.headers)

    file_name = payload.get("fileName") or payload.get("originalFileName")
    if file_name is not None:
        dataset.file_name = str(file_name)
    file_size = payload.get("fileSize") or payload.get("originalFileSize")
    if file_size is not None:
        dataset.file_size = int(file_size)
    if payload.get("mimeType"):
        dataset.mime_type = str(payload["mimeType"])

    db.commit()
    db.refresh(dataset)

    logger.log_data_change(
        "created" if created else "updated",
        "Dataset",
        name,
        row_count=dataset.row_count,
    )
    return dataset


def delete_dataset(db: Session, name: str) -> Optional[int]:
    """
    Delete a dataset and every dashboard bound to it.

    Returns the number of dashboards removed, or None when no such dataset.
    """
    dataset = get_dataset(db, name)
    if dataset is None:
        logger.warning("Dataset to delete not found", dataset_name=name)
        return None

    removed = len(dataset.dashboards)
    db.delete(dataset)
    db.commit()

    logger.log_data_change("deleted", "Dataset", name, dashboards_removed=removed)
    return removed


def ingest_csv_upload(
    db: Session, name: Any, csv_path: str, file_name: str, file_size: int
) -> Dataset:
    """Convert an uploaded CSV to inline rows and store it under a new name"""
    dataset_name = validate_resource_name(name, "datasetName", "Dataset name")

    if get_dataset(db, dataset_name) is not None:
        raise AlreadyExistsError(
            "Dataset",
            dataset_name,
            message=f"Dataset '{dataset_name}' already exists",
        )

    try:
        headers = csv_service.read_headers(csv_path)
        rows = csv_service.read_all(csv_path)
    except APIException as e:
        logger.error(
            "Failed to convert CSV to JSON", file_name=file_name, error=e.message
        )
        raise ValidationError(f"Failed to process CSV file: {e.message}", "file")

    logger.info(
        "CSV converted to JSON",
        dataset_name=dataset_name,
        row_count=len(rows),
        column_count=len(headers),
    )

    return upsert_dataset(
        db,
        {
            "datasetName": dataset_name,
            "jsonData": rows,
            "headers": headers,
            "rowCount": len(rows),
            "columnCount": len(headers),
            "fileName": file_name,
            "fileSize": file_size,
            "mimeType": JSON_MIME_TYPE,
        },
    )


def get_dataset_records(
    db: Session, name: str, page: Optional[int] = None, limit: Optional[int] = None
) -> Dict[str, Any]:
    """All rows of a dataset, or one page of them when page and limit are given"""
    dataset = get_dataset_or_404(db, name)
    rows = dataset.json_data or []

    if page is not None and limit is not None:
        page_num, limit_num = max(1, int(page)), max(1, int(limit))
        start = (page_num - 1) * limit_num
        return {
            "dataset": dataset.to_dict(),
            "records": rows[start : start + limit_num],
            "pagination": csv_service.build_pagination(page_num, limit_num, len(rows)),
        }

    return {
        "dataset": dataset.to_dict(),
        "records": rows,
        "recordCount": len(rows),
    }


def get_dataset_info(db: Session, name: str) -> Dict[str, Any]:
    """Stored metadata plus the size of the inline rows"""
    dataset = get_dataset_or_404(db, name)
    json_size = _serialized_size(dataset.json_data or [])

    return {
        "dataset": dataset.to_dict(),
        "fileInfo": {
            "datasetName": dataset.dataset_name,
            "fileName": dataset.file_name,
            "fileSize": dataset.file_size,
            "jsonDataSize": json_size,
            "jsonDataSizeFormatted": csv_service.format_file_size(json_size),
            "rowCount": dataset.row_count,
            "columnCount": dataset.column_count,
            "headers": list(dataset.headers or []),
            "mimeType": dataset.mime_type,
            "createdAt": dataset.created_at.isoformat() if dataset.created_at else None,
            "updatedAt": dataset.updated_at.isoformat() if dataset.updated_at else None,
        },
    }
