# vizboard/api/routers/datasets.py
from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session
from typing import Any, List, Optional, Union
import uuid
from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field
from vizboard.api.dependencies.database import get_db
from vizboard.api.dependencies.auth import get_current_user_optional
from vizboard.api.models.user import User
from vizboard.core.config import settings
from vizboard.services import dataset_service
from vizboard.utils.logger import get_logger
from vizboard.utils.exceptions import (
    FileTooLargeError,
    InvalidFileTypeError,
    ResourceNotFoundError,
    ValidationError,
)
from vizboard.utils.validators import (
    sanitize_filename,
    validate_file_size,
    validate_file_type,
    validate_resource_name,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/Dataset")

# Bytes read from the upload per write
UPLOAD_CHUNK_SIZE = 1024 * 1024


class DatasetRequest(BaseModel):
    """Dataset save request; rows may be sent as an array or serialized JSON"""

    model_config = ConfigDict(populate_by_name=True)

    dataset_name: Optional[str] = Field(None, alias="datasetName")
    json_data: Optional[Union[List[Any], str]] = Field(None, alias="jsonData")
    headers: Optional[List[str]] = None
    row_count: Optional[int] = Field(None, alias="rowCount")
    column_count: Optional[int] = Field(None, alias="columnCount")
    file_name: Optional[str] = Field(None, alias="fileName")
    file_size: Optional[int] = Field(None, alias="fileSize")
    mime_type: Optional[str] = Field(None, alias="mimeType")


def _user_id(user: Optional[User]) -> Optional[str]:
    return user.id if user else None


def validate_file(file: Optional[UploadFile]) -> None:
    """Validate uploaded file"""
    if file is None or not file.filename:
        raise ValidationError("No file uploaded", "file")

    if not validate_file_type(
        file.filename,
        file.content_type,
        settings.files.allowed_extensions,
        settings.files.allowed_mime_types,
    ):
        file_type = Path(file.filename).suffix.lower() or file.content_type or "unknown"
        raise InvalidFileTypeError(file_type, settings.files.allowed_extensions)

    # Approximate check; the real limit is enforced while writing
    if file.size and not validate_file_size(file.size, settings.files.max_upload_size_mb):
        raise FileTooLargeError(file.size, settings.max_upload_size_bytes)


async def save_upload(file: UploadFile, file_path: Path) -> int:
    """Stream the upload to disk, stopping as soon as it exceeds the limit"""
    written = 0
    with open(file_path, "wb") as f:
        while True:
            chunk = await file.read(UPLOAD_CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > settings.max_upload_size_bytes:
                raise FileTooLargeError(written, settings.max_upload_size_bytes)
            f.write(chunk)
    return written


@router.get("")
async def list_datasets(db: Session = Depends(get_db)):
    """List dataset summaries"""
    datasets = dataset_service.list_datasets(db)
    return {"success": True, "data": datasets, "count": len(datasets)}


@router.post("")
async def save_dataset(
    request: DatasetRequest,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    """Create or update a dataset by name"""
    logger.info(
        "Saving dataset",
        dataset_name=request.dataset_name,
        user_id=_user_id(current_user),
    )

    dataset = dataset_service.upsert_dataset(
        db, request.model_dump(by_alias=True, exclude_none=True)
    )

    return {
        "success": True,
        "message": "Dataset saved successfully",
        "data": dataset.to_dict(),
    }


@router.post("/upload")
async def upload_dataset(
    file: Optional[UploadFile] = File(None),
    dataset_name: Optional[str] = Form(None, alias="datasetName"),
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    """Upload a CSV file and store its rows as a new dataset"""
    validate_file(file)
    name = validate_resource_name(dataset_name, "datasetName", "Dataset name")

    logger.info(
        "Uploading dataset file",
        dataset_name=name,
        file_name=file.filename,
        user_id=_user_id(current_user),
    )

    upload_dir = Path(settings.files.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    file_path = upload_dir / f"{uuid.uuid4().hex}_{sanitize_filename(file.filename)}"

    try:
        file_size = await save_upload(file, file_path)
        dataset = dataset_service.ingest_csv_upload(
            db, name, str(file_path), file.filename, file_size
        )
    except Exception as e:
        logger.error(
            "Dataset upload failed",
            dataset_name=name,
            file_name=file.filename,
            error=str(e),
        )
        raise
    finally:
        # Rows are stored inline, the CSV is never kept
        if file_path.exists():
            file_path.unlink()
            logger.debug("Cleaned up uploaded file", file_path=str(file_path))

    return {
        "success": True,
        "message": "File uploaded and converted to JSON successfully",
        "data": {
            "dataset": dataset.to_dict(),
            "originalFileName": file.filename,
            "originalFileSize": file_size,
            "rowCount": dataset.row_count,
            "columnCount": dataset.column_count,
        },
    }


@router.get("/{name}")
async def get_dataset(name: str, db: Session = Depends(get_db)):
    """Get one dataset including its rows"""
    dataset = dataset_service.get_dataset_or_404(db, name)
    return {"success": True, "data": dataset.to_dict(include_data=True)}


@router.get("/{name}/data")
async def get_dataset_data(
    name: str,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """Get dataset rows, paginated when both page and limit are given"""
    logger.info("Fetching dataset data", dataset_name=name, page=page, limit=limit)
    return {
        "success": True,
        "data": dataset_service.get_dataset_records(db, name, page, limit),
    }


@router.get("/{name}/info")
async def get_dataset_info(name: str, db: Session = Depends(get_db)):
    """Get dataset metadata without rows"""
    return {"success": True, "data": dataset_service.get_dataset_info(db, name)}


@router.delete("/{name}")
async def delete_dataset(
    name: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    """Delete a dataset and the dashboards built on it"""
    removed = dataset_service.delete_dataset(db, name)
    if removed is None:
        raise ResourceNotFoundError("Dataset", name)

    logger.info(
        "Dataset removed via API",
        dataset_name=name,
        dashboards_removed=removed,
        user_id=_user_id(current_user),
    )
    return {
        "success": True,
        "message": "Dataset deleted successfully",
        "data": {"dashboardsRemoved": removed},
    }
