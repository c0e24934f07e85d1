# vizboard/services/dashboard_service.py
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from vizboard.api.models.dashboard import Dashboard
from vizboard.api.models.dataset import Dataset
from vizboard.utils.exceptions import ValidationError
from vizboard.utils.logger import get_logger
from vizboard.utils.validators import validate_json_text, validate_resource_name

logger = get_logger(__name__)

DEFAULT_JSON_FORMAT = "[]"


def normalize_json_format(json_format: Any) -> str:
    """Chart specs are stored as text; structured values are serialized first"""
    if isinstance(json_format, str):
        validate_json_text(json_format, "jsonFormat", "Invalid JSON format")
        return json_format
    return json.dumps(json_format)


def list_dashboards(db: Session) -> List[Dict[str, Any]]:
    """All dashboards, most recently updated first"""
    dashboards = (
        db.query(Dashboard)
        .order_by(Dashboard.updated_at.desc(), Dashboard.dashboard_name)
        .all()
    )
    logger.debug("Fetched dashboards", count=len(dashboards))
    return [dashboard.to_dict() for dashboard in dashboards]


def get_dashboard(db: Session, name: str) -> Optional[Dashboard]:
    return db.query(Dashboard).filter(Dashboard.dashboard_name == name).first()


def upsert_dashboard(db: Session, payload: Dict[str, Any]) -> Dashboard:
    """
    Create or update a dashboard keyed by its name.

    The referenced dataset is looked up in the same session that writes the
    dashboard, and the foreign key rejects anything that slips past.
    """
    name = validate_resource_name(
        payload.get("dashboardName"), "dashboardName", "Dashboard name"
    )
    dataset_name = validate_resource_name(
        payload.get("datasetName"), "datasetName", "Dataset name"
    )

    json_format = None
    if payload.get("jsonFormat") is not None:
        json_format = normalize_json_format(payload["jsonFormat"])

    dataset_exists = (
        db.query(Dataset.id).filter(Dataset.dataset_name == dataset_name).first()
    )
    if dataset_exists is None:
        raise ValidationError(f"Dataset '{dataset_name}' does not exist", "datasetName")

    dashboard = get_dashboard(db, name)
    created = dashboard is None
    if created:
        dashboard = Dashboard(dashboard_name=name, json_format=DEFAULT_JSON_FORMAT)
        db.add(dashboard)

    dashboard.dataset_name = dataset_name
    if json_format is not None:
        dashboard.json_format = json_format
    if payload.get("isMultiple") is not None:
        dashboard.is_multiple = bool(payload["isMultiple"])

    db.commit()
    db.refresh(dashboard)

    logger.log_data_change(
        "created" if created else "updated",
        "Dashboard",
        name,
        dataset_name=dataset_name,
    )
    return dashboard


def delete_dashboard(db: Session, name: str) -> bool:
    dashboard = get_dashboard(db, name)
    if dashboard is None:
        logger.warning("Dashboard to delete not found", dashboard_name=name)
        return False

    db.delete(dashboard)
    db.commit()
    logger.log_data_change("deleted", "Dashboard", name)
    return True


def get_dashboard_stats(db: Session) -> Dict[str, Any]:
    """Row counts of both stores and the latest dashboard change"""
    last_updated = db.query(func.max(Dashboard.updated_at)).scalar()
    return {
        "dashboardCount": db.query(Dashboard).count(),
        "datasetCount": db.query(Dataset).count(),
        "lastUpdated": (
            last_updated.isoformat()
            if last_updated
            else datetime.now(timezone.utc).isoformat()
        ),
    }
