#!/usr/bin/env python3
"""Import legacy ``datasets.json`` / ``dashboards.json`` files into the database."""
import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from vizboard.api.dependencies.database import SessionLocal, init_database
from vizboard.core.config import settings
from vizboard.services import csv_service, dashboard_service, dataset_service
from vizboard.utils.exceptions import APIException
from vizboard.utils.logger import get_logger

logger = get_logger(__name__)


def load_records(path: Path) -> List[Dict[str, Any]]:
    """Read a legacy store file; a missing file is an empty store"""
    if not path.exists():
        logger.info("Legacy file not found, nothing to import", path=str(path))
        return []

    with open(path, "r", encoding="utf-8") as f:
        records = json.load(f)

    if not isinstance(records, list):
        raise ValueError(f"{path} does not contain a JSON array")
    return [record for record in records if isinstance(record, dict)]


def _resolve_csv(csv_path: str, data_dir: Path) -> Optional[Path]:
    candidates = [Path(csv_path)]
    if not Path(csv_path).is_absolute():
        candidates.insert(0, data_dir / csv_path)
        candidates.append(data_dir.parent / csv_path)

    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def _dataset_payload(record: Dict[str, Any], data_dir: Path) -> Optional[Dict[str, Any]]:
    """Build an upsert payload; CSV-backed records get their rows inlined"""
    payload = {
        "datasetName": record.get("datasetName"),
        "fileName": record.get("fileName") or record.get("originalFileName"),
        "fileSize": record.get("fileSize") or record.get("originalFileSize"),
    }

    if record.get("jsonData") is not None:
        payload["jsonData"] = record["jsonData"]
        payload["headers"] = record.get("headers")
        return payload

    csv_path = record.get("csvPath")
    if not csv_path:
        logger.warning(
            "Legacy dataset has neither rows nor a CSV path",
            dataset_name=record.get("datasetName"),
        )
        return None

    csv_file = _resolve_csv(csv_path, data_dir)
    if csv_file is None:
        logger.warning(
            "CSV file for legacy dataset not found",
            dataset_name=record.get("datasetName"),
            csv_path=csv_path,
        )
        return None

    payload["jsonData"] = csv_service.read_all(str(csv_file))
    payload["headers"] = csv_service.read_headers(str(csv_file))
    payload["fileName"] = payload["fileName"] or csv_file.name
    payload["fileSize"] = payload["fileSize"] or csv_file.stat().st_size
    payload["csvFile"] = csv_file
    return payload


def run_migration(
    db: Session, data_dir: Path, delete_csv: bool = False
) -> Dict[str, int]:
    """
    Import both legacy files.

    Datasets go first so dashboards can be checked against them; dashboards
    whose dataset is missing are skipped.
    """
    summary = {
        "datasets": 0,
        "dashboards": 0,
        "skippedDatasets": 0,
        "skippedDashboards": 0,
    }
    converted_csv: List[Path] = []

    for record in load_records(data_dir / settings.files.datasets_file):
        try:
            payload = _dataset_payload(record, data_dir)
            if payload is None:
                summary["skippedDatasets"] += 1
                continue
            csv_file = payload.pop("csvFile", None)
            dataset_service.upsert_dataset(
                db, {k: v for k, v in payload.items() if v is not None}
            )
        except APIException as e:
            db.rollback()
            logger.warning(
                "Skipping legacy dataset",
                dataset_name=record.get("datasetName"),
                error=e.message,
            )
            summary["skippedDatasets"] += 1
            continue

        summary["datasets"] += 1
        if csv_file is not None:
            converted_csv.append(csv_file)

    for record in load_records(data_dir / settings.files.dashboards_file):
        try:
            dashboard_service.upsert_dashboard(db, record)
        except APIException as e:
            db.rollback()
            logger.warning(
                "Skipping legacy dashboard",
                dashboard_name=record.get("dashboardName"),
                dataset_name=record.get("datasetName"),
                error=e.message,
            )
            summary["skippedDashboards"] += 1
            continue
        summary["dashboards"] += 1

    if delete_csv:
        for csv_file in converted_csv:
            csv_file.unlink(missing_ok=True)
            logger.info("Deleted converted CSV file", path=str(csv_file))

    logger.info("Legacy import finished", **summary)
    return summary


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import legacy JSON dataset and dashboard files into the database"
    )
    parser.add_argument(
        "--data-dir",
        default=settings.files.data_dir,
        help="Directory holding datasets.json and dashboards.json",
    )
    parser.add_argument(
        "--delete-csv",
        action="store_true",
        help="Delete CSV files once their rows have been imported",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)

    init_database()
    session = SessionLocal()
    try:
        summary = run_migration(session, Path(args.data_dir), delete_csv=args.delete_csv)
    finally:
        session.close()

    print(
        "Imported {datasets} datasets and {dashboards} dashboards "
        "(skipped {skippedDatasets} datasets, {skippedDashboards} dashboards)".format(
            **summary
        )
    )


if __name__ == "__main__":
    main()
