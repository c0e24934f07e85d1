"""
Tests for the dataset store.
"""
import json

import pytest

from vizboard.api.models.dashboard import Dashboard
from vizboard.services import dashboard_service, dataset_service
from vizboard.utils.exceptions import (
    AlreadyExistsError,
    ResourceNotFoundError,
    ValidationError,
)

ROWS = [{"region": "north", "amount": 100}, {"region": "south", "amount": 250}]


@pytest.mark.parametrize("name", ["Sales Q1", "a", "with_underscore-and-dash 9", "x" * 100])
def test_upsert_then_get_returns_exact_name(db, name):
    dataset_service.upsert_dataset(db, {"datasetName": name, "jsonData": ROWS})

    dataset = dataset_service.get_dataset(db, name)

    assert dataset is not None
    assert dataset.dataset_name == name


def test_name_is_trimmed(db):
    dataset = dataset_service.upsert_dataset(db, {"datasetName": "  Padded  ", "jsonData": []})

    assert dataset.dataset_name == "Padded"


@pytest.mark.parametrize(
    "name", [None, "", "   ", "x" * 101, "bad/name", "semi;colon", "dots.not.allowed"]
)
def test_invalid_names_are_rejected(db, name):
    with pytest.raises(ValidationError) as exc_info:
        dataset_service.upsert_dataset(db, {"datasetName": name, "jsonData": []})

    assert exc_info.value.field == "datasetName"


def test_headers_and_counts_are_derived(db):
    dataset = dataset_service.upsert_dataset(db, {"datasetName": "Derived", "jsonData": ROWS})

    assert dataset.headers == ["region", "amount"]
    assert dataset.row_count == 2
    assert dataset.column_count == 2
    assert dataset.mime_type == "application/json"


def test_json_data_may_be_serialized(db):
    dataset = dataset_service.upsert_dataset(
        db, {"datasetName": "Serialized", "jsonData": json.dumps(ROWS)}
    )

    assert dataset.json_data == ROWS


@pytest.mark.parametrize("json_data", ['{"not": "an array"}', "not json", {"a": 1}])
def test_json_data_must_be_an_array(db, json_data):
    with pytest.raises(ValidationError) as exc_info:
        dataset_service.upsert_dataset(db, {"datasetName": "Bad", "jsonData": json_data})

    assert exc_info.value.field == "jsonData"


def test_json_data_size_limit(db, monkeypatch):
    from vizboard.core.config import settings

    monkeypatch.setattr(settings.files, "max_upload_size_mb", 0)

    with pytest.raises(ValidationError) as exc_info:
        dataset_service.upsert_dataset(db, {"datasetName": "Huge", "jsonData": ROWS})

    assert "50MB" in exc_info.value.message


def test_upsert_updates_existing_record(db):
    first = dataset_service.upsert_dataset(db, {"datasetName": "Same", "jsonData": ROWS})
    created_at = first.created_at
    first_id = first.id

    second = dataset_service.upsert_dataset(
        db, {"datasetName": "Same", "jsonData": ROWS[:1]}
    )

    assert second.id == first_id
    assert second.created_at == created_at
    assert second.row_count == 1
    assert len(dataset_service.list_datasets(db)) == 1


def test_update_without_rows_keeps_stored_rows(db):
    dataset_service.upsert_dataset(db, {"datasetName": "Keep", "jsonData": ROWS})

    updated = dataset_service.upsert_dataset(
        db, {"datasetName": "Keep", "fileName": "renamed.csv"}
    )

    assert updated.json_data == ROWS
    assert updated.row_count == 2
    assert updated.file_name == "renamed.csv"


def test_list_omits_rows(db):
    dataset_service.upsert_dataset(db, {"datasetName": "Listed", "jsonData": ROWS})

    summaries = dataset_service.list_datasets(db)

    assert summaries[0]["datasetName"] == "Listed"
    assert "jsonData" not in summaries[0]


def test_delete_cascades_to_dashboards(db):
    dataset_service.upsert_dataset(db, {"datasetName": "Parent", "jsonData": ROWS})
    for name in ("Child One", "Child Two"):
        dashboard_service.upsert_dashboard(
            db, {"dashboardName": name, "datasetName": "Parent", "jsonFormat": "[]"}
        )

    removed = dataset_service.delete_dataset(db, "Parent")

    assert removed == 2
    assert dataset_service.get_dataset(db, "Parent") is None
    assert db.query(Dashboard).count() == 0


def test_delete_missing_dataset(db):
    assert dataset_service.delete_dataset(db, "Ghost") is None


def test_ingest_csv_upload(db, write_csv):
    path = write_csv("sales.csv", "region,amount\nnorth,100\nsouth,\neast,12.5\n")

    dataset = dataset_service.ingest_csv_upload(
        db, "Sales Q1", str(path), "sales.csv", path.stat().st_size
    )

    assert dataset.row_count == 3
    assert dataset.headers == ["region", "amount"]
    assert dataset.json_data[1] == {"region": "south", "amount": None}
    assert dataset.file_name == "sales.csv"
    assert dataset.mime_type == "application/json"


def test_ingest_rejects_existing_name(db, write_csv):
    path = write_csv("dup.csv", "a\n1\n")
    dataset_service.upsert_dataset(db, {"datasetName": "Taken", "jsonData": []})

    with pytest.raises(AlreadyExistsError):
        dataset_service.ingest_csv_upload(db, "Taken", str(path), "dup.csv", 4)


def test_ingest_turns_csv_failures_into_validation_errors(db, data_dir):
    with pytest.raises(ValidationError) as exc_info:
        dataset_service.ingest_csv_upload(
            db, "Missing File", str(data_dir / "gone.csv"), "gone.csv", 0
        )

    assert exc_info.value.field == "file"


def test_get_records_paginated(db):
    rows = [{"n": i} for i in range(1, 26)]
    dataset_service.upsert_dataset(db, {"datasetName": "Paged", "jsonData": rows})

    result = dataset_service.get_dataset_records(db, "Paged", page=2, limit=10)

    assert [row["n"] for row in result["records"]] == list(range(11, 21))
    assert result["pagination"]["startRow"] == 11
    assert result["pagination"]["endRow"] == 20
    assert result["pagination"]["hasNext"] is True


def test_get_records_without_pagination(db):
    dataset_service.upsert_dataset(db, {"datasetName": "All", "jsonData": ROWS})

    result = dataset_service.get_dataset_records(db, "All")

    assert result["records"] == ROWS
    assert result["recordCount"] == 2


def test_get_records_of_missing_dataset(db):
    with pytest.raises(ResourceNotFoundError):
        dataset_service.get_dataset_records(db, "Nope")
