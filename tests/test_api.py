"""
HTTP-level tests: datasets, dashboards, raw CSV endpoints, settings and the
app-wide envelope.
"""
import json

import pytest

from vizboard.core.config import settings

SALES_CSV = "region,amount\nnorth,100\nsouth,\neast,12.5\n"
CHART_SPEC = '[{"visId": "v1", "encodings": {"rows": ["region"]}}]'


def _upload(client, name="Sales Q1", content=SALES_CSV, filename="sales.csv",
            content_type="text/csv"):
    return client.post(
        "/Dataset/upload",
        data={"datasetName": name},
        files={"file": (filename, content.encode("utf-8"), content_type)},
    )


def _upload_dir_files():
    from pathlib import Path

    return [p for p in Path(settings.files.upload_dir).iterdir() if p.is_file()]


class TestEndToEnd:
    def test_upload_dashboard_and_cascade_delete(self, client):
        response = _upload(client)
        assert response.status_code == 200, response.text
        assert response.json()["data"]["rowCount"] == 3

        listing = client.get("/Dataset").json()
        assert listing["count"] == 1
        assert listing["data"][0]["datasetName"] == "Sales Q1"
        assert listing["data"][0]["rowCount"] == 3

        response = client.post(
            "/Dashboard",
            json={
                "dashboardName": "Q1 View",
                "datasetName": "Sales Q1",
                "jsonFormat": CHART_SPEC,
            },
        )
        assert response.status_code == 200, response.text

        response = client.get("/Dashboard/Q1 View")
        assert response.status_code == 200
        assert response.json()["data"]["jsonFormat"] == CHART_SPEC

        response = client.delete("/Dataset/Sales Q1")
        assert response.status_code == 200
        assert response.json()["data"]["dashboardsRemoved"] == 1

        response = client.get("/Dashboard/Q1 View")
        assert response.status_code == 404
        assert response.json()["error"] == "RESOURCE_NOT_FOUND"


class TestDatasetRoutes:
    def test_uploaded_rows_are_typed(self, client):
        _upload(client)

        records = client.get("/Dataset/Sales Q1/data").json()["data"]["records"]

        assert records[0] == {"region": "north", "amount": 100}
        assert records[1]["amount"] is None
        assert records[2]["amount"] == 12.5

    def test_upload_file_is_removed(self, client):
        _upload(client)
        _upload(client)  # duplicate name, fails after the file was written

        assert _upload_dir_files() == []

    def test_upload_existing_name_is_conflict(self, client):
        _upload(client)

        response = _upload(client)

        assert response.status_code == 409
        assert response.json()["error"] == "ALREADY_EXISTS"

    def test_upload_rejects_non_csv(self, client):
        response = _upload(
            client, filename="notes.pdf", content="%PDF", content_type="application/pdf"
        )

        assert response.status_code == 415
        assert response.json()["error"] == "INVALID_FILE_TYPE"

    def test_upload_requires_file(self, client):
        response = client.post("/Dataset/upload", data={"datasetName": "No File"})

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "file"

    def test_upload_requires_name(self, client):
        response = client.post(
            "/Dataset/upload",
            files={"file": ("sales.csv", SALES_CSV.encode("utf-8"), "text/csv")},
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "datasetName"

    def test_upload_too_large(self, client, monkeypatch):
        monkeypatch.setattr(settings.files, "max_upload_size_mb", 0)

        response = _upload(client)

        assert response.status_code == 413
        assert _upload_dir_files() == []

    def test_save_and_get_dataset(self, client):
        rows = [{"x": 1}, {"x": 2}]

        response = client.post("/Dataset", json={"datasetName": "Inline", "jsonData": rows})
        assert response.status_code == 200
        assert response.json()["data"]["rowCount"] == 2

        data = client.get("/Dataset/Inline").json()["data"]
        assert data["jsonData"] == rows
        assert data["headers"] == ["x"]

    def test_save_dataset_validation(self, client):
        response = client.post("/Dataset", json={"jsonData": []})

        assert response.status_code == 400
        assert response.json()["message"] == "Missing required fields: datasetName"

    def test_paginated_data(self, client):
        rows = [{"n": i} for i in range(1, 26)]
        client.post("/Dataset", json={"datasetName": "Paged", "jsonData": rows})

        body = client.get("/Dataset/Paged/data", params={"page": 2, "limit": 10}).json()

        assert len(body["data"]["records"]) == 10
        assert body["data"]["pagination"]["startRow"] == 11
        assert body["data"]["pagination"]["endRow"] == 20

    def test_info(self, client):
        _upload(client)

        info = client.get("/Dataset/Sales Q1/info").json()["data"]["fileInfo"]

        assert info["rowCount"] == 3
        assert info["fileName"] == "sales.csv"
        assert info["headers"] == ["region", "amount"]

    def test_missing_dataset(self, client):
        assert client.get("/Dataset/Nope").status_code == 404
        assert client.get("/Dataset/Nope/data").status_code == 404
        assert client.delete("/Dataset/Nope").status_code == 404


class TestDashboardRoutes:
    def test_unknown_dataset_is_rejected(self, client):
        response = client.post(
            "/Dashboard", json={"dashboardName": "Orphan", "datasetName": "Missing"}
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "datasetName"

    def test_list_stats_delete(self, client):
        client.post("/Dataset", json={"datasetName": "Base", "jsonData": []})
        client.post("/Dashboard", json={"dashboardName": "One", "datasetName": "Base"})

        assert client.get("/Dashboard").json()["count"] == 1
        stats = client.get("/Dashboard/stats").json()["data"]
        assert stats["dashboardCount"] == 1
        assert stats["datasetCount"] == 1

        assert client.delete("/Dashboard/One").status_code == 200
        assert client.delete("/Dashboard/One").status_code == 404


class TestCsvRoutes:
    def test_paginated(self, client, write_csv):
        lines = ["id"] + [str(i) for i in range(1, 26)]
        path = write_csv("api25.csv", "\n".join(lines) + "\n")

        body = client.get(
            "/api/csv/paginated", params={"csvPath": str(path), "page": 2, "limit": 10}
        ).json()

        assert [row["id"] for row in body["data"]] == list(range(11, 21))
        assert body["pagination"]["hasNext"] is True
        assert body["columns"] == ["id"]

    def test_read_info_columns_stats(self, client, write_csv):
        path = write_csv("api_sales.csv", SALES_CSV)
        params = {"csvPath": str(path)}

        read = client.get("/api/csv/read", params=params).json()
        assert read["recordCount"] == 3

        info = client.get("/api/csv/info", params=params).json()["data"]
        assert info["rowCount"] == 3

        columns = client.get(
            "/api/csv/columns", params={**params, "columns": "amount"}
        ).json()
        assert columns["data"][0] == {"amount": 100}

        stats = client.get("/api/csv/stats", params=params).json()["data"]
        assert stats["columnTypes"]["amount"]["type"] == "number"

    @pytest.mark.parametrize(
        "params, field",
        [
            ({"page": 0}, "page"),
            ({"limit": 0}, "limit"),
            ({"limit": settings.csv.max_page_size + 1}, "limit"),
        ],
    )
    def test_paginated_rejects_out_of_range(self, client, write_csv, params, field):
        path = write_csv("bounds.csv", "id\n1\n2\n")

        response = client.get(
            "/api/csv/paginated", params={"csvPath": str(path), **params}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
        assert response.json()["details"]["field"] == field

    def test_path_outside_allowed_directories(self, client, tmp_path):
        outside = tmp_path / "outside.csv"
        outside.write_text(SALES_CSV)

        response = client.get("/api/csv/read", params={"csvPath": str(outside)})

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "csvPath"

    def test_missing_file(self, client, data_dir):
        response = client.get(
            "/api/csv/info", params={"csvPath": str(data_dir / "missing.csv")}
        )

        assert response.status_code == 404

    def test_csv_path_required(self, client):
        assert client.get("/api/csv/read").status_code == 400


class TestSettingsRoutes:
    def test_requires_token(self, client):
        assert client.get("/settings").status_code == 401

    def test_boolean_round_trip(self, client, register_user, auth_headers):
        _, token = register_user()
        headers = auth_headers(token)

        response = client.put(
            "/settings/autoSave", json={"value": True, "type": "boolean"}, headers=headers
        )
        assert response.status_code == 200

        body = client.get("/settings/autoSave", headers=headers).json()
        assert body["data"]["setting"]["autoSave"]["value"] is True

    def test_bulk_list_delete(self, client, register_user, auth_headers):
        _, token = register_user()
        headers = auth_headers(token)

        response = client.post(
            "/settings/bulk",
            json={
                "settings": {
                    "theme": {"value": "dark", "type": "string"},
                    "pageSize": {"value": 25, "type": "number"},
                }
            },
            headers=headers,
        )
        assert response.status_code == 200

        all_settings = client.get("/settings", headers=headers).json()["data"]["settings"]
        assert all_settings["pageSize"]["value"] == 25
        assert all_settings["theme"]["value"] == "dark"

        assert client.delete("/settings/theme", headers=headers).status_code == 200
        assert client.get("/settings/theme", headers=headers).status_code == 404

    def test_wrong_type_is_rejected(self, client, register_user, auth_headers):
        _, token = register_user()

        response = client.put(
            "/settings/pageSize",
            json={"value": "many", "type": "number"},
            headers=auth_headers(token),
        )

        assert response.status_code == 400

    def test_groups(self, client, register_user, auth_headers):
        _, alice_token = register_user()
        bob, bob_token = register_user(email="bob@vizboard.io", name="Bob")

        response = client.post(
            "/settings/groups",
            json={"groupName": "Analysts", "description": "Shared charts"},
            headers=auth_headers(alice_token),
        )
        assert response.status_code == 201
        group_id = response.json()["data"]["group"]["id"]

        response = client.post(
            f"/settings/groups/{group_id}/members",
            json={"userId": bob["id"]},
            headers=auth_headers(alice_token),
        )
        assert response.status_code == 201

        response = client.put(
            f"/settings/groups/{group_id}/settings/defaultChart",
            json={"value": "bar"},
            headers=auth_headers(alice_token),
        )
        assert response.status_code == 200

        body = client.get(
            f"/settings/groups/{group_id}/settings", headers=auth_headers(bob_token)
        ).json()
        assert body["data"]["settings"]["defaultChart"]["value"] == "bar"

        groups = client.get("/settings/groups/my", headers=auth_headers(bob_token)).json()
        assert groups["data"]["groups"][0]["role"] == "member"

        response = client.put(
            f"/settings/groups/{group_id}/settings/defaultChart",
            json={"value": "line"},
            headers=auth_headers(bob_token),
        )
        assert response.status_code == 403


class TestAppEnvelope:
    def test_health(self, client):
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    def test_security_headers(self, client):
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-XSS-Protection"] == "1; mode=block"
        assert "X-Process-Time" in response.headers

    def test_unknown_route(self, client):
        response = client.get("/no/such/route")

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_root_lists_endpoints(self, client):
        body = client.get("/").json()

        assert body["endpoints"]["datasets"] == "/Dataset"

    def test_malformed_json_body(self, client):
        response = client.post(
            "/Dashboard",
            content=json.dumps({"dashboardName": 5, "datasetName": []}),
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_request_id_is_echoed_or_generated(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"

        generated = client.get("/health").headers["X-Request-ID"]
        assert len(generated) == 32
