"""
tests/test_inventory_ingestion_router.py

HTTP tests for the inventory ingestion router using FastAPI's TestClient.

Storage and settings are replaced through dependency overrides, so no
database or environment configuration is needed.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from app.api.dependencies import get_inventory_upserter
from app.api.routers.inventory_ingestion import router
from app.config import InventoryIngestionSettings, get_inventory_ingestion_settings
from app.domain.inventory import InventoryRecord
from app.main import create_app
from app.services.inventory_ingestion_service import (
    InventoryIngestionService,
    get_inventory_ingestion_service,
)
from app.services.report_builder import read_error_report_csv

CSV_CONTENT = (
    b"Stock #,Shape,Carat,Color,Clarity,Fluor,Cert #,Image\n"
    b"A1,RB,1.05,G,VS1,N,111,https://cdn.example.com/a1.jpg\n"
    b"A2,PR,abc,H,SI1,F,112,\n"
    b"A3,OV,0.9,E,VVS2,M,113,not-a-url\n"
)


class RecordingUpserter:
    def __init__(self) -> None:
        self.batches: list[list[str]] = []

    def upsert(self, records: Sequence[InventoryRecord], owner_id: str) -> int:
        self.batches.append([record.stock_number for record in records])
        return len(records)


@pytest.fixture()
def upserter() -> RecordingUpserter:
    return RecordingUpserter()


@pytest.fixture()
def settings() -> InventoryIngestionSettings:
    return InventoryIngestionSettings()


@pytest.fixture()
def client(upserter: RecordingUpserter, settings: InventoryIngestionSettings) -> TestClient:
    application = FastAPI()
    application.include_router(router)
    application.dependency_overrides[get_inventory_upserter] = lambda: upserter
    application.dependency_overrides[get_inventory_ingestion_settings] = lambda: settings
    application.dependency_overrides[get_inventory_ingestion_service] = lambda: InventoryIngestionService(
        batch_size=settings.batch_size
    )
    return TestClient(application)


def _upload(client: TestClient, content: bytes = CSV_CONTENT, filename: str = "stock.csv", **params):
    data = {}
    if "column_mapping" in params:
        data["column_mapping"] = params.pop("column_mapping")
    return client.post(
        "/inventory/uploads",
        params={"owner_id": "vendor-1", **params},
        files={"file": (filename, content, "text/csv")},
        data=data,
    )


class TestUploadEndpoint:
    def test_returns_camel_case_report(self, client: TestClient, upserter: RecordingUpserter) -> None:
        response = _upload(client)

        assert response.status_code == 200
        body = response.json()
        assert body["totalRows"] == 3
        assert body["acceptedRows"] == 2
        assert body["rejectedRows"] == 1
        assert body["persistedRows"] == 2
        assert body["fileKind"] == "csv"
        assert upserter.batches == [["A1", "A3"]]
        severities = {(error["row"], error["severity"]) for error in body["errors"]}
        assert severities == {(2, "error"), (3, "warning")}

    def test_validate_only_skips_persistence(self, client: TestClient, upserter: RecordingUpserter) -> None:
        response = _upload(client, validate_only="true")

        assert response.status_code == 200
        assert response.json()["batches"] == []
        assert upserter.batches == []

    def test_batch_size_query_parameter(self, client: TestClient, upserter: RecordingUpserter) -> None:
        response = _upload(client, batch_size=1)

        assert response.status_code == 200
        assert [batch["index"] for batch in response.json()["batches"]] == [1, 2]
        assert upserter.batches == [["A1"], ["A3"]]

    def test_column_mapping_form_field(self, client: TestClient) -> None:
        content = b"Col B,Shape,Color,Clarity,Fluor,Cert #\n1.05,RB,G,VS1,N,111\n"

        response = _upload(client, content=content, column_mapping=json.dumps({"Col B": "weight"}))

        assert response.status_code == 200
        assert response.json()["acceptedRows"] == 1

    def test_malformed_column_mapping(self, client: TestClient) -> None:
        response = _upload(client, column_mapping="{not json")

        assert response.status_code == 400

    def test_unsupported_extension(self, client: TestClient) -> None:
        response = _upload(client, filename="stock.pdf")

        assert response.status_code == 400

    def test_missing_mandatory_columns(self, client: TestClient) -> None:
        response = _upload(client, content=b"Qq7,Zz9\n1,2\n")

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "missing_mandatory_columns"

    def test_empty_file(self, client: TestClient) -> None:
        response = _upload(client, content=b"Shape,Carat\n")

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "empty_file"

    def test_owner_is_required(self, client: TestClient) -> None:
        response = client.post("/inventory/uploads", files={"file": ("stock.csv", CSV_CONTENT, "text/csv")})

        assert response.status_code == 422

    def test_upload_size_limit(self, client: TestClient) -> None:
        client.app.dependency_overrides[get_inventory_ingestion_settings] = lambda: InventoryIngestionSettings(
            max_file_bytes=16
        )

        response = _upload(client)

        assert response.status_code == 413


class TestUpserterDependency:
    def test_validate_only_needs_no_storage(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def _unconfigured() -> None:
            raise AssertionError("engine must not be resolved")

        monkeypatch.setattr("app.api.dependencies.get_engine", _unconfigured)

        assert get_inventory_upserter(validate_only=True) is None

    def test_missing_database_url_is_a_server_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def _unconfigured() -> None:
            raise RuntimeError("No database URL configured for inventory storage.")

        monkeypatch.setattr("app.api.dependencies.get_engine", _unconfigured)

        with pytest.raises(HTTPException) as excinfo:
            get_inventory_upserter(validate_only=False)

        assert excinfo.value.status_code == 500
        assert excinfo.value.detail["code"] == "persistence_unavailable"

    def test_unconfigured_storage_fails_the_upload(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def _unconfigured() -> None:
            raise RuntimeError("No database URL configured for inventory storage.")

        monkeypatch.setattr("app.api.dependencies.get_engine", _unconfigured)
        application = FastAPI()
        application.include_router(router)
        application.dependency_overrides[get_inventory_ingestion_settings] = lambda: InventoryIngestionSettings()
        application.dependency_overrides[get_inventory_ingestion_service] = lambda: InventoryIngestionService()

        response = _upload(TestClient(application))

        assert response.status_code == 500
        assert response.json()["detail"]["code"] == "persistence_unavailable"


class TestErrorReportEndpoint:
    def test_renders_report_errors_as_csv(self, client: TestClient) -> None:
        report = _upload(client).json()

        response = client.post("/inventory/uploads/error-report", json=report)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "inventory_errors.csv" in response.headers["content-disposition"]
        rows = read_error_report_csv(response.text)
        assert [row["Row"] for row in rows] == ["2", "3"]
        assert rows[0]["Error"] == "Invalid weight: abc"


class TestApplicationFactory:
    def test_health_endpoint_without_database(self) -> None:
        application = create_app(check_database=False)

        with TestClient(application) as test_client:
            response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert any(route.path == "/inventory/uploads" for route in application.routes)
