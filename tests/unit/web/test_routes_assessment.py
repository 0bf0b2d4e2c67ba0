"""Tests for tendercalc.web.routes.assessment - Assessment routes."""

import csv
from io import BytesIO, StringIO

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from tendercalc.config import AppConfig, DBConfig
from tendercalc.web.dependencies import get_app_config, get_repositories
from tendercalc.web.routes import assessment


@pytest.fixture
def app(repos):
    """Create test FastAPI app with assessment router."""
    test_app = FastAPI()
    test_app.include_router(assessment.router)
    test_app.dependency_overrides[get_repositories] = lambda: repos
    test_app.dependency_overrides[get_app_config] = lambda: AppConfig(
        db=DBConfig(url="sqlite+aiosqlite:///:memory:")
    )
    return test_app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


class TestAssessment:
    """Tests for GET /projects/{project_id}/assessment."""

    def test_returns_payload(self, client, project_id):
        response = client.get(f"/projects/{project_id}/assessment")

        assert response.status_code == 200
        data = response.json()
        totals = {c["contractor_id"]: c["total_value"] for c in data["contractors"]}
        assert totals == {"con-acme": 9950.0, "con-bravo": 5200.0}
        assert [s["section_id"] for s in data["sections"]] == ["sec-prelim", "sec-earth", "__OTHER__"]
        assert data["line_items"][2]["responses"]["con-acme"]["amount_label"] == "Included"
        assert data["anomalies"] == []

    def test_unknown_project_is_404(self, client):
        response = client.get("/projects/nope/assessment")
        assert response.status_code == 404


class TestAssessmentExport:
    """Tests for GET /projects/{project_id}/assessment/export."""

    def test_xlsx_export(self, client, project_id):
        response = client.get(f"/projects/{project_id}/assessment/export")

        assert response.status_code == 200
        assert "spreadsheetml" in response.headers["content-type"]
        assert "attachment" in response.headers["content-disposition"]
        wb = load_workbook(BytesIO(response.content))
        assert "Line Items" in wb.sheetnames

    def test_csv_export(self, client, project_id):
        response = client.get(f"/projects/{project_id}/assessment/export", params={"format": "csv"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        rows = list(csv.reader(StringIO(response.text)))
        assert rows[0][-2:] == ["Acme Builders", "Bravo Construction"]

    def test_unsupported_format_is_422(self, client, project_id):
        response = client.get(f"/projects/{project_id}/assessment/export", params={"format": "pdf"})
        assert response.status_code == 422
