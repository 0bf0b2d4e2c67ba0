"""Assessment routes for the TenderCalc API.

Routes:
- GET /projects/{project_id}/assessment         - Cross-contractor comparison payload
- GET /projects/{project_id}/assessment/export  - Download as xlsx or csv
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from tendercalc.config import AppConfig
from tendercalc.reporting.assessment import load_assessment
from tendercalc.reporting.csv_export import export_line_items_csv
from tendercalc.reporting.excel_export import generate_assessment_excel
from tendercalc.reporting.models import AssessmentPayload
from tendercalc.repository.base import Repositories
from tendercalc.web.dependencies import (
    get_app_config,
    get_repositories,
    project_log_context,
    translate_errors,
)

router = APIRouter(tags=["assessment"], dependencies=[Depends(project_log_context)])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/projects/{project_id}/assessment", response_model=AssessmentPayload)
async def get_assessment(
    project_id: str,
    repos: Repositories = Depends(get_repositories),
    config: AppConfig = Depends(get_app_config),
):
    """Build the comparison matrix, section totals and contractor totals."""
    with translate_errors():
        return await load_assessment(repos, project_id, config.assessment)


@router.get("/projects/{project_id}/assessment/export")
async def export_assessment(
    project_id: str,
    format: Literal["xlsx", "csv"] = Query(default="xlsx"),
    repos: Repositories = Depends(get_repositories),
    config: AppConfig = Depends(get_app_config),
):
    """Export the assessment as a downloadable file."""
    with translate_errors():
        payload = await load_assessment(repos, project_id, config.assessment)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    if format == "csv":
        filename = f"assessment_{project_id}_{timestamp}.csv"
        return StreamingResponse(
            export_line_items_csv(payload),
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    filename = f"assessment_{project_id}_{timestamp}.xlsx"
    return StreamingResponse(
        generate_assessment_excel(payload),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
