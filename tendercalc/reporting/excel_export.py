"""Excel export of the tender assessment.

Generates a workbook with:
- Contractor totals summary
- Section totals per contractor
- Line-item comparison matrix
- Exceptions list
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from tendercalc.reporting.models import AssessmentPayload, ResponseCell

HEADER_FILL = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
MONEY_FORMAT = "#,##0.00"


def generate_assessment_excel(payload: AssessmentPayload) -> BytesIO:
    """Generate an Excel workbook for an assessment.

    Returns:
        BytesIO containing the workbook, positioned at 0
    """
    wb = Workbook()

    # Remove default sheet
    if "Sheet" in wb.sheetnames:
        wb.remove(wb["Sheet"])

    _create_summary_sheet(wb, payload)
    _create_sections_sheet(wb, payload)
    _create_line_items_sheet(wb, payload)
    _create_exceptions_sheet(wb, payload)

    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output


def _money(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def _write_header(ws: Worksheet, row: int, headers: list[str]) -> None:
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=row, column=col, value=header)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.alignment = Alignment(horizontal="center")


def _autosize(ws: Worksheet, widths: dict[int, int]) -> None:
    for col, width in widths.items():
        ws.column_dimensions[get_column_letter(col)].width = width


def _cell_display(cell: ResponseCell | None) -> float | str | None:
    if cell is None:
        return None
    if cell.amount is not None:
        return float(cell.amount)
    return cell.amount_label


def _create_summary_sheet(wb: Workbook, payload: AssessmentPayload) -> None:
    ws = wb.create_sheet("Summary", 0)

    ws["A1"] = "Tender Assessment"
    ws["A1"].font = Font(bold=True, size=16)
    ws.merge_cells("A1:C1")

    ws["A3"] = "Project:"
    ws["B3"] = payload.project.name
    ws["A4"] = "Status:"
    ws["B4"] = payload.project.status.value
    ws["A5"] = "Currency:"
    ws["B5"] = payload.project.currency
    ws["A6"] = "Generated:"
    ws["B6"] = datetime.now().strftime("%Y-%m-%d %H:%M")

    row = 8
    _write_header(ws, row, ["Contractor", "Contact", "Total Value"])
    for contractor in payload.contractors:
        row += 1
        ws.cell(row=row, column=1, value=contractor.name)
        ws.cell(row=row, column=2, value=contractor.contact)
        total = ws.cell(row=row, column=3, value=_money(contractor.total_value))
        total.number_format = MONEY_FORMAT

    if payload.anomalies:
        row += 2
        ws.cell(row=row, column=1, value="Skipped matches").font = Font(bold=True)
        for anomaly in payload.anomalies:
            row += 1
            ws.cell(row=row, column=1, value=anomaly.match_id)
            ws.cell(row=row, column=2, value=anomaly.reason)

    _autosize(ws, {1: 30, 2: 30, 3: 18})


def _create_sections_sheet(wb: Workbook, payload: AssessmentPayload) -> None:
    ws = wb.create_sheet("Sections")

    headers = ["Code", "Section", "ITT Amount", "Exceptions"]
    headers += [c.name for c in payload.contractors]
    _write_header(ws, 1, headers)

    for row, section in enumerate(payload.sections, start=2):
        ws.cell(row=row, column=1, value=section.code)
        ws.cell(row=row, column=2, value=section.name)
        ws.cell(row=row, column=3, value=_money(section.total_itt_amount)).number_format = (
            MONEY_FORMAT
        )
        ws.cell(row=row, column=4, value=section.exception_count)
        for offset, contractor in enumerate(payload.contractors):
            total = section.totals_by_contractor.get(contractor.contractor_id)
            cell = ws.cell(row=row, column=5 + offset, value=_money(total))
            cell.number_format = MONEY_FORMAT

    _autosize(ws, {1: 10, 2: 35, 3: 15, 4: 12})
    ws.freeze_panes = "C2"


def _create_line_items_sheet(wb: Workbook, payload: AssessmentPayload) -> None:
    ws = wb.create_sheet("Line Items")

    headers = ["Section", "Item", "Description", "Unit", "Qty", "Rate", "ITT Amount"]
    headers += [c.name for c in payload.contractors]
    _write_header(ws, 1, headers)

    sections = {s.section_id: s for s in payload.sections}
    fixed = len(headers) - len(payload.contractors)
    for row, line_item in enumerate(payload.line_items, start=2):
        itt = line_item.itt_item
        section = sections.get(itt.section_id)
        ws.cell(row=row, column=1, value=section.name if section else itt.section_name)
        ws.cell(row=row, column=2, value=itt.item_code)
        ws.cell(row=row, column=3, value=itt.description)
        ws.cell(row=row, column=4, value=itt.unit)
        ws.cell(row=row, column=5, value=float(itt.qty))
        ws.cell(row=row, column=6, value=_money(itt.rate)).number_format = MONEY_FORMAT
        ws.cell(row=row, column=7, value=_money(itt.amount)).number_format = MONEY_FORMAT
        for offset, contractor in enumerate(payload.contractors, start=1):
            cell = line_item.responses.get(contractor.contractor_id)
            target = ws.cell(row=row, column=fixed + offset, value=_cell_display(cell))
            if cell is not None and cell.amount is not None:
                target.number_format = MONEY_FORMAT
            if cell is not None and not cell.match_status.is_settled:
                target.font = Font(italic=True, color="808080")

    _autosize(ws, {1: 25, 2: 10, 3: 50, 4: 8, 5: 10, 6: 12, 7: 15})
    ws.freeze_panes = "D2"


def _create_exceptions_sheet(wb: Workbook, payload: AssessmentPayload) -> None:
    ws = wb.create_sheet("Exceptions")

    _write_header(ws, 1, ["Contractor", "Description", "Section", "Amount", "Note"])

    sections = {s.section_id: s.name for s in payload.sections}
    for row, exception in enumerate(payload.exceptions, start=2):
        section_name = sections.get(exception.attached_section_id or "", "")
        ws.cell(row=row, column=1, value=exception.contractor_name)
        ws.cell(row=row, column=2, value=exception.description)
        ws.cell(row=row, column=3, value=section_name)
        ws.cell(row=row, column=4, value=_money(exception.amount)).number_format = MONEY_FORMAT
        ws.cell(row=row, column=5, value=exception.note)

    _autosize(ws, {1: 25, 2: 50, 3: 25, 4: 15, 5: 40})
