"""CSV export of the assessment line-item matrix.

One row per ITT item, one column per contractor. Labeled responses
("Included") are written as their label.
"""

from __future__ import annotations

import csv
from collections.abc import Iterator
from io import StringIO

from tendercalc.reporting.models import AssessmentPayload


def export_line_items_csv(payload: AssessmentPayload) -> Iterator[str]:
    """Generate CSV chunks for the line-item comparison.

    Yields:
        CSV rows as strings
    """
    headers = ["Section", "Item Code", "Description", "Unit", "Qty", "Rate", "ITT Amount"]
    headers += [contractor.name for contractor in payload.contractors]

    output = StringIO()
    writer = csv.writer(output)

    writer.writerow(headers)
    yield output.getvalue()
    output.seek(0)
    output.truncate(0)

    sections = {s.section_id: s.name for s in payload.sections}
    for line_item in payload.line_items:
        itt = line_item.itt_item
        row = [
            sections.get(itt.section_id, itt.section_name or ""),
            itt.item_code,
            itt.description,
            itt.unit,
            f"{itt.qty}",
            f"{itt.rate:.2f}",
            f"{itt.amount:.2f}",
        ]
        for contractor in payload.contractors:
            cell = line_item.responses.get(contractor.contractor_id)
            if cell is None:
                row.append("")
            elif cell.amount is not None:
                row.append(f"{cell.amount:.2f}")
            else:
                row.append(cell.amount_label or "")

        writer.writerow(row)
        yield output.getvalue()
        output.seek(0)
        output.truncate(0)
