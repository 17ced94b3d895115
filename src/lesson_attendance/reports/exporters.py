"""Renderers for tabular exports (CSV, Excel, PDF, print view)."""

from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Sequence

import pandas as pd
from flask import render_template
from openpyxl.styles import Font
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# format -> (mimetype, file extension)
EXPORT_FORMATS = {
    "csv": ("text/csv", "csv"),
    "xlsx": (XLSX_MIMETYPE, "xlsx"),
    "excel": (XLSX_MIMETYPE, "xlsx"),
    "pdf": ("application/pdf", "pdf"),
}

_EXCEL_SHEET_INVALID = re.compile(r"[\[\]:*?/\\]")


@dataclass(frozen=True)
class ExportTable:
    title: str
    headers: Sequence[str]
    rows: Sequence[Sequence[Any]] = field(default_factory=list)
    school_name: Optional[str] = None
    logo_url: Optional[str] = None

    @property
    def full_title(self) -> str:
        return f"{self.school_name} - {self.title}" if self.school_name else self.title


def export_filename(table: ExportTable, extension: str, *, generated_at: datetime) -> str:
    slug = re.sub(r"[^A-Za-z0-9]+", "_", table.title).strip("_").lower() or "export"
    return f"{slug}_{generated_at.strftime('%Y%m%d')}.{extension}"


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def to_csv_bytes(table: ExportTable) -> bytes:
    out = io.StringIO()
    writer = csv.writer(out)
    writer.writerow(table.headers)
    for row in table.rows:
        writer.writerow([_cell(v) for v in row])
    # BOM so Excel opens UTF-8 names correctly.
    return out.getvalue().encode("utf-8-sig")


def to_excel_bytes(table: ExportTable, *, generated_at: datetime) -> bytes:
    """Workbook with a title row, a generation-date row and bold headers."""

    df = pd.DataFrame([list(r) for r in table.rows], columns=list(table.headers))
    sheet_name = _EXCEL_SHEET_INVALID.sub(" ", table.title)[:31] or "Sheet1"

    out = io.BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name, startrow=3)
        ws = writer.sheets[sheet_name]
        ws.cell(row=1, column=1, value=table.full_title).font = Font(bold=True, size=14)
        ws.cell(row=2, column=1, value=f"Generated on: {generated_at.strftime('%Y-%m-%d %H:%M')}")
        for col_idx, header in enumerate(table.headers, start=1):
            ws.cell(row=4, column=col_idx).font = Font(bold=True)
            width = max([len(str(header))] + [len(_cell(r[col_idx - 1])) for r in table.rows])
            ws.column_dimensions[ws.cell(row=4, column=col_idx).column_letter].width = min(width + 2, 50)
    return out.getvalue()


def to_pdf_bytes(table: ExportTable, *, generated_at: datetime) -> bytes:
    buffer = io.BytesIO()
    pagesize = landscape(A4)
    pdf = SimpleDocTemplate(buffer, pagesize=pagesize, rightMargin=25, leftMargin=25, topMargin=40, bottomMargin=40)

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("ExportTitle", parent=styles["Title"], fontSize=14, leading=18, spaceAfter=4)
    info_style = ParagraphStyle("ExportInfo", parent=styles["Normal"], fontSize=9, alignment=1)

    elements = [
        Paragraph(table.full_title, title_style),
        Paragraph(f"Generated on: {generated_at.strftime('%Y-%m-%d %H:%M')}", info_style),
        Spacer(1, 10),
    ]

    data = [list(table.headers)] + [[_cell(v) for v in row] for row in table.rows]
    grid = Table(data, repeatRows=1)
    grid.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#003366")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, 0), 10),
                ("FONTSIZE", (0, 1), (-1, -1), 9),
                ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f0f4ff")]),
            ]
        )
    )
    elements.append(grid)

    def add_page_number(canvas, doc):
        canvas.setFont("Helvetica", 8)
        canvas.drawRightString(pagesize[0] - 25, 20, f"Page {canvas.getPageNumber()}")

    pdf.build(elements, onFirstPage=add_page_number, onLaterPages=add_page_number)
    return buffer.getvalue()


def render_print_html(table: ExportTable, *, generated_at: datetime, letterhead: Optional[str] = None) -> str:
    """Printable HTML page; needs a Flask app context."""

    return render_template(
        "print_table.html",
        table=table,
        rows=[[_cell(v) for v in row] for row in table.rows],
        generated_at=generated_at.strftime("%Y-%m-%d %H:%M"),
        letterhead=letterhead,
    )
