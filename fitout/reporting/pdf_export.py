"""PDF export of client submissions.

Generates the documents handed to the builder using ReportLab:
- Finishes selection (color scheme materials with supplier links)
- Upgrade selections with subtotal, GST and total
- Electrical plan markups placed on the unit floor plan
"""

from __future__ import annotations

import zipfile
from collections.abc import Iterable
from decimal import Decimal
from io import BytesIO
from pathlib import Path
from xml.sax.saxutils import escape

from reportlab.graphics.shapes import Circle, Drawing, Rect, String
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from fitout.catalog.color_schemes import material_entries
from fitout.portal.pricing import gst, total_with_gst, upgrade_subtotal
from fitout.portal.wizard import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    DEFAULT_FLOOR_PLAN_CATEGORIES,
    upgrade_symbol,
)

EXPORT_TYPES = ("finishes", "upgrades", "floorplan")

# Styles
styles = getSampleStyleSheet()
title_style = ParagraphStyle(
    "ExportTitle",
    parent=styles["Heading1"],
    fontSize=20,
    alignment=1,
    spaceAfter=18,
    textColor=colors.HexColor("#2d3748"),
)
heading_style = ParagraphStyle(
    "ExportHeading",
    parent=styles["Heading2"],
    fontSize=16,
    spaceBefore=12,
    spaceAfter=10,
    textColor=colors.HexColor("#2d3748"),
)
normal_style = ParagraphStyle(
    "ExportNormal",
    parent=styles["Normal"],
    fontSize=11,
    leading=15,
    textColor=colors.HexColor("#2d3748"),
)
muted_style = ParagraphStyle(
    "ExportMuted",
    parent=normal_style,
    fontSize=9,
    leading=12,
    leftIndent=14,
    textColor=colors.HexColor("#646464"),
)


def _money(value) -> str:
    return f"${Decimal(str(value or 0)):,.2f}"


def _field(submission, name: str, default=None):
    if isinstance(submission, dict):
        return submission.get(name, default)
    return getattr(submission, name, default)


def _build(story: list) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=20 * mm,
        leftMargin=20 * mm,
        topMargin=20 * mm,
        bottomMargin=20 * mm,
    )
    doc.build(story)
    return buffer.getvalue()


def _header(title: str, submission) -> list:
    submitted = _field(submission, "submitted_date")
    return [
        Paragraph(escape(title), title_style),
        Paragraph(f"Unit: {escape(str(_field(submission, 'unit_number', '')))}", normal_style),
        Paragraph(f"Project: {escape(str(_field(submission, 'project_name', '')))}", normal_style),
        Paragraph(f"Date: {escape(str(submitted or ''))}", normal_style),
        Spacer(1, 8 * mm),
    ]


def generate_finishes_pdf(submission, scheme=None) -> bytes:
    """Finishes selection: scheme name plus one bullet per material."""
    story = _header("Finishes Selection", submission)
    story.append(Paragraph("Selected Finishes Scheme", heading_style))
    scheme_name = _field(submission, "color_scheme") or "Not selected"
    story.append(Paragraph(f"Scheme: {escape(scheme_name)}", normal_style))
    story.append(Spacer(1, 5 * mm))

    materials = _field(scheme, "materials") if scheme is not None else None
    entries = list(material_entries(materials)) if materials else []
    if entries:
        story.append(Paragraph("Materials &amp; Finishes:", heading_style))
        for label, value, link in entries:
            story.append(Paragraph(f"• {escape(label)}: {escape(str(value))}", normal_style))
            if link:
                story.append(Paragraph(f"Supplier: {escape(link)}", muted_style))
    else:
        story.append(
            Paragraph("Material specifications not available for this scheme.", muted_style)
        )
        story.append(
            Paragraph(
                "Please contact your sales representative for detailed material information.",
                muted_style,
            )
        )
    return _build(story)


def generate_upgrades_pdf(
    submission,
    upgrades: list[dict],
    gst_rate: Decimal = Decimal("0.15"),
    gst_included: bool = False,
) -> bytes:
    """Numbered upgrade list followed by subtotal, GST and total."""
    story = _header("Upgrade Selections", submission)

    if not upgrades:
        story.append(Paragraph("No upgrades selected", heading_style))
        return _build(story)

    story.append(Paragraph("Selected Upgrades", heading_style))
    data = [["#", "Upgrade", "Category", "Qty", "Unit Price", "Total"]]
    for index, upgrade in enumerate(upgrades, start=1):
        price = Decimal(str(upgrade.get("price") or 0))
        quantity = int(upgrade.get("quantity") or 0)
        data.append(
            [
                str(index),
                Paragraph(escape(upgrade.get("name", "")), normal_style),
                upgrade.get("category", ""),
                str(quantity),
                _money(price),
                _money(price * quantity),
            ]
        )

    table = Table(data, colWidths=[10 * mm, 58 * mm, 30 * mm, 14 * mm, 28 * mm, 30 * mm])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#edf2f7")),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 10),
                ("ALIGN", (3, 1), (-1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("GRID", (0, 0), (-1, -1), 1, colors.HexColor("#e2e8f0")),
                ("PADDING", (0, 0), (-1, -1), 6),
            ]
        )
    )
    story.append(table)
    story.append(Spacer(1, 8 * mm))

    subtotal = upgrade_subtotal(upgrades)
    tax = gst(subtotal, gst_rate, gst_included)
    rate_label = f"{(Decimal(gst_rate) * 100).normalize():f}%"
    gst_label = f"GST included ({rate_label}):" if gst_included else f"GST ({rate_label}):"
    totals = Table(
        [
            ["Subtotal:", _money(subtotal)],
            [gst_label, _money(tax)],
            ["Total (incl. GST):", _money(total_with_gst(subtotal, gst_rate, gst_included))],
        ],
        colWidths=[50 * mm, 35 * mm],
        hAlign="RIGHT",
    )
    totals.setStyle(
        TableStyle(
            [
                ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
                ("FONTNAME", (0, 2), (-1, 2), "Helvetica-Bold"),
                ("FONTSIZE", (0, 2), (-1, 2), 12),
                ("LINEABOVE", (0, 0), (-1, 0), 1, colors.HexColor("#2d3748")),
            ]
        )
    )
    story.append(totals)
    return _build(story)


def _floor_plan_drawing(file_name: str, upgrades: list[dict], width: float, height: float) -> Drawing:
    drawing = Drawing(width, height)
    drawing.add(Rect(0, 0, width, height, fillColor=colors.HexColor("#f0f0f0"), strokeColor=None))
    drawing.add(
        String(6, height - 14, f"Floor Plan: {file_name}", fontSize=9, fillColor=colors.HexColor("#646464"))
    )
    drawing.add(
        String(
            6,
            height - 26,
            "(Original floor plan with electrical upgrade locations marked)",
            fontSize=9,
            fillColor=colors.HexColor("#646464"),
        )
    )
    for upgrade in upgrades:
        symbol, color = upgrade_symbol(upgrade.get("name", ""))
        for point in upgrade.get("floor_plan_points") or []:
            x = float(point.get("x", 0)) / CANVAS_WIDTH * width
            y = height - float(point.get("y", 0)) / CANVAS_HEIGHT * height
            drawing.add(Circle(x, y, 7, fillColor=colors.HexColor(color), strokeColor=None))
            drawing.add(
                String(x, y - 2.5, symbol, fontSize=6, fillColor=colors.white, textAnchor="middle")
            )
    return drawing


def generate_floor_plan_pdf(
    submission,
    upgrades: list[dict],
    floor_plan_path: Path | None = None,
    categories: Iterable[str] = DEFAULT_FLOOR_PLAN_CATEGORIES,
) -> bytes:
    """Electrical plan markups: placeholder floor plan panel, markers and legend."""
    categories = tuple(categories)
    story = _header("Electrical Plan Markups", submission)
    electrical = [u for u in upgrades if u.get("category") in categories]

    has_floor_plan = floor_plan_path is not None and Path(floor_plan_path).is_file()
    if has_floor_plan:
        story.append(_floor_plan_drawing(Path(floor_plan_path).name, electrical, 170 * mm, 100 * mm))
        story.append(Spacer(1, 6 * mm))

    if not electrical:
        story.append(Paragraph("No electrical upgrades selected", heading_style))
        return _build(story)

    story.append(Paragraph("Electrical Upgrade Legend", heading_style))
    for upgrade in electrical:
        symbol, color = upgrade_symbol(upgrade.get("name", ""))
        story.append(
            Paragraph(
                f'<font color="{color}"><b>•</b></font> {escape(symbol)} - {escape(upgrade.get("name", ""))}',
                normal_style,
            )
        )
        count = len(upgrade.get("floor_plan_points") or [])
        if count:
            story.append(
                Paragraph(f"({count} location{'s' if count > 1 else ''} marked)", muted_style)
            )
        else:
            story.append(Paragraph("(No locations marked)", muted_style))

    story.append(Spacer(1, 6 * mm))
    note_style = ParagraphStyle("ExportNote", parent=muted_style, leftIndent=0)
    story.append(
        Paragraph(
            "Note: This document shows the approximate locations of electrical upgrades.",
            note_style,
        )
    )
    story.append(
        Paragraph(
            "For exact placement details, refer to the digital floor plan in the client portal.",
            note_style,
        )
    )
    if has_floor_plan:
        story.append(
            Paragraph(f"Original floor plan file: {escape(Path(floor_plan_path).name)}", note_style)
        )
    return _build(story)


def export_submission(
    submission,
    scheme=None,
    floor_plan_path: Path | None = None,
    export_types: Iterable[str] = EXPORT_TYPES,
    gst_rate: Decimal = Decimal("0.15"),
    gst_included: bool = False,
    categories: Iterable[str] = DEFAULT_FLOOR_PLAN_CATEGORIES,
) -> tuple[str, str, bytes]:
    """Render the requested documents for a submission.

    Returns:
        tuple: (file name, content type, content); several documents are
        bundled into one zip archive

    Raises:
        ValueError: On unknown export types or when nothing was produced
    """
    export_types = list(export_types or [])
    unknown = [t for t in export_types if t not in EXPORT_TYPES]
    if unknown:
        raise ValueError(f"Unknown export type(s): {', '.join(unknown)}")
    categories = tuple(categories)

    upgrades = list(_field(submission, "selected_upgrades") or [])
    documents: dict[str, bytes] = {}

    if "finishes" in export_types:
        documents["finishes.pdf"] = generate_finishes_pdf(submission, scheme)
    if "upgrades" in export_types:
        documents["upgrades.pdf"] = generate_upgrades_pdf(
            submission, upgrades, gst_rate, gst_included
        )
    if "floorplan" in export_types and any(u.get("category") in categories for u in upgrades):
        documents["electrical-plan.pdf"] = generate_floor_plan_pdf(
            submission, upgrades, floor_plan_path, categories
        )

    if not documents:
        raise ValueError("No documents to export for this submission")

    if len(documents) == 1:
        file_name, content = next(iter(documents.items()))
        return file_name, "application/pdf", content

    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for file_name, content in documents.items():
            archive.writestr(file_name, content)
    unit_number = _field(submission, "unit_number", "unit")
    return f"submission-{unit_number}-documents.zip", "application/zip", buffer.getvalue()
