"""Render the analytics report as a PDF document."""

from datetime import date
from io import BytesIO
from typing import Dict, Optional

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from .text_report import DEFAULT_AGENCY_NAME, build_sections

MARGIN = 50
HEADER_HEIGHT = 96
LINE_HEIGHT = 16
SECTION_GAP = 14


def render_pdf(
    data: Dict,
    start_date: str,
    end_date: str,
    generated_on: Optional[date] = None,
    agency_name: str = DEFAULT_AGENCY_NAME,
) -> bytes:
    """Draw the report sections onto A4 pages and return the PDF bytes."""

    title, *sections = build_sections(data, start_date, end_date, generated_on, agency_name)
    buffer = BytesIO()
    pdf_canvas = canvas.Canvas(buffer, pagesize=A4)
    pdf_canvas.setTitle(f"Analytics {start_date} - {end_date}")
    width, height = A4

    primary_color = HexColor("#0F172A")
    accent_color = HexColor("#6366F1")
    muted_text = HexColor("#64748B")
    border_color = HexColor("#E2E8F0")

    def draw_header() -> float:
        pdf_canvas.setFillColor(primary_color)
        pdf_canvas.rect(0, height - HEADER_HEIGHT, width, HEADER_HEIGHT, fill=1, stroke=0)
        pdf_canvas.setFont("Helvetica-Bold", 16)
        pdf_canvas.setFillColor(HexColor("#FFFFFF"))
        pdf_canvas.drawString(MARGIN, height - 44, title[0])
        pdf_canvas.setFont("Helvetica", 10)
        pdf_canvas.setFillColor(HexColor("#CBD5F5"))
        pdf_canvas.drawString(MARGIN, height - 62, title[1])
        pdf_canvas.drawString(MARGIN, height - 76, title[2])
        return height - HEADER_HEIGHT - 30

    def new_page() -> float:
        pdf_canvas.showPage()
        return height - MARGIN

    y_position = draw_header()
    for heading, *lines in sections:
        if y_position - LINE_HEIGHT * 2 < MARGIN:
            y_position = new_page()

        pdf_canvas.setFont("Helvetica-Bold", 12)
        pdf_canvas.setFillColor(accent_color)
        pdf_canvas.drawString(MARGIN, y_position, heading)
        pdf_canvas.setStrokeColor(border_color)
        pdf_canvas.line(MARGIN, y_position - 5, width - MARGIN, y_position - 5)
        y_position -= LINE_HEIGHT + 4

        pdf_canvas.setFont("Helvetica", 10)
        pdf_canvas.setFillColor(primary_color)
        if not lines:
            pdf_canvas.setFillColor(muted_text)
            pdf_canvas.drawString(MARGIN, y_position, "No data")
            y_position -= LINE_HEIGHT
        for line in lines:
            if y_position < MARGIN:
                y_position = new_page()
                pdf_canvas.setFont("Helvetica", 10)
                pdf_canvas.setFillColor(primary_color)
            pdf_canvas.drawString(MARGIN, y_position, line)
            y_position -= LINE_HEIGHT

        y_position -= SECTION_GAP

    pdf_canvas.setFont("Helvetica", 8)
    pdf_canvas.setFillColor(muted_text)
    pdf_canvas.drawString(MARGIN, MARGIN / 2, "End of Report")
    pdf_canvas.save()
    return buffer.getvalue()
