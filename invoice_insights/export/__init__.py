"""
Report export.

Dispatches an export request to the CSV, PDF or plain-text renderer and
wraps the result with its filename and content type. ``pdf`` produces a
real PDF document; the legacy plain-text report is ``txt``.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Optional, Union

from .csv_report import render_csv
from .pdf_report import render_pdf
from .text_report import DEFAULT_AGENCY_NAME, render_text

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    "csv": "text/csv",
    "pdf": "application/pdf",
    "txt": "text/plain",
}


class ExportError(ValueError):
    """Raised when an export request cannot be served."""


@dataclass(frozen=True)
class ExportRequest:
    format: str
    start_date: str
    end_date: str
    data: Optional[Dict]


@dataclass(frozen=True)
class ExportArtifact:
    """Rendered export ready to be written or streamed."""
    filename: str
    content_type: str
    content: Union[str, bytes]

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'

    def as_bytes(self) -> bytes:
        if isinstance(self.content, bytes):
            return self.content
        return self.content.encode("utf-8")


def export_filename(start_date: str, end_date: str, fmt: str) -> str:
    return f"analytics-{start_date}-{end_date}.{fmt}"


def export_report(
    request: ExportRequest,
    generated_on: Optional[date] = None,
    agency_name: str = DEFAULT_AGENCY_NAME,
) -> ExportArtifact:
    """Render an analytics payload in the requested format.

    Args:
        request: Format, date range and analytics payload
        generated_on: Date printed on text and PDF reports (defaults to today)
        agency_name: Title used on text and PDF reports

    Returns:
        ExportArtifact with filename embedding both dates

    Raises:
        ExportError: If data is missing or the format is unknown
    """
    if not request.data:
        raise ExportError("Analytics data is required")

    fmt = (request.format or "").lower()
    if fmt == "csv":
        content = render_csv(request.data, request.start_date, request.end_date)
    elif fmt == "pdf":
        content = render_pdf(
            request.data, request.start_date, request.end_date, generated_on, agency_name
        )
    elif fmt == "txt":
        content = render_text(
            request.data, request.start_date, request.end_date, generated_on, agency_name
        )
    else:
        raise ExportError(f"Invalid format: {request.format}. Use one of: {sorted(CONTENT_TYPES)}")

    artifact = ExportArtifact(
        filename=export_filename(request.start_date, request.end_date, fmt),
        content_type=CONTENT_TYPES[fmt],
        content=content,
    )
    logger.info("Exported %s (%d bytes)", artifact.filename, len(artifact.as_bytes()))
    return artifact
