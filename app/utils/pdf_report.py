"""
Render an incident as a simple one-column PDF report.
"""
import io
import json
from typing import Any, Dict

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

MARGIN = 50
LINE_HEIGHT = 16
BODY_FONT_SIZE = 10
# Helvetica at 10pt averages roughly 5pt per character
CHARS_PER_LINE = 95


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def _wrap(text: str, width: int = CHARS_PER_LINE):
    if not text:
        return [""]
    return [text[i:i + width] for i in range(0, len(text), width)]


def render_incident_pdf(incident: Dict[str, Any]) -> bytes:
    """Return PDF bytes listing every field of the serialized incident"""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    page_width, page_height = A4

    c.setTitle(f"Incident {incident.get('id', '')}")
    c.setFont("Helvetica-Bold", 20)
    c.drawString(MARGIN, page_height - MARGIN - 20, "Incident Report")

    y = page_height - MARGIN - 60
    c.setFont("Helvetica", BODY_FONT_SIZE)
    for key, value in incident.items():
        for line in _wrap(f"{key}: {_format_value(value)}"):
            if y < MARGIN:
                c.showPage()
                c.setFont("Helvetica", BODY_FONT_SIZE)
                y = page_height - MARGIN
            c.drawString(MARGIN, y, line)
            y -= LINE_HEIGHT

    c.showPage()
    c.save()
    return buf.getvalue()
