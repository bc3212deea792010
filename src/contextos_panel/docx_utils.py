from __future__ import annotations
from io import BytesIO
from typing import List, Tuple
from docx import Document
from docx.shared import Pt
class DocxExportError(RuntimeError):
    """Raised when a composite prompt cannot be exported to DOCX."""
SECTION_MARKERS = ("ADDITIONAL CONTEXT:", "SUPPLEMENTARY EXTRACTS:", "Q&A CONTEXT:")
def split_sections(composite: str) -> List[Tuple[str, str]]:
    sections: List[Tuple[str, str]] = [("Enhanced Prompt", "")]
    for block in composite.split("\n\n"):
        stripped = block.strip()
        marker = next((m for m in SECTION_MARKERS if stripped.startswith(m)), None)
        if marker:
            sections.append((marker.rstrip(":").title(), stripped[len(marker):].strip()))
            continue
        title, body = sections[-1]
        sections[-1] = (title, f"{body}\n\n{block}" if body else block)
    return [(title, body.strip()) for title, body in sections if body.strip()]
def composite_to_docx_bytes(composite: str, title: str = "ContextOS Enhanced Prompt") -> bytes:
    if not composite or not composite.strip():
        raise DocxExportError("There is no enhanced prompt to export yet.")
    doc = Document()
    doc.add_heading(title, level=1)
    for heading, body in split_sections(composite):
        doc.add_heading(heading, level=2)
        for paragraph_text in body.split("\n\n"):
            paragraph = doc.add_paragraph()
            run = paragraph.add_run(paragraph_text.strip())
            run.font.size = Pt(11)
    bio = BytesIO()
    doc.save(bio)
    return bio.getvalue()
