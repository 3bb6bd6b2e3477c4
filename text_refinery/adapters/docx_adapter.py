from __future__ import annotations
from docx import Document


def extract_text(docx_path: str) -> str:
    """Body text of a .docx, one blank line between non-empty paragraphs."""
    doc = Document(docx_path)
    return "\n\n".join(p.text for p in doc.paragraphs if p.text.strip())
