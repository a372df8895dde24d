import logging

import fitz  # pymupdf

from app.core.errors import ValidationError

logger = logging.getLogger(__name__)

MAX_PDF_BYTES = 10 * 1024 * 1024


def parse_resume(data: bytes) -> str:
    """Extract plain text from an uploaded PDF resume."""
    if not data:
        raise ValidationError("Resume file is empty", field="file")
    if len(data) > MAX_PDF_BYTES:
        raise ValidationError("Resume file is too large", field="file")

    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        logger.warning(f"Could not open uploaded resume as PDF: {e}")
        raise ValidationError("File is not a readable PDF", field="file") from e

    text = ""
    with doc:
        for page in doc:
            text += page.get_text()

    text = text.strip()
    if not text:
        raise ValidationError("No text found in PDF", field="file")
    return text
