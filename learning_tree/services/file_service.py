import logging
import asyncio
from dataclasses import dataclass

import fitz  # PyMuPDF

from learning_tree.core.config import settings

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"
PDF_CONTENT_TYPE = "application/pdf"


@dataclass
class ExtractedPdf:
    text: str
    page_count: int


def validate_content_type(content_type: str | None) -> None:
    """Declared content type must be application/pdf; checked before reading."""
    if content_type != PDF_CONTENT_TYPE:
        raise ValueError(f"Only PDF files are allowed! Got: '{content_type}'")


def validate_pdf(content: bytes, content_type: str | None) -> None:
    """
    Upload validation, raises ValueError:
    1. Declared content type must be application/pdf
    2. File must not be empty
    3. Magic bytes must start with %PDF
    Size is checked separately (413).
    """
    validate_content_type(content_type)

    if len(content) == 0:
        raise ValueError("Uploaded file is empty.")

    if not content[:4].startswith(PDF_MAGIC):
        raise ValueError("File does not appear to be a valid PDF (invalid magic bytes).")


def exceeds_size_limit(size: int | None) -> bool:
    """Byte count over MAX_FILE_SIZE_MB; an unknown size is not over."""
    return size is not None and size > settings.MAX_FILE_SIZE_MB * 1024 * 1024


async def extract_text_from_pdf(content: bytes) -> ExtractedPdf:
    """
    Extract text from PDF using PyMuPDF (fitz).
    Pages are joined with blank lines so the chunker sees page breaks as
    paragraph breaks. Runs in a thread pool to keep the event loop free.
    """
    def _process_pdf(data: bytes) -> ExtractedPdf:
        with fitz.open(stream=data, filetype="pdf") as doc:
            pages = [page.get_text("text") for page in doc]
            return ExtractedPdf(
                text="\n\n".join(p for p in pages if p.strip()),
                page_count=doc.page_count,
            )

    result = await asyncio.to_thread(_process_pdf, content)
    logger.info(f"[PDF] ✅ Extracted {len(result.text)} characters from {result.page_count} pages")
    return result
