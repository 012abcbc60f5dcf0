"""
PDF text extraction with PyMuPDF.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF

logger = logging.getLogger(__name__)

# Extracted text is also persisted on the document row; this only spares
# re-parsing files that are read repeatedly.
CACHE_SIZE = 32


class PDFExtractionError(Exception):
    """The file is missing or is not a readable PDF."""


@dataclass(frozen=True)
class PDFContent:
    text: str
    page_count: int


# Least recently used entries are evicted first
_text_cache: "OrderedDict[str, PDFContent]" = OrderedDict()


def extract_text(file_path: str) -> PDFContent:
    """
    Extract the text and page count of a PDF.

    The last ``CACHE_SIZE`` extractions are cached per path.

    Raises:
        PDFExtractionError: If the file doesn't exist or can't be parsed.
    """
    key = str(file_path)
    if key in _text_cache:
        _text_cache.move_to_end(key)
        return _text_cache[key]

    path = Path(file_path)
    if not path.exists():
        raise PDFExtractionError(f"PDF file not found: {path}")

    try:
        with fitz.open(path) as doc:
            pages = [page.get_text() for page in doc]
            content = PDFContent(text="\n".join(pages), page_count=doc.page_count)
    except Exception as e:
        logger.error("Error extracting PDF text from %s: %s", path, e)
        raise PDFExtractionError(f"Failed to extract text from PDF: {e}") from e

    logger.info("Extracted %d chars from %d pages of %s", len(content.text), content.page_count, path.name)
    _text_cache[key] = content
    while len(_text_cache) > CACHE_SIZE:
        _text_cache.popitem(last=False)
    return content


def clear_cache(file_path: Optional[str] = None) -> None:
    """Forget one cached extraction, or all of them."""
    if file_path is None:
        _text_cache.clear()
    else:
        _text_cache.pop(str(file_path), None)
