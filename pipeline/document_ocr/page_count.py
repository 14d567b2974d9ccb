from pathlib import Path

from pdf2image.exceptions import PDFInfoNotInstalledError
from pdf2image.pdf2image import pdfinfo_from_path

from infra.errors import InvalidDocument


def count_pages(pdf_path: Path) -> int:
    """
    Number of pages reported by poppler's pdfinfo.

    Raises:
        InvalidDocument: pdfinfo failed, or reported a missing,
            non-numeric or non-positive page count
        PDFInfoNotInstalledError: poppler is not installed
    """
    try:
        info = pdfinfo_from_path(str(pdf_path))
    except PDFInfoNotInstalledError:
        raise
    except Exception as e:
        raise InvalidDocument(f"Could not read {pdf_path.name}: {e}") from e

    raw = info.get('Pages')
    if raw is None:
        raise InvalidDocument(f"No page count reported for {pdf_path.name}")

    try:
        pages = int(str(raw).strip())
    except ValueError as e:
        raise InvalidDocument(f"Page count is not a number: {raw!r}") from e

    if pages < 1:
        raise InvalidDocument(f"Page count must be positive, got {pages}")

    return pages
