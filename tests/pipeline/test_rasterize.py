"""
Tests for page counting and rasterization.

pdf2image is replaced by FakePoppler (see conftest.py).
"""

import pytest
from PIL import Image

from infra.concurrency import ConcurrencyGate
from infra.errors import InvalidDocument, StageFailure
from pipeline.document_ocr.page_count import count_pages
from pipeline.document_ocr.rasterize import Rasterizer


PAGE_UNIT_HEIGHT = 16


@pytest.fixture
def pdf_file(tmp_path, fake_pdf):
    def _write(pages):
        path = tmp_path / "input.pdf"
        path.write_bytes(fake_pdf(pages))
        return path
    return _write


class TestCountPages:

    def test_reports_pages(self, poppler, pdf_file):
        assert count_pages(pdf_file(12)) == 12

    @pytest.mark.parametrize("pages", [0, "missing", "lots"])
    def test_invalid_counts(self, poppler, pdf_file, pages):
        with pytest.raises(InvalidDocument):
            count_pages(pdf_file(pages))

    def test_unreadable_document(self, poppler, tmp_path):
        path = tmp_path / "input.pdf"
        path.write_bytes(b"garbage")

        with pytest.raises(InvalidDocument) as exc_info:
            count_pages(path)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_missing_poppler_not_blamed_on_document(self, pdf_file, monkeypatch):
        from pdf2image.exceptions import PDFInfoNotInstalledError

        from pipeline.document_ocr import page_count as page_count_module

        def pdfinfo_from_path(*args, **kwargs):
            raise PDFInfoNotInstalledError("Unable to get page count. Is poppler installed and in PATH?")

        monkeypatch.setattr(page_count_module, "pdfinfo_from_path", pdfinfo_from_path)

        with pytest.raises(PDFInfoNotInstalledError):
            count_pages(pdf_file(3))


class TestRasterizer:

    def test_renders_every_page_in_order(self, poppler, pdf_file, tmp_path, logger):
        out_dir = tmp_path / "pages"
        out_dir.mkdir()
        gate = ConcurrencyGate("rasterization", 2)

        paths = Rasterizer(gate, 300, logger).rasterize(pdf_file(5), out_dir, 5)

        assert [p.name for p in paths] == [f"page-{n}.png" for n in range(1, 6)]
        for n, path in enumerate(paths, 1):
            with Image.open(path) as image:
                assert image.height == PAGE_UNIT_HEIGHT * n
        assert gate.peak <= 2
        assert gate.active == 0

    def test_failure_reports_lowest_page(self, poppler, pdf_file, tmp_path, logger):
        """Simultaneous failures resolve to the lowest page index."""
        out_dir = tmp_path / "pages"
        out_dir.mkdir()
        poppler.fail_pages = {2, 3}
        poppler.delays = {3: 0.0, 2: 0.05}

        with pytest.raises(StageFailure) as exc_info:
            Rasterizer(ConcurrencyGate("rasterization", 4), 300, logger).rasterize(
                pdf_file(4), out_dir, 4
            )

        assert exc_info.value.stage == "rasterization"
        assert exc_info.value.page == 2
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_queued_pages_cancelled(self, poppler, pdf_file, tmp_path, logger):
        """With one worker, pages after the failing one are never converted."""
        out_dir = tmp_path / "pages"
        out_dir.mkdir()
        poppler.fail_pages = {1}
        poppler.delays = {n: 0.05 for n in range(2, 7)}

        with pytest.raises(StageFailure):
            Rasterizer(ConcurrencyGate("rasterization", 1), 300, logger).rasterize(
                pdf_file(6), out_dir, 6
            )

        assert poppler.log.pages("rasterize")[0] == 1
        assert len(poppler.log.pages("rasterize")) < 6

    def test_missing_output(self, poppler, pdf_file, tmp_path, logger):
        out_dir = tmp_path / "pages"
        out_dir.mkdir()
        poppler.blank_pages = {2}

        with pytest.raises(StageFailure) as exc_info:
            Rasterizer(ConcurrencyGate("rasterization", 2), 300, logger).rasterize(
                pdf_file(3), out_dir, 3
            )
        assert exc_info.value.page == 2
