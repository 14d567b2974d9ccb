"""
Fixtures for document OCR pipeline tests.

poppler and Document AI are replaced by fakes:
- fake PDFs are bytes like b"%PDF-fake pages=3"; pdfinfo reads the count
- page n renders as a 64 x (16 * n) image, so the page number survives
  enhancement (target width 64) and the fake recognizer can read it back
  from the image height
"""

import io
import re
import threading
import time
from pathlib import Path

import pytest
from PIL import Image, ImageDraw

from infra.config import OCRConfig
from infra.logger import PipelineLogger
from infra.recognition import RecognitionClient
from pipeline.document_ocr import enhance as enhance_module
from pipeline.document_ocr import page_count as page_count_module
from pipeline.document_ocr import rasterize as rasterize_module


PAGE_WIDTH = 64
PAGE_UNIT_HEIGHT = 16


def make_fake_pdf(pages) -> bytes:
    return f"%PDF-fake pages={pages}".encode()


def page_image(page: int) -> Image.Image:
    image = Image.new("RGB", (PAGE_WIDTH, PAGE_UNIT_HEIGHT * page), "white")
    draw = ImageDraw.Draw(image)
    draw.rectangle((8, 4, 40, 10), fill="black")
    return image


class EventLog:
    """Thread-safe ordered record of pipeline events."""

    def __init__(self):
        self._lock = threading.Lock()
        self.events = []

    def record(self, kind, page):
        with self._lock:
            self.events.append((kind, page))

    def index(self, kind, page):
        return self.events.index((kind, page))

    def pages(self, kind):
        return [page for k, page in self.events if k == kind]


class FakePoppler:
    """Stand-in for pdf2image's pdfinfo_from_path / convert_from_path."""

    def __init__(self, log: EventLog):
        self.log = log
        self.fail_pages = set()
        self.delays = {}
        self.blank_pages = set()
        self.info_calls = 0

    def pdfinfo_from_path(self, pdf_path, *args, **kwargs):
        self.info_calls += 1
        content = Path(pdf_path).read_bytes().decode("latin-1")
        match = re.search(r"pages=(\S+)", content)
        if not match:
            raise RuntimeError("Syntax Error: Couldn't find trailer dictionary")
        value = match.group(1)
        if value == "missing":
            return {"Title": "untitled"}
        return {"Pages": int(value) if value.isdigit() else value}

    def convert_from_path(self, pdf_path, dpi=200, first_page=None, last_page=None, **kwargs):
        assert first_page == last_page, "Pages are rendered one at a time"
        page = first_page
        self.log.record("rasterize", page)
        time.sleep(self.delays.get(page, 0))
        if page in self.fail_pages:
            raise RuntimeError(f"pdftoppm crashed on page {page}")
        if page in self.blank_pages:
            return []
        return [page_image(page)]


class FakeRecognitionClient(RecognitionClient):
    """Returns canned text per page; records ordering and concurrency."""

    def __init__(self, log: EventLog, texts=None, delays=None, fail_pages=None):
        self.log = log
        self.texts = texts or {}
        self.delays = delays or {}
        self.fail_pages = set(fail_pages or ())
        self.mime_types = []
        self._lock = threading.Lock()
        self._active = 0
        self.peak = 0

    @property
    def name(self) -> str:
        return "fake"

    def recognize(self, image_bytes: bytes, mime_type: str = "image/png") -> str:
        with Image.open(io.BytesIO(image_bytes)) as image:
            page = image.height // PAGE_UNIT_HEIGHT

        with self._lock:
            self._active += 1
            self.peak = max(self.peak, self._active)
            self.mime_types.append(mime_type)

        self.log.record("recognize", page)
        try:
            time.sleep(self.delays.get(page, 0))
            if page in self.fail_pages:
                raise RuntimeError(f"503 Service Unavailable (page {page})")
            return self.texts.get(page, f"Page {page} text")
        finally:
            with self._lock:
                self._active -= 1


@pytest.fixture
def events():
    return EventLog()


@pytest.fixture
def poppler(monkeypatch, events):
    fake = FakePoppler(events)
    monkeypatch.setattr(page_count_module, "pdfinfo_from_path", fake.pdfinfo_from_path)
    monkeypatch.setattr(rasterize_module, "convert_from_path", fake.convert_from_path)
    return fake


@pytest.fixture
def enhancement_hooks(monkeypatch, events):
    """Record enhancement completions; per-page delays and failures."""
    hooks = {"delays": {}, "fail_pages": set()}
    real_enhance = enhance_module.enhance_image

    def recording_enhance(raw_path, out_path, config):
        page = int(re.search(r"page-(\d+)", Path(raw_path).name).group(1))
        time.sleep(hooks["delays"].get(page, 0))
        if page in hooks["fail_pages"]:
            raise OSError(f"cannot identify image file page-{page}.png")
        result = real_enhance(raw_path, out_path, config)
        events.record("enhanced", page)
        return result

    monkeypatch.setattr(enhance_module, "enhance_image", recording_enhance)
    return hooks


@pytest.fixture
def workspace_root(tmp_path):
    root = tmp_path / "workspaces"
    root.mkdir()
    return root


@pytest.fixture
def make_config(workspace_root):
    def _make(**overrides):
        data = {
            "enhancement": {"target_width": PAGE_WIDTH},
            "concurrency": {"rasterization": 2, "enhancement": 2, "recognition": 2},
            "recognition": {"processor": "projects/demo/locations/eu/processors/abc123"},
            "workspace_root": str(workspace_root),
        }
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value
        return OCRConfig.model_validate(data)
    return _make


@pytest.fixture
def fake_pdf():
    """Factory for fake PDF bytes with a given page count."""
    return make_fake_pdf


@pytest.fixture
def fake_client(events):
    """Factory for FakeRecognitionClient sharing the test's event log."""
    def _make(**kwargs):
        return FakeRecognitionClient(events, **kwargs)
    return _make


@pytest.fixture
def logger():
    return PipelineLogger("test", "document-ocr", console_output=False)
