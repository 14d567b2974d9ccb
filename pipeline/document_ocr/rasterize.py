import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from pathlib import Path
from typing import List

from pdf2image import convert_from_path

from infra.concurrency import ConcurrencyGate
from infra.errors import StageFailure
from infra.logger import PipelineLogger


STAGE = "rasterization"


def raw_page_path(out_dir: Path, page: int) -> Path:
    return out_dir / f"page-{page}.png"


class Rasterizer:
    """
    Renders each PDF page to page-{n}.png, at most `gate.limit` at a time.

    The first failing page stops the stage: queued pages are cancelled,
    pages already converting are allowed to finish, and the failure of the
    lowest page index is raised.
    """

    def __init__(self, gate: ConcurrencyGate, dpi: int, logger: PipelineLogger):
        self.gate = gate
        self.dpi = dpi
        self.logger = logger

    def rasterize(self, pdf_path: Path, out_dir: Path, page_count: int) -> List[Path]:
        start_time = time.time()
        paths = [raw_page_path(out_dir, n) for n in range(1, page_count + 1)]

        with ThreadPoolExecutor(
            max_workers=min(page_count, self.gate.limit),
            thread_name_prefix=STAGE,
        ) as executor:
            future_to_page = {
                executor.submit(self._rasterize_page, pdf_path, page, path): page
                for page, path in enumerate(paths, 1)
            }

            _, pending = wait(future_to_page, return_when=FIRST_EXCEPTION)
            if pending:
                for future in pending:
                    future.cancel()
                wait(pending)

        failures = [
            (future_to_page[future], future.exception())
            for future in future_to_page
            if not future.cancelled() and future.exception() is not None
        ]
        if failures:
            page, error = min(failures, key=lambda item: item[0])
            self.logger.page_error("Rasterization failed", page=page, error=str(error))
            raise error

        for page, path in enumerate(paths, 1):
            if not path.is_file():
                raise StageFailure(STAGE, page, f"expected output missing: {path.name}")

        self.logger.info(
            f"Rasterized {page_count} pages at {self.dpi} DPI",
            pages=page_count,
            duration_seconds=time.time() - start_time,
        )
        return paths

    def _rasterize_page(self, pdf_path: Path, page: int, out_path: Path) -> Path:
        with self.gate:
            try:
                images = convert_from_path(
                    str(pdf_path),
                    dpi=self.dpi,
                    first_page=page,
                    last_page=page,
                )
                if not images:
                    raise RuntimeError(f"No image returned for page {page}")
                images[0].save(out_path, format='PNG')
            except Exception as e:
                raise StageFailure(STAGE, page, str(e)) from e

        self.logger.debug("Page rasterized", page=page)
        return out_path
