"""
Document OCR pipeline coordinator.

One run turns PDF bytes into page-ordered text:

    session workspace (ocr-<hex>/)
      -> page count (pdfinfo)
      -> rasterize all pages (bounded)
      -> per page: enhance -> recognize (each stage bounded independently,
         page i recognized as soon as page i is enhanced)
      -> assemble text in page order
      -> workspace removed (always)
"""

import threading
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Dict, List, Optional

from infra.concurrency import ConcurrencyGate
from infra.config.schemas import OCRConfig
from infra.errors import PipelineAborted
from infra.logger import PipelineLogger, create_logger
from infra.recognition import RecognitionClient

from .enhance import Enhancer, fail_signal
from .page_count import count_pages
from .rasterize import Rasterizer
from .recognize import Recognizer
from .schemas import DocumentResult, PageTask, Session, SessionState


STAGE_NAME = "document-ocr"
PAGE_MARKER = "\n\n===== PAGE {page} =====\n\n"


def assemble_text(texts: List[str], include_markers: bool = False) -> str:
    if include_markers:
        text = "".join(
            PAGE_MARKER.format(page=page) + page_text
            for page, page_text in enumerate(texts, 1)
        )
    else:
        text = "\n\n".join(texts)
    return text.strip()


class PipelineCoordinator:
    """
    Runs the OCR pipeline for one document at a time per call.

    Gates are created once per coordinator, so concurrent run() calls on the
    same coordinator share each stage's limit.

    Usage:
        client = DocumentAIClient.from_config(config.recognition)
        coordinator = PipelineCoordinator(config, client)
        result = coordinator.run(pdf_path.read_bytes())
    """

    def __init__(
        self,
        config: OCRConfig,
        client: RecognitionClient,
        console_output: bool = True,
    ):
        self.config = config
        self.client = client
        self.console_output = console_output

        limits = config.concurrency
        self.gates: Dict[str, ConcurrencyGate] = {
            "rasterization": ConcurrencyGate("rasterization", limits.rasterization),
            "enhancement": ConcurrencyGate("enhancement", limits.enhancement),
            "recognition": ConcurrencyGate("recognition", limits.recognition),
        }

    def run(self, pdf_bytes: bytes, include_markers: Optional[bool] = None) -> DocumentResult:
        markers = self.config.page_markers if include_markers is None else include_markers

        session = Session.create(self.config.workspace_root)
        logger = create_logger(
            session.id,
            STAGE_NAME,
            log_dir=self.config.log_dir,
            console_output=self.console_output,
            level=self.config.log_level,
            filename=f"{session.id}.jsonl",
        )

        try:
            # First log call opens the JSONL file
            start_time = time.time()
            logger.start_stage()

            result = self._run_session(session, pdf_bytes, markers, logger)
            logger.complete_stage(
                duration_seconds=time.time() - start_time,
                pages=result.pages,
                chars=result.length,
            )
            return result
        except Exception as e:
            logger.error("Pipeline failed", error=str(e))
            raise
        finally:
            try:
                if session.state is not SessionState.DONE:
                    session.transition(SessionState.ERRORED)
                session.cleanup()
                logger.debug("Workspace removed")
            finally:
                logger.close()

    def _run_session(
        self,
        session: Session,
        pdf_bytes: bytes,
        include_markers: bool,
        logger: PipelineLogger,
    ) -> DocumentResult:
        session.pdf_path.write_bytes(pdf_bytes)

        session.transition(SessionState.RASTERIZING)
        page_count = count_pages(session.pdf_path)
        logger.info(f"Document has {page_count} pages", pages=page_count)

        rasterizer = Rasterizer(self.gates["rasterization"], self.config.dpi, logger)
        raw_paths = rasterizer.rasterize(session.pdf_path, session.raw_dir, page_count)

        session.pages = [
            PageTask(index=page, raw_path=raw_path, enhanced_path=session.enhanced_path_for(page))
            for page, raw_path in enumerate(raw_paths, 1)
        ]

        session.transition(SessionState.PIPELINING)
        self._run_pages(session, logger)

        session.transition(SessionState.ASSEMBLING)
        texts = [task.text for task in session.pages]
        text = assemble_text(texts, include_markers)
        empty_pages = [task.index for task in session.pages if not task.text]

        if empty_pages:
            logger.warning(f"{len(empty_pages)} pages without text: {empty_pages}")

        result = DocumentResult(
            success=True,
            text=text,
            pages=len(session.pages),
            length=len(text),
            empty_pages=empty_pages,
            session_id=session.id,
        )
        session.transition(SessionState.DONE)
        return result

    def _run_pages(self, session: Session, logger: PipelineLogger) -> None:
        pages = session.pages
        signals: List[Future] = [Future() for _ in pages]
        abort = threading.Event()

        enhancer = Enhancer(self.gates["enhancement"], self.config.enhancement, logger)
        recognizer = Recognizer(
            self.gates["recognition"],
            self.client,
            logger,
            mime_type=self.config.recognition.mime_type,
        )

        limits = self.config.concurrency
        max_workers = min(2 * len(pages), 2 * (limits.enhancement + limits.recognition))

        executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=f"ocr-{session.id}",
        )
        future_to_page: Dict[Future, int] = {}

        try:
            # E1, R1, E2, R2, ... : a recognizer is never dequeued before its enhancer
            for task, signal in zip(pages, signals):
                future_to_page[executor.submit(enhancer.run, task, signal, abort)] = task.index
                future_to_page[executor.submit(recognizer.run, task, signal, abort)] = task.index

            wait(future_to_page, return_when=FIRST_EXCEPTION)
        finally:
            if not all(future.done() for future in future_to_page):
                abort.set()
                for signal in signals:
                    fail_signal(signal, PipelineAborted(f"Session {session.id} aborted"))
            executor.shutdown(wait=True, cancel_futures=True)

        failures = [
            (future_to_page[future], future.exception())
            for future in future_to_page
            if not future.cancelled() and future.exception() is not None
        ]
        if failures:
            page, error = min(failures, key=lambda item: item[0])
            logger.page_error("Aborting session", page=page, error=str(error))
            raise error

        logger.info(f"All {len(pages)} pages recognized", pages=len(pages))
