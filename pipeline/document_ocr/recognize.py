import re
import threading
import time
import warnings
from concurrent.futures import Future
from pathlib import Path
from typing import Optional

from infra.concurrency import ConcurrencyGate
from infra.errors import EmptyResult, PipelineAborted, StageFailure
from infra.logger import PipelineLogger
from infra.recognition import RecognitionClient

from .schemas import PageTask


STAGE = "recognition"


def normalize_text(text: str) -> str:
    """
    Canonical line structure for recognized text.

    CRLF and lone CR become LF, trailing spaces/tabs before a line break are
    dropped, runs of 3+ newlines collapse to one blank line, and the result
    is trimmed.
    """
    text = text.replace('\r\n', '\n').replace('\r', '\n')
    text = re.sub(r'[ \t]+\n', '\n', text)
    text = re.sub(r'\n{3,}', '\n\n', text)
    return text.strip()


class Recognizer:
    """
    Sends one enhanced page to the recognition engine.

    The page's signal is awaited before a recognition permit is requested, so
    permits are only held by pages whose image is ready.
    """

    def __init__(
        self,
        gate: ConcurrencyGate,
        client: RecognitionClient,
        logger: PipelineLogger,
        mime_type: str = "image/png"
    ):
        self.gate = gate
        self.client = client
        self.logger = logger
        self.mime_type = mime_type

    def run(self, task: PageTask, signal: Future, abort: threading.Event) -> Optional[str]:
        try:
            enhanced_path = signal.result()
        except PipelineAborted:
            return None

        with self.gate:
            if abort.is_set():
                return None
            start_time = time.time()
            try:
                image_bytes = Path(enhanced_path).read_bytes()
                raw_text = self.client.recognize(image_bytes, mime_type=self.mime_type)
            except Exception as e:
                self.logger.page_error("Recognition failed", page=task.index, error=str(e))
                raise StageFailure(STAGE, task.index, str(e)) from e

        text = normalize_text(raw_text or "")
        task.mark_recognized(text)

        if not text:
            self.logger.warning("No text detected", page=task.index)
            warnings.warn(f"Page {task.index}: recognition returned no text", EmptyResult)

        self.logger.page_event(
            "Page recognized",
            page=task.index,
            chars=len(text),
            duration_seconds=time.time() - start_time,
        )
        return text
