"""
Page image enhancement.

Transform chain applied to every rasterized page before recognition:

    grayscale -> resize to target width (Lanczos, aspect preserved)
    -> autocontrast (1% cutoff) -> median denoise -> unsharp mask
    -> inverse gamma -> binarize at threshold -> PNG (compress level 6)

The written file is re-opened and verified before the page's signal is
fulfilled.
"""

import os
import threading
import time
from concurrent.futures import Future, InvalidStateError
from pathlib import Path

from PIL import Image, ImageFilter, ImageOps

from infra.concurrency import ConcurrencyGate
from infra.config.schemas import EnhancementConfig
from infra.errors import StageFailure
from infra.logger import PipelineLogger

from .schemas import PageTask


STAGE = "enhancement"
PNG_COMPRESS_LEVEL = 6


def median_size(size: int) -> int:
    """Odd median window for a configured size (0 means disabled)."""
    if size <= 1:
        return 0
    return size if size % 2 else size + 1


def gamma_table(ungamma: float):
    exponent = 1.0 / ungamma
    return [round(255 * (value / 255) ** exponent) for value in range(256)]


def enhance_image(raw_path: Path, out_path: Path, config: EnhancementConfig) -> Path:
    with Image.open(raw_path) as source:
        image = ImageOps.grayscale(source)

    if image.width != config.target_width:
        height = max(1, round(image.height * config.target_width / image.width))
        image = image.resize((config.target_width, height), Image.Resampling.LANCZOS)

    image = ImageOps.autocontrast(image, cutoff=1)

    size = median_size(config.median)
    if size:
        image = image.filter(ImageFilter.MedianFilter(size))

    image = image.filter(ImageFilter.UnsharpMask(radius=config.sharpen_sigma))

    if config.ungamma != 1.0:
        image = image.point(gamma_table(config.ungamma))

    threshold = config.threshold
    image = image.point(lambda value: 255 if value >= threshold else 0)

    image.save(out_path, format='PNG', compress_level=PNG_COMPRESS_LEVEL)
    verify_image(out_path)
    return out_path


def verify_image(path: Path) -> None:
    if not os.access(path, os.R_OK):
        raise OSError(f"Enhanced image not readable: {path}")
    with Image.open(path) as written:
        written.verify()


def fulfil_signal(signal: Future, value) -> None:
    try:
        signal.set_result(value)
    except InvalidStateError:
        pass  # already failed by an abort


def fail_signal(signal: Future, error: BaseException) -> None:
    try:
        signal.set_exception(error)
    except InvalidStateError:
        pass  # already settled


class Enhancer:
    """Runs enhance_image for one page under the enhancement gate, then signals its recognizer."""

    def __init__(self, gate: ConcurrencyGate, config: EnhancementConfig, logger: PipelineLogger):
        self.gate = gate
        self.config = config
        self.logger = logger

    def run(self, task: PageTask, signal: Future, abort: threading.Event):
        if abort.is_set():
            return None

        try:
            with self.gate:
                if abort.is_set():
                    return None
                start_time = time.time()
                try:
                    enhance_image(task.raw_path, task.enhanced_path, self.config)
                except Exception as e:
                    raise StageFailure(STAGE, task.index, str(e)) from e
        except StageFailure as failure:
            self.logger.page_error("Enhancement failed", page=task.index, error=failure.message)
            fail_signal(signal, failure)
            raise

        task.mark_enhanced()
        fulfil_signal(signal, task.enhanced_path)
        self.logger.debug(
            "Page enhanced",
            page=task.index,
            duration_seconds=time.time() - start_time,
        )
        return task.enhanced_path
