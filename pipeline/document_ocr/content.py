from pathlib import Path
from typing import BinaryIO

from .coordinator import PipelineCoordinator


TEXT_SUFFIXES = {'.txt'}


def extract_content(
    stream: BinaryIO,
    file_name: str,
    coordinator: PipelineCoordinator,
    include_markers: bool = False,
) -> bytes:
    """
    Text content of an uploaded document.

    Plain-text sources (.txt, case-insensitive) are returned byte for byte;
    anything else is treated as a PDF and run through the OCR pipeline.
    Returns UTF-8 encoded text.
    """
    data = stream.read()

    if Path(file_name).suffix.lower() in TEXT_SUFFIXES:
        return data

    result = coordinator.run(data, include_markers=include_markers)
    return result.text.encode('utf-8')
