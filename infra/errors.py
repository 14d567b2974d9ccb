"""
Error taxonomy for the document OCR pipeline.

Fatal errors derive from LexscanError. EmptyResult is a warning category:
a page without detectable text is recorded as an empty string and the
pipeline continues.
"""

from typing import Optional


class LexscanError(Exception):
    pass


class ConfigurationError(LexscanError):
    """Missing or invalid recognition service identity or credentials."""


class InvalidDocument(LexscanError):
    """Page count could not be determined or is not positive."""


class StateTransitionError(LexscanError):
    pass


class StageFailure(LexscanError):
    """
    A rasterization, enhancement or recognition call failed.

    The underlying exception is always chained as __cause__.
    """

    def __init__(self, stage: str, page: Optional[int], message: str):
        self.stage = stage
        self.page = page
        self.message = message
        where = f"{stage} failed on page {page}" if page is not None else f"{stage} failed"
        super().__init__(f"{where}: {message}")


class PipelineAborted(LexscanError):
    """Delivered to pages still in flight after another page failed."""


class EmptyResult(UserWarning):
    """Recognition returned no text for a page."""
