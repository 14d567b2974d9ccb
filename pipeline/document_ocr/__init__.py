from .coordinator import PipelineCoordinator, assemble_text
from .content import extract_content
from .enhance import Enhancer, enhance_image
from .page_count import count_pages
from .rasterize import Rasterizer
from .recognize import Recognizer, normalize_text
from .schemas import (
    DocumentResult,
    PageState,
    PageTask,
    Session,
    SessionState,
)

__all__ = [
    "PipelineCoordinator",
    "assemble_text",
    "extract_content",
    "Enhancer",
    "enhance_image",
    "count_pages",
    "Rasterizer",
    "Recognizer",
    "normalize_text",
    "DocumentResult",
    "PageState",
    "PageTask",
    "Session",
    "SessionState",
]
