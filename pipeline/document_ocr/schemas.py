import secrets
import shutil
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from infra.errors import StateTransitionError


class PageState(str, Enum):
    RASTERIZED = "rasterized"
    ENHANCED = "enhanced"
    RECOGNIZED = "recognized"


@dataclass
class PageTask:
    """One page's progress through enhancement and recognition."""
    index: int  # 1-indexed
    raw_path: Path
    enhanced_path: Path
    text: Optional[str] = None
    state: PageState = PageState.RASTERIZED

    def mark_enhanced(self):
        if self.state is not PageState.RASTERIZED:
            raise StateTransitionError(
                f"Page {self.index}: cannot enhance from state {self.state.value}"
            )
        self.state = PageState.ENHANCED

    def mark_recognized(self, text: str):
        if self.state is not PageState.ENHANCED:
            raise StateTransitionError(
                f"Page {self.index}: cannot record text from state {self.state.value}"
            )
        self.text = text
        self.state = PageState.RECOGNIZED


class SessionState(str, Enum):
    INIT = "init"
    RASTERIZING = "rasterizing"
    PIPELINING = "pipelining"
    ASSEMBLING = "assembling"
    DONE = "done"
    ERRORED = "errored"
    CLEANED_UP = "cleaned_up"


SESSION_TRANSITIONS = {
    SessionState.INIT: {SessionState.RASTERIZING, SessionState.ERRORED},
    SessionState.RASTERIZING: {SessionState.PIPELINING, SessionState.ERRORED},
    SessionState.PIPELINING: {SessionState.ASSEMBLING, SessionState.ERRORED},
    SessionState.ASSEMBLING: {SessionState.DONE, SessionState.ERRORED},
    SessionState.DONE: {SessionState.CLEANED_UP},
    SessionState.ERRORED: {SessionState.CLEANED_UP},
    SessionState.CLEANED_UP: set(),
}


@dataclass
class Session:
    """
    One pipeline run with its own workspace.

    Layout:
        {root}/input.pdf
        {root}/pages/page-{n}.png
        {root}/enhanced/page-{n}-enhanced.png
    """
    id: str
    root: Path
    pages: List[PageTask] = field(default_factory=list)
    state: SessionState = SessionState.INIT

    @classmethod
    def create(cls, workspace_root: Optional[Path] = None) -> "Session":
        parent = Path(workspace_root) if workspace_root else Path(tempfile.gettempdir())
        session_id = secrets.token_hex(8)
        session = cls(id=session_id, root=parent / f"ocr-{session_id}")
        try:
            session.raw_dir.mkdir(parents=True)
            session.enhanced_dir.mkdir(parents=True)
        except OSError:
            shutil.rmtree(session.root, ignore_errors=True)
            raise
        return session

    @property
    def pdf_path(self) -> Path:
        return self.root / "input.pdf"

    @property
    def raw_dir(self) -> Path:
        return self.root / "pages"

    @property
    def enhanced_dir(self) -> Path:
        return self.root / "enhanced"

    def enhanced_path_for(self, page: int) -> Path:
        return self.enhanced_dir / f"page-{page}-enhanced.png"

    def transition(self, new_state: SessionState):
        if new_state not in SESSION_TRANSITIONS[self.state]:
            raise StateTransitionError(
                f"Session {self.id}: {self.state.value} -> {new_state.value} not allowed"
            )
        self.state = new_state

    def cleanup(self):
        """Remove the whole workspace tree (only from DONE or ERRORED)."""
        self.transition(SessionState.CLEANED_UP)
        shutil.rmtree(self.root, ignore_errors=True)


class DocumentResult(BaseModel):
    """Result envelope for one recognized document."""
    success: bool
    text: str
    pages: int = Field(..., ge=0)
    length: int = Field(..., ge=0, description="Characters in text")
    empty_pages: List[int] = Field(default_factory=list)
    session_id: Optional[str] = None
