"""
Pipeline Orchestrator
=====================

Runs one capture end to end:

    INIT -> SESSION_OPEN -> READY -> CAPTURING -> ASSEMBLING -> DONE

Any failure moves straight to FAILED. The browser session and the raster
store are both released before the error reaches the caller.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from prezi2pdf.assemble import assemble_document
from prezi2pdf.browser import open_session
from prezi2pdf.capture import enumerate_slides
from prezi2pdf.config import Settings
from prezi2pdf.errors import BrowserActionError, CaptureError
from prezi2pdf.readiness import wait_until_ready
from prezi2pdf.store import RasterStore, TempDirStorage

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    INIT = "INIT"
    SESSION_OPEN = "SESSION_OPEN"
    READY = "READY"
    CAPTURING = "CAPTURING"
    ASSEMBLING = "ASSEMBLING"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass
class PipelineResult:
    url: str
    output: Path
    title: str
    frames: int
    pages: int
    elapsed_seconds: float
    state: PipelineState = PipelineState.DONE


class Pipeline:
    """One run of the capture-and-assemble pipeline.

    Collaborators are injectable so the whole run can be driven by fakes:
    `session_factory(url, settings)` must return a context manager yielding
    a session, `storage_factory()` a raster storage backend.
    """

    def __init__(self, settings: Settings,
                 session_factory: Callable = open_session,
                 storage_factory: Optional[Callable] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.settings = settings
        self.session_factory = session_factory
        self.storage_factory = storage_factory or (
            lambda: TempDirStorage(suffix=f".{settings.output.image_format}")
        )
        self.sleep = sleep
        self.state = PipelineState.INIT
        self.history = [PipelineState.INIT]

    def _enter(self, state: PipelineState) -> None:
        logger.info(f"{self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def run(self, url: str, output: Path) -> PipelineResult:
        t0 = time.time()
        try:
            with self.session_factory(url, self.settings) as session, \
                    RasterStore(self.storage_factory()) as store:
                self._enter(PipelineState.SESSION_OPEN)

                wait_until_ready(session, self.settings, sleep=self.sleep)
                self._enter(PipelineState.READY)

                self._enter(PipelineState.CAPTURING)
                frames = enumerate_slides(session, store, self.settings, sleep=self.sleep)
                title = self._title(session)

                self._enter(PipelineState.ASSEMBLING)
                pages = assemble_document(title, store, Path(output), self.settings)
        except Exception:
            self._enter(PipelineState.FAILED)
            raise

        self._enter(PipelineState.DONE)
        return PipelineResult(
            url=url,
            output=Path(output),
            title=title,
            frames=frames,
            pages=pages,
            elapsed_seconds=time.time() - t0,
        )

    def _title(self, session) -> str:
        try:
            return session.title() or "Presentation"
        except BrowserActionError as e:
            raise CaptureError(f"Could not read presentation title: {e}") from e


def run_pipeline(url: str, output: Path, settings: Settings, **collaborators) -> PipelineResult:
    return Pipeline(settings, **collaborators).run(url, output)
