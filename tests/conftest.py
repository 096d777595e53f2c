"""
Test Configuration
==================

Fake browser collaborators and raster fixtures for prezi2pdf tests.
"""

import io
from contextlib import contextmanager

import pytest
from PIL import Image

from prezi2pdf.config import Settings
from prezi2pdf.errors import BrowserActionError, ElementTimeout
from prezi2pdf.store import MemoryStorage


def make_png(size=(8, 6), color=(200, 30, 30, 255)) -> bytes:
    """Encode a solid RGBA PNG."""
    buf = io.BytesIO()
    Image.new("RGBA", size, color).save(buf, format="PNG")
    return buf.getvalue()


class FakeElement:
    def __init__(self, name, on_click=None, fail_click=False):
        self.name = name
        self.on_click = on_click
        self.fail_click = fail_click
        self.clicks = 0

    def __repr__(self):
        return f"FakeElement({self.name!r})"


class FakeSession:
    """
    Simulated viewer.

    Args:
        slides: Total number of slides in the presentation
        spinner_polls: How many spinner lookups still find the spinner
        overlay: Whether the intro overlay ever appears
        frame_size: Pixel size of each screenshot
        bad_frames: Slide indices whose screenshot is not valid PNG data
        fail_screenshot_at: Slide index whose screenshot raises
        missing_next_at: Maps slide index -> number of next lookups that miss
    """

    def __init__(self, settings, slides=3, spinner_polls=0, overlay=True, frame_size=(8, 6),
                 bad_frames=(), fail_screenshot_at=None, missing_next_at=None, title="Deck"):
        self.settings = settings
        self.slides = slides
        self.spinner_left = spinner_polls
        self.spinner_lookups = 0
        self.overlay = overlay
        self.frame_size = frame_size
        self.bad_frames = set(bad_frames)
        self.fail_screenshot_at = fail_screenshot_at
        self.missing_next_at = dict(missing_next_at or {})
        self._title = title
        self.current = 0
        self.captured = []
        self.overlay_clicks = 0
        self.closed = False

    # -- browser primitives --

    def wait_for(self, selector, timeout_ms=None):
        if selector == self.settings.viewer.overlay_selector:
            if not self.overlay:
                raise ElementTimeout(f"{selector!r} did not appear")
            return FakeElement("overlay", on_click=self._dismiss)
        raise ElementTimeout(f"{selector!r} did not appear")

    def query(self, selector):
        viewer = self.settings.viewer
        if selector == viewer.spinner_selector:
            self.spinner_lookups += 1
            if self.spinner_left > 0:
                self.spinner_left -= 1
                return FakeElement("spinner")
            return None
        if selector == viewer.next_selector:
            if self.missing_next_at.get(self.current, 0) > 0:
                self.missing_next_at[self.current] -= 1
                return None
            if self.current < self.slides - 1:
                return FakeElement("next", on_click=self._advance)
            return None
        return None

    def click(self, element):
        if element.fail_click:
            raise BrowserActionError("click failed")
        element.clicks += 1
        if element.on_click:
            element.on_click()

    def screenshot(self, image_format="png", quality=100):
        if self.fail_screenshot_at == self.current:
            raise BrowserActionError("screenshot failed")
        self.captured.append(self.current)
        if self.current in self.bad_frames:
            return b"not a png"
        shade = (40 * self.current) % 256
        return make_png(self.frame_size, (shade, 100, 200, 255))

    def title(self):
        return self._title

    # -- state changes --

    def _dismiss(self):
        self.overlay_clicks += 1

    def _advance(self):
        self.current += 1


class SessionFactory:
    """Session factory for Pipeline that records every session it opens."""

    def __init__(self, **session_kwargs):
        self.session_kwargs = session_kwargs
        self.sessions = []

    @contextmanager
    def __call__(self, url, settings):
        session = FakeSession(settings, **self.session_kwargs)
        session.url = url
        self.sessions.append(session)
        try:
            yield session
        finally:
            session.closed = True


class RecordingSleep:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def png_bytes():
    return make_png()


class FailingStorage(MemoryStorage):
    """Memory storage whose writes or reads fail like a full or vanished disk."""

    def __init__(self, fail_write_at=None, fail_read=False):
        super().__init__()
        self.fail_write_at = fail_write_at
        self.fail_read = fail_read

    def write(self, index, data):
        if index == self.fail_write_at:
            raise OSError(28, "No space left on device")
        return super().write(index, data)

    def read(self, location):
        if self.fail_read:
            raise OSError(2, "No such file or directory")
        return super().read(location)
