"""Slide enumeration: screenshot, advance, repeat until there is no next slide."""

import logging
import time
from typing import Callable

from prezi2pdf.config import Settings
from prezi2pdf.errors import BrowserActionError, CaptureError
from prezi2pdf.store import RasterStore

logger = logging.getLogger(__name__)


def find_next(session, settings: Settings, sleep: Callable[[float], None] = time.sleep):
    """Look up the next-slide affordance, retrying as configured.

    With the default of zero retries a single miss ends the presentation,
    so a transient lookup failure on a middle slide reads as the last slide.
    """
    selector = settings.viewer.next_selector
    attempts = settings.timing.next_lookup_retries + 1
    for attempt in range(1, attempts + 1):
        try:
            element = session.query(selector)
        except BrowserActionError as e:
            logger.warning(f"Lookup of next affordance failed ({e}), treating as not found")
            element = None
        if element is not None:
            return element
        if attempt < attempts:
            sleep(settings.timing.next_lookup_backoff_seconds)
    return None


def capture_frame(session, store: RasterStore, index: int, settings: Settings) -> None:
    try:
        data = session.screenshot(settings.output.image_format, settings.output.quality)
    except BrowserActionError as e:
        raise CaptureError(f"Screenshot of slide {index} failed: {e}") from e
    try:
        store.append(index, data)
    except OSError as e:
        raise CaptureError(f"Storing slide {index} failed: {e}") from e
    logger.info(f"Captured slide {index} ({len(data)} bytes)")


def enumerate_slides(session, store: RasterStore, settings: Settings,
                     sleep: Callable[[float], None] = time.sleep) -> int:
    """Capture every slide into `store` and return how many were captured."""
    index = 0
    while True:
        capture_frame(session, store, index, settings)
        index += 1

        next_button = find_next(session, settings, sleep=sleep)
        if next_button is None:
            break
        try:
            session.click(next_button)
        except BrowserActionError as e:
            raise CaptureError(f"Advancing past slide {index - 1} failed: {e}") from e
        sleep(settings.timing.settle_seconds)

    logger.info(f"No next slide after slide {index - 1}; captured {index} slide(s)")
    return index
