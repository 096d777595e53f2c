"""Wait until the viewer has initialized and finished loading its content."""

import logging
import time
from typing import Callable

from prezi2pdf.config import Settings
from prezi2pdf.errors import BrowserActionError, ReadinessTimeout

logger = logging.getLogger(__name__)


def dismiss_overlay(session, settings: Settings) -> None:
    """Wait for the intro overlay and click it once."""
    selector = settings.viewer.overlay_selector
    try:
        overlay = session.wait_for(selector, settings.timing.element_timeout_ms)
        session.click(overlay)
    except BrowserActionError as e:
        raise ReadinessTimeout(f"Viewer overlay never became available: {e}") from e
    logger.info("Dismissed viewer overlay")


def wait_for_spinner(session, settings: Settings, sleep: Callable[[float], None] = time.sleep) -> int:
    """Poll until the loading spinner is gone.

    Returns the number of polls that still saw the spinner, which is also
    the number of poll pauses taken. A readiness_timeout_seconds of 0
    polls forever.
    """
    selector = settings.viewer.spinner_selector
    interval = settings.timing.poll_interval_seconds
    limit = settings.timing.readiness_timeout_seconds

    polls = 0
    waited = 0.0
    while True:
        try:
            spinner = session.query(selector)
        except BrowserActionError as e:
            raise ReadinessTimeout(f"Polling for the loading spinner failed: {e}") from e
        if spinner is None:
            logger.info(f"Viewer ready after {polls} spinner poll(s)")
            return polls
        if limit and waited + interval > limit:
            raise ReadinessTimeout(f"Loading spinner still present after {waited:.1f}s")
        polls += 1
        logger.debug(f"Spinner still present (poll {polls}), waiting {interval}s")
        sleep(interval)
        waited += interval


def wait_until_ready(session, settings: Settings, sleep: Callable[[float], None] = time.sleep) -> int:
    """Dismiss the overlay, let the viewer settle, then wait out the spinner."""
    dismiss_overlay(session, settings)
    sleep(settings.timing.settle_seconds)
    return wait_for_spinner(session, settings, sleep=sleep)
