"""Playwright-backed browser session driving one viewer page."""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from playwright.sync_api import Error as PWError
from playwright.sync_api import TimeoutError as PWTimeoutError
from playwright.sync_api import sync_playwright

from prezi2pdf.config import Settings
from prezi2pdf.errors import BrowserActionError, ElementTimeout, SessionError

logger = logging.getLogger(__name__)


class BrowserSession:
    """One browser page bound to one presentation URL.

    Wraps the handful of Playwright calls the pipeline needs so every
    failure surfaces as one of our own error kinds.
    """

    def __init__(self, page, url: str):
        self.page = page
        self.url = url

    def wait_for(self, selector: str, timeout_ms: Optional[int] = None):
        """Block until `selector` is visible and return its element handle."""
        try:
            return self.page.wait_for_selector(selector, timeout=timeout_ms)
        except PWTimeoutError as e:
            raise ElementTimeout(f"{selector!r} did not appear: {e}") from e
        except PWError as e:
            raise BrowserActionError(f"waiting for {selector!r} failed: {e}") from e

    def query(self, selector: str):
        """Return the element matching `selector` right now, or None."""
        try:
            return self.page.query_selector(selector)
        except PWError as e:
            raise BrowserActionError(f"lookup of {selector!r} failed: {e}") from e

    def click(self, element) -> None:
        try:
            element.click()
        except PWError as e:
            raise BrowserActionError(f"click failed: {e}") from e

    def screenshot(self, image_format: str = "png", quality: int = 100) -> bytes:
        """Capture the current viewport and return the encoded bytes."""
        kwargs = {"type": image_format, "full_page": False}
        # Playwright rejects a quality argument for PNG.
        if image_format == "jpeg":
            kwargs["quality"] = quality
        try:
            return self.page.screenshot(**kwargs)
        except PWError as e:
            raise BrowserActionError(f"screenshot failed: {e}") from e

    def title(self) -> str:
        try:
            return self.page.title()
        except PWError as e:
            raise BrowserActionError(f"reading page title failed: {e}") from e


@contextmanager
def open_session(url: str, settings: Settings) -> Iterator[BrowserSession]:
    """Launch Chromium, open `url` and close the browser on every exit path."""
    with sync_playwright() as p:
        try:
            browser = p.chromium.launch(
                headless=settings.browser.headless,
                executable_path=settings.browser.executable_path,
            )
        except PWError as e:
            raise SessionError(f"Could not launch browser: {e}") from e

        try:
            try:
                context = browser.new_context(
                    viewport=settings.window.viewport,
                    device_scale_factor=settings.window.device_scale_factor,
                )
                page = context.new_page()
                page.set_default_timeout(settings.timing.element_timeout_ms)
                page.goto(url, wait_until="load", timeout=settings.timing.navigation_timeout_ms)
            except PWError as e:
                raise SessionError(f"Could not open {url}: {e}") from e
            logger.info(f"Opened {url} ({settings.window.viewport['width']}x{settings.window.viewport['height']})")
            yield BrowserSession(page, url)
        finally:
            browser.close()
            logger.debug("Browser closed")
