"""Error kinds raised by the capture pipeline. Every one of them is fatal to a run."""

EXIT_OK = 0
EXIT_FAILURE = 1


class Prezi2PdfError(Exception):
    """Base class for all pipeline failures."""

    exit_code = EXIT_FAILURE


class ConfigError(Prezi2PdfError):
    """Configuration file or override could not be loaded or validated."""


class SessionError(Prezi2PdfError):
    """Browser could not be launched or the viewer URL could not be opened."""


class BrowserActionError(Prezi2PdfError):
    """A browser primitive (lookup, click, screenshot) failed.

    Raised by the session wrapper; the pipeline stages translate it into
    the error kind of the stage it happened in.
    """


class ElementTimeout(BrowserActionError):
    """An element did not appear within the browser's wait timeout."""


class ReadinessTimeout(Prezi2PdfError):
    """The viewer never became interactive."""


class CaptureError(Prezi2PdfError):
    """Screenshot capture or slide advance failed."""


class DecodeError(Prezi2PdfError):
    """A captured frame is not valid raster data."""

    def __init__(self, index: int, reason: str):
        super().__init__(f"frame {index} could not be decoded: {reason}")
        self.index = index


class AssemblyError(Prezi2PdfError):
    """The output document could not be built or written."""
