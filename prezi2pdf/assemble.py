"""
Document Assembler
==================

Turns the ordered raster sequence into a single PDF, one page per frame.

Every page has the same physical size, derived from the browser window:
((width - border_x) * scale, (height - border_y) * scale) pixels at 300 DPI,
where scale is the device scale factor of the capture (2 by default).
Each image is placed unscaled at the page origin.

Design Rules:
    - Alpha is stripped before placement; PDF image XObjects don't carry it reliably
    - The whole document is built in memory before anything touches the output path
    - One undecodable frame fails the whole document
"""

import io
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from PIL import Image, UnidentifiedImageError
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from prezi2pdf.config import Settings
from prezi2pdf.errors import AssemblyError, DecodeError
from prezi2pdf.store import RasterStore, SlideFrame

logger = logging.getLogger(__name__)

PX_TO_MM = 0.084666667
POINTS_PER_INCH = 72.0


@dataclass(frozen=True)
class PageGeometry:
    width_mm: float
    height_mm: float

    @property
    def size_points(self):
        return (self.width_mm * mm, self.height_mm * mm)


# ---------- pixels ----------

def strip_alpha(rgba: bytes) -> bytes:
    """Drop the alpha byte of every RGBA pixel, keeping row-major order."""
    if len(rgba) % 4:
        raise ValueError(f"RGBA buffer length {len(rgba)} is not a multiple of 4")
    rgb = bytearray(len(rgba) // 4 * 3)
    rgb[0::3] = rgba[0::4]
    rgb[1::3] = rgba[1::4]
    rgb[2::3] = rgba[2::4]
    return bytes(rgb)


def px_to_mm(px: float, factor: float = PX_TO_MM) -> float:
    return px * factor


def page_geometry(settings: Settings) -> PageGeometry:
    """Page size shared by every page of the document."""
    window = settings.window
    factor = settings.output.px_to_mm
    scale = window.device_scale_factor
    return PageGeometry(
        width_mm=px_to_mm((window.width - window.border_x) * scale, factor),
        height_mm=px_to_mm((window.height - window.border_y) * scale, factor),
    )


def decode_frame(frame: SlideFrame) -> Image.Image:
    """Decode a captured frame into an RGB image with the alpha channel removed."""
    try:
        with Image.open(io.BytesIO(frame.data)) as img:
            rgba = img.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise DecodeError(frame.index, str(e)) from e
    return Image.frombytes("RGB", rgba.size, strip_alpha(rgba.tobytes()))


# ---------- document ----------

def build_document(title: str, frames: Iterable[SlideFrame], geometry: PageGeometry,
                   dpi: float = 300.0) -> bytes:
    """Render all frames into an in-memory PDF and return its bytes."""
    buf = io.BytesIO()
    doc = canvas.Canvas(buf, pagesize=geometry.size_points)
    doc.setTitle(title)
    scale = POINTS_PER_INCH / dpi

    pages = 0
    for frame in frames:
        img = decode_frame(frame)
        doc.drawImage(ImageReader(img), 0, 0, width=img.width * scale, height=img.height * scale)
        doc.showPage()
        pages += 1
        logger.debug(f"Placed slide {frame.index} ({img.width}x{img.height}px)")

    if not pages:
        raise AssemblyError("No frames to write to PDF.")
    try:
        doc.save()
    except Exception as e:
        raise AssemblyError(f"Could not serialize document: {e}") from e
    return buf.getvalue()


def save_document(data: bytes, output: Path) -> Path:
    """Write `data` to `output` atomically, replacing any existing file."""
    output = Path(output)
    tmp_path = None
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=output.parent, prefix=f".{output.name}.",
                                         suffix=".part", delete=False) as f:
            tmp_path = f.name
            f.write(data)
        os.replace(tmp_path, output)
    except OSError as e:
        if tmp_path and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise AssemblyError(f"Could not write {output}: {e}") from e
    return output


def assemble_document(title: str, store: RasterStore, output: Path, settings: Settings) -> int:
    """Build the PDF from `store` and write it to `output`. Returns the page count."""
    geometry = page_geometry(settings)
    logger.info(f"Assembling {len(store)} page(s) of {geometry.width_mm:.1f}x{geometry.height_mm:.1f}mm")
    try:
        data = build_document(title, store.frames(), geometry, dpi=settings.output.dpi)
    except OSError as e:
        raise AssemblyError(f"Could not read captured frames: {e}") from e
    save_document(data, output)
    logger.info(f"Wrote {output} ({len(data):,} bytes)")
    return len(store)
