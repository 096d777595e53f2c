"""
Raster Store
============

Ordered, write-once staging area for captured slide frames.

The store owns its backing storage for the duration of one run and
releases it on close, whether the run succeeded or not.

Design Rules:
    - Indices are contiguous from 0 and each is written exactly once
    - Append-only while capturing, read-only once frames() is called
    - Backing storage is injectable (temporary directory or memory)
"""

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SlideFrame:
    """
    One captured slide.

    Attributes:
        index: 0-based position in presentation order
        data: Encoded raster bytes as returned by the browser
        location: Where the backend stored the bytes
    """

    index: int
    data: bytes
    location: str

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the image."""
        return f"SlideFrame(index={self.index}, size={len(self.data)}, location={self.location!r})"


class TempDirStorage:
    """Frames as files in a private temporary directory."""

    def __init__(self, suffix: str = ".png"):
        self._tmp: Optional[tempfile.TemporaryDirectory] = tempfile.TemporaryDirectory(prefix="prezi2pdf-")
        self.root = Path(self._tmp.name)
        self.suffix = suffix

    def write(self, index: int, data: bytes) -> str:
        path = self.root / f"slide-{index:04d}{self.suffix}"
        path.write_bytes(data)
        return str(path)

    def read(self, location: str) -> bytes:
        return Path(location).read_bytes()

    def cleanup(self) -> None:
        if self._tmp is not None:
            self._tmp.cleanup()
            self._tmp = None
            logger.debug(f"Removed {self.root}")


class MemoryStorage:
    """Frames kept in a dict; used where no filesystem is wanted."""

    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self.cleaned_up = False

    def write(self, index: int, data: bytes) -> str:
        location = f"mem://{index}"
        self.blobs[location] = data
        return location

    def read(self, location: str) -> bytes:
        return self.blobs[location]

    def cleanup(self) -> None:
        self.blobs.clear()
        self.cleaned_up = True


class RasterStore:
    """
    Raster Sequence for one run.

    Example:
        with RasterStore(TempDirStorage()) as store:
            store.append(0, png_bytes)
            for frame in store.frames():
                ...
    """

    def __init__(self, storage=None):
        self._storage = storage if storage is not None else TempDirStorage()
        self._locations: List[str] = []
        self._sealed = False
        self._closed = False

    def __len__(self) -> int:
        return len(self._locations)

    def __enter__(self) -> "RasterStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def append(self, index: int, data: bytes) -> SlideFrame:
        """Store frame `index`; it must be the next index in sequence."""
        if self._closed:
            raise ValueError("store is closed")
        if self._sealed:
            raise ValueError("store is read-only once frames have been read")
        expected = len(self._locations)
        if index != expected:
            if index < expected:
                raise ValueError(f"frame {index} was already captured")
            raise ValueError(f"frame {index} out of order, expected {expected}")
        location = self._storage.write(index, data)
        self._locations.append(location)
        return SlideFrame(index, data, location)

    def frames(self) -> Iterator[SlideFrame]:
        """Yield all frames in index order. The store is read-only afterwards."""
        if self._closed:
            raise ValueError("store is closed")
        self._sealed = True
        return self._read_all()

    def _read_all(self) -> Iterator[SlideFrame]:
        for index, location in enumerate(self._locations):
            yield SlideFrame(index, self._storage.read(location), location)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._storage.cleanup()
