# FrameRegistry class

"""
Extended Description:
An arena of derived tables keyed by opaque ids. Intermediate results
(statistics tables, predicate tables, merged working frames) are registered
when created and disposed explicitly, or all at once when a `scope()` block
exits. Leaking a frame only wastes memory; it never changes results.
"""

import contextlib
import logging
import threading
from typing import Dict, Generator, List

from te_utils.data_structures.frame import Frame

logger = logging.getLogger(__name__)


class FrameRegistry:
    """Owns derived frames until they are disposed."""

    def __init__(self) -> None:
        self._frames: Dict[str, Frame] = {}
        self._lock = threading.Lock()
        self._local = threading.local()

    def _open_scopes(self) -> List[List[str]]:
        if not hasattr(self._local, "scopes"):
            self._local.scopes = []
        return self._local.scopes

    def register(self, frame: Frame) -> str:
        with self._lock:
            self._frames[frame.key] = frame
        for created in self._open_scopes():
            created.append(frame.key)
        return frame.key

    def get(self, key: str) -> Frame:
        with self._lock:
            if key not in self._frames:
                raise KeyError(f"No frame registered under key {key!r}.")
            return self._frames[key]

    def dispose(self, key: str) -> None:
        with self._lock:
            frame = self._frames.pop(key, None)
        if frame is not None:
            frame.dispose()

    def dispose_all(self) -> None:
        with self._lock:
            frames = list(self._frames.values())
            self._frames.clear()
        for frame in frames:
            frame.dispose()

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._frames)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._frames

    def __len__(self) -> int:
        with self._lock:
            return len(self._frames)

    @contextlib.contextmanager
    def scope(self) -> Generator["FrameRegistry", None, None]:
        """Disposes the frames this thread registers inside the block when it exits."""
        created: List[str] = []
        scopes = self._open_scopes()
        scopes.append(created)
        try:
            yield self
        finally:
            scopes.pop()
            for key in created:
                self.dispose(key)
            if created:
                logger.debug(f"Disposed {len(created)} derived frame(s) at scope exit.")
