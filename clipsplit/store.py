"""Owned state for the active video and its clip segments."""

import logging
import threading
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Callable

from clipsplit.models import ClipSegment, SegmentCandidate, ValidationResult, VideoInfo
from clipsplit.validation import validate_segment

logger = logging.getLogger(__name__)

VideoListener = Callable[["VideoSession"], None]


class VideoSession:
    """The currently loaded video.

    Listeners registered with :meth:`subscribe` are called after every
    :meth:`load` and :meth:`clear`, i.e. whenever the active video is
    replaced or unloaded. They run outside the session lock.
    """

    def __init__(self) -> None:
        self._path: Path | None = None
        self._info: VideoInfo | None = None
        self._listeners: list[VideoListener] = []
        self._lock = threading.Lock()

    @property
    def path(self) -> Path | None:
        with self._lock:
            return self._path

    @property
    def info(self) -> VideoInfo | None:
        with self._lock:
            return self._info

    @property
    def loaded(self) -> bool:
        with self._lock:
            return self._info is not None

    def snapshot(self) -> tuple[Path | None, VideoInfo | None]:
        """Path and info of the active video, read together."""
        with self._lock:
            return self._path, self._info

    def subscribe(self, listener: VideoListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: VideoListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def load(self, path: Path, info: VideoInfo) -> None:
        path = Path(path)
        with self._lock:
            self._path = path
            self._info = info
        logger.info("Loaded video %s (%.2fs)", path, info.duration)
        self._notify()

    def clear(self) -> None:
        with self._lock:
            self._path = None
            self._info = None
        self._notify()

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(self)


class SegmentStore:
    """Ordered collection of clip segments for one video session.

    The store is the only writer of its segments. Readers get an immutable
    snapshot from :attr:`segments`; edits swap in a new ``ClipSegment`` at
    the same position, so a snapshot never changes under its holder.
    """

    def __init__(self, session: VideoSession | None = None) -> None:
        self._segments: list[ClipSegment] = []
        self._lock = threading.Lock()
        self._session = session
        if session is not None:
            session.subscribe(self._on_video_changed)

    @property
    def segments(self) -> tuple[ClipSegment, ...]:
        with self._lock:
            return tuple(self._segments)

    def __len__(self) -> int:
        with self._lock:
            return len(self._segments)

    def get(self, segment_id: str) -> ClipSegment | None:
        with self._lock:
            return next((s for s in self._segments if s.id == segment_id), None)

    def add(self, candidate: SegmentCandidate) -> ValidationResult:
        result = validate_segment(candidate, self._video_info())
        if not result.valid:
            return result

        segment = ClipSegment(
            id=uuid.uuid4().hex,
            name=candidate.name,
            start_time=candidate.start_time,
            end_time=candidate.end_time,
        )
        with self._lock:
            self._segments.append(segment)
        logger.debug("Added segment %s (%s)", segment.id, segment.name)
        return result

    def update(self, segment_id: str, candidate: SegmentCandidate) -> ValidationResult:
        """Replace the segment with ``segment_id`` in place.

        An unknown id leaves the store untouched and returns an invalid
        result rather than raising.
        """
        result = validate_segment(candidate, self._video_info())
        if not result.valid:
            return result

        with self._lock:
            for i, existing in enumerate(self._segments):
                if existing.id == segment_id:
                    self._segments[i] = replace(
                        existing,
                        name=candidate.name,
                        start_time=candidate.start_time,
                        end_time=candidate.end_time,
                    )
                    return result

        return ValidationResult(False, f"Segment not found: {segment_id}")

    def delete(self, segment_id: str) -> None:
        with self._lock:
            self._segments = [s for s in self._segments if s.id != segment_id]

    def clear(self) -> None:
        with self._lock:
            self._segments = []

    def _video_info(self) -> VideoInfo | None:
        return self._session.info if self._session is not None else None

    def _on_video_changed(self, session: VideoSession) -> None:
        count = len(self)
        self.clear()
        if count:
            logger.info("Active video changed; discarded %d segments", count)
