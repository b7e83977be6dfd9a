"""Shared data types used across clipsplit."""

from dataclasses import asdict, dataclass, field

# Containers a clip can be exported to.
EXPORT_FORMATS = ("mp4", "avi", "mov", "mkv", "webm")

# Containers that can be loaded; flv is read-only.
SUPPORTED_EXTENSIONS = EXPORT_FORMATS + ("flv",)

# Target video bitrate per quality level, in kbps.
QUALITY_BITRATES = {
    "high": 5000,
    "medium": 2500,
    "low": 1000,
}


@dataclass(frozen=True)
class SegmentCandidate:
    """User input for a segment before it has been assigned an id."""

    name: str
    start_time: float
    end_time: float


@dataclass(frozen=True)
class ClipSegment:
    """A named start/end range (seconds) within the loaded video."""

    id: str
    name: str
    start_time: float
    end_time: float

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @classmethod
    def from_dict(cls, data: dict) -> "ClipSegment":
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            start_time=float(data["start_time"]),
            end_time=float(data["end_time"]),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: str | None = None

    def to_dict(self) -> dict:
        d = {"valid": self.valid}
        if self.error is not None:
            d["error"] = self.error
        return d


@dataclass(frozen=True)
class VideoInfo:
    """Metadata extracted from a media file by probing it with ffmpeg."""

    duration: float
    width: int
    height: int
    format: str
    bitrate: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ExportProgress:
    """Progress of a running batch, emitted once per segment started."""

    current_index: int
    total: int
    current_segment_name: str
    percentage: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ExportResult:
    success: bool
    output_path: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class SegmentExportResult:
    segment_id: str
    segment_name: str
    result: ExportResult


@dataclass
class BatchExportResult:
    total: int = 0
    success: int = 0
    failed: int = 0
    results: list[SegmentExportResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)
