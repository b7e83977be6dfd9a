"""Export settings and the JSON export manifest used by the CLI."""

import json
from dataclasses import dataclass, field
from pathlib import Path

from clipsplit.ffutil import is_export_format
from clipsplit.models import EXPORT_FORMATS, QUALITY_BITRATES, SegmentCandidate
from clipsplit.timefmt import to_seconds

MANIFEST_VERSION = "1"


@dataclass
class ExportSettings:
    """Where and how a batch of clips is written."""

    output_dir: Path
    format: str = "mp4"
    quality: str = "high"

    def __post_init__(self) -> None:
        self.output_dir = Path(self.output_dir)
        if not is_export_format(self.format):
            raise ValueError(
                f"Unsupported export format {self.format!r}; "
                f"expected one of {', '.join(EXPORT_FORMATS)}"
            )
        if self.quality not in QUALITY_BITRATES:
            raise ValueError(
                f"Unknown quality {self.quality!r}; "
                f"expected one of {', '.join(QUALITY_BITRATES)}"
            )

    @classmethod
    def from_dict(cls, data: dict) -> "ExportSettings":
        if "output_dir" not in data:
            raise ValueError("Export settings must contain 'output_dir'")
        return cls(
            output_dir=Path(data["output_dir"]),
            format=data.get("format", "mp4"),
            quality=data.get("quality", "high"),
        )


@dataclass
class ExportManifest:
    """A video, the clips to cut from it, and how to write them."""

    input: Path
    settings: ExportSettings
    version: str = MANIFEST_VERSION
    clips: list[SegmentCandidate] = field(default_factory=list)


def _load_clip(data: dict) -> SegmentCandidate:
    if "start" not in data or "end" not in data:
        raise ValueError("Each clip must contain 'start' and 'end' fields")
    return SegmentCandidate(
        name=str(data.get("name", "")),
        start_time=to_seconds(data["start"]),
        end_time=to_seconds(data["end"]),
    )


def load_manifest(path: str | Path) -> ExportManifest:
    """Load and validate an export manifest from a JSON file.

    Clip times may be numbers of seconds or ``H:M:S`` strings.
    """
    path = Path(path)
    data = json.loads(path.read_text())

    if "input" not in data or "output_dir" not in data:
        raise ValueError("Manifest must contain 'input' and 'output_dir' fields")

    version = str(data.get("version", MANIFEST_VERSION))
    if version != MANIFEST_VERSION:
        raise ValueError(
            f"Unsupported manifest version {version!r}; expected {MANIFEST_VERSION!r}"
        )

    return ExportManifest(
        version=version,
        input=Path(data["input"]),
        settings=ExportSettings.from_dict(data),
        clips=[_load_clip(c) for c in data.get("clips", [])],
    )
