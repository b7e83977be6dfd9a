"""Orchestrator — exports every segment of a video to its own file."""

import logging
import math
from pathlib import Path
from typing import Callable, Sequence

from clipsplit import ffutil
from clipsplit.manifest import ExportSettings
from clipsplit.models import (
    BatchExportResult,
    ClipSegment,
    ExportProgress,
    ExportResult,
    SegmentExportResult,
)

logger = logging.getLogger(__name__)


class ExportPreconditionError(ValueError):
    """Raised before any segment is processed when a batch cannot start."""
    pass


class ExportBusyError(RuntimeError):
    """Raised when a batch is requested while another one is running."""
    pass


def check_preconditions(video_path: Path, settings: ExportSettings) -> None:
    if not Path(video_path).is_file():
        raise ExportPreconditionError(f"Video file not found: {video_path}")
    if not settings.output_dir.is_dir():
        raise ExportPreconditionError(
            f"Output directory does not exist: {settings.output_dir}"
        )


def clip_basename(segment: ClipSegment, index: int) -> str:
    """Filesystem-safe base name for the segment at 0-based ``index``."""
    fallback = f"clip_{index + 1}"
    return ffutil.sanitize_filename(segment.name or fallback) or fallback


def resolve_output_path(output_dir: Path, base: str, fmt: str) -> Path:
    """First of ``base.fmt``, ``base_1.fmt``, ``base_2.fmt``... not on disk."""
    candidate = output_dir / f"{base}.{fmt}"
    counter = 1
    while candidate.exists():
        candidate = output_dir / f"{base}_{counter}.{fmt}"
        counter += 1
    return candidate


def _export_segment(
    video_path: Path,
    segment: ClipSegment,
    output_path: Path,
    settings: ExportSettings,
) -> ExportResult:
    duration = segment.duration
    if not math.isfinite(duration) or segment.start_time < 0 or duration <= 0:
        return ExportResult(
            success=False,
            error=f"Invalid time range: {segment.start_time} -> {segment.end_time}",
        )

    try:
        ffutil.export_clip(
            video_path,
            segment.start_time,
            duration,
            output_path,
            settings.format,
            settings.quality,
        )
    except ffutil.TranscodeError as e:
        logger.warning("Export of %r failed: %s", segment.name, e)
        return ExportResult(success=False, error=str(e))
    except Exception as e:
        logger.exception("Unexpected error exporting %r", segment.name)
        return ExportResult(success=False, error=str(e) or type(e).__name__)

    if not output_path.exists():
        logger.warning("ffmpeg reported success but %s was not written", output_path)
        return ExportResult(
            success=False, error=f"Export produced no output file: {output_path.name}"
        )

    return ExportResult(success=True, output_path=str(output_path))


def export_batch(
    video_path: Path,
    segments: Sequence[ClipSegment],
    settings: ExportSettings,
    on_progress: Callable[[ExportProgress], None] | None = None,
) -> BatchExportResult:
    """Export each segment in order, one ffmpeg run at a time.

    A failing segment is recorded in the result and the batch moves on;
    only the up-front checks in :func:`check_preconditions` abort it.

    Args:
        video_path: Source video.
        segments: Segments to export, in output order.
        settings: Output directory, container and quality.
        on_progress: Optional callback, called once as each segment starts.
    """
    video_path = Path(video_path)
    check_preconditions(video_path, settings)

    total = len(segments)
    batch = BatchExportResult(total=total)
    logger.info(
        "Exporting %d clip(s) from %s to %s as %s/%s",
        total, video_path.name, settings.output_dir, settings.format, settings.quality,
    )

    for i, segment in enumerate(segments):
        # Resolved per segment so earlier clips in this batch count as collisions.
        base = clip_basename(segment, i)
        output_path = resolve_output_path(settings.output_dir, base, settings.format)

        if on_progress:
            on_progress(
                ExportProgress(
                    current_index=i + 1,
                    total=total,
                    current_segment_name=segment.name,
                    percentage=round((i + 1) / total * 100),
                )
            )

        result = _export_segment(video_path, segment, output_path, settings)
        batch.results.append(
            SegmentExportResult(
                segment_id=segment.id,
                segment_name=segment.name,
                result=result,
            )
        )
        if result.success:
            batch.success += 1
        else:
            batch.failed += 1

    logger.info("Export finished: %d ok, %d failed", batch.success, batch.failed)
    return batch
