"""Segment validation rules."""

import math

from clipsplit.models import SegmentCandidate, ValidationResult, VideoInfo


def validate_segment(
    candidate: SegmentCandidate, video_info: VideoInfo | None = None
) -> ValidationResult:
    """Check a candidate segment; the first failing rule wins.

    Duration bounds are only enforced when ``video_info`` is given.
    """
    if not candidate.name or not candidate.name.strip():
        return ValidationResult(False, "Segment name must not be empty")

    if not (math.isfinite(candidate.start_time) and math.isfinite(candidate.end_time)):
        return ValidationResult(False, "Start and end times must be finite numbers")

    if candidate.start_time < 0:
        return ValidationResult(False, "Start time must not be negative")

    if candidate.end_time <= candidate.start_time:
        return ValidationResult(False, "End time must be greater than start time")

    if video_info is not None:
        if candidate.start_time >= video_info.duration:
            return ValidationResult(
                False,
                f"Start time must be before the end of the video "
                f"({video_info.duration:.2f} s)",
            )
        if candidate.end_time > video_info.duration:
            return ValidationResult(
                False,
                f"End time must not exceed the video length "
                f"({video_info.duration:.2f} s)",
            )

    return ValidationResult(True)
