"""FFmpeg subprocess helpers: probing and per-clip transcoding."""

import logging
import math
import os
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from clipsplit.models import (
    EXPORT_FORMATS,
    QUALITY_BITRATES,
    SUPPORTED_EXTENSIONS,
    VideoInfo,
)

logger = logging.getLogger(__name__)


class FFmpegNotFoundError(RuntimeError):
    pass


class VideoNotFoundError(FileNotFoundError):
    """Raised when the video file does not exist."""
    pass


class ProbeError(RuntimeError):
    """Raised when ffmpeg output does not yield usable metadata."""
    pass


class TranscodeError(RuntimeError):
    pass


def ffmpeg_bin() -> str:
    """Path of the ffmpeg executable, overridable via ``CLIPSPLIT_FFMPEG``."""
    return os.environ.get("CLIPSPLIT_FFMPEG", "ffmpeg")


def check_ffmpeg() -> None:
    """Raise FFmpegNotFoundError if ffmpeg is not available."""
    cmd = ffmpeg_bin()
    if shutil.which(cmd) is None:
        raise FFmpegNotFoundError(f"{cmd} not found on PATH")


def is_supported_format(path: str | Path) -> bool:
    """True if the file extension is one we can load (flv included)."""
    return Path(path).suffix.lower().lstrip(".") in SUPPORTED_EXTENSIONS


def is_export_format(fmt: str) -> bool:
    return fmt in EXPORT_FORMATS


_INVALID_FILENAME_CHARS = re.compile(r'[/\\:*?"<>|]')


def sanitize_filename(name: str) -> str:
    return _INVALID_FILENAME_CHARS.sub("_", name).strip()


# ---------------------------------------------------------------------------
# Probing
# ---------------------------------------------------------------------------

_DURATION_RE = re.compile(r"Duration: (\d{2}):(\d{2}):(\d{2})\.(\d{2})")
_RESOLUTION_RE = re.compile(r"Video:.* (\d{2,5})x(\d{2,5})")
_FORMAT_RE = re.compile(r"Input #0, ([^,]+),")
_BITRATE_RE = re.compile(r"bitrate: (\d+) kb/s")


def parse_probe_output(output: str) -> VideoInfo:
    """Parse the stream summary ffmpeg prints to stderr for ``-i``.

    Raises ProbeError if no positive duration can be found.
    """
    duration = 0.0
    width = height = 0
    fmt = "unknown"
    bitrate = 0

    m = _DURATION_RE.search(output)
    if m:
        h, mnt, s, cs = (int(g) for g in m.groups())
        duration = h * 3600 + mnt * 60 + s + cs / 100

    m = _RESOLUTION_RE.search(output)
    if m:
        width, height = int(m.group(1)), int(m.group(2))

    m = _FORMAT_RE.search(output)
    if m:
        fmt = m.group(1)

    m = _BITRATE_RE.search(output)
    if m:
        bitrate = int(m.group(1)) * 1000

    if duration == 0:
        raise ProbeError("Could not read video duration from ffmpeg output")

    return VideoInfo(
        duration=duration,
        width=width,
        height=height,
        format=fmt,
        bitrate=bitrate,
    )


def probe(input_path: Path) -> VideoInfo:
    """Extract video metadata from ``ffmpeg -i``.

    Without an output file ffmpeg always exits non-zero, so the exit code
    is only treated as a failure when stderr is empty too.
    """
    input_path = Path(input_path)
    if not input_path.is_file():
        raise VideoNotFoundError(f"Video file not found: {input_path}")

    cmd = [ffmpeg_bin(), "-hide_banner", "-i", str(input_path)]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, errors="replace")
    except OSError as e:
        raise ProbeError(f"Could not run ffmpeg: {e}") from e

    if result.returncode != 0 and not result.stderr:
        raise ProbeError(
            f"ffmpeg probe failed (rc={result.returncode}) with no output"
        )

    return parse_probe_output(result.stderr)


# ---------------------------------------------------------------------------
# Codec policy
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CodecPolicy:
    """Encoder parameters for one export. A bitrate of None means stream-copy."""

    video_codec: str
    audio_codec: str
    video_bitrate_kbps: int | None = None


ANY_SOURCE = "*"

_ENCODERS = {
    "mp4": ("libx264", "aac"),
    "mov": ("libx264", "aac"),
    "mkv": ("libx264", "aac"),
    "avi": ("libx264", "libmp3lame"),
    "webm": ("libvpx-vp9", "libopus"),
}

# Keyed by (export format, quality, source container).
CODEC_POLICIES: dict[tuple[str, str, str], CodecPolicy] = {
    (fmt, quality, ANY_SOURCE): CodecPolicy(vcodec, acodec, kbps)
    for fmt, (vcodec, acodec) in _ENCODERS.items()
    for quality, kbps in QUALITY_BITRATES.items()
}
CODEC_POLICIES[("mp4", "high", "mp4")] = CodecPolicy("copy", "copy")


def select_codec_policy(fmt: str, quality: str, source_path: Path) -> CodecPolicy:
    source = Path(source_path).suffix.lower().lstrip(".")
    policy = CODEC_POLICIES.get((fmt, quality, source))
    if policy is None:
        try:
            policy = CODEC_POLICIES[(fmt, quality, ANY_SOURCE)]
        except KeyError:
            raise ValueError(f"Unsupported export format/quality: {fmt}/{quality}") from None
    return policy


# ---------------------------------------------------------------------------
# Transcoding
# ---------------------------------------------------------------------------

def build_export_command(
    input_path: Path,
    start_time: float,
    duration: float,
    output_path: Path,
    fmt: str,
    quality: str,
) -> list[str]:
    policy = select_codec_policy(fmt, quality, input_path)
    cmd = [
        ffmpeg_bin(), "-n",
        "-ss", f"{start_time:.3f}",
        "-i", str(input_path),
        "-t", f"{duration:.3f}",
        "-c:v", policy.video_codec,
        "-c:a", policy.audio_codec,
    ]
    if policy.video_bitrate_kbps is not None:
        cmd += ["-b:v", f"{policy.video_bitrate_kbps}k"]
    cmd.append(str(output_path))
    return cmd


def export_clip(
    input_path: Path,
    start_time: float,
    duration: float,
    output_path: Path,
    fmt: str,
    quality: str,
) -> Path:
    """Cut ``[start_time, start_time + duration)`` of the input into a new file."""
    if not Path(input_path).is_file():
        raise VideoNotFoundError(f"Video file not found: {input_path}")
    finite = math.isfinite(start_time) and math.isfinite(duration)
    if not finite or start_time < 0 or duration <= 0:
        raise TranscodeError(
            f"Invalid time range (start={start_time}, duration={duration})"
        )

    cmd = build_export_command(input_path, start_time, duration, output_path, fmt, quality)
    logger.debug("Running: %s", " ".join(cmd))
    try:
        subprocess.run(cmd, capture_output=True, text=True, errors="replace", check=True)
    except subprocess.CalledProcessError as e:
        stderr = e.stderr or ""
        raise TranscodeError(
            f"ffmpeg failed: {stderr[-500:]}" if stderr else f"ffmpeg failed (rc={e.returncode})"
        ) from e
    return output_path
