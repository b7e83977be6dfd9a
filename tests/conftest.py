"""Shared test fixtures."""

import shutil
import subprocess
from pathlib import Path

import pytest

from clipsplit.manifest import ExportSettings
from clipsplit.models import ClipSegment, VideoInfo

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_manifest_path() -> Path:
    return FIXTURES_DIR / "sample_manifest.json"


@pytest.fixture
def probe_output() -> str:
    return (FIXTURES_DIR / "probe_output.txt").read_text()


@pytest.fixture
def video_info() -> VideoInfo:
    return VideoInfo(duration=100.0, width=1920, height=1080, format="mov", bitrate=2265000)


@pytest.fixture
def source_video(tmp_path: Path) -> Path:
    """A placeholder source file; ffmpeg is mocked wherever it is used."""
    path = tmp_path / "source.mp4"
    path.write_bytes(b"fake video data")
    return path


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    out = tmp_path / "out"
    out.mkdir()
    return out


@pytest.fixture
def settings(output_dir: Path) -> ExportSettings:
    return ExportSettings(output_dir=output_dir, format="mp4", quality="medium")


def make_segment(name: str, start: float, end: float, segment_id: str | None = None) -> ClipSegment:
    return ClipSegment(id=segment_id or f"id-{name}-{start}", name=name, start_time=start, end_time=end)


def write_output(input_path, start_time, duration, output_path, fmt, quality):
    """Stand-in for ffutil.export_clip that just creates the output file."""
    Path(output_path).write_bytes(b"clip")
    return output_path


@pytest.fixture(scope="session")
def synthetic_video(tmp_path_factory) -> Path:
    """A real 6-second 320x240 mp4 (blue then red, with a tone).

    Only built when ffmpeg is on PATH; uses encoders bundled with every
    ffmpeg build.
    """
    if shutil.which("ffmpeg") is None:
        pytest.skip("ffmpeg not installed")

    output = tmp_path_factory.mktemp("media") / "synthetic.mp4"
    filter_complex = (
        "color=c=blue:s=320x240:d=3:r=25[v0];"
        "color=c=red:s=320x240:d=3:r=25[v1];"
        "[v0][v1]concat=n=2:v=1:a=0[vout];"
        "sine=f=440:d=6[aout]"
    )
    cmd = [
        "ffmpeg", "-y",
        "-filter_complex", filter_complex,
        "-map", "[vout]",
        "-map", "[aout]",
        "-c:v", "mpeg4",
        "-c:a", "aac",
        "-shortest",
        str(output),
    ]
    subprocess.run(cmd, capture_output=True, check=True)
    return output
