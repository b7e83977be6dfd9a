"""Tests for export settings and manifest loading."""

import json
from pathlib import Path

import pytest

from clipsplit.manifest import ExportManifest, ExportSettings, load_manifest
from clipsplit.models import SegmentCandidate
from clipsplit.timefmt import TimeFormatError


class TestExportSettings:
    def test_defaults(self):
        s = ExportSettings(output_dir="out")
        assert s.output_dir == Path("out")
        assert s.format == "mp4"
        assert s.quality == "high"

    def test_flv_not_exportable(self):
        with pytest.raises(ValueError, match="Unsupported export format"):
            ExportSettings(output_dir="out", format="flv")

    def test_unknown_quality(self):
        with pytest.raises(ValueError, match="Unknown quality"):
            ExportSettings(output_dir="out", quality="ultra")

    def test_from_dict(self):
        s = ExportSettings.from_dict({"output_dir": "/tmp/x", "format": "mkv", "quality": "low"})
        assert s == ExportSettings(output_dir=Path("/tmp/x"), format="mkv", quality="low")

    def test_from_dict_requires_output_dir(self):
        with pytest.raises(ValueError, match="output_dir"):
            ExportSettings.from_dict({"format": "mp4"})


class TestExportManifest:
    def test_minimal(self):
        m = ExportManifest(input=Path("in.mp4"), settings=ExportSettings(output_dir="out"))
        assert m.version == "1"
        assert m.clips == []


class TestLoadManifest:
    def test_load_sample(self, sample_manifest_path: Path):
        m = load_manifest(sample_manifest_path)
        assert m.version == "1"
        assert m.input == Path("video.mp4")
        assert m.settings.output_dir == Path("clips")
        assert m.settings.format == "webm"
        assert m.settings.quality == "medium"
        assert m.clips == [
            SegmentCandidate(name="Intro", start_time=0.0, end_time=50.0),
            SegmentCandidate(name="Outro", start_time=50.0, end_time=100.0),
        ]

    def test_load_invalid_json(self, tmp_path: Path):
        bad = tmp_path / "bad.json"
        bad.write_text("not json")
        with pytest.raises(json.JSONDecodeError):
            load_manifest(bad)

    def test_load_missing_fields(self, tmp_path: Path):
        incomplete = tmp_path / "incomplete.json"
        incomplete.write_text('{"version": "1", "input": "a.mp4"}')
        with pytest.raises(ValueError, match="must contain"):
            load_manifest(incomplete)

    def test_unsupported_version(self, tmp_path: Path):
        path = tmp_path / "m.json"
        path.write_text(json.dumps({"version": "2", "input": "a.mp4", "output_dir": "."}))
        with pytest.raises(ValueError, match="Unsupported manifest version '2'"):
            load_manifest(path)

    def test_version_defaults(self, tmp_path: Path):
        path = tmp_path / "m.json"
        path.write_text(json.dumps({"input": "a.mp4", "output_dir": "."}))
        assert load_manifest(path).version == "1"

    def test_clip_without_times(self, tmp_path: Path):
        path = tmp_path / "m.json"
        path.write_text(json.dumps({"input": "a.mp4", "output_dir": ".", "clips": [{"name": "x"}]}))
        with pytest.raises(ValueError, match="'start' and 'end'"):
            load_manifest(path)

    def test_bad_time_string(self, tmp_path: Path):
        path = tmp_path / "m.json"
        path.write_text(json.dumps({
            "input": "a.mp4",
            "output_dir": ".",
            "clips": [{"name": "x", "start": "soon", "end": 5}],
        }))
        with pytest.raises(TimeFormatError):
            load_manifest(path)
