"""Tests for the video session and segment store."""

import threading
from dataclasses import replace
from pathlib import Path

from clipsplit.models import SegmentCandidate, VideoInfo
from clipsplit.store import SegmentStore, VideoSession


def _candidate(name="clip", start=0.0, end=10.0) -> SegmentCandidate:
    return SegmentCandidate(name=name, start_time=start, end_time=end)


class TestAdd:
    def test_appends_in_order_with_unique_ids(self):
        store = SegmentStore()
        assert store.add(_candidate("a")).valid
        assert store.add(_candidate("b")).valid
        assert store.add(_candidate("c")).valid

        names = [s.name for s in store.segments]
        ids = [s.id for s in store.segments]
        assert names == ["a", "b", "c"]
        assert len(set(ids)) == 3

    def test_blank_name_rejected_and_count_unchanged(self):
        store = SegmentStore()
        store.add(_candidate("a"))
        result = store.add(_candidate("  "))
        assert result.valid is False
        assert len(store) == 1

    def test_overlapping_segments_allowed(self):
        store = SegmentStore()
        assert store.add(_candidate("a", 0, 10)).valid
        assert store.add(_candidate("b", 5, 15)).valid
        assert len(store) == 2

    def test_validates_against_loaded_video(self, video_info: VideoInfo):
        session = VideoSession()
        store = SegmentStore(session)
        session.load(Path("video.mp4"), video_info)

        result = store.add(_candidate(end=150))
        assert result.valid is False
        assert len(store) == 0

    def test_snapshot_is_not_affected_by_later_changes(self):
        store = SegmentStore()
        store.add(_candidate("a"))
        snapshot = store.segments
        store.add(_candidate("b"))
        store.clear()
        assert [s.name for s in snapshot] == ["a"]


class TestUpdate:
    def test_replaces_in_place_keeping_id(self):
        store = SegmentStore()
        store.add(_candidate("a"))
        store.add(_candidate("b"))
        target = store.segments[0]

        result = store.update(target.id, _candidate("renamed", 1, 2))

        assert result.valid is True
        updated = store.segments[0]
        assert updated.id == target.id
        assert updated.name == "renamed"
        assert (updated.start_time, updated.end_time) == (1, 2)
        assert store.segments[1].name == "b"

    def test_invalid_candidate_leaves_segment_untouched(self):
        store = SegmentStore()
        store.add(_candidate("a", 0, 10))
        target = store.segments[0]

        result = store.update(target.id, _candidate("a", 10, 5))

        assert result.valid is False
        assert store.segments[0] == target

    def test_unknown_id_is_noop_with_not_found(self):
        store = SegmentStore()
        store.add(_candidate("a"))
        before = store.segments

        result = store.update("missing", _candidate("x"))

        assert result.valid is False
        assert "not found" in result.error
        assert store.segments == before


class TestDeleteAndClear:
    def test_delete(self):
        store = SegmentStore()
        store.add(_candidate("a"))
        store.add(_candidate("b"))
        store.delete(store.segments[0].id)
        assert [s.name for s in store.segments] == ["b"]

    def test_delete_unknown_id_is_noop(self):
        store = SegmentStore()
        store.add(_candidate("a"))
        before = store.segments
        store.delete("missing")
        assert store.segments == before

    def test_clear(self):
        store = SegmentStore()
        store.add(_candidate("a"))
        store.add(_candidate("b"))
        store.clear()
        assert len(store) == 0
        assert store.segments == ()

    def test_get(self):
        store = SegmentStore()
        store.add(_candidate("a"))
        seg = store.segments[0]
        assert store.get(seg.id) == seg
        assert store.get("missing") is None


class TestVideoSessionCascade:
    def test_loading_new_video_clears_segments(self, video_info: VideoInfo):
        session = VideoSession()
        store = SegmentStore(session)
        session.load(Path("first.mp4"), video_info)
        store.add(_candidate("a"))

        session.load(Path("second.mp4"), video_info)

        assert len(store) == 0
        assert session.path == Path("second.mp4")

    def test_unloading_clears_segments(self, video_info: VideoInfo):
        session = VideoSession()
        store = SegmentStore(session)
        session.load(Path("first.mp4"), video_info)
        store.add(_candidate("a"))

        session.clear()

        assert len(store) == 0
        assert session.loaded is False
        assert session.info is None

    def test_listeners_notified(self, video_info: VideoInfo):
        session = VideoSession()
        calls = []
        listener = calls.append
        session.subscribe(listener)
        session.load(Path("a.mp4"), video_info)
        session.clear()
        session.unsubscribe(listener)
        session.load(Path("b.mp4"), video_info)
        assert calls == [session, session]

    def test_listener_can_read_session(self, video_info: VideoInfo):
        session = VideoSession()
        seen = []
        session.subscribe(lambda s: seen.append(s.snapshot()))
        session.load(Path("a.mp4"), video_info)
        assert seen == [(Path("a.mp4"), video_info)]


class TestVideoSessionConcurrency:
    def test_snapshot_never_mixes_videos(self, video_info: VideoInfo):
        session = VideoSession()
        videos = {
            Path("short.mp4"): replace(video_info, duration=10.0),
            Path("long.mp4"): replace(video_info, duration=500.0),
        }
        stop = threading.Event()
        mismatches = []

        def reader():
            while not stop.is_set():
                path, info = session.snapshot()
                if path is not None and videos[path] != info:
                    mismatches.append((path, info))

        readers = [threading.Thread(target=reader) for _ in range(4)]
        for t in readers:
            t.start()
        try:
            for _ in range(500):
                for path, info in videos.items():
                    session.load(path, info)
        finally:
            stop.set()
            for t in readers:
                t.join()

        assert mismatches == []
