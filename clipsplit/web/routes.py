"""API routes: video loading, segment editing and batch export."""

import json
import logging
import queue
import threading
import uuid
from pathlib import Path

from flask import Blueprint, Response, current_app, jsonify, request

from clipsplit import ffutil
from clipsplit.engine import (
    ExportBusyError,
    ExportPreconditionError,
    check_preconditions,
    export_batch,
)
from clipsplit.manifest import ExportSettings
from clipsplit.models import ClipSegment, SegmentCandidate
from clipsplit.paths import file_url_to_path, path_to_file_url
from clipsplit.store import SegmentStore, VideoSession
from clipsplit.timefmt import to_seconds

logger = logging.getLogger(__name__)
ui_logger = logging.getLogger("clipsplit.ui")

bp = Blueprint("api", __name__)

# Seconds between SSE comments while a long segment is still encoding.
PROGRESS_KEEPALIVE_SECONDS = 15

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class ClipSession:
    """State behind one app instance: the video, its segments and export jobs."""

    def __init__(self) -> None:
        self.video = VideoSession()
        self.segments = SegmentStore(self.video)
        self.export_lock = threading.Lock()
        self.jobs: dict[str, dict] = {}

    def begin_export(self) -> None:
        """Claim the export slot; one batch per session at a time."""
        if not self.export_lock.acquire(blocking=False):
            raise ExportBusyError("An export is already running")


def _session() -> ClipSession:
    return current_app.extensions["clipsplit"]


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def _payload() -> dict:
    return request.get_json(silent=True) or {}


# ---------------------------------------------------------------------------
# Video
# ---------------------------------------------------------------------------

@bp.route("/api/video/load", methods=["POST"])
def load_video():
    raw = str(_payload().get("path") or "").strip()
    if not raw:
        # Dismissed picker, not an error.
        return jsonify({"cancelled": True})

    path = Path(raw).expanduser()
    if not path.is_file():
        return _error(f"Video file not found: {path}", 404)
    if not ffutil.is_supported_format(path):
        return _error("Unsupported video format", 400)

    return jsonify({"url": path_to_file_url(path.resolve())})


@bp.route("/api/video/info", methods=["POST"])
def video_info():
    url = _payload().get("url")
    if not url:
        return _error("Missing 'url'", 400)
    try:
        path = Path(file_url_to_path(url))
    except ValueError as e:
        return _error(str(e), 400)

    session = _session()
    try:
        info = ffutil.probe(path)
    except ffutil.VideoNotFoundError as e:
        session.video.clear()
        return _error(str(e), 404)
    except ffutil.ProbeError as e:
        logger.warning("Probe failed for %s: %s", path, e)
        session.video.clear()
        return _error(str(e), 422)

    session.video.load(path, info)
    return jsonify(info.to_dict())


@bp.route("/api/video", methods=["DELETE"])
def unload_video():
    _session().video.clear()
    return "", 204


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------

def _candidate(data: dict) -> SegmentCandidate:
    return SegmentCandidate(
        name=str(data.get("name", "")),
        start_time=to_seconds(data["start_time"]),
        end_time=to_seconds(data["end_time"]),
    )


def _segments_response(store: SegmentStore):
    return jsonify({"valid": True, "segments": [s.to_dict() for s in store.segments]})


@bp.route("/api/segments", methods=["GET"])
def list_segments():
    return jsonify({"segments": [s.to_dict() for s in _session().segments.segments]})


@bp.route("/api/segments", methods=["POST"])
def add_segment():
    try:
        candidate = _candidate(_payload())
    except (KeyError, TypeError, ValueError) as e:
        return _error(f"Invalid segment: {e}", 400)

    store = _session().segments
    result = store.add(candidate)
    if not result.valid:
        return jsonify(result.to_dict()), 422
    return _segments_response(store)


@bp.route("/api/segments/<segment_id>", methods=["PUT"])
def update_segment(segment_id: str):
    try:
        candidate = _candidate(_payload())
    except (KeyError, TypeError, ValueError) as e:
        return _error(f"Invalid segment: {e}", 400)

    store = _session().segments
    result = store.update(segment_id, candidate)
    if not result.valid:
        status = 404 if store.get(segment_id) is None else 422
        return jsonify(result.to_dict()), status
    return _segments_response(store)


@bp.route("/api/segments/<segment_id>", methods=["DELETE"])
def delete_segment(segment_id: str):
    _session().segments.delete(segment_id)
    return "", 204


@bp.route("/api/segments", methods=["DELETE"])
def clear_segments():
    _session().segments.clear()
    return "", 204


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

@bp.route("/api/export/directory", methods=["POST"])
def select_export_directory():
    raw = str(_payload().get("path") or "").strip()
    if not raw:
        return jsonify({"cancelled": True})

    path = Path(raw).expanduser()
    if not path.is_dir():
        return _error(f"Not a directory: {path}", 400)
    return jsonify({"path": str(path.resolve())})


@bp.route("/api/export", methods=["POST"])
def start_export():
    data = _payload()
    session = _session()
    loaded_path, _ = session.video.snapshot()

    if data.get("url"):
        try:
            video_path = Path(file_url_to_path(data["url"]))
        except ValueError as e:
            return _error(str(e), 400)
    elif loaded_path is not None:
        video_path = loaded_path
    else:
        return _error("No video loaded", 400)

    try:
        settings = ExportSettings.from_dict(data.get("settings") or {})
    except ValueError as e:
        return _error(str(e), 400)

    if "segments" in data:
        try:
            segments = [ClipSegment.from_dict(s) for s in data["segments"]]
        except (KeyError, TypeError, ValueError) as e:
            return _error(f"Invalid segment: {e}", 400)
    else:
        segments = list(session.segments.segments)

    try:
        check_preconditions(video_path, settings)
    except ExportPreconditionError as e:
        return _error(str(e), 400)

    try:
        session.begin_export()
    except ExportBusyError as e:
        return _error(str(e), 409)

    job_id = uuid.uuid4().hex[:12]
    progress_queue: queue.Queue = queue.Queue()
    job = {
        "status": "exporting",
        "progress_queue": progress_queue,
        "result": None,
        "error": None,
    }
    session.jobs[job_id] = job

    def run():
        try:
            result = export_batch(
                video_path,
                segments,
                settings,
                on_progress=lambda p: progress_queue.put(p.to_dict()),
            )
            job["result"] = result.to_dict()
            job["status"] = "done"
        except ExportPreconditionError as e:
            job["status"] = "error"
            job["error"] = str(e)
        except Exception as e:
            logger.exception("Export job %s failed", job_id)
            job["status"] = "error"
            job["error"] = str(e) or "Export failed"
        finally:
            session.export_lock.release()
            progress_queue.put(None)  # sentinel

    threading.Thread(target=run, daemon=True).start()
    return jsonify({"job_id": job_id, "total": len(segments)})


@bp.route("/api/export/<job_id>/progress")
def export_progress(job_id: str):
    job = _session().jobs.get(job_id)
    if job is None:
        return _error("Job not found", 404)

    q = job["progress_queue"]

    def generate():
        while True:
            try:
                msg = q.get(timeout=PROGRESS_KEEPALIVE_SECONDS)
            except queue.Empty:
                if job["status"] == "exporting":
                    yield ": keep-alive\n\n"
                    continue
                msg = None
            if msg is None:
                if job["status"] == "error":
                    data = json.dumps({"error": job["error"]})
                else:
                    data = json.dumps({"stage": "complete", "result": job["result"]})
                yield f"data: {data}\n\n"
                break
            yield f"data: {json.dumps(msg)}\n\n"

    return Response(generate(), mimetype="text/event-stream")


@bp.route("/api/export/<job_id>/status")
def export_status(job_id: str):
    job = _session().jobs.get(job_id)
    if job is None:
        return _error("Job not found", 404)

    resp = {"status": job["status"]}
    if job["status"] == "done":
        resp["result"] = job["result"]
    if job["status"] == "error":
        resp["error"] = job["error"]
    return jsonify(resp)


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

@bp.route("/api/log", methods=["POST"])
def write_log():
    data = _payload()
    level = _LOG_LEVELS.get(str(data.get("level", "info")).lower(), logging.INFO)
    ui_logger.log(level, "%s", data.get("message", ""))
    return "", 204


@bp.route("/api/log/error", methods=["POST"])
def write_error_log():
    data = _payload()
    lines = [f"Error: {data.get('message', '')}"]
    if data.get("stack"):
        lines.append(f"Stack: {data['stack']}")
    if data.get("component_stack"):
        lines.append(f"Component stack: {data['component_stack']}")
    ui_logger.error("\n".join(lines))
    return "", 204
