"""Conversion between native file paths and ``file://`` URLs."""

import re
import sys
from pathlib import Path
from urllib.parse import quote, unquote, urlsplit

_DRIVE_RE = re.compile(r"^[A-Za-z]:")


def _use_windows(windows: bool | None) -> bool:
    return sys.platform == "win32" if windows is None else windows


def path_to_file_url(path: str | Path, windows: bool | None = None) -> str:
    """Build a percent-encoded ``file://`` URL for an absolute path.

    ``C:\\Videos\\a b.mp4`` becomes ``file:///C:/Videos/a%20b.mp4``;
    ``/home/u/a b.mp4`` becomes ``file:///home/u/a%20b.mp4``.
    """
    text = str(path)
    if _use_windows(windows):
        text = text.replace("\\", "/")
        if not _DRIVE_RE.match(text):
            raise ValueError(f"Expected an absolute Windows path: {path}")
        return "file:///" + text[:2] + quote(text[2:], safe="/")

    if not text.startswith("/"):
        raise ValueError(f"Expected an absolute path: {path}")
    return "file://" + quote(text, safe="/")


def file_url_to_path(url: str, windows: bool | None = None) -> str:
    """Inverse of :func:`path_to_file_url`."""
    parts = urlsplit(url)
    if parts.scheme != "file":
        raise ValueError(f"Not a file URL: {url}")
    if parts.netloc not in ("", "localhost"):
        raise ValueError(f"Remote file URLs are not supported: {url}")

    path = unquote(parts.path)
    if _use_windows(windows):
        # /C:/dir/file -> C:\dir\file
        if path.startswith("/") and _DRIVE_RE.match(path[1:]):
            path = path[1:]
        return path.replace("/", "\\")
    return path
