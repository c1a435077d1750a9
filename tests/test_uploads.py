"""Unit tests for core/uploads.py -- save_profile_image().

Covers:
- No upload / empty filename -> None, nothing written
- Bytes written under the client filename verbatim, public path returned
- Upload directory created on demand
- Custom public prefix
"""

import io
from types import SimpleNamespace

from core.uploads import UPLOADS_PREFIX, save_profile_image


def _upload(filename: str, data: bytes = b"data") -> SimpleNamespace:
    """Minimal stand-in for starlette's UploadFile: .filename and .file."""
    return SimpleNamespace(filename=filename, file=io.BytesIO(data))


def test_no_upload_returns_none(tmp_path):
    assert save_profile_image(None, tmp_path) is None
    assert list(tmp_path.iterdir()) == []


def test_empty_filename_returns_none(tmp_path):
    assert save_profile_image(_upload(""), tmp_path) is None
    assert list(tmp_path.iterdir()) == []


def test_saves_under_original_name(tmp_path):
    path = save_profile_image(_upload("My Photo.JPG", b"jpeg-bytes"), tmp_path)
    assert path == f"{UPLOADS_PREFIX}/My Photo.JPG"
    assert (tmp_path / "My Photo.JPG").read_bytes() == b"jpeg-bytes"


def test_creates_missing_directory(tmp_path):
    target = tmp_path / "images" / "uploads"
    save_profile_image(_upload("a.png"), target)
    assert (target / "a.png").exists()


def test_custom_prefix(tmp_path):
    assert save_profile_image(_upload("a.png"), tmp_path, "/static/avatars") == "/static/avatars/a.png"
