"""Shared test fixtures.

  upload_dir  — points settings.UPLOAD_DIR at a temp directory.
  client      — FastAPI TestClient over the app, writing into upload_dir.
  make_image  — encodes a small Pillow image in the requested format.
  editor      — in-memory stand-in for the editor's command capability.
"""
import io

import pytest
from PIL import Image

from inkpad.config import settings


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    target = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", target)
    monkeypatch.setattr(settings, "UPLOAD_URL_PREFIX", "/uploads")
    return target


@pytest.fixture
def client(upload_dir):
    from fastapi.testclient import TestClient
    from inkpad.api.app import create_app

    app = create_app()
    with TestClient(app) as c:
        yield c


def encode_image(fmt: str, size=(32, 24), mode: str = "RGB", color=(200, 40, 90)) -> bytes:
    if mode == "RGBA" and len(color) == 3:
        color = (*color, 128)
    image = Image.new(mode, size, color if mode in ("RGB", "RGBA") else 128)
    buf = io.BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def make_image():
    return encode_image


class FakeEditor:
    """Flat list of nodes; a position is an index into it."""

    def __init__(self, nodes=None) -> None:
        self.nodes = list(nodes or [])
        self.calls: list[tuple] = []

    def delete_range(self, start: int, end: int) -> None:
        self.calls.append(("delete_range", start, end))
        del self.nodes[start:end]

    def insert_content_at(self, position: int, content: list) -> None:
        self.calls.append(("insert_content_at", position))
        self.nodes[position:position] = content


@pytest.fixture
def editor():
    return FakeEditor([
        {"type": "paragraph", "text": "before"},
        {"type": "imageUpload"},
        {"type": "paragraph", "text": "after"},
    ])
