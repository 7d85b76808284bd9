"""Shared pytest fixtures for vintagecam tests."""

import io
from typing import Dict, Optional, Tuple

import numpy as np
import pytest
from PIL import Image

from vintagecam.config import ConfigManager
from vintagecam.storage import DiskBackend, MetadataBackend, MetadataStore, StorageError
from vintagecam.storage.exceptions import StorageConnectionError
from vintagecam.web.app import create_app
from vintagecam.web.services import ImageService, MemoryGate


def make_image(width: int = 120, height: int = 80, mode: str = "RGB") -> Image.Image:
    """Build a colorful synthetic image with a full tonal range."""
    y, x = np.mgrid[0:height, 0:width]
    r = (x * 255.0 / max(1, width - 1))
    g = (y * 255.0 / max(1, height - 1))
    b = ((x + y) % 64) * 4.0
    arr = np.stack([r, g, b], axis=-1).astype(np.uint8)
    image = Image.fromarray(arr, "RGB")
    if mode == "RGBA":
        image.putalpha(Image.fromarray(np.full((height, width), 200, dtype=np.uint8), "L"))
    return image


def encode_image(image: Image.Image, fmt: str = "JPEG") -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


class FakeNetworkBackend(MetadataBackend):
    """In-memory stand-in for the Redis backend."""

    name = "redis"

    def __init__(self, fail_connect: bool = False) -> None:
        self.data: Dict[str, Tuple[str, Optional[int]]] = {}
        self.fail_connect = fail_connect
        self.fail_ops = False
        self.connected = False
        self.closed = False

    def connect(self) -> None:
        if self.fail_connect:
            raise StorageConnectionError("connection refused", backend=self.name)
        self.connected = True

    def set(self, key, value, ttl_seconds=None):
        if self.fail_ops:
            raise StorageError("connection lost")
        self.data[key] = (value, ttl_seconds)
        return True

    def get(self, key):
        if self.fail_ops:
            raise StorageError("connection lost")
        entry = self.data.get(key)
        return entry[0] if entry else None

    def close(self):
        self.closed = True


@pytest.fixture
def rgb_image():
    return make_image(120, 80)


@pytest.fixture
def jpeg_bytes():
    return encode_image(make_image(120, 80), "JPEG")


@pytest.fixture
def png_bytes():
    return encode_image(make_image(120, 80), "PNG")


@pytest.fixture
def config(tmp_path):
    return ConfigManager.from_dict({
        "storage": {
            "use_redis": False,
            "metadata_dir": str(tmp_path / "storage"),
        },
        "paths": {
            "uploads_dir": str(tmp_path / "uploads"),
            "processed_dir": str(tmp_path / "processed"),
            "temp_dir": str(tmp_path / "tmp"),
        },
    })


@pytest.fixture
def disk_backend(tmp_path):
    return DiskBackend(tmp_path / "storage")


@pytest.fixture
def store(disk_backend):
    store = MetadataStore(disk_backend)
    store.start(background=False)
    yield store
    store.close()


@pytest.fixture
def memory_usage():
    """Mutable memory reading consulted by the admission gate."""
    return {"fraction": 0.10}


@pytest.fixture
def service(config, store, memory_usage):
    gate = MemoryGate(threshold=0.95, retry_after=30, probe=lambda: memory_usage["fraction"])
    return ImageService(config, store, gate=gate)


@pytest.fixture
def app(config, service):
    app = create_app(config=config, service=service)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
