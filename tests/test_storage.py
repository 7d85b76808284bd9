import json
import threading
from unittest.mock import MagicMock

import pytest
import redis

from conftest import FakeNetworkBackend
from vintagecam.storage import (
    BackendState,
    DiskBackend,
    ImageRecord,
    MetadataStore,
    ProcessedImageRecord,
    RedisBackend,
    StorageConnectionError,
    StorageError,
    sanitize_key,
)


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


# Disk backend

def test_sanitize_key():
    assert sanitize_key("image:abc-123_x") == "image_abc-123_x"
    assert sanitize_key("../etc/passwd") == "___etc_passwd"


def test_disk_set_then_get(tmp_path):
    backend = DiskBackend(tmp_path)
    assert backend.set("image:1", '{"a": 1}', 60)
    assert backend.get("image:1") == '{"a": 1}'


def test_disk_never_set_key_is_absent(tmp_path):
    assert DiskBackend(tmp_path).get("image:missing") is None


def test_disk_entry_format(tmp_path):
    clock = FakeClock(100.0)
    backend = DiskBackend(tmp_path, clock=clock)
    backend.set("processed:9", "payload", 30)
    entry = json.loads((tmp_path / "processed_9.json").read_text())
    assert entry == {"data": "payload", "expiry": 130.0}


def test_disk_entry_expires_lazily(tmp_path):
    clock = FakeClock()
    backend = DiskBackend(tmp_path, clock=clock)
    backend.set("image:1", "value", 10)

    clock.now += 10
    assert backend.get("image:1") == "value"

    clock.now += 1
    assert backend.get("image:1") is None
    assert not backend.path_for("image:1").exists()


def test_disk_entry_without_ttl_never_expires(tmp_path):
    clock = FakeClock()
    backend = DiskBackend(tmp_path, clock=clock)
    backend.set("k", "v")
    clock.now += 10 ** 9
    assert backend.get("k") == "v"


def test_disk_overwrite_replaces_value(tmp_path):
    backend = DiskBackend(tmp_path)
    backend.set("k", "first", 60)
    backend.set("k", "second", 60)
    assert backend.get("k") == "second"
    assert not list(tmp_path.glob(".*.tmp"))


def test_disk_corrupt_entry_raises(tmp_path):
    backend = DiskBackend(tmp_path)
    backend.path_for("k").write_text("{not json")
    with pytest.raises(StorageError):
        backend.get("k")


# Redis backend

def test_redis_backend_uses_server_expiry():
    client = MagicMock()
    client.set.return_value = True
    backend = RedisBackend("redis://localhost:6379", client=client)

    assert backend.set("image:1", "v", 86400)
    client.set.assert_called_once_with("image:1", "v", ex=86400)


def test_redis_errors_become_storage_errors():
    client = MagicMock()
    client.get.side_effect = redis.ConnectionError("gone")
    client.ping.side_effect = redis.ConnectionError("refused")
    backend = RedisBackend("redis://localhost:6379", client=client)

    with pytest.raises(StorageError):
        backend.get("image:1")
    with pytest.raises(StorageConnectionError):
        backend.connect()


# Selector

def test_store_uses_disk_before_start(tmp_path):
    network = FakeNetworkBackend()
    store = MetadataStore(DiskBackend(tmp_path), network)
    assert store.state is BackendState.UNINITIALIZED
    store.set("k", "v", 60)
    assert store.get("k") == "v"
    assert network.data == {}


def test_store_promotes_reachable_network_backend(tmp_path):
    network = FakeNetworkBackend()
    store = MetadataStore(DiskBackend(tmp_path), network)
    store.start(background=True)
    assert store.wait_ready(2.0)

    assert store.state is BackendState.NETWORK_ACTIVE
    assert store.active_backend is network
    assert "test:connection" in network.data

    store.set("image:1", "v", 86400)
    assert network.data["image:1"] == ("v", 86400)


def test_store_falls_back_when_network_unreachable(tmp_path):
    network = FakeNetworkBackend(fail_connect=True)
    disk = DiskBackend(tmp_path)
    store = MetadataStore(disk, network)
    store.start(background=False)

    assert store.state is BackendState.DISK_ACTIVE
    store.set("image:1", "v", 60)
    assert store.get("image:1") == "v"
    assert disk.get("image:1") == "v"
    assert store.status()["last_error"]


def test_runtime_failure_falls_back_permanently(tmp_path):
    network = FakeNetworkBackend()
    disk = DiskBackend(tmp_path)
    store = MetadataStore(disk, network)
    store.start(background=False)
    assert store.state is BackendState.NETWORK_ACTIVE

    network.fail_ops = True
    assert store.set("image:1", "v", 60)
    assert store.state is BackendState.DISK_ACTIVE
    assert disk.get("image:1") == "v"

    # The network recovering does not re-promote the store
    network.fail_ops = False
    store.set("image:2", "w", 60)
    assert "image:2" not in network.data
    assert store.status()["fallen_back"] is True


def test_get_failure_is_retried_on_disk(tmp_path):
    network = FakeNetworkBackend()
    disk = DiskBackend(tmp_path)
    disk.set("image:1", "from-disk", 60)
    store = MetadataStore(disk, network)
    store.start(background=False)

    network.fail_ops = True
    assert store.get("image:1") == "from-disk"


def test_store_without_network_is_ready_immediately(tmp_path):
    store = MetadataStore(DiskBackend(tmp_path))
    store.start()
    assert store.wait_ready(0)
    assert store.status()["backend"] == "file"


def test_store_close_closes_network(tmp_path):
    network = FakeNetworkBackend()
    store = MetadataStore(DiskBackend(tmp_path), network)
    store.start(background=False)
    store.close()
    assert network.closed


def test_concurrent_writes_during_fallback(tmp_path):
    network = FakeNetworkBackend()
    disk = DiskBackend(tmp_path)
    store = MetadataStore(disk, network)
    store.start(background=False)
    network.fail_ops = True

    def write(i):
        store.set(f"image:{i}", str(i), 60)

    threads = [threading.Thread(target=write, args=(i,)) for i in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert all(disk.get(f"image:{i}") == str(i) for i in range(10))


# Records

def test_image_record_json():
    record = ImageRecord.create("abc", "/tmp/abc.jpg", "me.jpg", "image/jpeg", 123, ttl_seconds=60)
    restored = ImageRecord.from_json(record.to_json())
    assert restored == record
    assert record.created_at.endswith("Z")
    assert record.expires_at > record.created_at


def test_processed_record_keeps_crop_or_ratio():
    ratio = ProcessedImageRecord.create("p1", "/x.jpg", "abc", "velvia", aspect_ratio="4:3")
    custom = ProcessedImageRecord.create(
        "p2", "/y.jpg", "abc", "velvia", aspect_ratio="4:3",
        crop={"x": 0, "y": 0, "width": 10, "height": 10}
    )
    assert ratio.aspect_ratio == "4:3" and ratio.crop is None
    assert custom.aspect_ratio is None and custom.crop["width"] == 10


def test_record_from_invalid_json():
    with pytest.raises(ValueError):
        ImageRecord.from_json('{"path": "/no/id.jpg"}')
    with pytest.raises(ValueError):
        ImageRecord.from_json("not json")
