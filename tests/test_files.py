from PIL import Image

from conftest import make_image
from vintagecam.files import ImageFileManager


def _manager(tmp_path):
    return ImageFileManager(tmp_path / "uploads", tmp_path / "processed", tmp_path / "tmp")


def test_layout_paths(tmp_path):
    files = _manager(tmp_path)
    assert files.upload_path("abc", ".JPG") == tmp_path / "uploads" / "abc.jpg"
    assert files.processed_path("xyz", ".png") == tmp_path / "processed" / "xyz.png"


def test_find_by_prefix_returns_first_sorted_match(tmp_path):
    files = _manager(tmp_path)
    (files.uploads_dir / "abc.png").write_bytes(b"2")
    (files.uploads_dir / "abc.jpg").write_bytes(b"1")
    (files.uploads_dir / "zzz.jpg").write_bytes(b"3")

    assert files.find_upload("abc") == files.uploads_dir / "abc.jpg"
    assert files.find_upload("nope") is None
    assert files.find_upload("") is None


def test_find_by_prefix_on_missing_directory(tmp_path):
    assert ImageFileManager.find_by_prefix(tmp_path / "absent", "abc") is None


def test_working_directory_is_removed(tmp_path):
    files = _manager(tmp_path)
    with files.working_directory() as work_dir:
        (work_dir / "scratch.bin").write_bytes(b"x")
        assert work_dir.parent == tmp_path / "tmp"
    assert not work_dir.exists()


def test_working_directory_removed_after_error(tmp_path):
    files = _manager(tmp_path)
    try:
        with files.working_directory() as work_dir:
            raise RuntimeError("boom")
    except RuntimeError:
        pass
    assert not work_dir.exists()


def test_strip_exif_removes_metadata(tmp_path):
    files = _manager(tmp_path)
    path = tmp_path / "photo.jpg"
    exif = Image.Exif()
    exif[0x010F] = "Test Camera"  # Make
    make_image(40, 30).save(path, format="JPEG", exif=exif.tobytes())

    assert files.strip_exif(path) is True
    with Image.open(path) as stripped:
        assert not stripped.getexif()
        assert stripped.size == (40, 30)


def test_strip_exif_without_metadata_is_noop(tmp_path):
    files = _manager(tmp_path)
    path = tmp_path / "plain.png"
    make_image(10, 10).save(path, format="PNG")
    assert files.strip_exif(path) is False


def test_strip_exif_on_garbage_is_logged_not_raised(tmp_path):
    files = _manager(tmp_path)
    path = tmp_path / "bad.jpg"
    path.write_bytes(b"garbage")
    assert files.strip_exif(path) is False
    assert path.read_bytes() == b"garbage"


def test_get_stats_counts_files(tmp_path):
    files = _manager(tmp_path)
    (files.uploads_dir / "a.jpg").write_bytes(b"x" * 10)
    (files.processed_dir / "b.jpg").write_bytes(b"y")
    stats = files.get_stats()
    assert stats["uploads"]["file_count"] == 1
    assert stats["processed"]["file_count"] == 1
