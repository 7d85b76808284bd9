import argparse

import pytest
import yaml
from PIL import Image

from conftest import encode_image, make_image
from vintagecam.__main__ import build_options, main, parse_arguments, parse_crop
from vintagecam.film import FilmStock
from vintagecam.web.cli import parse_arguments as parse_web_arguments


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "storage": {"use_redis": False, "metadata_dir": str(tmp_path / "storage")},
        "paths": {
            "uploads_dir": str(tmp_path / "uploads"),
            "processed_dir": str(tmp_path / "processed"),
        },
    }))
    return str(path)


def test_parse_crop():
    crop = parse_crop("10,20,300,200")
    assert (crop.x, crop.y, crop.width, crop.height) == (10, 20, 300, 200)
    with pytest.raises(argparse.ArgumentTypeError):
        parse_crop("10,20,300")
    with pytest.raises(argparse.ArgumentTypeError):
        parse_crop("a,b,c,d")
    with pytest.raises(argparse.ArgumentTypeError):
        parse_crop("0,0,0,10")


def test_build_options_clamps_intensities():
    args = parse_arguments([
        "in.jpg", "out.jpg", "--film-stock", "velvia",
        "--grain", "--grain-intensity", "5", "--vignette-intensity", "-1",
    ])
    options = build_options(args)
    assert options.film_stock is FilmStock.VELVIA
    assert options.grain_intensity == 1.0
    assert options.vignette_intensity == 0.0


def test_single_file(tmp_path, config_file):
    source = tmp_path / "in.jpg"
    source.write_bytes(encode_image(make_image(300, 200), "JPEG"))
    target = tmp_path / "out.png"

    code = main([str(source), str(target), "--aspect-ratio", "4:3", "--config", config_file, "-q"])

    assert code == 0
    with Image.open(target) as output:
        assert output.size == (266, 200)


def test_processing_error_exit_code(tmp_path, config_file):
    source = tmp_path / "in.jpg"
    source.write_bytes(b"not an image")
    code = main([str(source), str(tmp_path / "out.jpg"), "--config", config_file, "-q"])
    assert code == 3


def test_batch_reports_failures(tmp_path, config_file):
    photos = tmp_path / "photos"
    photos.mkdir()
    (photos / "a.jpg").write_bytes(encode_image(make_image(90, 60), "JPEG"))
    (photos / "b.png").write_bytes(b"garbage")

    code = main(["--batch", str(photos), str(tmp_path / "vintage"), "--config", config_file, "-q"])

    assert code == 1
    assert (tmp_path / "vintage" / "vintage_a.jpg").exists()


def test_batch_missing_directory(tmp_path, config_file):
    code = main(["--batch", str(tmp_path / "nope"), str(tmp_path / "out"), "--config", config_file, "-q"])
    assert code == 2


def test_bad_config_exit_code(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("storage: [unclosed")
    code = main(["in.jpg", "out.jpg", "--config", str(path), "-q"])
    assert code == 2


def test_web_arguments():
    args = parse_web_arguments(["--port", "8080", "--host", "0.0.0.0", "--debug"])
    assert args.port == 8080
    assert args.host == "0.0.0.0"
    assert args.debug is True
