import numpy as np

from conftest import make_image
from vintagecam.processing import effects
from vintagecam.processing.effects import (
    add_film_grain,
    add_vignette,
    grain_field,
    multiply_blend,
    overlay_blend,
    vignette_mask,
)


def test_grain_field_matches_dimensions():
    field = grain_field(40, 30, 1.0, "fine", seed=1)
    assert field.shape == (30, 40)
    assert field.min() >= 0.0 and field.max() <= 255.0
    assert abs(field.mean() - 128.0) < 3.0


def test_grain_field_is_reproducible_with_seed():
    assert np.array_equal(grain_field(20, 20, 0.5, seed=42), grain_field(20, 20, 0.5, seed=42))


def test_grain_intensity_pulls_toward_gray():
    strong = grain_field(64, 64, 1.0, "coarse", seed=5)
    weak = grain_field(64, 64, 0.1, "coarse", seed=5)
    assert weak.std() < strong.std()
    assert np.allclose(weak, strong * 0.1 + 128.0 * 0.9)


def test_grain_size_controls_spread():
    fine = grain_field(128, 128, 1.0, "fine", seed=9)
    coarse = grain_field(128, 128, 1.0, "coarse", seed=9)
    assert coarse.std() > fine.std()


def test_multiply_with_white_is_identity():
    base = np.random.default_rng(0).random((4, 4, 3)) * 255.0
    layer = np.full((4, 4), 255.0)
    assert np.allclose(multiply_blend(base, layer), base)


def test_overlay_with_black_darkens_shadows_to_zero():
    base = np.full((2, 2, 3), 50.0)
    layer = np.zeros((2, 2))
    assert np.allclose(overlay_blend(base, layer), 0.0)


def test_add_film_grain_keeps_size_and_changes_pixels():
    image = make_image(48, 32)
    grained = add_film_grain(image, intensity=0.5, size="medium", seed=3)
    assert grained.size == image.size
    assert grained.tobytes() != image.tobytes()


def test_add_film_grain_keeps_alpha():
    image = make_image(24, 16, mode="RGBA")
    grained = add_film_grain(image, seed=1)
    assert grained.mode == "RGBA"
    assert np.all(np.asarray(grained.getchannel("A")) == 200)


def test_add_film_grain_degrades_on_failure(monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("noise generator unavailable")

    monkeypatch.setattr(effects, "grain_field", explode)
    image = make_image(16, 16)
    assert add_film_grain(image) is image


def test_vignette_mask_is_bright_at_center_dark_at_corners():
    mask = vignette_mask(100, 100, intensity=0.8, radius=0.8)
    assert mask.shape == (100, 100)
    assert mask[50, 50] == mask.max()
    assert mask[50, 50] >= 250.0
    assert mask[0, 0] < mask[25, 25] < mask[50, 50]


def test_zero_intensity_vignette_is_neutral():
    mask = vignette_mask(30, 20, intensity=0.0, radius=0.8)
    assert np.all(mask == 255.0)


def test_add_vignette_darkens_corners():
    image = make_image(60, 40)
    out = add_vignette(image, intensity=0.6)
    before = np.asarray(image, dtype=np.int32)
    after = np.asarray(out, dtype=np.int32)
    assert after[0, 0].sum() < before[0, 0].sum() or before[0, 0].sum() == 0
    assert after[-1, -1].sum() < before[-1, -1].sum()


def test_add_vignette_degrades_on_failure():
    image = make_image(16, 16)
    assert add_vignette(image, radius=0.0) is image
