import pytest

from vintagecam.film import FilmStock
from vintagecam.processing.crop import CropRequest
from vintagecam.processing.options import ProcessingOptions


def test_defaults_from_empty_body():
    options = ProcessingOptions.from_request({})
    assert options == ProcessingOptions()
    assert options.aspect_ratio == "1:1"
    assert options.film_stock is FilmStock.CLASSIC_CHROME
    assert options.grain_intensity == pytest.approx(0.15)
    assert options.vignette_intensity == pytest.approx(0.3)
    assert options.crop is None


def test_full_request_body():
    options = ProcessingOptions.from_request({
        "aspectRatio": "4:5",
        "filmStock": "velvia",
        "addGrain": True,
        "grainIntensity": 0.4,
        "grainSize": "coarse",
        "addVignette": True,
        "vignetteIntensity": 0.7,
    })
    assert options.aspect_ratio == "4:5"
    assert options.film_stock is FilmStock.VELVIA
    assert options.add_grain and options.add_vignette
    assert options.grain_size == "coarse"
    assert options.grain_intensity == pytest.approx(0.4)
    assert options.vignette_intensity == pytest.approx(0.7)


def test_film_stock_falls_back_to_filter_options():
    options = ProcessingOptions.from_request({"filterOptions": {"filmStock": "kodachrome"}})
    assert options.film_stock is FilmStock.KODACHROME


def test_unknown_film_stock_and_grain_size_use_defaults():
    options = ProcessingOptions.from_request({"filmStock": "agfa", "grainSize": "huge"})
    assert options.film_stock is FilmStock.CLASSIC_CHROME
    assert options.grain_size == "fine"


def test_intensities_are_clamped():
    options = ProcessingOptions.from_request({"grainIntensity": 0, "vignetteIntensity": 3})
    assert options.grain_intensity == pytest.approx(0.01)
    assert options.vignette_intensity == pytest.approx(1.0)


def test_crop_data_is_parsed():
    options = ProcessingOptions.from_request(
        {"cropData": {"x": 10.7, "y": 5, "width": 300, "height": 200}}
    )
    assert options.crop == CropRequest(x=10, y=5, width=300, height=200)


@pytest.mark.parametrize("crop_data", [
    {"x": 0, "y": 0, "width": 100},
    {"x": 0, "y": 0, "width": "100", "height": 100},
    {"x": 0, "y": 0, "width": 0, "height": 100},
    {"x": True, "y": 0, "width": 100, "height": 100},
    {"x": 0, "y": 0, "width": float("inf"), "height": 100},
    {"x": float("nan"), "y": 0, "width": 100, "height": 100},
    [0, 0, 100, 100],
])
def test_malformed_crop_data_is_rejected(crop_data):
    with pytest.raises(ValueError, match="Invalid crop data"):
        ProcessingOptions.from_request({"cropData": crop_data})


def test_crop_required_for_custom_mode():
    with pytest.raises(ValueError, match="Crop data is required"):
        ProcessingOptions.from_request({"filmStock": "velvia"}, require_crop=True)


def test_non_boolean_flag_is_rejected():
    with pytest.raises(ValueError):
        ProcessingOptions.from_request({"addGrain": "yes"})


def test_non_numeric_intensity_is_rejected():
    with pytest.raises(ValueError):
        ProcessingOptions.from_request({"vignetteIntensity": "strong"})


def test_non_dict_body_is_rejected():
    with pytest.raises(ValueError):
        ProcessingOptions.from_request(["velvia"])


def test_describe_reports_crop_mode():
    ratio = ProcessingOptions(aspect_ratio="3:2").describe()
    custom = ProcessingOptions(crop=CropRequest(1, 2, 30, 40)).describe()
    assert ratio["aspectRatio"] == "3:2" and "cropData" not in ratio
    assert custom["cropData"] == {"x": 1, "y": 2, "width": 30, "height": 40}


def test_non_string_grain_size_is_rejected():
    with pytest.raises(ValueError, match="grainSize"):
        ProcessingOptions.from_request({"grainSize": ["coarse"]})


def test_non_finite_intensity_is_rejected():
    with pytest.raises(ValueError):
        ProcessingOptions.from_request({"grainIntensity": float("inf")})
