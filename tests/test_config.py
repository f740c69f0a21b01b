import pytest

from img_crop.errors import ConfigError
from img_crop.models.config import CropConfig, load_config, parse_aspect
from img_crop.models.crop_session import CropShape


class TestCropConfig:
    def test_defaults(self):
        config = CropConfig()
        assert config.aspect == 1.0
        assert config.shape is CropShape.RECT
        assert config.grid is False
        assert config.quality == 0.4
        assert config.fill_color == "orange"
        assert config.zoom is True
        assert config.rotate is False
        assert (config.min_zoom, config.max_zoom) == (1.0, 3.0)
        assert config.modal_title == "Edit image"
        assert config.modal_width == 520
        assert (config.modal_ok, config.modal_cancel) == ("OK", "Cancel")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"aspect": 0},
            {"aspect": -1.5},
            {"min_zoom": 0},
            {"min_zoom": 3.0, "max_zoom": 2.0},
            {"modal_width": 0},
            {"fill_color": "not-a-colour"},
            {"shape": "triangle"},
        ],
    )
    def test_invalid_values_raise(self, kwargs):
        with pytest.raises(ConfigError):
            CropConfig(**kwargs)

    def test_shape_string_is_coerced(self):
        assert CropConfig(shape="round").shape is CropShape.ELLIPSE

    def test_free_aspect_allowed(self):
        assert CropConfig(aspect=None).aspect is None

    def test_with_overrides_skips_none(self):
        config = CropConfig().with_overrides(quality=0.9, fill_color=None, rotate=True)
        assert config.quality == 0.9
        assert config.fill_color == "orange"
        assert config.rotate is True

    def test_with_overrides_validates(self):
        with pytest.raises(ConfigError):
            CropConfig().with_overrides(fill_color="nope")


@pytest.mark.parametrize(
    "raw, expected",
    [("1", 1.0), ("16:9", 16 / 9), ("0.5", 0.5), ("free", None), ("none", None), ("", None)],
)
def test_parse_aspect(raw, expected):
    assert parse_aspect(raw) == (pytest.approx(expected) if expected is not None else None)


class TestLoadConfig:
    def test_empty_env_gives_defaults(self):
        assert load_config({}) == CropConfig()

    def test_env_overrides(self):
        config = load_config(
            {
                "IMG_CROP_ASPECT": "4:3",
                "IMG_CROP_ROTATE": "yes",
                "IMG_CROP_ZOOM": "false",
                "IMG_CROP_QUALITY": "0.8",
                "IMG_CROP_FILL_COLOR": "#112233",
                "IMG_CROP_SHAPE": "round",
                "IMG_CROP_MODAL_TITLE": "Кадрирование",
                "IMG_CROP_MODAL_WIDTH": "640",
                "UNRELATED": "x",
            }
        )
        assert config.aspect == pytest.approx(4 / 3)
        assert config.rotate is True
        assert config.zoom is False
        assert config.quality == 0.8
        assert config.fill_color == "#112233"
        assert config.shape is CropShape.ELLIPSE
        assert config.modal_title == "Кадрирование"
        assert config.modal_width == 640

    def test_blank_values_are_ignored(self):
        assert load_config({"IMG_CROP_QUALITY": ""}).quality == 0.4

    @pytest.mark.parametrize(
        "key, raw",
        [("IMG_CROP_QUALITY", "high"), ("IMG_CROP_ASPECT", "16:0"), ("IMG_CROP_MODAL_WIDTH", "wide")],
    )
    def test_unparsable_value_raises(self, key, raw):
        with pytest.raises(ConfigError):
            load_config({key: raw})

    def test_invalid_value_raises(self):
        with pytest.raises(ConfigError):
            load_config({"IMG_CROP_MIN_ZOOM": "5"})

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("IMG_CROP_GRID", "1")
        assert load_config().grid is True
