"""Tests for img_crop.cli: headless crop through the session controller."""

import numpy as np
import pytest
from PIL import Image

from img_crop.cli import EXIT_OK, EXIT_REJECTED, EXIT_USAGE, build_config, build_parser, main
from img_crop.errors import ConfigError
from img_crop.models.config import CropConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("IMG_CROP_ASPECT", "IMG_CROP_QUALITY", "IMG_CROP_FILL_COLOR", "IMG_CROP_ROTATE"):
        monkeypatch.delenv(key, raising=False)


class TestBuildParser:
    def test_minimal_args(self):
        args = build_parser().parse_args(["input.png"])
        assert args.input == "input.png"
        assert args.crop is None
        assert args.rotate is None
        assert args.zoom == 1.0
        assert args.aspect is None
        assert args.quality is None
        assert args.fill is None
        assert args.output is None
        assert args.log_level == "INFO"

    def test_all_flags(self):
        args = build_parser().parse_args(
            [
                "--crop", "1", "2", "30", "40",
                "--rotate", "15",
                "--zoom", "2",
                "--aspect", "16:9",
                "--quality", "0.9",
                "--fill", "white",
                "--output", "out.jpg",
                "--log-level", "DEBUG",
                "in.jpg",
            ]
        )
        assert args.crop == [1.0, 2.0, 30.0, 40.0]
        assert args.rotate == 15.0
        assert args.zoom == 2.0
        assert args.aspect == "16:9"
        assert args.quality == 0.9
        assert args.fill == "white"
        assert args.output == "out.jpg"
        assert args.log_level == "DEBUG"

    def test_crop_needs_four_values(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["in.png", "--crop", "1", "2"])


class TestBuildConfig:
    def test_flags_override_base(self):
        args = build_parser().parse_args(["in.png", "--quality", "0.7", "--fill", "white", "--rotate", "10"])
        config = build_config(args, CropConfig())
        assert config.quality == 0.7
        assert config.fill_color == "white"
        assert config.rotate is True

    def test_no_flags_keep_base(self):
        base = CropConfig(quality=0.2)
        assert build_config(build_parser().parse_args(["in.png"]), base) == base

    def test_free_aspect(self):
        config = build_config(build_parser().parse_args(["in.png", "--aspect", "free"]), CropConfig())
        assert config.aspect is None

    def test_bad_aspect(self):
        with pytest.raises(ConfigError):
            build_config(build_parser().parse_args(["in.png", "--aspect", "wide"]), CropConfig())


class TestMain:
    def test_crop_writes_default_output(self, png_file):
        assert main([str(png_file), "--crop", "10", "20", "50", "40"]) == EXIT_OK
        out = png_file.with_name("photo_cropped.png")
        assert out.exists()
        with Image.open(out) as img:
            assert img.size == (50, 40)

    def test_crop_to_explicit_output(self, png_file, tmp_path):
        target = tmp_path / "result.png"
        assert main([str(png_file), "--crop", "0", "0", "100", "100", "--output", str(target)]) == EXIT_OK
        with Image.open(target) as out, Image.open(png_file) as src:
            assert np.array_equal(np.asarray(out.convert("RGBA")), np.asarray(src.convert("RGBA")))

    def test_default_frame_uses_aspect(self, png_file, tmp_path):
        target = tmp_path / "wide.png"
        assert main([str(png_file), "--aspect", "2:1", "--output", str(target)]) == EXIT_OK
        with Image.open(target) as out:
            assert out.size == (100, 50)

    def test_rotate_quarter_turn(self, png_file, tmp_path):
        target = tmp_path / "rotated.png"
        code = main([str(png_file), "--rotate", "90", "--crop", "0", "0", "50", "50", "--output", str(target)])
        assert code == EXIT_OK
        with Image.open(png_file) as src, Image.open(target) as out:
            expected = src.convert("RGBA").crop((0, 50, 50, 100)).transpose(Image.Transpose.ROTATE_270)
            assert np.array_equal(np.asarray(out.convert("RGBA")), np.asarray(expected))

    def test_zero_area_crop_is_rejected(self, png_file, tmp_path):
        target = tmp_path / "never.png"
        assert main([str(png_file), "--crop", "0", "0", "0", "10", "--output", str(target)]) == EXIT_REJECTED
        assert not target.exists()

    def test_missing_input(self, tmp_path):
        assert main([str(tmp_path / "missing.png")]) == EXIT_USAGE

    def test_bad_fill_colour(self, png_file):
        assert main([str(png_file), "--fill", "not-a-colour"]) == EXIT_USAGE

    def test_bad_env_config(self, png_file, monkeypatch):
        monkeypatch.setenv("IMG_CROP_QUALITY", "best")
        assert main([str(png_file)]) == EXIT_USAGE
