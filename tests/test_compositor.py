import numpy as np
import pytest
from PIL import Image

from img_crop.errors import TransformFailure
from img_crop.models.image_model import CropRect, SourceImage
from img_crop.services.compositor import CompositorService
from img_crop.services.geometry import rotation_geometry

ORANGE = (255, 165, 0, 255)


def pixels(image: Image.Image) -> np.ndarray:
    return np.asarray(image.convert("RGBA"))


@pytest.fixture
def compositor() -> CompositorService:
    return CompositorService(fill_color="orange")


def test_full_rect_unrotated_is_identical(compositor, source_image):
    out = compositor.render(source_image, CropRect(0, 0, 100, 100), 0)
    assert out.size == (100, 100)
    assert out.mode == "RGBA"
    assert np.array_equal(pixels(out), pixels(source_image.pil_image))


def test_subregion_unrotated(compositor, source_image):
    out = compositor.render(source_image, CropRect(10, 20, 30, 40), 0)
    assert out.size == (30, 40)
    expected = source_image.pil_image.crop((10, 20, 40, 60))
    assert np.array_equal(pixels(out), pixels(expected))


def test_out_of_bounds_shows_fill(compositor, source_image):
    out = compositor.render(source_image, CropRect(-10, -10, 20, 20), 0)
    assert out.getpixel((0, 0)) == ORANGE
    assert out.getpixel((15, 15)) == source_image.pil_image.getpixel((5, 5))


def test_transparent_source_composited_over_fill(compositor, png_blob):
    image = Image.new("RGBA", (10, 10), (0, 0, 0, 0))
    source = SourceImage(file=png_blob, pil_image=image, width=10, height=10)
    out = compositor.render(source, CropRect(0, 0, 10, 10), 0)
    assert out.getpixel((5, 5)) == ORANGE


def test_quarter_turn_scenario(compositor, source_image):
    geometry = rotation_geometry(100, 100, 90)
    assert (geometry.width, geometry.height) == (100, 100)

    out = compositor.render(source_image, CropRect(0, 0, 50, 50), 90)
    # clockwise turn brings the bottom-left block to the top-left corner
    expected = source_image.pil_image.crop((0, 50, 50, 100)).transpose(Image.Transpose.ROTATE_270)
    assert out.size == (50, 50)
    assert np.array_equal(pixels(out), pixels(expected))


def test_rotated_corner_shows_fill(compositor, source_image):
    out = compositor.render(source_image, CropRect(0, 0, 5, 5), 45)
    assert out.getpixel((0, 0)) == ORANGE


def test_rotated_crop_outside_box_is_transparent(compositor, source_image):
    out = compositor.render(source_image, CropRect(95, 0, 10, 10), 90)
    assert out.size == (10, 10)
    assert out.getpixel((2, 2))[3] == 255
    assert out.getpixel((7, 2)) == (0, 0, 0, 0)


def test_render_is_idempotent(compositor, source_image):
    crop = CropRect(12, 7, 60, 45)
    first = compositor.render(source_image, crop, 33)
    second = compositor.render(source_image, crop, 33)
    assert first.tobytes() == second.tobytes()


@pytest.mark.parametrize("crop", [CropRect(0, 0, 0, 10), CropRect(0, 0, 10, 0), CropRect(5, 5, -3, 4)])
def test_zero_area_crop_raises(compositor, source_image, crop):
    with pytest.raises(TransformFailure):
        compositor.render(source_image, crop, 0)


def test_compose_preview_size(compositor, source_image):
    assert compositor.compose_preview(source_image, 0).size == (100, 100)
    box = rotation_geometry(100, 100, 30)
    assert compositor.compose_preview(source_image, 30).size == (box.width, box.height)
