import math

import pytest

from img_crop.errors import TransformFailure
from img_crop.models.image_model import CropRect, round_px
from img_crop.services.geometry import fit_aspect_rect, is_identity_rotation, rotation_geometry


def test_round_px_half_goes_up():
    assert round_px(0.5) == 1
    assert round_px(1.5) == 2
    assert round_px(2.4999) == 2
    assert round_px(141.42) == 141


def test_identity_rotation():
    assert is_identity_rotation(0)
    assert is_identity_rotation(360)
    assert is_identity_rotation(-720)
    assert not is_identity_rotation(90)
    assert not is_identity_rotation(0.5)


def test_identity_box_is_source_size():
    result = rotation_geometry(200, 100, 0)
    assert (result.width, result.height) == (200, 100)
    assert (result.offset_x, result.offset_y) == (0.0, 0.0)


@pytest.mark.parametrize("angle", [180, -180, 540])
def test_half_turn_box_is_source_size(angle):
    result = rotation_geometry(200, 100, angle)
    assert (result.width, result.height) == (200, 100)
    assert result.offset_x == 0
    assert result.offset_y == 0


@pytest.mark.parametrize("angle", [90, -90, 270])
def test_quarter_turn_swaps_sides(angle):
    result = rotation_geometry(200, 100, angle)
    assert (result.width, result.height) == (100, 200)
    assert result.offset_x == -50
    assert result.offset_y == 50


def test_square_90_box():
    result = rotation_geometry(100, 100, 90)
    assert (result.width, result.height) == (100, 100)


def test_45_degrees():
    result = rotation_geometry(100, 100, 45)
    expected = round_px(100 * math.sqrt(2))
    assert (result.width, result.height) == (expected, expected)
    assert result.offset_x == pytest.approx((expected - 100) / 2)
    assert result.angle == 45.0


@pytest.mark.parametrize("angle", [1, 15, 30, 45, 60, 89, 123, 200, 359])
def test_square_box_never_smaller_than_source(angle):
    result = rotation_geometry(80, 80, angle)
    assert result.width >= 80
    assert result.height >= 80


@pytest.mark.parametrize("size", [(100, 1), (1, 100), (640, 480), (33, 77)])
@pytest.mark.parametrize("angle", [10, 45, 100, 250])
def test_box_encloses_source(size, angle):
    w, h = size
    result = rotation_geometry(w, h, angle)
    assert result.width >= min(w, h)
    assert result.height >= min(w, h)
    assert result.width + result.height >= w + h
    assert result.width * result.height >= w * h


@pytest.mark.parametrize("size", [(0, 10), (10, 0), (-1, 5)])
def test_non_positive_size_raises(size):
    with pytest.raises(TransformFailure):
        rotation_geometry(size[0], size[1], 30)


def test_fit_aspect_square_in_landscape():
    assert fit_aspect_rect(200, 100, 1.0) == CropRect(50, 0, 100, 100)


def test_fit_aspect_wide_in_square():
    assert fit_aspect_rect(100, 100, 2.0) == CropRect(0, 25, 100, 50)


def test_fit_aspect_zoom_shrinks_frame():
    assert fit_aspect_rect(200, 100, 1.0, zoom=2.0) == CropRect(75, 25, 50, 50)


def test_fit_aspect_free():
    assert fit_aspect_rect(120, 80, None) == CropRect(0, 0, 120, 80)


def test_fit_aspect_center_is_clamped():
    rect = fit_aspect_rect(200, 100, 1.0, zoom=2.0, center=(0, 0))
    assert rect == CropRect(0, 0, 50, 50)
    rect = fit_aspect_rect(200, 100, 1.0, zoom=2.0, center=(500, 500))
    assert rect == CropRect(150, 50, 50, 50)
