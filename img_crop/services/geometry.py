"""Геометрия поворота: габаритный прямоугольник и смещение центрирования.

Для изображения W×H, повёрнутого на угол θ:
    Bw = W·|cos θ| + H·|sin θ|
    Bh = H·|cos θ| + W·|sin θ|
Неповёрнутый источник ставится в ((Bw−W)/2, (Bh−H)/2), затем поворачивается
вокруг центра поверхности. Размеры поверхности округляются через `round_px`.
"""
from __future__ import annotations

import math
from typing import Optional, Tuple

from img_crop.errors import TransformFailure
from img_crop.models.crop_session import TransformResult
from img_crop.models.image_model import CropRect, round_px


def is_identity_rotation(angle: float) -> bool:
    """θ ≡ 0 (mod 360): поворот пропускается целиком."""
    return math.isclose(math.fmod(angle, 360.0), 0.0, abs_tol=1e-9)


def _abs_sin_cos(angle: float) -> Tuple[float, float]:
    # exact values on right angles, so 90° does not leak 6e-17 into the box
    quarter = angle / 90.0
    if math.isclose(quarter, round(quarter), abs_tol=1e-9):
        if int(round(quarter)) % 2 == 0:
            return 0.0, 1.0
        return 1.0, 0.0
    rad = math.radians(angle)
    return abs(math.sin(rad)), abs(math.cos(rad))


def rotation_geometry(width: int, height: int, angle: float) -> TransformResult:
    """Вычисляет поверхность, в которую точно помещается повёрнутый источник.

    Args:
        width: Ширина источника, px (> 0).
        height: Высота источника, px (> 0).
        angle: Угол поворота в градусах.

    Returns:
        `TransformResult` с целыми размерами и смещением центрирования.

    Raises:
        TransformFailure: если размеры источника не положительны.
    """
    if width <= 0 or height <= 0:
        raise TransformFailure(f"source size must be positive, got {width}x{height}")

    if is_identity_rotation(angle):
        return TransformResult(width=width, height=height, offset_x=0.0, offset_y=0.0, angle=0.0)

    sine, cosine = _abs_sin_cos(angle)
    box_w = round_px(width * cosine + height * sine)
    box_h = round_px(height * cosine + width * sine)
    return TransformResult(
        width=box_w,
        height=box_h,
        offset_x=(box_w - width) / 2,
        offset_y=(box_h - height) / 2,
        angle=float(angle),
    )


def fit_aspect_rect(
    width: float,
    height: float,
    aspect: Optional[float],
    zoom: float = 1.0,
    center: Optional[Tuple[float, float]] = None,
) -> CropRect:
    """
    Наибольшая рамка с заданным соотношением сторон внутри `width`x`height`,
    уменьшенная в `zoom` раз и центрированная на `center` (по умолчанию центр),
    не выходящая за границы. Начальная рамка виджета и CLI.
    """
    if aspect is None:
        crop_w, crop_h = float(width), float(height)
    elif width / height > aspect:
        # too wide, limit by height
        crop_w, crop_h = height * aspect, float(height)
    else:
        crop_w, crop_h = float(width), width / aspect

    zoom = max(zoom, 1e-6)
    crop_w, crop_h = crop_w / zoom, crop_h / zoom

    cx, cy = center if center is not None else (width / 2.0, height / 2.0)
    x = min(max(cx - crop_w / 2.0, 0.0), max(0.0, width - crop_w))
    y = min(max(cy - crop_h / 2.0, 0.0), max(0.0, height - crop_h))
    return CropRect.from_floats(x, y, crop_w, crop_h)
