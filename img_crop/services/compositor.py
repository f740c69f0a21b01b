"""Композитинг и кадрирование: источник → итоговый буфер нужного размера.

Два режима:
- без поворота: поверхность размера рамки, заливка фоном, копия под-области источника;
- с поворотом: поверхность габаритного прямоугольника, заливка фоном, повёрнутый
  источник по центру; затем под-область копируется блоком в буфер размера рамки.
"""
from __future__ import annotations

from typing import Tuple

import numpy as np
from PIL import Image

from img_crop.errors import TransformFailure
from img_crop.logging_config import get_logger
from img_crop.models.crop_session import TransformResult
from img_crop.models.image_model import CropRect, SourceImage, round_px
from img_crop.services.geometry import is_identity_rotation, rotation_geometry

_logger = get_logger("compositor")


class CompositorService:
    def __init__(self, fill_color: str = "orange", resample: Image.Resampling = Image.Resampling.BICUBIC) -> None:
        self.fill_color = fill_color
        self.resample = resample

    def render(self, source: SourceImage, crop: CropRect, angle: float = 0.0) -> Image.Image:
        """Строит итоговый RGBA-буфер размера `crop`.

        Args:
            source: Декодированный источник.
            crop: Рамка в координатах источника (без поворота) или габаритного
                прямоугольника (с поворотом).
            angle: Угол поворота по часовой стрелке, градусы.

        Raises:
            TransformFailure: если рамка пустая.
        """
        if crop.is_empty:
            raise TransformFailure(f"crop rectangle has zero area: {crop.width}x{crop.height}")

        image = self._as_rgba(source.pil_image)
        if is_identity_rotation(angle):
            return self._crop_unrotated(image, crop)

        geometry = rotation_geometry(source.width, source.height, angle)
        _logger.debug(
            "Rotating %s by %.2f° into %dx%d box", source.name, angle, geometry.width, geometry.height
        )
        canvas = self._compose_rotated(image, geometry)
        return self._slice(canvas, crop)

    def compose_preview(self, source: SourceImage, angle: float = 0.0) -> Image.Image:
        """Полная поверхность (повёрнутый источник на фоне) для отображения в диалоге."""
        image = self._as_rgba(source.pil_image)
        if is_identity_rotation(angle):
            return self._over_fill(image)
        return self._compose_rotated(image, rotation_geometry(source.width, source.height, angle))

    # ---------- Вспомогательные функции ----------
    def _background(self, size: Tuple[int, int]) -> Image.Image:
        return Image.new("RGBA", size, self.fill_color)

    def _over_fill(self, layer: Image.Image) -> Image.Image:
        """Кладёт слой на поверхность того же размера, залитую фоном."""
        alpha_min, _alpha_max = layer.getextrema()[3]
        if alpha_min == 255:
            # opaque layer covers the fill completely
            return layer.copy()
        surface = self._background(layer.size)
        surface.alpha_composite(layer)
        return surface

    def _crop_unrotated(self, image: Image.Image, crop: CropRect) -> Image.Image:
        # Image.crop pads out-of-bounds area with transparent pixels -> fill shows through
        return self._over_fill(image.crop(crop.box))

    def _compose_rotated(self, image: Image.Image, geometry: TransformResult) -> Image.Image:
        # PIL rotates counter-clockwise; the widget angle is clockwise
        rotated = image.rotate(-geometry.angle, resample=self.resample, expand=True)
        dx = round_px((geometry.width - rotated.width) / 2)
        dy = round_px((geometry.height - rotated.height) / 2)
        window = rotated.crop((-dx, -dy, -dx + geometry.width, -dy + geometry.height))
        return self._over_fill(window)

    def _slice(self, canvas: Image.Image, crop: CropRect) -> Image.Image:
        """Блочное копирование под-области `crop` из полного буфера (без ресэмплинга)."""
        buffer = np.asarray(canvas, dtype=np.uint8)
        out = np.zeros((crop.height, crop.width, 4), dtype=np.uint8)

        src_h, src_w = buffer.shape[:2]
        x0, y0 = max(0, crop.x), max(0, crop.y)
        x1, y1 = min(src_w, crop.x + crop.width), min(src_h, crop.y + crop.height)
        if x1 > x0 and y1 > y0:
            out[y0 - crop.y:y1 - crop.y, x0 - crop.x:x1 - crop.x] = buffer[y0:y1, x0:x1]
        return Image.fromarray(out)

    @staticmethod
    def _as_rgba(image: Image.Image) -> Image.Image:
        return image if image.mode == "RGBA" else image.convert("RGBA")
