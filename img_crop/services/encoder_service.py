"""Кодирование итогового буфера в байты файла."""
from __future__ import annotations

import asyncio
import io

from PIL import Image

from img_crop.errors import TransformFailure
from img_crop.logging_config import get_logger
from img_crop.models.image_model import FileBlob, round_px

_logger = get_logger("encoder")

FALLBACK_MIME_TYPE = "image/png"

# MIME -> Pillow format; mirrors what a browser canvas can encode natively
MIME_FORMATS = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/pjpeg": "JPEG",
    "image/webp": "WEBP",
}
LOSSY_FORMATS = {"JPEG", "WEBP"}
ALPHA_FORMATS = {"PNG", "WEBP"}


def clamp_quality(quality: float) -> float:
    return max(0.0, min(1.0, float(quality)))


class EncoderService:
    def __init__(self, fill_color: str = "orange") -> None:
        self.fill_color = fill_color

    def resolve_format(self, mime_type: str) -> tuple[str, str]:
        """Возвращает (mime, формат PIL); неизвестные типы -> PNG."""
        fmt = MIME_FORMATS.get(mime_type.lower())
        if fmt is None:
            return FALLBACK_MIME_TYPE, "PNG"
        if fmt == "JPEG":
            return "image/jpeg", fmt
        return mime_type.lower(), fmt

    def encode_sync(self, image: Image.Image, source: FileBlob, quality: float) -> FileBlob:
        """Синхронное кодирование: имя и uid берутся из `source`, байты и MIME новые.

        Raises:
            TransformFailure: если Pillow не смог закодировать буфер.
        """
        mime_type, fmt = self.resolve_format(source.mime_type)
        if source.mime_type.lower() not in MIME_FORMATS:
            _logger.info("No native encoder for %s, writing %s", source.mime_type, mime_type)

        params: dict = {}
        if fmt in LOSSY_FORMATS:
            params["quality"] = max(1, round_px(clamp_quality(quality) * 100))

        out = image
        if fmt not in ALPHA_FORMATS and out.mode in ("RGBA", "LA", "P"):
            flat = Image.new("RGB", out.size, self.fill_color)
            rgba = out.convert("RGBA")
            flat.paste(rgba, mask=rgba.getchannel("A"))
            out = flat

        buf = io.BytesIO()
        try:
            out.save(buf, format=fmt, **params)
        except (OSError, ValueError) as exc:
            raise TransformFailure(f"failed to encode {source.name} as {fmt}: {exc}") from exc

        data = buf.getvalue()
        _logger.debug("Encoded %s: %dx%d %s, %d bytes", source.name, out.width, out.height, fmt, len(data))
        return source.with_data(data, mime_type=mime_type)

    async def encode(self, image: Image.Image, source: FileBlob, quality: float) -> FileBlob:
        """Асинхронная обёртка: кодирование выполняется вне цикла событий."""
        return await asyncio.to_thread(self.encode_sync, image, source, quality)
