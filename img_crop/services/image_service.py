"""Загрузка изображений: файл на диске или байты blob -> `SourceImage`.

Принципы:
- SRP: класс отвечает только за декодирование и базовое извлечение свойств.
- OCP: новые источники (стрим, URL) можно добавить отдельными методами.
"""
from __future__ import annotations

import asyncio
import io
import mimetypes
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from img_crop.errors import ImageDecodeError
from img_crop.models.image_model import FileBlob, SourceImage


class ImageService:
    def read_file(self, file_path: str | Path) -> FileBlob:
        """Читает файл с диска как blob (без декодирования).

        Raises:
            FileNotFoundError: если путь не существует или не указывает на файл.
        """
        return FileBlob.from_path(file_path)

    def decode_sync(self, file: FileBlob) -> SourceImage:
        """Декодирует байты blob в RGBA-изображение.

        Raises:
            ImageDecodeError: если байты не распознаны как изображение
                или размер превышает `Image.MAX_IMAGE_PIXELS`.
        """
        try:
            with Image.open(io.BytesIO(file.data)) as img:
                pil_image = img.convert("RGBA")
        except Image.DecompressionBombError as exc:
            raise ImageDecodeError(f"Image is too large to decode: {file.name}") from exc
        except (UnidentifiedImageError, OSError) as exc:
            raise ImageDecodeError(f"File is not an image: {file.name}") from exc

        width, height = pil_image.size
        if width == 0 or height == 0:
            raise ImageDecodeError(f"Image has zero size: {file.name}")

        return SourceImage(file=file, pil_image=pil_image, width=width, height=height)

    async def decode(self, file: FileBlob) -> SourceImage:
        """Асинхронное декодирование (выполняется вне цикла событий)."""
        return await asyncio.to_thread(self.decode_sync, file)

    def cropped_path(self, source_path: str | Path, blob: FileBlob) -> Path:
        """Путь результата рядом с исходником: `<stem>_cropped<ext>`.

        Расширение меняется, если кодировщик выбрал другой формат (например PNG).
        """
        source = Path(source_path)
        guessed, _ = mimetypes.guess_type(source.name)
        suffix = source.suffix
        if guessed != blob.mime_type:
            suffix = mimetypes.guess_extension(blob.mime_type) or ".png"
        return source.with_name(f"{source.stem}_cropped{suffix}")

    def save_file(self, blob: FileBlob, file_path: str | Path) -> Path:
        path = Path(file_path)
        path.write_bytes(blob.data)
        return path
