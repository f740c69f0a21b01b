"""Модели данных для файлов и изображений.

Принципы:
- SRP: только структура данных, без логики обработки.
- Чистый код: неизменяемость (`frozen=True`) для предсказуемости.
"""
from __future__ import annotations

import math
import mimetypes
import secrets
from dataclasses import dataclass, field
from pathlib import Path

from PIL import Image

DEFAULT_MIME_TYPE = "application/octet-stream"


def new_uid() -> str:
    return f"img-crop-{secrets.token_hex(6)}"


def round_px(value: float) -> int:
    """Округление до пикселя: половина всегда вверх (единое правило для всех размеров)."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class FileBlob:
    """Неизменяемый «файл»: байты + имя, MIME-тип и идентификатор.

    Fields:
        name: Имя файла (без пути).
        mime_type: MIME-тип содержимого, например "image/jpeg".
        data: Содержимое файла.
        uid: Непрозрачный идентификатор, сохраняется при замене содержимого.
    """
    name: str
    mime_type: str
    data: bytes = field(repr=False)
    uid: str = field(default_factory=new_uid)

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, file_path: str | Path) -> "FileBlob":
        """Читает файл с диска. MIME-тип угадывается по расширению.

        Raises:
            FileNotFoundError: если путь не существует или не указывает на файл.
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(name=path.name, mime_type=mime_type or DEFAULT_MIME_TYPE, data=path.read_bytes())

    def with_data(self, data: bytes, mime_type: str | None = None) -> "FileBlob":
        """Новый blob с тем же именем и uid, но другими байтами."""
        return FileBlob(name=self.name, mime_type=mime_type or self.mime_type, data=data, uid=self.uid)


@dataclass(frozen=True)
class SourceImage:
    """Декодированное исходное изображение активной сессии.

    Fields:
        file: Исходный файл (имя, MIME-тип, uid).
        pil_image: Изображение PIL в режиме RGBA.
        width: Ширина, px.
        height: Высота, px.
    """
    file: FileBlob
    pil_image: Image.Image
    width: int
    height: int

    @property
    def name(self) -> str:
        return self.file.name

    @property
    def mime_type(self) -> str:
        return self.file.mime_type


@dataclass(frozen=True)
class CropRect:
    """Прямоугольник кадрирования в пикселях (целые координаты)."""
    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_floats(cls, x: float, y: float, width: float, height: float) -> "CropRect":
        return cls(round_px(x), round_px(y), round_px(width), round_px(height))

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @property
    def box(self) -> tuple[int, int, int, int]:
        """(left, top, right, bottom) для `Image.crop`."""
        return self.x, self.y, self.x + self.width, self.y + self.height
