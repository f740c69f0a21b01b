"""Конфигурация кадрирования и пользовательские хуки.

Значения по умолчанию совпадают с поведением компонента загрузки:
квадратная рамка, оранжевая заливка, качество 0.4, зум 1–3, поворот выключен.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Union

from PIL import ImageColor

from img_crop.errors import ConfigError
from img_crop.models.crop_session import CropShape
from img_crop.models.image_model import FileBlob

ENV_PREFIX = "IMG_CROP_"

BeforeCropHook = Callable[[FileBlob, List[FileBlob]], Union[Any, Awaitable[Any]]]
BeforeUploadHook = Callable[[FileBlob, List[FileBlob]], Any]


@dataclass(frozen=True)
class CropConfig:
    aspect: Optional[float] = 1.0
    shape: CropShape = CropShape.RECT
    grid: bool = False
    quality: float = 0.4
    fill_color: str = "orange"

    zoom: bool = True
    rotate: bool = False
    min_zoom: float = 1.0
    max_zoom: float = 3.0

    modal_title: str = "Edit image"
    modal_width: int = 520
    modal_ok: str = "OK"
    modal_cancel: str = "Cancel"

    def __post_init__(self) -> None:
        if self.aspect is not None and self.aspect <= 0:
            raise ConfigError(f"aspect must be positive, got {self.aspect}")
        if self.min_zoom <= 0 or self.max_zoom < self.min_zoom:
            raise ConfigError(f"invalid zoom bounds [{self.min_zoom}, {self.max_zoom}]")
        if self.modal_width <= 0:
            raise ConfigError(f"modal_width must be positive, got {self.modal_width}")
        try:
            ImageColor.getrgb(self.fill_color)
        except ValueError as exc:
            raise ConfigError(f"unknown fill color: {self.fill_color!r}") from exc
        if not isinstance(self.shape, CropShape):
            # allow plain strings ("rect" / "round") from env and CLI
            try:
                object.__setattr__(self, "shape", CropShape(self.shape))
            except ValueError as exc:
                raise ConfigError(f"unknown shape: {self.shape!r}") from exc

    def with_overrides(self, **overrides: Any) -> "CropConfig":
        """Копия с заменёнными полями; `None` в overrides игнорируется."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


@dataclass(frozen=True)
class CropHooks:
    """Пользовательские хуки конвейера.

    Fields:
        before_crop: Предикат до показа диалога: bool или awaitable[bool].
        before_upload: Хук после кадрирования: True / False / awaitable[replacement | Any].
        on_modal_ok: Наблюдатель успешного результата (получает итоговый blob).
        on_modal_cancel: Наблюдатель отмены диалога.
        on_upload_fail: Наблюдатель отказа post-gate: исключение, брошенное хуком,
            либо `GateRejection` (False) или `ProtocolViolation` (неверный тип).
    """
    before_crop: Optional[BeforeCropHook] = None
    before_upload: Optional[BeforeUploadHook] = None
    on_modal_ok: Optional[Callable[[FileBlob], None]] = None
    on_modal_cancel: Optional[Callable[[], None]] = None
    on_upload_fail: Optional[Callable[[Exception], None]] = None


def _parse_bool(raw: str) -> bool:
    return raw.lower().strip() in {"1", "true", "yes", "y", "on"}


def parse_aspect(raw: str) -> Optional[float]:
    raw = raw.strip().lower()
    if raw in {"", "none", "free"}:
        return None
    if ":" in raw:
        w, h = raw.split(":", 1)
        return float(w) / float(h)
    return float(raw)


_PARSERS: Mapping[str, Callable[[str], Any]] = {
    "aspect": parse_aspect,
    "shape": str,
    "grid": _parse_bool,
    "quality": float,
    "fill_color": str,
    "zoom": _parse_bool,
    "rotate": _parse_bool,
    "min_zoom": float,
    "max_zoom": float,
    "modal_title": str,
    "modal_width": int,
    "modal_ok": str,
    "modal_cancel": str,
}


def load_config(environ: Optional[Mapping[str, str]] = None) -> CropConfig:
    """Строит `CropConfig` из значений по умолчанию и переменных `IMG_CROP_*`.

    Raises:
        ConfigError: если значение переменной не разбирается или недопустимо.
    """
    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for f in fields(CropConfig):
        key = ENV_PREFIX + f.name.upper()
        raw = env.get(key)
        if raw is None or raw == "":
            continue
        try:
            values[f.name] = _PARSERS[f.name](raw)
        except (ValueError, ZeroDivisionError) as exc:
            raise ConfigError(f"invalid value for {key}: {raw!r}") from exc
    return CropConfig(**values)
