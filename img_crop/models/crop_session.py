"""Состояние сессии кадрирования и результаты конвейера.

`CropSession` изменяем и принадлежит только `SessionController`; виджет
получает его как `CropSessionView` (только чтение). Остальные модели неизменяемы.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from img_crop.errors import CropError
from img_crop.models.image_model import CropRect, FileBlob

INIT_ZOOM = 1.0
INIT_ROTATE = 0.0


class CropShape(str, Enum):
    RECT = "rect"
    ELLIPSE = "round"


class SessionState(str, Enum):
    IDLE = "idle"
    AWAITING_PRE_GATE = "awaiting_pre_gate"
    CROPPING = "cropping"
    COMMITTING = "committing"
    AWAITING_POST_GATE = "awaiting_post_gate"
    RESOLVED = "resolved"
    REJECTED = "rejected"

    @property
    def is_busy(self) -> bool:
        return self not in (SessionState.IDLE, SessionState.RESOLVED, SessionState.REJECTED)


@dataclass
class CropSession:
    """Изменяемое состояние одной сессии (ровно одна активна)."""
    min_zoom: float
    max_zoom: float
    aspect: Optional[float] = 1.0
    shape: CropShape = CropShape.RECT
    zoom: float = INIT_ZOOM
    rotation: float = INIT_ROTATE
    crop: Optional[CropRect] = None

    def clamp_zoom(self, value: float) -> float:
        return max(self.min_zoom, min(self.max_zoom, float(value)))

    def reset_transform(self) -> None:
        # the crop rectangle has no default: the widget sets it per image
        self.zoom = INIT_ZOOM
        self.rotation = INIT_ROTATE

    def view(self) -> "CropSessionView":
        return CropSessionView(self)


class CropSessionView:
    """Read-only view of a `CropSession` handed to the crop widget."""

    def __init__(self, session: CropSession) -> None:
        self._session = session

    @property
    def zoom(self) -> float:
        return self._session.zoom

    @property
    def rotation(self) -> float:
        return self._session.rotation

    @property
    def crop(self) -> Optional[CropRect]:
        return self._session.crop

    @property
    def aspect(self) -> Optional[float]:
        return self._session.aspect

    @property
    def shape(self) -> CropShape:
        return self._session.shape

    @property
    def min_zoom(self) -> float:
        return self._session.min_zoom

    @property
    def max_zoom(self) -> float:
        return self._session.max_zoom


@dataclass(frozen=True)
class TransformResult:
    """Габаритный прямоугольник повёрнутого источника и смещение для центрирования.

    Fields:
        width, height: Целые размеры поверхности.
        offset_x, offset_y: Позиция неповёрнутого источника внутри поверхности.
        angle: Угол поворота, градусы (по часовой стрелке).
    """
    width: int
    height: int
    offset_x: float
    offset_y: float
    angle: float


@dataclass(frozen=True)
class AcceptComputed:
    blob: FileBlob
    accepted = True


@dataclass(frozen=True)
class AcceptReplaced:
    blob: FileBlob
    accepted = True


@dataclass(frozen=True)
class Rejected:
    reason: str
    error: Optional[CropError] = None
    accepted = False
    blob = None


CommitOutcome = Union[AcceptComputed, AcceptReplaced, Rejected]
