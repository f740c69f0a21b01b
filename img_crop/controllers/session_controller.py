"""Контроллер сессии кадрирования: конечный автомат одного файла.

IDLE -> AWAITING_PRE_GATE -> CROPPING -> COMMITTING -> AWAITING_POST_GATE -> RESOLVED | REJECTED

SOLID:
- SRP: контроллер только упорядочивает шаги; геометрия, композитинг, кодирование
  и хуки живут в сервисах.
- DIP: виджет кадрирования подключается через протокол `CropWidget`.
Clean Code:
- Один вызов `select_file` = один прогон конвейера = один `CommitOutcome`.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from img_crop.errors import CropError, GateRejection, SessionBusyError, TransformFailure
from img_crop.logging_config import get_logger
from img_crop.models.config import CropConfig, CropHooks
from img_crop.models.crop_session import (
    INIT_ROTATE,
    INIT_ZOOM,
    CommitOutcome,
    CropSession,
    CropSessionView,
    Rejected,
    SessionState,
)
from img_crop.models.image_model import CropRect, FileBlob, SourceImage
from img_crop.services.compositor import CompositorService
from img_crop.services.encoder_service import EncoderService
from img_crop.services.gatekeeper import GatekeeperChain, to_outcome
from img_crop.services.image_service import ImageService

_logger = get_logger("session")

PRE_GATE_DECLINED = "declined before crop"
CROP_CANCELLED = "crop cancelled"


class CropWidget(Protocol):
    """Интерактивный виджет кадрирования (внешний по отношению к конвейеру)."""

    def open(self, source: SourceImage, session: CropSessionView, controller: "SessionController") -> None: ...

    def close(self) -> None: ...

    def set_zoom(self, value: float) -> None: ...

    def set_rotation(self, value: float) -> None: ...


@dataclass(frozen=True)
class CommitRequest:
    """Снимок параметров в момент подтверждения (до сброса зума и поворота)."""
    crop: Optional[CropRect]
    rotation: float


@dataclass
class SessionController:
    """Единственный владелец `SourceImage` и `CropSession`.

    Ответственности:
    - Прогон хука `before_crop`, декодирование, открытие виджета.
    - Приём правок от виджета (`set_crop`, `set_zoom`, `set_rotation`).
    - Подтверждение/отмена, композитинг, кодирование, хук `before_upload`.
    - Сброс зума/поворота и освобождение сессии в терминальных состояниях.
    """
    config: CropConfig = field(default_factory=CropConfig)
    hooks: CropHooks = field(default_factory=CropHooks)
    widget: Optional[CropWidget] = None
    image_service: ImageService = field(default_factory=ImageService)
    compositor: Optional[CompositorService] = None
    encoder: Optional[EncoderService] = None

    _state: SessionState = field(default=SessionState.IDLE, init=False)
    _source: Optional[SourceImage] = field(default=None, init=False)
    _session: Optional[CropSession] = field(default=None, init=False)
    _decision: Optional["asyncio.Future[Optional[CommitRequest]]"] = field(default=None, init=False)

    def __post_init__(self) -> None:
        if self.compositor is None:
            self.compositor = CompositorService(fill_color=self.config.fill_color)
        if self.encoder is None:
            self.encoder = EncoderService(fill_color=self.config.fill_color)
        self._gatekeeper = GatekeeperChain(self.hooks)

    # ---- State ----
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def source(self) -> Optional[SourceImage]:
        return self._source

    @property
    def session(self) -> Optional[CropSessionView]:
        return self._session.view() if self._session is not None else None

    # ---- Pipeline ----
    async def select_file(self, file: FileBlob, file_list: Optional[List[FileBlob]] = None) -> CommitOutcome:
        """Прогоняет весь конвейер для выбранного файла.

        Returns:
            `AcceptComputed`, `AcceptReplaced` или `Rejected` с причиной.
            Исключения конвейера наружу не пробрасываются.
        """
        if self._state.is_busy:
            busy = SessionBusyError(f"session busy ({self._state.value}), {file.name} rejected")
            _logger.warning("%s", busy)
            return Rejected(str(busy), busy)

        _logger.info("File selected: %s (%s, %d bytes)", file.name, file.mime_type, file.size)
        self._state = SessionState.AWAITING_PRE_GATE
        outcome: CommitOutcome = Rejected("pipeline interrupted")
        try:
            outcome = await self._run(file, file_list)
        except CropError as exc:
            if isinstance(exc, TransformFailure):
                _logger.warning("Crop of %s failed: %s", file.name, exc)
                _logger.debug("Transform failure details", exc_info=True)
            else:
                _logger.info("Crop of %s rejected: %s", file.name, exc)
            outcome = Rejected(str(exc), exc)
        except Exception as exc:
            # widget or library bug: still resolve to a terminal state
            _logger.exception("Crop of %s failed unexpectedly", file.name)
            fault = TransformFailure(f"unexpected failure: {exc}")
            fault.__cause__ = exc
            outcome = Rejected(str(fault), fault)
        finally:
            self._release()
            self._state = SessionState.RESOLVED if outcome.accepted else SessionState.REJECTED

        if outcome.accepted:
            _logger.info("Crop of %s resolved: %s", file.name, type(outcome).__name__)
            self._notify_ok(outcome.blob)
        return outcome

    async def _run(self, file: FileBlob, file_list: Optional[List[FileBlob]]) -> CommitOutcome:
        if not await self._gatekeeper.pre(file, file_list):
            raise GateRejection(PRE_GATE_DECLINED)

        source = await self.image_service.decode(file)
        self._source = source
        self._session = CropSession(
            min_zoom=self.config.min_zoom,
            max_zoom=self.config.max_zoom,
            aspect=self.config.aspect,
            shape=self.config.shape,
        )
        self._decision = asyncio.get_running_loop().create_future()
        self._state = SessionState.CROPPING
        if self.widget is not None:
            self.widget.open(source, self._session.view(), self)

        request = await self._decision
        if request is None:
            return Rejected(CROP_CANCELLED)
        return await self._commit(source, request)

    async def _commit(self, source: SourceImage, request: CommitRequest) -> CommitOutcome:
        self._state = SessionState.COMMITTING
        if request.crop is None:
            raise TransformFailure("no crop rectangle was selected")

        buffer = self.compositor.render(source, request.crop, request.rotation)
        blob = await self.encoder.encode(buffer, source.file, self.config.quality)

        self._state = SessionState.AWAITING_POST_GATE
        decision = await self._gatekeeper.post(blob)
        return to_outcome(decision, blob)

    # ---- Widget -> controller ----
    def set_crop(self, crop: CropRect) -> None:
        if self._session is None or self._state is not SessionState.CROPPING:
            return
        self._session.crop = crop

    def set_zoom(self, value: float) -> float:
        if self._session is None:
            return INIT_ZOOM
        if self.config.zoom and self._state is SessionState.CROPPING:
            self._session.zoom = self._session.clamp_zoom(value)
        return self._session.zoom

    def set_rotation(self, value: float) -> float:
        if self._session is None:
            return INIT_ROTATE
        if self.config.rotate and self._state is SessionState.CROPPING:
            self._session.rotation = float(value)
        return self._session.rotation

    def confirm(self) -> bool:
        """Пользователь подтвердил рамку. Диалог закрывается до начала композитинга."""
        if not self._awaiting_decision():
            _logger.debug("confirm() ignored in state %s", self._state.value)
            return False
        session = self._session
        request = CommitRequest(
            crop=session.crop,
            rotation=session.rotation if self.config.rotate else INIT_ROTATE,
        )
        self._close_widget()
        self._decision.set_result(request)
        return True

    def cancel(self) -> bool:
        """Пользователь закрыл диалог без подтверждения."""
        if not self._awaiting_decision():
            _logger.debug("cancel() ignored in state %s", self._state.value)
            return False
        self._close_widget()
        self._decision.set_result(None)
        if self.hooks.on_modal_cancel is not None:
            try:
                self.hooks.on_modal_cancel()
            except Exception:
                _logger.exception("on_modal_cancel observer raised")
        return True

    # ---- Helpers ----
    def _awaiting_decision(self) -> bool:
        return (
            self._state is SessionState.CROPPING
            and self._session is not None
            and self._decision is not None
            and not self._decision.done()
        )

    def _close_widget(self) -> None:
        self._session.reset_transform()
        if self.widget is None:
            return
        self.widget.set_zoom(INIT_ZOOM)
        self.widget.set_rotation(INIT_ROTATE)
        self.widget.close()

    def _release(self) -> None:
        if self._decision is not None and not self._decision.done():
            self._decision.cancel()
        if self._session is not None:
            self._session.reset_transform()
        self._decision = None
        self._session = None
        self._source = None

    def _notify_ok(self, blob: Optional[FileBlob]) -> None:
        if self.hooks.on_modal_ok is None or blob is None:
            return
        try:
            self.hooks.on_modal_ok(blob)
        except Exception:
            _logger.exception("on_modal_ok observer raised")
