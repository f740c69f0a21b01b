"""Контроллер приложения: оркестрация UI и конвейера кадрирования.

SOLID:
- SRP: класс управляет связями между UI и сессией (без логики обработки изображений).
- DIP: диалог кадрирования подключается к `SessionController` как `CropWidget`.
Clean Code:
- Обработчики компактны; весь конвейер живёт в `SessionController`.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from tkinter import filedialog, TclError
from typing import Optional

import customtkinter as ctk

from img_crop.controllers.session_controller import SessionController
from img_crop.errors import ConfigError, ImageDecodeError
from img_crop.logging_config import get_logger
from img_crop.models.config import CropConfig, CropHooks, load_config
from img_crop.models.crop_session import CommitOutcome
from img_crop.models.image_model import FileBlob
from img_crop.services.image_service import ImageService
from img_crop.ui.crop_dialog import CropDialog
from img_crop.ui.image_viewer import ImageViewer
from img_crop.ui.sidebar import Sidebar

_logger = get_logger("app")


@dataclass
class AppController:
    """Связывает элементы UI с конвейером кадрирования.

    Ответственности:
    - Инициализация и бинд событий (UI -> контроллер).
    - Выбор файла и запуск `select_file` как задачи asyncio.
    - «Загрузка» принятого результата: сохранение рядом с исходником и показ.
    """
    viewer: ImageViewer
    sidebar: Sidebar
    window: ctk.CTk

    base_config: CropConfig = field(default_factory=load_config)
    _image_service: ImageService = field(default_factory=ImageService)
    _session: Optional[SessionController] = None
    _task: Optional["asyncio.Task[None]"] = None

    def bind_events(self) -> None:
        """Регистрирует обработчики событий между UI-компонентами."""
        self.sidebar.on_open_file = self._handle_open_file

    # ---- Handlers ----
    def _handle_open_file(self) -> None:
        try:
            file_path = filedialog.askopenfilename(
                title="Выберите изображение",
                filetypes=(
                    ("Images", "*.png *.jpg *.jpeg *.bmp *.gif *.tiff *.webp"),
                    ("All files", "*.*"),
                ),
            )
        except TclError:
            # Silent fail if dialog cannot open
            return

        if not file_path:
            return

        try:
            file = self._image_service.read_file(file_path)
        except OSError as exc:
            self.sidebar.set_status(f"Не удалось прочитать файл: {exc}")
            return

        self.sidebar.set_file_info(file)
        self._task = asyncio.get_running_loop().create_task(self._crop_file(Path(file_path), file))

    # ---- Pipeline ----
    def _make_session(self) -> SessionController:
        """Новая сессия с параметрами сайдбара; занятая сессия переиспользуется (отказ «busy»)."""
        if self._session is not None and self._session.state.is_busy:
            return self._session
        config = self.base_config.with_overrides(**self.sidebar.get_crop_options())
        hooks = CropHooks(
            on_modal_cancel=lambda: _logger.info("Crop dialog cancelled"),
            on_upload_fail=lambda exc: _logger.info("Result rejected: %s", exc),
        )
        self._session = SessionController(
            config=config,
            hooks=hooks,
            widget=CropDialog(self.window, config),
            image_service=self._image_service,
        )
        return self._session

    async def _crop_file(self, source_path: Path, file: FileBlob) -> None:
        try:
            session = self._make_session()
        except ConfigError as exc:
            self.sidebar.set_status(f"Ошибка параметров: {exc}")
            return

        busy = session.state.is_busy
        if not busy:
            self.sidebar.set_busy(True)
            self.sidebar.set_status("Кадрирование…")
        try:
            outcome = await session.select_file(file, [file])
        finally:
            if not busy:
                self.sidebar.set_busy(False)
        self._show_outcome(source_path, outcome)

    def _show_outcome(self, source_path: Path, outcome: CommitOutcome) -> None:
        if not outcome.accepted:
            self.sidebar.set_status(f"Отклонено: {outcome.reason}")
            return

        try:
            saved = self._image_service.save_file(
                outcome.blob, self._image_service.cropped_path(source_path, outcome.blob)
            )
            result = self._image_service.decode_sync(outcome.blob)
        except (OSError, ImageDecodeError) as exc:
            _logger.error("Saving %s failed: %s", source_path.name, exc)
            self.sidebar.set_status(f"Не удалось сохранить результат: {exc}")
            return
        _logger.info("Saved %s", saved)
        self.viewer.set_image(result.pil_image)
        self.sidebar.set_status(f"Сохранено: {saved.name} ({result.width}×{result.height})")
