"""Боковая панель: открытие файла, информация, параметры кадрирования, статус.

Принципы:
- SRP: управляет только UI параметров, не содержит алгоритмов.
- ISP: выдаёт параметры через компактные методы `get_*`, события через `on_*`.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Optional

import customtkinter as ctk

from img_crop.models.crop_session import CropShape
from img_crop.models.image_model import FileBlob

SHAPES = {"Прямоугольник": CropShape.RECT, "Эллипс": CropShape.ELLIPSE}


def _format_size(size_bytes: int) -> str:
    """Человекочитаемый размер файла."""
    size = float(size_bytes)
    for unit in ("Б", "КБ", "МБ"):
        if size < 1024 or unit == "МБ":
            return f"{size:.0f} {unit}" if unit == "Б" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} МБ"


class Sidebar(ctk.CTkFrame):
    """Панель инструментов с блоками: файл, параметры, результат."""
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, width=280, **kwargs)

        self.grid_columnconfigure(0, weight=1)

        # Callbacks
        self.on_open_file: Optional[Callable[[], None]] = None

        # Controls
        self._title = ctk.CTkLabel(self, text="Инструменты", font=ctk.CTkFont(size=16, weight="bold"))
        self._title.grid(row=0, column=0, padx=8, pady=(8, 4), sticky="w")

        self._open_btn = ctk.CTkButton(self, text="Открыть изображение…", command=self._emit_open_file)
        self._open_btn.grid(row=1, column=0, padx=8, pady=(0, 12), sticky="ew")

        # Info section
        self._info_title = ctk.CTkLabel(self, text="Информация", font=ctk.CTkFont(size=16, weight="bold"))
        self._info_title.grid(row=2, column=0, padx=8, pady=(8, 4), sticky="w")

        self._name_val = ctk.StringVar(value="—")
        self._size_val = ctk.StringVar(value="—")
        self._type_val = ctk.StringVar(value="—")
        ctk.CTkLabel(self, textvariable=self._name_val, wraplength=250, anchor="w", justify="left").grid(
            row=3, column=0, padx=8, pady=(0, 2), sticky="ew"
        )
        ctk.CTkLabel(self, textvariable=self._size_val, anchor="w", justify="left").grid(
            row=4, column=0, padx=8, pady=(0, 2), sticky="ew"
        )
        ctk.CTkLabel(self, textvariable=self._type_val, anchor="w", justify="left").grid(
            row=5, column=0, padx=8, pady=(0, 10), sticky="ew"
        )

        # Crop options
        self._opts_title = ctk.CTkLabel(self, text="Кадрирование", font=ctk.CTkFont(size=16, weight="bold"))
        self._opts_title.grid(row=6, column=0, padx=8, pady=(8, 4), sticky="w")

        self._rotate_var = ctk.BooleanVar(value=False)
        self._grid_var = ctk.BooleanVar(value=False)
        ctk.CTkSwitch(self, text="Поворот", variable=self._rotate_var).grid(
            row=7, column=0, padx=8, pady=(0, 4), sticky="w"
        )
        ctk.CTkCheckBox(self, text="Сетка", variable=self._grid_var).grid(
            row=8, column=0, padx=8, pady=(0, 4), sticky="w"
        )

        self._shape_menu = ctk.CTkOptionMenu(self, values=list(SHAPES.keys()))
        self._shape_menu.set("Прямоугольник")
        self._shape_menu.grid(row=9, column=0, padx=8, pady=(0, 8), sticky="ew")

        self._quality_value = ctk.StringVar(value="Качество: 40%")
        ctk.CTkLabel(self, textvariable=self._quality_value, anchor="w").grid(
            row=10, column=0, padx=8, pady=(0, 2), sticky="ew"
        )
        self._quality_slider = ctk.CTkSlider(self, from_=0, to=100, number_of_steps=100, command=self._on_quality)
        self._quality_slider.set(40)
        self._quality_slider.grid(row=11, column=0, padx=8, pady=(0, 10), sticky="ew")

        # Result section
        self._result_title = ctk.CTkLabel(self, text="Результат", font=ctk.CTkFont(size=16, weight="bold"))
        self._result_title.grid(row=12, column=0, padx=8, pady=(8, 4), sticky="w")
        self._status_val = ctk.StringVar(value="—")
        ctk.CTkLabel(self, textvariable=self._status_val, wraplength=250, anchor="w", justify="left").grid(
            row=13, column=0, padx=8, pady=(0, 2), sticky="ew"
        )

        # filler
        self.grid_rowconfigure(99, weight=1)

    # public API (sync from controller)
    def set_file_info(self, file: Optional[FileBlob]) -> None:
        if file is None:
            self._name_val.set("—")
            self._size_val.set("—")
            self._type_val.set("—")
            return
        self._name_val.set(f"Файл: {file.name}")
        self._size_val.set(f"Размер: {_format_size(file.size)}")
        self._type_val.set(f"Тип: {file.mime_type}")

    def set_status(self, text: str) -> None:
        self._status_val.set(text)

    def set_busy(self, busy: bool) -> None:
        self._open_btn.configure(state="disabled" if busy else "normal")

    def get_crop_options(self) -> Dict[str, Any]:
        """Параметры для `CropConfig.with_overrides`."""
        return {
            "rotate": bool(self._rotate_var.get()),
            "grid": bool(self._grid_var.get()),
            "shape": SHAPES.get(self._shape_menu.get(), CropShape.RECT),
            "quality": self._quality_slider.get() / 100.0,
        }

    # events
    def _emit_open_file(self) -> None:
        if self.on_open_file:
            self.on_open_file()

    def _on_quality(self, value: float) -> None:
        self._quality_value.set(f"Качество: {int(round(value))}%")
