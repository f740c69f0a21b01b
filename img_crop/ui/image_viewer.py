"""Просмотр результата кадрирования.

Принципы:
- SRP: только показ итогового изображения: вписать, масштаб колесом, сдвиг мышью.
- Прозрачные области выводятся поверх «шахматки», чтобы были видны границы кадра.
"""
from __future__ import annotations

from typing import Optional, Tuple

import customtkinter as ctk
import tkinter as tk
from PIL import Image, ImageTk

MIN_SCALE = 0.1
MAX_SCALE = 4.0
WHEEL_STEP = 1.1
CHECKER_CELL = 8


def _checkerboard(size: Tuple[int, int], cell: int = CHECKER_CELL) -> Image.Image:
    board = Image.new("RGBA", size, (204, 204, 204, 255))
    dark = Image.new("RGBA", (cell, cell), (153, 153, 153, 255))
    for y in range(0, size[1], cell):
        for x in range((y // cell) % 2 * cell, size[0], cell * 2):
            board.paste(dark, (x, y))
    return board


class ImageViewer(ctk.CTkFrame):
    """Канва с итоговым изображением и подписью о его размере."""
    def __init__(self, master: ctk.CTk | tk.Misc, **kwargs) -> None:
        super().__init__(master, **kwargs)
        self.grid_rowconfigure(1, weight=1)
        self.grid_columnconfigure(0, weight=1)

        self._caption = ctk.StringVar(value="Результат появится здесь после кадрирования")
        ctk.CTkLabel(self, textvariable=self._caption, anchor="w").grid(
            row=0, column=0, padx=8, pady=(6, 4), sticky="ew"
        )

        bg = "#1f1f1f" if ctk.get_appearance_mode().lower() == "dark" else "#f2f2f2"
        self._canvas = tk.Canvas(self, highlightthickness=0, bg=bg)
        self._canvas.grid(row=1, column=0, sticky="nsew")

        self._image: Optional[Image.Image] = None
        self._tk_image: Optional[ImageTk.PhotoImage] = None
        self._scale: float = 1.0
        self._origin: Optional[Tuple[int, int]] = None  # top-left on canvas; None = centered
        self._drag: Optional[Tuple[int, int, int, int]] = None

        self._canvas.bind("<Configure>", lambda _e: self._redraw())
        self._canvas.bind("<MouseWheel>", self._on_wheel)      # Windows/macOS
        self._canvas.bind("<Button-4>", self._on_wheel)        # Linux scroll up
        self._canvas.bind("<Button-5>", self._on_wheel)        # Linux scroll down
        self._canvas.bind("<ButtonPress-1>", self._on_drag_start)
        self._canvas.bind("<B1-Motion>", self._on_drag_move)
        self._canvas.bind("<ButtonRelease-1>", lambda _e: setattr(self, "_drag", None))

    # ---- Public API ----
    def set_image(self, image: Optional[Image.Image]) -> None:
        """Показывает изображение в масштабе «вписать»; None очищает виджет."""
        self._image = image
        if image is None:
            self._caption.set("Результат появится здесь после кадрирования")
        else:
            self._caption.set(f"{image.width}×{image.height} px")
        self.set_zoom_to_fit()

    def set_zoom_to_fit(self) -> None:
        self._scale = self._fit_scale()
        self._origin = None
        self._redraw()

    # ---- Rendering ----
    def _fit_scale(self) -> float:
        if self._image is None:
            return 1.0
        canvas_w = max(1, self._canvas.winfo_width())
        canvas_h = max(1, self._canvas.winfo_height())
        scale = min(canvas_w / self._image.width, canvas_h / self._image.height)
        return max(MIN_SCALE, min(MAX_SCALE, scale))

    def _redraw(self) -> None:
        self._canvas.delete("all")
        if self._image is None:
            return

        shown = (max(1, int(self._image.width * self._scale)), max(1, int(self._image.height * self._scale)))
        if self._origin is None:
            self._origin = (
                max(0, (self._canvas.winfo_width() - shown[0]) // 2),
                max(0, (self._canvas.winfo_height() - shown[1]) // 2),
            )

        frame = _checkerboard(shown)
        frame.alpha_composite(self._image.convert("RGBA").resize(shown, Image.Resampling.LANCZOS))
        self._tk_image = ImageTk.PhotoImage(frame)
        self._canvas.create_image(*self._origin, image=self._tk_image, anchor="nw")

    # ---- Mouse ----
    def _on_wheel(self, event: tk.Event) -> None:
        if self._image is None or self._origin is None:
            return
        # Button-4 / positive delta zoom in
        zoom_in = getattr(event, "num", None) == 4 or getattr(event, "delta", 0) > 0
        new_scale = max(MIN_SCALE, min(MAX_SCALE, self._scale * (WHEEL_STEP if zoom_in else 1 / WHEEL_STEP)))
        if new_scale == self._scale:
            return

        # keep the image point under the cursor in place
        ox, oy = self._origin
        ratio = new_scale / self._scale
        self._origin = (int(round(event.x - (event.x - ox) * ratio)), int(round(event.y - (event.y - oy) * ratio)))
        self._scale = new_scale
        self._redraw()

    def _on_drag_start(self, event: tk.Event) -> None:
        if self._origin is not None:
            self._drag = (event.x, event.y, *self._origin)

    def _on_drag_move(self, event: tk.Event) -> None:
        if self._drag is None:
            return
        sx, sy, ox, oy = self._drag
        self._origin = (ox + event.x - sx, oy + event.y - sy)
        self._redraw()
