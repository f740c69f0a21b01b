"""Модальный диалог кадрирования: реализация протокола `CropWidget`.

Принципы:
- SRP: диалог только показывает превью и сообщает правки контроллеру
  (`set_crop`, `set_zoom`, `set_rotation`, `confirm`, `cancel`).
- Состояние сессии читается через `CropSessionView`, напрямую не изменяется.
"""
from __future__ import annotations

from typing import Optional, Tuple

import customtkinter as ctk
import tkinter as tk
from PIL import Image, ImageTk

from img_crop.controllers.session_controller import SessionController
from img_crop.models.config import CropConfig
from img_crop.models.crop_session import CropSessionView, CropShape
from img_crop.models.image_model import CropRect, SourceImage
from img_crop.services.compositor import CompositorService
from img_crop.services.geometry import fit_aspect_rect, rotation_geometry

PREVIEW_MAX_SIDE = 1024
FRAME_COLOR = "#ffffff"
GRID_COLOR = "#dddddd"


class CropDialog:
    """Создаёт `CTkToplevel` при `open()` и уничтожает его при `close()`."""
    def __init__(self, master: tk.Misc, config: CropConfig) -> None:
        self._master = master
        self._config = config
        self._compositor = CompositorService(fill_color=config.fill_color)

        self._window: Optional[ctk.CTkToplevel] = None
        self._canvas: Optional[tk.Canvas] = None
        self._zoom_slider: Optional[ctk.CTkSlider] = None
        self._rotate_slider: Optional[ctk.CTkSlider] = None
        self._rotate_value = None
        self._tk_preview: Optional[ImageTk.PhotoImage] = None

        self._controller: Optional[SessionController] = None
        self._session: Optional[CropSessionView] = None
        self._source: Optional[SourceImage] = None
        self._preview_source: Optional[SourceImage] = None

        self._preview_scale: float = 1.0  # canvas px per box px
        self._preview_origin: Tuple[int, int] = (0, 0)
        self._center: Tuple[float, float] = (0.0, 0.0)  # frame center, box coords
        self._drag_from: Optional[Tuple[int, int]] = None

    # ---- CropWidget ----
    def open(self, source: SourceImage, session: CropSessionView, controller: SessionController) -> None:
        self._source = source
        self._session = session
        self._controller = controller
        self._preview_source = self._make_preview_source(source)
        self._build_window()
        self._reset_center()
        self._render_preview()
        self._update_crop()

    def close(self) -> None:
        if self._window is not None:
            try:
                self._window.grab_release()
            except tk.TclError:
                pass
            self._window.destroy()
        self._window = None
        self._canvas = None
        self._tk_preview = None
        self._controller = None
        self._session = None
        self._source = None
        self._preview_source = None

    def set_zoom(self, value: float) -> None:
        if self._zoom_slider is not None and self._window is not None:
            self._zoom_slider.set(value)

    def set_rotation(self, value: float) -> None:
        if self._rotate_slider is not None and self._window is not None:
            self._rotate_slider.set(value)
            self._rotate_value.set(f"{value:.0f}°")

    # ---- Layout ----
    def _build_window(self) -> None:
        cfg = self._config
        window = ctk.CTkToplevel(self._master)
        window.title(cfg.modal_title)
        window.resizable(False, False)
        window.protocol("WM_DELETE_WINDOW", self._on_cancel)
        window.grid_columnconfigure(1, weight=1)

        side = cfg.modal_width - 24
        self._canvas = tk.Canvas(window, width=side, height=side, highlightthickness=0, bg="#1f1f1f")
        self._canvas.grid(row=0, column=0, columnspan=3, padx=12, pady=(12, 8))
        self._canvas.bind("<ButtonPress-1>", self._on_drag_start)
        self._canvas.bind("<B1-Motion>", self._on_drag_move)
        self._canvas.bind("<ButtonRelease-1>", self._on_drag_end)
        self._canvas.bind("<MouseWheel>", self._on_mouse_wheel)      # Windows/macOS
        self._canvas.bind("<Button-4>", self._on_mouse_wheel_linux)  # Linux scroll up
        self._canvas.bind("<Button-5>", self._on_mouse_wheel_linux)  # Linux scroll down

        row = 1
        if cfg.zoom:
            ctk.CTkLabel(window, text="−").grid(row=row, column=0, padx=(12, 4), sticky="e")
            steps = max(1, int(round((cfg.max_zoom - cfg.min_zoom) * 10)))
            self._zoom_slider = ctk.CTkSlider(
                window, from_=cfg.min_zoom, to=cfg.max_zoom, number_of_steps=steps, command=self._on_zoom_slider
            )
            self._zoom_slider.set(self._session.zoom)
            self._zoom_slider.grid(row=row, column=1, padx=4, pady=4, sticky="ew")
            ctk.CTkLabel(window, text="+").grid(row=row, column=2, padx=(4, 12), sticky="w")
            row += 1

        if cfg.rotate:
            self._rotate_value = ctk.StringVar(value="0°")
            ctk.CTkLabel(window, text="↺").grid(row=row, column=0, padx=(12, 4), sticky="e")
            self._rotate_slider = ctk.CTkSlider(
                window, from_=-180, to=180, number_of_steps=360, command=self._on_rotate_slider
            )
            self._rotate_slider.set(self._session.rotation)
            self._rotate_slider.grid(row=row, column=1, padx=4, pady=4, sticky="ew")
            ctk.CTkLabel(window, textvariable=self._rotate_value, width=40).grid(
                row=row, column=2, padx=(4, 12), sticky="w"
            )
            row += 1

        buttons = ctk.CTkFrame(window, fg_color="transparent")
        buttons.grid(row=row, column=0, columnspan=3, padx=12, pady=(8, 12), sticky="e")
        ctk.CTkButton(buttons, text=cfg.modal_cancel, width=96, command=self._on_cancel).grid(row=0, column=0, padx=6)
        ctk.CTkButton(buttons, text=cfg.modal_ok, width=96, command=self._on_ok).grid(row=0, column=1, padx=6)

        self._window = window
        window.update_idletasks()
        window.grab_set()

    # ---- Rendering ----
    def _make_preview_source(self, source: SourceImage) -> SourceImage:
        scale = min(1.0, PREVIEW_MAX_SIDE / max(source.width, source.height))
        if scale >= 1.0:
            return source
        size = (max(1, int(source.width * scale)), max(1, int(source.height * scale)))
        small = source.pil_image.resize(size, Image.Resampling.LANCZOS)
        return SourceImage(file=source.file, pil_image=small, width=size[0], height=size[1])

    def _box_size(self) -> Tuple[int, int]:
        geometry = rotation_geometry(self._source.width, self._source.height, self._session.rotation)
        return geometry.width, geometry.height

    def _render_preview(self) -> None:
        if self._canvas is None:
            return
        preview = self._compositor.compose_preview(self._preview_source, self._session.rotation)
        box_w, box_h = self._box_size()
        side = int(self._canvas.cget("width"))
        self._preview_scale = min(side / box_w, side / box_h)
        shown = (max(1, int(box_w * self._preview_scale)), max(1, int(box_h * self._preview_scale)))
        self._tk_preview = ImageTk.PhotoImage(preview.resize(shown, Image.Resampling.BILINEAR))
        self._preview_origin = ((side - shown[0]) // 2, (side - shown[1]) // 2)
        self._draw()

    def _draw(self) -> None:
        canvas = self._canvas
        if canvas is None or self._tk_preview is None:
            return
        canvas.delete("all")
        ox, oy = self._preview_origin
        canvas.create_image(ox, oy, image=self._tk_preview, anchor="nw")

        crop = self._crop_rect()
        s = self._preview_scale
        x0, y0 = ox + crop.x * s, oy + crop.y * s
        x1, y1 = x0 + crop.width * s, y0 + crop.height * s
        if self._session.shape is CropShape.ELLIPSE:
            canvas.create_oval(x0, y0, x1, y1, outline=FRAME_COLOR, width=2)
        else:
            canvas.create_rectangle(x0, y0, x1, y1, outline=FRAME_COLOR, width=2)

        if self._config.grid:
            # rule of thirds
            for i in (1, 2):
                gx = x0 + (x1 - x0) * i / 3
                gy = y0 + (y1 - y0) * i / 3
                canvas.create_line(gx, y0, gx, y1, fill=GRID_COLOR)
                canvas.create_line(x0, gy, x1, gy, fill=GRID_COLOR)

    # ---- Crop frame ----
    def _reset_center(self) -> None:
        box_w, box_h = self._box_size()
        self._center = (box_w / 2.0, box_h / 2.0)

    def _crop_rect(self) -> CropRect:
        """Рамка в координатах габаритного прямоугольника (полное разрешение)."""
        box_w, box_h = self._box_size()
        frame = fit_aspect_rect(self._source.width, self._source.height, self._session.aspect, self._session.zoom)
        cx, cy = self._center
        x = min(max(cx - frame.width / 2.0, 0.0), max(0.0, box_w - frame.width))
        y = min(max(cy - frame.height / 2.0, 0.0), max(0.0, box_h - frame.height))
        return CropRect.from_floats(x, y, frame.width, frame.height)

    def _update_crop(self) -> None:
        if self._controller is None:
            return
        self._controller.set_crop(self._crop_rect())
        self._draw()

    # ---- Events ----
    def _on_zoom_slider(self, value: float) -> None:
        if self._controller is None:
            return
        self._controller.set_zoom(value)
        self._update_crop()

    def _on_rotate_slider(self, value: float) -> None:
        if self._controller is None:
            return
        angle = self._controller.set_rotation(round(value))
        self._rotate_value.set(f"{angle:.0f}°")
        self._reset_center()
        self._render_preview()
        self._update_crop()

    def _on_drag_start(self, event: tk.Event) -> None:
        self._drag_from = (event.x, event.y)

    def _on_drag_move(self, event: tk.Event) -> None:
        if self._drag_from is None or self._controller is None:
            return
        sx, sy = self._drag_from
        s = self._preview_scale or 1.0
        cx, cy = self._center
        self._center = (cx + (event.x - sx) / s, cy + (event.y - sy) / s)
        # keep the stored center where the clamped frame actually is
        crop = self._crop_rect()
        self._center = (crop.x + crop.width / 2.0, crop.y + crop.height / 2.0)
        self._drag_from = (event.x, event.y)
        self._update_crop()

    def _on_drag_end(self, _event: tk.Event) -> None:
        self._drag_from = None

    def _on_mouse_wheel(self, event: tk.Event) -> None:
        if event.delta == 0:
            return
        self._step_zoom(0.1 if event.delta > 0 else -0.1)

    def _on_mouse_wheel_linux(self, event: tk.Event) -> None:
        # On X11, Button-4 is up, Button-5 is down
        self._step_zoom(0.1 if getattr(event, "num", None) == 4 else -0.1)

    def _step_zoom(self, delta: float) -> None:
        if self._controller is None or not self._config.zoom:
            return
        zoom = self._controller.set_zoom(self._session.zoom + delta)
        if self._zoom_slider is not None:
            self._zoom_slider.set(zoom)
        self._update_crop()

    def _on_ok(self) -> None:
        if self._controller is not None:
            self._controller.confirm()

    def _on_cancel(self) -> None:
        if self._controller is not None:
            self._controller.cancel()
