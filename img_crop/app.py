import asyncio

import customtkinter as ctk
import tkinter as tk

from img_crop.controllers.app_controller import AppController
from img_crop.ui.image_viewer import ImageViewer
from img_crop.ui.sidebar import Sidebar

FRAME_INTERVAL = 1 / 60


class ImgCropApp(ctk.CTk):
    def __init__(self) -> None:
        super().__init__()
        ctk.set_appearance_mode("system")
        ctk.set_default_color_theme("blue")

        self.title("Image Crop")
        self.minsize(900, 600)

        # root layout: left viewer, right sidebar
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(0, weight=1)

        self._viewer = ImageViewer(self)
        self._viewer.grid(row=0, column=0, sticky="nsew", padx=(12, 6), pady=12)

        self._sidebar = Sidebar(self)
        self._sidebar.grid(row=0, column=1, sticky="ns", padx=(6, 12), pady=12)

        self._controller = AppController(viewer=self._viewer, sidebar=self._sidebar, window=self)
        self._controller.bind_events()

        self._running = True
        self.protocol("WM_DELETE_WINDOW", self._on_close)

    async def run(self) -> None:
        """Цикл событий Tk поверх asyncio: `update()` раз в кадр до закрытия окна."""
        while self._running:
            try:
                self.update()
            except tk.TclError:
                # window already destroyed
                break
            await asyncio.sleep(FRAME_INTERVAL)

    def _on_close(self) -> None:
        self._running = False
        self.destroy()
