"""img-crop CLI.

Crops a single image without a GUI, through the same session controller
the desktop dialog uses.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from img_crop.controllers.session_controller import SessionController
from img_crop.errors import ConfigError
from img_crop.logging_config import get_logger, setup_logging
from img_crop.models.config import CropConfig, CropHooks, load_config, parse_aspect
from img_crop.models.crop_session import CommitOutcome, CropSessionView
from img_crop.models.image_model import CropRect, SourceImage
from img_crop.services.geometry import fit_aspect_rect, rotation_geometry
from img_crop.services.image_service import ImageService

_logger = get_logger("cli")

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_USAGE = 2


class StaticCropWidget:
    """Виджет без UI: выставляет заданные рамку и угол и сразу подтверждает."""

    def __init__(self, crop: Optional[CropRect] = None, rotation: float = 0.0, zoom: float = 1.0) -> None:
        self.crop = crop
        self.rotation = rotation
        self.zoom = zoom
        self.closed = False

    def open(self, source: SourceImage, session: CropSessionView, controller: SessionController) -> None:
        zoom = controller.set_zoom(self.zoom)
        rotation = controller.set_rotation(self.rotation)
        crop = self.crop or self._initial_crop(source, session, zoom, rotation)
        controller.set_crop(crop)
        controller.confirm()

    def close(self) -> None:
        self.closed = True

    def set_zoom(self, value: float) -> None:
        self.zoom = value

    def set_rotation(self, value: float) -> None:
        self.rotation = value

    @staticmethod
    def _initial_crop(source: SourceImage, session: CropSessionView, zoom: float, rotation: float) -> CropRect:
        rect = fit_aspect_rect(source.width, source.height, session.aspect, zoom)
        geometry = rotation_geometry(source.width, source.height, rotation)
        return CropRect.from_floats(rect.x + geometry.offset_x, rect.y + geometry.offset_y, rect.width, rect.height)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="img-crop",
        description="img-crop -- crop (and optionally rotate) a single image",
        epilog="Example: img-crop photo.jpg --crop 10 10 400 400 --rotate 15 --output out.jpg",
    )
    parser.add_argument("input", metavar="FILE", help="Source image")
    parser.add_argument(
        "--crop",
        nargs=4,
        type=float,
        default=None,
        metavar=("X", "Y", "W", "H"),
        help="Crop rectangle in pixels (default: largest centered frame with --aspect)",
    )
    parser.add_argument("--rotate", type=float, default=None, metavar="DEG", help="Clockwise rotation, degrees")
    parser.add_argument("--zoom", type=float, default=1.0, metavar="FLOAT", help="Zoom for the default frame (default: 1)")
    parser.add_argument("--aspect", default=None, metavar="RATIO", help='Aspect ratio: "1", "16:9" or "free"')
    parser.add_argument("--quality", type=float, default=None, metavar="0..1", help="Encode quality (default: 0.4)")
    parser.add_argument("--fill", default=None, metavar="COLOR", help='Background fill color (default: "orange")')
    parser.add_argument("--output", default=None, metavar="PATH", help="Output file (default: <name>_cropped.<ext>)")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging level (default: INFO)",
    )
    return parser


def build_config(args: argparse.Namespace, base: CropConfig) -> CropConfig:
    """Накладывает флаги CLI поверх конфигурации из окружения."""
    config = base.with_overrides(quality=args.quality, fill_color=args.fill)
    if args.rotate is not None:
        config = replace(config, rotate=True)
    if args.aspect is not None:
        try:
            config = replace(config, aspect=parse_aspect(args.aspect))
        except (ValueError, ZeroDivisionError) as exc:
            raise ConfigError(f"invalid --aspect: {args.aspect!r}") from exc
    return config


async def run_crop(
    source_path: Path,
    config: CropConfig,
    widget: StaticCropWidget,
    hooks: Optional[CropHooks] = None,
) -> CommitOutcome:
    controller = SessionController(config=config, hooks=hooks or CropHooks(), widget=widget)
    file = controller.image_service.read_file(source_path)
    return await controller.select_file(file, [file])


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(getattr(logging, args.log_level))

    try:
        config = build_config(args, load_config())
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    source_path = Path(args.input)
    if not source_path.is_file():
        print(f"File not found: {source_path}", file=sys.stderr)
        return EXIT_USAGE

    crop = CropRect.from_floats(*args.crop) if args.crop else None
    widget = StaticCropWidget(crop=crop, rotation=args.rotate or 0.0, zoom=args.zoom)
    outcome = asyncio.run(run_crop(source_path, config, widget))

    if not outcome.accepted:
        print(f"Rejected: {outcome.reason}", file=sys.stderr)
        return EXIT_REJECTED

    images = ImageService()
    output = Path(args.output) if args.output else images.cropped_path(source_path, outcome.blob)
    images.save_file(outcome.blob, output)
    _logger.info("Wrote %s (%d bytes)", output, outcome.blob.size)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
