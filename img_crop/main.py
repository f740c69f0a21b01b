"""Точка входа в приложение."""
import asyncio
import sys

from img_crop.app import ImgCropApp
from img_crop.errors import ConfigError
from img_crop.logging_config import setup_logging


def main() -> None:
    """Создаёт главное окно и запускает его в цикле asyncio."""
    setup_logging()
    try:
        app = ImgCropApp()
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)
    asyncio.run(app.run())


if __name__ == "__main__":
    main()
