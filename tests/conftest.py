import io

import numpy as np
import pytest
from PIL import Image

from img_crop.models.image_model import FileBlob, SourceImage


def gradient_image(width: int = 100, height: int = 100) -> Image.Image:
    """Opaque RGBA image where every pixel encodes its own (x, y)."""
    ys, xs = np.mgrid[0:height, 0:width]
    arr = np.zeros((height, width, 4), dtype=np.uint8)
    arr[..., 0] = xs % 256
    arr[..., 1] = ys % 256
    arr[..., 2] = (xs + ys) % 256
    arr[..., 3] = 255
    return Image.fromarray(arr)


def png_bytes(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def source_image() -> SourceImage:
    image = gradient_image(100, 100)
    blob = FileBlob(name="photo.png", mime_type="image/png", data=png_bytes(image))
    return SourceImage(file=blob, pil_image=image, width=100, height=100)


@pytest.fixture
def png_blob() -> FileBlob:
    return FileBlob(name="photo.png", mime_type="image/png", data=png_bytes(gradient_image(100, 100)))


@pytest.fixture
def png_file(tmp_path):
    path = tmp_path / "photo.png"
    gradient_image(100, 100).save(path, format="PNG")
    return path
