from pathlib import Path

import pytest
from PIL import Image

from img_crop.errors import ImageDecodeError
from img_crop.models.image_model import CropRect, FileBlob
from img_crop.services.image_service import ImageService


@pytest.fixture
def service() -> ImageService:
    return ImageService()


def test_read_file_guesses_mime(service, png_file):
    blob = service.read_file(png_file)
    assert blob.name == "photo.png"
    assert blob.mime_type == "image/png"
    assert blob.size == png_file.stat().st_size
    assert blob.uid


def test_read_missing_file_raises(service, tmp_path):
    with pytest.raises(FileNotFoundError):
        service.read_file(tmp_path / "missing.png")


def test_uids_are_unique(service, png_file):
    assert service.read_file(png_file).uid != service.read_file(png_file).uid


def test_decode_sync(service, png_file):
    source = service.decode_sync(service.read_file(png_file))
    assert (source.width, source.height) == (100, 100)
    assert source.pil_image.mode == "RGBA"
    assert source.name == "photo.png"
    assert source.mime_type == "image/png"


def test_decode_garbage_raises(service):
    with pytest.raises(ImageDecodeError):
        service.decode_sync(FileBlob(name="x.png", mime_type="image/png", data=b"garbage"))


def test_decode_oversized_raises(service, png_blob, monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    with pytest.raises(ImageDecodeError, match="too large"):
        service.decode_sync(png_blob)


@pytest.mark.asyncio
async def test_decode_async(service, png_blob):
    source = await service.decode(png_blob)
    assert source.file is png_blob
    assert source.width == 100


@pytest.mark.parametrize(
    "source, mime, expected",
    [
        ("/data/photo.png", "image/png", "/data/photo_cropped.png"),
        ("/data/photo.jpg", "image/jpeg", "/data/photo_cropped.jpg"),
        ("/data/photo.bmp", "image/png", "/data/photo_cropped.png"),
    ],
)
def test_cropped_path(service, source, mime, expected):
    blob = FileBlob(name=Path(source).name, mime_type=mime, data=b"")
    assert service.cropped_path(source, blob) == Path(expected)


def test_save_file(service, tmp_path):
    blob = FileBlob(name="a.png", mime_type="image/png", data=b"bytes")
    path = service.save_file(blob, tmp_path / "out.png")
    assert path.read_bytes() == b"bytes"


def test_crop_rect_helpers():
    rect = CropRect.from_floats(10.5, 2.4, 20.5, 0.4)
    assert rect == CropRect(11, 2, 21, 0)
    assert rect.is_empty
    assert CropRect(1, 2, 3, 4).box == (1, 2, 4, 6)
