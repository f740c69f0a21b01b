"""Иерархия ошибок конвейера кадрирования.

Все ошибки, возникающие внутри `SessionController.select_file`, превращаются
в `Rejected(reason, error)`; наружу конвейер их не пробрасывает.
"""
from __future__ import annotations


class CropError(Exception):
    """Base crop pipeline error"""


class ConfigError(CropError):
    """Missing or invalid configuration"""


class GateRejection(CropError):
    """Pre- or post-gate hook declined the file"""


class ProtocolViolation(CropError):
    """Post-gate hook returned a value of unrecognized shape"""


class TransformFailure(CropError):
    """Geometry, compositing or encoding could not produce a buffer"""


class ImageDecodeError(CropError):
    """Selected file is not a readable image"""


class SessionBusyError(CropError):
    """Another crop session is still in flight"""
