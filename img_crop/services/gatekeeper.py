"""Хуки до и после кадрирования.

Сырые возвращаемые значения хуков (bool, awaitable, что-то иное) приводятся к
`GateDecision` в одном месте (`normalize_post_result`); дальше конвейер работает
только с тегированным вариантом.
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from img_crop.errors import CropError, GateRejection, ProtocolViolation
from img_crop.logging_config import get_logger
from img_crop.models.config import CropHooks
from img_crop.models.crop_session import AcceptComputed, AcceptReplaced, CommitOutcome, Rejected
from img_crop.models.image_model import FileBlob

_logger = get_logger("gatekeeper")

UPLOAD_DECLINED = "upload declined"
CONTRACT_VIOLATED = "contract violated: before_upload must return a bool or an awaitable"


class GateVerdict(str, Enum):
    ACCEPT = "accept"
    DECLINE = "decline"
    REPLACE = "replace"
    PROTOCOL_ERROR = "protocol_error"


@dataclass(frozen=True)
class GateDecision:
    verdict: GateVerdict
    replacement: Optional[FileBlob] = None
    error: Optional[CropError] = None

    @classmethod
    def accept(cls) -> "GateDecision":
        return cls(GateVerdict.ACCEPT)

    @classmethod
    def decline(cls, reason: str, cause: Optional[BaseException] = None) -> "GateDecision":
        error = GateRejection(reason)
        error.__cause__ = cause
        return cls(GateVerdict.DECLINE, error=error)

    @classmethod
    def replace(cls, blob: FileBlob) -> "GateDecision":
        return cls(GateVerdict.REPLACE, replacement=blob)

    @classmethod
    def protocol_error(cls, detail: str) -> "GateDecision":
        return cls(GateVerdict.PROTOCOL_ERROR, error=ProtocolViolation(detail))

    @property
    def rejected(self) -> bool:
        return self.verdict in (GateVerdict.DECLINE, GateVerdict.PROTOCOL_ERROR)


def _reason(exc: BaseException, default: str) -> str:
    text = str(exc)
    return text if text else default


def _as_replacement(value: Any, computed: FileBlob) -> Optional[FileBlob]:
    if isinstance(value, FileBlob):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return computed.with_data(bytes(value))
    return None


async def normalize_post_result(result: Any, computed: FileBlob) -> GateDecision:
    """Приводит результат `before_upload` к `GateDecision`.

    - True -> ACCEPT, False -> DECLINE("upload declined");
    - awaitable -> ждём: blob/bytes -> REPLACE, исключение -> DECLINE(причина),
      иное (в т.ч. None) -> ACCEPT;
    - любое другое значение -> PROTOCOL_ERROR.
    """
    if result is True:
        return GateDecision.accept()
    if result is False:
        return GateDecision.decline(UPLOAD_DECLINED)
    if inspect.isawaitable(result):
        try:
            resolved = await result
        except Exception as exc:
            return GateDecision.decline(_reason(exc, UPLOAD_DECLINED), cause=exc)
        replacement = _as_replacement(resolved, computed)
        if replacement is not None:
            return GateDecision.replace(replacement)
        return GateDecision.accept()
    return GateDecision.protocol_error(f"{CONTRACT_VIOLATED}, got {type(result).__name__}")


def to_outcome(decision: GateDecision, computed: FileBlob) -> CommitOutcome:
    if decision.verdict is GateVerdict.REPLACE and decision.replacement is not None:
        return AcceptReplaced(decision.replacement)
    if decision.verdict is GateVerdict.ACCEPT:
        return AcceptComputed(computed)
    if decision.verdict is GateVerdict.PROTOCOL_ERROR:
        return Rejected(CONTRACT_VIOLATED, decision.error)
    return Rejected(str(decision.error) if decision.error else UPLOAD_DECLINED, decision.error)


class GatekeeperChain:
    """Вызывает хуки `before_crop` / `before_upload` и сообщает об отказах наблюдателю."""

    def __init__(self, hooks: Optional[CropHooks] = None) -> None:
        self.hooks = hooks or CropHooks()

    async def pre(self, file: FileBlob, file_list: Optional[List[FileBlob]] = None) -> bool:
        """Предикат до показа диалога. Отсутствует -> True; ложь или исключение -> False."""
        hook = self.hooks.before_crop
        if hook is None:
            return True
        batch = list(file_list) if file_list is not None else [file]
        try:
            result = hook(file, batch)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            _logger.info("before_crop raised for %s: %s", file.name, exc)
            return False
        if not result:
            _logger.info("before_crop declined %s", file.name)
            return False
        return True

    async def post(self, blob: FileBlob) -> GateDecision:
        """Хук после кадрирования. Отсутствует -> ACCEPT."""
        hook = self.hooks.before_upload
        if hook is None:
            return GateDecision.accept()
        try:
            result = hook(blob, [blob])
        except Exception as exc:
            decision = GateDecision.decline(_reason(exc, UPLOAD_DECLINED), cause=exc)
        else:
            decision = await normalize_post_result(result, blob)

        if decision.verdict is GateVerdict.PROTOCOL_ERROR:
            _logger.error("before_upload contract error for %s: %s", blob.name, decision.error)
        elif decision.verdict is GateVerdict.DECLINE:
            _logger.info("before_upload declined %s: %s", blob.name, decision.error)
        if decision.rejected:
            self._report_failure(decision.error)
        return decision

    def _report_failure(self, error: Optional[CropError]) -> None:
        """Наблюдатель получает исключение хука, если оно было, иначе `GateRejection`/`ProtocolViolation`."""
        observer = self.hooks.on_upload_fail
        if observer is None or error is None:
            return
        try:
            observer(error.__cause__ or error)
        except Exception:
            _logger.exception("on_upload_fail observer raised")
