"""
Иерархия ошибок shotlens.

Четыре класса ошибок:
- InputValidityError: неверные входные данные, прерывает операцию до обработки
- MissingCapabilityError: нет нужного инструмента (ffmpeg, детектор лиц)
- DegenerateDataError: данных недостаточно для вычисления (результат -> None)
- ExternalFailureError: сбой внешнего вызова (декодирование, ffmpeg)
"""
from __future__ import annotations

from typing import Any, Optional


class ShotLensError(Exception):
    """Базовое исключение shotlens."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class InputValidityError(ShotLensError, ValueError):
    """Неверные входные данные (нет колонки, мало кадров, неверный параметр)."""
    pass


class MissingCapabilityError(ShotLensError, RuntimeError):
    """Запрошенная возможность недоступна в окружении."""
    pass


class DegenerateDataError(ShotLensError):
    """Данных недостаточно для вычисления метрики."""
    pass


class ExternalFailureError(ShotLensError, RuntimeError):
    """Сбой внешнего коллаборатора (декодер, ffmpeg, детектор)."""
    pass


class FrameDecodeError(ExternalFailureError):
    """Один или несколько кадров не удалось декодировать."""

    def __init__(self, failed_indices: list[int], details: Optional[dict[str, Any]] = None) -> None:
        self.failed_indices = list(failed_indices)
        shown = ", ".join(str(i) for i in self.failed_indices[:10])
        if len(self.failed_indices) > 10:
            shown += ", ..."
        super().__init__(f"Failed to decode frames: {shown}", details)


class InsufficientDataWarning(UserWarning):
    """Метрика не вычислена из-за недостатка данных (не фатально)."""
    pass
