"""
BaseHandler - базовый класс для handler'ов с контрактами.

Handler объявляет:
- requires: ключи контекста, без которых он не может работать
- provides: ключи, которые он добавляет в контекст

и реализует handle(context) -> context.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, FrozenSet, TYPE_CHECKING

from core.errors import InputValidityError

if TYPE_CHECKING:
    from models.keys import Key


class BaseHandler(ABC):
    """Base handler interface с контрактами requires/provides.

    Атрибуты класса:
        requires: ключи, которые handler требует (FrozenSet[Key])
        provides: ключи, которые handler создаёт (FrozenSet[Key])
    """

    requires: ClassVar[FrozenSet[Key]] = frozenset()
    provides: ClassVar[FrozenSet[Key]] = frozenset()

    @property
    def name(self) -> str:
        """Имя handler'а (по умолчанию имя класса)."""
        return self.__class__.__name__

    def missing_requires(self, context: dict[str, Any]) -> list[str]:
        """Возвращает ключи из requires, которых нет в контексте."""
        return sorted(
            key.value for key in self.requires
            if context.get(key.value) is None
        )

    def check_requires(self, context: dict[str, Any]) -> None:
        """Проверяет контракт до начала работы handler'а."""
        missing = self.missing_requires(context)
        if missing:
            raise InputValidityError(
                f"{self.name}: required context keys are missing",
                {"missing": ", ".join(missing)},
            )

    @abstractmethod
    def handle(self, context: dict[str, Any]) -> dict[str, Any]:
        """Обрабатывает контекст и возвращает обновлённый контекст."""
        raise NotImplementedError


class ExtractorHandler(BaseHandler):
    """Базовый класс для Extractor handlers (I/O, декодирование).

    Extractors создают артефакты на диске.
    """
    pass


class AnalyzerHandler(BaseHandler):
    """Базовый класс для Analyzer handlers (чистая аналитика).

    Analyzers работают с готовыми артефактами и создают признаки.
    """
    pass
