"""
Batch helpers - поэлементная обработка с сохранением порядка.

Каждый элемент обрабатывается независимо: исключение одного элемента
записывается в его слот и не прерывает остальные.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass(slots=True)
class ItemResult(Generic[R]):
    """Результат обработки одного элемента батча."""
    index: int
    value: Optional[R] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _run_one(index: int, item: Any, fn: Callable[[Any], Any]) -> ItemResult:
    try:
        return ItemResult(index=index, value=fn(item))
    except Exception as e:
        return ItemResult(index=index, error=e)


def map_items(
    items: Sequence[T],
    fn: Callable[[T], R],
    max_workers: int = 1,
) -> list[ItemResult[R]]:
    """Применяет fn к каждому элементу, результат i соответствует items[i].

    max_workers <= 1 - последовательно в текущем потоке.
    """
    results: list[Optional[ItemResult[R]]] = [None] * len(items)

    if max_workers <= 1 or len(items) <= 1:
        for i, item in enumerate(items):
            results[i] = _run_one(i, item, fn)
        return results  # type: ignore[return-value]

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(_run_one, i, item, fn): i
            for i, item in enumerate(items)
        }
        for future, i in futures.items():
            results[i] = future.result()

    return results  # type: ignore[return-value]


def failed_items(results: Sequence[ItemResult]) -> list[ItemResult]:
    return [r for r in results if not r.ok]
