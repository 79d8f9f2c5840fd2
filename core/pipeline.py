from __future__ import annotations

from typing import Any, Iterable

from core.base_handler import BaseHandler


def run_pipeline(context: dict[str, Any], handlers: Iterable[BaseHandler]) -> dict[str, Any]:
    for h in handlers:
        h.check_requires(context)
        context = h.handle(context)
    return context
