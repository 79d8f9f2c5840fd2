"""Core package for shotlens.

Экспортирует:
- BaseHandler, ExtractorHandler, AnalyzerHandler: базовые классы handlers
- run_pipeline: линейный пайплайн
- map_items, ItemResult: поэлементная обработка батчей
- иерархию ошибок из core.errors
"""

from core.base_handler import BaseHandler, ExtractorHandler, AnalyzerHandler
from core.pipeline import run_pipeline
from core.batch import ItemResult, map_items
from core.errors import (
    ShotLensError,
    InputValidityError,
    MissingCapabilityError,
    DegenerateDataError,
    ExternalFailureError,
    FrameDecodeError,
    InsufficientDataWarning,
)

__all__ = [
    # Handlers
    "BaseHandler",
    "ExtractorHandler",
    "AnalyzerHandler",
    # Pipeline
    "run_pipeline",
    # Batch
    "ItemResult",
    "map_items",
    # Errors
    "ShotLensError",
    "InputValidityError",
    "MissingCapabilityError",
    "DegenerateDataError",
    "ExternalFailureError",
    "FrameDecodeError",
    "InsufficientDataWarning",
]
