"""
Summary Models - агрегаты по списку шотов (темп, ритм, распределение крупности).
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Optional


@dataclass(frozen=True, slots=True)
class PacingSummary:
    """ASL и описательная статистика длительностей шотов."""
    asl: Optional[float]
    asl_median: Optional[float]
    asl_std: Optional[float]
    shot_count: int
    total_duration: Optional[float]
    shortest_shot: Optional[float]
    longest_shot: Optional[float]
    shots_per_minute: Optional[float]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class RhythmSummary:
    """Ритм монтажа по длительностям шотов."""
    rhythm_entropy: Optional[float] = None
    rhythm_regularity: Optional[float] = None
    rhythm_acceleration: Optional[float] = None
    rhythm_range_ratio: Optional[float] = None
    rhythm_quartile_25: Optional[float] = None
    rhythm_quartile_75: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ScaleShare:
    """Одна строка распределения крупности."""
    shot_scale: str
    count: int
    proportion: float
    pct: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
