"""
Pacing/Rhythm Aggregator - метрики монтажа по готовому списку шотов.

- compute_asl: средняя длина шота и описательная статистика
- compute_rhythm: энтропия, регулярность, ускорение монтажа
- summarize_scales: распределение крупности в каноническом порядке
"""
from __future__ import annotations

import math
import warnings
from collections import Counter
from typing import Any, Iterable, Mapping, Optional, Sequence

import numpy as np
from scipy import stats

from core.errors import InputValidityError, InsufficientDataWarning
from models.shots import CANONICAL_SCALE_ORDER, Shot
from models.summaries import PacingSummary, RhythmSummary, ScaleShare


def _clean(durations: Iterable[Optional[float]]) -> np.ndarray:
    values = [float(d) for d in durations if d is not None and not math.isnan(float(d))]
    return np.array(values, dtype=np.float64)


def compute_asl(durations: Sequence[Optional[float]]) -> PacingSummary:
    """ASL по длительностям шотов (None пропускаются в статистике)."""
    n = len(durations)
    if n == 0:
        raise InputValidityError("Need at least 1 shot to compute ASL")

    d = _clean(durations)
    if d.size == 0:
        return PacingSummary(None, None, None, n, None, None, None, None)

    total = float(d.sum())
    return PacingSummary(
        asl=float(d.mean()),
        asl_median=float(np.median(d)),
        asl_std=float(np.std(d, ddof=1)) if d.size > 1 else None,
        shot_count=n,
        total_duration=total,
        shortest_shot=float(d.min()),
        longest_shot=float(d.max()),
        shots_per_minute=n / (total / 60.0) if total > 0 else None,
    )


def compute_rhythm(durations: Sequence[Optional[float]]) -> RhythmSummary:
    """Ритм монтажа; для n < 2 - пустая строка и InsufficientDataWarning."""
    d = _clean(durations)
    n = int(d.size)

    if n < 2:
        warnings.warn("Need at least 2 shots for rhythm analysis.", InsufficientDataWarning, stacklevel=2)
        return RhythmSummary()

    total = float(d.sum())
    entropy = None
    if total > 0:
        p = d / total
        p = p[p > 0]
        entropy = float(-np.sum(p * np.log2(p)) / math.log2(n))

    mean = float(d.mean())
    regularity = None
    if mean > 0:
        cv = float(np.std(d, ddof=1)) / mean
        regularity = 1.0 / (1.0 + cv)

    if n >= 3:
        fit = stats.linregress(np.arange(1, n + 1, dtype=np.float64), d)
        acceleration = -float(fit.slope)
    else:
        acceleration = float(d[0] - d[-1])

    shortest = float(d.min())
    range_ratio = float(d.max()) / shortest if shortest > 0 else None

    return RhythmSummary(
        rhythm_entropy=entropy,
        rhythm_regularity=regularity,
        rhythm_acceleration=acceleration,
        rhythm_range_ratio=range_ratio,
        rhythm_quartile_25=float(np.percentile(d, 25)),
        rhythm_quartile_75=float(np.percentile(d, 75)),
    )


def summarize_scales(scales: Iterable[Optional[str]]) -> list[ScaleShare]:
    """Распределение крупности, ECU -> EWS; отсутствующие коды не выводятся.

    Неклассифицированные шоты (None) не учитываются, доли считаются
    от классифицированных. Неизвестные коды идут после канонических.
    """
    counts = Counter(s for s in scales if s is not None)
    total = sum(counts.values())
    if total == 0:
        return []

    order = [s for s in CANONICAL_SCALE_ORDER if s in counts]
    order += sorted(s for s in counts if s not in CANONICAL_SCALE_ORDER)

    return [
        ScaleShare(
            shot_scale=s,
            count=counts[s],
            proportion=counts[s] / total,
            pct=counts[s] / total * 100.0,
        )
        for s in order
    ]


def _column(shots: Sequence[Shot | Mapping[str, Any]], column: str) -> list[Any]:
    values: list[Any] = []
    for shot in shots:
        if isinstance(shot, Mapping):
            if column not in shot:
                raise InputValidityError(
                    f"Input must have a '{column}' column",
                    {"hint": "run shot detection with timing/style first"},
                )
            values.append(shot[column])
        else:
            values.append(getattr(shot, column))
    return values


def film_compute_asl(shots: Sequence[Shot | Mapping[str, Any]]) -> PacingSummary:
    return compute_asl(_column(shots, "duration"))


def film_compute_rhythm(shots: Sequence[Shot | Mapping[str, Any]]) -> RhythmSummary:
    return compute_rhythm(_column(shots, "duration"))


def film_summarize_scales(shots: Sequence[Shot | Mapping[str, Any]]) -> list[ScaleShare]:
    return summarize_scales(_column(shots, "shot_scale"))
