"""
Histogram Distance Engine - цветовые гистограммы кадров и chi-squared расстояние.

Гистограмма кадра: три канала R, G, B по `bins` равных корзин на [0, 256),
склеенные в один вектор длины 3*bins и нормированные на общую сумму
(вместе три под-гистограммы дают 1).
"""
from __future__ import annotations

from typing import Sequence

import numpy as np

from core.errors import InputValidityError
from utils.pixels import PixelBuffer

DEFAULT_BINS = 16
DEFAULT_DOWNSAMPLE = 100


def _channel_counts(values: np.ndarray, bins: int) -> np.ndarray:
    # Корзины закрыты справа: (a, b], первая включает 0
    width = 256.0 / bins
    idx = np.ceil(values.astype(np.float64) / width).astype(np.int64) - 1
    idx = np.clip(idx, 0, bins - 1)
    return np.bincount(idx.ravel(), minlength=bins).astype(np.float64)


def compute_frame_histogram(
    buffer: PixelBuffer,
    bins: int = DEFAULT_BINS,
    downsample: int | None = DEFAULT_DOWNSAMPLE,
) -> np.ndarray:
    """Нормированная RGB гистограмма кадра (длина 3*bins, сумма 1)."""
    if bins <= 0:
        raise InputValidityError("bins must be positive", {"bins": bins})

    small = buffer.resize_max(downsample)
    counts = np.concatenate([
        _channel_counts(small.channel(name), bins)
        for name in ("r", "g", "b")
    ])
    return counts / counts.sum()


def histogram_distance(h1: np.ndarray, h2: np.ndarray) -> float:
    """Chi-squared расстояние между двумя гистограммами.

    sum((h1 - h2)^2 / (h1 + h2)) / 2, нулевой знаменатель заменяется на 1.
    """
    a = np.asarray(h1, dtype=np.float64)
    b = np.asarray(h2, dtype=np.float64)
    if a.shape != b.shape:
        raise InputValidityError(
            "Histogram lengths differ",
            {"left": a.shape[0] if a.ndim else 0, "right": b.shape[0] if b.ndim else 0},
        )

    denom = a + b
    denom[denom == 0] = 1.0
    return float(np.sum((a - b) ** 2 / denom) / 2.0)


def frame_distances(histograms: Sequence[np.ndarray]) -> np.ndarray:
    """N гистограмм -> N-1 расстояний между соседними кадрами."""
    if len(histograms) < 2:
        raise InputValidityError(
            "Need at least 2 frames to compute frame distances",
            {"frames": len(histograms)},
        )
    return np.array([
        histogram_distance(histograms[i], histograms[i + 1])
        for i in range(len(histograms) - 1)
    ], dtype=np.float64)
