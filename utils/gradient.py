"""
Градиент яркости по разностям соседних пикселей.

gx[i, j] = g[i, j] - g[i, j-1], gy[i, j] = g[i, j] - g[i-1, j];
первый столбец gx и первая строка gy равны нулю.
"""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from core.errors import DegenerateDataError

MIN_GRADIENT_SIDE = 3


@dataclass(frozen=True, slots=True)
class GradientField:
    gx: np.ndarray
    gy: np.ndarray
    magnitude: np.ndarray

    @property
    def shape(self) -> tuple[int, int]:
        return self.magnitude.shape  # type: ignore[return-value]


def compute_gradient(gray: np.ndarray) -> GradientField:
    """Считает gx, gy и модуль градиента для матрицы яркости в [0, 1].

    Raises:
        DegenerateDataError: если матрица меньше 3x3.
    """
    g = np.asarray(gray, dtype=np.float64)
    if g.ndim != 2 or g.shape[0] < MIN_GRADIENT_SIDE or g.shape[1] < MIN_GRADIENT_SIDE:
        raise DegenerateDataError("Image too small for gradient", {"shape": tuple(g.shape)})

    gx = np.zeros_like(g)
    gy = np.zeros_like(g)
    gx[:, 1:] = g[:, 1:] - g[:, :-1]
    gy[1:, :] = g[1:, :] - g[:-1, :]

    magnitude = np.sqrt(gx ** 2 + gy ** 2)
    return GradientField(gx=gx, gy=gy, magnitude=magnitude)


def salience_threshold(magnitude: np.ndarray, k: float = 1.0) -> float:
    """mean + k * sd (выборочное sd)."""
    values = np.asarray(magnitude, dtype=np.float64).ravel()
    sd = float(np.std(values, ddof=1)) if values.size > 1 else 0.0
    return float(np.mean(values)) + k * sd
