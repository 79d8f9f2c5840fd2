"""
Композиционные признаки: простота, симметрия, баланс, правило третей,
визуальная сложность, центрированность и доля пикселей цвета кожи.
"""
from __future__ import annotations

from typing import Any, Optional

import cv2
import numpy as np

from core.errors import DegenerateDataError
from utils.gradient import MIN_GRADIENT_SIDE, compute_gradient
from utils.pixels import PixelBuffer

EDGE_MAGNITUDE = 25
THIRDS_WINDOW = 5


def _gray_u8(buffer: PixelBuffer) -> np.ndarray:
    return cv2.cvtColor(buffer.data, cv2.COLOR_RGB2GRAY)


def gray_entropy(gray_u8: np.ndarray) -> float:
    """Энтропия 256-бинной гистограммы яркости в битах (0..8)."""
    counts = np.bincount(gray_u8.ravel(), minlength=256).astype(np.float64)
    probs = counts / counts.sum()
    probs = probs[probs > 0]
    return float(-np.sum(probs * np.log2(probs)))


def fluency(buffer: PixelBuffer) -> dict[str, Optional[float]]:
    """simplicity, symmetry_h, symmetry_v, balance."""
    gray_u8 = _gray_u8(buffer)
    mat = gray_u8.astype(np.float64) / 255.0
    nr, nc = mat.shape

    simplicity = 1 - gray_entropy(gray_u8) / 8

    mid_c = nc // 2
    symmetry_h = None
    if mid_c > 0:
        left = mat[:, :mid_c]
        right = mat[:, ::-1][:, :mid_c]
        symmetry_h = float(1 - np.mean(np.abs(left - right)))

    mid_r = nr // 2
    symmetry_v = None
    if mid_r > 0:
        top = mat[:mid_r, :]
        bottom = mat[::-1, :][:mid_r, :]
        symmetry_v = float(1 - np.mean(np.abs(top - bottom)))

    balance = None
    if mid_r > 0 and mid_c > 0:
        quadrants = [
            mat[:mid_r, :mid_c].mean(),
            mat[:mid_r, mid_c:].mean(),
            mat[mid_r:, :mid_c].mean(),
            mat[mid_r:, mid_c:].mean(),
        ]
        balance = float(1 - min(np.var(quadrants, ddof=1) * 4, 1.0))

    return {
        "simplicity": float(simplicity),
        "symmetry_h": symmetry_h,
        "symmetry_v": symmetry_v,
        "balance": balance,
    }


def rule_of_thirds(buffer: PixelBuffer) -> dict[str, Optional[float]]:
    """
    Насколько градиентная активность сосредоточена в точках третей.

    Средний градиент в окне +-5 пикселей вокруг каждой из 4 точек,
    делённый на средний градиент по кадру; результат в [0, 1].
    """
    mat = _gray_u8(buffer).astype(np.float64)
    try:
        magnitude = compute_gradient(mat).magnitude
    except DegenerateDataError:
        return {"rule_of_thirds": None}

    nr, nc = magnitude.shape
    rows = (round(nr / 3), round(2 * nr / 3))
    cols = (round(nc / 3), round(2 * nc / 3))

    point_means = []
    for pr in rows:
        for pc in cols:
            r1, r2 = max(1, pr - THIRDS_WINDOW), min(nr, pr + THIRDS_WINDOW)
            c1, c2 = max(1, pc - THIRDS_WINDOW), min(nc, pc + THIRDS_WINDOW)
            point_means.append(magnitude[r1 - 1:r2, c1 - 1:c2].mean())

    power = float(np.mean(point_means))
    overall = float(magnitude.mean())
    score = min(power / overall, 2.0) / 2 if overall > 0 else 0.5
    return {"rule_of_thirds": score}


def visual_complexity(buffer: PixelBuffer) -> dict[str, float]:
    """Среднее нормированной энтропии, плотности краёв и разброса яркости."""
    gray_u8 = _gray_u8(buffer)
    mat = gray_u8.astype(np.float64)

    entropy = gray_entropy(gray_u8) / 8

    nr, nc = mat.shape
    if nr >= MIN_GRADIENT_SIDE and nc >= MIN_GRADIENT_SIDE:
        edge_density = float(np.mean(compute_gradient(mat).magnitude > EDGE_MAGNITUDE))
    else:
        edge_density = 0.0

    sd = float(np.std(mat, ddof=1)) if mat.size > 1 else 0.0
    return {"visual_complexity": (entropy + edge_density + min(sd / 128, 1.0)) / 3}


def _center_mask(nr: int, nc: int, center_ratio: float) -> np.ndarray:
    margin_r = round(nr * (1 - center_ratio) / 2)
    margin_c = round(nc * (1 - center_ratio) / 2)
    r1, r2 = max(1, margin_r), min(nr, nr - margin_r)
    c1, c2 = max(1, margin_c), min(nc, nc - margin_c)

    mask = np.zeros((nr, nc), dtype=bool)
    mask[r1 - 1:r2, c1 - 1:c2] = True
    return mask


def center_bias(buffer: PixelBuffer, center_ratio: float = 0.5) -> dict[str, Optional[float]]:
    """center_bias > 1 значит, что градиентная активность смещена к центру."""
    mat = buffer.to_gray()
    nr, nc = mat.shape
    mask = _center_mask(nr, nc, center_ratio)

    def masked_mean(values: np.ndarray, selector: np.ndarray) -> Optional[float]:
        picked = values[selector]
        return float(picked.mean()) if picked.size else None

    row: dict[str, Any] = {
        "center_bias": None,
        "center_brightness": masked_mean(mat, mask),
        "peripheral_brightness": masked_mean(mat, ~mask),
        "center_salience": None,
    }

    try:
        magnitude = compute_gradient(mat).magnitude
    except DegenerateDataError:
        return row

    center_sal = masked_mean(magnitude, mask)
    peripheral_sal = masked_mean(magnitude, ~mask)
    row["center_salience"] = center_sal
    if center_sal is not None and peripheral_sal:
        row["center_bias"] = center_sal / peripheral_sal
    return row


def skin_tone_prop(buffer: PixelBuffer) -> dict[str, float]:
    """Доля пикселей, попадающих в RGB-правило цвета кожи."""
    rgb = buffer.data.astype(np.int32)
    r, g, b = rgb[:, :, 0], rgb[:, :, 1], rgb[:, :, 2]
    mask = (
        (r > 95) & (g > 40) & (b > 20)
        & (r > g) & (r > b)
        & (np.abs(r - g) > 15)
    )
    return {"skin_tone_prop": float(mask.mean())}
