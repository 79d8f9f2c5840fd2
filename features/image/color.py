"""
Цветовые признаки изображения.

Каждая функция принимает PixelBuffer (уже уменьшенный) и возвращает
словарь именованных колонок.
"""
from __future__ import annotations

import math
from typing import Any

import cv2
import numpy as np
from sklearn.cluster import KMeans

from core.errors import InputValidityError
from utils.pixels import PixelBuffer

HUE_NAMES: tuple[str, ...] = (
    "red", "orange", "yellow", "chartreuse", "green", "spring",
    "cyan", "azure", "blue", "violet", "magenta", "rose",
)


def to_hex(r: float, g: float, b: float) -> str:
    """#RRGGBB для компонент в [0, 1]."""
    parts = [int(min(max(c, 0.0), 1.0) * 255 + 0.5) for c in (r, g, b)]
    return "#{:02X}{:02X}{:02X}".format(*parts)


def _sd(values: np.ndarray) -> float:
    return float(np.std(values, ddof=1)) if values.size > 1 else 0.0


def brightness(buffer: PixelBuffer, method: str = "mean") -> dict[str, float]:
    vals = buffer.to_gray().ravel()
    center = float(np.median(vals)) if method == "median" else float(np.mean(vals))
    return {"brightness": center, "brightness_std": _sd(vals)}


def color_mean(buffer: PixelBuffer) -> dict[str, Any]:
    rgb = buffer.to_float()
    r, g, b = (float(rgb[:, :, i].mean()) for i in range(3))
    return {"mean_r": r, "mean_g": g, "mean_b": b, "mean_hex": to_hex(r, g, b)}


def color_median(buffer: PixelBuffer) -> dict[str, Any]:
    rgb = buffer.to_float()
    r, g, b = (float(np.median(rgb[:, :, i])) for i in range(3))
    return {"median_r": r, "median_g": g, "median_b": b, "median_hex": to_hex(r, g, b)}


def _hsv_saturation(rgb: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    max_rgb = rgb.max(axis=2)
    min_rgb = rgb.min(axis=2)
    delta = max_rgb - min_rgb
    sat = np.divide(delta, max_rgb, out=np.zeros_like(max_rgb), where=max_rgb > 0)
    return sat, max_rgb, delta


def saturation(buffer: PixelBuffer) -> dict[str, float]:
    sat, _, _ = _hsv_saturation(buffer.to_float())
    vals = sat.ravel()
    return {
        "saturation_mean": float(vals.mean()),
        "saturation_median": float(np.median(vals)),
        "saturation_std": _sd(vals),
    }


def colourfulness(buffer: PixelBuffer) -> dict[str, float]:
    """Метрика Hasler & Suesstrunk (M3) в шкале 0..255."""
    rgb = buffer.data.astype(np.float64)
    r, g, b = rgb[:, :, 0].ravel(), rgb[:, :, 1].ravel(), rgb[:, :, 2].ravel()
    rg = r - g
    yb = 0.5 * (r + g) - b
    m3 = math.sqrt(_sd(rg) ** 2 + _sd(yb) ** 2) + 0.3 * math.sqrt(rg.mean() ** 2 + yb.mean() ** 2)
    return {"colourfulness": m3}


def warmth(buffer: PixelBuffer) -> dict[str, float]:
    """warmth: красный против синего, tint: пурпурный против зелёного."""
    rgb = buffer.data.astype(np.float64)
    mean_r, mean_g, mean_b = (float(rgb[:, :, i].mean()) for i in range(3))
    intensity = (mean_r + mean_g + mean_b) / 3
    warm = (mean_r - mean_b) / (255 * 2) if intensity > 0 else 0.0
    tint = ((mean_r + mean_b) / 2 - mean_g) / 255
    return {"warmth": warm, "tint": tint}


def dominant_color(buffer: PixelBuffer, n_colors: int = 1, random_state: int = 42) -> dict[str, Any]:
    """Самый крупный кластер k-means в RGB."""
    pixels = buffer.data.reshape(-1, 3).astype(np.float64)
    n_clusters = min(n_colors, len(np.unique(pixels, axis=0)))

    kmeans = KMeans(n_clusters=n_clusters, n_init=3, max_iter=20, random_state=random_state)
    labels = kmeans.fit_predict(pixels)

    sizes = np.bincount(labels, minlength=n_clusters)
    idx = int(np.argmax(sizes))
    center = kmeans.cluster_centers_[idx]
    return {
        "dominant_color_r": int(round(center[0])),
        "dominant_color_g": int(round(center[1])),
        "dominant_color_b": int(round(center[2])),
        "dominant_color_hex": to_hex(center[0] / 255, center[1] / 255, center[2] / 255),
        "dominant_color_proportion": float(sizes[idx] / pixels.shape[0]),
    }


def color_variance(buffer: PixelBuffer) -> dict[str, float]:
    rgb = buffer.data.astype(np.float64)
    channels = [rgb[:, :, i].ravel() for i in range(3)]
    variances = [float(np.var(c, ddof=1)) if c.size > 1 else 0.0 for c in channels]
    return {
        "color_variance": sum(variances) / 3,
        "color_range_r": float(np.ptp(channels[0])),
        "color_range_g": float(np.ptp(channels[1])),
        "color_range_b": float(np.ptp(channels[2])),
    }


def color_mode(buffer: PixelBuffer, n_bins: int = 32) -> dict[str, Any]:
    """Самая частая ячейка RGB сетки n_bins^3."""
    bin_size = 256 / n_bins
    binned = np.floor(buffer.data.reshape(-1, 3) / bin_size).astype(np.int64)
    bin_id = (binned[:, 0] * n_bins + binned[:, 1]) * n_bins + binned[:, 2]
    counts = np.bincount(bin_id)
    mode = int(np.argmax(counts))

    parts = (mode // (n_bins * n_bins), (mode // n_bins) % n_bins, mode % n_bins)
    r, g, b = ((p + 0.5) * bin_size / 255 for p in parts)
    return {
        "mode_r": r,
        "mode_g": g,
        "mode_b": b,
        "mode_hex": to_hex(r, g, b),
        "mode_frequency": float(counts[mode] / bin_id.size),
    }


def hue_histogram(buffer: PixelBuffer, n_bins: int = 12) -> dict[str, Any]:
    """Доминирующий тон и энтропия гистограммы тонов (серые пиксели исключены)."""
    rgb = buffer.to_float()
    sat, max_rgb, _ = _hsv_saturation(rgb)
    valid = (sat > 0.1) & (max_rgb > 0.1)

    if int(valid.sum()) < 10:
        return {
            "dominant_hue": None,
            "dominant_hue_name": "gray",
            "dominant_hue_proportion": None,
            "hue_entropy": 0.0,
            "hue_concentration": 1.0,
        }

    hue = cv2.cvtColor(rgb.astype(np.float32), cv2.COLOR_RGB2HSV)[:, :, 0][valid].astype(np.float64)
    hue = np.mod(hue, 360.0)

    bin_width = 360 / n_bins
    bins = np.minimum(np.floor(hue / bin_width).astype(np.int64), n_bins - 1)
    counts = np.bincount(bins, minlength=n_bins)
    probs = counts / counts.sum()

    dominant = int(np.argmax(counts))
    dominant_hue = (dominant + 0.5) * bin_width
    name = HUE_NAMES[dominant] if n_bins == 12 else f"{round(dominant_hue)}deg"

    nonzero = probs[probs > 0]
    entropy = float(-np.sum(nonzero * np.log2(nonzero)))
    return {
        "dominant_hue": dominant_hue,
        "dominant_hue_name": name,
        "dominant_hue_proportion": float(probs[dominant]),
        "hue_entropy": entropy,
        "hue_concentration": 1 - entropy / math.log2(n_bins),
    }


def skewness(values: np.ndarray) -> float:
    """sum((x - m)^3) / ((n - 1) * s^3), 0 при нулевом разбросе."""
    n = values.size
    s = _sd(values)
    if s == 0:
        return 0.0
    return float(np.sum((values - values.mean()) ** 3) / ((n - 1) * s ** 3))


def color_moments(buffer: PixelBuffer, color_space: str = "rgb") -> dict[str, float]:
    """Среднее, sd и асимметрия по каналам (rgb или lab)."""
    if color_space == "rgb":
        data, names = buffer.data, ("r", "g", "b")
    elif color_space == "lab":
        data, names = cv2.cvtColor(buffer.data, cv2.COLOR_RGB2LAB), ("l", "a", "b")
    else:
        raise InputValidityError("color_space must be 'rgb' or 'lab'", {"color_space": color_space})

    row: dict[str, float] = {}
    for i, name in enumerate(names):
        c = data[:, :, i].astype(np.float64).ravel() / 255.0
        row[f"cm_{name}_mean"] = float(c.mean())
        row[f"cm_{name}_std"] = _sd(c)
        row[f"cm_{name}_skew"] = skewness(c)
    return row
