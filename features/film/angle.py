"""
Camera Angle Classifier - ракурс камеры по наклону линий и положению горизонта.

Наклон: медиана направлений почти горизонтальных краёв.
Горизонт: строка с самым резким перепадом средней яркости
(0 = низ кадра, 1 = верх).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from core.errors import DegenerateDataError
from models.shots import CameraAngle
from utils.gradient import compute_gradient, salience_threshold
from utils.pixels import PixelBuffer

EDGE_SD_FACTOR = 1.5
MIN_EDGE_PIXELS = 20
MIN_HORIZONTAL_EDGES = 10
MIN_BRIGHTNESS_STEPS = 6
DEFAULT_HORIZON = 0.5


@dataclass(frozen=True, slots=True)
class AngleResult:
    camera_angle: Optional[str]
    horizon_position: Optional[float] = None
    tilt_angle: Optional[float] = None

    @classmethod
    def unknown(cls) -> AngleResult:
        return cls(CameraAngle.UNKNOWN.value, None, None)

    def to_dict(self) -> dict[str, Optional[float | str]]:
        return {
            "camera_angle": self.camera_angle,
            "horizon_position": self.horizon_position,
            "tilt_angle": self.tilt_angle,
        }


def estimate_tilt(gx: np.ndarray, gy: np.ndarray) -> float:
    """Наклон камеры в градусах по градиентам в пикселях-краях."""
    angles = np.degrees(np.arctan2(gy, gx))
    horizontal = angles[(np.abs(angles) > 45) & (np.abs(angles) < 135)]
    if horizontal.size < MIN_HORIZONTAL_EDGES:
        return 0.0

    line_angles = horizontal - 90.0
    line_angles = np.where(line_angles < -90, line_angles + 180, line_angles)
    line_angles = np.where(line_angles > 90, line_angles - 180, line_angles)
    return round(float(np.median(line_angles)), 1)


def estimate_horizon(gray: np.ndarray) -> float:
    """Положение горизонта в [0, 1], 0 - низ кадра."""
    row_brightness = gray.mean(axis=1)
    steps = np.diff(row_brightness)
    if steps.size < MIN_BRIGHTNESS_STEPS:
        return DEFAULT_HORIZON

    # 1-based номер перепада
    max_change = int(np.argmax(np.abs(steps))) + 1
    return round(1.0 - max_change / gray.shape[0], 2)


def decide_angle(tilt: Optional[float], horizon: Optional[float]) -> CameraAngle:
    """Дерево решений; порядок проверок важен, первое совпадение выигрывает."""
    abs_tilt = abs(tilt) if tilt is not None else 0.0
    if 15 < abs_tilt < 75:
        return CameraAngle.DUTCH_ANGLE
    if horizon is None or horizon > 0.75:
        return CameraAngle.BIRDS_EYE
    if horizon < 0.25:
        return CameraAngle.WORMS_EYE
    if horizon > 0.6:
        return CameraAngle.HIGH_ANGLE
    if horizon < 0.4:
        return CameraAngle.LOW_ANGLE
    return CameraAngle.EYE_LEVEL


def classify_angle_gray(gray: np.ndarray) -> AngleResult:
    try:
        field = compute_gradient(gray)
    except DegenerateDataError:
        return AngleResult.unknown()

    edges = field.magnitude > salience_threshold(field.magnitude, k=EDGE_SD_FACTOR)
    if int(edges.sum()) < MIN_EDGE_PIXELS:
        return AngleResult.unknown()

    tilt = estimate_tilt(field.gx[edges], field.gy[edges])
    horizon = estimate_horizon(gray)
    angle = decide_angle(tilt, horizon)
    return AngleResult(angle.value, horizon, tilt)


def classify_angle(buffer: PixelBuffer, downsample: int | None = 300) -> AngleResult:
    """Ракурс для одного кадра."""
    return classify_angle_gray(buffer.resize_max(downsample).to_gray())
