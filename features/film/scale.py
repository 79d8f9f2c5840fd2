"""
Shot Scale Classifier - крупность плана по доле кадра, занятой объектом.

Два способа оценки subject_coverage:
- salience: доля пикселей с модулем градиента выше mean + 1*sd
- face: площадь самого крупного лица / площадь кадра
  (для классификации домножается на face_coverage_factor)
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from core.errors import DegenerateDataError, InputValidityError, MissingCapabilityError
from features.film.faces import FaceDetector, default_face_detector, largest_face
from models.shots import SCALE_NAMES, SCALE_THRESHOLDS, ShotScale
from utils.gradient import compute_gradient, salience_threshold
from utils.pixels import PixelBuffer

SCALE_METHODS: frozenset[str] = frozenset({"auto", "face", "salience"})
DEFAULT_FACE_COVERAGE_FACTOR = 3.0


@dataclass(frozen=True, slots=True)
class ScaleResult:
    shot_scale: Optional[str] = None
    shot_scale_name: Optional[str] = None
    subject_coverage: Optional[float] = None
    method: Optional[str] = None

    def to_dict(self) -> dict[str, Optional[float | str]]:
        return {
            "shot_scale": self.shot_scale,
            "shot_scale_name": self.shot_scale_name,
            "subject_coverage": self.subject_coverage,
        }


def classify_scale(coverage: Optional[float]) -> tuple[Optional[str], Optional[str]]:
    """(код, название) для coverage; None/NaN -> (None, None)."""
    if coverage is None or (isinstance(coverage, float) and math.isnan(coverage)):
        return None, None

    scale = ShotScale.EWS
    for threshold, code in SCALE_THRESHOLDS:
        if coverage > threshold:
            scale = code
            break
    return scale.value, SCALE_NAMES[scale]


def salience_coverage(gray: np.ndarray) -> Optional[float]:
    """Доля "заметных" пикселей; None для изображений меньше 3x3."""
    try:
        field = compute_gradient(gray)
    except DegenerateDataError:
        return None

    threshold = salience_threshold(field.magnitude, k=1.0)
    return float(np.mean(field.magnitude > threshold))


class ShotScaleClassifier:
    """Классификатор крупности для репрезентативных кадров.

    method="face" без доступного детектора -> MissingCapabilityError
    сразу при создании, до обработки кадров.
    """

    def __init__(
        self,
        method: str = "auto",
        downsample: int | None = 400,
        face_detector: FaceDetector | None = None,
        face_coverage_factor: float = DEFAULT_FACE_COVERAGE_FACTOR,
    ) -> None:
        if method not in SCALE_METHODS:
            raise InputValidityError(
                "method must be 'auto', 'face', or 'salience'",
                {"method": method},
            )

        detector = face_detector
        if detector is None and method in ("auto", "face"):
            detector = default_face_detector()

        if method == "face" and detector is None:
            raise MissingCapabilityError(
                "Face detection requested but no face detector is available",
                {"hint": "use method='salience' or install opencv with Haar cascades"},
            )

        self.method = method
        self.downsample = downsample
        self.face_coverage_factor = float(face_coverage_factor)
        self.face_detector = detector if method != "salience" else None

    @property
    def effective_method(self) -> str:
        return "face" if self.face_detector is not None else "salience"

    def classify(self, buffer: PixelBuffer) -> ScaleResult:
        small = buffer.resize_max(self.downsample)

        if self.face_detector is not None:
            # Исключение детектора пробрасывается: батч превращает его в None
            faces = self.face_detector.detect(small)
            face = largest_face(faces)
            if face is not None:
                coverage = face.area / small.area
                scale, name = classify_scale(coverage * self.face_coverage_factor)
                return ScaleResult(scale, name, coverage, "face")

        coverage = salience_coverage(small.to_gray())
        scale, name = classify_scale(coverage)
        return ScaleResult(scale, name, coverage, "salience")
