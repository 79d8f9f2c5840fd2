"""
Face detection adapter.

Тонкая обёртка над каскадом Хаара из OpenCV. Классификатор крупности
работает через протокол FaceDetector и не знает о конкретной реализации.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

import cv2

from core.errors import MissingCapabilityError
from utils.pixels import PixelBuffer

HAAR_CASCADE_FILE = "haarcascade_frontalface_default.xml"


@dataclass(frozen=True, slots=True)
class FaceBox:
    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height


class FaceDetector(Protocol):
    def detect(self, buffer: PixelBuffer) -> list[FaceBox]:
        ...


def _cascade_path() -> Optional[Path]:
    data_dir = getattr(getattr(cv2, "data", None), "haarcascades", None)
    if not data_dir:
        return None
    path = Path(data_dir) / HAAR_CASCADE_FILE
    return path if path.exists() else None


class HaarFaceDetector:
    """Детектор лиц на каскаде Хаара (frontal face)."""

    def __init__(
        self,
        min_size: int = 20,
        scale_factor: float = 1.1,
        min_neighbors: int = 5,
        cascade_path: str | None = None,
    ) -> None:
        path = Path(cascade_path) if cascade_path else _cascade_path()
        if path is None or not path.exists():
            raise MissingCapabilityError(
                "Face detection is not available: Haar cascade file not found",
                {"cascade": HAAR_CASCADE_FILE},
            )

        self._classifier = cv2.CascadeClassifier(str(path))
        if self._classifier.empty():
            raise MissingCapabilityError("Face detection is not available: cascade failed to load", {"cascade": str(path)})

        self.min_size = int(min_size)
        self.scale_factor = float(scale_factor)
        self.min_neighbors = int(min_neighbors)

    def detect(self, buffer: PixelBuffer) -> list[FaceBox]:
        gray = cv2.cvtColor(buffer.data, cv2.COLOR_RGB2GRAY)
        boxes = self._classifier.detectMultiScale(
            gray,
            scaleFactor=self.scale_factor,
            minNeighbors=self.min_neighbors,
            minSize=(self.min_size, self.min_size),
        )
        return [FaceBox(int(x), int(y), int(w), int(h)) for (x, y, w, h) in boxes]


def default_face_detector() -> Optional[FaceDetector]:
    """HaarFaceDetector, если каскад доступен, иначе None."""
    try:
        return HaarFaceDetector()
    except MissingCapabilityError:
        return None


def largest_face(faces: list[FaceBox]) -> Optional[FaceBox]:
    if not faces:
        return None
    return max(faces, key=lambda f: f.area)


def face_summary(buffer: PixelBuffer, detector: FaceDetector) -> dict[str, float | int]:
    """n_faces и суммарная площадь лиц как доля кадра."""
    faces = detector.detect(buffer)
    total_area = sum(f.area for f in faces)
    return {
        "n_faces": len(faces),
        "face_area_prop": total_area / buffer.area,
    }
