"""
ShotStyleHandler - крупность плана и ракурс для репрезентативных кадров шотов.

Ошибка на одном кадре (декодирование, детектор лиц) даёт None
в колонках этого шота, остальные шоты обрабатываются дальше.
"""
from __future__ import annotations

from typing import Any, ClassVar, FrozenSet, Optional

from core.base_handler import AnalyzerHandler
from core.batch import map_items
from features.film.angle import AngleResult, classify_angle
from features.film.faces import FaceDetector
from features.film.scale import ScaleResult, ShotScaleClassifier
from models.keys import Key
from models.shots import Shot
from utils.pixels import PixelBuffer


def classify_shot_frame(
    path: str,
    scale_classifier: Optional[ShotScaleClassifier],
    angle_downsample: Optional[int],
    include_angle: bool = True,
) -> dict[str, Any]:
    """Колонки стиля для одного кадра."""
    buffer = PixelBuffer.from_path(path)
    row: dict[str, Any] = {}
    if scale_classifier is not None:
        row.update(scale_classifier.classify(buffer).to_dict())
    if include_angle:
        row.update(classify_angle(buffer, downsample=angle_downsample).to_dict())
    return row


class ShotStyleHandler(AnalyzerHandler):
    """Handler для классификации стиля шотов.

    Пишет в shots:
      - shot_scale, shot_scale_name, subject_coverage
      - camera_angle, horizon_position, tilt_angle
    """

    requires: ClassVar[FrozenSet[Key]] = frozenset({Key.SHOTS})
    provides: ClassVar[FrozenSet[Key]] = frozenset({Key.SHOTS})

    def __init__(
        self,
        include_scale: bool = True,
        include_angle: bool = True,
        scale_method: str = "auto",
        scale_downsample: int | None = 400,
        face_coverage_factor: float = 3.0,
        angle_downsample: int | None = 300,
        face_detector: FaceDetector | None = None,
        max_workers: int = 1,
    ) -> None:
        # MissingCapabilityError для method="face" поднимается здесь, до обработки
        self.scale_classifier = ShotScaleClassifier(
            method=scale_method,
            downsample=scale_downsample,
            face_detector=face_detector,
            face_coverage_factor=face_coverage_factor,
        ) if include_scale else None
        self.include_angle = include_angle
        self.angle_downsample = angle_downsample
        self.max_workers = int(max_workers)

    def handle(self, context: dict[str, Any]) -> dict[str, Any]:
        print("[5] ShotStyleHandler")

        shots: list[Shot] = context["shots"]

        results = map_items(
            [s.frame_path for s in shots],
            lambda path: classify_shot_frame(path, self.scale_classifier, self.angle_downsample, self.include_angle),
            max_workers=self.max_workers,
        )

        empty = self._empty_row()
        updated: list[Shot] = []
        failures = 0
        for shot, result in zip(shots, results):
            if result.ok:
                updated.append(shot.with_updates(**result.value))
            else:
                failures += 1
                print(f"⚠️ Shot {shot.shot_id}: style classification failed ({result.error})")
                context.setdefault("warnings", []).append(
                    f"shot {shot.shot_id}: style classification failed: {result.error}"
                )
                updated.append(shot.with_updates(**empty))

        context["shots"] = updated

        method = self.scale_classifier.effective_method if self.scale_classifier else "off"
        print(f"✓ Shot style: {len(updated) - failures}/{len(updated)} shots classified (scale={method})")
        return context

    def _empty_row(self) -> dict[str, Any]:
        row: dict[str, Any] = {}
        if self.scale_classifier is not None:
            row.update(ScaleResult().to_dict())
        if self.include_angle:
            row.update(AngleResult(None).to_dict())
        return row
