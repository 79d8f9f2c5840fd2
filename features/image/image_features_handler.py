"""
ImageFeaturesHandler - цветовые и композиционные признаки для коллекции изображений.

Каждое изображение декодируется один раз, уменьшается и прогоняется через
выбранные экстракторы. Ошибка на изображении даёт None во всех его колонках.
"""
from __future__ import annotations

from typing import Any, Callable, ClassVar, FrozenSet, Optional, Sequence

from core.base_handler import AnalyzerHandler
from core.batch import map_items
from core.errors import InputValidityError
from features.film.faces import FaceDetector, face_summary
from features.image import color, composition
from models.keys import Key
from models.media import ImageRecord
from utils.pixels import PixelBuffer

Extractor = Callable[[PixelBuffer], dict[str, Any]]

COLOR_EXTRACTORS: dict[str, Extractor] = {
    "brightness": color.brightness,
    "color_mean": color.color_mean,
    "color_median": color.color_median,
    "saturation": color.saturation,
    "colourfulness": color.colourfulness,
    "warmth": color.warmth,
    "color_variance": color.color_variance,
    "color_mode": color.color_mode,
    "hue_histogram": color.hue_histogram,
    "color_moments": color.color_moments,
}

COMPOSITION_EXTRACTORS: dict[str, Extractor] = {
    "fluency": composition.fluency,
    "rule_of_thirds": composition.rule_of_thirds,
    "visual_complexity": composition.visual_complexity,
    "center_bias": composition.center_bias,
    "skin_tone_prop": composition.skin_tone_prop,
}

# dominant_color считается на отдельном, более мелком буфере
ALL_EXTRACTORS: tuple[str, ...] = (
    *COLOR_EXTRACTORS, "dominant_color", *COMPOSITION_EXTRACTORS,
)


def extract_image_features(
    path: str,
    extractors: Sequence[str] = ALL_EXTRACTORS,
    downsample: int | None = 200,
    dominant_color_downsample: int | None = 100,
    face_detector: Optional[FaceDetector] = None,
) -> dict[str, Any]:
    """Все выбранные признаки одного изображения одной строкой."""
    original = PixelBuffer.from_path(path)
    buffer = original.resize_max(downsample)

    row: dict[str, Any] = {}
    for name in extractors:
        if name == "dominant_color":
            row.update(color.dominant_color(original.resize_max(dominant_color_downsample)))
            continue
        fn = COLOR_EXTRACTORS.get(name) or COMPOSITION_EXTRACTORS.get(name)
        if fn is None:
            raise InputValidityError("Unknown extractor", {"extractor": name})
        row.update(fn(buffer))

    if face_detector is not None:
        row.update(face_summary(buffer, face_detector))
    return row


class ImageFeaturesHandler(AnalyzerHandler):
    """Признаки для каждого изображения из context['images'].

    Provides:
    - image_features: list[dict], одна строка на изображение, порядок сохраняется
    """

    requires: ClassVar[FrozenSet[Key]] = frozenset({Key.IMAGES})
    provides: ClassVar[FrozenSet[Key]] = frozenset({Key.IMAGE_FEATURES})

    def __init__(
        self,
        extractors: Sequence[str] = ALL_EXTRACTORS,
        downsample: int | None = 200,
        dominant_color_downsample: int | None = 100,
        face_detector: Optional[FaceDetector] = None,
        max_workers: int = 1,
    ) -> None:
        unknown = [e for e in extractors if e not in ALL_EXTRACTORS]
        if unknown:
            raise InputValidityError("Unknown extractors", {"extractors": ", ".join(unknown)})
        self.extractors = tuple(extractors)
        self.downsample = downsample
        self.dominant_color_downsample = dominant_color_downsample
        self.face_detector = face_detector
        self.max_workers = int(max_workers)

    def handle(self, context: dict[str, Any]) -> dict[str, Any]:
        print("[2] ImageFeaturesHandler")

        images: list[ImageRecord] = context["images"]

        results = map_items(
            [img.local_path for img in images],
            lambda path: extract_image_features(
                path,
                extractors=self.extractors,
                downsample=self.downsample,
                dominant_color_downsample=self.dominant_color_downsample,
                face_detector=self.face_detector,
            ),
            max_workers=self.max_workers,
        )

        columns: list[str] = []
        for result in results:
            if result.ok:
                columns.extend(k for k in result.value if k not in columns)

        rows: list[dict[str, Any]] = []
        for image, result in zip(images, results):
            if result.ok:
                rows.append(result.value)
            else:
                print(f"⚠️ Image {image.id}: feature extraction failed ({result.error})")
                context.setdefault("warnings", []).append(
                    f"image {image.id}: feature extraction failed: {result.error}"
                )
                rows.append(dict.fromkeys(columns))

        context["image_features"] = rows

        ok = sum(1 for r in results if r.ok)
        print(f"✓ Image features: {ok}/{len(images)} images, {len(columns)} columns")
        return context
