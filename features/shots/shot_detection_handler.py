from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar, FrozenSet

from core.base_handler import AnalyzerHandler
from features.shots.segmenter import DEFAULT_THRESHOLD, detect_shot_changes
from features.shots.timing import apply_timing, context_fps, select_representative_frame
from models.keys import Key
from models.shots import FramePosition


class ShotDetectionHandler(AnalyzerHandler):
    """
    Детект шотов по сэмплированным кадрам.

    Пишет в context:
      - shots: list[Shot] с таймингом и репрезентативным кадром
      - frame_differences: расстояния между соседними кадрами (N-1)

    Тайминг считается по analysis_fps (частота сэмплирования кадров),
    конец последнего шота обрезается по duration_seconds видео.
    """

    requires: ClassVar[FrozenSet[Key]] = frozenset({Key.FRAMES})
    provides: ClassVar[FrozenSet[Key]] = frozenset({Key.SHOTS, Key.FRAME_DIFFERENCES})

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        bins: int = 16,
        downsample: int | None = 100,
        position: str = FramePosition.MIDDLE.value,
        max_workers: int = 1,
    ) -> None:
        self.threshold = float(threshold)
        self.bins = int(bins)
        self.downsample = downsample
        self.position = FramePosition(position)
        self.max_workers = int(max_workers)

    def handle(self, context: dict[str, Any]) -> dict[str, Any]:
        print("[4] ShotDetectionHandler")

        frames = context["frames"]
        fps = context_fps(context)
        duration = context.get("duration_seconds") or None
        video_path = context.get("video_path")

        result = detect_shot_changes(
            frames,
            threshold=self.threshold,
            bins=self.bins,
            downsample=self.downsample,
            max_workers=self.max_workers,
        )
        shots = apply_timing(result.shots, fps=fps, video_duration=duration)

        enriched = []
        for shot in shots:
            index = select_representative_frame(shot, self.position)
            enriched.append(shot.with_updates(
                representative_frame=index,
                frame_path=frames[index - 1].path,
                video_source=str(Path(video_path)) if video_path else None,
            ))

        context["shots"] = enriched
        context["frame_differences"] = [float(d) for d in result.frame_differences]

        print(f"✓ Shot detection: {len(enriched)} shots from {len(frames)} frames "
              f"(threshold={self.threshold:g})")
        return context
