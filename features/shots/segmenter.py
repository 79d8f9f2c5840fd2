"""
Shot Segmenter - разбиение последовательности кадров на шоты по склейкам.

Склейка между кадрами i и i+1 есть, если distance[i] > threshold (строго).
Шоты покрывают весь диапазон 1..N без пропусков и пересечений.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

import numpy as np

from core.batch import failed_items, map_items
from core.errors import FrameDecodeError, InputValidityError
from features.shots.histogram import (
    DEFAULT_BINS,
    DEFAULT_DOWNSAMPLE,
    compute_frame_histogram,
    frame_distances,
)
from models.media import Frame
from models.shots import Shot
from utils.pixels import PixelBuffer

DEFAULT_THRESHOLD = 0.5


@dataclass
class ShotDetectionResult:
    """Шоты и расстояния между соседними кадрами (диагностика)."""
    shots: list[Shot]
    frame_differences: np.ndarray = field(default_factory=lambda: np.zeros(0))

    @property
    def cut_count(self) -> int:
        return max(len(self.shots) - 1, 0)


def find_cuts(distances: Sequence[float], threshold: float = DEFAULT_THRESHOLD) -> list[int]:
    """1-based позиции i, для которых distance[i] > threshold."""
    return [i + 1 for i, d in enumerate(distances) if d > threshold]


def segment_shots(
    distances: Sequence[float],
    threshold: float = DEFAULT_THRESHOLD,
    frame_ids: Optional[Sequence[str]] = None,
) -> list[Shot]:
    """Строит шоты из N-1 расстояний для N кадров."""
    n = len(distances) + 1
    if n < 2:
        raise InputValidityError("Need at least 2 frames to detect shot changes", {"frames": n})
    if frame_ids is not None and len(frame_ids) != n:
        raise InputValidityError(
            "frame_ids length must equal number of frames",
            {"frames": n, "frame_ids": len(frame_ids)},
        )

    cuts = find_cuts(distances, threshold)
    starts = [1] + [c + 1 for c in cuts]
    ends = cuts + [n]

    shots: list[Shot] = []
    for shot_id, (start, end) in enumerate(zip(starts, ends), start=1):
        shots.append(Shot(
            shot_id=shot_id,
            start_frame=start,
            end_frame=end,
            start_id=frame_ids[start - 1] if frame_ids is not None else None,
            end_id=frame_ids[end - 1] if frame_ids is not None else None,
        ))
    return shots


def renumber_shots(shot_lists: Iterable[Sequence[Shot]]) -> list[Shot]:
    """Склеивает шоты нескольких видео и нумерует shot_id заново 1..total."""
    result: list[Shot] = []
    for shots in shot_lists:
        for shot in shots:
            result.append(shot.with_updates(shot_id=len(result) + 1))
    return result


def detect_shot_changes(
    frames: Sequence[Frame],
    threshold: float = DEFAULT_THRESHOLD,
    bins: int = DEFAULT_BINS,
    downsample: int | None = DEFAULT_DOWNSAMPLE,
    max_workers: int = 1,
) -> ShotDetectionResult:
    """Полный проход: декодирование кадров -> гистограммы -> расстояния -> шоты.

    Если хотя бы один кадр не декодировался, сегментация всего видео
    прерывается с FrameDecodeError (список индексов в ошибке).
    """
    if len(frames) < 2:
        raise InputValidityError("Need at least 2 frames to detect shot changes", {"frames": len(frames)})

    def _histogram(frame: Frame) -> np.ndarray:
        return compute_frame_histogram(PixelBuffer.from_path(frame.path), bins=bins, downsample=downsample)

    results = map_items(frames, _histogram, max_workers=max_workers)

    failed = failed_items(results)
    if failed:
        raise FrameDecodeError(
            [frames[r.index].index for r in failed],
            {"first_error": str(failed[0].error)},
        )

    histograms = [r.value for r in results]
    distances = frame_distances(histograms)
    shots = segment_shots(distances, threshold, frame_ids=[f.image_id for f in frames])

    return ShotDetectionResult(shots=shots, frame_differences=distances)
