"""
Shot Timing Mapper - перевод диапазонов кадров в секунды.

Время считается по частоте анализа (fps сэмплирования кадров),
а не по родному fps видео. Конец шота обрезается длительностью видео
до вычисления duration.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from core.errors import InputValidityError
from models.shots import FramePosition, Shot


def context_fps(context: Mapping[str, Any]) -> float:
    """Частота кадров из контекста: analysis_fps, иначе родной fps."""
    fps = context.get("analysis_fps") or context.get("fps")
    if fps is None:
        raise InputValidityError("Neither 'analysis_fps' nor 'fps' in context")
    fps = float(fps)
    if fps <= 0:
        raise InputValidityError("fps must be positive", {"fps": fps})
    return fps


def shot_time_range(
    start_frame: int,
    end_frame: int,
    fps: float,
    video_duration: Optional[float] = None,
) -> tuple[float, float, float]:
    """(start_time, end_time, duration) для диапазона кадров."""
    if fps is None or fps <= 0:
        raise InputValidityError("fps must be positive", {"fps": fps})

    time_per_frame = 1.0 / fps
    start_time = (start_frame - 1) * time_per_frame
    end_time = end_frame * time_per_frame
    if video_duration is not None:
        end_time = min(end_time, float(video_duration))
    return start_time, end_time, end_time - start_time


def apply_timing(
    shots: Sequence[Shot],
    fps: float,
    video_duration: Optional[float] = None,
) -> list[Shot]:
    """Возвращает шоты с заполненными start_time / end_time / duration."""
    timed: list[Shot] = []
    for shot in shots:
        start_time, end_time, duration = shot_time_range(
            shot.start_frame, shot.end_frame, fps, video_duration
        )
        timed.append(shot.with_updates(
            start_time=start_time,
            end_time=end_time,
            duration=duration,
        ))
    return timed


def select_representative_frame(shot: Shot, position: str | FramePosition = FramePosition.MIDDLE) -> int:
    """Индекс кадра, представляющего шот: first / middle / last."""
    try:
        pos = FramePosition(position)
    except ValueError:
        raise InputValidityError(
            "position must be 'first', 'middle', or 'last'",
            {"position": position},
        ) from None

    if pos is FramePosition.FIRST:
        return shot.start_frame
    if pos is FramePosition.LAST:
        return shot.end_frame
    return (shot.start_frame + shot.end_frame) // 2
