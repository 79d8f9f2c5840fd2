"""
FrameSamplingHandler - извлекает кадры видео с заданной частотой анализа.

Extractor: ffmpeg (фильтр fps) или OpenCV, если ffmpeg недоступен.
Кадры сохраняются как {prefix}_%06d.{format}, нумерация с 1.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar, FrozenSet, Optional, Sequence

import cv2
import numpy as np

from core.base_handler import ExtractorHandler
from core.errors import ExternalFailureError, InputValidityError
from features.file_io.ffmpeg_tools import run_tool, tool_available
from features.file_io.video_meta_handler import get_video_info
from models.keys import Key
from models.media import Frame


def _clear_previous(output_dir: Path, prefix: str, fmt: str) -> None:
    for old in output_dir.glob(f"{prefix}_[0-9]*.{fmt}"):
        old.unlink()


def _collect(output_dir: Path, prefix: str, fmt: str) -> list[Frame]:
    paths = sorted(output_dir.glob(f"{prefix}_[0-9]*.{fmt}"))
    return [
        Frame(index=i, image_id=p.stem, path=str(p))
        for i, p in enumerate(paths, start=1)
    ]


def _extract_with_ffmpeg(
    video_path: str,
    output_dir: Path,
    fps: float,
    fmt: str,
    prefix: str,
    timeout: Optional[float],
) -> None:
    cmd = [
        "ffmpeg",
        "-y",
        "-loglevel", "error",
        "-i", video_path,
        "-vf", f"fps={fps}",
        "-q:v", "2",
        str(output_dir / f"{prefix}_%06d.{fmt}"),
    ]
    run_tool(cmd, timeout=timeout)


def _extract_with_opencv(
    video_path: str,
    output_dir: Path,
    fps: float,
    fmt: str,
    prefix: str,
) -> None:
    # Последовательное чтение: кадр сохраняется, когда его время
    # доходит до очередной отметки (index - 1) / fps
    cap = cv2.VideoCapture(video_path)
    if not cap.isOpened():
        raise ExternalFailureError("Cannot open video", {"path": video_path})

    try:
        native_fps = float(cap.get(cv2.CAP_PROP_FPS))
        if not np.isfinite(native_fps) or native_fps <= 0:
            native_fps = 25.0

        index = 1
        position = 0
        while True:
            ok, frame = cap.read()
            if not ok or frame is None:
                break
            if position / native_fps >= (index - 1) / fps - 1e-9:
                cv2.imwrite(str(output_dir / f"{prefix}_{index:06d}.{fmt}"), frame)
                index += 1
            position += 1
    finally:
        cap.release()


def _extract_frame_numbers(
    video_path: str,
    output_dir: Path,
    frame_numbers: Sequence[int],
    fmt: str,
    prefix: str,
) -> None:
    cap = cv2.VideoCapture(video_path)
    if not cap.isOpened():
        raise ExternalFailureError("Cannot open video", {"path": video_path})

    try:
        for i, number in enumerate(frame_numbers, start=1):
            cap.set(cv2.CAP_PROP_POS_FRAMES, max(int(number) - 1, 0))
            ok, frame = cap.read()
            if not ok or frame is None:
                print(f"⚠️ Frame {number} could not be read from {Path(video_path).name}")
                continue
            cv2.imwrite(str(output_dir / f"{prefix}_{i:06d}.{fmt}"), frame)
    finally:
        cap.release()


def extract_frames(
    video_path: str,
    output_dir: str | Path,
    fps: Optional[float] = None,
    frames: Optional[Sequence[int]] = None,
    fmt: str = "jpg",
    prefix: str = "frame",
    timeout: Optional[float] = None,
    n: Optional[int] = None,
) -> list[Frame]:
    """Извлекает кадры одного видео.

    fps, frames и n взаимоисключающие; без них используется 1 кадр/сек.
    frames - номера кадров видео (1-based).
    n - ровно n равномерно распределённых кадров: fps = n / duration,
    из лишних кадров остаются round(linspace(1, N, n)).
    """
    modes = [name for name, value in (("fps", fps), ("frames", frames), ("n", n)) if value is not None]
    if len(modes) > 1:
        raise InputValidityError("Specify only one of fps, frames, n", {"given": ", ".join(modes)})
    if fps is not None and fps <= 0:
        raise InputValidityError("fps must be positive", {"fps": fps})
    if n is not None and n <= 0:
        raise InputValidityError("n must be positive", {"n": n})
    if not Path(video_path).is_file():
        raise InputValidityError("Video file not found", {"path": video_path})

    if n is not None:
        duration = get_video_info(video_path, timeout=timeout).duration_seconds
        if not duration or duration <= 0:
            raise InputValidityError("Video duration is unknown", {"path": video_path})
        fps = n / duration

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    _clear_previous(out, prefix, fmt)

    if frames is not None:
        _extract_frame_numbers(video_path, out, frames, fmt, prefix)
    elif tool_available("ffmpeg"):
        _extract_with_ffmpeg(video_path, out, fps or 1.0, fmt, prefix, timeout)
    else:
        print("⚠️ ffmpeg not found, extracting frames with OpenCV")
        _extract_with_opencv(video_path, out, fps or 1.0, fmt, prefix)

    result = _collect(out, prefix, fmt)
    if n is not None and len(result) > n:
        picks = np.round(np.linspace(1, len(result), n)).astype(int)
        result = [result[i - 1] for i in picks]
    return result


class FrameSamplingHandler(ExtractorHandler):
    """Handler для сэмплирования кадров с частотой анализа.

    Provides:
    - FRAMES: список Frame (index 1..N)
    """

    requires: ClassVar[FrozenSet[Key]] = frozenset({Key.VIDEO_PATH})
    provides: ClassVar[FrozenSet[Key]] = frozenset({Key.FRAMES})

    def __init__(
        self,
        fps: float = 2.0,
        frames_dir: str = "temp/frames",
        fmt: str = "jpg",
        timeout_seconds: float | None = 600.0,
    ) -> None:
        self.fps = float(fps)
        self.frames_dir = Path(frames_dir)
        self.fmt = fmt
        self.timeout_seconds = timeout_seconds

    def handle(self, context: dict[str, Any]) -> dict[str, Any]:
        print("[3] FrameSamplingHandler")

        video_path = context["video_path"]
        # Отдельная папка на видео: несколько видео не перетирают кадры друг друга
        subdir = context.get("video_fingerprint") or Path(video_path).stem
        output_dir = self.frames_dir / subdir

        frames = extract_frames(
            video_path,
            output_dir,
            fps=self.fps,
            fmt=self.fmt,
            prefix=context.get("frame_prefix", "frame"),
            timeout=self.timeout_seconds,
        )

        context["frames"] = frames
        context["analysis_fps"] = self.fps

        print(f"✓ Frames extracted: {len(frames)} at {self.fps:g} fps")

        return context
