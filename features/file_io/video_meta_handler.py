"""
VideoMetaHandler - извлекает метаданные видео.

Extractor: использует ffprobe (предпочтительно) или OpenCV для получения
duration, fps, frame_count, width, height, has_audio.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, ClassVar, FrozenSet, Optional

import cv2
import numpy as np

from core.base_handler import ExtractorHandler
from core.errors import ExternalFailureError, InputValidityError
from features.file_io.ffmpeg_tools import run_tool, tool_available
from models.keys import Key
from models.media import VideoMeta


def _parse_rate(rate: str | None, default: float = 25.0) -> float:
    if not rate:
        return default
    if "/" in rate:
        num, den = map(float, rate.split("/"))
        return num / den if den > 0 else default
    return float(rate)


def probe_with_ffprobe(video_path: str, timeout: Optional[float] = None) -> VideoMeta:
    """Метаданные через ffprobe (более точный способ)."""
    cmd = [
        "ffprobe",
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        video_path,
    ]
    result = run_tool(cmd, timeout=timeout)
    data = json.loads(result.stdout or "{}")

    video_stream = None
    audio_stream = None
    for stream in data.get("streams", []):
        if stream.get("codec_type") == "video" and video_stream is None:
            video_stream = stream
        elif stream.get("codec_type") == "audio" and audio_stream is None:
            audio_stream = stream

    if not video_stream:
        raise InputValidityError("No video stream found", {"path": video_path})

    format_info = data.get("format", {})

    duration = float(format_info.get("duration", 0) or 0)
    if duration == 0:
        duration = float(video_stream.get("duration", 0) or 0)

    fps = _parse_rate(video_stream.get("avg_frame_rate"), default=0.0)
    if fps <= 0:
        fps = _parse_rate(video_stream.get("r_frame_rate"))

    frame_count = int(video_stream.get("nb_frames", 0) or 0)
    if frame_count == 0 and duration > 0 and fps > 0:
        frame_count = int(duration * fps)

    width = int(video_stream.get("width", 0) or 0)
    height = int(video_stream.get("height", 0) or 0)
    bitrate = int(format_info.get("bit_rate", 0) or 0)

    return VideoMeta(
        source=video_path,
        duration_seconds=duration,
        fps=fps,
        frame_count=frame_count or None,
        width=width or None,
        height=height or None,
        has_audio=audio_stream is not None,
        codec=video_stream.get("codec_name"),
        bitrate=bitrate or None,
    )


def probe_with_opencv(video_path: str) -> VideoMeta:
    """Метаданные через OpenCV (fallback)."""
    cap = cv2.VideoCapture(video_path)
    if not cap.isOpened():
        raise ExternalFailureError("Cannot open video", {"path": video_path})

    try:
        fps = float(cap.get(cv2.CAP_PROP_FPS))
        if not np.isfinite(fps) or fps <= 0:
            fps = 25.0

        frame_count_raw = cap.get(cv2.CAP_PROP_FRAME_COUNT)
        frame_count = int(frame_count_raw) if np.isfinite(frame_count_raw) and frame_count_raw > 0 else None

        duration_seconds = float(frame_count) / fps if frame_count else 0.0

        width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))

        fourcc = int(cap.get(cv2.CAP_PROP_FOURCC))
        codec = "".join(chr((fourcc >> (8 * i)) & 0xFF) for i in range(4)).strip() or None

        return VideoMeta(
            source=video_path,
            duration_seconds=duration_seconds,
            fps=fps,
            frame_count=frame_count,
            width=width if width > 0 else None,
            height=height if height > 0 else None,
            has_audio=True,  # OpenCV не может определить
            codec=codec,
        )
    finally:
        cap.release()


def get_video_info(video_path: str, prefer_ffprobe: bool = True, timeout: Optional[float] = None) -> VideoMeta:
    """Метаданные одного видео (ffprobe, иначе OpenCV)."""
    if not Path(video_path).is_file():
        raise InputValidityError("Video file not found", {"path": video_path})

    if prefer_ffprobe and tool_available("ffprobe"):
        return probe_with_ffprobe(video_path, timeout=timeout)
    return probe_with_opencv(video_path)


class VideoMetaHandler(ExtractorHandler):
    """Handler для извлечения метаданных видео.

    Provides:
    - FPS, DURATION_SECONDS, FRAME_COUNT: родные параметры видео
    - VIDEO_META: VideoMeta целиком
    """

    requires: ClassVar[FrozenSet[Key]] = frozenset({Key.VIDEO_PATH})
    provides: ClassVar[FrozenSet[Key]] = frozenset({
        Key.FPS,
        Key.DURATION_SECONDS,
        Key.FRAME_COUNT,
        Key.VIDEO_META,
    })

    def __init__(self, prefer_ffprobe: bool = True, timeout_seconds: float | None = 120.0) -> None:
        self.prefer_ffprobe = prefer_ffprobe
        self.timeout_seconds = timeout_seconds

    def handle(self, context: dict[str, Any]) -> dict[str, Any]:
        print("[2] VideoMetaHandler")

        video_path = context.get("video_path")
        if not video_path:
            raise InputValidityError("'video_path' not provided in context")

        meta = get_video_info(video_path, prefer_ffprobe=self.prefer_ffprobe, timeout=self.timeout_seconds)

        context["video_meta"] = meta
        context["fps"] = meta.fps
        context["duration_seconds"] = meta.duration_seconds
        context["frame_count"] = meta.frame_count

        print(
            f"✓ Video meta: {meta.fps:.1f} fps, "
            f"{meta.duration_seconds:.1f}s, "
            f"{meta.width or '?'}x{meta.height or '?'}"
        )

        return context
