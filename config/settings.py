from __future__ import annotations

from typing import Any, TypedDict

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import InputValidityError


class ShotLensSettings(BaseSettings):
    # Путь к видео не обязателен: CLI передаёт его аргументом,
    # env SHOTLENS_INPUT_VIDEO_PATH - запасной источник.
    input_video_path: str = Field("", description="Default input video path (optional).")

    output_dir: str = Field("output")
    frames_dir: str = Field("temp/frames")
    temp_dir: str = Field("temp")
    max_file_size_gb: float = Field(15.0, gt=0)

    # Frame sampling / shot detection
    analysis_fps: float = Field(2.0, gt=0, description="Frames per second sampled for analysis")
    shot_threshold: float = Field(0.5, ge=0)
    histogram_bins: int = Field(16, ge=1, le=256)
    histogram_downsample: int = Field(100, ge=1)
    representative_position: str = Field("middle", description="first, middle or last")

    # Shot style
    include_style: bool = Field(True)
    include_angle: bool = Field(True)
    scale_method: str = Field("auto", description="auto, face or salience")
    scale_downsample: int = Field(400, ge=1)
    face_coverage_factor: float = Field(3.0, gt=0)
    angle_downsample: int = Field(300, ge=1)

    # Audio
    include_audio: bool = Field(True)
    audio_sample_rate: int = Field(16000, gt=0)

    # Images
    image_downsample: int = Field(200, ge=1)
    dominant_color_downsample: int = Field(100, ge=1)

    num_workers: int = Field(4, ge=1, description="Max parallel workers for per-item work")
    ffmpeg_timeout_seconds: float = Field(600.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="SHOTLENS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("representative_position")
    @classmethod
    def _check_position(cls, v: str) -> str:
        if v not in ("first", "middle", "last"):
            raise ValueError("representative_position must be 'first', 'middle', or 'last'")
        return v

    @field_validator("scale_method")
    @classmethod
    def _check_scale_method(cls, v: str) -> str:
        if v not in ("auto", "face", "salience"):
            raise ValueError("scale_method must be 'auto', 'face', or 'salience'")
        return v


class Context(TypedDict, total=False):
    input_path: str
    video_path: str
    video_fingerprint: str
    video_size_bytes: int
    audio_path: str

    fps: float
    frame_count: int | None
    duration_seconds: float | None
    video_meta: Any  # VideoMeta
    analysis_fps: float

    frames: list[Any]
    shots: list[Any]
    frame_differences: list[float]
    audio_window_features: list[Any]

    pacing: Any  # PacingSummary
    rhythm: Any  # RhythmSummary
    scale_distribution: list[Any]

    images: list[Any]  # ImageRecord
    image_features: list[dict[str, Any]]

    processing_time_seconds: float
    warnings: list[str]


def build_initial_context(settings: ShotLensSettings, input_path: str) -> Context:
    video_path = input_path or settings.input_video_path
    if not video_path:
        raise InputValidityError("input_path is required (or set SHOTLENS_INPUT_VIDEO_PATH)")
    return Context(input_path=video_path, analysis_fps=settings.analysis_fps, warnings=[])
