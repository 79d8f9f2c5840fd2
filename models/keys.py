"""
Pipeline Keys - перечень ключей контекста для requires/provides контрактов.
"""
from __future__ import annotations

from enum import Enum
from typing import Final


class Key(str, Enum):
    """Все ключи состояния пайплайна."""

    # === Inputs (Extractors) ===
    INPUT_PATH = "input_path"
    VIDEO_PATH = "video_path"
    VIDEO_META = "video_meta"
    AUDIO_PATH = "audio_path"
    FRAMES = "frames"

    # === Shots ===
    SHOTS = "shots"
    FRAME_DIFFERENCES = "frame_differences"

    # === Audio ===
    AUDIO_WINDOW_FEATURES = "audio_window_features"

    # === Film metrics ===
    PACING = "pacing"
    RHYTHM = "rhythm"
    SCALE_DISTRIBUTION = "scale_distribution"

    # === Images ===
    IMAGES = "images"
    IMAGE_FEATURES = "image_features"

    # === Metadata ===
    DURATION_SECONDS = "duration_seconds"
    FPS = "fps"
    FRAME_COUNT = "frame_count"
    PROCESSING_TIME = "processing_time_seconds"
    WARNINGS = "warnings"


# Ключи с табличными данными (одна строка на элемент)
TABLE_KEYS: Final[frozenset[Key]] = frozenset({
    Key.SHOTS,
    Key.AUDIO_WINDOW_FEATURES,
    Key.SCALE_DISTRIBUTION,
    Key.IMAGES,
    Key.IMAGE_FEATURES,
})
