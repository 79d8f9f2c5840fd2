"""
Models package for shotlens.

Экспортирует типизированные модели:
- Keys: перечень ключей для контрактов
- Media: VideoMeta, Frame, ImageRecord
- Shots: Shot, ShotScale, CameraAngle, FramePosition
- Summaries: PacingSummary, RhythmSummary, ScaleShare
- Audio: AudioWindow, AudioWindowFeatures
"""

from .keys import Key, TABLE_KEYS

from .media import VideoMeta, Frame, ImageRecord

from .shots import (
    Shot,
    ShotScale,
    CameraAngle,
    FramePosition,
    SCALE_NAMES,
    SCALE_THRESHOLDS,
    CANONICAL_SCALE_ORDER,
)

from .summaries import PacingSummary, RhythmSummary, ScaleShare

from .audio import AudioWindow, AudioWindowFeatures, AUDIO_FEATURE_COLUMNS

from .serde import to_jsonable, merge_rows, write_table

__all__ = [
    "Key",
    "TABLE_KEYS",
    "VideoMeta",
    "Frame",
    "ImageRecord",
    "Shot",
    "ShotScale",
    "CameraAngle",
    "FramePosition",
    "SCALE_NAMES",
    "SCALE_THRESHOLDS",
    "CANONICAL_SCALE_ORDER",
    "PacingSummary",
    "RhythmSummary",
    "ScaleShare",
    "AudioWindow",
    "AudioWindowFeatures",
    "AUDIO_FEATURE_COLUMNS",
    "to_jsonable",
    "merge_rows",
    "write_table",
]
