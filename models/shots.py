"""
Shot Models - шоты, шкала крупности и ракурс камеры.

Shot создаётся сегментером, обогащается классификаторами
(scale / angle) и затем агрегируется в метрики монтажа.
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Final, Optional


class ShotScale(str, Enum):
    """Крупность плана, от самого крупного к самому общему."""
    ECU = "ECU"
    CU = "CU"
    MCU = "MCU"
    MS = "MS"
    CS = "CS"
    MFS = "MFS"
    FS = "FS"
    WS = "WS"
    EWS = "EWS"


SCALE_NAMES: Final[dict[ShotScale, str]] = {
    ShotScale.ECU: "Extreme Close-Up",
    ShotScale.CU: "Close-Up",
    ShotScale.MCU: "Medium Close-Up",
    ShotScale.MS: "Medium Shot",
    ShotScale.CS: "Cowboy Shot",
    ShotScale.MFS: "Medium Full Shot",
    ShotScale.FS: "Full Shot",
    ShotScale.WS: "Wide Shot",
    ShotScale.EWS: "Extreme Wide Shot",
}

# (порог coverage, код) - проверяется сверху вниз, строго ">"
SCALE_THRESHOLDS: Final[tuple[tuple[float, ShotScale], ...]] = (
    (0.55, ShotScale.ECU),
    (0.40, ShotScale.CU),
    (0.30, ShotScale.MCU),
    (0.22, ShotScale.MS),
    (0.15, ShotScale.CS),
    (0.10, ShotScale.MFS),
    (0.05, ShotScale.FS),
    (0.02, ShotScale.WS),
)

CANONICAL_SCALE_ORDER: Final[tuple[str, ...]] = tuple(s.value for s in ShotScale)


class CameraAngle(str, Enum):
    EYE_LEVEL = "eye_level"
    HIGH_ANGLE = "high_angle"
    LOW_ANGLE = "low_angle"
    BIRDS_EYE = "birds_eye"
    WORMS_EYE = "worms_eye"
    DUTCH_ANGLE = "dutch_angle"
    UNKNOWN = "unknown"


class FramePosition(str, Enum):
    """Какой кадр шота считается репрезентативным."""
    FIRST = "first"
    MIDDLE = "middle"
    LAST = "last"


@dataclass
class Shot:
    """Непрерывный диапазон кадров без склейки.

    start_frame / end_frame - 1-based, включительно.
    """
    shot_id: int
    start_frame: int
    end_frame: int
    start_id: Optional[str] = None
    end_id: Optional[str] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    duration: Optional[float] = None
    video_source: Optional[str] = None
    representative_frame: Optional[int] = None
    frame_path: Optional[str] = None
    shot_scale: Optional[str] = None
    shot_scale_name: Optional[str] = None
    subject_coverage: Optional[float] = None
    camera_angle: Optional[str] = None
    horizon_position: Optional[float] = None
    tilt_angle: Optional[float] = None

    @property
    def frame_count(self) -> int:
        return self.end_frame - self.start_frame + 1

    def with_updates(self, **changes: Any) -> Shot:
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        row: dict[str, Any] = {
            "shot_id": self.shot_id,
            "start_frame": self.start_frame,
            "end_frame": self.end_frame,
            "start_id": self.start_id,
            "end_id": self.end_id,
            "n_frames": self.frame_count,
        }
        # Опциональные колонки добавляются только после соответствующего шага
        for name in (
            "start_time", "end_time", "duration", "video_source",
            "representative_frame", "frame_path",
            "shot_scale", "shot_scale_name", "subject_coverage",
            "camera_angle", "horizon_position", "tilt_angle",
        ):
            row[name] = getattr(self, name)
        return row

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Shot:
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        return cls(**kwargs)
