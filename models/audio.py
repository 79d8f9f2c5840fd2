"""
Audio Models - временные окна и аудио признаки окна.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional


@dataclass(frozen=True, slots=True)
class AudioWindow:
    """Окно (start_time, end_time) в секундах."""
    start_time: float
    end_time: float

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass(frozen=True, slots=True)
class AudioWindowFeatures:
    """Семь признаков одного окна; None - признак не вычислен."""
    audio_rms: Optional[float] = None
    audio_peak: Optional[float] = None
    audio_zcr: Optional[float] = None
    audio_silence_ratio: Optional[float] = None
    audio_low_freq_energy: Optional[float] = None
    audio_high_freq_energy: Optional[float] = None
    audio_spectral_centroid: Optional[float] = None

    @classmethod
    def empty(cls) -> AudioWindowFeatures:
        return cls()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


AUDIO_FEATURE_COLUMNS: tuple[str, ...] = tuple(AudioWindowFeatures.__dataclass_fields__)
