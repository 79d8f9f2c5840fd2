"""
Media Models - видео, кадры и изображения как входы анализа.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class VideoMeta:
    """Метаданные видео."""
    source: str
    duration_seconds: float
    fps: float
    frame_count: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    has_audio: bool = True
    codec: Optional[str] = None
    bitrate: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "duration_seconds": self.duration_seconds,
            "fps": self.fps,
            "frame_count": self.frame_count,
            "width": self.width,
            "height": self.height,
            "has_audio": self.has_audio,
            "codec": self.codec,
            "bitrate": self.bitrate,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VideoMeta:
        return cls(
            source=data.get("source", ""),
            duration_seconds=float(data.get("duration_seconds") or 0.0),
            fps=float(data.get("fps") or 0.0),
            frame_count=data.get("frame_count"),
            width=data.get("width"),
            height=data.get("height"),
            has_audio=bool(data.get("has_audio", True)),
            codec=data.get("codec"),
            bitrate=data.get("bitrate"),
        )


@dataclass(frozen=True, slots=True)
class Frame:
    """Один сэмплированный кадр видео.

    index - 1-based позиция в последовательности сэмплированных кадров.
    Пиксели не хранятся, кадр декодируется по пути при необходимости.
    """
    index: int
    image_id: str
    path: str

    def timestamp_seconds(self, fps: float) -> float:
        """Время начала кадра при частоте сэмплирования fps."""
        return (self.index - 1) / fps

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "id": self.image_id, "path": self.path}


@dataclass
class ImageRecord:
    """Одно изображение коллекции (строка таблицы изображений)."""
    id: str
    source: str
    local_path: str
    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = None
    file_size_bytes: Optional[int] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def aspect_ratio(self) -> Optional[float]:
        if not self.width or not self.height:
            return None
        return self.width / self.height

    def to_dict(self) -> dict[str, Any]:
        row: dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "local_path": self.local_path,
            "width": self.width,
            "height": self.height,
            "format": self.format,
            "aspect_ratio": self.aspect_ratio,
            "file_size_bytes": self.file_size_bytes,
        }
        for key, value in self.extra.items():
            row.setdefault(key, value)
        return row
