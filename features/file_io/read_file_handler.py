"""
ReadFileHandler - первый шаг видео пайплайна.

Отсекает неподходящий вход до запуска ffmpeg и считает короткий
fingerprint: по нему называются папка кадров и кэш аудио.
"""
from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any, ClassVar, FrozenSet

from core.base_handler import ExtractorHandler
from core.errors import InputValidityError
from models.keys import Key

VIDEO_SUFFIXES = (".avi", ".flv", ".m4v", ".mkv", ".mov", ".mp4", ".mpeg", ".mpg", ".webm", ".wmv")

GIB = 1024 ** 3
FINGERPRINT_HEAD_BYTES = 64 * 1024


def compute_file_fingerprint(path: Path) -> str:
    """16 hex символов: sha256 от начала файла, размера и mtime."""
    stat = path.stat()
    digest = hashlib.sha256()
    with path.open("rb") as f:
        digest.update(f.read(FINGERPRINT_HEAD_BYTES))
    digest.update(f"{stat.st_size}:{int(stat.st_mtime)}".encode())
    return digest.hexdigest()[:16]


class ReadFileHandler(ExtractorHandler):
    requires: ClassVar[FrozenSet[Key]] = frozenset({Key.INPUT_PATH})
    provides: ClassVar[FrozenSet[Key]] = frozenset({Key.VIDEO_PATH})

    def __init__(self, max_file_size_gb: float = 15.0, suffixes: tuple[str, ...] = VIDEO_SUFFIXES) -> None:
        self.max_bytes = int(max_file_size_gb * GIB)
        self.suffixes = suffixes

    def handle(self, context: dict[str, Any]) -> dict[str, Any]:
        print("[1] ReadFileHandler")

        raw = context.get("input_path")
        if not raw:
            raise InputValidityError("'input_path' not provided in context")

        path = Path(raw).resolve()
        if not path.is_file():
            reason = "Path is not a file" if path.exists() else "Video file not found"
            raise InputValidityError(reason, {"path": str(path)})

        if path.suffix.lower() not in self.suffixes:
            raise InputValidityError(
                f"Unsupported video extension: {path.suffix or '(none)'}",
                {"allowed": " ".join(self.suffixes)},
            )

        size = path.stat().st_size
        if size > self.max_bytes:
            raise InputValidityError(
                f"File too large: {size / GIB:.2f}GB",
                {"limit_gb": round(self.max_bytes / GIB, 2)},
            )

        context["video_path"] = str(path)
        context["video_size_bytes"] = size
        context["video_fingerprint"] = compute_file_fingerprint(path)

        print(f"✓ Video: {path.name} ({size / 1024 / 1024:.1f} MB), id {context['video_fingerprint']}")
        return context
