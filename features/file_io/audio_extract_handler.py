"""
AudioExtractHandler - извлекает аудио из видео через ffmpeg.

Extractor: создаёт WAV (pcm_s16le, mono) для анализа по окнам.
Стерео сводится в моно самим ffmpeg (-ac 1).
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar, FrozenSet, Optional

import numpy as np
import soundfile as sf

from core.base_handler import ExtractorHandler
from core.errors import ExternalFailureError, MissingCapabilityError
from features.file_io.ffmpeg_tools import INSTALL_HINT, require_tool, run_tool, tool_available
from models.keys import Key


def extract_audio(
    video_path: str,
    audio_path: str,
    sample_rate: int | None = None,
    timeout: Optional[float] = None,
) -> None:
    """Пишет моно 16-bit PCM WAV; без sample_rate частота сохраняется."""
    require_tool("ffmpeg")

    rate_args = ["-ar", str(sample_rate)] if sample_rate else []
    cmd = [
        "ffmpeg",
        "-y",
        "-loglevel", "error",
        "-i", video_path,
        "-vn",
        "-ac", "1",
        *rate_args,
        "-acodec", "pcm_s16le",
        audio_path,
    ]
    run_tool(cmd, timeout=timeout)


def load_pcm(audio_path: str) -> tuple[np.ndarray, int]:
    """Читает WAV как моно int16 -> (samples, sample_rate)."""
    try:
        data, sample_rate = sf.read(audio_path, dtype="int16", always_2d=True)
    except RuntimeError as e:
        raise ExternalFailureError("Cannot read audio file", {"path": audio_path}) from e

    if data.shape[1] == 1:
        samples = data[:, 0]
    else:
        samples = data.astype(np.float64).mean(axis=1).round().astype(np.int16)
    return samples, int(sample_rate)


class AudioExtractHandler(ExtractorHandler):
    """Handler для извлечения аудио дорожки.

    ffmpeg проверяется при создании: без него MissingCapabilityError
    до обработки первого видео.
    Кэширование по fingerprint: если аудио уже извлечено, повторно не извлекает.
    Видео без аудио дорожки или ошибка ffmpeg на одном видео: audio_path = None,
    дальше аудио признаки пустые.

    Provides:
    - AUDIO_PATH: путь к WAV
    """

    requires: ClassVar[FrozenSet[Key]] = frozenset({Key.VIDEO_PATH})
    provides: ClassVar[FrozenSet[Key]] = frozenset({Key.AUDIO_PATH})

    def __init__(
        self,
        temp_dir: str = "temp",
        sample_rate: int | None = 16000,
        overwrite: bool = False,
        timeout_seconds: float | None = 600.0,
    ) -> None:
        self.temp_dir = Path(temp_dir)
        self.sample_rate = sample_rate
        self.overwrite = overwrite
        self.timeout_seconds = timeout_seconds

        if not tool_available("ffmpeg"):
            raise MissingCapabilityError(
                f"ffmpeg is required for audio features. {INSTALL_HINT} or run with --no-audio",
                {"tool": "ffmpeg"},
            )

    def handle(self, context: dict[str, Any]) -> dict[str, Any]:
        print("[6] AudioExtractHandler")

        video_path = context["video_path"]

        meta = context.get("video_meta")
        if meta is not None and not meta.has_audio:
            context["audio_path"] = None
            print("⚠️ Video has no audio stream, audio features skipped")
            return context

        self.temp_dir.mkdir(parents=True, exist_ok=True)

        fingerprint = context.get("video_fingerprint", "")
        stem = f"audio_{fingerprint}" if fingerprint else Path(video_path).stem
        audio_path = self.temp_dir / f"{stem}.wav"

        if not self.overwrite and audio_path.exists():
            context["audio_path"] = str(audio_path)
            print(f"✓ Audio cached: {audio_path.name}")
            return context

        try:
            extract_audio(video_path, str(audio_path), self.sample_rate, timeout=self.timeout_seconds)
        except ExternalFailureError as e:
            audio_path.unlink(missing_ok=True)
            context["audio_path"] = None
            context.setdefault("warnings", []).append(f"{Path(video_path).name}: audio extraction failed: {e}")
            print(f"⚠️ Audio extraction failed, audio features skipped: {e}")
            return context

        context["audio_path"] = str(audio_path)

        file_size_mb = audio_path.stat().st_size / 1024 / 1024
        print(f"✓ Audio extracted: {audio_path.name} ({file_size_mb:.1f} MB)")

        return context
