"""
AudioSegmentHandler - аудио признаки для временных окон шотов.

Читает WAV (int16 mono) и считает 7 признаков на окно шота.
Без шотов окна строятся по кадрам: ((i-1)/fps, i/fps).
"""
from __future__ import annotations

from typing import Any, ClassVar, FrozenSet

from core.base_handler import AnalyzerHandler
from features.audio.segment_features import analyze_audio_windows, frame_windows
from features.file_io.audio_extract_handler import load_pcm
from features.shots.timing import context_fps
from models.audio import AudioWindow, AudioWindowFeatures
from models.keys import Key


class AudioSegmentHandler(AnalyzerHandler):
    """Извлекает признаки громкости и спектра по окнам.

    Provides:
    - audio_window_features: list[AudioWindowFeatures], одна строка на шот
    """

    requires: ClassVar[FrozenSet[Key]] = frozenset()
    provides: ClassVar[FrozenSet[Key]] = frozenset({Key.AUDIO_WINDOW_FEATURES})

    def __init__(self, max_workers: int = 1) -> None:
        self.max_workers = int(max_workers)

    def handle(self, context: dict[str, Any]) -> dict[str, Any]:
        print("[7] AudioSegmentHandler")

        windows = self._windows(context)
        audio_path = context.get("audio_path")

        if not audio_path:
            context["audio_window_features"] = [AudioWindowFeatures.empty() for _ in windows]
            print("⚠️ No audio available, audio features are empty")
            return context

        samples, sample_rate = load_pcm(audio_path)
        print(f"  Audio: {len(samples) / sample_rate:.1f}s, {sample_rate} Hz")

        results = analyze_audio_windows(samples, sample_rate, windows, max_workers=self.max_workers)

        features: list[AudioWindowFeatures] = []
        for i, result in enumerate(results):
            if result.ok:
                features.append(result.value)
            else:
                print(f"⚠️ Audio window {i + 1}: {result.error}")
                features.append(AudioWindowFeatures.empty())

        context["audio_window_features"] = features

        computed = sum(1 for f in features if f.audio_rms is not None)
        print(f"✓ Audio features: {computed}/{len(features)} windows")
        return context

    def _windows(self, context: dict[str, Any]) -> list[AudioWindow]:
        shots = context.get("shots")
        if shots is not None:
            return [
                AudioWindow(
                    s.start_time if s.start_time is not None else 0.0,
                    s.end_time if s.end_time is not None else 0.0,
                )
                for s in shots
            ]

        frames = context.get("frames") or []
        return frame_windows(len(frames), context_fps(context))
