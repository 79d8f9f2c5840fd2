"""
Audio Segment Analyzer - признаки громкости и спектра по временным окнам.

Вход: моно PCM int16 и частота дискретизации. Окна задаются
(start_time, end_time) шота или кадра.
"""
from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from core.batch import ItemResult, map_items
from core.errors import InputValidityError
from models.audio import AudioWindow, AudioWindowFeatures

PCM16_SCALE = 32768.0
SILENCE_THRESHOLD = 10 ** (-60 / 20)
MIN_SPECTRAL_SAMPLES = 512
LOW_FREQ_HZ = 500.0
HIGH_FREQ_HZ = 4000.0


def window_sample_range(window: AudioWindow, sample_rate: int, n_samples: int) -> tuple[int, int]:
    """1-based включительный диапазон сэмплов окна."""
    start = max(1, math.floor(window.start_time * sample_rate) + 1)
    end = min(n_samples, math.ceil(window.end_time * sample_rate))
    return start, end


def frame_windows(n_frames: int, fps: float) -> list[AudioWindow]:
    """Окна кадров: i-й кадр покрывает ((i-1)/fps, i/fps)."""
    if fps is None or fps <= 0:
        raise InputValidityError("fps must be positive", {"fps": fps})
    return [AudioWindow((i - 1) / fps, i / fps) for i in range(1, n_frames + 1)]


def spectral_features(segment: np.ndarray, sample_rate: int) -> tuple[float | None, float | None, float | None]:
    """(low_freq_energy, high_freq_energy, spectral_centroid) или None."""
    if segment.size < MIN_SPECTRAL_SAMPLES:
        return None, None, None

    fft_size = 2 ** int(math.floor(math.log2(segment.size)))
    k = np.arange(fft_size, dtype=np.float64)
    window = 0.5 * (1.0 - np.cos(2.0 * np.pi * k / (fft_size - 1)))
    windowed = segment[:fft_size] * window

    power = np.abs(np.fft.fft(windowed)[: fft_size // 2]) ** 2
    freqs = np.linspace(0.0, sample_rate / 2.0, power.size)

    total = float(power.sum())
    if total <= 0:
        return None, None, None

    low = float(power[freqs < LOW_FREQ_HZ].sum()) / total
    high = float(power[freqs > HIGH_FREQ_HZ].sum()) / total
    centroid = float(np.sum(freqs * power)) / total
    return round(low, 4), round(high, 4), round(centroid, 1)


def compute_window_features(
    samples: np.ndarray,
    sample_rate: int,
    window: AudioWindow,
) -> AudioWindowFeatures:
    """Семь признаков одного окна; пустое/перевёрнутое окно -> все None."""
    start, end = window_sample_range(window, sample_rate, len(samples))
    if end <= start:
        return AudioWindowFeatures.empty()

    segment = np.asarray(samples[start - 1:end], dtype=np.float64) / PCM16_SCALE

    rms = float(np.sqrt(np.mean(segment ** 2)))
    peak = float(np.max(np.abs(segment)))
    crossings = int(np.sum(np.abs(np.diff(np.sign(segment))) == 2))
    zcr = crossings / (segment.size - 1)
    silence_ratio = float(np.mean(np.abs(segment) < SILENCE_THRESHOLD))

    low, high, centroid = spectral_features(segment, sample_rate)

    return AudioWindowFeatures(
        audio_rms=rms,
        audio_peak=peak,
        audio_zcr=zcr,
        audio_silence_ratio=silence_ratio,
        audio_low_freq_energy=low,
        audio_high_freq_energy=high,
        audio_spectral_centroid=centroid,
    )


def analyze_audio_windows(
    samples: np.ndarray,
    sample_rate: int,
    windows: Sequence[AudioWindow],
    max_workers: int = 1,
) -> list[ItemResult[AudioWindowFeatures]]:
    """Признаки для каждого окна; порядок результатов = порядок окон."""
    if sample_rate <= 0:
        raise InputValidityError("sample_rate must be positive", {"sample_rate": sample_rate})
    data = np.asarray(samples)
    if data.ndim != 1:
        raise InputValidityError("Audio must be mono", {"shape": tuple(data.shape)})

    return map_items(
        windows,
        lambda w: compute_window_features(data, sample_rate, w),
        max_workers=max_workers,
    )
