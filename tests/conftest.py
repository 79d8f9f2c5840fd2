"""Pytest configuration and fixtures."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Добавляем корень проекта в path
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture
def sample_context() -> dict:
    """Sample context for testing handlers."""
    return {
        "input_path": "/path/to/video.mp4",
        "video_path": "/path/to/video.mp4",
        "duration_seconds": 10.0,
        "fps": 25.0,
        "analysis_fps": 2.0,
        "frame_count": 250,
        "warnings": [],
    }


@pytest.fixture
def solid_rgb():
    """Фабрика однотонных RGB массивов (H x W x 3, uint8)."""
    import numpy as np

    def make(color: tuple[int, int, int], height: int = 48, width: int = 64):
        arr = np.zeros((height, width, 3), dtype=np.uint8)
        arr[:, :] = color
        return arr

    return make


@pytest.fixture
def write_frames(tmp_path: Path):
    """Пишет RGB массивы в PNG и возвращает list[Frame] (index 1..N)."""
    import cv2

    from models.media import Frame

    def write(arrays, prefix: str = "frame") -> list:
        frames = []
        for i, arr in enumerate(arrays, start=1):
            path = tmp_path / f"{prefix}_{i:06d}.png"
            cv2.imwrite(str(path), cv2.cvtColor(arr, cv2.COLOR_RGB2BGR))
            frames.append(Frame(index=i, image_id=path.stem, path=str(path)))
        return frames

    return write


@pytest.fixture
def square_wave_pcm():
    """Меандр +-32767 с периодом 2 сэмпла, 1 секунда при 16 кГц."""
    import numpy as np

    rate = 16000
    samples = np.tile(np.array([32767, -32767], dtype=np.int16), rate // 2)
    return samples, rate


@pytest.fixture
def synthetic_video(tmp_path: Path) -> Path:
    """10 кадров MJPG 64x48 при 10 fps: 5 красных, 5 синих."""
    import cv2
    import numpy as np

    path = tmp_path / "clip.avi"
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (64, 48))
    if not writer.isOpened():
        pytest.skip("OpenCV build cannot write MJPG video")

    for i in range(10):
        frame = np.zeros((48, 64, 3), dtype=np.uint8)
        frame[:, :] = (0, 0, 255) if i < 5 else (255, 0, 0)
        writer.write(frame)
    writer.release()
    return path


@pytest.fixture
def no_ffmpeg(monkeypatch):
    """Имитирует машину без ffmpeg / ffprobe."""
    from features.file_io import ffmpeg_tools

    monkeypatch.setattr(ffmpeg_tools, "_AVAILABLE", {"ffmpeg": False, "ffprobe": False})
