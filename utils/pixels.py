"""
PixelBuffer - единое представление декодированного изображения.

Внутри всегда RGB uint8 массив формы (height, width, 3), строки сверху вниз.
Все анализаторы работают только через этот адаптер.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np

from core.errors import ExternalFailureError, InputValidityError


@dataclass(frozen=True, slots=True)
class PixelBuffer:
    """Декодированное RGB изображение (H x W x 3, uint8)."""

    data: np.ndarray

    @classmethod
    def from_array(cls, array: np.ndarray) -> PixelBuffer:
        """Создаёт буфер из массива: gray (H, W), RGB или RGBA."""
        arr = np.asarray(array)
        if arr.ndim == 2:
            arr = np.stack([arr, arr, arr], axis=-1)
        elif arr.ndim == 3 and arr.shape[2] == 4:
            arr = arr[:, :, :3]
        elif arr.ndim == 3 and arr.shape[2] == 1:
            arr = np.repeat(arr, 3, axis=2)

        if arr.ndim != 3 or arr.shape[2] != 3:
            raise InputValidityError("Unsupported pixel array shape", {"shape": tuple(arr.shape)})
        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise InputValidityError("Empty image", {"shape": tuple(arr.shape)})

        if arr.dtype != np.uint8:
            arr = np.clip(arr, 0, 255).astype(np.uint8)
        return cls(data=np.ascontiguousarray(arr))

    @classmethod
    def from_bgr(cls, frame: np.ndarray) -> PixelBuffer:
        """Создаёт буфер из кадра OpenCV (BGR)."""
        return cls.from_array(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))

    @classmethod
    def from_path(cls, path: str | Path) -> PixelBuffer:
        """Декодирует файл изображения."""
        frame = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if frame is None:
            raise ExternalFailureError("Cannot decode image", {"path": str(path)})
        return cls.from_bgr(frame)

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def area(self) -> int:
        return self.width * self.height

    def resize_max(self, max_dim: int | None) -> PixelBuffer:
        """Уменьшает так, чтобы большая сторона была <= max_dim (без увеличения)."""
        if not max_dim or max_dim <= 0:
            return self

        current_max = max(self.width, self.height)
        if current_max <= max_dim:
            return self

        scale = max_dim / current_max
        new_w = max(1, int(round(self.width * scale)))
        new_h = max(1, int(round(self.height * scale)))
        resized = cv2.resize(self.data, (new_w, new_h), interpolation=cv2.INTER_AREA)
        return PixelBuffer(data=resized)

    def channel(self, name: str) -> np.ndarray:
        """Канал 'r', 'g' или 'b' как uint8 матрица."""
        idx = {"r": 0, "g": 1, "b": 2}.get(name.lower())
        if idx is None:
            raise InputValidityError("Unknown channel", {"channel": name})
        return self.data[:, :, idx]

    def to_gray(self) -> np.ndarray:
        """Яркость в [0, 1] (float64, H x W)."""
        gray = cv2.cvtColor(self.data, cv2.COLOR_RGB2GRAY)
        return gray.astype(np.float64) / 255.0

    def to_float(self) -> np.ndarray:
        """RGB в [0, 1] (float64, H x W x 3)."""
        return self.data.astype(np.float64) / 255.0

    def to_hsv(self) -> np.ndarray:
        """HSV: H в градусах [0, 360), S и V в [0, 1]."""
        hsv = cv2.cvtColor(self.to_float().astype(np.float32), cv2.COLOR_RGB2HSV)
        return hsv.astype(np.float64)
