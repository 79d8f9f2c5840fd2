"""
Общие вызовы ffmpeg / ffprobe: проверка наличия и запуск с таймаутом.
"""
from __future__ import annotations

import shutil
import subprocess
from typing import Optional

from core.errors import ExternalFailureError, MissingCapabilityError

_AVAILABLE: dict[str, bool] = {}

INSTALL_HINT = "Install: https://ffmpeg.org/download.html"


def tool_available(tool: str) -> bool:
    """Проверяет (с кэшем), что ffmpeg / ffprobe запускается."""
    if tool in _AVAILABLE:
        return _AVAILABLE[tool]

    if shutil.which(tool) is None:
        _AVAILABLE[tool] = False
        return False

    try:
        subprocess.run([tool, "-version"], capture_output=True, check=True, timeout=30)
        _AVAILABLE[tool] = True
    except (FileNotFoundError, subprocess.CalledProcessError, subprocess.TimeoutExpired):
        _AVAILABLE[tool] = False

    return _AVAILABLE[tool]


def require_tool(tool: str) -> None:
    if not tool_available(tool):
        raise MissingCapabilityError(f"{tool} not found. {INSTALL_HINT}", {"tool": tool})


def run_tool(cmd: list[str], timeout: Optional[float] = None) -> subprocess.CompletedProcess:
    """Запускает команду; ошибка или таймаут -> ExternalFailureError."""
    try:
        return subprocess.run(cmd, capture_output=True, text=True, check=True, timeout=timeout)
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip().splitlines()
        raise ExternalFailureError(
            f"{cmd[0]} failed",
            {"returncode": e.returncode, "stderr": stderr[-1] if stderr else ""},
        ) from e
    except subprocess.TimeoutExpired as e:
        raise ExternalFailureError(f"{cmd[0]} timed out", {"timeout": timeout}) from e
