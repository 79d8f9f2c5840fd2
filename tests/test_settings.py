"""Tests for settings, initial context and CLI wiring."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from config.settings import ShotLensSettings, build_initial_context
from core.errors import InputValidityError, MissingCapabilityError
from features.audio.audio_segment_handler import AudioSegmentHandler
from features.file_io import ffmpeg_tools
from features.film.shot_style_handler import ShotStyleHandler
from features.shots.shot_detection_handler import ShotDetectionHandler
from main import build_image_handlers, build_video_handlers, parse_args


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Изолирует тесты от .env и переменных окружения."""
    monkeypatch.chdir(tmp_path)
    for name in ("SHOTLENS_INPUT_VIDEO_PATH", "SHOTLENS_ANALYSIS_FPS", "SHOTLENS_SCALE_METHOD"):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    """Tests for ShotLensSettings."""

    def test_defaults(self) -> None:
        settings = ShotLensSettings()
        assert settings.analysis_fps == 2.0
        assert settings.shot_threshold == 0.5
        assert settings.histogram_bins == 16
        assert settings.representative_position == "middle"
        assert settings.face_coverage_factor == 3.0

    def test_env_override(self, monkeypatch) -> None:
        monkeypatch.setenv("SHOTLENS_ANALYSIS_FPS", "5")
        assert ShotLensSettings().analysis_fps == 5.0

    def test_validation(self) -> None:
        with pytest.raises(ValidationError):
            ShotLensSettings(representative_position="center")
        with pytest.raises(ValidationError):
            ShotLensSettings(scale_method="magic")
        with pytest.raises(ValidationError):
            ShotLensSettings(analysis_fps=0)

    def test_initial_context(self) -> None:
        context = build_initial_context(ShotLensSettings(), "clip.mp4")
        assert context["input_path"] == "clip.mp4"
        assert context["analysis_fps"] == 2.0
        assert context["warnings"] == []

    def test_initial_context_requires_path(self) -> None:
        with pytest.raises(InputValidityError):
            build_initial_context(ShotLensSettings(), "")


class TestCli:
    """Tests for argument parsing and handler lists."""

    def test_parse_shots(self) -> None:
        args = parse_args(["shots", "a.mp4", "b.mp4", "--fps", "4", "--no-audio", "--position", "first"])
        assert args.command == "shots"
        assert args.videos == ["a.mp4", "b.mp4"]
        assert args.fps == 4.0
        assert args.no_audio
        assert not args.no_style
        assert args.position == "first"

    def test_parse_images(self) -> None:
        args = parse_args(["images", "photos", "--output", "out.csv"])
        assert (args.command, args.path, args.output) == ("images", "photos", "out.csv")

    def test_video_handlers(self, monkeypatch) -> None:
        monkeypatch.setattr(ffmpeg_tools, "_AVAILABLE", {"ffmpeg": True})
        settings = ShotLensSettings(scale_method="salience")
        names = [h.name for h in build_video_handlers(settings)]
        assert names == [
            "ReadFileHandler",
            "VideoMetaHandler",
            "FrameSamplingHandler",
            "ShotDetectionHandler",
            "ShotStyleHandler",
            "AudioExtractHandler",
            "AudioSegmentHandler",
        ]

    def test_video_handlers_minimal(self) -> None:
        handlers = build_video_handlers(ShotLensSettings(), include_style=False, include_audio=False)
        assert isinstance(handlers[-1], ShotDetectionHandler)
        assert not any(isinstance(h, (ShotStyleHandler, AudioSegmentHandler)) for h in handlers)

    def test_audio_handlers_need_ffmpeg(self, no_ffmpeg) -> None:
        """Missing ffmpeg is reported while building, before any video work."""
        with pytest.raises(MissingCapabilityError):
            build_video_handlers(ShotLensSettings())

    def test_image_handlers(self) -> None:
        assert [h.name for h in build_image_handlers(ShotLensSettings())] == [
            "ImageLoadHandler", "ImageFeaturesHandler",
        ]
