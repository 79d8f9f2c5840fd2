"""Tests for film style: shot scale, camera angle, pacing and rhythm."""
from __future__ import annotations

import math

import numpy as np
import pytest

from core.errors import InputValidityError, InsufficientDataWarning, MissingCapabilityError
from features.film.angle import (
    AngleResult,
    classify_angle,
    classify_angle_gray,
    decide_angle,
    estimate_horizon,
    estimate_tilt,
)
from features.film.faces import FaceBox, face_summary, largest_face
from features.film.film_metrics_handler import FilmMetricsHandler
from features.film.pacing import (
    compute_asl,
    compute_rhythm,
    film_compute_asl,
    film_summarize_scales,
    summarize_scales,
)
from features.film.scale import ShotScaleClassifier, classify_scale
from features.film.shot_style_handler import ShotStyleHandler
from models.shots import CameraAngle, Shot
from utils.pixels import PixelBuffer


class FakeDetector:
    """Detector returning fixed boxes."""

    def __init__(self, boxes: list[FaceBox]) -> None:
        self.boxes = boxes

    def detect(self, buffer: PixelBuffer) -> list[FaceBox]:
        return list(self.boxes)


class BrokenDetector:
    def detect(self, buffer: PixelBuffer) -> list[FaceBox]:
        raise RuntimeError("detector crashed")


class TestScale:
    """Tests for shot scale classification."""

    @pytest.mark.parametrize("coverage, code", [
        (0.56, "ECU"),
        (0.55, "CU"),
        (0.41, "CU"),
        (0.35, "MCU"),
        (0.25, "MS"),
        (0.2, "CS"),
        (0.12, "MFS"),
        (0.06, "FS"),
        (0.03, "WS"),
        (0.02, "EWS"),
        (0.0, "EWS"),
    ])
    def test_thresholds(self, coverage: float, code: str) -> None:
        """Thresholds are strict and checked from ECU down."""
        assert classify_scale(coverage)[0] == code

    def test_missing_coverage(self) -> None:
        """None / NaN coverage gives no class."""
        assert classify_scale(None) == (None, None)
        assert classify_scale(math.nan) == (None, None)

    def test_names(self) -> None:
        assert classify_scale(0.6) == ("ECU", "Extreme Close-Up")

    def test_invalid_method(self) -> None:
        with pytest.raises(InputValidityError):
            ShotScaleClassifier(method="magic")

    def test_face_without_detector(self, monkeypatch) -> None:
        """Explicit face method fails early when no detector exists."""
        monkeypatch.setattr("features.film.scale.default_face_detector", lambda: None)
        with pytest.raises(MissingCapabilityError):
            ShotScaleClassifier(method="face")

    def test_salience_on_flat_image(self, solid_rgb) -> None:
        """Flat image has no salient pixels -> EWS."""
        classifier = ShotScaleClassifier(method="salience")
        result = classifier.classify(PixelBuffer.from_array(solid_rgb((90, 90, 90))))

        assert classifier.effective_method == "salience"
        assert result.subject_coverage == 0.0
        assert result.shot_scale == "EWS"
        assert result.method == "salience"

    def test_face_path(self, solid_rgb) -> None:
        """Largest face area is scaled by the coverage factor."""
        detector = FakeDetector([FaceBox(0, 0, 10, 10), FaceBox(10, 10, 20, 20)])
        classifier = ShotScaleClassifier(method="face", face_detector=detector)
        result = classifier.classify(PixelBuffer.from_array(solid_rgb((90, 90, 90), height=100, width=100)))

        assert result.method == "face"
        assert result.subject_coverage == pytest.approx(0.04)
        assert result.shot_scale == "MFS"

    def test_no_faces_falls_back(self, solid_rgb) -> None:
        """Zero faces -> salience estimate."""
        classifier = ShotScaleClassifier(method="auto", face_detector=FakeDetector([]))
        result = classifier.classify(PixelBuffer.from_array(solid_rgb((90, 90, 90))))
        assert result.method == "salience"

    def test_detector_error_propagates(self, solid_rgb) -> None:
        classifier = ShotScaleClassifier(method="face", face_detector=BrokenDetector())
        with pytest.raises(RuntimeError):
            classifier.classify(PixelBuffer.from_array(solid_rgb((90, 90, 90))))


class TestFaces:
    """Tests for face helpers."""

    def test_largest_face(self) -> None:
        assert largest_face([]) is None
        assert largest_face([FaceBox(0, 0, 2, 2), FaceBox(0, 0, 3, 3)]).area == 9

    def test_face_summary(self, solid_rgb) -> None:
        buf = PixelBuffer.from_array(solid_rgb((0, 0, 0), height=10, width=10))
        summary = face_summary(buf, FakeDetector([FaceBox(0, 0, 5, 5)]))
        assert summary == {"n_faces": 1, "face_area_prop": 0.25}


class TestAngle:
    """Tests for camera angle classification."""

    @pytest.mark.parametrize("tilt, horizon, expected", [
        (20.0, 0.5, CameraAngle.DUTCH_ANGLE),
        (-30.0, 0.9, CameraAngle.DUTCH_ANGLE),
        (80.0, 0.5, CameraAngle.EYE_LEVEL),
        (0.0, None, CameraAngle.BIRDS_EYE),
        (0.0, 0.8, CameraAngle.BIRDS_EYE),
        (0.0, 0.2, CameraAngle.WORMS_EYE),
        (0.0, 0.7, CameraAngle.HIGH_ANGLE),
        (0.0, 0.3, CameraAngle.LOW_ANGLE),
        (0.0, 0.5, CameraAngle.EYE_LEVEL),
        (15.0, 0.5, CameraAngle.EYE_LEVEL),
    ])
    def test_decision_tree(self, tilt, horizon, expected) -> None:
        """First matching rule wins."""
        assert decide_angle(tilt, horizon) is expected

    def test_tilt_median(self) -> None:
        """Line angle is gradient direction minus 90 degrees."""
        a = math.radians(110)
        gx = np.full(12, math.cos(a))
        gy = np.full(12, math.sin(a))
        assert estimate_tilt(gx, gy) == pytest.approx(20.0)

    def test_tilt_needs_ten_edges(self) -> None:
        a = math.radians(110)
        assert estimate_tilt(np.full(9, math.cos(a)), np.full(9, math.sin(a))) == 0.0

    def test_horizon(self) -> None:
        """Bright top 30 rows -> horizon at 0.7."""
        gray = np.zeros((100, 100))
        gray[:30, :] = 1.0
        assert estimate_horizon(gray) == pytest.approx(0.7)
        assert estimate_horizon(np.zeros((5, 5))) == 0.5

    def test_classify_high_angle(self) -> None:
        gray = np.zeros((100, 100))
        gray[:30, :] = 1.0
        result = classify_angle_gray(gray)
        assert result.camera_angle == "high_angle"
        assert result.horizon_position == pytest.approx(0.7)
        assert result.tilt_angle == 0.0

    def test_flat_image_unknown(self, solid_rgb) -> None:
        """No edges -> unknown."""
        result = classify_angle(PixelBuffer.from_array(solid_rgb((120, 120, 120))))
        assert result == AngleResult.unknown()

    def test_tiny_image_unknown(self) -> None:
        assert classify_angle_gray(np.zeros((2, 2))).camera_angle == "unknown"


class TestPacing:
    """Tests for ASL, rhythm and scale distribution."""

    def test_asl(self) -> None:
        """[2, 4, 6] -> ASL 4, 15 shots per minute."""
        summary = compute_asl([2.0, 4.0, 6.0])
        assert summary.asl == 4.0
        assert summary.asl_median == 4.0
        assert summary.asl_std == pytest.approx(2.0)
        assert summary.shot_count == 3
        assert summary.total_duration == 12.0
        assert (summary.shortest_shot, summary.longest_shot) == (2.0, 6.0)
        assert summary.shots_per_minute == pytest.approx(15.0)

    def test_asl_single_and_missing(self) -> None:
        """None durations are skipped; one value has no sd."""
        summary = compute_asl([None, 2.0])
        assert summary.shot_count == 2
        assert summary.asl == 2.0
        assert summary.asl_std is None

    def test_asl_empty(self) -> None:
        with pytest.raises(InputValidityError):
            compute_asl([])

    def test_rhythm_uniform(self) -> None:
        """Equal shots: max entropy, perfect regularity."""
        rhythm = compute_rhythm([1.0, 1.0, 1.0, 1.0])
        assert rhythm.rhythm_entropy == pytest.approx(1.0)
        assert rhythm.rhythm_regularity == pytest.approx(1.0)
        assert rhythm.rhythm_acceleration == pytest.approx(0.0)
        assert rhythm.rhythm_range_ratio == 1.0
        assert rhythm.rhythm_quartile_25 == 1.0
        assert rhythm.rhythm_quartile_75 == 1.0

    def test_rhythm_acceleration(self) -> None:
        """Growing shots -> negative acceleration; n == 2 uses the difference."""
        assert compute_rhythm([2.0, 4.0, 6.0]).rhythm_acceleration == pytest.approx(-2.0)
        assert compute_rhythm([3.0, 1.0]).rhythm_acceleration == pytest.approx(2.0)

    def test_rhythm_zero_min(self) -> None:
        assert compute_rhythm([0.0, 2.0]).rhythm_range_ratio is None

    def test_rhythm_single_shot_warns(self) -> None:
        with pytest.warns(InsufficientDataWarning):
            rhythm = compute_rhythm([3.0])
        assert rhythm.is_empty

    def test_scale_distribution(self) -> None:
        """Canonical order, absent codes omitted."""
        shares = summarize_scales(["WS", "CU", "ECU", "WS"])
        assert [s.shot_scale for s in shares] == ["ECU", "CU", "WS"]
        assert [s.count for s in shares] == [1, 1, 2]
        assert [s.proportion for s in shares] == [0.25, 0.25, 0.5]
        assert shares[2].pct == 50.0

    def test_scale_distribution_unknown_and_none(self) -> None:
        shares = summarize_scales(["XX", None, "CU"])
        assert [s.shot_scale for s in shares] == ["CU", "XX"]
        assert summarize_scales([None]) == []

    def test_table_wrappers(self) -> None:
        """Missing column in dict rows is an input error."""
        assert film_compute_asl([{"duration": 2.0}, {"duration": 4.0}]).asl == 3.0
        with pytest.raises(InputValidityError, match="duration"):
            film_compute_asl([{"shot_id": 1}])
        with pytest.raises(InputValidityError, match="shot_scale"):
            film_summarize_scales([{"duration": 1.0}])


class TestFilmHandlers:
    """Tests for ShotStyleHandler and FilmMetricsHandler."""

    def test_film_metrics_single_shot(self) -> None:
        """Rhythm warning is recorded, not raised."""
        shots = [Shot(shot_id=1, start_frame=1, end_frame=4, duration=2.0)]
        context = FilmMetricsHandler().handle({"shots": shots, "warnings": []})

        assert context["pacing"].asl == 2.0
        assert context["rhythm"].is_empty
        assert context["scale_distribution"] == []
        assert len(context["warnings"]) == 1

    def test_film_metrics_scales(self) -> None:
        shots = [
            Shot(shot_id=i, start_frame=i, end_frame=i, duration=1.0, shot_scale=s)
            for i, s in enumerate(["CU", "CU", "WS"], start=1)
        ]
        context = FilmMetricsHandler().handle({"shots": shots})
        assert [s.shot_scale for s in context["scale_distribution"]] == ["CU", "WS"]

    def test_style_handler(self, solid_rgb, write_frames, tmp_path) -> None:
        """Readable frames are classified, broken ones get None columns."""
        frames = write_frames([solid_rgb((100, 100, 100))])
        shots = [
            Shot(shot_id=1, start_frame=1, end_frame=1, frame_path=frames[0].path),
            Shot(shot_id=2, start_frame=2, end_frame=2, frame_path=str(tmp_path / "missing.png")),
        ]
        handler = ShotStyleHandler(scale_method="salience", max_workers=2)
        context = handler.handle({"shots": shots, "warnings": []})

        first, second = context["shots"]
        assert first.shot_scale == "EWS"
        assert first.camera_angle == "unknown"
        assert second.shot_scale is None
        assert second.camera_angle is None
        assert len(context["warnings"]) == 1
