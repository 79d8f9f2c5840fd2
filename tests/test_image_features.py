"""Tests for image colour and composition features."""
from __future__ import annotations

import cv2
import numpy as np
import pytest

from core.errors import InputValidityError
from features.image import color, composition
from features.image.image_features_handler import ALL_EXTRACTORS, ImageFeaturesHandler, extract_image_features
from models.media import ImageRecord
from utils.pixels import PixelBuffer


def _buf(arr: np.ndarray) -> PixelBuffer:
    return PixelBuffer.from_array(arr)


class TestColor:
    """Tests for colour extractors."""

    def test_mean_and_hex(self, solid_rgb) -> None:
        row = color.color_mean(_buf(solid_rgb((255, 0, 0))))
        assert row["mean_r"] == 1.0
        assert row["mean_g"] == 0.0
        assert row["mean_hex"] == "#FF0000"

    def test_to_hex_rounding(self) -> None:
        assert color.to_hex(0.5, 0.0, 1.0) == "#8000FF"

    def test_brightness(self, solid_rgb) -> None:
        row = color.brightness(_buf(solid_rgb((255, 255, 255))))
        assert row == {"brightness": pytest.approx(1.0), "brightness_std": 0.0}

    def test_saturation(self, solid_rgb) -> None:
        assert color.saturation(_buf(solid_rgb((255, 0, 0))))["saturation_mean"] == 1.0
        assert color.saturation(_buf(solid_rgb((0, 0, 0))))["saturation_mean"] == 0.0

    def test_colourfulness(self, solid_rgb) -> None:
        """Flat gray has zero colourfulness, flat red only the mean term."""
        assert color.colourfulness(_buf(solid_rgb((90, 90, 90))))["colourfulness"] == 0.0
        red = color.colourfulness(_buf(solid_rgb((255, 0, 0))))["colourfulness"]
        assert red == pytest.approx(0.3 * np.hypot(255, 127.5))

    def test_warmth(self, solid_rgb) -> None:
        row = color.warmth(_buf(solid_rgb((255, 0, 0))))
        assert row["warmth"] == pytest.approx(0.5)
        assert row["tint"] == pytest.approx(0.5)
        assert color.warmth(_buf(solid_rgb((0, 0, 0))))["warmth"] == 0.0

    def test_dominant_color(self) -> None:
        """Largest cluster wins."""
        arr = np.zeros((10, 10, 3), dtype=np.uint8)
        arr[:7] = (0, 200, 0)
        arr[7:] = (200, 0, 0)
        row = color.dominant_color(_buf(arr))
        assert row["dominant_color_proportion"] == 1.0

        row = color.dominant_color(_buf(arr), n_colors=2)
        assert (row["dominant_color_r"], row["dominant_color_g"], row["dominant_color_b"]) == (0, 200, 0)
        assert row["dominant_color_hex"] == "#00C800"
        assert row["dominant_color_proportion"] == pytest.approx(0.7)

    def test_variance_and_median(self, solid_rgb) -> None:
        buf = _buf(solid_rgb((10, 20, 30)))
        assert color.color_variance(buf)["color_variance"] == 0.0
        assert color.color_variance(buf)["color_range_r"] == 0.0
        assert color.color_median(buf)["median_hex"] == "#0A141E"

    def test_mode(self, solid_rgb) -> None:
        row = color.color_mode(_buf(solid_rgb((255, 0, 0))))
        assert row["mode_r"] == pytest.approx(31.5 * 8 / 255)
        assert row["mode_g"] == pytest.approx(0.5 * 8 / 255)
        assert row["mode_frequency"] == 1.0

    def test_hue_histogram(self, solid_rgb) -> None:
        red = color.hue_histogram(_buf(solid_rgb((255, 0, 0))))
        assert red["dominant_hue_name"] == "red"
        assert red["dominant_hue"] == 15.0
        assert red["hue_entropy"] == 0.0
        assert red["hue_concentration"] == 1.0

        assert color.hue_histogram(_buf(solid_rgb((0, 0, 255))))["dominant_hue_name"] == "blue"

    def test_hue_histogram_gray(self, solid_rgb) -> None:
        """Unsaturated images have no dominant hue."""
        row = color.hue_histogram(_buf(solid_rgb((128, 128, 128))))
        assert row["dominant_hue"] is None
        assert row["dominant_hue_name"] == "gray"

    def test_moments(self, solid_rgb) -> None:
        row = color.color_moments(_buf(solid_rgb((255, 0, 0))))
        assert row["cm_r_mean"] == 1.0
        assert row["cm_r_std"] == 0.0
        assert row["cm_r_skew"] == 0.0
        assert "cm_l_mean" in color.color_moments(_buf(solid_rgb((255, 0, 0))), color_space="lab")
        with pytest.raises(InputValidityError):
            color.color_moments(_buf(solid_rgb((255, 0, 0))), color_space="hsv")

    def test_skewness_sign(self) -> None:
        assert color.skewness(np.array([0.0, 0.0, 0.0, 1.0])) > 0
        assert color.skewness(np.array([1.0, 1.0, 1.0, 0.0])) < 0


class TestComposition:
    """Tests for composition extractors."""

    def test_fluency_flat(self, solid_rgb) -> None:
        row = composition.fluency(_buf(solid_rgb((100, 100, 100))))
        assert row == {"simplicity": 1.0, "symmetry_h": 1.0, "symmetry_v": 1.0, "balance": 1.0}

    def test_fluency_split(self) -> None:
        """Black left / white right: no horizontal symmetry, unbalanced."""
        arr = np.zeros((48, 64, 3), dtype=np.uint8)
        arr[:, 32:] = 255
        row = composition.fluency(_buf(arr))
        assert row["symmetry_h"] == pytest.approx(0.0)
        assert row["symmetry_v"] == pytest.approx(1.0)
        assert row["balance"] == 0.0
        assert row["simplicity"] == pytest.approx(7 / 8)

    def test_rule_of_thirds(self, solid_rgb) -> None:
        assert composition.rule_of_thirds(_buf(solid_rgb((0, 0, 0))))["rule_of_thirds"] == 0.5
        assert composition.rule_of_thirds(_buf(solid_rgb((0, 0, 0), 2, 2)))["rule_of_thirds"] is None

    def test_rule_of_thirds_bounded(self) -> None:
        rng = np.random.default_rng(1)
        arr = rng.integers(0, 256, size=(60, 90, 3), dtype=np.uint8)
        score = composition.rule_of_thirds(_buf(arr))["rule_of_thirds"]
        assert 0.0 <= score <= 1.0

    def test_visual_complexity(self, solid_rgb) -> None:
        assert composition.visual_complexity(_buf(solid_rgb((50, 50, 50))))["visual_complexity"] == 0.0

        rng = np.random.default_rng(2)
        noisy = rng.integers(0, 256, size=(60, 60, 3), dtype=np.uint8)
        assert composition.visual_complexity(_buf(noisy))["visual_complexity"] > 0.5

    def test_center_bias(self) -> None:
        """Texture only in the centre -> center_bias undefined (flat periphery)."""
        arr = np.zeros((40, 40, 3), dtype=np.uint8)
        arr[15:25, 15:25] = 255
        row = composition.center_bias(_buf(arr))
        assert row["center_brightness"] > row["peripheral_brightness"]
        assert row["center_salience"] > 0
        assert row["center_bias"] is None

    def test_center_bias_flat(self, solid_rgb) -> None:
        row = composition.center_bias(_buf(solid_rgb((80, 80, 80))))
        assert row["center_bias"] is None
        assert row["center_salience"] == 0.0
        assert row["center_brightness"] == pytest.approx(row["peripheral_brightness"])

    def test_skin_tone(self, solid_rgb) -> None:
        assert composition.skin_tone_prop(_buf(solid_rgb((200, 120, 90))))["skin_tone_prop"] == 1.0
        assert composition.skin_tone_prop(_buf(solid_rgb((0, 0, 255))))["skin_tone_prop"] == 0.0


class TestImageFeaturesHandler:
    """Tests for ImageFeaturesHandler."""

    def _write(self, path, arr) -> ImageRecord:
        cv2.imwrite(str(path), cv2.cvtColor(arr, cv2.COLOR_RGB2BGR))
        return ImageRecord(id=path.stem, source=str(path), local_path=str(path))

    def test_extract_all(self, solid_rgb, tmp_path) -> None:
        record = self._write(tmp_path / "a.png", solid_rgb((255, 0, 0)))
        row = extract_image_features(record.local_path)
        assert row["mean_hex"] == "#FF0000"
        assert row["dominant_color_hex"] == "#FF0000"
        assert "skin_tone_prop" in row
        assert "n_faces" not in row

    def test_selected_extractors(self, solid_rgb, tmp_path) -> None:
        record = self._write(tmp_path / "a.png", solid_rgb((255, 0, 0)))
        row = extract_image_features(record.local_path, extractors=["warmth"])
        assert set(row) == {"warmth", "tint"}

    def test_unknown_extractor(self) -> None:
        with pytest.raises(InputValidityError):
            ImageFeaturesHandler(extractors=["sharpness"])

    def test_failed_image_gets_none_row(self, solid_rgb, tmp_path) -> None:
        good = self._write(tmp_path / "a.png", solid_rgb((0, 255, 0)))
        broken = ImageRecord(id="broken", source="x", local_path=str(tmp_path / "broken.png"))

        context = ImageFeaturesHandler(max_workers=2).handle({"images": [good, broken], "warnings": []})
        rows = context["image_features"]

        assert len(rows) == 2
        assert rows[0]["dominant_hue_name"] == "green"
        assert set(rows[1]) == set(rows[0])
        assert all(v is None for v in rows[1].values())
        assert len(context["warnings"]) == 1

    def test_extractor_names(self) -> None:
        assert "dominant_color" in ALL_EXTRACTORS
        assert len(ALL_EXTRACTORS) == len(set(ALL_EXTRACTORS))
