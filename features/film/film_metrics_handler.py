from __future__ import annotations

import warnings
from typing import Any, ClassVar, FrozenSet

from core.base_handler import AnalyzerHandler
from core.errors import InsufficientDataWarning
from features.film.pacing import film_compute_asl, film_compute_rhythm, film_summarize_scales
from models.keys import Key


class FilmMetricsHandler(AnalyzerHandler):
    """
    Метрики монтажа по готовому списку шотов.

    Пишет в context:
      - pacing: PacingSummary (asl, asl_median, ..., shots_per_minute)
      - rhythm: RhythmSummary (пустой при < 2 шотах, с предупреждением)
      - scale_distribution: list[ScaleShare]
    """

    requires: ClassVar[FrozenSet[Key]] = frozenset({Key.SHOTS})
    provides: ClassVar[FrozenSet[Key]] = frozenset({Key.PACING, Key.RHYTHM, Key.SCALE_DISTRIBUTION})

    def handle(self, context: dict[str, Any]) -> dict[str, Any]:
        print("[8] FilmMetricsHandler")

        shots = context["shots"]

        pacing = film_compute_asl(shots)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", InsufficientDataWarning)
            rhythm = film_compute_rhythm(shots)
        for w in caught:
            print(f"⚠️ {w.message}")
            context.setdefault("warnings", []).append(str(w.message))

        has_scales = any(s.shot_scale is not None for s in shots)
        scale_distribution = film_summarize_scales(shots) if has_scales else []

        context["pacing"] = pacing
        context["rhythm"] = rhythm
        context["scale_distribution"] = scale_distribution

        asl = f"{pacing.asl:.2f}s" if pacing.asl is not None else "n/a"
        print(f"✓ Film metrics: ASL {asl}, {pacing.shot_count} shots, "
              f"{len(scale_distribution)} scale classes")
        return context
