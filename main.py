import argparse
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Sequence

from config.settings import Context, ShotLensSettings, build_initial_context
from core.base_handler import BaseHandler
from core.pipeline import run_pipeline

from features.audio.audio_segment_handler import AudioSegmentHandler
from features.film.film_metrics_handler import FilmMetricsHandler
from features.film.shot_style_handler import ShotStyleHandler
from features.file_io.audio_extract_handler import AudioExtractHandler
from features.file_io.frame_sampling_handler import FrameSamplingHandler
from features.file_io.image_loader import ImageLoadHandler
from features.file_io.read_file_handler import ReadFileHandler
from features.file_io.video_meta_handler import VideoMetaHandler
from features.image.image_features_handler import ImageFeaturesHandler
from features.shots.segmenter import renumber_shots
from features.shots.shot_detection_handler import ShotDetectionHandler
from models.serde import as_row, merge_rows, to_json_file, write_table


def print_summary(context: dict[str, Any]) -> None:
    print("\n" + "=" * 80)
    print("SUMMARY")
    print("=" * 80)

    shots = context.get("shots")
    if shots is not None:
        print(f"Shots:           {len(shots)}")

    pacing = context.get("pacing")
    if pacing is not None and pacing.asl is not None:
        print("Pacing:")
        print(f"   ASL:          {pacing.asl:.2f}s")
        print(f"   Median:       {pacing.asl_median:.2f}s")
        if pacing.shots_per_minute is not None:
            print(f"   Shots/min:    {pacing.shots_per_minute:.1f}")

    rhythm = context.get("rhythm")
    if rhythm is not None and not rhythm.is_empty:
        print("Rhythm:")
        if rhythm.rhythm_regularity is not None:
            print(f"   Regularity:   {rhythm.rhythm_regularity:.3f}")
        if rhythm.rhythm_entropy is not None:
            print(f"   Entropy:      {rhythm.rhythm_entropy:.3f}")
        print(f"   Acceleration: {rhythm.rhythm_acceleration:+.3f}")

    scale_distribution = context.get("scale_distribution") or []
    if scale_distribution:
        print("Shot scales:")
        for share in scale_distribution:
            print(f"   {share.shot_scale:<4} {share.count:>4}  ({share.pct:.1f}%)")

    images = context.get("image_features")
    if images is not None:
        print(f"Images:          {len(images)}")

    total_time = context.get("processing_time_seconds")
    if total_time is not None:
        print(f"Total time:      {total_time:.2f}s")

    warnings = context.get("warnings") or []
    if warnings:
        print(f"Warnings:        {len(warnings)}")


def build_video_handlers(settings: ShotLensSettings, include_style: bool = True,
                         include_angle: bool = True, include_audio: bool = True) -> list[BaseHandler]:
    """Пайплайн одного видео: от файла до шотов с признаками."""
    handlers: list[BaseHandler] = [
        ReadFileHandler(max_file_size_gb=settings.max_file_size_gb),
        VideoMetaHandler(timeout_seconds=settings.ffmpeg_timeout_seconds),
        FrameSamplingHandler(
            fps=settings.analysis_fps,
            frames_dir=settings.frames_dir,
            timeout_seconds=settings.ffmpeg_timeout_seconds,
        ),
        ShotDetectionHandler(
            threshold=settings.shot_threshold,
            bins=settings.histogram_bins,
            downsample=settings.histogram_downsample,
            position=settings.representative_position,
            max_workers=settings.num_workers,
        ),
    ]

    if include_style:
        handlers.append(
            ShotStyleHandler(
                include_angle=include_angle,
                scale_method=settings.scale_method,
                scale_downsample=settings.scale_downsample,
                face_coverage_factor=settings.face_coverage_factor,
                angle_downsample=settings.angle_downsample,
                max_workers=settings.num_workers,
            )
        )

    if include_audio:
        handlers.extend([
            AudioExtractHandler(
                temp_dir=settings.temp_dir,
                sample_rate=settings.audio_sample_rate,
                timeout_seconds=settings.ffmpeg_timeout_seconds,
            ),
            AudioSegmentHandler(max_workers=settings.num_workers),
        ])

    return handlers


def build_image_handlers(settings: ShotLensSettings) -> list[BaseHandler]:
    return [
        ImageLoadHandler(),
        ImageFeaturesHandler(
            downsample=settings.image_downsample,
            dominant_color_downsample=settings.dominant_color_downsample,
            max_workers=settings.num_workers,
        ),
    ]


def analyze_videos(
    video_paths: Sequence[str],
    settings: ShotLensSettings,
    include_style: bool = True,
    include_angle: bool = True,
    include_audio: bool = True,
) -> dict[str, Any]:
    """
    Прогоняет каждое видео через свой пайплайн, склеивает шоты
    и считает метрики монтажа по всей коллекции.

    Возвращает контекст с ключами shots, shot_rows, pacing, rhythm,
    scale_distribution, warnings.
    """
    start = time.monotonic()

    # Проверка возможностей (ffmpeg для аудио) до обработки первого видео
    handlers = build_video_handlers(settings, include_style, include_angle, include_audio)

    per_video_shots = []
    shot_rows: list[dict[str, Any]] = []
    warnings: list[str] = []

    for i, video_path in enumerate(video_paths, start=1):
        print(f"\n--- Video {i}/{len(video_paths)}: {video_path}")
        context: Context = build_initial_context(settings=settings, input_path=video_path)
        context = run_pipeline(context, handlers)

        shots = context["shots"]
        per_video_shots.append(shots)
        warnings.extend(context.get("warnings") or [])

        if include_audio:
            rows = merge_rows(shots, context["audio_window_features"])
        else:
            rows = [as_row(s) for s in shots]
        shot_rows.extend(rows)

    all_shots = renumber_shots(per_video_shots)
    for row, shot in zip(shot_rows, all_shots):
        row["shot_id"] = shot.shot_id

    result: dict[str, Any] = {"shots": all_shots, "warnings": warnings}
    result = run_pipeline(result, [FilmMetricsHandler()])

    result["shot_rows"] = shot_rows
    result["processing_time_seconds"] = time.monotonic() - start
    return result


def analyze_images(path: str, settings: ShotLensSettings) -> dict[str, Any]:
    start = time.monotonic()
    context: dict[str, Any] = {"input_path": path, "warnings": []}
    context = run_pipeline(context, build_image_handlers(settings))

    context["image_rows"] = merge_rows(context["images"], context["image_features"])
    context["processing_time_seconds"] = time.monotonic() - start
    return context


def _default_output(output_dir: str, stem: str) -> Path:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return Path(output_dir) / f"{stem}_{timestamp}.csv"


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Film and image feature extraction")
    sub = parser.add_subparsers(dest="command", required=True)

    shots = sub.add_parser("shots", help="Детект шотов, стиль, аудио и метрики монтажа")
    shots.add_argument("videos", nargs="+", help="Пути к видеофайлам")
    shots.add_argument("--fps", type=float, default=None, help="Частота сэмплирования кадров")
    shots.add_argument("--threshold", type=float, default=None, help="Порог расстояния гистограмм")
    shots.add_argument("--position", choices=["first", "middle", "last"], default=None)
    shots.add_argument("--no-style", action="store_true", help="Без крупности и ракурса")
    shots.add_argument("--no-angle", action="store_true", help="Без ракурса")
    shots.add_argument("--no-audio", action="store_true", help="Без аудио признаков")
    shots.add_argument("--output", default=None, help="CSV/TSV/JSON для таблицы шотов")

    images = sub.add_parser("images", help="Цветовые и композиционные признаки изображений")
    images.add_argument("path", help="Директория, файл или манифест CSV/TSV")
    images.add_argument("--output", default=None, help="CSV/TSV/JSON для таблицы изображений")

    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)

    overrides: dict[str, Any] = {}
    if getattr(args, "fps", None) is not None:
        overrides["analysis_fps"] = args.fps
    if getattr(args, "threshold", None) is not None:
        overrides["shot_threshold"] = args.threshold
    if getattr(args, "position", None) is not None:
        overrides["representative_position"] = args.position
    settings = ShotLensSettings(**overrides)

    print(f"\nStarting {args.command} pipeline...")
    print("-" * 50)

    start = time.monotonic()
    try:
        if args.command == "shots":
            context = analyze_videos(
                args.videos,
                settings,
                include_style=settings.include_style and not args.no_style,
                include_angle=settings.include_angle and not args.no_angle,
                include_audio=settings.include_audio and not args.no_audio,
            )
            rows = context["shot_rows"]
            stem = Path(args.videos[0]).stem if len(args.videos) == 1 else "shots"
        else:
            context = analyze_images(args.path, settings)
            rows = context["image_rows"]
            stem = Path(args.path).stem or "images"
        print("\nPipeline completed successfully!")
    except Exception as exc:
        print(f"\nPipeline failed after {time.monotonic() - start:.2f}s: {exc}")
        raise

    print_summary(context)

    output = Path(args.output) if args.output else _default_output(settings.output_dir, stem)
    write_table(rows, output)
    print(f"\n✓ Table saved to: {output}")

    if args.command == "shots":
        summary_file = output.with_name(f"{output.stem}_summary.json")
        to_json_file({
            "pacing": context["pacing"],
            "rhythm": context["rhythm"],
            "scale_distribution": context["scale_distribution"],
            "warnings": context["warnings"],
        }, str(summary_file))
        print(f"✓ Summary saved to: {summary_file}")


if __name__ == "__main__":
    main()
