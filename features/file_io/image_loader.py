"""
Загрузка коллекции изображений.

Источник: директория (поиск по расширению), явный список файлов
или манифест CSV/TSV с колонкой `source`. Дополнительные колонки
манифеста сохраняются в ImageRecord.extra.
"""
from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, ClassVar, FrozenSet, Optional, Sequence

import cv2

from core.base_handler import ExtractorHandler
from core.errors import InputValidityError
from models.keys import Key
from models.media import ImageRecord

IMAGE_EXTENSIONS: frozenset[str] = frozenset({
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".tif", ".tiff", ".webp"
})
MANIFEST_EXTENSIONS: frozenset[str] = frozenset({".csv", ".tsv", ".txt"})

# Колонки, которые пересчитываются и не переносятся из манифеста
STANDARD_COLUMNS: frozenset[str] = frozenset({
    "source", "id", "local_path", "width", "height",
    "format", "aspect_ratio", "file_size_bytes",
})


def _scan_directory(directory: Path, recursive: bool) -> list[Path]:
    pattern = "**/*" if recursive else "*"
    return sorted(
        p for p in directory.glob(pattern)
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    )


def _read_manifest(path: Path, preserve_metadata: bool) -> tuple[list[Path], list[dict[str, Any]]]:
    delimiter = "\t" if path.suffix.lower() == ".tsv" else ","
    with open(path, "r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f, delimiter=delimiter)
        if reader.fieldnames is None or "source" not in reader.fieldnames:
            raise InputValidityError("Manifest must contain a 'source' column", {"path": str(path)})
        rows = list(reader)

    files: list[Path] = []
    extras: list[dict[str, Any]] = []
    for row in rows:
        source = Path(row["source"])
        if not source.is_absolute() and not source.exists():
            source = path.parent / source
        if not source.is_file():
            continue
        files.append(source)
        extras.append({
            k: v for k, v in row.items()
            if preserve_metadata and k not in STANDARD_COLUMNS and k is not None
        })

    if not files:
        raise InputValidityError("No valid files found in manifest", {"path": str(path)})
    return files, extras


def describe_image(path: Path, source: Optional[str] = None) -> ImageRecord:
    """ImageRecord с размерами, форматом и размером файла."""
    record = ImageRecord(
        id=path.stem,
        source=source or str(path),
        local_path=str(path.resolve()),
    )

    image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if image is not None:
        record.height, record.width = int(image.shape[0]), int(image.shape[1])
        record.format = path.suffix.lower().lstrip(".") or None
        record.file_size_bytes = path.stat().st_size
    return record


def load_images(
    path: str | Path | Sequence[str | Path],
    recursive: bool = False,
    preserve_metadata: bool = True,
) -> list[ImageRecord]:
    """Таблица изображений из директории, списка файлов или манифеста."""
    extras: list[dict[str, Any]] | None = None

    if isinstance(path, (list, tuple)):
        files = [Path(p) for p in path if Path(p).is_file()]
        if not files:
            raise InputValidityError("No valid files found in provided paths")
    else:
        p = Path(path)
        if p.is_dir():
            files = _scan_directory(p, recursive)
            if not files:
                raise InputValidityError("No images found in directory", {"path": str(p)})
        elif p.is_file() and p.suffix.lower() in MANIFEST_EXTENSIONS:
            files, extras = _read_manifest(p, preserve_metadata)
            print(f"✓ Manifest: {len(files)} images")
        elif p.is_file():
            files = [p]
        else:
            raise InputValidityError("Path does not exist", {"path": str(p)})

    records: list[ImageRecord] = []
    for i, file_path in enumerate(files):
        record = describe_image(file_path, source=str(file_path))
        if record.width is None:
            print(f"⚠️ Cannot read image metadata: {file_path.name}")
        if extras is not None:
            record.extra = extras[i]
        records.append(record)

    return records


class ImageLoadHandler(ExtractorHandler):
    """
    Загружает коллекцию изображений по input_path.

    Provides:
    - images: list[ImageRecord]
    """

    requires: ClassVar[FrozenSet[Key]] = frozenset({Key.INPUT_PATH})
    provides: ClassVar[FrozenSet[Key]] = frozenset({Key.IMAGES})

    def __init__(self, recursive: bool = False, preserve_metadata: bool = True) -> None:
        self.recursive = recursive
        self.preserve_metadata = preserve_metadata

    def handle(self, context: dict[str, Any]) -> dict[str, Any]:
        print("[1] ImageLoadHandler")

        images = load_images(
            context["input_path"],
            recursive=self.recursive,
            preserve_metadata=self.preserve_metadata,
        )
        context["images"] = images

        print(f"✓ Images: {len(images)} loaded")
        return context
