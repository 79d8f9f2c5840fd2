"""
Serialization utilities for models.

to_jsonable - конвертирует любые объекты в JSON-serializable структуры.
merge_rows / write_table - единственное место, где строки разных
сущностей (шоты, аудио окна, признаки изображений) склеиваются в одну
таблицу перед записью в CSV/JSON.
"""
from __future__ import annotations

import csv
import json
import math
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

import numpy as np
from pydantic import BaseModel

from core.errors import InputValidityError


def to_jsonable(obj: Any) -> Any:
    """Convert any object to JSON-serializable types.

    NaN и inf становятся None: в выходных таблицах пропуск всегда null.
    """
    if obj is None or isinstance(obj, (bool, int, str)):
        return obj

    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None

    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}

    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]

    if isinstance(obj, (set, frozenset)):
        try:
            return [to_jsonable(v) for v in sorted(obj)]
        except TypeError:
            return [to_jsonable(v) for v in sorted(obj, key=str)]

    if is_dataclass(obj) and hasattr(obj, "to_dict"):
        return to_jsonable(obj.to_dict())

    if is_dataclass(obj) and not isinstance(obj, type):
        return to_jsonable(asdict(obj))

    if isinstance(obj, Enum):
        return obj.value

    if isinstance(obj, Path):
        return str(obj)

    if isinstance(obj, np.ndarray):
        return to_jsonable(obj.tolist())
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return to_jsonable(float(obj))
    if isinstance(obj, np.bool_):
        return bool(obj)

    if isinstance(obj, BaseModel):
        return to_jsonable(obj.model_dump())

    if hasattr(obj, "to_dict") and callable(obj.to_dict):
        return to_jsonable(obj.to_dict())

    return str(obj)


def as_row(item: Any) -> dict[str, Any]:
    """Строка таблицы из dataclass / dict."""
    if isinstance(item, Mapping):
        return dict(item)
    if hasattr(item, "to_dict"):
        return item.to_dict()
    if is_dataclass(item) and not isinstance(item, type):
        return asdict(item)
    raise TypeError(f"Cannot convert {type(item).__name__} to a table row")


def merge_rows(base: Sequence[Any], *extra: Sequence[Any]) -> list[dict[str, Any]]:
    """Склеивает таблицы по позиции строки.

    Колонки base имеют приоритет: дополнительные таблицы не перезаписывают
    уже существующие значения.
    """
    rows = [as_row(item) for item in base]
    for table in extra:
        if len(table) != len(rows):
            raise InputValidityError(
                "Cannot merge tables with different row counts",
                {"expected": len(rows), "got": len(table)},
            )
        for row, item in zip(rows, table):
            for key, value in as_row(item).items():
                row.setdefault(key, value)
    return rows


def table_columns(rows: Iterable[Mapping[str, Any]]) -> list[str]:
    """Колонки в порядке первого появления."""
    columns: list[str] = []
    seen: set[str] = set()
    for row in rows:
        for key in row:
            if key not in seen:
                seen.add(key)
                columns.append(key)
    return columns


def write_table(rows: Sequence[Any], path: str | Path) -> Path:
    """Пишет строки в CSV (.csv/.tsv) или JSON (по расширению)."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    data = [to_jsonable(as_row(r)) for r in rows]

    suffix = out.suffix.lower()
    if suffix == ".json":
        to_json_file(data, str(out))
        return out

    delimiter = "\t" if suffix == ".tsv" else ","
    columns = table_columns(data)
    with open(out, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns, delimiter=delimiter, restval="NA")
        writer.writeheader()
        for row in data:
            writer.writerow({k: ("NA" if v is None else v) for k, v in row.items()})
    return out


def from_json_file(path: str) -> Any:
    """Загружает JSON из файла."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def to_json_file(obj: Any, path: str, indent: int = 2) -> None:
    """Сохраняет объект в JSON файл."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(to_jsonable(obj), f, indent=indent, ensure_ascii=False)


def to_json_str(obj: Any, indent: int | None = None) -> str:
    """Конвертирует объект в JSON строку."""
    return json.dumps(to_jsonable(obj), indent=indent, ensure_ascii=False)
