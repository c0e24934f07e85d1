# vizboard/services/csv_service.py
"""
CSV ingestion.

Files are streamed through ``pandas.read_csv`` in fixed-size chunks with every
cell read as text, then coerced cell by cell: empty cells become ``None``,
strings that read as a finite decimal number become ``int``/``float``, and
everything else is kept verbatim. Column order follows the file header.

No index or cache is kept, so each call is one full pass over the file.
"""

import math
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import pandas as pd

from vizboard.core.config import settings
from vizboard.utils.exceptions import (
    CsvReadError,
    ResourceNotFoundError,
    ValidationError,
)
from vizboard.utils.logger import get_logger, Timer

logger = get_logger(__name__)

NUMBER_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")


def coerce_cell(value: Any) -> Any:
    """Map one raw cell to None, a number, or the original string"""
    if value is None:
        return None

    if not isinstance(value, str):
        # pandas fills cells missing from short rows with NaN
        if isinstance(value, float) and math.isnan(value):
            return None
        return value

    if value == "":
        return None

    stripped = value.strip()
    if NUMBER_PATTERN.match(stripped):
        if INTEGER_PATTERN.match(stripped):
            return int(stripped)
        number = float(stripped)
        if math.isfinite(number):
            return number

    return value


def _clean_record(record: Dict[str, Any]) -> Dict[str, Any]:
    return {str(key): coerce_cell(value) for key, value in record.items()}


def validate_csv_file(csv_path: str) -> os.stat_result:
    """Make sure the path names an existing regular file and return its stat"""
    path = Path(csv_path)
    if not path.exists() or not path.is_file():
        logger.warning("CSV file not found", csv_path=str(csv_path))
        raise ResourceNotFoundError("CSV file", str(csv_path))
    return path.stat()


def _read_options() -> Dict[str, Any]:
    return {
        "dtype": str,
        "keep_default_na": False,
        # Rows with a trailing delimiter must not turn the first column into the index
        "index_col": False,
        "encoding": settings.csv.encoding,
    }


def _iter_chunks(csv_path: str) -> Iterator[pd.DataFrame]:
    """Yield the file as DataFrames of at most ``chunk_size`` rows"""
    try:
        reader = pd.read_csv(
            csv_path, chunksize=settings.csv.chunk_size, **_read_options()
        )
    except pd.errors.EmptyDataError:
        return
    except (OSError, ValueError) as e:
        raise CsvReadError(str(csv_path), str(e))

    with reader:
        try:
            for chunk in reader:
                yield chunk
        except (OSError, ValueError) as e:
            raise CsvReadError(str(csv_path), str(e))


def _iter_rows(csv_path: str) -> Iterator[Dict[str, Any]]:
    for chunk in _iter_chunks(csv_path):
        for record in chunk.to_dict(orient="records"):
            yield _clean_record(record)


def read_headers(csv_path: str) -> List[str]:
    """Column names in file order; an empty file has none"""
    try:
        frame = pd.read_csv(csv_path, nrows=0, **_read_options())
    except pd.errors.EmptyDataError:
        return []
    except (OSError, ValueError) as e:
        raise CsvReadError(str(csv_path), str(e))
    return [str(column) for column in frame.columns]


def read_all(csv_path: str) -> List[Dict[str, Any]]:
    """Read every row of the file"""
    validate_csv_file(csv_path)
    logger.debug("Starting CSV read", csv_path=str(csv_path))

    with Timer(logger, "csv.read_all", csv_path=str(csv_path)) as timer:
        rows = list(_iter_rows(csv_path))
        timer.rows = len(rows)

    return rows


def read_columns(csv_path: str, columns: List[str]) -> List[Dict[str, Any]]:
    """Read every row, keeping only the named columns that exist"""
    validate_csv_file(csv_path)

    if not columns:
        raise ValidationError("At least one column must be specified", "columns")

    wanted = list(dict.fromkeys(columns))
    logger.debug("Reading CSV columns", csv_path=str(csv_path), columns=wanted)

    with Timer(logger, "csv.read_columns", csv_path=str(csv_path)) as timer:
        rows = [
            {column: row[column] for column in wanted if column in row}
            for row in _iter_rows(csv_path)
        ]
        timer.rows = len(rows)

    logger.info(
        "CSV columns read completed",
        csv_path=str(csv_path),
        columns=len(wanted),
        record_count=len(rows),
    )
    return rows


def normalize_page(page: Any, limit: Any) -> tuple:
    """Clamp page to >= 1 and limit to [1, max_page_size]"""
    page_num = max(1, int(page))
    limit_num = min(settings.csv.max_page_size, max(1, int(limit)))
    return page_num, limit_num


def build_pagination(page: int, limit: int, total_rows: int) -> Dict[str, Any]:
    """Pagination block shared by CSV pages and inline dataset pages"""
    start = (page - 1) * limit
    end = start + limit
    return {
        "page": page,
        "limit": limit,
        "totalRows": total_rows,
        "totalPages": math.ceil(total_rows / limit) if limit else 0,
        "hasNext": total_rows > end,
        "hasPrev": page > 1,
        "startRow": start + 1,
        "endRow": min(end, total_rows),
    }


def read_page(
    csv_path: str, page: int = 1, limit: Optional[int] = None
) -> Dict[str, Any]:
    """
    Read one page of rows.

    The whole file is streamed to count rows; only rows inside
    ``[(page - 1) * limit, page * limit)`` are converted and returned.
    """
    validate_csv_file(csv_path)
    page, limit = normalize_page(page, limit or settings.csv.default_page_size)
    start = (page - 1) * limit
    end = start + limit

    logger.debug(
        "Reading CSV with pagination",
        csv_path=str(csv_path),
        page=page,
        limit=limit,
    )

    rows: List[Dict[str, Any]] = []
    total = 0
    with Timer(logger, "csv.read_page", csv_path=str(csv_path)) as timer:
        for chunk in _iter_chunks(csv_path):
            chunk_start = total
            total += len(chunk)
            lo, hi = max(start, chunk_start), min(end, total)
            if lo < hi:
                window = chunk.iloc[lo - chunk_start : hi - chunk_start]
                rows.extend(
                    _clean_record(record)
                    for record in window.to_dict(orient="records")
                )
        timer.rows = total

    pagination = build_pagination(page, limit, total)
    logger.info(
        "CSV pagination completed",
        csv_path=str(csv_path),
        returned_rows=len(rows),
        **pagination,
    )
    return {"data": rows, "pagination": pagination}


def format_file_size(size: int) -> str:
    """Human readable size: 0 Bytes, 512 Bytes, 1.5 KB, 2 MB"""
    if size <= 0:
        return "0 Bytes"

    units = ["Bytes", "KB", "MB", "GB"]
    value, index = float(size), 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"


def info(csv_path: str) -> Dict[str, Any]:
    """File metadata plus row and column counts from one pass"""
    stats = validate_csv_file(csv_path)
    headers = read_headers(csv_path)

    with Timer(logger, "csv.info", csv_path=str(csv_path)) as timer:
        row_count = timer.rows = sum(len(chunk) for chunk in _iter_chunks(csv_path))

    result = {
        "fileName": Path(csv_path).name,
        "filePath": str(csv_path),
        "fileSize": stats.st_size,
        "fileSizeFormatted": format_file_size(stats.st_size),
        "rowCount": row_count,
        "columnCount": len(headers),
        "headers": headers,
        "lastModified": datetime.fromtimestamp(
            stats.st_mtime, tz=timezone.utc
        ).isoformat(),
        "encoding": settings.csv.encoding,
    }

    logger.info(
        "CSV info retrieved",
        csv_path=str(csv_path),
        row_count=row_count,
        column_count=len(headers),
    )
    return result


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def stats(csv_path: str) -> Dict[str, Any]:
    """Info plus per-column type, null count and sample values from a small sample"""
    file_info = info(csv_path)
    sample = read_page(csv_path, 1, settings.csv.sample_size)["data"]

    column_types = {}
    if sample:
        for column in file_info["headers"]:
            values = [row.get(column) for row in sample if row.get(column) is not None]
            numeric = [value for value in values if _is_number(value)]
            column_types[column] = {
                "type": "number" if len(numeric) > len(values) / 2 else "string",
                "nullCount": sum(1 for row in sample if row.get(column) is None),
                "sampleValues": values[:3],
            }

    return {**file_info, "columnTypes": column_types, "sampleData": sample}
