"""
Tests for CSV ingestion.
"""
import pytest

from vizboard.core.config import settings
from vizboard.services import csv_service
from vizboard.utils.exceptions import (
    CsvReadError,
    ResourceNotFoundError,
    ValidationError,
)


def _numbered_rows(count: int) -> str:
    lines = ["id,label"]
    lines += [f"{i},row {i}" for i in range(1, count + 1)]
    return "\n".join(lines) + "\n"


class TestCoerceCell:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("", None),
            (None, None),
            ("42", 42),
            ("-7", -7),
            ("3.5", 3.5),
            (" 12 ", 12),
            ("1e3", 1000.0),
            (".5", 0.5),
        ],
    )
    def test_converts_empty_and_numeric_cells(self, raw, expected):
        assert csv_service.coerce_cell(raw) == expected

    @pytest.mark.parametrize("raw", ["north", "   ", "nan", "inf", "1_000", "12abc", "0x1F"])
    def test_keeps_other_strings_verbatim(self, raw):
        assert csv_service.coerce_cell(raw) == raw

    def test_integers_stay_integers(self):
        assert isinstance(csv_service.coerce_cell("10"), int)
        assert isinstance(csv_service.coerce_cell("10.0"), float)

    def test_nan_from_short_rows_becomes_none(self):
        assert csv_service.coerce_cell(float("nan")) is None


class TestReadAll:
    def test_numbers_and_empty_cells(self, write_csv):
        path = write_csv("mixed.csv", "region,amount\nnorth,100\nsouth,\neast,12.5\n")

        rows = csv_service.read_all(str(path))

        assert rows == [
            {"region": "north", "amount": 100},
            {"region": "south", "amount": None},
            {"region": "east", "amount": 12.5},
        ]

    def test_header_order_is_preserved(self, write_csv):
        path = write_csv("order.csv", "zeta,alpha,mid\n1,2,3\n")

        rows = csv_service.read_all(str(path))

        assert list(rows[0].keys()) == ["zeta", "alpha", "mid"]

    def test_short_rows_yield_null_cells(self, write_csv):
        path = write_csv("short.csv", "a,b,c\n1,2\n")

        rows = csv_service.read_all(str(path))

        assert rows == [{"a": 1, "b": 2, "c": None}]

    def test_trailing_delimiter_keeps_first_column(self, write_csv):
        path = write_csv("trailing.csv", "region,amount\nNorth,10,\nSouth,20,\n")

        rows = csv_service.read_all(str(path))

        assert rows == [
            {"region": "North", "amount": 10},
            {"region": "South", "amount": 20},
        ]
        assert csv_service.read_page(str(path), 1, 1)["data"] == [
            {"region": "North", "amount": 10}
        ]

    def test_duplicate_headers_get_suffixes(self, write_csv):
        path = write_csv("dupes.csv", "x,x,y\n1,2,3\n")

        assert csv_service.read_headers(str(path)) == ["x", "x.1", "y"]
        assert csv_service.read_all(str(path)) == [{"x": 1, "x.1": 2, "y": 3}]

    def test_empty_file_has_no_rows(self, write_csv):
        path = write_csv("empty.csv", "")

        assert csv_service.read_all(str(path)) == []
        assert csv_service.read_headers(str(path)) == []

    def test_header_only_file(self, write_csv):
        path = write_csv("header.csv", "region,amount\n")

        assert csv_service.read_all(str(path)) == []
        assert csv_service.read_headers(str(path)) == ["region", "amount"]

    def test_missing_file(self, data_dir):
        with pytest.raises(ResourceNotFoundError):
            csv_service.read_all(str(data_dir / "nope.csv"))

    def test_directory_is_not_a_file(self, data_dir):
        with pytest.raises(ResourceNotFoundError):
            csv_service.read_all(str(data_dir))

    def test_parse_failure_is_a_read_error(self, data_dir):
        path = data_dir / "latin1.csv"
        path.write_bytes("name\ncaf\xe9\n".encode("latin-1"))
        try:
            with pytest.raises(CsvReadError):
                csv_service.read_all(str(path))
        finally:
            path.unlink()

    def test_reads_across_chunks(self, write_csv, monkeypatch):
        monkeypatch.setattr(settings.csv, "chunk_size", 4)
        path = write_csv("chunks.csv", _numbered_rows(10))

        rows = csv_service.read_all(str(path))

        assert [row["id"] for row in rows] == list(range(1, 11))


class TestReadColumns:
    def test_keeps_only_requested_columns(self, write_csv):
        path = write_csv("cols.csv", "a,b,c\n1,2,3\n4,5,6\n")

        rows = csv_service.read_columns(str(path), ["c", "a", "missing"])

        assert rows == [{"c": 3, "a": 1}, {"c": 6, "a": 4}]

    def test_requires_columns(self, write_csv):
        path = write_csv("cols.csv", "a\n1\n")

        with pytest.raises(ValidationError):
            csv_service.read_columns(str(path), [])


class TestReadPage:
    def test_second_page_of_twenty_five(self, write_csv):
        path = write_csv("rows25.csv", _numbered_rows(25))

        result = csv_service.read_page(str(path), page=2, limit=10)

        assert len(result["data"]) == 10
        assert result["data"][0]["id"] == 11
        pagination = result["pagination"]
        assert pagination["hasNext"] is True
        assert pagination["hasPrev"] is True
        assert pagination["startRow"] == 11
        assert pagination["endRow"] == 20
        assert pagination["totalRows"] == 25
        assert pagination["totalPages"] == 3

    def test_last_partial_page(self, write_csv):
        path = write_csv("rows25.csv", _numbered_rows(25))

        result = csv_service.read_page(str(path), page=3, limit=10)

        assert [row["id"] for row in result["data"]] == [21, 22, 23, 24, 25]
        assert result["pagination"]["hasNext"] is False
        assert result["pagination"]["endRow"] == 25

    def test_page_spanning_chunks(self, write_csv, monkeypatch):
        monkeypatch.setattr(settings.csv, "chunk_size", 3)
        path = write_csv("rows25.csv", _numbered_rows(25))

        result = csv_service.read_page(str(path), page=2, limit=10)

        assert [row["id"] for row in result["data"]] == list(range(11, 21))

    def test_page_and_limit_are_clamped(self, write_csv):
        path = write_csv("rows25.csv", _numbered_rows(25))

        result = csv_service.read_page(str(path), page=0, limit=5000)

        assert result["pagination"]["page"] == 1
        assert result["pagination"]["limit"] == settings.csv.max_page_size
        assert len(result["data"]) == 25


class TestInfoAndStats:
    def test_info(self, write_csv):
        path = write_csv("sales.csv", "region,amount\nnorth,100\nsouth,200\n")

        info = csv_service.info(str(path))

        assert info["fileName"] == "sales.csv"
        assert info["rowCount"] == 2
        assert info["columnCount"] == 2
        assert info["headers"] == ["region", "amount"]
        assert info["fileSize"] == path.stat().st_size
        assert info["fileSizeFormatted"].endswith("Bytes")

    def test_stats_column_types(self, write_csv):
        path = write_csv(
            "stats.csv", "region,amount\nnorth,100\nsouth,\neast,12.5\nwest,7\n"
        )

        stats = csv_service.stats(str(path))

        assert stats["columnTypes"]["amount"]["type"] == "number"
        assert stats["columnTypes"]["amount"]["nullCount"] == 1
        assert stats["columnTypes"]["amount"]["sampleValues"] == [100, 12.5, 7]
        assert stats["columnTypes"]["region"]["type"] == "string"
        assert len(stats["sampleData"]) == 4


@pytest.mark.parametrize(
    "size, expected",
    [(0, "0 Bytes"), (512, "512 Bytes"), (1536, "1.5 KB"), (2 * 1024 * 1024, "2 MB")],
)
def test_format_file_size(size, expected):
    assert csv_service.format_file_size(size) == expected


def test_build_pagination_first_page():
    pagination = csv_service.build_pagination(1, 10, 25)

    assert pagination["hasPrev"] is False
    assert pagination["hasNext"] is True
    assert pagination["startRow"] == 1
    assert pagination["endRow"] == 10
