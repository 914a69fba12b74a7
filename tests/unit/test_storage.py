"""Unit tests for record persistence."""

import csv

import pytest

from mapscraper.scraper.storage import export_records_to_csv, load_records, save_records
from mapscraper.utils.exceptions import StorageError


class TestJsonStorage:
    """Test JSON save/load."""

    def test_save_and_load(self, temp_data_dir, sample_records):
        path = save_records(sample_records, temp_data_dir / "out" / "toko.json")

        loaded = load_records(path)

        assert loaded == sample_records

    def test_save_overwrites(self, temp_data_dir, sample_records):
        path = temp_data_dir / "toko.json"
        save_records(sample_records, path)
        save_records(sample_records[:1], path)

        assert len(load_records(path)) == 1

    def test_non_ascii_preserved(self, temp_data_dir, sample_records):
        path = save_records(sample_records, temp_data_dir / "toko.json")
        assert "Toko Été" in path.read_text(encoding="utf-8")

    def test_load_missing_returns_none(self, temp_data_dir):
        assert load_records(temp_data_dir / "missing.json") is None

    def test_load_malformed_raises(self, temp_data_dir):
        path = temp_data_dir / "bad.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageError):
            load_records(path)

    def test_load_wrong_shape_raises(self, temp_data_dir):
        path = temp_data_dir / "shape.json"
        path.write_text('{"title": "x"}', encoding="utf-8")

        with pytest.raises(StorageError):
            load_records(path)

    def test_load_invalid_record_raises(self, temp_data_dir):
        path = temp_data_dir / "invalid.json"
        path.write_text('[{"address": "Jl. Contoh"}]', encoding="utf-8")

        with pytest.raises(StorageError):
            load_records(path)


class TestCsvExport:
    """Test CSV export."""

    def test_header_and_rows(self, temp_data_dir, sample_records):
        path = export_records_to_csv(sample_records, temp_data_dir / "toko.csv")

        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))

        assert rows[0] == ["title", "address", "phone"]
        assert rows[1] == ["Kopi Kenangan", "Jl. Contoh No. 1", "0812345"]
        assert len(rows) == 4

    def test_empty_records_still_has_header(self, temp_data_dir):
        path = export_records_to_csv([], temp_data_dir / "empty.csv")
        assert path.read_text(encoding="utf-8").strip() == "title,address,phone"
