"""
Utility function tests
"""

import json
import os
import re
from datetime import datetime, timezone

import pytest

from utils import (
    atomic_write_json,
    filename_timestamp,
    first_sentence,
    generate_id,
    now_iso,
    read_json,
    truncate_text,
    write_json,
)


class TestAtomicWriteJson:
    """atomic_write_json"""

    def test_writes_utf8_json(self, tmp_path):
        target = tmp_path / "nested" / "memory.json"
        atomic_write_json(target, {"name": "서연"})

        assert json.loads(target.read_text(encoding="utf-8")) == {"name": "서연"}
        # non-ASCII text is stored as-is
        assert "서연" in target.read_text(encoding="utf-8")

    def test_replaces_existing_file(self, tmp_path):
        target = tmp_path / "memory.json"
        atomic_write_json(target, {"v": 1})
        atomic_write_json(target, {"v": 2})
        assert read_json(target) == {"v": 2}

    def test_failed_rename_keeps_original(self, tmp_path, monkeypatch):
        """A failure before the rename leaves the old file and no temp files"""
        target = tmp_path / "memory.json"
        atomic_write_json(target, {"v": 1})

        def boom(src, dst):
            raise OSError("rename failed")

        monkeypatch.setattr(os, "replace", boom)
        with pytest.raises(OSError):
            atomic_write_json(target, {"v": 2})

        assert read_json(target) == {"v": 1}
        assert [p.name for p in tmp_path.iterdir()] == ["memory.json"]

    def test_unserializable_data_raises(self, tmp_path):
        target = tmp_path / "memory.json"
        with pytest.raises(TypeError):
            atomic_write_json(target, {"bad": object()})
        assert not target.exists()
        assert list(tmp_path.iterdir()) == []


class TestJsonHelpers:
    def test_write_then_read(self, tmp_path):
        target = tmp_path / "backups" / "b.json"
        write_json(target, {"a": [1, 2]})
        assert read_json(target) == {"a": [1, 2]}

    def test_read_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_json(tmp_path / "missing.json")

    def test_read_invalid_json(self, tmp_path):
        target = tmp_path / "bad.json"
        target.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError):
            read_json(target)


class TestTimestamps:
    """now_iso / filename_timestamp"""

    def test_now_iso_format(self):
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", now_iso())

    def test_filename_timestamp_is_filename_safe(self):
        moment = datetime(2026, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc)
        assert filename_timestamp(moment) == "2026-01-02T03-04-05-678901Z"

    def test_filename_timestamps_sort_chronologically(self):
        earlier = datetime(2026, 1, 2, 3, 4, 5, 999999, tzinfo=timezone.utc)
        later = datetime(2026, 1, 2, 3, 4, 6, 0, tzinfo=timezone.utc)
        assert filename_timestamp(earlier) < filename_timestamp(later)


class TestGenerateId:
    def test_format(self):
        assert re.fullmatch(r"char_\d+_[a-z0-9]{6}", generate_id("char"))

    def test_unique(self):
        ids = {generate_id("scene") for _ in range(200)}
        assert len(ids) == 200


class TestTextHelpers:
    """truncate_text / first_sentence"""

    def test_truncate_short_text_unchanged(self):
        assert truncate_text("짧은 글", 10) == "짧은 글"

    def test_truncate_long_text(self):
        result = truncate_text("a" * 200, 120, "…")
        assert len(result) == 120
        assert result.endswith("…")

    def test_truncate_empty(self):
        assert truncate_text(None) == ""
        assert truncate_text("") == ""

    def test_first_sentence(self):
        assert first_sentence("체념한다. 그러나 다시 걷는다.") == "체념한다"
        assert first_sentence("마침표 없음") == "마침표 없음"
