"""
Custom exception tests
"""

import pytest

from exceptions import (
    ConfigurationError,
    CorruptMemoryError,
    MemoryNotFoundError,
    MemoryValidationError,
    StorageError,
    WriterMemoryError,
)


class TestWriterMemoryError:
    """Base exception"""

    def test_message_and_details(self):
        error = WriterMemoryError("저장 실패", details="disk full")
        assert str(error) == "저장 실패"
        assert error.message == "저장 실패"
        assert error.details == "disk full"

    def test_details_default_none(self):
        assert WriterMemoryError("x").details is None

    def test_can_be_raised_and_caught(self):
        with pytest.raises(WriterMemoryError) as exc_info:
            raise WriterMemoryError("오류")
        assert exc_info.value.message == "오류"


class TestSubclasses:
    """Every project error derives from WriterMemoryError"""

    @pytest.mark.parametrize(
        "error",
        [
            ConfigurationError("bad config"),
            MemoryNotFoundError("missing", path="/tmp/memory.json"),
            CorruptMemoryError("corrupt", path="/tmp/memory.json", details="line 1"),
            StorageError("write failed"),
            MemoryValidationError("empty name", field="name"),
        ],
    )
    def test_inheritance(self, error):
        assert isinstance(error, WriterMemoryError)

    def test_not_found_carries_path(self):
        error = MemoryNotFoundError("missing", path="/p/memory.json")
        assert error.path == "/p/memory.json"
        assert error.details == "/p/memory.json"

    def test_corrupt_carries_path_and_details(self):
        error = CorruptMemoryError("corrupt", path="/p/memory.json", details="Expecting value")
        assert error.path == "/p/memory.json"
        assert error.details == "Expecting value"

    def test_validation_carries_field(self):
        error = MemoryValidationError("intensity must be 1-5", field="intensity")
        assert error.field == "intensity"
        assert str(error) == "intensity must be 1-5"
