"""Unit tests for entity ids."""

import pytest

from errors import ValidationError
from models import is_valid_id, new_id, parse_id


class TestIds:

    def test_new_id_is_24_hex(self):
        value = new_id()
        assert len(value) == 24
        assert is_valid_id(value)

    def test_new_ids_are_unique(self):
        assert len({new_id() for _ in range(100)}) == 100

    def test_parse_normalizes_case_and_whitespace(self):
        assert parse_id("  65A1B2C3D4E5F60718293A4B ") == "65a1b2c3d4e5f60718293a4b"

    @pytest.mark.parametrize("raw", ["", "abc", "zz" * 12, None, 42, "65a1b2c3d4e5f60718293a4b0"])
    def test_parse_rejects_malformed(self, raw):
        with pytest.raises(ValidationError):
            parse_id(raw)

    def test_error_names_the_field(self):
        with pytest.raises(ValidationError) as exc:
            parse_id("nope", "video id")
        assert exc.value.message == "Invalid video id"
        assert exc.value.status_code == 400
