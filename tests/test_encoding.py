"""
Unit tests for URL-safe base64 and base-36 transcoding.
"""

import binascii

import pytest

from twt.encoding import from_url_safe_base64, parse_base36, to_base36, to_url_safe_base64


class TestURLSafeBase64:
    """Test cases for URL-safe base64 helpers."""

    def test_substitutes_url_unsafe_characters(self):
        """Test '+' and '/' are replaced with '-' and '_'."""
        assert to_url_safe_base64(b"\xfb\xff") == "-_8="

    def test_encodes_text_as_utf8(self):
        """Test text input is UTF-8 encoded before base64."""
        assert to_url_safe_base64("hello") == "aGVsbG8="
        assert to_url_safe_base64("é") == "w6k="

    def test_encodes_non_text_values_as_their_string_form(self):
        """Test non-bytes values are stringified first."""
        assert to_url_safe_base64(123) == "MTIz"

    def test_decode_returns_bytes_without_encoding(self):
        """Test decoding without an encoding yields raw bytes."""
        assert from_url_safe_base64("-_8=") == b"\xfb\xff"

    def test_decode_with_encoding_returns_text(self):
        """Test decoding with an encoding yields text."""
        assert from_url_safe_base64("aGVsbG8=", "utf-8") == "hello"

    def test_decode_tolerates_missing_padding(self):
        """Test unpadded input decodes the same as padded input."""
        assert from_url_safe_base64("-_8") == b"\xfb\xff"
        assert from_url_safe_base64("aGVsbG8", "utf-8") == "hello"

    def test_decode_rejects_impossible_length(self):
        """Test input one character past a block boundary is rejected."""
        with pytest.raises(binascii.Error):
            from_url_safe_base64("abcde")


class TestBase36:
    """Test cases for base-36 integer text."""

    @pytest.mark.parametrize("value,expected", [(0, "0"), (35, "z"), (36, "10"), (-36, "-10")])
    def test_to_base36(self, value, expected):
        """Test integers render as lowercase base-36."""
        assert to_base36(value) == expected

    def test_timestamps_survive_parsing(self):
        """Test a realistic timestamp parses back to itself."""
        assert parse_base36(to_base36(1700000000)) == 1700000000

    def test_parse_is_case_insensitive(self):
        """Test upper case digits are accepted."""
        assert parse_base36("Z") == 35

    @pytest.mark.parametrize("value", ["", "1_0", " 10", "1.5", "!!", None, 5])
    def test_parse_rejects_non_base36(self, value):
        """Test anything but base-36 text raises ValueError."""
        with pytest.raises(ValueError):
            parse_base36(value)
