"""Tests for audit log parameter sanitising."""

from simshot.audit import (
    MAX_STRING_LENGTH,
    TRUNCATE_SUFFIX,
    TRUNCATED_PREFIX_LENGTH,
    _sanitize_for_log,
    _truncate_string,
)


class TestTruncateString:
    """Tests for _truncate_string()."""

    def test_short_string_unchanged(self):
        assert _truncate_string("Login screen") == "Login screen"

    def test_limit_is_inclusive(self):
        value = "x" * MAX_STRING_LENGTH

        assert _truncate_string(value) == value

    def test_long_string_truncated(self):
        result = _truncate_string("x" * (MAX_STRING_LENGTH + 1))

        assert result == "x" * TRUNCATED_PREFIX_LENGTH + TRUNCATE_SUFFIX


class TestSanitizeForLog:
    """Tests for _sanitize_for_log()."""

    def test_nested_values(self):
        long = "d" * 500
        params = {
            "description": long,
            "limit": 5,
            "enabled": None,
            "options": {"device_name": long},
            "paths": [long, 3],
        }

        sanitized = _sanitize_for_log(params)

        assert sanitized["description"].endswith(TRUNCATE_SUFFIX)
        assert sanitized["limit"] == 5
        assert sanitized["enabled"] is None
        assert sanitized["options"]["device_name"].endswith(TRUNCATE_SUFFIX)
        assert sanitized["paths"][0].endswith(TRUNCATE_SUFFIX)
        assert sanitized["paths"][1] == 3

    def test_input_not_modified(self):
        params = {"description": "d" * 500}

        _sanitize_for_log(params)

        assert params["description"] == "d" * 500
