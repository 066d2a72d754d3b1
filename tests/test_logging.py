"""
Tests for logging utilities

Tests cover:
- Sensitive data masking in messages and extras
- Logger namespacing
- Console suspension during the full-screen UI
- Error formatting helpers
"""
import logging

import pytest

from xeet.utils.errors import (
    ApiError,
    ErrorHandler,
    MissingCredentialsError,
    ValidationError,
    XeetError,
    error_context,
    format_error_message,
    safe_execute,
)
from xeet.utils.logging import (
    JSONFormatter,
    SensitiveDataFilter,
    SensitiveDataMasker,
    get_log_manager,
    get_logger,
)


class TestSensitiveDataMasker:
    """Tests for masking secrets"""

    def test_masks_oauth_header(self):
        masker = SensitiveDataMasker()
        header = 'Authorization: OAuth oauth_consumer_key="abc", oauth_signature="s3cr3t%3D"'
        masked = masker.mask_string(header)

        assert "s3cr3t" not in masked
        assert "[REDACTED]" in masked

    def test_masks_key_value_pairs(self):
        masker = SensitiveDataMasker()
        masked = masker.mask_string("api_key=abcdef123 access_token_secret=zzz999")

        assert "abcdef123" not in masked
        assert "zzz999" not in masked

    def test_mask_dict_nested(self):
        masker = SensitiveDataMasker()
        masked = masker.mask_dict({
            "username": "tester",
            "oauth_token": "tok",
            "nested": {"api_secret": "shh"},
        })

        assert masked["username"] == "tester"
        assert masked["oauth_token"] == "[REDACTED]"
        assert masked["nested"]["api_secret"] == "[REDACTED]"

    def test_partial_strategy(self):
        masker = SensitiveDataMasker("partial")
        assert masker.mask_dict({"token": "abcdefghij"})["token"] == "abc****hij"

    def test_filter_masks_record(self):
        record = logging.LogRecord("xeet", logging.INFO, __file__, 1, "secret=hunter2", None, None)
        record.access_token = "123-abc"

        assert SensitiveDataFilter().filter(record)
        assert "hunter2" not in record.msg
        assert record.access_token == "[REDACTED]"


class TestLogManager:
    """Tests for the log manager"""

    def test_logger_names_are_namespaced(self):
        assert get_logger("xeet.core.api_client").name == "xeet.core.api_client"
        assert get_logger("tests").name == "xeet.tests"
        assert get_logger().name == "xeet"

    def test_console_suspended(self):
        manager = get_log_manager()
        handler = manager.console_handler

        with manager.console_suspended():
            assert handler not in manager.root_logger.handlers

        assert handler in manager.root_logger.handlers

    def test_invalid_console_level(self):
        with pytest.raises(ValueError):
            get_log_manager().set_console_level("LOUD")

    def test_json_formatter_includes_event_type(self):
        record = logging.LogRecord("xeet", logging.INFO, __file__, 1, "posted", None, None)
        record.event_type = "post_created"

        formatted = JSONFormatter().format(record)

        assert '"event_type": "post_created"' in formatted
        assert '"message": "posted"' in formatted


class TestErrorHelpers:
    """Tests for error formatting and handling helpers"""

    def test_user_message_default(self):
        assert MissingCredentialsError().message == "Not authenticated - run 'xeet auth' first"

    def test_format_error_message(self):
        assert format_error_message(ApiError(500, "oops")) == "API error 500: oops"
        assert "unexpected" in format_error_message(RuntimeError("x"))

    def test_to_dict(self):
        data = ApiError(429, "Too Many Requests").to_dict()
        assert data["error_type"] == "ApiError"
        assert data["category"] == "network"
        assert data["details"]["status"] == 429

    def test_handle_unknown_error(self):
        result = ErrorHandler.handle(RuntimeError("bad"), "testing", log_traceback=False)
        assert result["error_type"] == "UnknownError"

    def test_error_context_reraises(self):
        with pytest.raises(ValidationError):
            with error_context("validating"):
                raise ValidationError("empty post")

    def test_error_context_suppresses(self):
        with error_context("optional step", reraise=False) as ctx:
            raise XeetError("ignored")
        assert ctx.error["message"] == "ignored"

    def test_safe_execute_default(self):
        def broken():
            raise OSError("gone")

        assert safe_execute(broken, default="fallback", context="test") == "fallback"

    def test_safe_execute_passes_arguments(self):
        assert safe_execute(max, 3, 7, default=0, context="test") == 7

    def test_validation_error_category(self):
        assert ValidationError("empty post").to_dict()["category"] == "validation"
