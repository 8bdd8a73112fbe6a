"""Tests for the error taxonomy."""

import logging

from mbestore.errors import (
    AuthorizationError,
    DatabaseError,
    DataFormatError,
    MBEError,
    NotFoundError,
    OperationError,
    PermissionError,
    RollbackError,
    ServerError,
    capture_error,
    get_status_code,
)


class TestErrors:
    """Test error kinds, status codes and logging."""

    def test_status_codes(self):
        assert get_status_code(DataFormatError("x")) == 400
        assert get_status_code(AuthorizationError("x")) == 401
        assert get_status_code(PermissionError("x")) == 403
        assert get_status_code(OperationError("x")) == 403
        assert get_status_code(NotFoundError("x")) == 404
        assert get_status_code(ServerError("x")) == 500
        assert get_status_code(DatabaseError("x")) == 500
        assert get_status_code(ValueError("x")) == 500

    def test_to_dict(self):
        error = NotFoundError("The Branch [dev] was not found.")
        assert error.to_dict() == {
            "error": "NotFoundError",
            "message": "The Branch [dev] was not found.",
        }

    def test_level_logs_message(self, caplog):
        with caplog.at_level(logging.WARNING, logger="mbestore.errors"):
            DataFormatError("Invalid name: [7]", "warn")
        assert "Invalid name: [7]" in caplog.text

    def test_no_level_does_not_log(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="mbestore.errors"):
            DataFormatError("quiet")
        assert "quiet" not in caplog.text

    def test_capture_error_wraps_unknown(self):
        cause = KeyError("missing")
        wrapped = capture_error(cause)

        assert isinstance(wrapped, ServerError)
        assert wrapped.__cause__ is cause

    def test_capture_error_keeps_mbe_errors(self):
        error = OperationError("nope")
        assert capture_error(error) is error

    def test_rollback_error_keeps_both(self):
        original = DatabaseError("Not all elements were cloned from branch.")
        cleanup = DatabaseError("disk I/O error")
        error = RollbackError(original, cleanup)

        assert isinstance(error, DatabaseError)
        assert isinstance(error, MBEError)
        assert error.original is original
        assert error.cleanup_error is cleanup
        assert "disk I/O error" in error.message
