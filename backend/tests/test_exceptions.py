"""Tests for the engine error taxonomy."""

import pytest

import core.exceptions as exceptions
from core.exceptions import (
    EngineError,
    InvalidStateError,
    NotFoundError,
    TransientStorageError,
    ValidationError,
)


@pytest.mark.unit
class TestErrorTaxonomy:

    @pytest.mark.parametrize("exc_class,status_code,error_code", [
        (NotFoundError, 404, "not_found"),
        (ValidationError, 422, "validation_error"),
        (InvalidStateError, 409, "invalid_state"),
        (TransientStorageError, 503, "storage_busy"),
    ])
    def test_status_and_code(self, exc_class, status_code, error_code):
        exc = exc_class("boom")
        assert isinstance(exc, EngineError)
        assert exc.status_code == status_code
        assert exc.error_code == error_code
        assert exc.message == "boom"

    def test_only_raised_errors_are_defined(self):
        defined = {
            name for name, value in vars(exceptions).items()
            if isinstance(value, type) and issubclass(value, EngineError) and value is not EngineError
        }
        assert defined == {"NotFoundError", "ValidationError", "InvalidStateError", "TransientStorageError"}
