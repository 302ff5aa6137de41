"""Application error definitions and FastAPI handlers."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

logger = logging.getLogger(__name__)


class AppException(Exception):
    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST, code: str = "error"):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class NotFoundException(AppException):
    def __init__(self, message: str = "Record not found"):
        super().__init__(message=message, status_code=status.HTTP_404_NOT_FOUND, code="not_found")


class ValidationAppException(AppException):
    def __init__(self, message: str = "Invalid data", code: str = "validation_error"):
        super().__init__(message=message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, code=code)


class InvalidInputException(ValidationAppException):
    """A raw measurement is non-numeric, non-finite or negative."""

    def __init__(self, message: str = "Invalid calculation input"):
        super().__init__(message=message, code="invalid_input")


class SettingsValidationException(ValidationAppException):
    def __init__(self, message: str = "Invalid royalty settings"):
        super().__init__(message=message, code="settings_validation_error")


class SettingsPersistenceException(AppException):
    def __init__(self, message: str = "Royalty settings could not be saved"):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="settings_persistence_error",
        )


def _format_error(detail: str, code: str):
    return {"message": detail, "code": code}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=_format_error(exc.message, exc.code))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_format_error("Submitted data could not be validated", "validation_error"),
        )

    @app.exception_handler(ValidationError)
    async def pydantic_validation_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_format_error("Submitted data could not be validated", "validation_error"),
        )
