"""
Domain Errors and their HTTP rendering
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class OrderDeskError(Exception):
    """Base error; ``error`` is the machine-readable name sent to clients"""
    status_code = status.HTTP_400_BAD_REQUEST
    error = "OrderDeskError"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.error


# ===================== NOT FOUND =====================

class OrderNotFound(OrderDeskError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "OrderNotFound"


class DiscountNotFound(OrderDeskError):
    error = "DiscountNotFound"


class CustomerNotFound(OrderDeskError):
    error = "CustomerNotFound"


class ServiceNotFound(OrderDeskError):
    error = "ServiceNotFound"


class HandlerNotFound(OrderDeskError):
    error = "HandlerNotFound"


class LineItemNotFound(OrderDeskError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "LineItemNotFound"


# ===================== BUSINESS RULES =====================

class InsufficientPoints(OrderDeskError):
    error = "InsufficientPoints"


class EmptyOrder(OrderDeskError):
    error = "EmptyOrder"


class DuplicateService(OrderDeskError):
    error = "DuplicateService"


class InvalidQuantity(OrderDeskError):
    error = "InvalidQuantity"


class NoFieldsProvided(OrderDeskError):
    error = "NoFieldsProvided"


class InvalidStatusTransition(OrderDeskError):
    error = "InvalidStatusTransition"


class DiscountInUse(OrderDeskError):
    error = "DiscountInUse"


class MissingDateRange(OrderDeskError):
    error = "MissingDateRange"


class InvalidDateRange(OrderDeskError):
    error = "InvalidDateRange"


class InvalidDateFormat(OrderDeskError):
    error = "InvalidDateFormat"


class OrderNotEditable(OrderDeskError):
    error = "OrderNotEditable"


# ===================== INFRASTRUCTURE =====================

class StorageError(OrderDeskError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "StorageError"


async def orderdesk_error_handler(request: Request, exc: OrderDeskError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "details": exc.message},
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "ValidationError", "details": jsonable_encoder(exc.errors())},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "InternalServerError", "details": "An unexpected error occurred"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(OrderDeskError, orderdesk_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
