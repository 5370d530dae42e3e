from typing import Optional
from fastapi import FastAPI, HTTPException, Request,status
from fastapi.exceptions import RequestValidationError
from gamekeys.common.logging_setup import get_logger
from gamekeys.common.utils import build_error, json_error
from gamekeys.common.constants import request_id_ctx

logger = get_logger("gamekeys.errors")


class FulfillmentError(Exception):
    """Base for every failure a checkout can surface to the client."""
    code = "CHECKOUT_FAILED"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Order could not be completed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def details(self) -> dict:
        return {"message": self.message}


class Unauthorized(FulfillmentError):
    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Login required to check out"


class EmptyCart(FulfillmentError):
    code = "EMPTY_CART"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Cart is empty"


class OutOfStock(FulfillmentError):
    code = "OUT_OF_STOCK"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, game_id: str, title: Optional[str] = None):
        self.game_id = str(game_id)
        self.title = title
        super().__init__(f"No keys available for {title or self.game_id}")

    def details(self) -> dict:
        return {"message": self.message, "game_id": self.game_id}


class AllocationConflict(FulfillmentError):
    """A selected key was claimed by another session first. Retried inside the engine."""
    code = "ALLOCATION_CONFLICT"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, key_id: int):
        self.key_id = key_id
        super().__init__(f"Key {key_id} was claimed concurrently")


class StoreError(FulfillmentError):
    code = "STORE_ERROR"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Order could not be completed, please retry"


class CheckoutInProgress(FulfillmentError):
    code = "CHECKOUT_IN_PROGRESS"
    status_code = status.HTTP_409_CONFLICT
    message = "A checkout with this idempotency key is still being processed"


class IdempotencyKeyReused(FulfillmentError):
    code = "IDEMPOTENCY_KEY_REUSED"
    status_code = status.HTTP_409_CONFLICT
    message = "Idempotency key was already used for a different cart"


async def fulfillment_error_handler(request: Request, exc: FulfillmentError):
    rid = request_id_ctx.get(None)
    logger.warning(
        "checkout.failed",
        extra={"code": exc.code, "path": request.url.path, "reason": exc.message},
    )
    payload = build_error(code=exc.code, details=exc.details(), request_id=rid)
    return json_error(payload, status_code=exc.status_code)


async def fallback_handler(request: Request, exc: Exception):

    rid = request_id_ctx.get(None)

    logger.error(
        "unexpected.exception",
        extra={
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=exc,
    )

    payload = build_error(code="SERVER_ERROR", details={"message": "Internal Server Error"}, request_id=rid)
    return json_error(payload, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    rid = request_id_ctx.get(None)
    logger.warning(
        "request.validation_failed",
        extra={
            "errors": exc.errors(),
            "path": request.url.path,
        },
    )

    payload = build_error(code="UNPROCESSABLE_ENTITY", details={"message":"invalid request"}, request_id=rid)
    return json_error(payload, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


async def http_exception_handler(request: Request, exc: HTTPException):

    rid = request_id_ctx.get(None)

    details = exc.detail if isinstance(exc.detail, dict) else {"message":exc.detail}
    payload = build_error(code=f"HTTP_{exc.status_code}", details=details, request_id=rid)
    return json_error(payload, status_code=exc.status_code, headers=getattr(exc, "headers", None))


def register_all_exceptions(app: FastAPI):

    app.add_exception_handler(
        Exception, # catch all unidentified/unhandled exceptions
        fallback_handler
    )

    app.add_exception_handler(
        RequestValidationError,
        validation_exception_handler
    )

    app.add_exception_handler(
        HTTPException,
        http_exception_handler
    )

    app.add_exception_handler(
        FulfillmentError,
        fulfillment_error_handler
    )
