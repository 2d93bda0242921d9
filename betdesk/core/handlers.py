"""
JSON error bodies for every failure the API can return:
``{"error": <message>, "details": {...}}``.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from betdesk.core.errors import BetdeskError, ValidationError

logger = logging.getLogger(__name__)


async def betdesk_error_handler(request: Request, exc: BetdeskError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_body()))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    err = ValidationError("Invalid data", errors=exc.errors())
    return JSONResponse(status_code=422, content=jsonable_encoder(err.to_body()))


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)},
                        headers=getattr(exc, "headers", None))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def install(app: FastAPI) -> None:
    app.add_exception_handler(BetdeskError, betdesk_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
