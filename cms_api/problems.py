"""
Translation from ``OperationResult`` envelopes to HTTP responses.

Errors are rendered as problem-details bodies (``title``, ``status``,
``detail``).  Successful writes carry no body.
"""
import logging

from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cms_api.results import BAD_REQUEST, SYSTEM_ERROR, OperationResult

logger = logging.getLogger(__name__)


def problem(title: str | None, status: int, detail: str | None) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"title": title, "status": status, "detail": detail},
        media_type="application/problem+json",
    )


def to_response(transaction: OperationResult):
    """
    Map a service result onto the HTTP response.

    Fetches return their payload as JSON; creates, updates and deletes
    return an empty body with the envelope's status code.
    """
    if not transaction.successful:
        return problem(transaction.error_title, transaction.status_code, transaction.error_message)
    if transaction.result is None:
        return Response(status_code=transaction.status_code)
    return JSONResponse(status_code=transaction.status_code, content=transaction.result)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return problem(BAD_REQUEST, 400, "; ".join(messages))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Last resort for faults that escaped the service layer (e.g. the
    # database being unreachable while opening a session).
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return problem(SYSTEM_ERROR, 500, str(exc))
