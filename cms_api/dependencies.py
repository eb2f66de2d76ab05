import logging
import uuid
from dataclasses import dataclass

from cms_api.media import CloudinaryClient, media_store
from cms_api.middleware import request_id_var

_service_logger = logging.getLogger("cms_api.services")


class RequestLogger(logging.LoggerAdapter):
    """Prefix every record with the id of the request that produced it."""

    def process(self, msg, kwargs):
        return f"[{self.extra['request_id']}] {msg}", kwargs


@dataclass
class RequestContext:
    """
    Per-request state handed explicitly to every service call.

    Services log through ``ctx.logger`` rather than a module-level logger
    so each line can be traced back to the request that caused it.

    Attributes
    ----------
    request_id:
        Id assigned by ``RequestContextMiddleware`` (or supplied by the
        caller via ``X-Request-ID``).
    logger:
        ``LoggerAdapter`` bound to *request_id*.
    """

    request_id: str
    logger: logging.LoggerAdapter

    @classmethod
    def create(cls, request_id: str | None = None) -> "RequestContext":
        request_id = request_id or uuid.uuid4().hex
        return cls(
            request_id=request_id,
            logger=RequestLogger(_service_logger, {"request_id": request_id}),
        )


def get_request_context() -> RequestContext:
    """FastAPI dependency building the context for the current request."""
    request_id = request_id_var.get()
    return RequestContext.create(None if request_id == "-" else request_id)


def get_media_store() -> CloudinaryClient:
    """
    FastAPI dependency returning the shared media store client.

    Tests override this with an in-memory fake.
    """
    return media_store
