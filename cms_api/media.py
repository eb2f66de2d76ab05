"""
Media store client — uploads and deletes images on Cloudinary.

The service layer treats the media store as an independently failing
collaborator, so this client never raises for remote failures: every
call returns a ``MediaResult`` that either carries the stored asset
(id + URL) or the store's error detail.  Callers decide whether a
failure is fatal for their operation.

Requests go over httpx; the signature is computed by the Cloudinary
SDK (``cloudinary.utils.api_sign_request``) over every parameter except
``file``, ``api_key``, ``resource_type`` and the signature itself.
"""
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import httpx
from cloudinary.utils import api_sign_request

from cms_api.config import settings

logger = logging.getLogger(__name__)

# Raw base64 payloads are wrapped in a data URI; Cloudinary sniffs the
# real format from the bytes.
_DEFAULT_DATA_URI_PREFIX = "data:image/png;base64,"
_UNSIGNED_PARAMS: frozenset[str] = frozenset({"file", "api_key", "signature", "resource_type"})


@dataclass
class MediaResult:
    successful: bool
    asset_id: str | None = None
    url: str | None = None
    error_message: str | None = None
    errors: list = field(default_factory=list)

    @property
    def error_detail(self) -> str:
        """The store's message followed by its JSON-encoded error list."""
        return f"{self.error_message}\n{json.dumps(self.errors)}"


@runtime_checkable
class MediaStore(Protocol):
    """What the services need from an image store."""

    async def upload(self, payload: str, preset: str) -> MediaResult: ...
    async def delete(self, asset_id: str | None) -> MediaResult: ...


def sign_params(params: dict, secret: str) -> str:
    """Return the signature Cloudinary expects for *params*."""
    to_sign = {
        key: value
        for key, value in params.items()
        if key not in _UNSIGNED_PARAMS and value not in (None, "")
    }
    return api_sign_request(to_sign, secret)


def as_upload_file(payload: str) -> str:
    """Normalise a caption/photo payload into something Cloudinary accepts."""
    if payload.startswith(("data:", "http://", "https://")):
        return payload
    return f"{_DEFAULT_DATA_URI_PREFIX}{payload}"


class CloudinaryClient:
    """
    Thin async wrapper over the Cloudinary upload/destroy endpoints.

    The underlying ``httpx.AsyncClient`` is opened in ``connect()`` at
    application startup and closed in ``disconnect()``.  A client can
    also be injected directly (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        cloud: str | None = None,
        api_key: str | None = None,
        api_secret: str | None = None,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.cloud = cloud if cloud is not None else settings.CLOUDINARY_CLOUD
        self.api_key = api_key if api_key is not None else settings.CLOUDINARY_KEY
        self.api_secret = api_secret if api_secret is not None else settings.CLOUDINARY_SECRET
        self.base_url = (base_url or settings.CLOUDINARY_API_URL).rstrip("/")
        self._client = client

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=settings.MEDIA_TIMEOUT)
            logger.info("Media store client ready for cloud %r", self.cloud)

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def upload(self, payload: str, preset: str) -> MediaResult:
        """
        Upload *payload* (data URI, remote URL or raw base64) under the
        upload *preset*.  On success the result carries the Cloudinary
        ``public_id`` as ``asset_id`` and the ``secure_url`` as ``url``.
        """
        params = {"upload_preset": preset, "timestamp": int(time.time())}
        data = self._signed(params)
        data["file"] = as_upload_file(payload)

        body, failure = await self._post("image/upload", data)
        if failure is not None:
            return failure
        return MediaResult(
            successful=True,
            asset_id=body.get("public_id"),
            url=body.get("secure_url") or body.get("url"),
        )

    async def delete(self, asset_id: str | None) -> MediaResult:
        """
        Destroy the asset identified by *asset_id*.

        An empty id is a successful no-op since nothing is retained.
        Cloudinary reports ``{"result": "not found"}`` with a 200 status
        for unknown ids; that is treated as a failure so callers can
        tell a real delete from a miss.
        """
        if not asset_id:
            return MediaResult(successful=True)

        params = {"public_id": asset_id, "timestamp": int(time.time())}
        body, failure = await self._post("image/destroy", self._signed(params))
        if failure is not None:
            return failure
        outcome = body.get("result")
        if outcome != "ok":
            return MediaResult(
                successful=False,
                error_message=f"Asset {asset_id!r} could not be deleted",
                errors=[outcome],
            )
        return MediaResult(successful=True, asset_id=asset_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _signed(self, params: dict) -> dict:
        signed = dict(params)
        signed["api_key"] = self.api_key
        signed["signature"] = sign_params(params, self.api_secret)
        return signed

    async def _post(self, path: str, data: dict) -> tuple[dict, MediaResult | None]:
        """
        POST *data* to the Cloudinary endpoint *path*.

        Returns ``(body, None)`` on success and ``({}, failure)`` when the
        request could not be sent or the store answered with an error.
        """
        if self._client is None:
            return {}, MediaResult(successful=False, error_message="Media store client is not connected")

        url = f"{self.base_url}/{self.cloud}/{path}"
        try:
            resp = await self._client.post(url, data=data)
        except httpx.HTTPError as exc:
            logger.error("Media store request to %s failed: %s", path, exc)
            return {}, MediaResult(successful=False, error_message=str(exc), errors=[type(exc).__name__])

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if resp.is_error or "error" in body:
            error = body.get("error") or {}
            message = error.get("message") if isinstance(error, dict) else str(error)
            return {}, MediaResult(
                successful=False,
                error_message=message or f"Media store returned HTTP {resp.status_code}",
                errors=[{"status": resp.status_code, "error": error}],
            )
        return body, None


# Module-level singleton shared across all request handlers.
media_store = CloudinaryClient()
