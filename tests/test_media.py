"""
Cloudinary client tests — requests are served by ``httpx.MockTransport``
so the signing, form encoding and error translation are exercised
without network access.
"""
import hashlib
from urllib.parse import parse_qs

import httpx
import pytest
from cloudinary.utils import api_sign_request

from cms_api.media import CloudinaryClient, MediaStore, as_upload_file, sign_params


def _client(handler) -> CloudinaryClient:
    return CloudinaryClient(
        cloud="demo",
        api_key="key-1",
        api_secret="s3cret",
        base_url="https://api.cloudinary.test/v1_1",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def _form(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def test_sign_params_sorts_and_skips_unsigned_fields():
    params = {"upload_preset": "article_caption", "timestamp": 1700000000, "file": "ignored", "api_key": "k"}
    expected = hashlib.sha1(b"timestamp=1700000000&upload_preset=article_captions3cret").hexdigest()
    assert sign_params(params, "s3cret") == expected


def test_sign_params_drops_empty_values_before_signing():
    params = {"public_id": "article_caption/abc", "timestamp": 1700000000, "invalidate": "", "api_key": "k"}
    expected = api_sign_request({"public_id": "article_caption/abc", "timestamp": 1700000000}, "s3cret")
    assert sign_params(params, "s3cret") == expected


def test_client_and_fake_store_satisfy_media_store(media):
    assert isinstance(CloudinaryClient(cloud="demo", api_key="k", api_secret="s"), MediaStore)
    assert isinstance(media, MediaStore)


def test_as_upload_file():
    assert as_upload_file("data:image/jpeg;base64,AAAA") == "data:image/jpeg;base64,AAAA"
    assert as_upload_file("https://example.com/a.png") == "https://example.com/a.png"
    assert as_upload_file("AAAA") == "data:image/png;base64,AAAA"


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_upload_success():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["form"] = _form(request)
        return httpx.Response(200, json={
            "public_id": "article_caption/abc",
            "secure_url": "https://res.cloudinary.test/demo/abc.png",
        })

    result = await _client(handler).upload("AAAA", "article_caption")
    assert result.successful
    assert result.asset_id == "article_caption/abc"
    assert result.url == "https://res.cloudinary.test/demo/abc.png"

    assert seen["url"] == "https://api.cloudinary.test/v1_1/demo/image/upload"
    form = seen["form"]
    assert form["upload_preset"] == "article_caption"
    assert form["api_key"] == "key-1"
    assert form["file"] == "data:image/png;base64,AAAA"
    assert form["signature"] == sign_params(
        {"upload_preset": "article_caption", "timestamp": form["timestamp"]}, "s3cret"
    )


@pytest.mark.asyncio
async def test_upload_error_response():
    def handler(request):
        return httpx.Response(400, json={"error": {"message": "Invalid image file"}})

    result = await _client(handler).upload("AAAA", "author_photo")
    assert not result.successful
    assert result.error_message == "Invalid image file"
    assert "Invalid image file" in result.error_detail
    assert '"status": 400' in result.error_detail


@pytest.mark.asyncio
async def test_upload_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = await _client(handler).upload("AAAA", "author_photo")
    assert not result.successful
    assert result.errors == ["ConnectError"]


@pytest.mark.asyncio
async def test_upload_without_connection():
    client = CloudinaryClient(cloud="demo", api_key="k", api_secret="s")
    result = await client.upload("AAAA", "author_photo")
    assert not result.successful
    assert result.error_message == "Media store client is not connected"


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_success():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["form"] = _form(request)
        return httpx.Response(200, json={"result": "ok"})

    result = await _client(handler).delete("article_caption/abc")
    assert result.successful
    assert seen["url"].endswith("/demo/image/destroy")
    assert seen["form"]["public_id"] == "article_caption/abc"


@pytest.mark.asyncio
async def test_delete_not_found_is_failure():
    def handler(request):
        return httpx.Response(200, json={"result": "not found"})

    result = await _client(handler).delete("missing")
    assert not result.successful
    assert result.errors == ["not found"]


@pytest.mark.asyncio
async def test_delete_empty_id_is_noop():
    def handler(request):  # pragma: no cover
        raise AssertionError("no request expected")

    result = await _client(handler).delete(None)
    assert result.successful


@pytest.mark.asyncio
async def test_connect_and_disconnect():
    client = CloudinaryClient(cloud="demo", api_key="k", api_secret="s")
    await client.connect()
    assert client._client is not None
    await client.disconnect()
    assert client._client is None
