"""Tests for the Ghost Admin API client."""

import asyncio
import json

import httpx
import pytest
from fakes import BLOG_URL

from ghostpost.client import GhostAdminClient
from ghostpost.errors import ConfigurationError, PostNotFoundError, RemoteError


def _call(handler, method_name: str, *args, token: str | None = "tok", **kwargs):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = GhostAdminClient(f"{BLOG_URL}/", token, http)
            return await getattr(client, method_name)(*args, **kwargs)

    return asyncio.run(go())


class TestRequests:
    def test_site_is_unauthenticated(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"site": {"title": "Blog"}})

        site = _call(handler, "site", token=None)
        assert site == {"title": "Blog"}
        assert str(seen[0].url) == "https://blog.test/ghost/api/admin/site/"
        assert "Authorization" not in seen[0].headers

    def test_get_post_sends_auth_header(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"posts": [{"id": "abc"}]})

        assert _call(handler, "get_post", "abc") == {"id": "abc"}
        assert seen[0].method == "GET"
        assert seen[0].url.path == "/ghost/api/admin/posts/abc/"
        assert seen[0].headers["Authorization"] == "Ghost tok"

    def test_create_post_wraps_payload(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(201, json={"posts": [{"id": "new", "url": "https://blog.test/t/"}]})

        result = _call(handler, "create_post", {"title": "T"})
        assert seen == [{"posts": [{"title": "T"}]}]
        assert result["id"] == "new"

    def test_update_post_uses_put(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path))
            return httpx.Response(200, json={"posts": [{"id": "abc"}]})

        _call(handler, "update_post", "abc", {"title": "T"})
        assert seen == [("PUT", "/ghost/api/admin/posts/abc/")]

    def test_upload_image_returns_url(self):
        def handler(request):
            return httpx.Response(201, json={"images": [{"url": "https://blog.test/img.png"}]})

        url = _call(
            handler,
            "upload_image",
            b"data",
            filename="img.png",
            content_type="image/png",
            ref="img.png",
        )
        assert url == "https://blog.test/img.png"

    def test_requires_token_for_admin_calls(self):
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(ConfigurationError):
            _call(handler, "get_post", "abc", token=None)


class TestErrors:
    def test_404_on_fetch_is_post_not_found(self):
        def handler(request):
            return httpx.Response(404, text='{"errors":[{"message":"Post not found."}]}')

        with pytest.raises(PostNotFoundError) as excinfo:
            _call(handler, "get_post", "gone")
        assert excinfo.value.status == 404
        assert "Post not found" in str(excinfo.value)

    @pytest.mark.parametrize("status", [400, 401, 409, 422, 500, 503])
    def test_non_2xx_is_remote_error(self, status):
        def handler(request):
            return httpx.Response(status, text="nope")

        with pytest.raises(RemoteError) as excinfo:
            _call(handler, "create_post", {"title": "T"})
        assert excinfo.value.status == status
        assert excinfo.value.body == "nope"
        assert not isinstance(excinfo.value, PostNotFoundError)

    def test_site_probe_failure(self):
        def handler(request):
            return httpx.Response(502, text="bad gateway")

        with pytest.raises(RemoteError) as excinfo:
            _call(handler, "site", token=None)
        assert excinfo.value.status == 502

    def test_connection_error_is_remote_error(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        with pytest.raises(RemoteError, match="connection error"):
            _call(handler, "create_post", {"title": "T"})
