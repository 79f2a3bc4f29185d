"""Async client for the Ghost Admin API.

Covers the handful of endpoints the publisher needs: the site probe,
post fetch/create/update and image upload.  Every authenticated call
sends ``Authorization: Ghost {token}``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ghostpost.errors import ConfigurationError, PostNotFoundError, RemoteError

logger = logging.getLogger(__name__)

ADMIN_API_PATH = "/ghost/api/admin"
DEFAULT_TIMEOUT = 30.0


class GhostAdminClient:
    """Thin async REST client for the Ghost Admin API.

    The caller owns the underlying :class:`httpx.AsyncClient` and its
    lifetime; the token is minted once per publish operation.
    """

    def __init__(self, blog_url: str, token: str | None, http: httpx.AsyncClient) -> None:
        self._api_url = f"{blog_url.rstrip('/')}{ADMIN_API_PATH}"
        self._token = token
        self._http = http

    async def site(self) -> dict[str, Any]:
        """Fetch public site metadata. GET /site/ (unauthenticated)."""
        data = await self._request("GET", "/site/", auth=False, action="fetch site")
        return data.get("site", {})

    async def get_post(self, post_id: str) -> dict[str, Any]:
        """Fetch a post by id. GET /posts/{id}/

        Raises:
            PostNotFoundError: The post does not exist (404).
        """
        data = await self._request("GET", f"/posts/{post_id}/", action="fetch post")
        return _first(data, "posts")

    async def create_post(self, post: dict[str, Any]) -> dict[str, Any]:
        """Create a post. POST /posts/"""
        data = await self._request("POST", "/posts/", json={"posts": [post]}, action="create post")
        return _first(data, "posts")

    async def update_post(self, post_id: str, post: dict[str, Any]) -> dict[str, Any]:
        """Update an existing post. PUT /posts/{id}/"""
        data = await self._request(
            "PUT", f"/posts/{post_id}/", json={"posts": [post]}, action="update post"
        )
        return _first(data, "posts")

    async def upload_image(
        self,
        content: bytes,
        *,
        filename: str,
        content_type: str,
        ref: str,
    ) -> str:
        """Upload an image as multipart form data and return its remote URL.

        POST /images/upload/
        """
        data = await self._request(
            "POST",
            "/images/upload/",
            files={"file": (filename, content, content_type)},
            data={"ref": ref, "purpose": "image"},
            action=f"upload image {ref}",
        )
        url = _first(data, "images").get("url")
        if not url:
            raise RemoteError(f"Image upload for {ref} returned no URL", status=200)
        return url

    async def _request(
        self,
        method: str,
        path: str,
        *,
        action: str,
        auth: bool = True,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Make a request and return the parsed JSON body.

        Raises:
            RemoteError: On any non-2xx response or connection failure.
        """
        url = f"{self._api_url}{path}"
        headers = {"Accept": "application/json"}
        if auth:
            if not self._token:
                raise ConfigurationError(f"An Admin API token is required to {action}")
            headers["Authorization"] = f"Ghost {self._token}"

        logger.debug("%s %s", method, url)
        try:
            resp = await self._http.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise RemoteError(f"Ghost connection error during {action}: {exc}") from exc

        if resp.status_code == 404 and method == "GET" and path.startswith("/posts/"):
            raise PostNotFoundError(
                f"Post not found ({path.strip('/').split('/')[-1]})",
                status=404,
                body=resp.text,
            )
        if not resp.is_success:
            raise RemoteError(
                f"Failed to {action}: {resp.status_code} {resp.reason_phrase}",
                status=resp.status_code,
                body=resp.text,
            )

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            raise RemoteError(
                f"Invalid JSON from Ghost during {action}",
                status=resp.status_code,
                body=resp.text,
            ) from exc


def _first(data: dict[str, Any], key: str) -> dict[str, Any]:
    items = data.get(key) or [{}]
    return items[0]
