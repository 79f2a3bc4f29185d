"""Ghost Admin API token minting.

Ghost Admin API keys look like ``{id}:{secret}`` where the secret is
hex-encoded.  Each request is authorized with a short-lived HS256 JWT
signed with the decoded secret and scoped to the ``/admin/`` audience.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from base64 import urlsafe_b64encode

TOKEN_TTL_SECONDS = 300
TOKEN_AUDIENCE = "/admin/"


def _b64url(raw: bytes) -> str:
    return urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _encode_segment(data: dict[str, object]) -> str:
    return _b64url(json.dumps(data, separators=(",", ":")).encode("utf-8"))


def split_credential(credential: str) -> tuple[str, bytes] | None:
    """Split an ``id:secret`` Admin API key into its id and secret bytes.

    Returns ``None`` when the key is not exactly two non-empty parts or
    the secret is not valid hex.
    """
    parts = credential.strip().split(":")
    if len(parts) != 2 or not all(parts):
        return None
    key_id, secret_hex = parts
    try:
        secret = bytes.fromhex(secret_hex)
    except ValueError:
        return None
    return key_id, secret


def mint_admin_token(credential: str, *, now: int | None = None) -> str | None:
    """Build a signed Admin API token from an ``id:secret`` credential.

    Args:
        credential: The Admin API key as stored in the secret store.
        now: Issue time in epoch seconds. Defaults to the current time.

    Returns:
        The compact ``header.payload.signature`` token, or ``None`` if the
        credential is malformed.
    """
    parsed = split_credential(credential)
    if parsed is None:
        return None
    key_id, secret = parsed

    issued_at = int(time.time()) if now is None else now
    header = {"alg": "HS256", "kid": key_id}
    payload = {
        "iat": issued_at,
        "exp": issued_at + TOKEN_TTL_SECONDS,
        "aud": TOKEN_AUDIENCE,
    }

    signing_input = f"{_encode_segment(header)}.{_encode_segment(payload)}"
    signature = hmac.new(secret, signing_input.encode("ascii"), hashlib.sha256).digest()
    return f"{signing_input}.{_b64url(signature)}"
