"""Signature utilities for DingTalk requests.

This module provides:
- URL normalisation for JSAPI signing
- JSAPI config signing (SHA1 over sorted ``key=value`` pairs)
- Generic HMAC and hash digests used by signed login flows
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlsplit, urlunsplit


def _encode_digest(digest: bytes, encoding: str) -> str:
    if encoding == "hex":
        return digest.hex()
    if encoding == "base64":
        return base64.b64encode(digest).decode("utf-8")
    raise ValueError(f"Unsupported digest encoding: {encoding}")


def signature_hmac(
    text: str,
    secret: str,
    algorithm: str = "sha256",
    encoding: str = "hex",
) -> str:
    """Compute a keyed HMAC digest of ``text``.

    Args:
        text: String to sign.
        secret: HMAC key.
        algorithm: Any name accepted by ``hashlib`` (default sha256).
        encoding: ``"hex"`` or ``"base64"``.

    Returns:
        Encoded digest.

    Example:
        ```python
        sign = signature_hmac(str(timestamp_ms), appsecret, "sha256", "base64")
        ```
    """
    digest = hmac.new(
        secret.encode("utf-8"),
        text.encode("utf-8"),
        digestmod=algorithm,
    ).digest()
    return _encode_digest(digest, encoding)


def signature_hash(text: str, algorithm: str = "sha1", encoding: str = "hex") -> str:
    """Compute an unkeyed digest of ``text`` (default sha1/hex)."""
    digest = hashlib.new(algorithm, text.encode("utf-8")).digest()
    return _encode_digest(digest, encoding)


def normalize_url(url: str) -> str:
    """Normalise a page URL the way the JSAPI signature verifier expects.

    - the fragment is dropped
    - query values are URL-decoded (no ``%2F`` and friends)
    - repeated keys collapse into one ``key=v1,v2`` pair
    - only the host is lower-cased; userinfo, path and query keep their case

    Values are written back decoded, so a value that decodes to ``+``, ``&``
    or ``#`` changes meaning if the result is normalised again. Ordinary page
    URLs are stable under repeated calls.

    Args:
        url: Full URL of the current page.

    Returns:
        URL ready to be placed in the signature input.
    """
    parts = urlsplit(url)

    query: dict[str, list[str]] = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        query.setdefault(key, []).append(value)
    query_str = "&".join(f"{key}={','.join(values)}" for key, values in query.items())

    path = parts.path
    if parts.netloc and not path:
        path = "/"

    userinfo, at, hostport = parts.netloc.rpartition("@")
    netloc = f"{userinfo}{at}{hostport.lower()}"

    base = urlunsplit((parts.scheme, netloc, path, "", ""))
    return f"{base}?{query_str}" if query_str else base


def build_sign_content(fields: Mapping[str, Any]) -> str:
    """Serialise signature fields as ``key=value`` pairs sorted by key."""
    return "&".join(f"{key}={fields[key]}" for key in sorted(fields))


def sign_jsapi(fields: Mapping[str, Any]) -> str:
    """Return the SHA1 hex signature for a JSAPI signing input."""
    return signature_hash(build_sign_content(fields), "sha1", "hex")
