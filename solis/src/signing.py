"""
Pure request-signing helpers for the SolisCloud API.

The vendor authenticates each call with an HMAC-SHA1 over a canonical
signing string::

    POST\\n{content_md5}\\napplication/json\\n{date}\\n{path}

where ``content_md5`` is the base64 MD5 digest of the exact request body.
Everything here is a pure function (no I/O, no clock): the caller supplies
the body bytes and the date so signatures are reproducible in tests.

:class:`SignedRequest` bundles the body bytes with the headers computed over
them. The client sends ``SignedRequest.content`` verbatim, so the digest can
never drift from what goes on the wire.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
from dataclasses import dataclass
from datetime import datetime
from email.utils import format_datetime
from typing import Any

from solis.src.config import Credential

CONTENT_TYPE = "application/json;charset=utf-8"
"""Value of the ``Content-Type`` header sent on every request."""

SIGNED_CONTENT_TYPE = "application/json"
"""Content type as it appears inside the signing string."""

METHOD = "POST"


def canonical_json(body: Any) -> bytes:
    """Serialize *body* to the compact, key-sorted UTF-8 form put on the wire."""
    return json.dumps(
        body,
        separators=(",", ":"),
        sort_keys=True,
        ensure_ascii=False,
    ).encode("utf-8")


def content_md5(content: bytes) -> str:
    """Return the base64-encoded MD5 digest of *content*."""
    return base64.b64encode(hashlib.md5(content).digest()).decode("ascii")


def http_date(when: datetime) -> str:
    """Format an aware datetime as RFC 2822 with a numeric zone (``+0000``)."""
    return format_datetime(when)


def signing_string(*, digest: str, date: str, path: str) -> str:
    """Build the exact string the vendor expects to be signed."""
    return f"{METHOD}\n{digest}\n{SIGNED_CONTENT_TYPE}\n{date}\n{path}"


def sign(secret: str, message: str) -> str:
    """Return base64(HMAC-SHA1(secret, message))."""
    mac = hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha1)
    return base64.b64encode(mac.digest()).decode("ascii")


@dataclass(frozen=True, slots=True)
class SignedRequest:
    """A request body together with the headers that authenticate it.

    Attributes:
        path: API path, e.g. ``/v1/api/inverterDetail``.
        content: Exact body bytes; the digest in *headers* covers these.
        headers: ``Content-Type``, ``Date``, ``Content-MD5``, ``Authorization``.
    """

    path: str
    content: bytes
    headers: dict[str, str]


def sign_request(
    credential: Credential,
    path: str,
    body: Any,
    *,
    now: datetime,
) -> SignedRequest:
    """Serialize *body* once and compute every authentication header over it.

    Args:
        credential: Vendor key id and secret.
        path: API path included in the signing string.
        body: JSON-serializable request body.
        now: Aware timestamp used for the ``Date`` header.

    Returns:
        A :class:`SignedRequest` whose ``content`` must be sent unmodified.
    """
    content = canonical_json(body)
    digest = content_md5(content)
    date = http_date(now)
    signature = sign(credential.secret, signing_string(digest=digest, date=date, path=path))
    return SignedRequest(
        path=path,
        content=content,
        headers={
            "Content-Type": CONTENT_TYPE,
            "Date": date,
            "Content-MD5": digest,
            "Authorization": f"API {credential.access_key}:{signature}",
        },
    )
