"""
Authenticated async client for the SolisCloud API.

Each call serializes the JSON body exactly once via
:func:`~solis.src.signing.sign_request`, POSTs those bytes with the
computed headers, and decodes the typed response envelope.

Failure modes (all fatal for the call, never retried here):

- Network error or timeout -> :class:`~solis.src.errors.TransportError`.
- Non-2xx HTTP status -> :class:`~solis.src.errors.TransportError`.
- Body that is not the expected envelope, or ``success == false``
  -> :class:`~solis.src.errors.ProtocolError`.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from solis.src.config import Credential
from solis.src.errors import ProtocolError, TransportError
from solis.src.models import Envelope, InverterPage, RawDetail
from solis.src.signing import sign_request

logger = logging.getLogger(__name__)

INVERTER_LIST_PATH = "/v1/api/inverterList"
INVERTER_DETAIL_PATH = "/v1/api/inverterDetail"

DEFAULT_TIMEOUT_S: float = 10.0
"""Per-request timeout in seconds when none is configured."""

D = TypeVar("D")


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class SolisCloudClient:
    """Signed POST client for the SolisCloud ``/v1/api`` endpoints.

    Args:
        credential: Vendor API base URL, key id, and secret.
        timeout_s: Per-request timeout bounding how long a stalled endpoint
            can block a polling cycle.
        transport: Optional httpx transport (tests inject a MockTransport).
        clock: Returns the aware datetime used for the ``Date`` header.

    Usage::

        async with SolisCloudClient(settings.credential()) as client:
            page = await client.inverter_list()
            detail = await client.inverter_detail(page.page.records[0].id)
    """

    def __init__(
        self,
        credential: Credential,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._credential = credential
        self._clock = clock
        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_s),
            transport=transport,
        )

    async def __aenter__(self) -> SolisCloudClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def call(self, path: str, body: Any, data_type: type[D]) -> D:
        """POST *body* to *path* and return the decoded envelope payload.

        Args:
            path: API path, e.g. ``/v1/api/inverterList``.
            body: JSON-serializable request body.
            data_type: Type of the envelope's ``data`` field.

        Returns:
            The validated ``data`` payload.

        Raises:
            TransportError: On network failure, timeout, or non-2xx status.
            ProtocolError: On an undecodable or unsuccessful envelope.
        """
        signed = sign_request(self._credential, path, body, now=self._clock())
        url = f"{self._credential.api_base}{path}"

        try:
            response = await self._http.post(
                url,
                content=signed.content,
                headers=signed.headers,
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"POST {path} failed: {exc!r}") from exc

        logger.debug("POST %s -> HTTP %d", path, response.status_code)
        if not response.is_success:
            raise TransportError(
                f"POST {path} returned HTTP {response.status_code}: "
                f"{response.text.strip()[:200]}",
                status_code=response.status_code,
            )

        try:
            envelope = Envelope[data_type].model_validate_json(response.content)  # type: ignore[valid-type]
        except ValidationError as exc:
            raise ProtocolError(f"POST {path}: malformed response envelope: {exc}") from exc

        if not envelope.success:
            raise ProtocolError(
                f"POST {path}: vendor error code={envelope.code!r} msg={envelope.msg!r}"
            )
        if envelope.data is None:
            raise ProtocolError(f"POST {path}: envelope has no data")
        return envelope.data

    async def inverter_list(self) -> InverterPage:
        """Fetch the first page (10 records) of the account's inverters."""
        return await self.call(
            INVERTER_LIST_PATH,
            {"pageNo": 1, "pageSize": 10},
            InverterPage,
        )

    async def inverter_detail(self, inverter_id: str) -> RawDetail:
        """Fetch the raw detail record of one inverter."""
        return await self.call(
            INVERTER_DETAIL_PATH,
            {"id": inverter_id},
            dict[str, Any],
        )
