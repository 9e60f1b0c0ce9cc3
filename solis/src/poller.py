"""
Inventory warmup and sequential detail fetching.

Warmup runs once at startup: it lists the account's inverters and captures
their ids. The list is never refreshed, so inverters added later stay
invisible until the process restarts.

The :class:`Poller` then walks that fixed id list one device at a time,
pausing between devices to respect the vendor's rate limits:

- Fetches are strictly sequential, never concurrent.
- Any failure propagates to the caller and unwinds the cycle; there is no
  skip-and-continue.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from solis.src.errors import ProtocolError

if TYPE_CHECKING:
    from solis.src.client import SolisCloudClient
    from solis.src.models import RawDetail

logger = logging.getLogger(__name__)

DEVICE_INTERVAL_S: float = 1.0
"""Default pause in seconds between two device fetches."""


async def warmup(client: SolisCloudClient) -> tuple[str, ...]:
    """Fetch the inverter list once and return the ordered device ids.

    Raises:
        ProtocolError: If the account lists no inverters (nothing to poll).
        TransportError: If the list call fails.
    """
    page = await client.inverter_list()
    device_ids = tuple(record.id for record in page.page.records)
    if not device_ids:
        raise ProtocolError("inverter list returned no records; nothing to poll")
    logger.info(
        "Warmup complete: %d inverter(s) to poll (account total=%d)",
        len(device_ids),
        page.page.total,
    )
    return device_ids


class Poller:
    """Sequential, rate-limited detail fetcher over a fixed device list.

    Args:
        client: Authenticated SolisCloud client.
        device_ids: Ids captured at warmup.
        device_interval_s: Seconds to wait after each device before the next.
    """

    def __init__(
        self,
        client: SolisCloudClient,
        device_ids: tuple[str, ...],
        *,
        device_interval_s: float = DEVICE_INTERVAL_S,
    ) -> None:
        self._client = client
        self._device_ids = device_ids
        self._device_interval_s = device_interval_s

    @property
    def device_ids(self) -> tuple[str, ...]:
        return self._device_ids

    async def fetch(self, device_id: str) -> RawDetail:
        """Fetch one inverter's raw detail record."""
        return await self._client.inverter_detail(device_id)

    async def iter_details(self) -> AsyncIterator[tuple[str, RawDetail]]:
        """Yield ``(device_id, detail)`` for every device, in order.

        The pause after each device runs when the consumer asks for the next
        item, so processing of one detail always completes before the
        following fetch starts.
        """
        for device_id in self._device_ids:
            detail = await self.fetch(device_id)
            yield device_id, detail
            await asyncio.sleep(self._device_interval_s)
