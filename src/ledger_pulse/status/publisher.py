import asyncio
import time
from typing import Any, Optional

import aiohttp

from ledger_pulse.messaging.bus import bus as messaging_bus
from ledger_pulse.providers.http import perform_request
from ledger_pulse.runtime.bus import MessageBus
from ledger_pulse.runtime.events import GenesisFetched, StatusPublished
from ledger_pulse.runtime.exceptions import GenesisUnavailable, PublishFailed
from ledger_pulse.status.snapshot import StatusSnapshot

TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)


def _join(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path}"


class StatusPublisher:
    """
    Talks to the primary/collector over HTTP.

    Each call makes exactly one request. Nothing is retried here; the caller's
    reporting loop decides when to try again.
    """

    def __init__(
        self,
        bus: Optional[MessageBus] = None,
        verify_ssl: bool = False,
        request_timeout: Optional[float] = None,
    ):
        self.bus = bus or MessageBus()
        self.verify_ssl = verify_ssl
        self.request_timeout = request_timeout

    async def fetch_genesis(self, primary_base_url: str) -> Any:
        """Used by secondaries to get the genesis block from the primary."""
        url = _join(primary_base_url, "genesis")
        try:
            response = await perform_request(
                url, "GET", verify_ssl=self.verify_ssl, timeout=self.request_timeout
            )
        except TRANSPORT_ERRORS as e:
            messaging_bus.error("genesis.error", url=url)
            messaging_bus.debug("genesis.transport_error", error=repr(e))
            raise GenesisUnavailable(url) from e

        if response.status != 200:
            body = response.body_for_log()
            messaging_bus.error("genesis.error", url=url)
            messaging_bus.debug(
                "genesis.error_response", status_code=response.status, body=body
            )
            raise GenesisUnavailable(url, status=response.status, body=body)

        try:
            genesis = response.json()
        except ValueError as e:
            messaging_bus.error("genesis.error", url=url)
            messaging_bus.debug("genesis.invalid_body", body=response.text()[:200])
            raise GenesisUnavailable(url, status=response.status, body=response.text()) from e

        self.bus.publish(GenesisFetched(url=url))
        return genesis

    async def publish(self, snapshot: StatusSnapshot, collector_url: str) -> None:
        """Used by primaries and secondaries to send status."""
        url = _join(collector_url, "nodes")
        messaging_bus.debug("status.sending", url=url)

        start = time.time()
        try:
            response = await perform_request(
                url,
                "POST",
                json_data=snapshot.to_payload(),
                verify_ssl=self.verify_ssl,
                timeout=self.request_timeout,
            )
        except TRANSPORT_ERRORS as e:
            messaging_bus.error("status.publish_failed", url=url, reason=repr(e))
            raise PublishFailed(url, reason=repr(e)) from e

        if not response.ok:
            body = response.body_for_log()
            messaging_bus.error(
                "status.publish_rejected", url=url, status_code=response.status, body=body
            )
            raise PublishFailed(url, status=response.status, body=body)

        self.bus.publish(
            StatusPublished(url=url, status=response.status, duration=time.time() - start)
        )
