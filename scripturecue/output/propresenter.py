"""ProPresenter HTTP API client."""

import asyncio
import logging
from typing import List, Optional

import aiohttp

from ..models.settings import ProPresenterConnection
from .sink import PresentationTarget, PresentationTriggerResult

logger = logging.getLogger(__name__)


class ProPresenterError(Exception):
    """A ProPresenter request failed."""


class ProPresenterClient:
    """Triggers slides on one or more ProPresenter instances."""

    def __init__(self, connections: List[ProPresenterConnection], timeout_seconds: float = 5.0):
        """Initialize ProPresenter client.

        Args:
            connections: Known ProPresenter endpoints
            timeout_seconds: Per-request timeout
        """
        self.connections = list(connections)
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

        logger.info(f"ProPresenterClient initialized with {len(self.connections)} connection(s)")

    def select_connections(self, connection_ids: Optional[List[str]]) -> List[ProPresenterConnection]:
        """Enabled connections, optionally limited to the given ids."""
        enabled = [c for c in self.connections if c.enabled]
        if not connection_ids:
            return enabled
        wanted = set(connection_ids)
        return [c for c in enabled if c.id in wanted]

    async def trigger_slide(
        self,
        session: aiohttp.ClientSession,
        connection: ProPresenterConnection,
        target: PresentationTarget,
    ) -> None:
        """Trigger one slide once.

        Raises:
            ProPresenterError: If the request fails or returns a non-2xx status
        """
        url = (
            f"{connection.api_url}/v1/presentation/{target.presentation_uuid}"
            f"/slide/{target.slide_index}/trigger"
        )
        try:
            async with session.post(url, headers={"Content-Type": "application/json"}) as response:
                if response.status >= 300:
                    error_text = await response.text()
                    raise ProPresenterError(
                        f"{connection.name or connection.id}: HTTP {response.status} - {error_text}"
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProPresenterError(f"{connection.name or connection.id}: {e}") from e

    async def _click(
        self,
        session: aiohttp.ClientSession,
        connection: ProPresenterConnection,
        target: PresentationTarget,
        click_count: int,
        inter_click_delay_ms: int,
    ) -> None:
        for click in range(click_count):
            if click > 0 and inter_click_delay_ms > 0:
                await asyncio.sleep(inter_click_delay_ms / 1000)
            await self.trigger_slide(session, connection, target)

    async def trigger_presentation(
        self,
        target: PresentationTarget,
        connection_ids: Optional[List[str]],
        click_count: int,
        inter_click_delay_ms: int = 100,
    ) -> PresentationTriggerResult:
        """Trigger a slide ``click_count`` times on every selected connection.

        Connections are driven concurrently; clicks on one connection are
        sequential. A connection counts as failed if any of its clicks fail.
        """
        result = PresentationTriggerResult()
        connections = self.select_connections(connection_ids)
        if not connections or click_count <= 0:
            return result

        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            outcomes = await asyncio.gather(
                *(self._click(session, c, target, click_count, inter_click_delay_ms) for c in connections),
                return_exceptions=True,
            )

        for connection, outcome in zip(connections, outcomes):
            if isinstance(outcome, ProPresenterError):
                result.fail_count += 1
                result.errors.append(str(outcome))
                logger.error(f"ProPresenter trigger failed: {outcome}")
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.success_count += 1

        logger.info(
            f"Triggered slide {target.slide_index} x{click_count}: "
            f"{result.success_count} ok, {result.fail_count} failed"
        )
        return result
