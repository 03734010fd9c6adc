"""
Endpoint cache and periodic refresh.

The cache owns the resolved endpoint. Only refresh() writes it, and it does so
with a single assignment of an immutable snapshot, so a tool call that runs
while a refresh is suspended on I/O sees either the old or the new endpoint.

A failed refresh keeps the previously resolved endpoint: tool calls keep going
to it through a short IDE hiccup and fail on their own if it is really gone.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from .errors import EndpointNotFound
from .probe import Endpoint
from .resolver import EndpointResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EndpointState:
    endpoint: Optional[Endpoint] = None

    @property
    def resolved(self) -> bool:
        return self.endpoint is not None


UNRESOLVED = EndpointState()


class EndpointCache:
    def __init__(self, resolver: EndpointResolver, interval: float):
        self.resolver = resolver
        self.interval = interval
        self._state = UNRESOLVED
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> EndpointState:
        return self._state

    @property
    def endpoint(self) -> Optional[Endpoint]:
        return self._state.endpoint

    async def refresh(self) -> bool:
        """Re-run resolution and publish the result. Returns True on success."""
        try:
            endpoint = await self.resolver.resolve()
        except EndpointNotFound as e:
            if self._state.resolved:
                logger.warning(f"Failed to update IDE endpoint, keeping {self._state.endpoint}: {e}")
            else:
                logger.warning(f"Failed to update IDE endpoint: {e}")
            return False
        self._state = EndpointState(endpoint)
        return True

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.refresh()
            except Exception as e:
                logger.error(f"Unexpected error while refreshing IDE endpoint: {e}")

    def start(self) -> asyncio.Task:
        """Start the background refresh task. Call refresh() once before this."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
