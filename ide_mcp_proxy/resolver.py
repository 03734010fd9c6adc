"""
Endpoint resolution.
Finds the IDE endpoint that currently answers the tool-listing probe, either at a
fixed configured port or by scanning the default port range.
"""

import logging
from typing import Awaitable, Callable, Optional

import aiohttp

from .change_detector import ChangeDetector
from .config import ProxyConfig
from .errors import EndpointNotFound
from .probe import Endpoint, ProbeResult, probe

logger = logging.getLogger(__name__)

ProbeFunc = Callable[[Optional[aiohttp.ClientSession], Endpoint], Awaitable[ProbeResult]]


class EndpointResolver:
    def __init__(self, config: ProxyConfig, session: Optional[aiohttp.ClientSession] = None,
                 detector: Optional[ChangeDetector] = None, probe_func: Optional[ProbeFunc] = None):
        self.config = config
        self.session = session
        self.detector = detector
        self.probe_func = probe_func or self._default_probe

    async def _default_probe(self, session, endpoint: Endpoint) -> ProbeResult:
        return await probe(session, endpoint, timeout=self.config.probe_timeout)

    async def _check(self, endpoint: Endpoint) -> bool:
        result = await self.probe_func(self.session, endpoint)
        if self.detector is not None:
            await self.detector.feed(result)
        return result.reachable

    async def resolve(self) -> Endpoint:
        """Return the first reachable endpoint, raising EndpointNotFound if none answers."""
        config = self.config
        try:
            if config.ide_port is not None:
                endpoint = Endpoint.for_port(config.host, config.ide_port)
                if await self._check(endpoint):
                    return endpoint
                raise EndpointNotFound(
                    f"Specified IDE_PORT={config.ide_port} but it is not responding correctly"
                )

            for port in config.candidate_ports():
                endpoint = Endpoint.for_port(config.host, port)
                if await self._check(endpoint):
                    logger.info(f"Found working IDE endpoint at {endpoint}")
                    return endpoint

            raise EndpointNotFound(
                f"No working IDE endpoint found in range "
                f"{config.port_range_start}-{config.port_range_end}"
            )
        except EndpointNotFound:
            if self.detector is not None:
                self.detector.reset()
            raise
