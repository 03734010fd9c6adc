"""
Endpoint and probe primitives.
A probe is a single GET of the IDE tool listing; it doubles as the liveness check.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import aiohttp

from .config import API_PATH, PROBE_TIMEOUT

logger = logging.getLogger(__name__)

LIST_TOOLS_PATH = "/mcp/list_tools"


@dataclass(frozen=True)
class Endpoint:
    """Base URL of one IDE tool API instance, e.g. http://127.0.0.1:63342/api"""
    url: str

    @classmethod
    def for_port(cls, host: str, port: int) -> "Endpoint":
        return cls(f"http://{host}:{port}{API_PATH}")

    def tool_url(self, name: str) -> str:
        return f"{self.url}/mcp/{name}"

    def __str__(self) -> str:
        return self.url


@dataclass(frozen=True)
class ProbeResult:
    reachable: bool
    payload: str = ""
    status_code: Optional[int] = None


async def probe(session: aiohttp.ClientSession, endpoint: Endpoint,
                timeout: float = PROBE_TIMEOUT) -> ProbeResult:
    """Check whether the endpoint serves the tool listing. Never raises."""
    url = endpoint.url + LIST_TOOLS_PATH
    try:
        async with session.get(url, timeout=aiohttp.ClientTimeout(total=timeout)) as response:
            if not 200 <= response.status < 300:
                logger.debug(f"Probe {url} answered {response.status}")
                return ProbeResult(reachable=False, status_code=response.status)
            payload = await response.text()
            return ProbeResult(reachable=True, payload=payload, status_code=response.status)
    except Exception as e:
        logger.debug(f"Probe {url} failed: {e}")
        return ProbeResult(reachable=False)
