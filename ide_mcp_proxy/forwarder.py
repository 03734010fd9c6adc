"""
Request forwarding to the IDE tool API.

tools/call is sent as POST {endpoint}/mcp/{name} with the arguments as JSON body.
The IDE answers {"status": str, "error": null} or {"status": null, "error": str}.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Union

import aiohttp
from mcp.types import CallToolResult, TextContent, Tool

from .cache import EndpointCache
from .config import FORWARD_TIMEOUT, PROBE_TIMEOUT
from .errors import ForwardingFailure, ToolListUnavailable
from .probe import LIST_TOOLS_PATH

logger = logging.getLogger(__name__)

NO_ENDPOINT_MESSAGE = "No working IDE endpoint available."
UNKNOWN_ERROR = "Unknown error"


@dataclass(frozen=True)
class IdeSuccess:
    text: str


@dataclass(frozen=True)
class IdeFailure:
    message: str


IdeResponse = Union[IdeSuccess, IdeFailure]


def decode_ide_response(body: Any) -> IdeResponse:
    """Decode the IDE reply into IdeSuccess or IdeFailure."""
    if not isinstance(body, dict):
        raise ForwardingFailure(f"Malformed IDE response: expected an object, got {type(body).__name__}")
    status = body.get("status")
    error = body.get("error")
    if error is not None:
        return IdeFailure(str(error))
    if status is not None:
        return IdeSuccess(str(status))
    raise ForwardingFailure("Malformed IDE response: neither status nor error is set")


def text_result(text: str, is_error: bool) -> CallToolResult:
    return CallToolResult(
        content=[
            TextContent(
                type="text",
                text=text
            )
        ],
        isError=is_error
    )


def to_result(response: IdeResponse) -> CallToolResult:
    if isinstance(response, IdeFailure):
        return text_result(response.message, True)
    return text_result(response.text, False)


class RequestForwarder:
    def __init__(self, session: aiohttp.ClientSession, cache: EndpointCache,
                 timeout: float = FORWARD_TIMEOUT, list_timeout: float = PROBE_TIMEOUT):
        self.session = session
        self.cache = cache
        self.timeout = timeout
        self.list_timeout = list_timeout

    async def forward(self, name: str, arguments: Dict[str, Any]) -> CallToolResult:
        """Call one IDE tool. Failures come back as isError results, never as exceptions."""
        endpoint = self.cache.endpoint
        if endpoint is None:
            return text_result(NO_ENDPOINT_MESSAGE, True)

        try:
            async with self.session.post(
                endpoint.tool_url(name),
                json=arguments,
                headers={"Content-Type": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                if not 200 <= response.status < 300:
                    raise ForwardingFailure(f"Response failed: {response.status}")
                body = await response.json(content_type=None)
            return to_result(decode_ide_response(body))
        except Exception as e:
            logger.error(f"Tool call '{name}' failed: {e!r}")
            return text_result(str(e) or UNKNOWN_ERROR, True)

    async def list_tools(self) -> List[Tool]:
        """Fetch the tool descriptors from the cached endpoint."""
        endpoint = self.cache.endpoint
        if endpoint is None:
            raise ToolListUnavailable(NO_ENDPOINT_MESSAGE)

        try:
            async with self.session.get(
                endpoint.url + LIST_TOOLS_PATH,
                timeout=aiohttp.ClientTimeout(total=self.list_timeout)
            ) as response:
                if not 200 <= response.status < 300:
                    raise ToolListUnavailable(f"Unable to list tools: {response.status}")
                descriptors = await response.json(content_type=None)
        except ToolListUnavailable:
            raise
        except Exception as e:
            raise ToolListUnavailable(f"Unable to list tools: {e}") from e

        if not isinstance(descriptors, list):
            raise ToolListUnavailable("Unable to list tools: expected a JSON array")
        return [Tool.model_validate(descriptor) for descriptor in descriptors]
