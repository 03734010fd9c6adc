#!/usr/bin/env python3
"""
MCP Server proxying the JetBrains IDE tool API over stdio.
Tools are listed from and forwarded to whichever local IDE endpoint is currently answering.
"""

import asyncio
import logging
import sys
from typing import Any, List, Optional, Sequence

import aiohttp
from mcp.server import NotificationOptions, Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.types import CallToolRequest, Resource, ServerResult, Tool

from . import __version__
from .cache import EndpointCache
from .change_detector import ChangeDetector, Notifier
from .config import ProxyConfig, configure_logging, load_config
from .errors import ConfigError, ResourceNotFound
from .forwarder import RequestForwarder
from .resolver import EndpointResolver

logger = logging.getLogger(__name__)

SERVER_NAME = "jetbrains/proxy"

CURRENT_FILE_URI = "jetbrains://current_file"
CURRENT_FILE_TEXT = "Hello world!"


def list_static_resources() -> List[Resource]:
    return [
        Resource(
            uri=CURRENT_FILE_URI,
            mimeType="text/plain",
            name="Current File inside JetBrains IDE"
        )
    ]


def read_static_resource(uri: str) -> List[ReadResourceContents]:
    if uri == CURRENT_FILE_URI:
        return [ReadResourceContents(content=CURRENT_FILE_TEXT, mime_type="text/plain")]
    raise ResourceNotFound("Resource not found")


def create_server(forwarder: RequestForwarder, notifier: Notifier) -> Server:
    """Build the MCP server and register its handlers."""
    server = Server(SERVER_NAME, version=__version__)

    def bind_session() -> None:
        # Notifications go to whichever client session last talked to us
        try:
            notifier.bind(server.request_context.session)
        except LookupError:
            pass

    @server.list_tools()
    async def handle_list_tools() -> List[Tool]:
        """List the tools the IDE currently exposes."""
        bind_session()
        return await forwarder.list_tools()

    async def handle_call_tool(request: CallToolRequest) -> ServerResult:
        """Forward a tool call to the IDE."""
        bind_session()
        result = await forwarder.forward(request.params.name, request.params.arguments or {})
        return ServerResult(result)

    # Forwarded as-is, with no tool list lookup before the call
    server.request_handlers[CallToolRequest] = handle_call_tool

    @server.list_resources()
    async def handle_list_resources() -> List[Resource]:
        bind_session()
        return list_static_resources()

    @server.read_resource()
    async def handle_read_resource(uri: Any) -> List[ReadResourceContents]:
        bind_session()
        return read_static_resource(str(uri))

    return server


def initialization_options(server: Server) -> InitializationOptions:
    return InitializationOptions(
        server_name=SERVER_NAME,
        server_version=__version__,
        capabilities=server.get_capabilities(
            notification_options=NotificationOptions(tools_changed=True),
            experimental_capabilities={},
        ),
    )


async def serve(config: ProxyConfig) -> None:
    """Resolve the IDE endpoint, start the refresh loop and serve MCP over stdio."""
    notifier = Notifier()
    detector = ChangeDetector(notifier)

    async with aiohttp.ClientSession() as session:
        resolver = EndpointResolver(config, session, detector)
        cache = EndpointCache(resolver, config.refresh_interval)

        # First resolution finishes before the transport starts serving
        if await cache.refresh():
            logger.info(f"Using IDE endpoint {cache.endpoint}")
        else:
            logger.warning("No IDE endpoint found yet, will retry in the background")

        forwarder = RequestForwarder(session, cache, config.forward_timeout, config.probe_timeout)
        server = create_server(forwarder, notifier)
        cache.start()
        try:
            async with stdio_server() as (read_stream, write_stream):
                logger.info("JetBrains Proxy MCP Server running on stdio")
                await server.run(read_stream, write_stream, initialization_options(server))
        finally:
            await cache.stop()


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point."""
    try:
        config = load_config(argv)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    configure_logging(config)
    if config.ide_port is not None:
        logger.info(f"Using fixed IDE port {config.ide_port} on {config.host}")
    else:
        logger.info(f"Scanning IDE ports {config.port_range_start}-{config.port_range_end} on {config.host}")

    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        logger.info("Proxy stopped by user")


if __name__ == "__main__":
    main()
