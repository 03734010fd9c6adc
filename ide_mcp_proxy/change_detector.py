"""
Tool-list change detection.
Successive tool-listing payloads are compared and the client is told when they differ.
"""

import logging
from typing import Any, Optional

from .probe import ProbeResult

logger = logging.getLogger(__name__)

# Baseline after a failed resolution: recovery always counts as a change
NO_TOOLS = ""


class Notifier:
    """Sends tools/list_changed to the connected MCP client session."""

    def __init__(self):
        self.session: Any = None

    def bind(self, session: Any) -> None:
        self.session = session

    async def tools_changed(self) -> None:
        if self.session is None:
            logger.info("Tool list changed before any client session was bound")
            return
        try:
            await self.session.send_tool_list_changed()
            logger.info("Sent tools/list_changed notification")
        except Exception as e:
            logger.error(f"Failed to send tools/list_changed: {e}")


class ChangeDetector:
    def __init__(self, notifier: Notifier):
        self.notifier = notifier
        self.last_payload: Optional[str] = None

    def observe(self, result: ProbeResult) -> bool:
        """Record a tool-listing probe result; True when the tool list changed."""
        if not result.reachable:
            return False
        previous = self.last_payload
        if previous == result.payload:
            return False
        self.last_payload = result.payload
        # First payload ever seen has nothing to diff against
        return previous is not None

    async def feed(self, result: ProbeResult) -> None:
        if self.observe(result):
            logger.info("IDE tool list changed")
            await self.notifier.tools_changed()

    def reset(self) -> None:
        self.last_payload = NO_TOOLS
