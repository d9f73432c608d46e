"""Middleware for Trello MCP server.

This module provides middleware components that run before tool execution.
"""

import logging
from collections.abc import Callable
from typing import Any

from fastmcp.exceptions import ToolError
from fastmcp.server.middleware import Middleware, MiddlewareContext

from .client import TrelloClient
from .config import TrelloConfig, validate_credentials

logger = logging.getLogger(__name__)


class ClientMiddleware(Middleware):
    """Middleware that creates and injects TrelloClient for all tool calls.

    This middleware:
    1. Receives the Trello config at initialization
    2. Validates that credentials are properly configured
    3. Creates a TrelloClient per call and manages its lifecycle
    4. Injects the client into the context state for tools to access via ctx.get_state("client")
    5. Raises ToolError if authentication is not configured
    """

    def __init__(self, config: TrelloConfig) -> None:
        self.config = config

    async def on_call_tool(self, context: MiddlewareContext, call_next: Callable[..., Any]):
        """Create and inject TrelloClient before every tool call."""
        if not validate_credentials(self.config):
            raise ToolError(
                "Trello credentials not configured. "
                "Please run 'trello-mcp-auth' to set up authentication."
            )

        tool_name = getattr(context.message, "name", None)
        logger.debug("Calling tool %s", tool_name)

        async with TrelloClient(self.config) as client:
            if context.fastmcp_context:
                context.fastmcp_context.set_state("client", client)

            return await call_next(context)
