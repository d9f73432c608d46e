"""Trello MCP Server - Main entry point."""

import argparse
import logging
import os

from dotenv import load_dotenv
from fastmcp import FastMCP

from .config import TrelloConfig
from .middleware import ClientMiddleware

# Load environment variables
load_dotenv()

READ_ONLY = {
    "readOnlyHint": True,
    "openWorldHint": False,
}


def create_server(config: TrelloConfig | None = None) -> FastMCP:
    """Create and configure the FastMCP server.

    Args:
        config: Trello configuration; loaded from the environment when omitted

    Returns:
        Configured FastMCP instance
    """
    if config is None:
        config = TrelloConfig()

    mcp = FastMCP("Trello")

    # Register middleware with pre-loaded config
    mcp.add_middleware(ClientMiddleware(config))

    # Import and register tools
    from .tools.boards import (
        get_active_board_info,
        get_card,
        get_lists,
        get_recent_activity,
        list_boards,
        list_boards_in_workspace,
        list_workspaces,
    )
    from .tools.cards import (
        get_all_cards_by_list,
        get_card_ids_by_list,
        get_cards_batch,
        get_cards_by_list_id,
        get_cards_by_list_paginated,
        get_list_stats,
        get_my_cards,
    )
    from .tools.checklists import (
        find_checklist_items_by_description,
        get_acceptance_criteria,
        get_checklist_by_name,
        get_checklist_items,
    )

    # Register card collection tools
    mcp.tool(annotations=READ_ONLY)(get_cards_by_list_paginated)
    mcp.tool(annotations=READ_ONLY)(get_all_cards_by_list)
    mcp.tool(annotations=READ_ONLY)(get_card_ids_by_list)
    mcp.tool(annotations=READ_ONLY)(get_cards_batch)
    mcp.tool(annotations=READ_ONLY)(get_list_stats)
    mcp.tool(annotations=READ_ONLY)(get_cards_by_list_id)
    mcp.tool(annotations=READ_ONLY)(get_my_cards)

    # Register board navigation tools
    mcp.tool(annotations=READ_ONLY)(list_boards)
    mcp.tool(annotations=READ_ONLY)(get_lists)
    mcp.tool(annotations=READ_ONLY)(get_card)
    mcp.tool(annotations=READ_ONLY)(get_recent_activity)
    mcp.tool(annotations=READ_ONLY)(list_workspaces)
    mcp.tool(annotations=READ_ONLY)(list_boards_in_workspace)
    mcp.tool(annotations=READ_ONLY)(get_active_board_info)

    # Register checklist tools
    mcp.tool(annotations=READ_ONLY)(get_checklist_items)
    mcp.tool(annotations=READ_ONLY)(get_checklist_by_name)
    mcp.tool(annotations=READ_ONLY)(find_checklist_items_by_description)
    mcp.tool(annotations=READ_ONLY)(get_acceptance_criteria)

    # MCP Prompts - Templates for common queries
    @mcp.prompt()
    async def explore_large_list(list_id: str) -> str:  # type: ignore[reportUnusedFunction]
        """Explore a Trello list that may hold thousands of cards.

        Args:
            list_id: The ID of the list to explore
        """
        return f"""Explore Trello list {list_id} without overflowing the context window.

Steps:
1. Call get_list_stats with list_id="{list_id}" to learn the card count and estimated tokens
2. If the list is small, use get_all_cards_by_list with lightweight=true
3. Otherwise call get_card_ids_by_list to survey names and positions
4. Fetch only the cards you need with get_cards_batch (up to 100 IDs per call)
5. To read sequentially, page with get_cards_by_list_paginated, passing
   pagination.next_cursor as `before` until has_more is false

Summarize what the list contains and call out anything that looks stale."""

    return mcp


def main():
    """Main entry point for the Trello MCP server."""
    parser = argparse.ArgumentParser(description="Trello MCP Server")
    parser.add_argument(
        "--transport",
        type=str,
        choices=["stdio", "http"],
        default="stdio",
        help="Transport mode: stdio (default) or http",
    )
    args = parser.parse_args()

    # stdout carries the stdio protocol, so logs go to stderr
    logging.basicConfig(level=os.getenv("TRELLO_MCP_LOG_LEVEL", "WARNING").upper())

    mcp = create_server()

    if args.transport == "http":
        host = os.getenv("TRELLO_MCP_HOST", "127.0.0.1")
        port = int(os.getenv("TRELLO_MCP_PORT", "8000"))
        mcp.run(transport="streamable-http", host=host, port=port)
    else:
        mcp.run()


if __name__ == "__main__":
    main()
