"""Board, list and single-card tools for Trello MCP server.

This module provides read-only navigation tools with structured JSON output.
"""

from typing import Annotated

from fastmcp import Context

from ..client import TrelloAPIError, TrelloClient
from ..pagination import MAX_PAGE_SIZE, PaginationHelper
from ..response_builder import ResponseBuilder
from .errors import api_error, internal_error, validation_error

ACTION_FIELDS = ["id", "type", "date", "data", "idMemberCreator"]


def resolve_board_id(client: TrelloClient, board_id: str | None) -> str:
    resolved = board_id or client.default_board_id
    if not resolved:
        raise validation_error(
            "No board ID provided and no default board configured. "
            "Pass board_id or set TRELLO_BOARD_ID."
        )
    return resolved


async def list_boards(ctx: Context | None = None) -> str:
    """List the open boards of the authenticated Trello member.

    Returns: JSON string with structure:
    {
        "data": {
            "boards": [{"id": "...", "name": "...", "url": "...", "closed": false}],
            "count": N
        },
        "metadata": {"fetched_at": "ISO timestamp", "query_type": "list_boards"}
    }
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")

    try:
        boards = await client.list_boards()
    except TrelloAPIError as e:
        raise api_error(e) from e
    except Exception as e:
        raise internal_error(e) from e

    data = {
        "boards": [board.model_dump(exclude={"desc"}) for board in boards],
        "count": len(boards),
    }
    return ResponseBuilder.build_response(data, query_type="list_boards")


async def get_lists(
    board_id: Annotated[str | None, "ID of the Trello board (uses default if not provided)"] = None,
    ctx: Context | None = None,
) -> str:
    """Retrieve all open lists from a board, in board order.

    Returns: JSON string with structure:
    {
        "data": {
            "lists": [{"id": "...", "name": "...", "pos": 16384.0, "closed": false}],
            "count": N
        },
        "metadata": {"fetched_at": "ISO timestamp", "query_type": "board_lists", "board_id": "..."}
    }
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")
    resolved = resolve_board_id(client, board_id)

    try:
        lists = await client.get_lists(resolved)
    except TrelloAPIError as e:
        raise api_error(e, f"Board {resolved} not found. Please verify the board ID.") from e
    except Exception as e:
        raise internal_error(e) from e

    data = {
        "lists": [
            trello_list.model_dump(include={"id", "name", "pos", "closed"})
            for trello_list in lists
        ],
        "count": len(lists),
    }
    return ResponseBuilder.build_response(
        data, metadata={"board_id": resolved}, query_type="board_lists"
    )


async def get_card(
    card_id: Annotated[str, "ID of the card"],
    fields: Annotated[list[str] | None, "Specific fields to return"] = None,
    ctx: Context | None = None,
) -> str:
    """Get a single card by ID.

    Returns: JSON string with structure:
    {
        "data": {"card": {...}},
        "metadata": {"fetched_at": "ISO timestamp", "query_type": "single_card", "card_id": "..."}
    }
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")

    try:
        card = await client.get_card(card_id, fields)
    except TrelloAPIError as e:
        raise api_error(e, f"Card {card_id} not found. Please verify the card ID.") from e
    except Exception as e:
        raise internal_error(e) from e

    return ResponseBuilder.build_response(
        {"card": card}, metadata={"card_id": card_id}, query_type="single_card"
    )


async def get_recent_activity(
    board_id: Annotated[str | None, "ID of the Trello board (uses default if not provided)"] = None,
    limit: Annotated[int, "Number of actions to fetch (1-100, default 10)"] = 10,
    before: Annotated[
        str | None, "Pagination cursor: next_cursor from the previous response (an action ID)"
    ] = None,
    ctx: Context | None = None,
) -> str:
    """Fetch recent activity on a board, newest first, with cursor pagination.

    Returns: JSON string with structure:
    {
        "data": {"actions": [...]},
        "pagination": {"has_more": true, "next_cursor": "...", "limit": 10, "returned": 10},
        "metadata": {"fetched_at": "ISO timestamp", "query_type": "board_activity", "board_id": "..."}
    }

    Examples:
        - Latest 10 actions: get_recent_activity()
        - Older actions: get_recent_activity(before="<next_cursor>")
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")

    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise validation_error(f"Invalid limit: {limit}. Must be between 1 and {MAX_PAGE_SIZE}.")

    resolved = resolve_board_id(client, board_id)
    helper = PaginationHelper(client)

    try:
        page = await helper.fetch_page(
            f"/boards/{resolved}/actions",
            limit=limit,
            cursor=before,
            fields=ACTION_FIELDS,
        )
    except TrelloAPIError as e:
        raise api_error(e, f"Board {resolved} not found. Please verify the board ID.") from e
    except Exception as e:
        raise internal_error(e) from e

    return ResponseBuilder.build_response(
        {"actions": page.items},
        pagination=ResponseBuilder.page_info(page, limit),
        metadata={"board_id": resolved},
        query_type="board_activity",
    )


async def list_workspaces(ctx: Context | None = None) -> str:
    """List the workspaces the authenticated member belongs to.

    Returns: JSON string with structure:
    {
        "data": {
            "workspaces": [{"id": "...", "name": "...", "displayName": "...", "url": "..."}],
            "count": N
        },
        "metadata": {"fetched_at": "ISO timestamp", "query_type": "list_workspaces"}
    }
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")

    try:
        workspaces = await client.list_workspaces()
    except TrelloAPIError as e:
        raise api_error(e) from e
    except Exception as e:
        raise internal_error(e) from e

    return ResponseBuilder.build_response(
        {"workspaces": workspaces, "count": len(workspaces)},
        query_type="list_workspaces",
    )


async def list_boards_in_workspace(
    workspace_id: Annotated[str, "ID of the workspace to list boards from"],
    ctx: Context | None = None,
) -> str:
    """List the open boards of a workspace.

    Returns: JSON string with the same structure as list_boards, plus
    "workspace_id" in metadata.
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")

    try:
        boards = await client.list_boards_in_workspace(workspace_id)
    except TrelloAPIError as e:
        raise api_error(
            e, f"Workspace {workspace_id} not found. Please verify the workspace ID."
        ) from e
    except Exception as e:
        raise internal_error(e) from e

    data = {
        "boards": [board.model_dump(exclude={"desc"}) for board in boards],
        "count": len(boards),
    }
    return ResponseBuilder.build_response(
        data, metadata={"workspace_id": workspace_id}, query_type="workspace_boards"
    )


async def get_active_board_info(ctx: Context | None = None) -> str:
    """Get information about the configured default board.

    Returns: JSON string with structure:
    {
        "data": {
            "board": {"id": "...", "name": "...", "url": "...", "closed": false, "desc": "..."},
            "is_active": true,
            "active_workspace_id": "..." | "Not set"
        },
        "metadata": {"fetched_at": "ISO timestamp", "query_type": "active_board"}
    }
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")

    board_id = client.default_board_id
    if not board_id:
        raise validation_error("No active board configured. Set TRELLO_BOARD_ID.")

    try:
        board = await client.get_board(board_id)
    except TrelloAPIError as e:
        raise api_error(e, f"Board {board_id} not found. Please verify TRELLO_BOARD_ID.") from e
    except Exception as e:
        raise internal_error(e) from e

    data = {
        "board": board,
        "is_active": True,
        "active_workspace_id": client.default_workspace_id or "Not set",
    }
    return ResponseBuilder.build_response(data, query_type="active_board")
