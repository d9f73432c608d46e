"""Checklist tools for Trello MCP server.

All lookups read the checklists of one board (the default board unless
`board_id` is given) and match checklist names case-insensitively.
"""

from typing import Annotated, Any

from fastmcp import Context

from ..checklists import (
    ACCEPTANCE_CRITERIA,
    checklists_named,
    items_of_checklists_named,
    search_items,
)
from ..client import TrelloAPIError, TrelloClient
from ..response_builder import ResponseBuilder
from .boards import resolve_board_id
from .errors import api_error, internal_error, not_found_error, validation_error


async def _board_checklists(client: TrelloClient, board_id: str) -> list[dict[str, Any]]:
    try:
        return await client.get_board_checklists(board_id)
    except TrelloAPIError as e:
        raise api_error(e, f"Board {board_id} not found. Please verify the board ID.") from e
    except Exception as e:
        raise internal_error(e) from e


async def get_checklist_items(
    name: Annotated[str, "Name of the checklist to retrieve items from"],
    board_id: Annotated[str | None, "ID of the Trello board (uses default if not provided)"] = None,
    ctx: Context | None = None,
) -> str:
    """Get all items of the checklists with the given name.

    Returns: JSON string with structure:
    {
        "data": {
            "items": [{"id": "...", "text": "...", "complete": false,
                       "checklist_id": "...", "checklist_name": "...", "card_id": "..."}],
            "count": N
        },
        "metadata": {"fetched_at": "ISO timestamp", "query_type": "checklist_items",
                     "board_id": "...", "checklist_name": "..."}
    }
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")
    resolved = resolve_board_id(client, board_id)

    raw = await _board_checklists(client, resolved)
    items = items_of_checklists_named(raw, name)

    return ResponseBuilder.build_response(
        {"items": items, "count": len(items)},
        metadata={"board_id": resolved, "checklist_name": name},
        query_type="checklist_items",
    )


async def get_checklist_by_name(
    name: Annotated[str, "Name of the checklist to retrieve"],
    board_id: Annotated[str | None, "ID of the Trello board (uses default if not provided)"] = None,
    ctx: Context | None = None,
) -> str:
    """Get a complete checklist with all its items and completion percentage.

    When several cards carry a checklist with this name, the first one in
    board order is returned.

    Returns: JSON string with structure:
    {
        "data": {
            "checklist": {"id": "...", "name": "...", "card_id": "...",
                          "items": [...], "percent_complete": 50}
        },
        "metadata": {"fetched_at": "ISO timestamp", "query_type": "checklist", "board_id": "..."}
    }
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")
    resolved = resolve_board_id(client, board_id)

    raw = await _board_checklists(client, resolved)
    matches = checklists_named(raw, name)
    if not matches:
        raise not_found_error(f"Checklist \"{name}\" not found on board {resolved}.")

    return ResponseBuilder.build_response(
        {"checklist": matches[0]},
        metadata={"board_id": resolved, "matches": len(matches)},
        query_type="checklist",
    )


async def find_checklist_items_by_description(
    description: Annotated[str, "Text to search for in checklist items"],
    board_id: Annotated[str | None, "ID of the Trello board (uses default if not provided)"] = None,
    ctx: Context | None = None,
) -> str:
    """Search all checklists on a board for items containing the given text.

    Returns: JSON string with structure:
    {
        "data": {"items": [...], "count": N},
        "metadata": {"fetched_at": "ISO timestamp", "query_type": "checklist_search",
                     "board_id": "...", "description": "..."}
    }
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")

    if not description.strip():
        raise validation_error("Search text must not be empty.")

    resolved = resolve_board_id(client, board_id)
    raw = await _board_checklists(client, resolved)
    items = search_items(raw, description)

    return ResponseBuilder.build_response(
        {"items": items, "count": len(items)},
        metadata={"board_id": resolved, "description": description},
        query_type="checklist_search",
    )


async def get_acceptance_criteria(
    board_id: Annotated[str | None, "ID of the Trello board (uses default if not provided)"] = None,
    ctx: Context | None = None,
) -> str:
    """Get all items of the "Acceptance Criteria" checklists.

    Returns: JSON string with the same structure as get_checklist_items.
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")
    resolved = resolve_board_id(client, board_id)

    raw = await _board_checklists(client, resolved)
    items = items_of_checklists_named(raw, ACCEPTANCE_CRITERIA)

    return ResponseBuilder.build_response(
        {"items": items, "count": len(items)},
        metadata={"board_id": resolved, "checklist_name": ACCEPTANCE_CRITERIA},
        query_type="checklist_items",
    )
