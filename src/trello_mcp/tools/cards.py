"""Card collection tools for Trello MCP server.

This module provides the bounded pagination, bulk fetch, batch fetch and
list statistics tools with structured JSON output.
"""

from typing import Annotated, Any

from fastmcp import Context

from ..batch import MAX_BATCH_SIZE, fetch_cards_batch
from ..client import TrelloAPIError, TrelloClient
from ..pagination import MAX_PAGE_SIZE, PaginationHelper
from ..response_builder import ResponseBuilder
from ..stats import ListStatsEstimator
from .errors import api_error, internal_error, validation_error

LIGHTWEIGHT_FIELDS = ["id", "name", "desc", "pos", "dateLastActivity", "due", "idList"]
CARD_ID_FIELDS = ["id", "name", "pos"]
MAX_CARDS_LIMIT = 10_000
DEFAULT_MAX_CARDS = 5000


def _list_cards_endpoint(list_id: str) -> str:
    return f"/lists/{list_id}/cards"


def _resolve_fields(fields: list[str] | None, lightweight: bool) -> list[str] | None:
    """Explicit fields win over the lightweight projection."""
    if fields:
        return fields
    if lightweight:
        return LIGHTWEIGHT_FIELDS
    return None


def _list_metadata(client: TrelloClient, list_id: str, board_id: str | None) -> dict[str, Any]:
    return {"list_id": list_id, "board_id": board_id or client.default_board_id}


async def get_cards_by_list_paginated(
    list_id: Annotated[str, "The ID of the list"],
    board_id: Annotated[str | None, "The ID of the board (uses default if not provided)"] = None,
    limit: Annotated[int, "Cards per page (1-100, default 100)"] = MAX_PAGE_SIZE,
    before: Annotated[
        str | None, "Pagination cursor: next_cursor from the previous page (a card ID)"
    ] = None,
    fields: Annotated[
        list[str] | None, "Specific fields to return (reduces token usage); 'id' is always included"
    ] = None,
    lightweight: Annotated[
        bool, "Return only essential fields (id, name, desc, pos, dates, idList)"
    ] = False,
    ctx: Context | None = None,
) -> str:
    """Fetch one page of cards from a list, ordered by position.

    Pagination:
    1. Make the initial request without `before`
    2. Check response["pagination"]["has_more"]
    3. Pass response["pagination"]["next_cursor"] as `before` for the next page

    A page that comes back exactly full always reports has_more=true; the
    following request then returns an empty page to confirm the end.

    Returns: JSON string with structure:
    {
        "data": {
            "cards": [...]
        },
        "pagination": {
            "has_more": true,
            "next_cursor": "card id" | null,
            "limit": 100,
            "returned": 100
        },
        "metadata": {
            "fetched_at": "ISO timestamp",
            "query_type": "list_cards_page",
            "list_id": "...",
            "board_id": "..."
        }
    }

    Examples:
        - First page: get_cards_by_list_paginated(list_id="abc")
        - Next page: get_cards_by_list_paginated(list_id="abc", before="<next_cursor>")
        - Minimal payload: get_cards_by_list_paginated(list_id="abc", lightweight=True)
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")

    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise validation_error(f"Invalid limit: {limit}. Must be between 1 and {MAX_PAGE_SIZE}.")

    helper = PaginationHelper(client)

    try:
        page = await helper.fetch_page(
            _list_cards_endpoint(list_id),
            limit=limit,
            cursor=before,
            fields=_resolve_fields(fields, lightweight),
        )
    except TrelloAPIError as e:
        raise api_error(e, f"List {list_id} not found. Please verify the list ID.") from e
    except Exception as e:
        raise internal_error(e) from e

    return ResponseBuilder.build_response(
        {"cards": page.items},
        pagination=ResponseBuilder.page_info(page, limit),
        metadata=_list_metadata(client, list_id, board_id),
        query_type="list_cards_page",
    )


async def get_all_cards_by_list(
    list_id: Annotated[str, "The ID of the list"],
    board_id: Annotated[str | None, "The ID of the board"] = None,
    max_cards: Annotated[int, "Maximum cards to fetch (safety limit, 1-10000)"] = DEFAULT_MAX_CARDS,
    lightweight: Annotated[bool, "Fetch only essential fields"] = True,
    report_progress: Annotated[bool, "Report progress after each fetched page"] = False,
    ctx: Context | None = None,
) -> str:
    """Fetch all cards from a list, handling pagination automatically.

    Cards are fetched 100 at a time with a short pause between requests.
    The `truncated` flag is true when `max_cards` stopped the fetch while
    more cards remained; the result is then incomplete.

    Returns: JSON string with structure:
    {
        "data": {
            "cards": [...],
            "total_cards": N,
            "fetched_in_batches": N,
            "truncated": false
        },
        "metadata": {
            "fetched_at": "ISO timestamp",
            "query_type": "list_cards_all",
            "list_id": "...",
            "max_cards": 5000
        }
    }

    Examples:
        - Whole list: get_all_cards_by_list(list_id="abc")
        - Capped: get_all_cards_by_list(list_id="abc", max_cards=500)
        - Full card objects: get_all_cards_by_list(list_id="abc", lightweight=False)
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")

    if max_cards < 1 or max_cards > MAX_CARDS_LIMIT:
        raise validation_error(
            f"Invalid max_cards: {max_cards}. Must be between 1 and {MAX_CARDS_LIMIT}."
        )

    async def on_page(fetched: int, page_number: int) -> None:
        await ctx.report_progress(progress=fetched, total=max_cards)
        await ctx.info(f"Fetched {fetched} cards from list {list_id} in {page_number} batches")

    helper = PaginationHelper(client)

    try:
        result = await helper.fetch_all(
            _list_cards_endpoint(list_id),
            fields=_resolve_fields(None, lightweight),
            limit=MAX_PAGE_SIZE,
            max_items=max_cards,
            on_page=on_page if report_progress else None,
        )
    except TrelloAPIError as e:
        raise api_error(e, f"List {list_id} not found. Please verify the list ID.") from e
    except Exception as e:
        raise internal_error(e) from e

    data = {
        "cards": result.items,
        "total_cards": len(result.items),
        "fetched_in_batches": result.pages_fetched,
        "truncated": result.truncated,
    }
    metadata = {**_list_metadata(client, list_id, board_id), "max_cards": max_cards}

    return ResponseBuilder.build_response(data, metadata=metadata, query_type="list_cards_all")


async def get_card_ids_by_list(
    list_id: Annotated[str, "The ID of the list"],
    board_id: Annotated[str | None, "The ID of the board"] = None,
    ctx: Context | None = None,
) -> str:
    """Fetch only card IDs, names and positions from a list (minimal token usage).

    Use this to survey a large list, then fetch the cards you need with
    get_cards_batch.

    Returns: JSON string with structure:
    {
        "data": {
            "card_ids": [{"id": "...", "name": "...", "pos": 16384.0}, ...],
            "total_count": N,
            "truncated": false
        },
        "metadata": {
            "fetched_at": "ISO timestamp",
            "query_type": "list_card_ids",
            "list_id": "..."
        }
    }
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")

    helper = PaginationHelper(client)

    try:
        result = await helper.fetch_all(
            _list_cards_endpoint(list_id),
            fields=CARD_ID_FIELDS,
            limit=MAX_PAGE_SIZE,
            max_items=MAX_CARDS_LIMIT,
        )
    except TrelloAPIError as e:
        raise api_error(e, f"List {list_id} not found. Please verify the list ID.") from e
    except Exception as e:
        raise internal_error(e) from e

    card_ids = [
        {"id": card["id"], "name": card.get("name", ""), "pos": card.get("pos")}
        for card in result.items
    ]
    data = {
        "card_ids": card_ids,
        "total_count": len(card_ids),
        "truncated": result.truncated,
    }

    return ResponseBuilder.build_response(
        data,
        metadata=_list_metadata(client, list_id, board_id),
        query_type="list_card_ids",
    )


async def get_cards_batch(
    card_ids: Annotated[list[str], "Card IDs to fetch (1-100)"],
    fields: Annotated[list[str] | None, "Specific fields to return"] = None,
    ctx: Context | None = None,
) -> str:
    """Fetch multiple specific cards by ID.

    Cards are fetched 10 at a time in parallel. Cards that do not exist (or
    fail individually) are listed in `not_found` instead of failing the
    whole call. Returned cards keep the order of `card_ids`.

    Returns: JSON string with structure:
    {
        "data": {
            "cards": [...],
            "not_found": ["..."]
        },
        "metadata": {
            "fetched_at": "ISO timestamp",
            "query_type": "cards_batch",
            "requested": N
        }
    }
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")

    if not card_ids or len(card_ids) > MAX_BATCH_SIZE:
        raise validation_error(
            f"Invalid number of card IDs: {len(card_ids)}. Must be between 1 and {MAX_BATCH_SIZE}."
        )

    try:
        result = await fetch_cards_batch(client, card_ids, fields)
    except TrelloAPIError as e:
        raise api_error(e) from e
    except Exception as e:
        raise internal_error(e) from e

    return ResponseBuilder.build_response(
        {"cards": result.cards, "not_found": result.not_found},
        metadata={"requested": len(card_ids)},
        query_type="cards_batch",
    )


async def get_list_stats(
    list_id: Annotated[str, "The ID of the list"],
    board_id: Annotated[str | None, "The ID of the board"] = None,
    ctx: Context | None = None,
) -> str:
    """Get list statistics without fetching all card details.

    For lists of up to 100 cards the oldest card and token estimate are
    exact. For larger lists `oldest_card` is null and `estimated_tokens` is
    extrapolated from a 10-card sample.

    Returns: JSON string with structure:
    {
        "data": {
            "card_count": N,
            "estimated_tokens": N,
            "newest_card": {"id": "...", "name": "...", "dateLastActivity": "..."},
            "oldest_card": {...} | null,
            "count_capped": false
        },
        "metadata": {
            "fetched_at": "ISO timestamp",
            "query_type": "list_stats",
            "list_id": "...",
            "exact": true
        }
    }
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")

    estimator = ListStatsEstimator(PaginationHelper(client))

    try:
        stats = await estimator.stats(list_id)
    except TrelloAPIError as e:
        raise api_error(e, f"List {list_id} not found. Please verify the list ID.") from e
    except Exception as e:
        raise internal_error(e) from e

    metadata = {
        **_list_metadata(client, list_id, board_id),
        "exact": stats.card_count <= estimator.policy.exact_threshold,
    }

    return ResponseBuilder.build_response(
        stats.model_dump(mode="json"),
        metadata=metadata,
        query_type="list_stats",
    )


async def get_cards_by_list_id(
    list_id: Annotated[str, "ID of the Trello list"],
    board_id: Annotated[str | None, "ID of the Trello board (uses default if not provided)"] = None,
    ctx: Context | None = None,
) -> str:
    """Fetch the full cards of a list, ordered by position.

    At most 5000 cards are returned. For large lists prefer
    get_list_stats followed by get_cards_by_list_paginated.

    Returns: JSON string with structure:
    {
        "data": {
            "cards": [...],
            "count": N,
            "truncated": false
        },
        "metadata": {
            "fetched_at": "ISO timestamp",
            "query_type": "list_cards",
            "list_id": "...",
            "board_id": "..."
        }
    }
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")

    helper = PaginationHelper(client)

    try:
        result = await helper.fetch_all(
            _list_cards_endpoint(list_id),
            limit=MAX_PAGE_SIZE,
            max_items=DEFAULT_MAX_CARDS,
        )
    except TrelloAPIError as e:
        raise api_error(e, f"List {list_id} not found. Please verify the list ID.") from e
    except Exception as e:
        raise internal_error(e) from e

    data = {
        "cards": result.items,
        "count": len(result.items),
        "truncated": result.truncated,
    }
    return ResponseBuilder.build_response(
        data,
        metadata=_list_metadata(client, list_id, board_id),
        query_type="list_cards",
    )


async def get_my_cards(
    lightweight: Annotated[bool, "Return only essential fields"] = True,
    ctx: Context | None = None,
) -> str:
    """Fetch the open cards assigned to the authenticated member.

    Returns: JSON string with structure:
    {
        "data": {
            "cards": [...],
            "count": N
        },
        "metadata": {"fetched_at": "ISO timestamp", "query_type": "my_cards"}
    }
    """
    assert ctx is not None
    client: TrelloClient = ctx.get_state("client")

    try:
        cards = await client.get_my_cards(_resolve_fields(None, lightweight))
    except TrelloAPIError as e:
        raise api_error(e) from e
    except Exception as e:
        raise internal_error(e) from e

    return ResponseBuilder.build_response(
        {"cards": cards, "count": len(cards)},
        query_type="my_cards",
    )
