"""Cursor pagination over Trello collections.

Trello returns most collections whole and only honours a ``before``
cursor on some endpoints. ``PaginationHelper`` hides that behind one
contract:

- ``fetch_page`` returns a bounded ``Page`` resumable by cursor. The cursor
  is always the ``id`` of the last item of the previous page.
- ``fetch_all`` drains pages under a hard item cap and reports whether the
  cap cut the collection short.

Two strategies implement a page request:

- ``NativeCursorStrategy`` passes ``limit`` and ``before`` to Trello.
- ``ClientSideCursorStrategy`` is used for ``/lists/{id}/cards``, where
  Trello ignores ``before``. It fetches the whole list, orders it by
  ``pos`` and slices the window after the cursor locally.

Both report ``has_more`` whenever a page comes back full, so a collection
that ends exactly on a page boundary costs one extra, empty request.
"""

import asyncio
import re
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from .client import TrelloClient, UnknownAPIError, normalize_fields
from .models import BulkFetchResult, Item, Page

MAX_PAGE_SIZE = 100
DEFAULT_MAX_ITEMS = 5000
PAGE_DELAY_SECONDS = 0.1

_LIST_CARDS_ENDPOINT = re.compile(r"^/?lists/[^/]+/cards/?$")

ProgressCallback = Callable[[int, int], Awaitable[None]]


async def pause_between_requests(seconds: float) -> None:
    """Cooperative pacing delay against Trello's request-rate ceiling."""
    if seconds > 0:
        await asyncio.sleep(seconds)


def _position(item: Item) -> float:
    """Sort key for list cards; missing or non-numeric ``pos`` ranks as 0."""
    value = item.get("pos")
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0.0
    return float(value)


def _build_params(fields: list[str] | None, extra: str | None = None) -> dict[str, Any]:
    params: dict[str, Any] = {}
    projection = normalize_fields(fields)
    if projection:
        if extra and extra not in projection:
            projection.append(extra)
        params["fields"] = ",".join(projection)
    return params


def _as_items(data: Any, endpoint: str) -> list[Item]:
    if not isinstance(data, list):
        raise UnknownAPIError(
            f"Expected a JSON array from {endpoint}, got {type(data).__name__}",
            endpoint=endpoint,
        )
    for item in data:
        if not isinstance(item, dict) or "id" not in item:
            raise UnknownAPIError(
                f"Expected objects with an id from {endpoint}, got {item!r:.80}",
                endpoint=endpoint,
            )
    return data


def _without_pos(item: Item) -> Item:
    return {key: value for key, value in item.items() if key != "pos"}


class PaginationStrategy(Protocol):
    """Fetches one page of a collection."""

    async def fetch_page(
        self,
        client: TrelloClient,
        endpoint: str,
        limit: int,
        cursor: str | None,
        fields: list[str] | None,
    ) -> Page: ...


class NativeCursorStrategy:
    """Server-side windowing via Trello's ``limit`` and ``before`` parameters."""

    async def fetch_page(
        self,
        client: TrelloClient,
        endpoint: str,
        limit: int,
        cursor: str | None,
        fields: list[str] | None,
    ) -> Page:
        params = _build_params(fields)
        params["limit"] = limit
        if cursor:
            params["before"] = cursor

        items = _as_items(await client.get(endpoint, params=params), endpoint)

        # A full page implies more may exist; a short page proves the end.
        has_more = len(items) == limit
        return Page(
            items=items,
            has_more=has_more,
            next_cursor=items[-1]["id"] if has_more else None,
        )


class ClientSideCursorStrategy:
    """Full fetch, stable sort by ``pos``, then slice after the cursor."""

    async def fetch_page(
        self,
        client: TrelloClient,
        endpoint: str,
        limit: int,
        cursor: str | None,
        fields: list[str] | None,
    ) -> Page:
        # The sort key must survive the caller's projection.
        params = _build_params(fields, extra="pos")
        items = _as_items(await client.get(endpoint, params=params), endpoint)
        ordered = sorted(items, key=_position)

        start = 0
        if cursor:
            index = next(
                (i for i, item in enumerate(ordered) if item.get("id") == cursor),
                None,
            )
            # Unknown or final cursor: end of stream, not an error.
            if index is None or index + 1 >= len(ordered):
                return Page(items=[], has_more=False, next_cursor=None)
            start = index + 1

        window = ordered[start : start + limit]
        has_more = len(window) == limit
        if fields and "pos" not in fields:
            window = [_without_pos(item) for item in window]
        return Page(
            items=window,
            has_more=has_more,
            next_cursor=window[-1]["id"] if has_more else None,
        )


_NATIVE = NativeCursorStrategy()
_CLIENT_SIDE = ClientSideCursorStrategy()


def strategy_for(endpoint: str) -> PaginationStrategy:
    """Pick the page strategy for an endpoint's collection type."""
    if _LIST_CARDS_ENDPOINT.match(endpoint):
        return _CLIENT_SIDE
    return _NATIVE


class PaginationHelper:
    """Page and bulk fetching on top of a TrelloClient."""

    def __init__(self, client: TrelloClient, delay: float = PAGE_DELAY_SECONDS):
        self.client = client
        self.delay = delay

    async def fetch_page(
        self,
        endpoint: str,
        *,
        limit: int = MAX_PAGE_SIZE,
        cursor: str | None = None,
        fields: list[str] | None = None,
    ) -> Page:
        """Fetch one page of ``endpoint``.

        Args:
            endpoint: API path, e.g. "/lists/{id}/cards"
            limit: Page size (1-100)
            cursor: Id of the last item of the previous page
            fields: Field projection; "id" is always added

        Returns:
            Page with ``next_cursor`` set only when the page came back full

        Raises:
            ValueError: If limit is out of range
            TrelloAPIError: On any non-success response
        """
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValueError(f"Invalid limit: {limit}. Must be between 1 and {MAX_PAGE_SIZE}.")

        strategy = strategy_for(endpoint)
        return await strategy.fetch_page(self.client, endpoint, limit, cursor, fields)

    async def fetch_all(
        self,
        endpoint: str,
        *,
        fields: list[str] | None = None,
        limit: int = MAX_PAGE_SIZE,
        max_items: int = DEFAULT_MAX_ITEMS,
        on_page: ProgressCallback | None = None,
    ) -> BulkFetchResult:
        """Drain ``endpoint`` page by page, stopping at ``max_items``.

        The cursor advances to the id of each page's last item. A pacing
        delay separates page requests. Any failure aborts the whole fetch.

        Args:
            endpoint: API path to drain
            fields: Field projection; "id" is always added
            limit: Page size (1-100)
            max_items: Hard safety cap on collected items
            on_page: Optional ``async (fetched_so_far, page_number)`` hook

        Returns:
            BulkFetchResult; ``truncated`` is True when the cap was reached
            while Trello still reported more items
        """
        if max_items < 1:
            raise ValueError(f"Invalid max_items: {max_items}. Must be at least 1.")

        items: list[Item] = []
        cursor: str | None = None
        pages_fetched = 0
        has_more = True

        while has_more and len(items) < max_items:
            if pages_fetched > 0:
                await pause_between_requests(self.delay)

            page = await self.fetch_page(endpoint, limit=limit, cursor=cursor, fields=fields)
            pages_fetched += 1
            items.extend(page.items)

            if on_page is not None:
                await on_page(min(len(items), max_items), pages_fetched)

            has_more = page.has_more and bool(page.items)
            if has_more:
                cursor = page.items[-1]["id"]

        truncated = len(items) >= max_items and (has_more or len(items) > max_items)
        return BulkFetchResult(
            items=items[:max_items],
            truncated=truncated,
            pages_fetched=pages_fetched,
        )
