"""Fetch a caller-chosen set of cards by id in small concurrent groups."""

import asyncio

from .client import (
    NotFoundError,
    TrelloClient,
    UnknownAPIError,
    normalize_fields,
)
from .models import BatchResult, Item
from .pagination import PAGE_DELAY_SECONDS, pause_between_requests

MAX_BATCH_SIZE = 100
GROUP_SIZE = 10


async def _fetch_one(
    client: TrelloClient, card_id: str, fields: list[str] | None
) -> tuple[str, Item | None]:
    """Fetch one card; a missing or unreadable card yields ``None``.

    Rate limiting and credential failures are systemic and propagate.
    """
    try:
        return card_id, await client.get_card(card_id, fields)
    except (NotFoundError, UnknownAPIError):
        return card_id, None


async def fetch_cards_batch(
    client: TrelloClient,
    card_ids: list[str],
    fields: list[str] | None = None,
    *,
    group_size: int = GROUP_SIZE,
    delay: float = PAGE_DELAY_SECONDS,
) -> BatchResult:
    """Fetch ``card_ids`` concurrently in groups, preserving request order.

    Args:
        client: Open TrelloClient
        card_ids: Card ids to fetch (at most 100)
        fields: Optional field projection; "id" is always added
        group_size: Number of cards fetched concurrently per group
        delay: Pause between groups, in seconds

    Returns:
        BatchResult with the fetched cards in the order requested and the
        ids that were missing or failed individually

    Raises:
        ValueError: If more than 100 ids are requested
        RateLimitedError, UnauthorizedError: On systemic failures, which
            abort the whole batch
    """
    if len(card_ids) > MAX_BATCH_SIZE:
        raise ValueError(
            f"Too many card IDs: {len(card_ids)}. Maximum is {MAX_BATCH_SIZE} per batch."
        )

    projection = normalize_fields(fields)
    found: dict[str, Item] = {}
    not_found: list[str] = []

    for start in range(0, len(card_ids), group_size):
        if start > 0:
            await pause_between_requests(delay)

        group = card_ids[start : start + group_size]
        results = await asyncio.gather(
            *(_fetch_one(client, card_id, projection) for card_id in group),
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, BaseException):
                raise result
            card_id, card = result
            if card is None:
                not_found.append(card_id)
            else:
                found[card_id] = card

    cards = [found[card_id] for card_id in card_ids if card_id in found]
    return BatchResult(cards=cards, not_found=not_found)
