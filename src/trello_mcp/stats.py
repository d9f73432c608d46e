"""List statistics computed without draining large lists."""

import math
from dataclasses import dataclass

from .models import CardSummary, Item, ListStats
from .pagination import MAX_PAGE_SIZE, PaginationHelper

DETAIL_FIELDS = ["id", "name", "desc", "dateLastActivity"]


@dataclass(frozen=True)
class StatsPolicy:
    """Tunables for the exact-versus-sampled statistics path.

    Lists with at most ``exact_threshold`` cards are fetched in full so the
    oldest card and token estimate are exact. Larger lists get a token
    estimate extrapolated from ``sample_size`` cards and no oldest card.
    """

    exact_threshold: int = 100
    sample_size: int = 10
    count_cap: int = 10_000
    chars_per_token: int = 4
    per_card_overhead: int = 10


def estimate_card_tokens(card: Item, policy: StatsPolicy) -> int:
    """Rough token cost of one card: 1 token per 4 characters plus overhead."""
    name = card.get("name") or ""
    desc = card.get("desc") or ""
    return (
        math.ceil(len(name) / policy.chars_per_token)
        + math.ceil(len(desc) / policy.chars_per_token)
        + policy.per_card_overhead
    )


def extrapolate_tokens(cards: list[Item], total_count: int, policy: StatsPolicy) -> int:
    """Scale the average per-card token cost of ``cards`` to ``total_count``."""
    if not cards:
        return 0
    total = sum(estimate_card_tokens(card, policy) for card in cards)
    return math.ceil(total / len(cards)) * total_count


class ListStatsEstimator:
    """Answers count/newest/oldest/size questions about a list's cards."""

    def __init__(self, helper: PaginationHelper, policy: StatsPolicy | None = None):
        self.helper = helper
        self.policy = policy or StatsPolicy()

    async def stats(self, list_id: str) -> ListStats:
        endpoint = f"/lists/{list_id}/cards"
        policy = self.policy

        # Count with an id-only projection to keep payloads minimal.
        counted = await self.helper.fetch_all(
            endpoint,
            fields=["id"],
            limit=MAX_PAGE_SIZE,
            max_items=policy.count_cap,
        )
        card_count = len(counted.items)

        if card_count == 0:
            return ListStats(card_count=0, estimated_tokens=0)

        first_page = await self.helper.fetch_page(endpoint, limit=1, fields=DETAIL_FIELDS)
        newest_card = _summarize(first_page.items[0]) if first_page.items else None

        if card_count <= policy.exact_threshold:
            drained = await self.helper.fetch_all(
                endpoint,
                fields=DETAIL_FIELDS,
                limit=MAX_PAGE_SIZE,
                max_items=policy.exact_threshold,
            )
            cards = drained.items
            return ListStats(
                card_count=card_count,
                estimated_tokens=extrapolate_tokens(cards, card_count, policy),
                newest_card=newest_card,
                oldest_card=_summarize(cards[-1]) if cards else None,
                count_capped=counted.truncated,
            )

        sample = await self.helper.fetch_page(
            endpoint, limit=policy.sample_size, fields=DETAIL_FIELDS
        )
        return ListStats(
            card_count=card_count,
            estimated_tokens=extrapolate_tokens(sample.items, card_count, policy),
            newest_card=newest_card,
            oldest_card=None,
            count_capped=counted.truncated,
        )


def _summarize(card: Item) -> CardSummary:
    return CardSummary.model_validate(card)
