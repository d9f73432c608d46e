"""Checklist lookups over the checklists of a board.

Trello stores checklists per card; a board-wide read returns all of them
with their check items. Names are matched case-insensitively after
trimming, so "acceptance criteria" finds "Acceptance Criteria".
"""

from typing import Any

from .models import Checklist, ChecklistItem

ACCEPTANCE_CRITERIA = "Acceptance Criteria"


def _same_name(left: str, right: str) -> bool:
    return left.strip().casefold() == right.strip().casefold()


def _position(raw: dict[str, Any]) -> float:
    value = raw.get("pos")
    return float(value) if isinstance(value, int | float) else 0.0


def to_checklist(raw: dict[str, Any]) -> Checklist:
    """Convert a raw Trello checklist into a Checklist with a completion figure."""
    checklist_id = raw["id"]
    name = raw.get("name", "")
    card_id = raw.get("idCard")
    items = [
        ChecklistItem(
            id=item["id"],
            text=item.get("name", ""),
            complete=item.get("state") == "complete",
            checklist_id=checklist_id,
            checklist_name=name,
            card_id=card_id,
        )
        for item in sorted(raw.get("checkItems") or [], key=_position)
    ]
    done = sum(1 for item in items if item.complete)
    percent = round(done * 100 / len(items)) if items else 0
    return Checklist(
        id=checklist_id,
        name=name,
        card_id=card_id,
        items=items,
        percent_complete=percent,
    )


def checklists_named(raw_checklists: list[dict[str, Any]], name: str) -> list[Checklist]:
    """All checklists called ``name``, in board order."""
    return [to_checklist(raw) for raw in raw_checklists if _same_name(raw.get("name", ""), name)]


def items_of_checklists_named(
    raw_checklists: list[dict[str, Any]], name: str
) -> list[ChecklistItem]:
    """Check items of every checklist called ``name``."""
    return [item for checklist in checklists_named(raw_checklists, name) for item in checklist.items]


def search_items(raw_checklists: list[dict[str, Any]], text: str) -> list[ChecklistItem]:
    """Check items whose text contains ``text`` (case-insensitive)."""
    needle = text.strip().casefold()
    if not needle:
        return []
    return [
        item
        for raw in raw_checklists
        for item in to_checklist(raw).items
        if needle in item.text.casefold()
    ]
