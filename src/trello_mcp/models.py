"""Pydantic models for Trello API responses and pagination results."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Cards and actions are passed through as decoded JSON: the field
# projection decides which keys are present, only "id" is guaranteed.
Item = dict[str, Any]


# Trello entity models
class TrelloBoard(BaseModel):
    """Summary representation of a board."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    url: str | None = None
    closed: bool = False
    desc: str | None = None


class TrelloList(BaseModel):
    """Summary representation of a list on a board."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    pos: float | None = None
    closed: bool = False
    idBoard: str | None = None


class CardSummary(BaseModel):
    """Card identity used in list statistics."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    dateLastActivity: str | None = None


# Pagination models
class Page(BaseModel):
    """One bounded batch of items plus continuation metadata."""

    items: list[Item] = Field(default_factory=list)
    has_more: bool = False
    next_cursor: str | None = None


class BulkFetchResult(BaseModel):
    """Items collected across pages under a safety cap."""

    items: list[Item] = Field(default_factory=list)
    truncated: bool = False
    pages_fetched: int = 0


class ListStats(BaseModel):
    """Aggregate statistics for the cards of one list.

    ``oldest_card`` is only populated when the list was small enough to
    drain; ``None`` is an expected result for large lists.
    """

    card_count: int
    estimated_tokens: int | None = None
    newest_card: CardSummary | None = None
    oldest_card: CardSummary | None = None
    count_capped: bool = False


class BatchResult(BaseModel):
    """Cards fetched by id, in request order, plus the ids that failed."""

    cards: list[Item] = Field(default_factory=list)
    not_found: list[str] = Field(default_factory=list)


# Workspace and checklist models
class TrelloWorkspace(BaseModel):
    """Summary representation of a workspace (Trello organization)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    displayName: str = ""
    url: str | None = None


class ChecklistItem(BaseModel):
    """One check item, flattened with the checklist it belongs to."""

    id: str
    text: str
    complete: bool
    checklist_id: str
    checklist_name: str
    card_id: str | None = None


class Checklist(BaseModel):
    """A checklist with its items and completion percentage."""

    id: str
    name: str
    card_id: str | None = None
    items: list[ChecklistItem] = Field(default_factory=list)
    percent_complete: int = 0
