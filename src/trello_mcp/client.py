"""Trello API client with typed error mapping."""

import types
from typing import Any

import httpx
from pydantic import TypeAdapter

from .config import TrelloConfig
from .models import TrelloBoard, TrelloList, TrelloWorkspace


class TrelloAPIError(Exception):
    """Base exception for Trello API errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        endpoint: str | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(self.message)


class RateLimitedError(TrelloAPIError):
    """Trello answered 429. Callers should back off; never retried here."""


class UnauthorizedError(TrelloAPIError):
    """Trello answered 401. The API key or token is invalid."""


class NotFoundError(TrelloAPIError):
    """Trello answered 404 for the referenced board, list or card."""


class UnknownAPIError(TrelloAPIError):
    """Any other non-success status or transport failure."""


def normalize_fields(fields: list[str] | None) -> list[str] | None:
    """Return a de-duplicated field projection that always includes ``id``.

    ``None`` (and an empty list) means no projection: Trello's default
    field set is returned, which already carries ``id``.
    """
    if not fields:
        return None

    normalized: list[str] = ["id"]
    for field in fields:
        field = field.strip()
        if field and field not in normalized:
            normalized.append(field)
    return normalized


class TrelloClient:
    """Async HTTP client for the Trello REST API.

    Every request carries the ``key`` and ``token`` query parameters from
    the configuration the client was built with.
    """

    def __init__(self, config: TrelloConfig):
        """Initialize the Trello API client."""
        self.config = config
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "TrelloClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self.config.trello_base_url,
            timeout=self.config.trello_timeout,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()

    @property
    def default_board_id(self) -> str | None:
        """Board used when a tool call does not name one."""
        return self.config.trello_board_id

    @property
    def default_workspace_id(self) -> str | None:
        return self.config.trello_workspace_id

    def _auth_params(self) -> dict[str, str]:
        """Get authentication query parameters for API requests."""
        return {"key": self.config.trello_api_key, "token": self.config.trello_token}

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make an authenticated request to the Trello API.

        Non-success statuses are raised as the matching TrelloAPIError
        subclass; nothing is retried.
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use async context manager.")

        request_params: dict[str, Any] = self._auth_params()
        if params:
            request_params.update(params)

        try:
            response = await self._client.request(
                method,
                endpoint,
                params=request_params,
                **kwargs,
            )
        except httpx.RequestError as e:
            raise UnknownAPIError(
                f"Request to {endpoint} failed: {str(e)}", endpoint=endpoint
            ) from e

        if response.status_code == 401:
            raise UnauthorizedError(
                "Invalid API credentials. Please check your Trello API key and token.",
                401,
                endpoint,
            )

        if response.status_code == 404:
            raise NotFoundError(
                "Resource not found. Please check the ID and try again.",
                404,
                endpoint,
            )

        if response.status_code == 429:
            raise RateLimitedError(
                "Rate limit exceeded. Please wait before retrying.",
                429,
                endpoint,
            )

        if response.is_error:
            raise UnknownAPIError(
                f"HTTP {response.status_code} from {endpoint}: {response.text}",
                response.status_code,
                endpoint,
            )

        return response

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """Issue an authenticated GET and return the decoded JSON body."""
        response = await self._request("GET", endpoint, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise UnknownAPIError(
                f"Invalid JSON from {endpoint}: {str(e)}",
                response.status_code,
                endpoint,
            ) from e

    # Board methods

    async def list_boards(self) -> list[TrelloBoard]:
        """List open boards of the authenticated member."""
        data = await self.get(
            "/members/me/boards",
            params={"filter": "open", "fields": "id,name,url,closed,desc"},
        )
        adapter = TypeAdapter(list[TrelloBoard])
        return adapter.validate_python(data)

    async def get_board(self, board_id: str) -> TrelloBoard:
        """Get a single board."""
        data = await self.get(
            f"/boards/{board_id}", params={"fields": "id,name,url,closed,desc"}
        )
        return TrelloBoard.model_validate(data)

    async def get_lists(self, board_id: str) -> list[TrelloList]:
        """Get the open lists of a board."""
        data = await self.get(f"/boards/{board_id}/lists", params={"filter": "open"})
        adapter = TypeAdapter(list[TrelloList])
        return adapter.validate_python(data)

    # Card methods

    async def get_card(self, card_id: str, fields: list[str] | None = None) -> dict[str, Any]:
        """Get a single card, optionally restricted to ``fields``."""
        params: dict[str, Any] = {}
        projection = normalize_fields(fields)
        if projection:
            params["fields"] = ",".join(projection)
        return await self.get(f"/cards/{card_id}", params=params)

    async def get_my_cards(self, fields: list[str] | None = None) -> list[dict[str, Any]]:
        """Get the open cards the authenticated member is assigned to."""
        params: dict[str, Any] = {"filter": "open"}
        projection = normalize_fields(fields)
        if projection:
            params["fields"] = ",".join(projection)
        return await self.get("/members/me/cards", params=params)

    # Workspace methods

    async def list_workspaces(self) -> list[TrelloWorkspace]:
        """List workspaces the authenticated member belongs to."""
        data = await self.get(
            "/members/me/organizations", params={"fields": "id,name,displayName,url"}
        )
        adapter = TypeAdapter(list[TrelloWorkspace])
        return adapter.validate_python(data)

    async def list_boards_in_workspace(self, workspace_id: str) -> list[TrelloBoard]:
        """List open boards of a workspace."""
        data = await self.get(
            f"/organizations/{workspace_id}/boards",
            params={"filter": "open", "fields": "id,name,url,closed,desc"},
        )
        adapter = TypeAdapter(list[TrelloBoard])
        return adapter.validate_python(data)

    # Checklist methods

    async def get_board_checklists(self, board_id: str) -> list[dict[str, Any]]:
        """Get every checklist on a board, check items included."""
        return await self.get(
            f"/boards/{board_id}/checklists",
            params={"checkItems": "all", "fields": "id,name,idCard,pos"},
        )
