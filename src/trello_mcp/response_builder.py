"""Response builder utilities for structured JSON output.

This module provides utilities for building consistent, structured JSON responses
across all MCP tools. All tools return JSON with a standard structure:

{
    "data": {...},           # Main data payload
    "pagination": {...},     # Optional continuation info for paged tools
    "metadata": {...}        # Query metadata, timestamps
}
"""

import json
from datetime import datetime
from typing import Any, cast

from pydantic import BaseModel

from .client import NotFoundError, RateLimitedError, TrelloAPIError, UnauthorizedError
from .models import Page


def _to_jsonable(obj: Any) -> Any:
    """Recursively convert models and datetimes to JSON-friendly values."""
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {str(k): _to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, list | tuple):
        return [_to_jsonable(item) for item in obj]
    return obj


class ResponseBuilder:
    """Builder for standardized JSON responses."""

    @staticmethod
    def build_response(
        data: dict[str, Any],
        pagination: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
        query_type: str | None = None,
    ) -> str:
        """Build standardized JSON response.

        Args:
            data: Main data payload
            pagination: Optional continuation info
            metadata: Optional metadata (will be enriched with timestamp)
            query_type: Optional query type for metadata

        Returns:
            JSON string with structure:
            {
                "data": {...},
                "pagination": {...},
                "metadata": {
                    "fetched_at": "ISO timestamp",
                    "query_type": "...",
                    ...
                }
            }
        """
        response: dict[str, Any] = {"data": cast(dict[str, Any], _to_jsonable(data))}

        if pagination is not None:
            response["pagination"] = _to_jsonable(pagination)

        meta = cast(dict[str, Any], _to_jsonable(metadata or {}))
        meta["fetched_at"] = datetime.now().isoformat()
        if query_type:
            meta["query_type"] = query_type

        response["metadata"] = meta

        return json.dumps(response, indent=2)

    @staticmethod
    def build_error_response(
        error_message: str,
        error_type: str = "error",
        suggestions: list[str] | None = None,
    ) -> str:
        """Build standardized error response.

        Args:
            error_message: Human-readable error message
            error_type: Type of error (e.g., "not_found", "rate_limit", "validation_error")
            suggestions: Optional list of suggestions to resolve the error

        Returns:
            JSON string with error structure
        """
        response: dict[str, dict[str, str | list[str]]] = {
            "error": {
                "message": error_message,
                "type": error_type,
                "timestamp": datetime.now().isoformat(),
            }
        }

        if suggestions:
            response["error"]["suggestions"] = suggestions

        return json.dumps(response, indent=2)

    @staticmethod
    def build_api_error_response(
        error: TrelloAPIError,
        not_found_message: str | None = None,
    ) -> str:
        """Classify a Trello API failure into an error response.

        Args:
            error: The raised API error
            not_found_message: Message replacing the generic 404 text, naming
                the missing board, list or card

        Returns:
            JSON string with error structure
        """
        message = error.message
        error_type = "api_error"
        suggestions: list[str] = []

        if isinstance(error, RateLimitedError):
            error_type = "rate_limit"
            suggestions = ["Wait a few seconds before making more requests"]
        elif isinstance(error, UnauthorizedError):
            error_type = "unauthorized"
            suggestions = ["Run 'trello-mcp-auth' to refresh your Trello API key and token"]
        elif isinstance(error, NotFoundError):
            error_type = "not_found"
            if not_found_message:
                message = not_found_message
            suggestions = ["Check that the ID is correct and visible to your account"]
        elif error.endpoint and error.endpoint not in message:
            message = f"{message} (endpoint: {error.endpoint})"

        return ResponseBuilder.build_error_response(
            message,
            error_type=error_type,
            suggestions=suggestions if suggestions else None,
        )

    @staticmethod
    def page_info(page: Page, limit: int) -> dict[str, Any]:
        """Pagination block for a single fetched page."""
        return {
            "has_more": page.has_more,
            "next_cursor": page.next_cursor,
            "limit": limit,
            "returned": len(page.items),
        }
