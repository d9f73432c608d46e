"""ToolError factories shared by the Trello tools.

Raising ToolError marks the MCP result as an error while still carrying
the standard JSON error envelope as its text.
"""

import logging

from fastmcp.exceptions import ToolError

from ..client import TrelloAPIError
from ..response_builder import ResponseBuilder

logger = logging.getLogger(__name__)


def validation_error(message: str) -> ToolError:
    """Error for arguments rejected before any API call."""
    return ToolError(ResponseBuilder.build_error_response(message, error_type="validation_error"))


def not_found_error(message: str) -> ToolError:
    """Error for a lookup that matched nothing."""
    return ToolError(ResponseBuilder.build_error_response(message, error_type="not_found"))


def api_error(error: TrelloAPIError, not_found_message: str | None = None) -> ToolError:
    """Error for a classified Trello API failure."""
    logger.warning("Trello API call to %s failed: %s", error.endpoint, error.message)
    return ToolError(ResponseBuilder.build_api_error_response(error, not_found_message))


def internal_error(error: Exception) -> ToolError:
    """Error for anything unexpected."""
    logger.exception("Unexpected error in Trello tool")
    return ToolError(
        ResponseBuilder.build_error_response(
            f"Unexpected error: {str(error)}",
            error_type="internal_error",
        )
    )
