"""Response helpers shared by the MCP tool handlers."""

import logging
from typing import Any

from fastmcp.exceptions import ToolError
from pydantic import ValidationError

from ..errors import LibraryError

logger = logging.getLogger(__name__)


def text_response(message: str, **data: Any) -> dict[str, Any]:
    """Successful tool result: human-readable text plus structured data."""
    return {"content": [{"type": "text", "text": message}], "data": data}


def error_response(reason: str, message: str) -> dict[str, Any]:
    return {
        "isError": True,
        "content": [{"type": "text", "text": message}],
        "reason": reason,
    }


def library_error_response(tool: str, error: LibraryError) -> dict[str, Any]:
    """Map a lending engine error onto an ``isError`` result."""
    logger.info("%s rejected (%s): %s", tool, error.reason, error.message)
    return error_response(error.reason, error.message)


def invalid_params_response(tool: str, error: ValidationError) -> dict[str, Any]:
    logger.warning("Invalid %s parameters: %s", tool, error)
    return error_response("invalid_parameters", f"Invalid parameters: {error}")


def raise_for_error(result: dict[str, Any]) -> dict[str, Any]:
    """Raise an ``isError`` result as a ``ToolError`` so FastMCP reports the call as failed."""
    if result.get("isError"):
        raise ToolError(f"{result['content'][0]['text']} ({result['reason']})")
    return result
