"""Search Tool - Library Catalog Search

Finds books by title and/or author substring, narrowed by format and
availability, sorted by title.

Usage: tool.call("search_books", {"title": "quijote", "author": "cervantes"})
"""

import logging
from typing import Annotated, Any

from pydantic import Field, ValidationError

from ..errors import LibraryError
from ..models import BookFormat
from ..observability import trace_tool
from ..services import SearchCriteria, get_library
from .responses import (
    error_response,
    invalid_params_response,
    library_error_response,
    raise_for_error,
    text_response,
)

logger = logging.getLogger(__name__)


def _format_line(book) -> str:
    availability = f"{book.available_copies}/{book.total_copies} available"
    return f"- {book.title} by {book.author} [{book.format.value}, {availability}] (id: {book.id})"


@trace_tool("search_books")
async def search_books_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Search the catalog.

    With no title, author or format every book is listed (only borrowable
    ones when ``available_only`` is set). Title and author together must
    both match.
    """
    try:
        criteria = SearchCriteria.model_validate(arguments or {})
    except ValidationError as e:
        return invalid_params_response("search_books", e)

    try:
        books = get_library().search(criteria)
    except LibraryError as e:
        return library_error_response("search_books", e)
    except Exception as e:
        logger.exception("Unexpected error in search_books tool")
        return error_response("unexpected_error", f"Unexpected error: {e!s}")

    if not books:
        message = "No books found matching your search criteria."
    else:
        lines = [f"Found {len(books)} book(s):"]
        lines.extend(_format_line(book) for book in books)
        message = "\n".join(lines)

    return text_response(
        message,
        books=[book.model_dump(mode="json") for book in books],
        total=len(books),
    )


async def search_books_tool(
    title: Annotated[str | None, Field(description="Substring of the title")] = None,
    author: Annotated[str | None, Field(description="Substring of the author name")] = None,
    format: Annotated[
        BookFormat | None, Field(description="Restrict to physical or digital")
    ] = None,
    available_only: Annotated[
        bool, Field(description="Only books that can be borrowed now")
    ] = False,
) -> dict[str, Any]:
    """Entry point registered with FastMCP; forwards to ``search_books_handler``."""
    arguments = {
        "title": title,
        "author": author,
        "format": format,
        "available_only": available_only,
    }
    return raise_for_error(await search_books_handler(arguments))


search_books = {
    "name": "search_books",
    "description": (
        "Search the library catalog. Filters by title and author substring (case-insensitive; "
        "both must match when both are given), format (physical/digital) and availability. "
        "Results are sorted by title."
    ),
    "handler": search_books_handler,
    "function": search_books_tool,
}
