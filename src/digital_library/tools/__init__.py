"""
MCP tools for the Digital Library server.

Each tool is a dictionary with its name, description, an async handler and
the function registered with FastMCP. Handlers take a plain argument dict,
validate it with Pydantic, call the lending services and return either
``{"content": [...], "data": {...}}`` or an ``isError`` result carrying the
error's ``reason`` code. The registered functions take typed keyword
parameters, forward them to the handler and raise ``ToolError`` for an
``isError`` result.
"""

from .circulation import (
    borrow_book,
    cancel_reservation,
    fulfil_reservation,
    renew_loan,
    reserve_book,
    return_book,
    run_circulation_sweep,
)
from .search import search_books

all_tools = [
    search_books,
    borrow_book,
    reserve_book,
    cancel_reservation,
    return_book,
    renew_loan,
    fulfil_reservation,
    run_circulation_sweep,
]

__all__ = [
    "all_tools",
    "borrow_book",
    "cancel_reservation",
    "fulfil_reservation",
    "renew_loan",
    "reserve_book",
    "return_book",
    "run_circulation_sweep",
    "search_books",
]
