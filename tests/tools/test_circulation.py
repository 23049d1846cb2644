"""
Tests for the circulation tools.

Each handler is called the way the MCP server calls it, with a plain
argument dict, against a library bound to a fresh test database.
"""

import pytest

from digital_library.services import set_library
from digital_library.tools import all_tools
from digital_library.tools.circulation import (
    borrow_book_handler,
    cancel_reservation_handler,
    fulfil_reservation_handler,
    renew_loan_handler,
    reserve_book_handler,
    return_book_handler,
    run_circulation_sweep_handler,
)


@pytest.fixture(autouse=True)
def active_library(library):
    set_library(library)
    yield library
    set_library(None)


class TestBorrowBookTool:
    async def test_borrow_success(self):
        """Test a successful borrow reports the loan and due date."""
        result = await borrow_book_handler({"user_id": "2", "book_id": "1"})

        assert "isError" not in result
        text = result["content"][0]["text"]
        assert "Loan loan_202403011000000001 created for user '2'" in text
        assert "March 15, 2024 (14-day loan)" in text
        assert result["data"]["loan"]["book_id"] == "1"
        assert result["data"]["loan"]["status"] == "active"

    async def test_loan_limit(self):
        """Test that the limit rejection carries its reason and the limit."""
        for book_id in ("1", "3", "4"):
            await borrow_book_handler({"user_id": "2", "book_id": book_id})

        result = await borrow_book_handler({"user_id": "2", "book_id": "2"})

        assert result["isError"] is True
        assert result["reason"] == "loan_limit_exceeded"
        assert "Loan limit reached (3)" in result["content"][0]["text"]

    async def test_unknown_user(self):
        result = await borrow_book_handler({"user_id": "999", "book_id": "1"})

        assert result["isError"] is True
        assert result["reason"] == "user_not_found"

    async def test_missing_parameters(self):
        """Test that malformed arguments never reach the library."""
        result = await borrow_book_handler({"user_id": "2"})

        assert result["isError"] is True
        assert result["reason"] == "invalid_parameters"
        assert "Invalid parameters" in result["content"][0]["text"]

    async def test_unexpected_error(self, active_library, monkeypatch):
        """Test that unexpected failures become error results."""

        def explode(user_id, book_id):
            raise RuntimeError("boom")

        monkeypatch.setattr(active_library, "borrow", explode)

        result = await borrow_book_handler({"user_id": "2", "book_id": "1"})

        assert result["isError"] is True
        assert result["reason"] == "unexpected_error"
        assert "boom" in result["content"][0]["text"]


class TestReserveBookTool:
    async def test_reserve_success(self, sink):
        """Test reserving a title whose only copy is out."""
        await borrow_book_handler({"user_id": "2", "book_id": "2"})

        result = await reserve_book_handler({"user_id": "3", "book_id": "2"})

        assert "isError" not in result
        assert "Valid until March 08, 2024" in result["content"][0]["text"]
        assert result["data"]["reservation"]["status"] == "pending"
        assert sink.sent[-1] == ("reservation_confirmed", "3", "Domain-Driven Design")

    async def test_reserve_available_book(self):
        result = await reserve_book_handler({"user_id": "3", "book_id": "1"})

        assert result["isError"] is True
        assert result["reason"] == "book_already_available"

    async def test_notification_failure_does_not_fail_tool(self, sink):
        """Test that a failing sink still yields a successful reservation."""
        await borrow_book_handler({"user_id": "2", "book_id": "2"})
        sink.error = ConnectionError("smtp down")

        result = await reserve_book_handler({"user_id": "3", "book_id": "2"})

        assert "isError" not in result
        assert result["data"]["reservation"]["status"] == "pending"


class TestReturnAndRenewTools:
    async def test_return_on_time(self):
        borrowed = await borrow_book_handler({"user_id": "2", "book_id": "1"})
        loan_id = borrowed["data"]["loan"]["id"]

        result = await return_book_handler({"loan_id": loan_id})

        assert "isError" not in result
        assert result["content"][0]["text"] == f"Loan {loan_id} returned."
        assert result["data"]["fine"] == 0.0
        assert result["data"]["book"]["available_copies"] == 2
        assert "promoted_reservation" not in result["data"]

    async def test_late_return_reports_fine(self, clock):
        """Test that the fine appears in the message and data."""
        borrowed = await borrow_book_handler({"user_id": "2", "book_id": "1"})
        clock.advance(days=16)

        result = await return_book_handler({"loan_id": borrowed["data"]["loan"]["id"]})

        assert "Late return fine: $1.00" in result["content"][0]["text"]
        assert result["data"]["fine"] == 1.0

    async def test_return_promotes_reservation(self):
        """Test that the receipt names the reservation holding the copy."""
        borrowed = await borrow_book_handler({"user_id": "2", "book_id": "2"})
        reserved = await reserve_book_handler({"user_id": "3", "book_id": "2"})

        result = await return_book_handler({"loan_id": borrowed["data"]["loan"]["id"]})

        reservation_id = reserved["data"]["reservation"]["id"]
        assert f"Copy held for reservation {reservation_id}" in result["content"][0]["text"]
        assert result["data"]["promoted_reservation"]["status"] == "ready"
        assert result["data"]["book"]["status"] == "reserved"

    async def test_return_unknown_loan(self):
        result = await return_book_handler({"loan_id": "loan_missing"})

        assert result["isError"] is True
        assert result["reason"] == "loan_not_found"

    async def test_renew(self):
        borrowed = await borrow_book_handler({"user_id": "2", "book_id": "1"})

        result = await renew_loan_handler({"loan_id": borrowed["data"]["loan"]["id"]})

        assert "(renewal 1). New due date: March 29, 2024" in result["content"][0]["text"]
        assert result["data"]["loan"]["renewal_count"] == 1

    async def test_renew_overdue(self, clock):
        """Test that overdue loans cannot be renewed through the tool."""
        borrowed = await borrow_book_handler({"user_id": "2", "book_id": "1"})
        clock.advance(days=15)

        result = await renew_loan_handler({"loan_id": borrowed["data"]["loan"]["id"]})

        assert result["isError"] is True
        assert result["reason"] == "renewal_not_allowed"


class TestReservationLifecycleTools:
    async def test_pickup_and_cancel(self):
        """Test picking up a held copy, then that cancelling it is refused."""
        borrowed = await borrow_book_handler({"user_id": "2", "book_id": "2"})
        reserved = await reserve_book_handler({"user_id": "3", "book_id": "2"})
        reservation_id = reserved["data"]["reservation"]["id"]
        await return_book_handler({"loan_id": borrowed["data"]["loan"]["id"]})

        picked = await fulfil_reservation_handler({"reservation_id": reservation_id})
        cancelled = await cancel_reservation_handler(
            {"reservation_id": reservation_id, "user_id": "3"}
        )

        assert f"Reservation {reservation_id} picked up as loan" in picked["content"][0]["text"]
        assert picked["data"]["loan"]["user_id"] == "3"
        assert cancelled["isError"] is True
        assert cancelled["reason"] == "reservation_not_active"

    async def test_cancel_by_owner(self):
        await borrow_book_handler({"user_id": "2", "book_id": "2"})
        reserved = await reserve_book_handler({"user_id": "3", "book_id": "2"})
        reservation_id = reserved["data"]["reservation"]["id"]

        result = await cancel_reservation_handler(
            {"reservation_id": reservation_id, "user_id": "3"}
        )

        assert result["content"][0]["text"] == f"Reservation {reservation_id} cancelled"
        assert result["data"]["reservation"]["status"] == "cancelled"

    async def test_sweep(self, clock):
        """Test that the sweep tool reports what it did."""
        await borrow_book_handler({"user_id": "2", "book_id": "1"})
        clock.advance(days=15)

        result = await run_circulation_sweep_handler({})

        assert "1 overdue notice(s)" in result["content"][0]["text"]
        assert result["data"]["report"]["overdue_notices"] == 1


class TestToolRegistry:
    def test_all_tools_are_complete(self):
        """Test that every tool exposes a name, description, schema and handler."""
        names = [tool["name"] for tool in all_tools]

        assert names == [
            "search_books",
            "borrow_book",
            "reserve_book",
            "cancel_reservation",
            "return_book",
            "renew_loan",
            "fulfil_reservation",
            "run_circulation_sweep",
        ]
        for tool in all_tools:
            assert tool["description"]
            assert callable(tool["handler"])
            assert callable(tool["function"])
