"""Circulation Tools - lending, reservations and returns.

Tools:
- borrow_book: Lend a copy of a book to a user
- reserve_book: Queue for a book whose copies are all out
- cancel_reservation: Give up a place in the queue
- return_book: Return a loan, reporting any fine
- renew_loan: Extend an active loan
- fulfil_reservation: Pick up the copy held for a ready reservation
- run_circulation_sweep: Expire reservations and send pending notices
"""

import logging
from typing import Annotated, Any

from pydantic import BaseModel, Field, ValidationError

from ..errors import LibraryError
from ..models import Loan, Reservation
from ..observability import trace_tool
from ..services import get_library
from .responses import (
    error_response,
    invalid_params_response,
    library_error_response,
    raise_for_error,
    text_response,
)

logger = logging.getLogger(__name__)


def _loan_data(loan: Loan) -> dict[str, Any]:
    return loan.model_dump(mode="json")


def _reservation_data(reservation: Reservation) -> dict[str, Any]:
    return reservation.model_dump(mode="json")


class BorrowBookInput(BaseModel):
    """Input schema for borrowing a book."""

    user_id: str = Field(..., description="ID of the borrowing user", min_length=1, examples=["2"])
    book_id: str = Field(..., description="ID of the book to borrow", min_length=1, examples=["1"])


class ReserveBookInput(BaseModel):
    """Input schema for reserving a book."""

    user_id: str = Field(..., description="ID of the reserving user", min_length=1, examples=["2"])
    book_id: str = Field(..., description="ID of the book to reserve", min_length=1, examples=["2"])


class CancelReservationInput(BaseModel):
    reservation_id: str = Field(..., description="ID of the reservation", min_length=1)
    user_id: str = Field(..., description="ID of the reservation's owner", min_length=1)


class LoanInput(BaseModel):
    """Input schema for tools acting on an existing loan."""

    loan_id: str = Field(..., description="ID of the loan", min_length=1)


class FulfilReservationInput(BaseModel):
    reservation_id: str = Field(..., description="ID of the ready reservation", min_length=1)


class SweepInput(BaseModel):
    """The sweep takes no parameters."""


@trace_tool("borrow_book")
async def borrow_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Lend a copy of a book to a user.

    Client calls: tool.call("borrow_book", {"user_id": "2", "book_id": "1"})
    """
    try:
        params = BorrowBookInput.model_validate(arguments)
    except ValidationError as e:
        return invalid_params_response("borrow_book", e)

    try:
        loan = get_library().borrow(params.user_id, params.book_id)
    except LibraryError as e:
        return library_error_response("borrow_book", e)
    except Exception as e:
        logger.exception("Unexpected error in borrow_book tool")
        return error_response("unexpected_error", f"Unexpected error: {e!s}")

    days = loan.loan_period.days
    message = (
        f"Loan {loan.id} created for user '{loan.user_id}'. "
        f"Due date: {loan.due_date.strftime('%B %d, %Y')} ({days}-day loan)"
    )
    return text_response(message, loan=_loan_data(loan))


@trace_tool("reserve_book")
async def reserve_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Reserve a book whose copies are all out.

    The confirmation notice is best-effort; the reservation stands either way.
    """
    try:
        params = ReserveBookInput.model_validate(arguments)
    except ValidationError as e:
        return invalid_params_response("reserve_book", e)

    try:
        reservation = get_library().reserve(params.user_id, params.book_id)
    except LibraryError as e:
        return library_error_response("reserve_book", e)
    except Exception as e:
        logger.exception("Unexpected error in reserve_book tool")
        return error_response("unexpected_error", f"Unexpected error: {e!s}")

    message = (
        f"Reservation {reservation.id} placed for book '{reservation.book_id}'. "
        f"Valid until {reservation.expiration_date.strftime('%B %d, %Y')}"
    )
    return text_response(message, reservation=_reservation_data(reservation))


@trace_tool("cancel_reservation")
async def cancel_reservation_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    try:
        params = CancelReservationInput.model_validate(arguments)
    except ValidationError as e:
        return invalid_params_response("cancel_reservation", e)

    try:
        reservation = get_library().cancel_reservation(params.reservation_id, params.user_id)
    except LibraryError as e:
        return library_error_response("cancel_reservation", e)
    except Exception as e:
        logger.exception("Unexpected error in cancel_reservation tool")
        return error_response("unexpected_error", f"Unexpected error: {e!s}")

    return text_response(
        f"Reservation {reservation.id} cancelled",
        reservation=_reservation_data(reservation),
    )


@trace_tool("return_book")
async def return_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Return a loan. Reports the fine and who the copy went to next."""
    try:
        params = LoanInput.model_validate(arguments)
    except ValidationError as e:
        return invalid_params_response("return_book", e)

    try:
        receipt = get_library().return_loan(params.loan_id)
    except LibraryError as e:
        return library_error_response("return_book", e)
    except Exception as e:
        logger.exception("Unexpected error in return_book tool")
        return error_response("unexpected_error", f"Unexpected error: {e!s}")

    message = f"Loan {receipt.loan.id} returned."
    if receipt.fine > 0:
        message += f" Late return fine: ${receipt.fine:.2f}"
    if receipt.promoted_reservation is not None:
        message += (
            f" Copy held for reservation {receipt.promoted_reservation.id}"
            f" (user '{receipt.promoted_reservation.user_id}')."
        )

    data: dict[str, Any] = {
        "loan": _loan_data(receipt.loan),
        "book": receipt.book.model_dump(mode="json"),
        "fine": receipt.fine,
    }
    if receipt.promoted_reservation is not None:
        data["promoted_reservation"] = _reservation_data(receipt.promoted_reservation)
    return text_response(message, **data)


@trace_tool("renew_loan")
async def renew_loan_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    try:
        params = LoanInput.model_validate(arguments)
    except ValidationError as e:
        return invalid_params_response("renew_loan", e)

    try:
        loan = get_library().renew_loan(params.loan_id)
    except LibraryError as e:
        return library_error_response("renew_loan", e)
    except Exception as e:
        logger.exception("Unexpected error in renew_loan tool")
        return error_response("unexpected_error", f"Unexpected error: {e!s}")

    message = (
        f"Loan {loan.id} renewed (renewal {loan.renewal_count}). "
        f"New due date: {loan.due_date.strftime('%B %d, %Y')}"
    )
    return text_response(message, loan=_loan_data(loan))


@trace_tool("fulfil_reservation")
async def fulfil_reservation_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    try:
        params = FulfilReservationInput.model_validate(arguments)
    except ValidationError as e:
        return invalid_params_response("fulfil_reservation", e)

    try:
        loan = get_library().fulfil_reservation(params.reservation_id)
    except LibraryError as e:
        return library_error_response("fulfil_reservation", e)
    except Exception as e:
        logger.exception("Unexpected error in fulfil_reservation tool")
        return error_response("unexpected_error", f"Unexpected error: {e!s}")

    message = (
        f"Reservation {params.reservation_id} picked up as loan {loan.id}. "
        f"Due date: {loan.due_date.strftime('%B %d, %Y')}"
    )
    return text_response(message, loan=_loan_data(loan))


@trace_tool("run_circulation_sweep")
async def run_circulation_sweep_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Expire lapsed reservations and send ready/overdue notices."""
    try:
        SweepInput.model_validate(arguments or {})
    except ValidationError as e:
        return invalid_params_response("run_circulation_sweep", e)

    try:
        report = get_library().run_sweep()
    except LibraryError as e:
        return library_error_response("run_circulation_sweep", e)
    except Exception as e:
        logger.exception("Unexpected error in run_circulation_sweep tool")
        return error_response("unexpected_error", f"Unexpected error: {e!s}")

    message = (
        f"Sweep complete: {report.expired} reservation(s) expired, "
        f"{report.ready_notices} ready notice(s), {report.overdue_notices} overdue notice(s), "
        f"{report.retried} retried notice(s)"
    )
    return text_response(message, report=report.model_dump())


# Entry points registered with FastMCP. Their signatures become the tools'
# input schemas; each forwards to the matching handler.

UserId = Annotated[str, Field(description="ID of the user", min_length=1)]
BookId = Annotated[str, Field(description="ID of the book", min_length=1)]
LoanId = Annotated[str, Field(description="ID of the loan", min_length=1)]
ReservationId = Annotated[str, Field(description="ID of the reservation", min_length=1)]


async def borrow_book_tool(user_id: UserId, book_id: BookId) -> dict[str, Any]:
    return raise_for_error(await borrow_book_handler({"user_id": user_id, "book_id": book_id}))


async def reserve_book_tool(user_id: UserId, book_id: BookId) -> dict[str, Any]:
    return raise_for_error(await reserve_book_handler({"user_id": user_id, "book_id": book_id}))


async def cancel_reservation_tool(reservation_id: ReservationId, user_id: UserId) -> dict[str, Any]:
    return raise_for_error(
        await cancel_reservation_handler({"reservation_id": reservation_id, "user_id": user_id})
    )


async def return_book_tool(loan_id: LoanId) -> dict[str, Any]:
    return raise_for_error(await return_book_handler({"loan_id": loan_id}))


async def renew_loan_tool(loan_id: LoanId) -> dict[str, Any]:
    return raise_for_error(await renew_loan_handler({"loan_id": loan_id}))


async def fulfil_reservation_tool(reservation_id: ReservationId) -> dict[str, Any]:
    return raise_for_error(await fulfil_reservation_handler({"reservation_id": reservation_id}))


async def run_circulation_sweep_tool() -> dict[str, Any]:
    return raise_for_error(await run_circulation_sweep_handler({}))


borrow_book = {
    "name": "borrow_book",
    "description": (
        "Borrow a book. Checks that the user is active, a copy is available, the premium "
        "gate for recent digital titles, and the user's loan limit (3 free, 10 premium). "
        "Physical loans last 14 days, digital loans 21."
    ),
    "handler": borrow_book_handler,
    "function": borrow_book_tool,
}

reserve_book = {
    "name": "reserve_book",
    "description": (
        "Reserve a book whose copies are all out. The reservation is valid for 7 days; "
        "the user is notified when a copy is held for them."
    ),
    "handler": reserve_book_handler,
    "function": reserve_book_tool,
}

cancel_reservation = {
    "name": "cancel_reservation",
    "description": "Cancel an active reservation. Only the reservation's owner may cancel it.",
    "handler": cancel_reservation_handler,
    "function": cancel_reservation_tool,
}

return_book = {
    "name": "return_book",
    "description": (
        "Return a loan. Reports the late fine ($0.50 per started overdue day) and hands the "
        "copy to the next pending reservation, if any."
    ),
    "handler": return_book_handler,
    "function": return_book_tool,
}

renew_loan = {
    "name": "renew_loan",
    "description": "Renew an active, not overdue loan by one loan period (at most 2 renewals).",
    "handler": renew_loan_handler,
    "function": renew_loan_tool,
}

fulfil_reservation = {
    "name": "fulfil_reservation",
    "description": "Pick up the copy held for a ready reservation, turning it into a loan.",
    "handler": fulfil_reservation_handler,
    "function": fulfil_reservation_tool,
}

run_circulation_sweep = {
    "name": "run_circulation_sweep",
    "description": (
        "Expire lapsed reservations, notify users whose reservations are ready, send "
        "overdue notices and retry failed notifications."
    ),
    "handler": run_circulation_sweep_handler,
    "function": run_circulation_sweep_tool,
}
