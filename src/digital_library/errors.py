"""
Error taxonomy for the lending engine.

Three families of failure leave the core:

1. **NotFound**: a user, book, loan or reservation id does not resolve
2. **PolicyViolation**: a lending rule rejects the request (limits, premium
   gate, availability, duplicates, renewals)
3. **CollaboratorFailure**: a repository or notification call failed

Every error carries a machine-readable ``reason`` code alongside its
human-readable message so the tool layer can surface both.
"""


class LibraryError(Exception):
    """Base exception for lending engine failures."""

    reason = "library_error"

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.message = message
        if reason is not None:
            self.reason = reason

    def to_dict(self) -> dict[str, str]:
        """Serializable form used by tool responses."""
        return {"reason": self.reason, "message": self.message}


# === NotFound ===


class NotFound(LibraryError):
    """Raised when a referenced entity does not exist."""

    reason = "not_found"


class UserNotFound(NotFound):
    reason = "user_not_found"

    def __init__(self, user_id: str):
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class BookNotFound(NotFound):
    reason = "book_not_found"

    def __init__(self, book_id: str):
        super().__init__(f"Book {book_id} not found")
        self.book_id = book_id


class LoanNotFound(NotFound):
    reason = "loan_not_found"

    def __init__(self, loan_id: str):
        super().__init__(f"Loan {loan_id} not found")
        self.loan_id = loan_id


class ReservationNotFound(NotFound):
    reason = "reservation_not_found"

    def __init__(self, reservation_id: str):
        super().__init__(f"Reservation {reservation_id} not found")
        self.reservation_id = reservation_id


# === PolicyViolation ===


class PolicyViolation(LibraryError):
    """Raised when a lending rule rejects the request."""

    reason = "policy_violation"


class UserIneligible(PolicyViolation):
    reason = "user_ineligible"

    def __init__(self, user_id: str, action: str = "borrow books"):
        super().__init__(f"User {user_id} is not allowed to {action}")
        self.user_id = user_id


class BookUnavailable(PolicyViolation):
    reason = "book_unavailable"

    def __init__(self, title: str):
        super().__init__(f"Book unavailable - no copies of '{title}' can be borrowed")


class PremiumRequired(PolicyViolation):
    reason = "premium_required"

    def __init__(self, title: str):
        super().__init__(f"'{title}' requires a premium membership")


class LoanLimitExceeded(PolicyViolation):
    reason = "loan_limit_exceeded"

    def __init__(self, limit: int):
        super().__init__(f"Loan limit reached ({limit})")
        self.limit = limit


class BookAlreadyAvailable(PolicyViolation):
    reason = "book_already_available"

    def __init__(self, title: str):
        super().__init__(f"'{title}' is already available - borrow it instead of reserving")


class BookNotReservable(PolicyViolation):
    reason = "book_not_reservable"

    def __init__(self, title: str):
        super().__init__(f"'{title}' cannot be reserved")


class DuplicateReservation(PolicyViolation):
    reason = "duplicate_reservation"

    def __init__(self, user_id: str, book_id: str):
        super().__init__(f"User {user_id} already has an active reservation for book {book_id}")


class CopyCountError(PolicyViolation):
    reason = "no_copies"


class LoanNotActive(PolicyViolation):
    reason = "loan_not_active"

    def __init__(self, loan_id: str, status: str):
        super().__init__(f"Loan {loan_id} is not active (current status: {status})")


class RenewalNotAllowed(PolicyViolation):
    reason = "renewal_not_allowed"


class ReservationNotReady(PolicyViolation):
    reason = "reservation_not_ready"

    def __init__(self, reservation_id: str):
        super().__init__(f"Reservation {reservation_id} is not ready for pickup")


class ReservationNotActive(PolicyViolation):
    reason = "reservation_not_active"

    def __init__(self, reservation_id: str, status: str):
        super().__init__(f"Reservation {reservation_id} is not active (current status: {status})")


class NotReservationOwner(PolicyViolation):
    reason = "not_reservation_owner"

    def __init__(self, reservation_id: str, user_id: str):
        super().__init__(f"Reservation {reservation_id} does not belong to user {user_id}")


# === CollaboratorFailure ===


class CollaboratorFailure(LibraryError):
    """Raised when a repository or notification collaborator fails."""

    reason = "collaborator_failure"


class RepositoryError(CollaboratorFailure):
    """Raised when a database operation fails."""

    reason = "repository_error"


class ConcurrentModification(RepositoryError):
    """Raised when a row changed underneath an update."""

    reason = "concurrent_modification"
