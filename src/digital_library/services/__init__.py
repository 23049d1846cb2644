"""
Lending workflows.

- borrowing: lend a copy
- reservations: queue for a title, cancel a place in the queue
- returns: return, renew, pick up a ready reservation
- sweeps: expire reservations, send ready/overdue notices, retry notices
- search: catalog search
- library: facade wiring all of the above
"""

from .borrowing import BorrowingService
from .library import Library, get_library, set_library
from .reservations import ReservationService
from .returns import ReturnReceipt, ReturnService
from .search import CatalogSearch, SearchCriteria
from .sweeps import SweepReport, SweepService

__all__ = [
    "BorrowingService",
    "CatalogSearch",
    "Library",
    "ReservationService",
    "ReturnReceipt",
    "ReturnService",
    "SearchCriteria",
    "SweepReport",
    "SweepService",
    "get_library",
    "set_library",
]
