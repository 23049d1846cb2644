"""
Tests for the Book model.

These tests verify that the Book model correctly:
1. Validates ISBNs and copy counts
2. Answers the availability and reservation predicates
3. Applies the premium gate to recent digital titles
4. Derives new books without mutating the original
"""

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from digital_library.models import Book, BookFormat, BookStatus


def make_book(**overrides) -> Book:
    values = {
        "id": "1",
        "title": "Clean Architecture",
        "author": "Robert C. Martin",
        "isbn": "978-0134494166",
        "format": BookFormat.PHYSICAL,
        "status": BookStatus.AVAILABLE,
        "total_copies": 3,
        "available_copies": 2,
    }
    values.update(overrides)
    return Book(**values)


class TestBookValidation:
    """Field and model validation."""

    def test_create_valid_book(self):
        """Test creating a book with valid data."""
        book = make_book()

        assert book.title == "Clean Architecture"
        assert book.format == BookFormat.PHYSICAL
        assert book.checked_out_copies == 1

    @pytest.mark.parametrize("isbn", ["0134494164", "978-0134494166", "9780134494166"])
    def test_accepts_isbn_10_and_13(self, isbn):
        """Test that ISBN-10 and ISBN-13, with or without hyphens, are accepted."""
        assert make_book(isbn=isbn).isbn == isbn

    @pytest.mark.parametrize("isbn", ["123-456", "97801344941661", "abcdefghij"])
    def test_rejects_invalid_isbn(self, isbn):
        """Test that malformed ISBNs are rejected."""
        with pytest.raises(ValidationError):
            make_book(isbn=isbn)

    def test_available_cannot_exceed_total(self):
        """Test that available copies are bounded by total copies."""
        with pytest.raises(ValidationError) as exc_info:
            make_book(total_copies=2, available_copies=3)

        assert "Available copies cannot exceed total copies" in str(exc_info.value)

    def test_total_copies_must_be_positive(self):
        """Test that a title needs at least one copy."""
        with pytest.raises(ValidationError):
            make_book(total_copies=0, available_copies=0)

    def test_book_is_immutable(self):
        """Test that books cannot be modified in place."""
        book = make_book()
        with pytest.raises(ValidationError):
            book.available_copies = 0


class TestBookPredicates:
    """Availability, reservation and format predicates."""

    def test_available_with_copies_on_shelf(self):
        """Test that an available title with copies can be borrowed."""
        assert make_book().is_available() is True

    def test_not_available_without_copies(self):
        """Test that a title with no copies on the shelf cannot be borrowed."""
        book = make_book(available_copies=0, status=BookStatus.BORROWED)
        assert book.is_available() is False

    def test_not_available_under_maintenance(self):
        """Test that maintenance blocks borrowing even with copies on the shelf."""
        book = make_book(status=BookStatus.MAINTENANCE)
        assert book.is_available() is False

    def test_reservable_only_when_all_copies_out(self):
        """Test that reservation requires every copy to be out."""
        assert make_book().can_be_reserved() is False
        assert make_book(available_copies=0, status=BookStatus.BORROWED).can_be_reserved()
        assert make_book(available_copies=0, status=BookStatus.RESERVED).can_be_reserved()

    def test_maintenance_is_never_reservable(self):
        """Test that a title under maintenance cannot be reserved."""
        book = make_book(available_copies=0, status=BookStatus.MAINTENANCE)
        assert book.can_be_reserved() is False

    def test_is_digital(self):
        """Test the format predicate."""
        assert make_book(format=BookFormat.DIGITAL).is_digital() is True
        assert make_book().is_digital() is False


class TestPremiumGate:
    """Recent digital titles are premium-only."""

    now = datetime(2024, 3, 1, 10, 0)

    def test_recent_digital_requires_premium(self):
        """Test that a digital title published within a year needs premium."""
        book = make_book(format=BookFormat.DIGITAL, published_date=date(2023, 12, 1))
        assert book.requires_premium(self.now) is True

    def test_old_digital_is_open(self):
        """Test that an older digital title is open to everyone."""
        book = make_book(format=BookFormat.DIGITAL, published_date=date(2020, 1, 1))
        assert book.requires_premium(self.now) is False

    def test_recent_physical_is_open(self):
        """Test that the gate only applies to digital titles."""
        book = make_book(published_date=date(2024, 2, 1))
        assert book.requires_premium(self.now) is False

    def test_missing_publication_date_is_open(self):
        """Test that a digital title without a publication date is not gated."""
        assert make_book(format=BookFormat.DIGITAL).requires_premium(self.now) is False

    def test_window_boundary(self):
        """Test that a title published exactly at the window edge is open."""
        edge = make_book(format=BookFormat.DIGITAL, published_date=date(2023, 3, 2))
        inside = make_book(format=BookFormat.DIGITAL, published_date=date(2023, 3, 3))

        # 2024-03-01 minus 365 days is 2023-03-02
        assert edge.requires_premium(self.now) is False
        assert inside.requires_premium(self.now) is True

    def test_custom_window(self):
        """Test that the window length is configurable."""
        book = make_book(format=BookFormat.DIGITAL, published_date=date(2024, 1, 1))
        assert book.requires_premium(self.now, window_days=30) is False


class TestWithAvailability:
    def test_derives_new_book(self):
        """Test that the original book is left untouched."""
        book = make_book()
        derived = book.with_availability(0, BookStatus.BORROWED)

        assert derived.available_copies == 0
        assert derived.status == BookStatus.BORROWED
        assert derived.title == book.title
        assert book.available_copies == 2
        assert book.status == BookStatus.AVAILABLE

    def test_rejects_impossible_count(self):
        """Test that derived books are validated too."""
        with pytest.raises(ValidationError):
            make_book().with_availability(4, BookStatus.AVAILABLE)
