"""
Book model for the Digital Library lending engine.

A book is a catalog title with a number of lendable copies. Physical and
digital titles share the same record; the ``format`` decides loan periods
and the premium gate.

Books are immutable. Availability changes produce a new ``Book`` through
``with_availability`` so callers always hold a consistent before/after pair.
"""

from datetime import date, datetime, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class BookFormat(str, Enum):
    """Physical copy or digital file."""

    PHYSICAL = "physical"
    DIGITAL = "digital"


class BookStatus(str, Enum):
    """Lending status of a title."""

    AVAILABLE = "available"
    BORROWED = "borrowed"
    RESERVED = "reserved"
    MAINTENANCE = "maintenance"


class Book(BaseModel):
    """
    Represents a title in the library catalog.

    ``status`` and ``available_copies`` together decide whether the title can
    be borrowed or reserved; see ``is_available`` and ``can_be_reserved``.
    """

    id: str = Field(
        ...,
        description="Unique identifier for the book",
        min_length=1,
        examples=["book_clean_arch", "3"],
    )

    title: str = Field(
        ...,
        description="The title of the book",
        min_length=1,
        max_length=500,
        examples=["Clean Architecture", "El Quijote"],
    )

    author: str = Field(
        ...,
        description="Author name as printed on the book",
        min_length=1,
        max_length=200,
        examples=["Robert C. Martin", "Miguel de Cervantes"],
    )

    isbn: str = Field(
        ...,
        description="ISBN-10 or ISBN-13, hyphens allowed",
        examples=["978-0134494166", "9788424116859"],
    )

    format: BookFormat = Field(
        default=BookFormat.PHYSICAL,
        description="Physical copy or digital file",
    )

    status: BookStatus = Field(
        default=BookStatus.AVAILABLE,
        description="Current lending status",
    )

    total_copies: int = Field(
        ...,
        description="Total number of copies owned by the library",
        ge=1,
        examples=[1, 3, 5],
    )

    available_copies: int = Field(
        ...,
        description="Number of copies currently on the shelf",
        ge=0,
        examples=[0, 2, 5],
    )

    digital_url: str | None = Field(
        None,
        description="Download location for digital titles",
        pattern=r"^https?://",
        examples=["https://example.com/ddd.pdf"],
    )

    published_date: date | None = Field(
        None,
        description="Publication date, used by the premium gate",
    )

    genre: str | None = Field(
        None,
        description="Literary genre or category of the book",
        max_length=100,
    )

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, v: str) -> str:
        """Accept ISBN-10/13 with or without hyphens."""
        digits = v.replace("-", "")
        if len(digits) not in (10, 13) or not digits[:-1].isdigit():
            raise ValueError("ISBN must have 10 or 13 digits")
        return v

    @model_validator(mode="after")
    def validate_copies(self) -> "Book":
        """Ensure available copies doesn't exceed total copies."""
        if self.available_copies > self.total_copies:
            raise ValueError("Available copies cannot exceed total copies")
        return self

    @property
    def checked_out_copies(self) -> int:
        """Number of copies currently out on loan or held."""
        return self.total_copies - self.available_copies

    def is_available(self) -> bool:
        """A copy can be borrowed right now."""
        return self.status == BookStatus.AVAILABLE and self.available_copies > 0

    def is_digital(self) -> bool:
        return self.format == BookFormat.DIGITAL

    def can_be_reserved(self) -> bool:
        """Every copy is out and the title is not under maintenance."""
        return self.available_copies == 0 and self.status != BookStatus.MAINTENANCE

    def requires_premium(self, now: datetime | None = None, window_days: int = 365) -> bool:
        """Digital titles published within the window are premium-only."""
        if not self.is_digital() or self.published_date is None:
            return False
        now = now or datetime.now()
        return self.published_date > (now - timedelta(days=window_days)).date()

    def with_availability(self, available_copies: int, status: BookStatus) -> "Book":
        """Derive a new book with a different copy count and status."""
        return Book(
            id=self.id,
            title=self.title,
            author=self.author,
            isbn=self.isbn,
            format=self.format,
            status=status,
            total_copies=self.total_copies,
            available_copies=available_copies,
            digital_url=self.digital_url,
            published_date=self.published_date,
            genre=self.genre,
        )

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "1",
                "title": "Clean Architecture",
                "author": "Robert C. Martin",
                "isbn": "978-0134494166",
                "format": "physical",
                "status": "available",
                "total_copies": 3,
                "available_copies": 2,
                "published_date": "2017-09-20",
                "genre": "Technology",
            }
        },
    )
