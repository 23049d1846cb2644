"""
SQLAlchemy database schema for the Digital Library lending engine.

The tables mirror the frozen Pydantic entities in ``digital_library.models``.
Status columns reuse the model enums, stored as their string values, so a
row converts straight back into a model with ``model_validate``.

Check constraints repeat the model invariants so a bad write is rejected by
the database even if it bypasses the models.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import declarative_base, relationship

from ..models import BookFormat, BookStatus, LoanStatus, MembershipType, ReservationStatus, UserRole

Base = declarative_base()


def _enum_column(enum_class, default):
    return Column(
        Enum(
            enum_class,
            native_enum=False,
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
        default=default,
    )


class User(Base):
    """Users table - library members. Written at signup, read by the workflows."""

    __tablename__ = "users"

    id = Column(String(50), primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    role = _enum_column(UserRole, UserRole.READER)
    membership = _enum_column(MembershipType, MembershipType.FREE)
    created_at = Column(DateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    loans = relationship("Loan", back_populates="user")
    reservations = relationship("Reservation", back_populates="user")

    __table_args__ = (Index("idx_user_email", "email"),)


class Book(Base):
    """
    Books table - the catalog and its copy counts.

    ``version`` is an optimistic lock: every UPDATE is issued as
    ``WHERE id = ? AND version = ?`` and fails if another transaction got
    there first.
    """

    __tablename__ = "books"

    id = Column(String(50), primary_key=True)
    title = Column(String(500), nullable=False, index=True)
    author = Column(String(200), nullable=False, index=True)
    isbn = Column(String(17), nullable=False, unique=True)
    format = _enum_column(BookFormat, BookFormat.PHYSICAL)
    status = _enum_column(BookStatus, BookStatus.AVAILABLE)
    total_copies = Column(Integer, nullable=False)
    available_copies = Column(Integer, nullable=False)
    digital_url = Column(String(500), nullable=True)
    published_date = Column(Date, nullable=True)
    genre = Column(String(100), nullable=True)
    version = Column(Integer, nullable=False)

    loans = relationship("Loan", back_populates="book")
    reservations = relationship("Reservation", back_populates="book")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_book_format", "format"),
        Index("idx_book_status", "status"),
        CheckConstraint("available_copies >= 0", name="check_available_copies_non_negative"),
        CheckConstraint(
            "available_copies <= total_copies", name="check_available_not_exceed_total"
        ),
        CheckConstraint("total_copies > 0", name="check_total_copies_positive"),
    )


class Loan(Base):
    """Loans table - one row per copy lent."""

    __tablename__ = "loans"

    id = Column(String(50), primary_key=True)
    user_id = Column(String(50), ForeignKey("users.id"), nullable=False)
    book_id = Column(String(50), ForeignKey("books.id"), nullable=False)
    loan_date = Column(DateTime, nullable=False)
    due_date = Column(DateTime, nullable=False)
    status = _enum_column(LoanStatus, LoanStatus.ACTIVE)
    return_date = Column(DateTime, nullable=True)
    renewal_count = Column(Integer, nullable=False, default=0)

    user = relationship("User", back_populates="loans")
    book = relationship("Book", back_populates="loans")

    __table_args__ = (
        Index("idx_loan_user_status", "user_id", "status"),
        Index("idx_loan_due_date", "due_date"),
        CheckConstraint("due_date > loan_date", name="check_due_after_loan"),
        CheckConstraint("renewal_count >= 0", name="check_renewal_count_non_negative"),
    )


class Reservation(Base):
    """Reservations table - the queue of users waiting for a title."""

    __tablename__ = "reservations"

    id = Column(String(50), primary_key=True)
    user_id = Column(String(50), ForeignKey("users.id"), nullable=False)
    book_id = Column(String(50), ForeignKey("books.id"), nullable=False)
    reservation_date = Column(DateTime, nullable=False)
    expiration_date = Column(DateTime, nullable=False)
    status = _enum_column(ReservationStatus, ReservationStatus.PENDING)
    notification_sent = Column(Boolean, nullable=False, default=False)

    user = relationship("User", back_populates="reservations")
    book = relationship("Book", back_populates="reservations")

    __table_args__ = (
        Index("idx_reservation_user", "user_id"),
        Index("idx_reservation_book_status", "book_id", "status"),
        Index("idx_reservation_expiration", "expiration_date"),
        CheckConstraint(
            "expiration_date > reservation_date", name="check_expiration_after_reservation"
        ),
    )
