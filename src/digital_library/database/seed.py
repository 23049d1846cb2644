"""
Demo catalog and members for the Digital Library lending engine.

Loads four titles (two physical, two digital) and three users covering
every membership tier and role. Seeding is idempotent: rows whose ID
already exists are left alone.
"""

import logging
from datetime import date, datetime

from sqlalchemy.orm import Session

from ..models import Book, BookFormat, BookStatus, MembershipType, User, UserRole
from .book_repository import BookRepository
from .user_repository import UserRepository

logger = logging.getLogger(__name__)

SEED_CREATED_AT = datetime(2024, 1, 1, 9, 0, 0)

DEMO_USERS = [
    User(
        id="1",
        email="admin@biblioteca.com",
        name="Administrador",
        role=UserRole.ADMIN,
        membership=MembershipType.PREMIUM,
        created_at=SEED_CREATED_AT,
    ),
    User(
        id="2",
        email="usuario@email.com",
        name="Juan Pérez",
        role=UserRole.READER,
        membership=MembershipType.FREE,
        created_at=SEED_CREATED_AT,
    ),
    User(
        id="3",
        email="premium@email.com",
        name="María García",
        role=UserRole.READER,
        membership=MembershipType.PREMIUM,
        created_at=SEED_CREATED_AT,
    ),
]

DEMO_BOOKS = [
    Book(
        id="1",
        title="Clean Architecture",
        author="Robert C. Martin",
        isbn="978-0134494166",
        format=BookFormat.PHYSICAL,
        status=BookStatus.AVAILABLE,
        total_copies=3,
        available_copies=2,
        published_date=date(2017, 9, 20),
        genre="Tecnología",
    ),
    Book(
        id="2",
        title="Domain-Driven Design",
        author="Eric Evans",
        isbn="978-0321125217",
        format=BookFormat.DIGITAL,
        status=BookStatus.AVAILABLE,
        total_copies=1,
        available_copies=1,
        digital_url="https://example.com/ddd.pdf",
        published_date=date(2003, 8, 30),
        genre="Tecnología",
    ),
    Book(
        id="3",
        title="El Quijote",
        author="Miguel de Cervantes",
        isbn="978-8424116859",
        format=BookFormat.PHYSICAL,
        status=BookStatus.AVAILABLE,
        total_copies=5,
        available_copies=5,
        published_date=date(1605, 1, 16),
        genre="Literatura",
    ),
    Book(
        id="4",
        title="Cien años de soledad",
        author="Gabriel García Márquez",
        isbn="978-0307474728",
        format=BookFormat.DIGITAL,
        status=BookStatus.AVAILABLE,
        total_copies=1,
        available_copies=1,
        digital_url="https://example.com/cien-anos.epub",
        published_date=date(1967, 6, 5),
        genre="Literatura",
    ),
]


def seed_demo_data(session: Session) -> tuple[int, int]:
    """
    Insert the demo users and books that are not there yet.

    Returns:
        Number of users and books inserted
    """
    users = UserRepository(session)
    books = BookRepository(session)

    new_users = [user for user in DEMO_USERS if not users.exists(user.id)]
    for user in new_users:
        users.save(user)

    new_books = [book for book in DEMO_BOOKS if not books.exists(book.id)]
    for book in new_books:
        books.save(book)

    logger.info("Seeded %d users and %d books", len(new_users), len(new_books))
    return len(new_users), len(new_books)
