"""
Digital Library lending engine.

Key Components:
- models: frozen Pydantic entities (User, Book, Loan, Reservation)
- policy: availability and temporal rules over those entities
- database: SQLAlchemy schema, unit of work and repositories
- services: borrowing, reservation, return and sweep workflows
- notifications: best-effort notification side-channel
- tools / server: MCP tool surface over the services
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
