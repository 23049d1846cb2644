"""Configuration management for the Digital Library lending engine.

Configuration covers three concerns:
1. Server metadata for the MCP tool surface
2. Database location
3. Lending policy constants (loan periods, limits, fines, windows)

Every value can be overridden with a ``DIGITAL_LIBRARY_`` environment
variable or a ``.env`` file.
"""

from pathlib import Path

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LibraryConfig(BaseSettings):
    """Lending engine configuration.

    Services read their policy constants from this object instead of
    hard-coding them, so tests and deployments can tune the rules without
    touching the workflows.
    """

    model_config = SettingsConfigDict(
        env_prefix="DIGITAL_LIBRARY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Server Metadata ===

    server_name: str = Field(
        default="digital-library",
        description="MCP server name used in protocol handshake",
        pattern=r"^[a-z0-9-]+$",
    )

    server_version: str = Field(
        default="0.1.0",
        description="Server version for capability negotiation",
        pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?$",
    )

    # === Database Configuration ===

    database_path: Path = Field(
        default=Path("data/library.db"),
        description="SQLite database file path",
    )

    # === Lending Policy ===

    physical_loan_days: int = Field(
        default=14,
        description="Loan period for physical books",
        ge=1,
    )

    digital_loan_days: int = Field(
        default=21,
        description="Loan period for digital books",
        ge=1,
    )

    free_loan_limit: int = Field(
        default=3,
        description="Maximum active loans for free members",
        ge=0,
    )

    premium_loan_limit: int = Field(
        default=10,
        description="Maximum active loans for premium members",
        ge=0,
    )

    fine_per_day: float = Field(
        default=0.50,
        description="Fine charged per overdue day, in dollars",
        ge=0.0,
    )

    max_renewals: int = Field(
        default=2,
        description="Maximum number of times a loan can be renewed",
        ge=0,
    )

    reservation_window_days: int = Field(
        default=7,
        description="Days a reservation stays valid (also the pickup window once ready)",
        ge=1,
    )

    premium_window_days: int = Field(
        default=365,
        description="Digital books published within this many days require premium",
        ge=0,
    )

    # === Notifications ===

    notification_max_attempts: int = Field(
        default=3,
        description="Delivery attempts for a notification before it is dropped",
        ge=1,
        le=10,
    )

    # === Development Configuration ===

    debug: bool = Field(
        default=False,
        description="Enable debug logging",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
    )

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, v: Path) -> Path:
        """Resolve the database path and make sure its directory exists."""
        abs_path = v.absolute()
        abs_path.parent.mkdir(parents=True, exist_ok=True)

        if not abs_path.parent.is_dir():
            raise ValueError(f"Database directory {abs_path.parent} is not accessible")

        return abs_path

    @field_validator("premium_loan_limit")
    @classmethod
    def validate_premium_limit(cls, v: int, info: ValidationInfo) -> int:
        """Premium members never get a lower limit than free members."""
        free_limit = info.data.get("free_loan_limit")
        if free_limit is not None and v < free_limit:
            raise ValueError("Premium loan limit cannot be lower than the free loan limit")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug or self.log_level == "DEBUG"

    @property
    def server_info(self) -> dict[str, str]:
        """Server information sent during the MCP handshake."""
        return {
            "name": self.server_name,
            "version": self.server_version,
        }

    def loan_limit_for(self, is_premium: bool) -> int:
        """Active-loan limit for a membership tier."""
        return self.premium_loan_limit if is_premium else self.free_loan_limit

    def loan_days_for(self, is_digital: bool) -> int:
        """Loan period for a book format."""
        return self.digital_loan_days if is_digital else self.physical_loan_days

    def get_database_url(self) -> str:
        """SQLAlchemy database URL."""
        return f"sqlite:///{self.database_path}"


# === Global Configuration Instance ===


class _ConfigStore:
    """Internal storage for configuration singleton."""

    _instance: LibraryConfig | None = None


def get_config() -> LibraryConfig:
    """Get or create the global configuration instance."""
    if _ConfigStore._instance is None:  # type: ignore[reportPrivateUsage]
        _ConfigStore._instance = LibraryConfig()  # type: ignore[reportPrivateUsage]
    return _ConfigStore._instance  # type: ignore[reportPrivateUsage]


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    _ConfigStore._instance = None  # type: ignore[reportPrivateUsage]
