"""
Pydantic configuration models for StockWatch.

These models provide type-safe configuration with validation for:
- Application settings
- Stocking report sources
- Fetch and push transport settings
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, HttpUrl, field_validator


# =============================================================================
# Enums
# =============================================================================


class SourceStrategy(str, Enum):
    """Extraction strategy used for a source's report page."""

    TABULAR = "tabular"
    FREE_TEXT = "free_text"


class RunStatus(str, Enum):
    """Poll run lifecycle status."""

    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# =============================================================================
# Fetch Configuration
# =============================================================================


DEFAULT_USER_AGENT = "FishStockAlerts/0.1"


class FetchConfig(BaseModel):
    """HTTP settings for fetching report pages."""

    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent header sent to report sources",
    )
    accept: str = Field(
        default="text/html",
        description="Accept header sent to report sources",
    )
    timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Request timeout in seconds",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum attempts on transport errors",
    )


# =============================================================================
# Source Configuration
# =============================================================================


class SourceConfig(BaseModel):
    """Configuration for one stocking report source.

    A source is a single agency page; its strategy decides how the
    page is turned into raw rows.
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Unique source identifier",
    )
    display_name: str | None = Field(
        default=None,
        description="Human-readable source name",
    )
    url: HttpUrl = Field(
        ...,
        description="Report page URL",
    )
    strategy: SourceStrategy = Field(
        default=SourceStrategy.TABULAR,
        description="Extraction strategy for this page",
    )
    year: int | None = Field(
        default=None,
        ge=1900,
        le=2100,
        description="Report year, sent as the 'y' query parameter",
    )
    enabled: bool = Field(
        default=True,
        description="Whether this source is polled",
    )

    # Free-text strategy settings
    species: str = Field(
        default="TROUT",
        description="Species recorded for sources that do not list one",
    )
    start_marker: str = Field(
        default="trout stocking report",
        description="Heading that opens the report section",
    )
    end_marker: str | None = Field(
        default="view stocking report archive",
        description="Text that closes the report section",
    )

    @field_validator("species")
    @classmethod
    def species_upper(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def effective_display_name(self) -> str:
        """Get display name, falling back to name."""
        return self.display_name or self.name


# =============================================================================
# Push Configuration
# =============================================================================


EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"


class PushConfig(BaseModel):
    """Push gateway settings."""

    url: str = Field(
        default=EXPO_PUSH_URL,
        description="Push gateway endpoint accepting a JSON batch",
    )
    timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Push request timeout in seconds",
    )
    dry_run: bool = Field(
        default=False,
        description="Log messages instead of sending them",
    )


# =============================================================================
# Database Configuration
# =============================================================================


class DatabaseConfig(BaseModel):
    """Database connection settings."""

    url: str = Field(
        default="sqlite:///data/stockwatch.db",
        description="SQLAlchemy database URL",
    )
    echo: bool = Field(
        default=False,
        description="Echo SQL statements (debugging)",
    )


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    file: Path | None = Field(
        default=Path("logs/stockwatch.log"),
        description="Log file path",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for file logs",
    )
    rich_console: bool = Field(
        default=True,
        description="Use Rich for console output",
    )

    @field_validator("level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Root application configuration.

    This is the main configuration object loaded from app.yaml.
    """

    config_dir: Path = Field(
        default=Path("configs"),
        description="Configuration directory",
    )
    data_dir: Path = Field(
        default=Path("data"),
        description="Data storage directory",
    )

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    push: PushConfig = Field(default_factory=PushConfig)

    @property
    def sources_dir(self) -> Path:
        return self.config_dir / "sources"

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        for dir_path in [self.config_dir, self.sources_dir, self.data_dir]:
            dir_path.mkdir(parents=True, exist_ok=True)

        if self.logging.file:
            self.logging.file.parent.mkdir(parents=True, exist_ok=True)
