"""Configuration management for Flowboard."""

from typing import List, Literal
from pydantic_settings import BaseSettings
from pydantic import Field


class DatabaseConfig(BaseSettings):
    """Database configuration."""

    url: str = Field(
        default="sqlite:///data/flowboard.db",
        description="SQLAlchemy database URL",
    )
    echo: bool = Field(
        default=False,
        description="Log every SQL statement",
    )
    busy_timeout_seconds: float = Field(
        default=5.0,
        ge=0.0,
        description="How long a writer waits for the SQLite write lock",
    )

    class Config:
        env_prefix = "FLOWBOARD_DB_"


class ServerConfig(BaseSettings):
    """HTTP server configuration."""

    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server",
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server",
    )
    enable_cors: bool = Field(
        default=True,
        description="Enable CORS for the API server",
    )
    user_header: str = Field(
        default="X-User-ID",
        description="Header carrying the authenticated user id",
    )

    class Config:
        env_prefix = "FLOWBOARD_SERVER_"


class NotificationConfig(BaseSettings):
    """Activity and notification configuration."""

    enabled: bool = Field(
        default=True,
        description="Send notifications for card events",
    )
    max_team_recipients: int = Field(
        default=5,
        ge=0,
        description="Maximum team members notified about a single card move",
    )

    class Config:
        env_prefix = "FLOWBOARD_NOTIFY_"


class BoardDefaults(BaseSettings):
    """Defaults and limits for boards."""

    default_columns: List[str] = Field(
        default=["To Do", "In Progress", "Review", "Done"],
        description="Columns created for a new project",
    )
    max_title_length: int = Field(
        default=255,
        ge=1,
        description="Maximum card title length",
    )
    max_column_name_length: int = Field(
        default=50,
        ge=1,
        description="Maximum column name length",
    )

    class Config:
        env_prefix = "FLOWBOARD_BOARD_"


class Settings(BaseSettings):
    """Main settings combining all configurations."""

    # Sub-configurations
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    board: BoardDefaults = Field(default_factory=BoardDefaults)

    # General settings
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @classmethod
    def load(cls) -> "Settings":
        """Load settings from environment and files."""
        # Load dotenv explicitly so nested groups see the variables too
        from dotenv import load_dotenv
        load_dotenv()
        return cls()


# Global settings instance
settings = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global settings
    if settings is None:
        settings = Settings.load()
    return settings


def reload_settings():
    """Reload settings from environment."""
    global settings
    settings = Settings.load()
    return settings
