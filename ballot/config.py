"""Application configuration from environment variables."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# Settings
# =============================================================================


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="BALLOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Administrator authority
    admin_identity: str = Field(
        default="admin", description="Identity of the session administrator"
    )

    # Application settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # Persistence
    persist: bool = Field(default=True, description="Write session state to disk")
    state_file: Path = Field(
        default=Path("./ballot_state.json"), description="Session state file"
    )

    # Workflow behaviour
    legacy_reset_signal: bool = Field(
        default=False,
        description="Report every reset as VotesTallied -> RegisteringVoters",
    )
    event_history_limit: int = Field(
        default=1000, description="Maximum number of events kept for replay"
    )

    # Streaming
    sse_heartbeat_seconds: float = Field(
        default=15.0, description="Interval between SSE keep-alive pings"
    )

    @field_validator("state_file", mode="before")
    @classmethod
    def ensure_path(cls, v: str | Path) -> Path:
        """Convert string to Path."""
        return Path(v) if isinstance(v, str) else v

    @field_validator("admin_identity")
    @classmethod
    def admin_not_blank(cls, v: str) -> str:
        """Reject an empty administrator identity."""
        if not v.strip():
            raise ValueError("admin_identity must not be empty")
        return v

    def ensure_state_dir(self) -> None:
        """Create the state file's parent directory if it doesn't exist."""
        self.state_file.parent.mkdir(parents=True, exist_ok=True)


# =============================================================================
# Singleton
# =============================================================================


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
