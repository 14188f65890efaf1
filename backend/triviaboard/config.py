"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Operator(BaseModel):
    """Identity of the operator running this client."""

    id: str
    name: str = ""


class LeaderboardConfig(BaseModel):
    """Ranking and score-entry parameters."""

    recent_completed_hours: int = 48  # Completed events stay public this long
    max_points: int = 1000
    max_decimal_places: int = 2


class RealtimeConfig(BaseModel):
    """Broadcast channel and edit coordinator parameters."""

    highlight_seconds: float = 2.5
    queue_size: int = 100
    global_channel: str = "global"
    channel_prefix: str = "event:"


class ServerConfig(BaseModel):
    """Relay server parameters."""

    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"]
    )
    log_level: str = "INFO"

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_origins(cls, v):
        """Parse comma-separated origins into a list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


class Settings(BaseSettings):
    """Main configuration class."""

    # Paths
    data_dir: Path = Path("data")

    # Observability
    logfire_token: str = ""

    # Operator identity used to filter our own broadcasts
    operator_id: str = ""
    operator_name: str = ""

    # Persistence collaborator
    persistence_api_url: str = "http://localhost:3000"
    persistence_api_token: str = ""

    # Nested configuration sections
    leaderboard: LeaderboardConfig = Field(default_factory=LeaderboardConfig)
    realtime: RealtimeConfig = Field(default_factory=RealtimeConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("data_dir", mode="after")
    @classmethod
    def resolve_data_dir(cls, v: Path) -> Path:
        """Resolve data directory to absolute path."""
        return v.resolve()

    @property
    def operator(self) -> Operator | None:
        """Return the configured operator, or None when unset."""
        if not self.operator_id:
            return None
        return Operator(id=self.operator_id, name=self.operator_name)

    def load_yaml_config(self) -> None:
        """Load and merge YAML configuration."""
        config_path = self.data_dir / "config.yaml"

        if not config_path.exists():
            logger.warning(
                f"Config file not found: {config_path}. "
                "Using defaults. Run 'python -m triviaboard init' to create it."
            )
            return

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)

            if not yaml_config:
                logger.warning(f"Empty config file: {config_path}")
                return

            for section_name in ["leaderboard", "realtime", "server"]:
                if section_name in yaml_config:
                    section = getattr(self, section_name)
                    yaml_section = yaml_config[section_name] or {}

                    section_dict = section.model_dump()
                    section_dict.update(yaml_section)

                    new_section = section.__class__(**section_dict)
                    setattr(self, section_name, new_section)

            logger.info(f"Loaded configuration from {config_path}")

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise


@lru_cache()
def get_settings() -> Settings:
    """Get singleton Settings instance."""
    settings = Settings()
    settings.load_yaml_config()
    return settings
