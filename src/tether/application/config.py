from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from tether.domain.constants import (
    BIRTHDAY_WINDOW_DAYS,
    DEFAULT_HEALTH_WINDOWS,
    FREE_HISTORY_DAYS,
    STREAK_TOLERANCE,
    SUGGESTION_MIN_INTERACTIONS,
    SUGGESTION_SAMPLE_SIZE,
)


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/tether/config.toml",
        Path.home() / ".tether.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for tether.
    Supports loading from:
    1. Environment variables (TETHER_*)
    2. Config file (~/.config/tether/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="TETHER_",
        extra="ignore",
    )

    # Paths
    data_file: Path = Field(
        default_factory=lambda: Path.home() / ".local/share/tether/tether.json"
    )
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".config/tether/logs")

    # Entitlement
    premium: bool = False
    free_history_days: int = FREE_HISTORY_DAYS

    # Engine tuning
    birthday_window_days: int = BIRTHDAY_WINDOW_DAYS
    streak_tolerance: float = STREAK_TOLERANCE
    suggestion_sample_size: int = SUGGESTION_SAMPLE_SIZE
    suggestion_min_interactions: int = SUGGESTION_MIN_INTERACTIONS
    health_windows: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_HEALTH_WINDOWS)
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        toml_file = next((f for f in config_files() if f.exists()), None)

        # Explicit values win over the environment, which wins over the file.
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("data_file", "log_dir", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        return Path(v).expanduser()

    @field_validator("health_windows")
    @classmethod
    def positive_windows(cls, v: dict[str, int]) -> dict[str, int]:
        for tier_id, days in v.items():
            if days <= 0:
                raise ValueError(f"health window for '{tier_id}' must be positive")
        return v


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/tether/config.toml (if exists)
    3. Environment variables (TETHER_*)
    4. cli_overrides (passed from Typer); None values are ignored
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
