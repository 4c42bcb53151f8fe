from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from kioku.domain.constants import DEFAULT_WINDOW_DAYS


def _config_file() -> Path:
    return Path.home() / ".config/kioku/config.toml"


class KiokuConfig(BaseSettings):
    """
    Configuration model for the kioku host layer.
    Supports loading from:
    1. Manual overrides (CLI)
    2. Environment variables (KIOKU_*)
    3. Config file (~/.config/kioku/config.toml)
    """

    model_config = SettingsConfigDict(
        env_prefix="KIOKU_",
        extra="ignore",
    )

    # Storage
    profile_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/kioku")

    # Session planning
    max_cards: int = Field(default=20, gt=0)
    window_days: int = Field(default=DEFAULT_WINDOW_DAYS, gt=0)
    random_seed: int | None = None

    # 0 = warnings only, 1 = info, 2+ = debug
    verbose: int = Field(default=1, ge=0)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml_file = _config_file()
        if toml_file.exists():
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("profile_dir", mode="before")
    @classmethod
    def resolve_profile_dir(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> KiokuConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in KiokuConfig
    2. ~/.config/kioku/config.toml (if exists)
    3. Environment variables (KIOKU_*)
    4. cli_overrides (passed from Typer)
    """
    # Typer passes None for every option the user did not set.
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return KiokuConfig(**overrides)
