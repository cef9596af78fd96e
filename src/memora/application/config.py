from pathlib import Path
from typing import Any, Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from memora.domain.constants import (
    BORDERLINE_THRESHOLD,
    CORRECT_SCORE_THRESHOLD,
    EMBEDDING_MODEL,
    EMBEDDING_THRESHOLD,
    EMBEDDING_WORKERS,
    JUDGMENT_MODEL,
    OPENAI_BASE_URL,
    REQUEST_TIMEOUT,
    SUBSCRIBER_TIMEOUT,
)

CONFIG_FILES = [
    Path.home() / ".config/memora/config.toml",
    Path.home() / ".memora.toml",
]


class AppConfig(BaseSettings):
    """
    Configuration model for memora.
    Supports loading from:
    1. Environment variables (MEMORA_*)
    2. Config file (~/.config/memora/config.toml)
    3. Manual overrides (CLI / server)
    """

    model_config = SettingsConfigDict(
        env_prefix="MEMORA_",
        extra="ignore",
    )

    # Backends
    openai_api_key: SecretStr | None = None
    openai_base_url: str = OPENAI_BASE_URL
    embedding_model: str = EMBEDDING_MODEL
    judgment_model: str = JUDGMENT_MODEL

    # Validation cascade
    embedding_threshold: float = Field(default=EMBEDDING_THRESHOLD, ge=0.0, le=1.0)
    borderline_threshold: float = Field(default=BORDERLINE_THRESHOLD, ge=0.0, le=1.0)
    correct_threshold: float = Field(default=CORRECT_SCORE_THRESHOLD, ge=0.0, le=1.0)

    # Deadlines and concurrency
    request_timeout: float = Field(default=REQUEST_TIMEOUT, gt=0)
    subscriber_timeout: float = Field(default=SUBSCRIBER_TIMEOUT, gt=0)
    embedding_workers: int = Field(default=EMBEDDING_WORKERS, ge=1)

    # Storage
    database_path: Path | None = None

    # Policy
    strict_grades: bool = True
    enforce_card_ownership: bool = True

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @property
    def has_ai_backend(self) -> bool:
        return self.openai_api_key is not None and bool(self.openai_api_key.get_secret_value())

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

        # First existing file wins
        toml_file = next((f for f in CONFIG_FILES if f.exists()), None)

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

    @field_validator("database_path", mode="before")
    @classmethod
    def resolve_database_path(cls, v: Any) -> Path | None:
        if not v:
            return None
        return Path(v).expanduser().resolve()

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


def resolve_config(overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/memora/config.toml (if exists)
    3. Environment variables (MEMORA_*)
    4. overrides (None values are ignored)
    """
    clean = {k: v for k, v in (overrides or {}).items() if v is not None}
    return AppConfig(**clean)
