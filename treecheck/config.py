"""
Configuration management.

``Settings`` holds process-level settings read from the environment;
``OptionsModel`` is the base for the per-rule (and suppression) option
sets, which are validated eagerly when a rule is configured.
"""

from pathlib import Path
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Logging
    log_level: str = "INFO"

    # Analysis
    max_workers: int = 4
    fail_fast: bool = False
    honor_suppressions: bool = True
    rules_config: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_prefix="TREECHECK_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


def _split_commas(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


# A list option that also accepts "a, b, c".
CommaSeparatedList = Annotated[List[str], BeforeValidator(_split_commas)]


class OptionsModel(BaseModel):
    """
    Base for declared option sets.

    Unknown option names are rejected, options may be given in snake_case
    or camelCase, and defaults go through validation too so that default
    regex strings are compiled like user-supplied ones.
    """

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
        frozen=True,
    )


# Global settings instance
settings = Settings()
