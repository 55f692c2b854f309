"""
Runtime settings for the SQL load generator.

Uses Pydantic Settings to load environment variables for logging, output
location, randomness and retry caps. The workload itself (tables, mix, clients)
lives in the `.properties` profile handled by `sqlloadgen.properties`.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Logging
    log_level: str = Field("INFO", alias="SQLLOADGEN_LOG_LEVEL")
    json_logs: bool = Field(False, alias="SQLLOADGEN_JSON_LOGS")

    # Output
    output_root: str = Field(".", alias="SQLLOADGEN_OUTPUT_ROOT")
    default_profile: str = Field("sqlloadgenerator", alias="SQLLOADGEN_DEFAULT_PROFILE")
    show_summary: bool = Field(True, alias="SQLLOADGEN_SHOW_SUMMARY")

    # Generation
    seed: Optional[int] = Field(None, alias="SQLLOADGEN_SEED")
    max_value_attempts: int = Field(1000, alias="SQLLOADGEN_MAX_VALUE_ATTEMPTS", ge=1)
    max_slot_attempts: int = Field(10, alias="SQLLOADGEN_MAX_SLOT_ATTEMPTS", ge=1)
    engine_version: int = Field(11, alias="SQLLOADGEN_ENGINE_VERSION")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
