from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    log_level: str = Field(default="INFO", validation_alias="RACEDAY_LOG_LEVEL")
    log_file: str = Field(default="", validation_alias="RACEDAY_LOG_FILE")
    catalog_dir: str = Field(
        default="",  # Empty means the catalogue files packaged with raceday.catalog
        validation_alias="RACEDAY_CATALOG_DIR",
        description="Directory holding *-products.json and activities.json",
    )
    rules_file: str = Field(
        default="",
        validation_alias="RACEDAY_RULES_FILE",
        description="Optional YAML file overriding scheduling rules",
    )
    advanced_targets: bool = Field(
        default=False,
        validation_alias="RACEDAY_ADVANCED_TARGETS",
        description="Use per-kg carbohydrate targets for trained athletes",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid RACEDAY_LOG_LEVEL '{value}'. Valid levels are: {', '.join(sorted(valid_levels))}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("rules_file")
    @classmethod
    def validate_rules_file(cls, value: str) -> str:
        """Warn early when the rules file does not exist; loading will fail later."""
        if value and not Path(value).exists():
            logger.warning(f"RACEDAY_RULES_FILE points to a missing file: {value}. Default scheduling rules will fail to load.")
        return value

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
