"""
Configuration for catalog search.

All settings can be overridden through environment variables or a .env
file. Components take explicit constructor arguments as well, so the
module-level ``settings`` instance is only a source of defaults.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Catalog search settings.

    Settings are validated on instantiation; an invalid value fails fast
    with a pydantic ValidationError.

    Attributes:
        SERVICE_NAME: Name attached to structured log events
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_JSON: Render logs as JSON (otherwise human-readable console output)
        SEARCH_CACHE_TTL_SECONDS: Maximum age of a served cache entry
        SEARCH_CACHE_MAX_ENTRIES: LRU capacity of the result cache
        DEFAULT_*_LIMIT: Result window per result type
        MAX_RESULT_LIMIT: Upper bound accepted for a requested limit
        FUZZY_SIMILARITY_FLOOR: Minimum similarity for the fuzzy fallback
        CORRECTION_RESULT_THRESHOLD: Offer corrections below this many results
        MAX_CORRECTIONS: Maximum "did you mean" proposals
        CORRECTION_MIN_SCORE: Minimum fuzzy score of a correction candidate
        AUTOCOMPLETE_MIN_LENGTH: Shortest query that gets autocomplete
        AUTOCOMPLETE_LIMIT: Maximum autocomplete entries
        TRENDING_LIMIT: Maximum trending entries
    """

    SERVICE_NAME: str = "catalog-search"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Result cache
    SEARCH_CACHE_TTL_SECONDS: float = Field(default=300, gt=0)
    SEARCH_CACHE_MAX_ENTRIES: int = Field(default=1000, ge=1)

    # Result windows
    DEFAULT_STORE_LIMIT: int = Field(default=20, ge=1)
    DEFAULT_VOUCHER_LIMIT: int = Field(default=50, ge=1)
    DEFAULT_PRODUCT_LIMIT: int = Field(default=20, ge=1)
    DEFAULT_ALL_LIMIT: int = Field(default=20, ge=1)
    MAX_RESULT_LIMIT: int = Field(default=500, ge=1)

    # Ranking and suggestions
    FUZZY_SIMILARITY_FLOOR: float = Field(default=0.7, ge=0.0, le=1.0)
    CORRECTION_RESULT_THRESHOLD: int = Field(default=5, ge=0)
    MAX_CORRECTIONS: int = Field(default=3, ge=0)
    CORRECTION_MIN_SCORE: int = Field(default=60, ge=0, le=100)
    AUTOCOMPLETE_MIN_LENGTH: int = Field(default=2, ge=1)
    AUTOCOMPLETE_LIMIT: int = Field(default=8, ge=1)
    TRENDING_LIMIT: int = Field(default=10, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """
        Validate and normalize the log level.

        Raises:
            ValueError: If the level is not a standard logging level
        """
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {value}")
        return level


settings = Settings()
