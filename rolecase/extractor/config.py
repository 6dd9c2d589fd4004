"""Configuration settings for the job page extractor."""

from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExtractorConfig(BaseSettings):
    """Extractor configuration settings.

    All settings have sensible defaults and can be overridden via
    environment variables with EXTRACTOR_ prefix or a .env file.

    Attributes:
        min_description_length: Shortest description accepted as a job posting.
        max_description_length: Character budget the description is cut to.
        generic_dom_min_length: Size a generic page's DOM description must
            exceed to replace the structured-data description.
        noise_cutoff_ratio: Fraction of the description after which a
            boilerplate phrase ("Related jobs", ...) truncates the text.
        request_timeout: Timeout in seconds when fetching a page over HTTP.
        user_agent: User-Agent header sent when fetching a page.
    """

    model_config = SettingsConfigDict(
        env_prefix="EXTRACTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    min_description_length: Annotated[int, Field(gt=0)] = Field(
        default=50,
        description="Shortest description accepted as a job posting",
    )
    max_description_length: Annotated[int, Field(gt=0)] = Field(
        default=25000,
        description="Descriptions longer than this are truncated",
    )
    generic_dom_min_length: Annotated[int, Field(ge=0)] = Field(
        default=500,
        description="Generic pages prefer DOM text longer than this",
    )
    noise_cutoff_ratio: Annotated[float, Field(ge=0, le=1)] = Field(
        default=0.7,
        description="Boilerplate phrases past this fraction of the text are cut",
    )

    # Page fetching
    request_timeout: Annotated[float, Field(gt=0)] = Field(
        default=30.0,
        description="Timeout in seconds when fetching a page",
    )
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
        ),
        description="User-Agent header used when fetching pages",
    )


# Singleton instance for easy import
_extractor_config: ExtractorConfig | None = None


def get_extractor_config() -> ExtractorConfig:
    """Get the extractor configuration singleton."""
    global _extractor_config
    if _extractor_config is None:
        _extractor_config = ExtractorConfig()
    return _extractor_config


def reset_extractor_config() -> None:
    """Reset the extractor configuration singleton (useful for testing)."""
    global _extractor_config
    _extractor_config = None
