"""Configuration management for markupguard.

This module defines the Pydantic settings and option models used throughout
the package. Settings are read from environment variables (or a `.env` file)
once at import time; per-call options are passed explicitly to `sanitize()`.
"""

from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide settings loaded from environment variables.

    Attributes:
        MARKUPGUARD_PARSER (str): Name of the BeautifulSoup tree builder used
            when no `create_document` factory is injected ("html.parser",
            "html5lib" or "lxml"). An empty value disables the ambient parser.
        MARKUPGUARD_POLICY_PATH (Optional[str]): Path to a YAML policy file.
            When unset the compiled-in default policy is used.
    """
    MARKUPGUARD_PARSER: str = "html.parser"
    MARKUPGUARD_POLICY_PATH: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )


class SanitizeOptions(BaseModel):
    """Per-call options for `sanitize()`.

    Attributes:
        create_document (Optional[Callable[[str], Any]]): Factory turning a
            markup string into a BeautifulSoup document. Takes priority over
            the ambient parser named in `Settings.MARKUPGUARD_PARSER`.
    """
    create_document: Optional[Callable[[str], Any]] = None

    model_config = ConfigDict(frozen=True)


settings = Settings()
