"""
Configuration management using environment variables.

Every setting can be given as CURRICULUM_DIFF_<NAME> in the environment or in
a .env file. The CLI builds one Settings object and hands it to the fetcher
and the notifier; nothing reads configuration from module globals.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CURRICULUM_DIFF_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Source page
    source_url: str = Field(
        default="https://seecs.nust.edu.pk/program/bachelor-of-science-in-data-science-for-fall-2025-onwards"
    )
    data_dir: Path = Field(default=Path("data"))
    request_timeout: int = Field(default=30)
    user_agent: str = Field(
        default="Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120 Safari/537.36"
    )

    # Rendered-page fallback (headless Chromium through Playwright)
    render_fallback: bool = Field(default=True)
    render_headless: bool = Field(default=True)
    render_timeout: int = Field(default=120)

    # Comparison
    prerequisite_aware: bool = Field(default=False)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    # Report delivery
    notify_endpoint: str = Field(default="https://api.web3forms.com/submit")
    notify_access_key: Optional[str] = Field(default=None)
    notify_from: Optional[str] = Field(default=None)
    notify_to: Optional[str] = Field(default=None)
    notify_subject: str = Field(default="Curriculum differences report")
    smtp_host: Optional[str] = Field(default=None)
    smtp_port: int = Field(default=587)
    smtp_user: Optional[str] = Field(default=None)
    smtp_password: Optional[str] = Field(default=None)

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v < 1 or v > 300:
            raise ValueError("request_timeout must be between 1 and 300 seconds")
        return v

    @field_validator("render_timeout")
    @classmethod
    def validate_render_timeout(cls, v: int) -> int:
        if v < 1 or v > 600:
            raise ValueError("render_timeout must be between 1 and 600 seconds")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of: {valid_formats}")
        return v.lower()

    def get_headers(self) -> Dict[str, str]:
        """Default headers for page requests."""
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }

    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password)
