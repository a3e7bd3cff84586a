"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from zendesk_jira_sync.core.exceptions import InvalidConfigurationError

BASE_DIR = Path(__file__).resolve().parents[2]

REQUIRED_SETTINGS = (
    "ZENDESK_DOMAIN",
    "ZENDESK_EMAIL",
    "ZENDESK_APITOKEN",
    "JIRA_DOMAIN",
    "JIRA_TOKEN",
    "JIRA_OR_GITHUB_CUSTOM_FIELD_ID",
    "JIRA_TYPE_FIELD_ID",
    "JIRA_RESOLUTION_FIELD_ID",
    "JIRA_FIX_VERSIONS_FIELD_ID",
)


class Settings(BaseSettings):
    APP_NAME: str = "Jira to Zendesk Sync Server"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # zendesk credentials
    ZENDESK_DOMAIN: str = ""
    ZENDESK_EMAIL: str = ""
    ZENDESK_APITOKEN: str = ""
    # jira credentials; JIRA_EMAIL switches from bearer (PAT) to basic auth
    JIRA_DOMAIN: str = ""
    JIRA_TOKEN: str = ""
    JIRA_EMAIL: str = ""

    # zendesk custom field ids
    JIRA_OR_GITHUB_CUSTOM_FIELD_ID: int | None = None
    JIRA_TYPE_FIELD_ID: int | None = None
    JIRA_RESOLUTION_FIELD_ID: int | None = None
    JIRA_FIX_VERSIONS_FIELD_ID: int | None = None

    SYNC_ENABLED: bool = True
    SYNC_RECENT_INTERVAL_SECONDS: int = 30
    SYNC_FULL_INTERVAL_SECONDS: int = 30 * 60
    SYNC_TICKET_SELECTION: str = "considered"
    ZENDESK_RECENT_WINDOW_SECONDS: int = 60
    ZENDESK_UPDATE_BATCH_SIZE: int = 100
    JIRA_RECENT_WINDOW_MINUTES: int = 2
    JIRA_RECENT_MAX_RESULTS: int = 10
    JIRA_SEARCH_BATCH_SIZE: int = 50

    model_config = SettingsConfigDict(env_file=str(BASE_DIR / ".env"), env_file_encoding="utf-8", extra="ignore")

    @field_validator(
        "JIRA_OR_GITHUB_CUSTOM_FIELD_ID",
        "JIRA_TYPE_FIELD_ID",
        "JIRA_RESOLUTION_FIELD_ID",
        "JIRA_FIX_VERSIONS_FIELD_ID",
        mode="before",
    )
    @classmethod
    def blank_field_id_is_unset(cls, value: object) -> object:
        # an empty assignment in .env reports as missing instead of failing import
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def missing_required(self) -> list[str]:
        missing: list[str] = []
        for name in REQUIRED_SETTINGS:
            value = getattr(self, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        return missing

    def validate_required(self) -> None:
        missing = self.missing_required()
        if missing:
            raise InvalidConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                setting=",".join(missing),
            )

    @property
    def zendesk_base_url(self) -> str:
        return self.ZENDESK_DOMAIN.strip().rstrip("/")

    @property
    def jira_base_url(self) -> str:
        return self.JIRA_DOMAIN.strip().rstrip("/")


settings = Settings()
