from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    def __init__(self, **data: Any) -> None:
        super().__init__(**data)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    prismic_api_endpoint: str = Field(
        description="Prismic API endpoint, e.g. https://<repo>.cdn.prismic.io/api/v2"
    )
    prismic_access_token: str | None = Field(
        default=None, description="Access token for private Prismic repositories"
    )
    prismic_document_type: str = Field(
        default="template-post", description="Custom type of the post documents"
    )

    page_size: int = Field(default=4, gt=0, description="Posts fetched per page")
    display_timezone: str = Field(
        default="America/Sao_Paulo",
        description="Time zone used when formatting publication dates",
    )

    request_timeout: float = Field(default=30.0, gt=0.0, description="HTTP timeout in seconds")
    query_retry_attempts: int = Field(
        default=3, ge=1, description="Attempts per repository query on transport errors"
    )
    master_ref_ttl: float = Field(
        default=30.0,
        ge=0.0,
        description="Seconds a resolved master ref is reused before asking Prismic again",
    )

    @model_validator(mode="after")
    def _validate_timezone(self) -> "Settings":
        try:
            ZoneInfo(self.display_timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown display_timezone: {self.display_timezone}") from e
        return self


settings = Settings()  # values pulled from environment at runtime
