"""Configuration contracts."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from tasklink.contracts.state import BASE_RETRY_DELAY, MAX_RETRY_DELAY

DEFAULT_API_URL = "https://api.todoist.com/api/v1"
DEFAULT_TASK_FILTER = "today | overdue"


class RetryPolicy(BaseModel):
    base_delay: float = Field(default=BASE_RETRY_DELAY, gt=0)
    max_delay: float = Field(default=MAX_RETRY_DELAY, gt=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_bounds(self) -> RetryPolicy:
        if self.max_delay < self.base_delay:
            raise ValueError("retry.max_delay must be >= retry.base_delay")
        return self


class TaskLinkConfig(BaseModel):
    provider: str = "todoist"
    auth: str = "env"
    token: str | None = None
    api_url: str = DEFAULT_API_URL
    tracked_tag: str = "#tracked"
    tag_prefix: str = "#todoist"
    data_path: Path = Path(".tasklink/data.json")
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    request_timeout: float = Field(default=30.0, gt=0)
    max_transport_retries: int = Field(default=2, ge=0, le=10)
    poll_interval: float = Field(default=2.0, gt=0)
    task_filter: str = Field(default=DEFAULT_TASK_FILTER, min_length=1)

    model_config = {"frozen": True}

    @field_validator("tracked_tag", "tag_prefix")
    @classmethod
    def validate_tag(cls, value: str) -> str:
        tag = value.strip()
        if not tag.startswith("#") or len(tag) < 2:
            raise ValueError("tags must start with '#' and have a name")
        if any(ch.isspace() for ch in tag):
            raise ValueError("tags must not contain whitespace")
        return tag

    @model_validator(mode="after")
    def validate_auth_token(self) -> TaskLinkConfig:
        token = (self.token or "").strip()
        if self.auth == "token":
            if not token:
                raise ValueError("token auth requires a non-empty token")
            return self
        if token:
            raise ValueError("token must be unset when auth is not 'token'")
        if self.auth != "env":
            raise ValueError("auth must be one of: env, token")
        return self

    @model_validator(mode="after")
    def validate_distinct_tags(self) -> TaskLinkConfig:
        if self.tracked_tag == self.tag_prefix or self.tracked_tag.startswith(f"{self.tag_prefix}/"):
            raise ValueError("tracked_tag must differ from tags derived from tag_prefix")
        return self
