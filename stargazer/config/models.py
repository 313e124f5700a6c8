"""Pydantic models used across the stargazer configuration flow."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_API_BASE_URL = "https://api.github.com/repos"
DEFAULT_RATE_LIMIT_URL = "https://api.github.com/rate_limit"
DEFAULT_API_VERSION = "2022-11-28"


class PipelineOptions(BaseModel):
    """Immutable options for a single pipeline invocation."""

    model_config = ConfigDict(frozen=True)

    credential: str | None = Field(default=None, repr=False)
    enforce_quota: bool = True
    verbose: bool = False
    resolution_workers: int = Field(default=4, ge=1)
    fetch_workers: int = Field(default=4, ge=1)
    queue_capacity: int = Field(default=20, ge=1)

    @field_validator("credential", mode="before")
    @classmethod
    def _blank_credential(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class Settings(BaseModel):
    """Settings shared by every run, loaded from ``data/settings.yaml``."""

    api_base_url: str = DEFAULT_API_BASE_URL
    rate_limit_url: str = DEFAULT_RATE_LIMIT_URL
    api_version: str = DEFAULT_API_VERSION
    request_timeout: float = Field(default=15.0, gt=0)
    # Added to the provider reset time to absorb clock skew.
    jitter_padding_ms: int = Field(default=10_000, ge=0)
    token: str | None = Field(default=None, repr=False)
    enforce_quota: bool = True
    resolution_workers: int = Field(default=4, ge=1)
    fetch_workers: int = Field(default=4, ge=1)
    queue_capacity: int = Field(default=20, ge=1)

    @field_validator("api_base_url", "rate_limit_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.rstrip("/")
        return value

    def pipeline_options(self, **overrides: Any) -> PipelineOptions:
        """Build pipeline options from settings, letting non-``None`` overrides win."""

        payload: dict[str, Any] = {
            "credential": self.token,
            "enforce_quota": self.enforce_quota,
            "resolution_workers": self.resolution_workers,
            "fetch_workers": self.fetch_workers,
            "queue_capacity": self.queue_capacity,
        }
        payload.update({key: value for key, value in overrides.items() if value is not None})
        return PipelineOptions.model_validate(payload)


__all__ = [
    "DEFAULT_API_BASE_URL",
    "DEFAULT_API_VERSION",
    "DEFAULT_RATE_LIMIT_URL",
    "PipelineOptions",
    "Settings",
]
