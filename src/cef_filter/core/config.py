"""Filter configuration models and process-level settings."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TAG_ON_FAILURE = "_cefparsefailure"
MAX_WORKERS_ENV = "CEF_FILTER_MAX_WORKERS"


class CefFilterConfig(BaseModel):
    """Options for one CEF filter instance."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    source: str = Field(min_length=1, description="Field holding the raw CEF line.")
    target: str | None = Field(
        default=None,
        description="Field receiving the decoded record; None merges into the event root.",
    )
    tag_on_failure: list[str] = Field(
        default_factory=lambda: [DEFAULT_TAG_ON_FAILURE],
        description="Tags appended when the line cannot be applied.",
    )

    # Applied only when the record was applied to the event.
    add_tag: list[str] = Field(default_factory=list)
    remove_tag: list[str] = Field(default_factory=list)
    add_field: dict[str, str] = Field(default_factory=dict)
    remove_field: list[str] = Field(default_factory=list)

    @field_validator("source")
    @classmethod
    def _source_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("source must not be blank")
        return v

    @field_validator("target")
    @classmethod
    def _blank_target_is_root(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v


def load_filter_config(path: str | Path) -> CefFilterConfig:
    """Load and validate a JSON filter configuration file."""
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Config file not found: {p}")
    return CefFilterConfig.model_validate_json(p.read_text(encoding="utf-8"))


def resolve_max_workers(max_workers: int | None) -> int:
    if max_workers is not None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        return max_workers

    env = os.getenv(MAX_WORKERS_ENV)
    if env:
        try:
            value = int(env)
        except ValueError as exc:
            raise ValueError(f"{MAX_WORKERS_ENV} must be an integer") from exc
        if value < 1:
            raise ValueError(f"{MAX_WORKERS_ENV} must be >= 1")
        return value

    cpu_count = os.cpu_count() or 1
    return min(32, cpu_count)
