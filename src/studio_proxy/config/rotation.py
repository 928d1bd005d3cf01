"""Credential rotation tuning."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RotationSettings(BaseSettings):
    """Optional limits for the credential rotator.

    Everything is off by default: no per-attempt timeout, no overall
    deadline and no serialization of concurrent calls.
    """

    model_config = SettingsConfigDict(
        env_prefix="STUDIO_ROTATION_",
        case_sensitive=False,
        extra="ignore",
    )

    attempt_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Per-attempt timeout applied to each credential attempt",
    )
    request_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Overall deadline for one rotated request",
    )
    serialize_attempts: bool = Field(
        default=False,
        description="Guard rotation with a lock so concurrent calls queue",
    )
