"""Status endpoints for credential rotation monitoring.

Provides visibility into the credential pool and the rotation cursor.
Credentials are only ever reported masked.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict, Field

from studio_proxy import __version__
from studio_proxy.api.dependencies import RotatorDep


router = APIRouter(tags=["status"])


class CredentialStatusResponse(BaseModel):
    """Status of a single pool entry."""

    model_config = ConfigDict(populate_by_name=True)

    index: int = Field(description="Position in rotation order")
    credential: str = Field(description="Masked credential suffix")
    is_current: bool = Field(
        serialization_alias="isCurrent",
        validation_alias="isCurrent",
        description="Whether the next call starts with this credential",
    )


class RotationStatusResponse(BaseModel):
    """Aggregate status of the credential rotator."""

    model_config = ConfigDict(populate_by_name=True)

    total_credentials: int = Field(
        serialization_alias="totalCredentials",
        validation_alias="totalCredentials",
        description="Usable credentials in the pool",
    )
    cursor: int | None = Field(description="Index of the current credential")
    current_credential: str | None = Field(
        serialization_alias="currentCredential",
        validation_alias="currentCredential",
        description="Masked current credential",
    )
    serialized: bool = Field(description="Whether concurrent calls are queued")
    attempt_timeout: float | None = Field(
        serialization_alias="attemptTimeout",
        validation_alias="attemptTimeout",
        description="Per-attempt timeout in seconds",
    )
    credentials: list[CredentialStatusResponse] = Field(
        description="Per-credential details"
    )


class HealthResponse(BaseModel):
    """Health check response with credential awareness."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = Field(description="Service health status")
    credentials: int = Field(description="Number of usable credentials")
    version: str = Field(description="Service version")
    timestamp: str = Field(description="Current server timestamp")


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    Reports "degraded" when no credential is configured.
    """
    rotator = getattr(request.app.state, "rotator", None)
    count = len(rotator.pool) if rotator is not None else 0

    return HealthResponse(
        status="healthy" if count > 0 else "degraded",
        credentials=count,
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get(
    "/api/rotation/status",
    response_model=RotationStatusResponse,
    response_model_by_alias=True,
)
async def get_rotation_status(rotator: RotatorDep) -> RotationStatusResponse:
    """Get the rotation cursor and the masked credential pool."""
    return RotationStatusResponse.model_validate(rotator.get_status())
