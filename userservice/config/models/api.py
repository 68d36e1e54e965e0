"""API server configuration models."""

from pydantic import BaseModel, Field


class APIConfig(BaseModel):
    """Configuration for the HTTP API server."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, ge=1, le=65535, description="Port number")
    graceful_shutdown_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds to wait for in-flight requests on shutdown (None waits indefinitely)",
    )
