"""Observability configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["json", "console"]


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default="INFO", description="Log level")
    format: LogFormat = Field(default="console", description="Output format")
    redact_pii: bool = Field(default=True, description="Redact PII from log events")
    include_trace_id: bool = Field(
        default=True,
        description="Include trace ID in logs",
    )


class TracingConfig(BaseModel):
    """Distributed tracing configuration."""

    enabled: bool = Field(default=True, description="Enable tracing")
    service_name: str = Field(
        default="userservice",
        description="Service name for traces",
    )
    otlp_endpoint: str | None = Field(
        default=None,
        description="OTLP gRPC endpoint (falls back to OTEL_EXPORTER_OTLP_ENDPOINT)",
    )
    console_export: bool = Field(
        default=False,
        description="Also print finished spans to stdout",
    )


class MetricsConfig(BaseModel):
    """Metrics configuration."""

    enabled: bool = Field(default=True, description="Enable OTLP metric export")
    export_interval_ms: int = Field(
        default=60000,
        gt=0,
        description="Interval between periodic metric exports",
    )


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging settings",
    )
    tracing: TracingConfig = Field(
        default_factory=TracingConfig,
        description="Tracing settings",
    )
    metrics: MetricsConfig = Field(
        default_factory=MetricsConfig,
        description="Metrics settings",
    )
