"""Telemetry bootstrap: resource, trace and metric providers, log pipeline.

Providers are built once at startup, handed to the application by reference
through TelemetryProviders, and shut down exactly once at exit.

Exporter construction failure is fatal: init_telemetry raises TelemetryError
and the process does not start. Disabling observability.tracing and
observability.metrics is the supported way to run with local structured
logging only.
"""

import os
import threading
from dataclasses import dataclass, field

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)

from userservice.config.settings import Settings
from userservice.observability.logging import get_logger, setup_logging

logger = get_logger(__name__)

INSTRUMENTATION_NAME = "userservice"


class TelemetryError(Exception):
    """Raised when an exporter or provider cannot be constructed."""


@dataclass
class TelemetryProviders:
    """Process-wide tracer and meter providers.

    Either provider is None when the corresponding signal is disabled;
    tracer() and meter() then hand out no-op instruments.
    """

    tracer_provider: TracerProvider | None = None
    meter_provider: MeterProvider | None = None
    _shutdown: bool = field(default=False, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def tracer(self) -> trace.Tracer:
        if self.tracer_provider is None:
            return trace.NoOpTracer()
        return self.tracer_provider.get_tracer(INSTRUMENTATION_NAME)

    def meter(self) -> metrics.Meter:
        if self.meter_provider is None:
            return metrics.NoOpMeter(INSTRUMENTATION_NAME)
        return self.meter_provider.get_meter(INSTRUMENTATION_NAME)

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    def shutdown(self) -> None:
        """Flush and close both providers. Later calls are no-ops."""
        with self._lock:
            if self._shutdown:
                return
            self._shutdown = True

        if self.tracer_provider is not None:
            try:
                self.tracer_provider.shutdown()
            except Exception as e:
                logger.error("tracer_provider_shutdown_failed", error=str(e))

        if self.meter_provider is not None:
            try:
                self.meter_provider.shutdown()
            except Exception as e:
                logger.error("meter_provider_shutdown_failed", error=str(e))

        logger.info("telemetry_shutdown")


def build_resource(settings: Settings) -> Resource:
    """Describe this service to the collector."""
    return Resource.create(
        {
            SERVICE_NAME: settings.observability.tracing.service_name,
            SERVICE_VERSION: settings.version,
        }
    )


def _otlp_endpoint(settings: Settings) -> str | None:
    return settings.observability.tracing.otlp_endpoint or os.environ.get(
        "OTEL_EXPORTER_OTLP_ENDPOINT"
    )


def _build_span_exporter(settings: Settings) -> SpanExporter:
    endpoint = _otlp_endpoint(settings)
    if endpoint:
        return OTLPSpanExporter(endpoint=endpoint, insecure=True)
    return OTLPSpanExporter()


def _build_metric_reader(settings: Settings) -> MetricReader:
    endpoint = _otlp_endpoint(settings)
    exporter = (
        OTLPMetricExporter(endpoint=endpoint, insecure=True)
        if endpoint
        else OTLPMetricExporter()
    )
    return PeriodicExportingMetricReader(
        exporter,
        export_interval_millis=settings.observability.metrics.export_interval_ms,
    )


def init_telemetry(
    settings: Settings,
    span_exporter: SpanExporter | None = None,
    metric_reader: MetricReader | None = None,
) -> TelemetryProviders:
    """Initialize tracing, metrics and structured logging.

    Steps, in order: resource, span exporter + batching tracer provider,
    metric exporter + periodic meter provider, structlog pipeline.

    Args:
        settings: Application settings
        span_exporter: Exporter to use instead of OTLP (tests, local debugging)
        metric_reader: Reader to use instead of a periodic OTLP reader

    Returns:
        The constructed providers

    Raises:
        TelemetryError: If an exporter cannot be constructed
    """
    obs = settings.observability
    providers = TelemetryProviders()
    resource = build_resource(settings)

    if obs.tracing.enabled:
        try:
            exporter = span_exporter or _build_span_exporter(settings)
        except Exception as e:
            raise TelemetryError(f"Failed to create OTLP span exporter: {e}") from e

        tracer_provider = TracerProvider(resource=resource)
        tracer_provider.add_span_processor(BatchSpanProcessor(exporter))
        if obs.tracing.console_export:
            tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        providers.tracer_provider = tracer_provider

    if obs.metrics.enabled:
        try:
            reader = metric_reader or _build_metric_reader(settings)
        except Exception as e:
            providers.shutdown()
            raise TelemetryError(f"Failed to create OTLP metric exporter: {e}") from e
        providers.meter_provider = MeterProvider(
            resource=resource,
            metric_readers=[reader],
        )

    setup_logging(
        level=obs.logging.level,
        format=obs.logging.format,
        redact_pii=obs.logging.redact_pii,
        include_trace_id=obs.logging.include_trace_id,
    )

    logger.info(
        "telemetry_initialized",
        service_name=obs.tracing.service_name,
        tracing=providers.tracer_provider is not None,
        metrics=providers.meter_provider is not None,
    )

    return providers
