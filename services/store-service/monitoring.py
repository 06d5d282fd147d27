"""Monitoring and observability setup.

Tracing and metrics are exported over OTLP when TELEMETRY_ENABLED is true.
With telemetry disabled no SDK providers are installed and the OpenTelemetry
API hands out no-op tracers and meters, so the instruments below stay safe to
call everywhere (tests included).
"""
import logging
from opentelemetry import trace, metrics
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
import pyroscope

from config import (
    OTEL_EXPORTER_OTLP_ENDPOINT,
    PYROSCOPE_SERVER,
    PROFILING_ENABLED,
    SERVICE_NAME,
    TELEMETRY_ENABLED,
)

logger = logging.getLogger(__name__)


def init_tracing() -> trace.Tracer:
    """
    Initialize OpenTelemetry tracing.

    Returns:
        Tracer instance
    """
    if TELEMETRY_ENABLED:
        resource = Resource.create({"service.name": SERVICE_NAME})

        tracer_provider = TracerProvider(resource=resource)
        otlp_span_exporter = OTLPSpanExporter(
            endpoint=OTEL_EXPORTER_OTLP_ENDPOINT,
            insecure=True
        )
        tracer_provider.add_span_processor(BatchSpanProcessor(otlp_span_exporter))
        trace.set_tracer_provider(tracer_provider)

        logger.info(f"Tracing initialized with endpoint: {OTEL_EXPORTER_OTLP_ENDPOINT}")

    return trace.get_tracer(__name__)


def init_metrics() -> metrics.Meter:
    """
    Initialize OpenTelemetry metrics.

    Returns:
        Meter instance
    """
    if TELEMETRY_ENABLED:
        resource = Resource.create({"service.name": SERVICE_NAME})

        otlp_metric_exporter = OTLPMetricExporter(
            endpoint=OTEL_EXPORTER_OTLP_ENDPOINT,
            insecure=True
        )
        otlp_metric_reader = PeriodicExportingMetricReader(
            otlp_metric_exporter,
            export_interval_millis=5000
        )

        meter_provider = MeterProvider(
            resource=resource,
            metric_readers=[otlp_metric_reader]
        )
        metrics.set_meter_provider(meter_provider)

        logger.info("Metrics initialized with OTLP exporter")

    return metrics.get_meter(__name__)


def init_profiling() -> None:
    """Initialize Pyroscope profiling."""
    if not PROFILING_ENABLED:
        return
    try:
        pyroscope.configure(
            application_name=SERVICE_NAME,
            server_address=PYROSCOPE_SERVER,
            tags={"env": "demo"}
        )
        logger.info(f"Profiling initialized with server: {PYROSCOPE_SERVER}")
    except Exception as e:
        logger.warning(f"Failed to initialize profiling: {e}")


# Initialize tracer and meter
tracer = init_tracing()
meter = init_metrics()

# Order metrics
orders_created_counter = meter.create_counter(
    "store.orders.created",
    description="Total number of orders created by payment method",
    unit="1"
)

order_amount_histogram = meter.create_histogram(
    "store.orders.amount",
    description="Order total price as supplied by the caller",
    unit="1"
)

order_validation_failures_counter = meter.create_counter(
    "store.orders.validation_failures",
    description="Order writes rejected before persistence, by reason",
    unit="1"
)

# Product catalog metrics
products_created_counter = meter.create_counter(
    "store.products.created",
    description="Total number of products created by category",
    unit="1"
)

# Reporting metrics
report_duration_histogram = meter.create_histogram(
    "store.reports.duration",
    description="Time spent running report aggregation pipelines",
    unit="s"
)
