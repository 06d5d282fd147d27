"""JSON log output for the store service, correlated with the active trace."""
import logging
import sys

from opentelemetry import trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource
from pythonjsonlogger import jsonlogger

from config import LOG_LEVEL, OTEL_EXPORTER_OTLP_ENDPOINT, SERVICE_NAME, TELEMETRY_ENABLED

LOG_FORMAT = "%(levelname)s %(name)s %(message)s"

# Driver and access logs are only wanted when something goes wrong
QUIET_LOGGERS = ("uvicorn.access", "pymongo")


class StoreJsonFormatter(jsonlogger.JsonFormatter):
    """Emits ``level``, ``logger``, ``msg`` and ``service`` plus trace ids when a span is recording."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            log_record["trace_id"] = trace.format_trace_id(span_context.trace_id)
            log_record["span_id"] = trace.format_span_id(span_context.span_id)

        log_record["service"] = SERVICE_NAME
        log_record["msg"] = log_record.pop("message", "")


def _stdout_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StoreJsonFormatter(
        LOG_FORMAT,
        rename_fields={"levelname": "level", "name": "logger"},
    ))
    return handler


def _collector_handler() -> logging.Handler:
    """Ship records to the OTLP collector alongside traces and metrics."""
    provider = LoggerProvider(resource=Resource.create({"service.name": SERVICE_NAME}))
    provider.add_log_record_processor(
        BatchLogRecordProcessor(OTLPLogExporter(endpoint=OTEL_EXPORTER_OTLP_ENDPOINT, insecure=True))
    )
    set_logger_provider(provider)
    return LoggingHandler(level=logging.INFO, logger_provider=provider)


def setup_logging() -> None:
    """Replace root handlers with JSON on stdout, plus the collector when telemetry is on."""
    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    root.addHandler(_stdout_handler())
    if TELEMETRY_ENABLED:
        root.addHandler(_collector_handler())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
