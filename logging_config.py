"""Structured logging configuration for the metrics relay"""
import logging
import os
import sys
from typing import Any, Dict, TYPE_CHECKING
import structlog
from structlog.stdlib import LoggerFactory
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer, TimeStamper, StackInfoRenderer

if TYPE_CHECKING:
    from config import Config
    from metrics.models import EnrichmentContext


def setup_structured_logging(config: "Config") -> None:
    """Setup structured logging with JSON format for production and console for development"""

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        TimeStamper(fmt="iso"),
        StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    # Use JSON renderer for production, console for development
    is_development = os.getenv("ENVIRONMENT", "production").lower() == "development"
    if is_development:
        processors.append(ConsoleRenderer())
    else:
        processors.append(JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, config.log_level.upper())
    handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    handlers.append(console_handler)

    if config.log_file:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(config.log_file))
        file_handler.setLevel(level)
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=handlers,
        force=True
    )

    # Set specific logger levels to reduce noise
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance"""
    return structlog.get_logger(name)


def log_server_startup(logger: structlog.stdlib.BoundLogger, config: "Config") -> None:
    """Log server startup with configuration details"""
    logger.info(
        "Server starting up",
        service_name=config.service_name,
        service_version=config.service_version,
        listen_addr=config.listen_addr,
        forward_url=config.forward_url,
        geoip_db=str(config.geoip_db),
        enrich_source_ip=config.enrich_source_ip,
        enrich_country_code=config.enrich_country_code,
        event_type="server_startup"
    )


def log_enrichment(logger: structlog.stdlib.BoundLogger, context: "EnrichmentContext",
                   sample_count: int, metadata_count: int) -> None:
    """Log a completed enrichment pass"""
    logger.info(
        "Processed metrics",
        cluster_id=context.cluster_id,
        source_ip=context.source_ip,
        country_code=context.country_code,
        samples=sample_count,
        metadata=metadata_count,
        event_type="metrics_enrichment"
    )


def log_delivery(logger: structlog.stdlib.BoundLogger, url: str, status_code: int,
                 payload_bytes: int, duration: float) -> None:
    """Log a successful delivery to the downstream endpoint"""
    logger.info(
        "Forwarded metrics",
        forward_url=url,
        status_code=status_code,
        payload_bytes=payload_bytes,
        duration_seconds=round(duration, 3),
        event_type="metrics_delivery"
    )


def log_error(logger: structlog.stdlib.BoundLogger, error: Exception, context: Dict[str, Any] = None) -> None:
    """Log error with structured context"""
    logger.error(
        "Error occurred",
        error=str(error),
        error_type=type(error).__name__,
        context=context or {},
        event_type="error",
        exc_info=True
    )
