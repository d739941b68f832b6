"""FastAPI server setup and routes"""
import os
import threading
import time
from typing import Any, Dict, Optional, Tuple
from fastapi import FastAPI, HTTPException, Request, Response
from starlette.concurrency import run_in_threadpool
from config import Config
from metrics.enricher import EnrichedPayload, EnrichmentPipeline
from metrics.errors import ParseError, ValidationError
from metrics.exporters.forwarder import DeliveryResult, HTTPForwarder
from metrics.labels import LabelInjector
from metrics.models import EnrichmentContext
from utils.geoip import NullResolver
from utils.network import extract_ip
from logging_config import get_logger, log_error
from middleware.request_logging import RequestLoggingMiddleware


logger = get_logger(__name__)

INGRESS_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


class RelayServer:
    """FastAPI server accepting exposition pushes and forwarding them enriched.

    The GeoIP resolver and the forwarder are injected so they can be shared
    process-wide (and stubbed in tests); the pipeline itself is stateless.
    """

    def __init__(self, config: Config, resolver=None, forwarder: Optional[HTTPForwarder] = None,
                 pipeline: Optional[EnrichmentPipeline] = None):
        self.config = config
        self.app = FastAPI(
            title="Metrics Relay",
            version=config.service_version,
            docs_url=None,
            redoc_url=None,
            openapi_url=None
        )

        if resolver is None:
            if config.enrich_country_code:
                logger.warning("No GeoIP resolver configured, country_code will be unknown")
            resolver = NullResolver()
        self.resolver = resolver
        self.forwarder = forwarder or HTTPForwarder(config.forward_url, timeout=config.forward_timeout)
        self.pipeline = pipeline or EnrichmentPipeline(
            injector=LabelInjector(
                include_source_ip=config.enrich_source_ip,
                include_country_code=config.enrich_country_code
            )
        )

        # Relay counters, updated from request threads
        self.start_time = time.time()
        self._stats_lock = threading.Lock()
        self.stats: Dict[str, Any] = {
            "requests_total": 0,
            "requests_rejected": 0,
            "samples_processed": 0,
            "parse_errors": 0,
            "delivery_errors": 0,
            "last_delivery_time": 0.0,
        }

        self._setup_middleware()
        self._setup_routes()
        self._setup_events()

    def _setup_middleware(self):
        """Setup request logging middleware"""
        if self.config.enable_request_logging:
            self.app.add_middleware(
                RequestLoggingMiddleware,
                cluster_id_header=self.config.cluster_id_header
            )

    def _setup_routes(self):
        """Setup FastAPI routes"""

        @self.app.get('/health')
        def health_check():
            """Health check endpoint"""
            return {
                "status": "healthy",
                "uptime_seconds": round(time.time() - self.start_time, 1)
            }

        @self.app.get('/status')
        def get_status():
            """Detailed status information"""
            with self._stats_lock:
                stats = dict(self.stats)

            last_delivery = stats.pop("last_delivery_time")
            stats["last_delivery_seconds_ago"] = (
                round(time.time() - last_delivery, 1) if last_delivery > 0 else None
            )

            return {
                "service": {
                    "name": self.config.service_name,
                    "version": self.config.service_version,
                    "uptime_seconds": round(time.time() - self.start_time, 1),
                    "hostname": os.uname().nodename
                },
                "relay": stats,
                "enrichment": {
                    "cluster_id_header": self.config.cluster_id_header,
                    "source_ip": self.config.enrich_source_ip,
                    "country_code": self.config.enrich_country_code
                },
                "delivery": {
                    "forward_url": self.config.forward_url,
                    "timeout_seconds": self.config.forward_timeout
                }
            }

        @self.app.api_route('/{path:path}', methods=INGRESS_METHODS)
        async def ingest(request: Request, path: str):
            """Accept an exposition payload, enrich it and forward it"""
            return await self.handle_telemetry(request)

    def _setup_events(self):
        """Setup FastAPI shutdown events"""

        @self.app.on_event("shutdown")
        async def shutdown_event():
            """Release the GeoIP reader and pooled connections"""
            logger.info("Shutting down metrics relay", event_type="server_shutdown")
            self.forwarder.close()
            self.resolver.close()

    async def handle_telemetry(self, request: Request) -> Response:
        """Validate, enrich and forward one request"""
        start_time = time.time()
        self._increment("requests_total")

        try:
            cluster_id = self.validate_request(request)
        except ValidationError as e:
            self._increment("requests_rejected")
            logger.warning("Request rejected", reason=str(e), event_type="request_rejected")
            status_code = 405 if request.method != "POST" else 400
            raise HTTPException(status_code=status_code, detail=str(e))

        try:
            body = await request.body()
        except Exception as e:
            self._increment("requests_rejected")
            log_error(logger, e, {"component": "ingress", "cluster_id": cluster_id})
            raise HTTPException(status_code=400, detail=f"Error reading request: {e}")

        source_ip = self._source_ip(request)
        logger.info(
            "Received metrics",
            source_ip=source_ip,
            cluster_id=cluster_id,
            payload_bytes=len(body),
            event_type="metrics_received"
        )

        try:
            payload, result = await run_in_threadpool(self.relay, body, cluster_id, source_ip)
        except ParseError as e:
            self._increment("parse_errors")
            logger.warning(
                "Error processing metrics",
                cluster_id=cluster_id,
                error=str(e),
                event_type="parse_error"
            )
            raise HTTPException(status_code=400, detail=f"Error processing metrics: {e}")

        if not result.ok:
            self._increment("delivery_errors")
            logger.error(
                "Error forwarding metrics",
                cluster_id=cluster_id,
                error=str(result.error),
                status_code=result.status_code,
                forward_url=self.config.forward_url,
                event_type="delivery_error"
            )
            raise HTTPException(status_code=500, detail=f"Error forwarding metrics: {result.error}")

        with self._stats_lock:
            self.stats["samples_processed"] += payload.sample_count
            self.stats["last_delivery_time"] = time.time()

        logger.info(
            "Request processed",
            cluster_id=cluster_id,
            samples=payload.sample_count,
            process_time_seconds=round(time.time() - start_time, 3),
            event_type="request_complete"
        )
        return Response(status_code=200)

    def validate_request(self, request: Request) -> str:
        """Return the cluster identifier or raise ValidationError"""
        if request.method != "POST":
            raise ValidationError("Method not allowed")

        cluster_id = request.headers.get(self.config.cluster_id_header, "")
        if not cluster_id:
            raise ValidationError(f"{self.config.cluster_id_header} header is required")
        return cluster_id

    def build_context(self, cluster_id: str, source_ip: str) -> EnrichmentContext:
        """Assemble the enrichment context, resolving the country when enabled"""
        country_code = None
        if self.config.enrich_country_code:
            country_code = self.resolver.resolve(source_ip)
        return EnrichmentContext(
            cluster_id=cluster_id,
            source_ip=source_ip or None,
            country_code=country_code
        )

    def relay(self, body: bytes, cluster_id: str, source_ip: str) -> Tuple[EnrichedPayload, DeliveryResult]:
        """Blocking part of a request: enrich, then deliver once"""
        context = self.build_context(cluster_id, source_ip)
        payload = self.pipeline.process(body, context)
        return payload, self.forwarder.deliver(payload.body)

    def _source_ip(self, request: Request) -> str:
        if not request.client:
            return ""
        host, port = request.client.host, request.client.port
        remote_addr = f"[{host}]:{port}" if ":" in host else f"{host}:{port}"
        return extract_ip(remote_addr)

    def _increment(self, counter: str, amount: int = 1) -> None:
        with self._stats_lock:
            self.stats[counter] += amount

    def get_app(self) -> FastAPI:
        """Get the FastAPI application"""
        return self.app
