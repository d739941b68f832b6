"""Request logging middleware for the metrics relay"""
import time
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from logging_config import get_logger


logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log HTTP requests"""

    def __init__(self, app, cluster_id_header: str = "X-Cluster-ID"):
        super().__init__(app)
        self.cluster_id_header = cluster_id_header

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Log HTTP requests"""
        start_time = time.time()
        client_ip = request.client.host if request.client else None
        cluster_id = request.headers.get(self.cluster_id_header)

        logger.debug(
            "HTTP request started",
            method=request.method,
            path=request.url.path,
            client_ip=client_ip,
            cluster_id=cluster_id,
            user_agent=request.headers.get("user-agent"),
            event_type="http_request_start"
        )

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                "HTTP request failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                process_time_seconds=round(process_time, 3),
                client_ip=client_ip,
                cluster_id=cluster_id,
                event_type="http_request_error",
                exc_info=True
            )
            raise

        process_time = time.time() - start_time
        logger.info(
            "HTTP request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time_seconds=round(process_time, 3),
            client_ip=client_ip,
            cluster_id=cluster_id,
            event_type="http_request_complete"
        )

        response.headers["X-Process-Time"] = str(round(process_time, 3))
        return response
