"""Configuration management for the metrics relay"""
from pathlib import Path
from typing import Literal, Optional, Tuple
from pydantic import Field, validator
from pydantic_settings import BaseSettings


DEFAULT_FORWARD_URL = "http://vminsert-cozy-telemetry:8480/insert/0/prometheus/api/v1/import/prometheus"


def split_listen_addr(addr: str) -> Tuple[str, int]:
    """Split a ``host:port`` listen address; an empty host means all interfaces"""
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"listen address must be host:port, got {addr!r}")
    port_number = int(port)
    if not 1 <= port_number <= 65535:
        raise ValueError(f"listen port out of range: {port_number}")
    host = host.strip("[]")
    return host or "0.0.0.0", port_number


class Config(BaseSettings):
    """Configuration class with Pydantic validation and environment-based settings"""

    # Server settings
    listen_addr: str = Field(default=":8081", description="Address to listen on for incoming metrics")

    # Delivery settings
    forward_url: str = Field(default=DEFAULT_FORWARD_URL, description="URL to forward the metrics to")
    forward_timeout: float = Field(default=10.0, gt=0, description="Downstream request timeout in seconds")

    # Enrichment settings
    geoip_db: Path = Field(default=Path("/GeoLite2-Country.mmdb"), description="Path to GeoLite2 Country database")
    cluster_id_header: str = Field(default="X-Cluster-ID", description="Header carrying the cluster identifier")
    enrich_source_ip: bool = Field(default=True, description="Add source_ip label to every series")
    enrich_country_code: bool = Field(default=True, description="Add country_code label to every series")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file path")
    enable_request_logging: bool = Field(default=True, description="Enable HTTP request logging")

    # Service settings
    service_name: str = Field(default="metrics-relay", description="Service name")
    service_version: str = Field(default="1.0.0", description="Service version")

    class Config:
        env_prefix = ""
        case_sensitive = False

    @validator('listen_addr')
    def validate_listen_addr(cls, v):
        """Validate host:port format"""
        split_listen_addr(v)
        return v

    @validator('forward_url')
    def validate_forward_url(cls, v):
        """Require an http(s) URL for delivery"""
        if not v.startswith(("http://", "https://")):
            raise ValueError("FORWARD_URL must be an http:// or https:// URL")
        return v

    @validator('cluster_id_header')
    def validate_cluster_id_header(cls, v):
        """Header name must not be empty"""
        if not v.strip():
            raise ValueError("CLUSTER_ID_HEADER must not be empty")
        return v.strip()

    @validator('log_level', pre=True)
    def normalize_log_level(cls, v):
        """Accept log levels in any case"""
        if isinstance(v, str):
            return v.upper()
        return v

    @validator('log_file')
    def ensure_parent_directories(cls, v):
        """Ensure parent directories exist for file paths"""
        if isinstance(v, Path):
            v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @property
    def listen_host(self) -> str:
        """Host part of the listen address"""
        return split_listen_addr(self.listen_addr)[0]

    @property
    def listen_port(self) -> int:
        """Port part of the listen address"""
        return split_listen_addr(self.listen_addr)[1]
