#!/usr/bin/env python3
"""Main entry point for the metrics relay"""
import argparse
import sys
from typing import Any, Dict, List, Optional
import uvicorn
from config import Config
from app.server import RelayServer
from utils.geoip import GeoIPResolver
from logging_config import setup_structured_logging, get_logger, log_server_startup, log_error


def parse_args(argv: Optional[List[str]] = None) -> Dict[str, Any]:
    """Parse command-line flags into Config overrides"""
    parser = argparse.ArgumentParser(
        description="Metrics relay - enrich pushed exposition payloads and forward them"
    )
    parser.add_argument("--geoip-db", dest="geoip_db", help="Path to GeoLite2 Country database")
    parser.add_argument("--forward-url", dest="forward_url", help="URL to forward the metrics to")
    parser.add_argument("--listen-addr", dest="listen_addr", help="Address to listen on for incoming metrics")
    parser.add_argument("--log-level", dest="log_level", help="Log level")

    args = parser.parse_args(argv)
    return {key: value for key, value in vars(args).items() if value is not None}


def main(argv: Optional[List[str]] = None):
    """Main application entry point"""
    try:
        # Load configuration; flags take precedence over the environment
        config = Config(**parse_args(argv))

        setup_structured_logging(config)
        logger = get_logger(__name__)
        log_server_startup(logger, config)

        resolver = None
        if config.enrich_country_code:
            resolver = GeoIPResolver.open(config.geoip_db)

        server = RelayServer(config, resolver=resolver)
        app = server.get_app()

        uvicorn.run(
            app,
            host=config.listen_host,
            port=config.listen_port,
            log_config=None  # We handle logging ourselves
        )

    except Exception as e:
        logger = get_logger(__name__)
        log_error(logger, e, {"component": "main", "phase": "startup"})
        sys.exit(1)


if __name__ == '__main__':
    main()
