"""GeoIP country resolution"""
from pathlib import Path
from typing import Union

import geoip2.database
import geoip2.errors

from logging_config import get_logger
from metrics.errors import ResolutionError
from metrics.models import UNKNOWN_COUNTRY
from utils.network import normalize_ip


logger = get_logger(__name__)


class NullResolver:
    """Resolver used when no GeoIP database is configured"""

    def resolve(self, address: str) -> str:
        return UNKNOWN_COUNTRY

    def close(self) -> None:
        pass


class GeoIPResolver:
    """Country lookups against a MaxMind GeoIP2/GeoLite2 Country database.

    The reader is opened once and only read afterwards, so one instance is
    shared by all request threads. ``resolve`` never raises: unparseable
    addresses and lookup failures resolve to ``"unknown"``.
    """

    def __init__(self, reader: geoip2.database.Reader):
        self.reader = reader

    @classmethod
    def open(cls, db_path: Union[str, Path]) -> "GeoIPResolver":
        """Open the database file; failures propagate to the caller"""
        reader = geoip2.database.Reader(str(db_path))
        logger.info("GeoIP database opened", geoip_db=str(db_path), event_type="geoip_open")
        return cls(reader)

    def resolve(self, address: str) -> str:
        """ISO country code for an address, or the unknown sentinel"""
        ip = normalize_ip(address) if address else None
        if ip is None:
            return UNKNOWN_COUNTRY

        try:
            return self._lookup(ip)
        except ResolutionError as e:
            logger.warning(
                "Country lookup failed",
                ip=ip,
                error=str(e),
                event_type="geoip_lookup_failed"
            )
            return UNKNOWN_COUNTRY

    def _lookup(self, ip: str) -> str:
        try:
            record = self.reader.country(ip)
        except geoip2.errors.AddressNotFoundError as e:
            raise ResolutionError(f"address {ip} not in database") from e
        except Exception as e:
            raise ResolutionError(f"error getting country for IP {ip}: {e}") from e

        iso_code = record.country.iso_code
        if not iso_code:
            raise ResolutionError(f"no country code recorded for IP {ip}")
        return iso_code

    def close(self) -> None:
        """Close the database reader"""
        if self.reader is not None:
            self.reader.close()
            self.reader = None
