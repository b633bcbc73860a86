"""
Country lookup for client IPs using a MaxMind GeoLite2 Country database.

Results are cached per IP for the life of the process. Addresses the
database does not know resolve to None.
"""

from functools import lru_cache
from typing import Optional

import geoip2.database
from geoip2.errors import AddressNotFoundError
from maxminddb import InvalidDatabaseError

from checkin.core.config import settings
from checkin.core.logging_config import logger


class GeoIpLookup:
    def __init__(self, reader: geoip2.database.Reader, cache_size: int = 10_000):
        self.reader = reader
        self.country_code = lru_cache(maxsize=cache_size)(self._lookup)

    @classmethod
    def from_settings(cls) -> Optional["GeoIpLookup"]:
        """Open the configured database, or None when there is none to open"""
        db_path = settings.GEOIP_DB_PATH
        if not db_path:
            return None
        try:
            reader = geoip2.database.Reader(db_path)
        except (OSError, InvalidDatabaseError) as e:
            logger.error(f"[GeoIp] Could not open country database {db_path}: {e}")
            return None
        logger.info(f"[GeoIp] Loaded country database {db_path}")
        return cls(reader, cache_size=settings.GEOIP_CACHE_SIZE)

    def _lookup(self, ip: str) -> Optional[str]:
        try:
            return self.reader.country(ip).country.iso_code
        except AddressNotFoundError:
            return None
        except (ValueError, InvalidDatabaseError) as e:
            logger.error(f"[GeoIp] Lookup failed for {ip}: {e}")
            return None
