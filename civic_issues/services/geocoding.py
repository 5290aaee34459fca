# File: civic_issues/services/geocoding.py
# Project: civic-issues-backend

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)


class NominatimGeocoder:
    """Reverse geocoding against an OpenStreetMap Nominatim endpoint.

    A lookup that fails for any reason yields ``None``; callers carry on
    without an address.
    """

    def __init__(self, base_url: str, user_agent: str, timeout: float = 3.0, enabled: bool = True):
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout
        self.enabled = enabled

    def reverse(self, lat: float, lng: float) -> Optional[str]:
        if not self.enabled:
            return None
        try:
            r = requests.get(
                f"{self.base_url}/reverse",
                params={"lat": lat, "lon": lng, "format": "json", "addressdetails": 1},
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Reverse geocoding failed for ({lat}, {lng}): {e}")
            return None
        address = data.get("display_name") if isinstance(data, dict) else None
        return address[:300] if address else None
