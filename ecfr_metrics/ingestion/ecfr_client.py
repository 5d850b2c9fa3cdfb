"""
eCFR API client for agency listings, title structures and part text.

The eCFR API is public and does not require an API key.
"""

from typing import Any, Dict, List, Optional

import requests
import structlog

from ..core.config import Settings, settings as default_settings
from ..core.models import FetchOutcome, Success, Unavailable

logger = structlog.get_logger(__name__)


class EcfrClient:
    """Client for the eCFR admin and versioner APIs.

    Only the agency listing raises on failure. Structure and part-text
    lookups return ``Unavailable`` instead, leaving the caller to decide
    whether a missing document is fatal.
    """

    AGENCIES_PATH = "/api/admin/v1/agencies.json"
    STRUCTURE_PATH = "/api/versioner/v1/structure/{date}/title-{title}.json"
    FULL_TEXT_PATH = "/api/versioner/v1/full/{date}/title-{title}.xml"

    def __init__(self, config: Optional[Settings] = None, session: Optional[requests.Session] = None):
        config = config or default_settings
        self.base_url = config.ecfr_base_url.rstrip("/")
        self.timeout = config.request_timeout_seconds
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": "EcfrAgencyMetrics/1.0",
            "Accept": "application/json, application/xml",
        })

    def fetch_agencies(self) -> List[Dict[str, Any]]:
        """Fetch the nested agency listing.

        Returns:
            Raw agency dictionaries, each possibly carrying a ``children`` list

        Raises:
            requests.RequestException: On network failure or a non-2xx response
        """
        logger.info("Fetching agency listing from eCFR")
        response = self.session.get(self.base_url + self.AGENCIES_PATH, timeout=self.timeout)
        response.raise_for_status()

        agencies = response.json().get("agencies", [])
        logger.info("Fetched agency listing", count=len(agencies))
        return agencies

    def fetch_structure(self, date: str, title: int) -> FetchOutcome:
        """Fetch the table-of-contents tree for a title as of ``date``."""
        url = self.base_url + self.STRUCTURE_PATH.format(date=date, title=title)
        outcome = self._get(url)
        if not outcome.available:
            return outcome

        try:
            return Success(data=outcome.data.json())
        except ValueError as e:
            logger.warning("Structure response was not valid JSON", title=title, date=date, error=str(e))
            return Unavailable(reason=f"invalid JSON: {e}")

    def fetch_part_xml(self, date: str, title: int, part: str) -> FetchOutcome:
        """Fetch the full XML text of a single part as of ``date``."""
        url = self.base_url + self.FULL_TEXT_PATH.format(date=date, title=title)
        outcome = self._get(url, params={"part": part})
        if outcome.available:
            return Success(data=outcome.data.text)
        return outcome

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> FetchOutcome:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("eCFR request failed", url=url, params=params, error=str(e))
            return Unavailable(reason=str(e))

        if not response.ok:
            logger.debug("eCFR returned non-2xx status", url=url, params=params,
                         status_code=response.status_code)
            return Unavailable(reason=f"HTTP {response.status_code}")

        return Success(data=response)
