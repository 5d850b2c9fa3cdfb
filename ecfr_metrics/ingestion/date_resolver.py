"""
Snapshot date lookup for eCFR titles.

eCFR does not publish a structure snapshot for every calendar day (weekends
and holidays are usually missing), so the newest usable date has to be probed.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional

import structlog

from .ecfr_client import EcfrClient

logger = structlog.get_logger(__name__)

DEFAULT_LOOKBACK_DAYS = 5


def utc_today() -> date:
    """Current calendar date in UTC, the timezone eCFR snapshot dates use."""
    return datetime.now(timezone.utc).date()


def resolve_structure_date(
    client: EcfrClient,
    title: int,
    today: Optional[date] = None,
    max_attempts: int = DEFAULT_LOOKBACK_DAYS,
) -> str:
    """Find the most recent date with a structure document for ``title``.

    Probes ``today``, then each preceding day, up to ``max_attempts`` probes.
    If none succeed, ``today`` is returned anyway and downstream fetches are
    expected to come back empty.

    Args:
        client: eCFR client used for the probes
        title: CFR title number
        today: Starting date (defaults to the current UTC date)
        max_attempts: Number of days to probe, including ``today``

    Returns:
        ISO formatted date string (YYYY-MM-DD)
    """
    start = today or utc_today()

    for offset in range(max_attempts):
        candidate = (start - timedelta(days=offset)).isoformat()
        if client.fetch_structure(candidate, title).available:
            logger.debug("Resolved structure date", title=title, date=candidate, attempts=offset + 1)
            return candidate

    logger.warning("No structure snapshot found, falling back to start date",
                   title=title, date=start.isoformat(), attempts=max_attempts)
    return start.isoformat()
