"""
Part lookup within an eCFR title structure tree.
"""

from typing import Any, Dict, List, Optional

import structlog

from ..ingestion.ecfr_client import EcfrClient

logger = structlog.get_logger(__name__)


def extract_parts(node: Dict[str, Any], chapter: Optional[str], inside_chapter: bool = False) -> List[str]:
    """
    Collect part identifiers below the chapter ``chapter``, in document order.

    Once the matching chapter node is entered every descendant is considered
    inside it. Chapters are assumed not to nest within each other.
    """
    if node.get("type") == "chapter" and node.get("identifier") == chapter:
        inside_chapter = True

    parts = []
    if inside_chapter and node.get("type") == "part":
        parts.append(node.get("identifier"))

    for child in node.get("children") or []:
        parts.extend(extract_parts(child, chapter, inside_chapter))

    return parts


def get_parts_for_chapter(client: EcfrClient, date: str, title: int, chapter: Optional[str]) -> List[str]:
    """Fetch the structure of ``title`` and list the parts under ``chapter``.

    Returns an empty list when the structure document is unavailable.
    """
    outcome = client.fetch_structure(date, title)
    if not outcome.available:
        logger.warning("Failed to get parts for chapter", title=title, chapter=chapter,
                       date=date, reason=outcome.reason)
        return []

    return extract_parts(outcome.data, chapter)
