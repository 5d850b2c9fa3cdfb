"""
Regulation text aggregation and word metrics for agencies.
"""

import hashlib
import re
from datetime import date
from typing import Iterable, List, Optional

import structlog

from ..core.models import NO_TEXT_CHECKSUM, CfrReference, TextMetrics
from ..ingestion.date_resolver import DEFAULT_LOOKBACK_DAYS, resolve_structure_date
from ..ingestion.ecfr_client import EcfrClient
from .structure_walker import get_parts_for_chapter

logger = structlog.get_logger(__name__)

RESTRICTIVE_WORDS = frozenset({"shall", "must", "prohibited", "required"})
RESTRICTIVE_PHRASES = ("may not",)

TAG_PATTERN = re.compile(r"<[^>]+?>")


def strip_markup(xml: str) -> str:
    """Replace every tag with a single space.

    Best-effort extraction; entities are left as they are.
    """
    return TAG_PATTERN.sub(" ", xml)


def compute_text_metrics(text: str) -> TextMetrics:
    """
    Compute word and restrictive-word counts plus a checksum for ``text``.

    Counting is done on the lowercased text. The checksum is the SHA-256 of
    the text exactly as given, or ``no-text-found`` when it is blank.

    Args:
        text: Aggregate plain text for one agency

    Returns:
        TextMetrics for the text
    """
    lowered = text.lower()
    words = lowered.split()

    restrictive_count = sum(1 for word in words if word in RESTRICTIVE_WORDS)
    restrictive_count += sum(lowered.count(phrase) for phrase in RESTRICTIVE_PHRASES)

    if text.strip():
        checksum = hashlib.sha256(text.encode("utf-8")).hexdigest()
    else:
        checksum = NO_TEXT_CHECKSUM

    return TextMetrics(
        word_count=len(words),
        restrictive_word_count=restrictive_count,
        checksum=checksum,
    )


class AgencyTextAggregator:
    """Builds the aggregate regulation text for an agency's CFR references."""

    def __init__(self, client: EcfrClient, lookback_days: int = DEFAULT_LOOKBACK_DAYS,
                 today: Optional[date] = None):
        self.client = client
        self.lookback_days = lookback_days
        self.today = today

    def part_texts(self, reference: CfrReference) -> List[str]:
        """Plain text of every part under one (title, chapter) reference."""
        valid_date = resolve_structure_date(
            self.client, reference.title, today=self.today, max_attempts=self.lookback_days
        )
        parts = get_parts_for_chapter(self.client, valid_date, reference.title, reference.chapter)
        logger.info("Found parts for chapter", title=reference.title, chapter=reference.chapter,
                    date=valid_date, part_count=len(parts))

        texts = []
        for part in parts:
            outcome = self.client.fetch_part_xml(valid_date, reference.title, part)
            if not outcome.available:
                logger.warning("Part text unavailable", title=reference.title, part=part,
                               date=valid_date, reason=outcome.reason)
            texts.append(strip_markup(outcome.data_or("")))

        return texts

    def aggregate(self, references: Iterable[CfrReference]) -> str:
        """Concatenate the text of all parts, each followed by a space."""
        pieces = []
        for reference in references:
            for text in self.part_texts(reference):
                pieces.append(text + " ")
        return "".join(pieces)

    def metrics_for(self, references: Iterable[CfrReference]) -> TextMetrics:
        return compute_text_metrics(self.aggregate(references))
