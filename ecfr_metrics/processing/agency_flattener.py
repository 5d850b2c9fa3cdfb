"""
Flattening of the nested eCFR agency listing into agencies table rows.
"""

import json
from typing import Any, Dict, List, Optional

from ..core.models import FlatAgency


def _to_row(agency: Dict[str, Any], parent_slug: Optional[str]) -> FlatAgency:
    return FlatAgency(
        slug=agency["slug"],
        name=agency["name"],
        short_name=agency.get("short_name"),
        parent_slug=parent_slug,
        cfr_references=json.dumps(agency.get("cfr_references") or []),
    )


def flatten_agencies(raw_agencies: List[Dict[str, Any]]) -> List[FlatAgency]:
    """
    Flatten parent agencies and their children into one ordered list.

    Each parent is followed directly by its children, so a parent row is
    always written before any row that references it. The listing nests only
    one level deep; grandchildren are not expected.

    Args:
        raw_agencies: Agency dictionaries as returned by the eCFR admin API

    Returns:
        One FlatAgency per parent and per child, in listing order
    """
    flat = []

    for agency in raw_agencies:
        flat.append(_to_row(agency, parent_slug=None))

        for child in agency.get("children") or []:
            flat.append(_to_row(child, parent_slug=agency["slug"]))

    return flat
