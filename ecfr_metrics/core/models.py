"""
Data models for the eCFR agency metrics system.
"""

from datetime import date as Date, datetime
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator


NO_TEXT_CHECKSUM = "no-text-found"


class CfrReference(BaseModel):
    """A (title, chapter) pair an agency is responsible for."""
    model_config = ConfigDict(extra="allow")

    title: int
    # Some references point at a subtitle or part instead of a chapter
    chapter: Optional[str] = None


class FlatAgency(BaseModel):
    """One row of the agencies table."""
    slug: str
    name: str
    short_name: Optional[str] = None
    parent_slug: Optional[str] = None
    cfr_references: str = "[]"  # JSON-encoded list of reference objects


class AgencyReferences(BaseModel):
    """An agency slug with the CFR references read back from storage."""
    slug: str
    cfr_references: List[CfrReference] = Field(default_factory=list)


class TextMetrics(BaseModel):
    """Word metrics computed from an agency's aggregate regulation text."""
    word_count: int = Field(ge=0)
    restrictive_word_count: int = Field(ge=0)
    checksum: str

    @model_validator(mode="after")
    def _restrictive_within_total(self) -> "TextMetrics":
        if self.restrictive_word_count > self.word_count:
            raise ValueError("restrictive_word_count cannot exceed word_count")
        return self


class AgencyMetric(TextMetrics):
    """One row of the agency_metrics time series."""
    agency_slug: str
    date: Date


class Success(BaseModel):
    """An upstream fetch that returned data."""
    available: Literal[True] = True
    data: Any

    def data_or(self, default: Any) -> Any:
        return self.data


class Unavailable(BaseModel):
    """An upstream fetch that failed or returned a non-2xx status."""
    available: Literal[False] = False
    reason: str = ""

    def data_or(self, default: Any) -> Any:
        return default


FetchOutcome = Union[Success, Unavailable]


class PipelineRun(BaseModel):
    """Pipeline execution tracking."""
    run_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    status: str = "running"  # running, completed, failed
    run_date: Optional[Date] = None

    agencies_synced: int = 0
    agencies_processed: int = 0
    failed_agencies: Dict[str, str] = Field(default_factory=dict)

    error_message: Optional[str] = None
