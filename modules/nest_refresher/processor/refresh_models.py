"""Refresh Result Models

Structured outcomes of refreshing one nest and of a full refresh run, suitable
for logging and reporting.
"""

import threading
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..models import DiscardReason, Nest, NestAttributes


class NestRefreshOutcome(BaseModel):
    """Result of refreshing a single nest."""

    nest_id: int = Field(..., description="Refreshed nest")
    full_name: str = Field(..., description="Nest display name")
    active: Optional[bool] = Field(None, description="Resulting active flag")
    discarded: Optional[DiscardReason] = Field(None, description="Resulting discard reason")
    changed_fields: List[str] = Field(default_factory=list, description="Attributes that changed")
    explanations: List[str] = Field(default_factory=list, description="Filter decisions, in order")
    written: bool = Field(False, description="Whether an update was written")
    nest: Nest = Field(..., description="Nest as it is after the refresh")

    def is_changed(self) -> bool:
        return bool(self.changed_fields)

    def get_classification(self) -> str:
        return NestAttributes(active=self.active, discarded=self.discarded).describe()


class OverlapPassOutcome(BaseModel):
    """Result of the overlap pass that follows a bulk refresh."""

    skipped: bool = Field(..., description="Whether the overlap pass was skipped")
    reason: Optional[str] = Field(None, description="Why the pass was skipped")
    threshold_percent: float = Field(..., description="Configured overlap threshold")
    disabled_count: int = Field(0, ge=0, description="Nests deactivated by the pass")


class RefreshAllResult(BaseModel):
    """Result of refreshing every stored nest."""

    processed_count: int = Field(0, ge=0, description="Nests refreshed")
    updated_count: int = Field(0, ge=0, description="Nests with at least one changed attribute")
    activated_count: int = Field(0, ge=0, description="Nests classified active")
    discarded_counts: Dict[str, int] = Field(default_factory=dict, description="Discarded nests per reason")
    overlap: Optional[OverlapPassOutcome] = Field(None, description="Overlap pass outcome")
    duration_seconds: float = Field(0.0, ge=0, description="Wall time of the run")
    dry_run: bool = Field(False, description="Whether writes were suppressed")

    def get_summary(self) -> str:
        discarded = ", ".join(f"{reason}={count}" for reason, count in sorted(self.discarded_counts.items()))
        summary = (f"{self.processed_count} nest(s) refreshed, {self.updated_count} updated, "
                   f"{self.activated_count} active, discarded: {discarded or 'none'}")
        if self.overlap is not None:
            if not self.overlap.skipped:
                summary += f", overlap disabled {self.overlap.disabled_count}"
            else:
                summary += f", overlap skipped ({self.overlap.reason})"
        return summary


class RefreshTally:
    """Thread-safe accumulator of per-nest outcomes."""

    def __init__(self):
        self._lock = threading.Lock()
        self.processed_count = 0
        self.updated_count = 0
        self.activated_count = 0
        self.discarded_counts: Dict[str, int] = {}

    def add(self, outcome: NestRefreshOutcome) -> None:
        with self._lock:
            self.processed_count += 1
            if outcome.is_changed():
                self.updated_count += 1
            if outcome.active:
                self.activated_count += 1
            elif outcome.discarded is not None:
                reason = outcome.discarded.value
                self.discarded_counts[reason] = self.discarded_counts.get(reason, 0) + 1

    def to_result(self, duration_seconds: float, dry_run: bool,
                  overlap: Optional[OverlapPassOutcome] = None) -> RefreshAllResult:
        with self._lock:
            return RefreshAllResult(
                processed_count=self.processed_count,
                updated_count=self.updated_count,
                activated_count=self.activated_count,
                discarded_counts=dict(self.discarded_counts),
                overlap=overlap,
                duration_seconds=duration_seconds,
                dry_run=dry_run,
            )
