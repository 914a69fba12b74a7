"""Pydantic data models for query points and extracted records.

This module defines the type-safe models that flow through the
extraction pipeline, plus the per-card outcome and batch statistics.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LocationQuery(BaseModel):
    """One named geographic point to run a feed search against."""

    model_config = ConfigDict(frozen=True)

    search_term: str = Field(..., description="Name of the query point, used as area qualifier")
    coordinate_zoom_token: str = Field(..., description="Raw '@lat,lng,zoomz' token")

    @field_validator('coordinate_zoom_token')
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Ensure the token keeps the map URL '@' prefix."""
        v = v.strip()
        if not v.startswith('@'):
            raise ValueError("coordinate_zoom_token must start with '@'")
        return v


class ExtractedRecord(BaseModel):
    """Model representing one location parsed from a detail panel."""

    title: str = Field(..., description="Place name")
    address: str = Field(..., description="Address text")
    phone: str = Field(default="", description="Phone number, empty when not listed")


class CardOutcome(str, Enum):
    """Terminal state of one card in the extraction state machine."""

    RECORDED = "recorded"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass
class BatchStats:
    """
    Statistics for a batch run.

    Tracks query points processed, records saved and cards lost.
    """
    points_total: int = 0
    points_completed: int = 0
    points_failed: int = 0
    points_skipped: int = 0
    records: int = 0
    duplicates: int = 0
    cards_failed: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    def start(self) -> None:
        """Mark the start of the batch."""
        self.start_time = datetime.now()

    def stop(self) -> None:
        """Mark the end of the batch."""
        self.end_time = datetime.now()

    def count(self, outcome: CardOutcome) -> None:
        """Add one card outcome to the totals."""
        if outcome is CardOutcome.RECORDED:
            self.records += 1
        elif outcome is CardOutcome.DUPLICATE:
            self.duplicates += 1
        else:
            self.cards_failed += 1

    @property
    def duration_seconds(self) -> float:
        """Get batch duration in seconds."""
        if not self.start_time:
            return 0.0
        end = self.end_time or datetime.now()
        return (end - self.start_time).total_seconds()

    def __str__(self) -> str:
        return (
            f"BatchStats(points={self.points_completed}/{self.points_total}, "
            f"failed={self.points_failed}, "
            f"skipped={self.points_skipped}, "
            f"records={self.records}, "
            f"duplicates={self.duplicates}, "
            f"cards_failed={self.cards_failed}, "
            f"duration={self.duration_seconds:.1f}s)"
        )
