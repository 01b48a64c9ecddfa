"""
Domain: Lead scoring snapshot.

A snapshot is the read-only view of a lead that the scoring algorithm consumes:
the lead's own attributes, the name of its pipeline stage, and the aggregates
over its logged activities and calls.

Contract excerpts implemented here:
- A snapshot is always scoped to exactly one organization (tenant).
- last_activity_at is the newest activity timestamp, UTC, or None when the
  lead has no activity at all.
- Activity and call counts are non-negative.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from .time import require_utc_timestamp


def _is_present(value: Optional[str]) -> bool:
    return bool(value)


@dataclass(frozen=True, slots=True)
class LeadScoringSnapshot:
    """
    Pure domain view of a lead at scoring time.

    Notes:
    - source, stage_name and priority are stored as provided; case folding and
      fallback to defaults happen in the scoring rules, not here.
    - value is kept raw (number, numeric string, or None) because the store
      returns DECIMAL columns in more than one shape.
    """

    lead_id: UUID
    organization_id: UUID
    source: Optional[str] = None
    stage_name: Optional[str] = None
    priority: Optional[str] = None
    value: Any = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    activity_count: int = 0
    last_activity_at: Optional[datetime] = None
    call_count: int = 0

    def __post_init__(self) -> None:
        if self.activity_count < 0:
            raise ValueError("activity_count must be >= 0")
        if self.call_count < 0:
            raise ValueError("call_count must be >= 0")
        if self.last_activity_at is not None:
            require_utc_timestamp("last_activity_at", self.last_activity_at)

    @property
    def has_email(self) -> bool:
        return _is_present(self.contact_email)

    @property
    def has_phone(self) -> bool:
        return _is_present(self.contact_phone)
