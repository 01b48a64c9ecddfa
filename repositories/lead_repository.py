"""
Lead repository (persistence) for lead scoring.

This module provides *only* the reads and writes the scoring engine needs.
No scoring rules belong here.

Every query is filtered by organization_id (directly on `leads`, or through a
lead id that was first resolved inside the organization) so one tenant can
never read or overwrite another tenant's scores.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional
from uuid import UUID

from domain.lead import LeadScoringSnapshot
from domain.time import parse_utc_timestamp, to_iso_utc, utc_now

# Supabase table names. Keep these aligned with your database schema.
_LEADS_TABLE: str = "leads"
_ACTIVITIES_TABLE: str = "lead_activities"
_CALL_LOGS_TABLE: str = "call_logs"

# `pipeline_stages` is embedded through the leads.stage_id foreign key.
_SNAPSHOT_COLUMNS: str = (
    "id, organization_id, source, priority, value, "
    "contact_email, contact_phone, pipeline_stages(name)"
)

# PostgREST caps a single response at 1000 rows by default.
_PAGE_SIZE: int = 1000


def _raise_on_error(response: Any, action: str) -> None:
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to {action}: {error}")


def _rows(response: Any) -> List[Mapping[str, Any]]:
    return getattr(response, "data", None) or []


def _stage_name(row: Mapping[str, Any]) -> Optional[str]:
    """Extract the embedded stage name. PostgREST returns an object or a list."""

    stage = row.get("pipeline_stages")
    if isinstance(stage, list):
        stage = stage[0] if stage else None
    if not stage:
        return None
    name = stage.get("name")
    return str(name) if name is not None else None


class SupabaseLeadScoreStore:
    """
    Lead score store backed by Supabase tables.

    The client may be injected; when omitted, the process-wide client from
    `repositories.client.get_supabase()` is resolved on first query, so a
    missing configuration surfaces as a query failure.
    """

    def __init__(self, client: Any = None, page_size: int = _PAGE_SIZE) -> None:
        self._client = client
        self._page_size = page_size

    @property
    def client(self) -> Any:
        if self._client is None:
            from repositories.client import get_supabase

            self._client = get_supabase()
        return self._client

    def _count(self, table: str, lead_id: UUID) -> int:
        response = (
            self.client.table(table)
            .select("id", count="exact")
            .eq("lead_id", str(lead_id))
            .limit(1)
            .execute()
        )
        _raise_on_error(response, f"count {table}")
        return int(getattr(response, "count", 0) or 0)

    def _latest_activity_at(self, lead_id: UUID) -> Optional[datetime]:
        response = (
            self.client.table(_ACTIVITIES_TABLE)
            .select("created_at")
            .eq("lead_id", str(lead_id))
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        _raise_on_error(response, "fetch latest lead activity")

        rows = _rows(response)
        if not rows or rows[0].get("created_at") is None:
            return None
        return parse_utc_timestamp(rows[0]["created_at"])

    def _paginate(self, build_query: Callable[[], Any], action: str) -> List[Mapping[str, Any]]:
        all_rows: List[Mapping[str, Any]] = []
        offset = 0

        while True:
            response = build_query().range(offset, offset + self._page_size - 1).execute()
            _raise_on_error(response, action)

            page_rows = _rows(response)
            all_rows.extend(page_rows)
            if len(page_rows) < self._page_size:
                break
            offset += len(page_rows)

        return all_rows

    def fetch_snapshot(self, lead_id: UUID, organization_id: UUID) -> Optional[LeadScoringSnapshot]:
        """
        Load everything needed to score one lead.

        Returns:
        - LeadScoringSnapshot if the lead exists inside the organization
        - None otherwise (missing lead, or lead owned by another organization)
        """

        response = (
            self.client.table(_LEADS_TABLE)
            .select(_SNAPSHOT_COLUMNS)
            .eq("id", str(lead_id))
            .eq("organization_id", str(organization_id))
            .limit(1)
            .execute()
        )
        _raise_on_error(response, "fetch lead")

        rows = _rows(response)
        if not rows:
            return None
        row = rows[0]

        return LeadScoringSnapshot(
            lead_id=UUID(str(row["id"])),
            organization_id=UUID(str(row["organization_id"])),
            source=row.get("source"),
            stage_name=_stage_name(row),
            priority=row.get("priority"),
            value=row.get("value"),
            contact_email=row.get("contact_email"),
            contact_phone=row.get("contact_phone"),
            activity_count=self._count(_ACTIVITIES_TABLE, lead_id),
            last_activity_at=self._latest_activity_at(lead_id),
            call_count=self._count(_CALL_LOGS_TABLE, lead_id),
        )

    def list_lead_ids(self, organization_id: UUID) -> List[UUID]:
        """All lead ids of an organization, in stable id order."""

        rows = self._paginate(
            lambda: (
                self.client.table(_LEADS_TABLE)
                .select("id")
                .eq("organization_id", str(organization_id))
                .order("id")
            ),
            "list leads",
        )
        return [UUID(str(row["id"])) for row in rows]

    def save_score(
        self,
        lead_id: UUID,
        organization_id: UUID,
        score: int,
        last_activity_at: Optional[datetime],
    ) -> None:
        """Persist lead_score and last_activity_at, touching updated_at."""

        payload = {
            "lead_score": score,
            "last_activity_at": to_iso_utc(last_activity_at) if last_activity_at else None,
            "updated_at": to_iso_utc(utc_now()),
        }
        response = (
            self.client.table(_LEADS_TABLE)
            .update(payload)
            .eq("id", str(lead_id))
            .eq("organization_id", str(organization_id))
            .execute()
        )
        _raise_on_error(response, "save lead score")

    def list_scores(self, organization_id: UUID) -> List[Optional[int]]:
        """Persisted lead_score of every lead in the organization (None if unset)."""

        rows = self._paginate(
            lambda: (
                self.client.table(_LEADS_TABLE)
                .select("id, lead_score")
                .eq("organization_id", str(organization_id))
                .order("id")
            ),
            "list lead scores",
        )
        return [
            int(row["lead_score"]) if row.get("lead_score") is not None else None
            for row in rows
        ]


__all__ = ["SupabaseLeadScoreStore"]
