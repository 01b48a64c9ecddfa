"""
Tests for `repositories/lead_repository.py`.

Runs against a recording fake of the Supabase client, so no database is needed.

Covers:
- Snapshot reads are filtered by lead id AND organization id.
- Stage name comes from the embedded pipeline_stages relation.
- Activity/call aggregates and the newest activity timestamp are read per lead.
- Score writes are scoped by lead id AND organization id.
- Listings page through results past the PostgREST row cap.
- Error responses raise RuntimeError.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

import pytest

from fakes import ORG_A, FakeSupabaseClient
from repositories.lead_repository import SupabaseLeadScoreStore

LEAD_1 = UUID("00000000-0000-0000-0000-000000000001")
LEAD_2 = UUID("00000000-0000-0000-0000-000000000002")
LEAD_3 = UUID("00000000-0000-0000-0000-000000000003")


def _lead_row(**overrides) -> dict:
    row = {
        "id": str(LEAD_1),
        "organization_id": str(ORG_A),
        "source": "LinkedIn",
        "priority": "high",
        "value": "15000.00",
        "contact_email": "lead@example.com",
        "contact_phone": None,
        "pipeline_stages": {"name": "Proposal"},
    }
    row.update(overrides)
    return row


@pytest.fixture
def client() -> FakeSupabaseClient:
    return FakeSupabaseClient()


def test_fetch_snapshot_reads_lead_and_aggregates(client) -> None:
    client.respond("leads", data=[_lead_row()])
    client.respond("lead_activities", count=4)
    client.respond("lead_activities", data=[{"created_at": "2025-06-10T08:00:00Z"}])
    client.respond("call_logs", count=2)

    snapshot = SupabaseLeadScoreStore(client).fetch_snapshot(LEAD_1, ORG_A)

    assert snapshot is not None
    assert snapshot.lead_id == LEAD_1
    assert snapshot.organization_id == ORG_A
    assert snapshot.source == "LinkedIn"
    assert snapshot.stage_name == "Proposal"
    assert snapshot.priority == "high"
    assert snapshot.value == "15000.00"
    assert snapshot.has_email and not snapshot.has_phone
    assert snapshot.activity_count == 4
    assert snapshot.call_count == 2
    assert snapshot.last_activity_at == datetime(2025, 6, 10, 8, 0, 0, tzinfo=timezone.utc)


def test_fetch_snapshot_is_scoped_to_organization(client) -> None:
    client.respond("leads", data=[_lead_row()])

    SupabaseLeadScoreStore(client).fetch_snapshot(LEAD_1, ORG_A)

    lead_query = client.queries_for("leads")[0]
    assert lead_query.has("eq", "id", str(LEAD_1))
    assert lead_query.has("eq", "organization_id", str(ORG_A))


def test_fetch_snapshot_missing_lead_skips_aggregates(client) -> None:
    client.respond("leads", data=[])

    assert SupabaseLeadScoreStore(client).fetch_snapshot(LEAD_1, ORG_A) is None
    assert client.queries_for("lead_activities") == []
    assert client.queries_for("call_logs") == []


@pytest.mark.parametrize(
    "embedded, expected",
    [
        ({"name": "Won"}, "Won"),
        ([{"name": "Negotiation"}], "Negotiation"),
        ([], None),
        (None, None),
        ({"name": None}, None),
    ],
)
def test_fetch_snapshot_stage_name_shapes(client, embedded, expected) -> None:
    client.respond("leads", data=[_lead_row(pipeline_stages=embedded)])

    snapshot = SupabaseLeadScoreStore(client).fetch_snapshot(LEAD_1, ORG_A)

    assert snapshot.stage_name == expected


def test_fetch_snapshot_without_activity(client) -> None:
    client.respond("leads", data=[_lead_row()])
    client.respond("lead_activities", count=0)
    client.respond("lead_activities", data=[])
    client.respond("call_logs", count=None)

    snapshot = SupabaseLeadScoreStore(client).fetch_snapshot(LEAD_1, ORG_A)

    assert snapshot.activity_count == 0
    assert snapshot.call_count == 0
    assert snapshot.last_activity_at is None


def test_latest_activity_is_read_newest_first(client) -> None:
    client.respond("leads", data=[_lead_row()])

    SupabaseLeadScoreStore(client).fetch_snapshot(LEAD_1, ORG_A)

    count_query, latest_query = client.queries_for("lead_activities")
    assert count_query.has("eq", "lead_id", str(LEAD_1))
    assert latest_query.has("order", "created_at")
    assert ("order", ("created_at",), {"desc": True}) in latest_query.ops
    assert latest_query.has("limit", 1)


def test_fetch_snapshot_error_response_raises(client) -> None:
    client.respond("leads", error="permission denied for table leads")

    with pytest.raises(RuntimeError, match="permission denied"):
        SupabaseLeadScoreStore(client).fetch_snapshot(LEAD_1, ORG_A)


def test_save_score_is_scoped_and_serializes_timestamp(client) -> None:
    last_activity = datetime(2025, 6, 10, 8, 0, 0, tzinfo=timezone.utc)

    SupabaseLeadScoreStore(client).save_score(LEAD_1, ORG_A, 72, last_activity)

    (query,) = client.queries_for("leads")
    (payload,) = [args[0] for op, args, _ in query.ops if op == "update"]
    assert payload["lead_score"] == 72
    assert payload["last_activity_at"] == "2025-06-10T08:00:00+00:00"
    assert payload["updated_at"] is not None
    assert query.has("eq", "id", str(LEAD_1))
    assert query.has("eq", "organization_id", str(ORG_A))


def test_save_score_without_activity_writes_null(client) -> None:
    SupabaseLeadScoreStore(client).save_score(LEAD_1, ORG_A, 30, None)

    (query,) = client.queries_for("leads")
    (payload,) = [args[0] for op, args, _ in query.ops if op == "update"]
    assert payload["last_activity_at"] is None


def test_save_score_error_response_raises(client) -> None:
    client.respond("leads", error="row level security violation")

    with pytest.raises(RuntimeError, match="save lead score"):
        SupabaseLeadScoreStore(client).save_score(LEAD_1, ORG_A, 30, None)


def test_list_lead_ids_pages_through_results(client) -> None:
    client.respond("leads", data=[{"id": str(LEAD_1)}, {"id": str(LEAD_2)}])
    client.respond("leads", data=[{"id": str(LEAD_3)}])

    lead_ids = SupabaseLeadScoreStore(client, page_size=2).list_lead_ids(ORG_A)

    assert lead_ids == [LEAD_1, LEAD_2, LEAD_3]
    first_page, second_page = client.queries_for("leads")
    assert first_page.has("range", 0, 1)
    assert second_page.has("range", 2, 3)
    assert first_page.has("eq", "organization_id", str(ORG_A))


def test_list_lead_ids_stops_on_empty_page(client) -> None:
    client.respond("leads", data=[{"id": str(LEAD_1)}, {"id": str(LEAD_2)}])

    lead_ids = SupabaseLeadScoreStore(client, page_size=2).list_lead_ids(ORG_A)

    assert lead_ids == [LEAD_1, LEAD_2]
    assert len(client.queries_for("leads")) == 2


def test_list_scores_keeps_unset_scores(client) -> None:
    client.respond(
        "leads",
        data=[
            {"id": str(LEAD_1), "lead_score": 81},
            {"id": str(LEAD_2), "lead_score": None},
            {"id": str(LEAD_3), "lead_score": 12},
        ],
    )

    assert SupabaseLeadScoreStore(client).list_scores(ORG_A) == [81, None, 12]


def test_list_scores_error_response_raises(client) -> None:
    client.respond("leads", error="timeout")

    with pytest.raises(RuntimeError, match="list lead scores"):
        SupabaseLeadScoreStore(client).list_scores(ORG_A)


@pytest.fixture
def fresh_supabase():
    import repositories.client as supabase_client

    supabase_client.get_supabase.cache_clear()
    yield supabase_client
    supabase_client.get_supabase.cache_clear()


def test_get_supabase_requires_credentials(monkeypatch, fresh_supabase) -> None:
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_KEY", raising=False)

    with pytest.raises(RuntimeError, match="SUPABASE_URL"):
        fresh_supabase.get_supabase()

    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    with pytest.raises(RuntimeError, match="SUPABASE_KEY"):
        fresh_supabase.get_supabase()


def test_get_supabase_is_created_once(monkeypatch, fresh_supabase) -> None:
    created = []
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "service-role-key")
    monkeypatch.setattr(
        fresh_supabase,
        "create_client",
        lambda url, key: created.append((url, key)) or FakeSupabaseClient(),
    )

    first = fresh_supabase.get_supabase()
    second = fresh_supabase.get_supabase()

    assert first is second
    assert created == [("https://project.supabase.co", "service-role-key")]


def test_store_without_credentials_degrades_to_store_error(monkeypatch, fresh_supabase) -> None:
    from services.lead_scoring_service import LeadScoreCalculator, ScoreStatus

    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_KEY", raising=False)

    result = LeadScoreCalculator(SupabaseLeadScoreStore()).score_lead(LEAD_1, ORG_A)

    assert result.status is ScoreStatus.STORE_ERROR
    assert "SUPABASE_URL" in result.reason
