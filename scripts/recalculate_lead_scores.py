#!/usr/bin/env python3
"""
Lead Score Recalculation Script

Recomputes lead scores for one lead or for every lead of an organization and
writes them back to Supabase.

Usage:
    python recalculate_lead_scores.py --organization-id <uuid>
    python recalculate_lead_scores.py --organization-id <uuid> --lead-id <uuid>
    python recalculate_lead_scores.py --organization-id <uuid> --verbose

Exits 1 when the leads cannot be listed or any lead hits a store error.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional
from uuid import UUID

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.lead_score import ScoreCategory
from services.lead_scoring_service import (
    LeadScoreCalculator,
    LeadScoreReport,
    ScoreStatus,
    get_default_calculator,
    summarize_scores,
)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Recalculate CRM lead scores and persist them",
    )
    parser.add_argument(
        "--organization-id",
        type=UUID,
        required=True,
        help="Organization (tenant) whose leads are scored",
    )
    parser.add_argument(
        "--lead-id",
        type=UUID,
        help="Score only this lead (default: every lead of the organization)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print each lead's score and enable debug logging",
    )
    return parser.parse_args(argv)


def recalculate_single(calculator: LeadScoreCalculator, organization_id: UUID, lead_id: UUID) -> int:
    result = calculator.score_lead(lead_id, organization_id)

    if not result.succeeded:
        print(f"Lead {lead_id} was not scored ({result.status.value}): {result.reason}")
        return 1

    category = ScoreCategory.for_score(result.score)
    print(f"Lead {lead_id}: score {result.score} ({category.value})")
    return 0


def recalculate_all(calculator: LeadScoreCalculator, organization_id: UUID, verbose: bool) -> int:
    # A failed lead listing raises here and is reported by main() as an error.
    results = calculator.score_all_leads(organization_id, raise_on_listing_error=True)
    reports = [LeadScoreReport(lead_id=result.lead_id, score=result.score) for result in results]
    failed = [result for result in results if result.status is ScoreStatus.STORE_ERROR]

    if verbose:
        for report in reports:
            shown = "skipped" if report.score is None else str(report.score)
            print(f"  {report.lead_id}: {shown}")

    summary = summarize_scores(reports)

    print()
    print("=" * 60)
    print("LEAD SCORE RECALCULATION SUMMARY")
    print("=" * 60)
    print(f"Organization:        {organization_id}")
    print(f"Leads processed:     {summary.total}")
    print(f"  Hot  (>= 70):      {summary.hot}")
    print(f"  Warm (40-69):      {summary.warm}")
    print(f"  Cold (< 40):       {summary.cold}")
    print(f"  Skipped:           {summary.skipped}")
    print(f"  Store errors:      {len(failed)}")
    print("=" * 60)

    if failed:
        for result in failed:
            print(f"  {result.lead_id}: {result.reason}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[List[str]] = None, calculator: Optional[LeadScoreCalculator] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if calculator is None:
            calculator = get_default_calculator()

        if args.lead_id is not None:
            return recalculate_single(calculator, args.organization_id, args.lead_id)
        return recalculate_all(calculator, args.organization_id, args.verbose)

    except KeyboardInterrupt:
        print("\n\nRecalculation interrupted by user")
        return 130

    except Exception as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
