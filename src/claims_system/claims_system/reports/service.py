from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from ..common.datetime_utils import format_datetime
from ..core.enums import ClaimStatus
from ..claims.repository import ClaimRepository

REPORT_FIELDS = [
    "claim_id",
    "submitter",
    "submitted_date",
    "status",
    "hours_worked",
    "hourly_rate",
    "total_amount",
    "document_type",
    "approval_date",
    "comments",
]


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


class ClaimReportService:
    """Payout report over reviewed claims.

    Amounts are summed from the stored ``total_amount``; the report never
    recomputes hours x rate.
    """

    def __init__(self, claims: ClaimRepository):
        self._claims = claims

    def build_payout_report(self, *, statuses: Sequence[ClaimStatus] = (ClaimStatus.APPROVED,)) -> ReportData:
        claims = self._claims.list_by_statuses(list(statuses))

        summary_map: dict[str, dict] = {}
        out_rows: list[dict] = []

        for c in claims:
            out_rows.append(
                {
                    "claim_id": c.claim_id,
                    "submitter": c.submitter_identity,
                    "submitted_date": format_datetime(c.submitted_date),
                    "status": c.status.value,
                    "hours_worked": f"{c.hours_worked:.2f}",
                    "hourly_rate": f"{c.hourly_rate:.2f}",
                    "total_amount": f"{c.total_amount:.2f}",
                    "document_type": c.document_type,
                    "approval_date": format_datetime(c.approval_date),
                    "comments": c.comments or "",
                }
            )

            s = summary_map.get(c.submitter_identity)
            if not s:
                s = {
                    "submitter": c.submitter_identity,
                    "claims": 0,
                    "total_hours": Decimal("0"),
                    "total_amount": Decimal("0"),
                }
                summary_map[c.submitter_identity] = s
            s["claims"] += 1
            s["total_hours"] += c.hours_worked
            s["total_amount"] += c.total_amount

        summary = sorted(summary_map.values(), key=lambda x: x["total_amount"], reverse=True)
        for s in summary:
            s["total_hours"] = f"{s['total_hours']:.2f}"
            s["total_amount"] = f"{s['total_amount']:.2f}"

        return ReportData(rows=out_rows, summary=summary)
