from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence

from ..core.enums import ClaimStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal
from .model import Claim
from .repository import ClaimRepository

_SELECT_CLAIM = """
    SELECT claim_id, submitter_identity, hours_worked, hourly_rate, total_amount,
           status, submitted_date, document_type, original_file_name,
           stored_file_reference, approval_by, approval_date, comments, notes,
           row_version
    FROM claims
"""


def _row_to_claim(r: Dict[str, Any]) -> Claim:
    return Claim(
        claim_id=int(r["claim_id"]),
        submitter_identity=r["submitter_identity"],
        hours_worked=to_decimal(r.get("hours_worked")),
        hourly_rate=to_decimal(r.get("hourly_rate")),
        total_amount=to_decimal(r.get("total_amount")),
        status=ClaimStatus(r["status"]),
        submitted_date=r["submitted_date"],
        document_type=r.get("document_type") or "",
        original_file_name=r.get("original_file_name"),
        stored_file_reference=r.get("stored_file_reference"),
        approval_by=r.get("approval_by"),
        approval_date=r.get("approval_date"),
        comments=r.get("comments"),
        notes=r.get("notes") or "",
        row_version=int(r.get("row_version") or 1),
    )


class MySQLClaimRepository(ClaimRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_claim(
        self,
        *,
        submitter_identity: str,
        hours_worked: Decimal,
        hourly_rate: Decimal,
        total_amount: Decimal,
        status: ClaimStatus,
        submitted_date: datetime,
        document_type: str,
        original_file_name: Optional[str],
        stored_file_reference: Optional[str],
        notes: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO claims(
                    submitter_identity, hours_worked, hourly_rate, total_amount, status,
                    submitted_date, document_type, original_file_name, stored_file_reference,
                    notes, row_version
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (
                    submitter_identity,
                    hours_worked,
                    hourly_rate,
                    total_amount,
                    status.value,
                    submitted_date,
                    document_type,
                    original_file_name,
                    stored_file_reference,
                    notes,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, claim_id: int) -> Optional[Claim]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT_CLAIM + " WHERE claim_id=%s", (int(claim_id),))
            row = fetchone(cur)
            return _row_to_claim(row) if row else None

    def exists(self, claim_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS found FROM claims WHERE claim_id=%s", (int(claim_id),))
            return fetchone(cur) is not None

    def list_by_submitter(self, submitter_identity: str) -> Sequence[Claim]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT_CLAIM + " WHERE submitter_identity=%s ORDER BY submitted_date DESC, claim_id DESC",
                (submitter_identity,),
            )
            return [_row_to_claim(r) for r in fetchall(cur)]

    def list_by_statuses(self, statuses: Sequence[ClaimStatus]) -> Sequence[Claim]:
        if not statuses:
            return []
        placeholders = ",".join(["%s"] * len(statuses))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT_CLAIM + f" WHERE status IN ({placeholders}) ORDER BY submitted_date DESC, claim_id DESC",
                tuple(s.value for s in statuses),
            )
            return [_row_to_claim(r) for r in fetchall(cur)]

    def update_claim(self, claim: Claim, *, expected_version: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE claims
                SET hours_worked=%s, hourly_rate=%s, total_amount=%s, status=%s,
                    document_type=%s, original_file_name=%s, stored_file_reference=%s,
                    approval_by=%s, approval_date=%s, comments=%s, notes=%s,
                    row_version=row_version+1
                WHERE claim_id=%s AND row_version=%s
                """,
                (
                    claim.hours_worked,
                    claim.hourly_rate,
                    claim.total_amount,
                    claim.status.value,
                    claim.document_type,
                    claim.original_file_name,
                    claim.stored_file_reference,
                    claim.approval_by,
                    claim.approval_date,
                    claim.comments,
                    claim.notes,
                    int(claim.claim_id),
                    int(expected_version),
                ),
            )
            return cur.rowcount > 0

    def delete_by_id(self, claim_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM claims WHERE claim_id=%s", (int(claim_id),))
            return cur.rowcount > 0
