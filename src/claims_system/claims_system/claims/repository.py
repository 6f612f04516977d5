from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import ClaimStatus
from .model import Claim


class ClaimRepository(Protocol):
    """Repository interface for claims.

    Note (DIP): the lifecycle service depends on this interface, not on a concrete DB.
    """

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
        raise NotImplementedError

    def get_by_id(self, claim_id: int) -> Optional[Claim]:
        raise NotImplementedError

    def exists(self, claim_id: int) -> bool:
        raise NotImplementedError

    def list_by_submitter(self, submitter_identity: str) -> Sequence[Claim]:
        raise NotImplementedError

    def list_by_statuses(self, statuses: Sequence[ClaimStatus]) -> Sequence[Claim]:
        raise NotImplementedError

    def update_claim(self, claim: Claim, *, expected_version: int) -> bool:
        """Write every mutable column of ``claim``.

        Returns False when no row with ``claim_id`` and ``expected_version`` exists.
        """

        raise NotImplementedError

    def delete_by_id(self, claim_id: int) -> bool:
        raise NotImplementedError
