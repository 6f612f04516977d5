from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import BinaryIO, Optional

from ..core.enums import ClaimStatus


@dataclass(frozen=True)
class Claim:
    """Domain entity: an hourly-work claim submitted by a lecturer.

    ``row_version`` is the optimistic-concurrency token; every successful
    update bumps it by one.
    """

    claim_id: int
    submitter_identity: str
    hours_worked: Decimal
    hourly_rate: Decimal
    total_amount: Decimal
    status: ClaimStatus
    submitted_date: datetime
    document_type: str = ""
    original_file_name: Optional[str] = None
    stored_file_reference: Optional[str] = None
    approval_by: Optional[str] = None
    approval_date: Optional[datetime] = None
    comments: Optional[str] = None
    notes: str = ""
    row_version: int = 1

    @property
    def has_attachment(self) -> bool:
        return bool(self.stored_file_reference)


@dataclass(frozen=True)
class NewClaim:
    hours_worked: Decimal
    hourly_rate: Decimal
    total_amount: Decimal
    document_type: str = ""
    notes: str = ""


@dataclass(frozen=True)
class ClaimUpdate:
    hours_worked: Decimal
    hourly_rate: Decimal
    total_amount: Decimal
    document_type: str = ""
    notes: str = ""
    expected_version: Optional[int] = None


@dataclass(frozen=True)
class AttachmentUpload:
    """An uploaded document as the service sees it.

    ``content_length`` is the length measured on the request, not a streaming cap.
    """

    filename: str
    content_length: int
    stream: BinaryIO

    @property
    def extension(self) -> str:
        return os.path.splitext(self.filename)[1]
