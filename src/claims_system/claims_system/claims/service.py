from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Collection, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty, require_non_negative
from ..core.constants import ALLOWED_ATTACHMENT_EXTENSIONS, MAX_ATTACHMENT_BYTES
from ..core.enums import HISTORY_STATUSES, ClaimStatus
from ..core.exceptions import (
    AttachmentTooLargeError,
    ConcurrencyConflictError,
    InvalidTransitionError,
    NotFoundError,
    UnsupportedAttachmentTypeError,
)
from .attachment_store import AttachmentStore
from .model import AttachmentUpload, Claim, ClaimUpdate, NewClaim
from .repository import ClaimRepository

logger = logging.getLogger(__name__)


class ClaimService:
    """Use case: the claim lifecycle (submit, review, edit, delete).

    Role checks happen at the HTTP boundary before any method here runs; the
    service only receives the caller identity it needs to record ownership.

    Approve and Reject do not require the claim to be Pending. Leaving a
    terminal state is logged as a warning unless ``strict_transitions`` is on,
    in which case it raises ``InvalidTransitionError``.
    """

    def __init__(
        self,
        claims: ClaimRepository,
        attachments: AttachmentStore,
        *,
        max_attachment_bytes: int = MAX_ATTACHMENT_BYTES,
        allowed_extensions: Collection[str] = ALLOWED_ATTACHMENT_EXTENSIONS,
        strict_transitions: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._claims = claims
        self._attachments = attachments
        self._max_attachment_bytes = int(max_attachment_bytes)
        self._allowed_extensions = frozenset(e.lower() for e in allowed_extensions)
        self._strict_transitions = bool(strict_transitions)
        self._clock = clock or now_local

    # -------- Attachments --------
    def _validate_attachment(self, attachment: Optional[AttachmentUpload]) -> Optional[AttachmentUpload]:
        # An empty file part means "no attachment".
        if attachment is None or not attachment.filename or attachment.content_length <= 0:
            return None

        if attachment.content_length > self._max_attachment_bytes:
            limit_mb = self._max_attachment_bytes // (1024 * 1024)
            raise AttachmentTooLargeError(f"File size cannot exceed {limit_mb}MB.", field="attachment")

        if attachment.extension.lower() not in self._allowed_extensions:
            allowed = ", ".join(sorted(e.lstrip(".").upper() for e in self._allowed_extensions))
            raise UnsupportedAttachmentTypeError(
                f"Invalid file type. Only {allowed} files are allowed.",
                field="attachment",
            )

        return attachment

    def _store_attachment(self, attachment: AttachmentUpload) -> str:
        stored_name = f"{uuid.uuid4().hex}{attachment.extension}"
        return self._attachments.save(attachment.stream, stored_name)

    @staticmethod
    def _check_amounts(hours_worked, hourly_rate, total_amount) -> None:
        require_non_negative(hours_worked, "Hours worked", field="hours_worked")
        require_non_negative(hourly_rate, "Hourly rate", field="hourly_rate")
        require_non_negative(total_amount, "Total amount", field="total_amount")

    # -------- Persistence helpers --------
    def _save(self, claim: Claim, *, expected_version: int) -> Claim:
        if self._claims.update_claim(claim, expected_version=expected_version):
            return replace(claim, row_version=int(expected_version) + 1)

        # The write matched nothing: either the row is gone or someone else changed it.
        if not self._claims.exists(claim.claim_id):
            raise NotFoundError(f"Claim {claim.claim_id} not found")
        raise ConcurrencyConflictError(
            f"Claim {claim.claim_id} was modified by another request (expected version {expected_version})"
        )

    def _check_transition(self, claim: Claim, target: ClaimStatus, caller_identity: str) -> None:
        if not claim.status.is_terminal:
            return

        if self._strict_transitions:
            raise InvalidTransitionError(f"Claim {claim.claim_id} has already been {claim.status.value.lower()}")

        logger.warning(
            "Claim %s moved from terminal status %s to %s by %s",
            claim.claim_id,
            claim.status.value,
            target.value,
            caller_identity,
        )

    # -------- Queries --------
    def get_details(self, claim_id: int) -> Claim:
        claim = self._claims.get_by_id(int(claim_id))
        if not claim:
            raise NotFoundError(f"Claim {claim_id} not found")
        return claim

    def list_own(self, *, caller_identity: str) -> Sequence[Claim]:
        return self._claims.list_by_submitter(caller_identity)

    def list_pending(self) -> Sequence[Claim]:
        return self._claims.list_by_statuses([ClaimStatus.PENDING])

    def list_history(self) -> Sequence[Claim]:
        return self._claims.list_by_statuses(list(HISTORY_STATUSES))

    # -------- Commands --------
    def submit(
        self,
        *,
        caller_identity: str,
        new_claim: NewClaim,
        attachment: Optional[AttachmentUpload] = None,
    ) -> Claim:
        submitter = require_non_empty(caller_identity, "Submitter")
        self._check_amounts(new_claim.hours_worked, new_claim.hourly_rate, new_claim.total_amount)
        upload = self._validate_attachment(attachment)

        original_file_name = None
        stored_file_reference = None
        if upload:
            stored_file_reference = self._store_attachment(upload)
            original_file_name = upload.filename

        claim_id = self._claims.create_claim(
            submitter_identity=submitter,
            hours_worked=new_claim.hours_worked,
            hourly_rate=new_claim.hourly_rate,
            total_amount=new_claim.total_amount,
            status=ClaimStatus.PENDING,
            submitted_date=self._clock(),
            document_type=(new_claim.document_type or "").strip(),
            original_file_name=original_file_name,
            stored_file_reference=stored_file_reference,
            notes=(new_claim.notes or "").strip(),
        )
        logger.info("Claim %s submitted by %s (attachment=%s)", claim_id, submitter, stored_file_reference or "-")
        return self.get_details(claim_id)

    def edit(
        self,
        *,
        caller_identity: str,
        claim_id: int,
        update: ClaimUpdate,
        attachment: Optional[AttachmentUpload] = None,
    ) -> Claim:
        current = self.get_details(claim_id)
        self._check_amounts(update.hours_worked, update.hourly_rate, update.total_amount)
        upload = self._validate_attachment(attachment)

        changes = dict(
            hours_worked=update.hours_worked,
            hourly_rate=update.hourly_rate,
            total_amount=update.total_amount,
            document_type=(update.document_type or "").strip(),
            notes=(update.notes or "").strip(),
        )
        if upload:
            if current.stored_file_reference:
                logger.warning(
                    "Claim %s: attachment %s replaced and left on disk",
                    current.claim_id,
                    current.stored_file_reference,
                )
            changes["stored_file_reference"] = self._store_attachment(upload)
            changes["original_file_name"] = upload.filename

        expected = update.expected_version if update.expected_version is not None else current.row_version
        saved = self._save(replace(current, **changes), expected_version=int(expected))
        logger.info("Claim %s edited by %s", saved.claim_id, caller_identity)
        return saved

    def delete(self, *, caller_identity: str, claim_id: int) -> bool:
        deleted = self._claims.delete_by_id(int(claim_id))
        if deleted:
            logger.info("Claim %s deleted by %s", claim_id, caller_identity)
        else:
            logger.debug("Delete of missing claim %s by %s ignored", claim_id, caller_identity)
        return deleted

    def reject(self, *, caller_identity: str, claim_id: int, comment: Optional[str]) -> Claim:
        claim = self.get_details(claim_id)
        self._check_transition(claim, ClaimStatus.REJECTED, caller_identity)

        saved = self._save(
            replace(claim, status=ClaimStatus.REJECTED, comments=comment if comment is not None else ""),
            expected_version=claim.row_version,
        )
        logger.info("Claim %s rejected by %s", saved.claim_id, caller_identity)
        return saved

    def approve(self, *, caller_identity: str, claim_id: int) -> Claim:
        claim = self.get_details(claim_id)
        self._check_transition(claim, ClaimStatus.APPROVED, caller_identity)

        # approval_by is left as-is; only the date is recorded on approval.
        saved = self._save(
            replace(claim, status=ClaimStatus.APPROVED, approval_date=self._clock()),
            expected_version=claim.row_version,
        )
        logger.info("Claim %s approved by %s", saved.claim_id, caller_identity)
        return saved
