from __future__ import annotations

import io
import logging
from decimal import Decimal

import pytest

from src.claims_system.claims_system.claims.model import AttachmentUpload, ClaimUpdate, NewClaim
from src.claims_system.claims_system.claims.service import ClaimService
from src.claims_system.claims_system.core.constants import MAX_ATTACHMENT_BYTES
from src.claims_system.claims_system.core.enums import ClaimStatus
from src.claims_system.claims_system.core.exceptions import (
    AttachmentTooLargeError,
    ConcurrencyConflictError,
    InvalidTransitionError,
    NotFoundError,
    UnsupportedAttachmentTypeError,
    ValidationError,
)

LECTURER = "lecturer@uni.test"
OTHER_LECTURER = "other@uni.test"
MANAGER = "manager@uni.test"


def _new_claim(hours="10", rate="20", total="150", **kw):
    return NewClaim(hours_worked=Decimal(hours), hourly_rate=Decimal(rate), total_amount=Decimal(total), **kw)


def _upload(name="timesheet.pdf", data=b"%PDF-1.4 demo", size=None):
    return AttachmentUpload(filename=name, content_length=len(data) if size is None else size, stream=io.BytesIO(data))


@pytest.fixture
def service(claims_repo, attachments, fixed_now):
    return ClaimService(claims_repo, attachments, clock=lambda: fixed_now)


def test_submit_creates_pending_claim_owned_by_caller(service, fixed_now):
    claim = service.submit(caller_identity=LECTURER, new_claim=_new_claim(document_type="Timesheet", notes="March"))

    assert claim.claim_id == 1
    assert claim.status == ClaimStatus.PENDING
    assert claim.submitter_identity == LECTURER
    assert claim.submitted_date == fixed_now
    assert claim.document_type == "Timesheet"
    assert claim.notes == "March"
    assert claim.approval_by is None
    assert claim.approval_date is None
    assert claim.comments is None
    assert not claim.has_attachment


def test_submit_keeps_caller_supplied_total(service):
    claim = service.submit(caller_identity=LECTURER, new_claim=_new_claim(hours="10", rate="20", total="0"))

    assert claim.total_amount == Decimal("0")


def test_submit_stores_attachment_under_generated_name(service, attachments):
    claim = service.submit(caller_identity=LECTURER, new_claim=_new_claim(), attachment=_upload("My Sheet.PDF"))

    assert claim.original_file_name == "My Sheet.PDF"
    assert claim.stored_file_reference.startswith("/images/")
    assert claim.stored_file_reference.endswith(".PDF")
    stored_name = claim.stored_file_reference.rsplit("/", 1)[1]
    assert stored_name != "My Sheet.PDF"
    assert attachments.blobs[stored_name] == b"%PDF-1.4 demo"


def test_two_uploads_of_same_file_get_distinct_references(service):
    a = service.submit(caller_identity=LECTURER, new_claim=_new_claim(), attachment=_upload("a.png"))
    b = service.submit(caller_identity=LECTURER, new_claim=_new_claim(), attachment=_upload("a.png"))

    assert a.stored_file_reference != b.stored_file_reference


@pytest.mark.parametrize("name", ["a.pdf", "b.DOCX", "c.xlsx", "d.Png", "e.jpeg", "f.JPG"])
def test_submit_accepts_allowed_extensions(service, name):
    claim = service.submit(caller_identity=LECTURER, new_claim=_new_claim(), attachment=_upload(name))

    assert claim.original_file_name == name


@pytest.mark.parametrize("name", ["script.exe", "notes.txt", "archive.pdf.zip", "noextension"])
def test_submit_rejects_unsupported_extension(service, claims_repo, attachments, name):
    with pytest.raises(UnsupportedAttachmentTypeError) as exc:
        service.submit(caller_identity=LECTURER, new_claim=_new_claim(), attachment=_upload(name))

    assert isinstance(exc.value, ValidationError)
    assert exc.value.field == "attachment"
    assert claims_repo.rows == {}
    assert attachments.blobs == {}


def test_submit_rejects_oversized_attachment_without_side_effects(service, claims_repo, attachments):
    too_big = _upload("big.pdf", data=b"x", size=MAX_ATTACHMENT_BYTES + 1)

    with pytest.raises(AttachmentTooLargeError) as exc:
        service.submit(caller_identity=LECTURER, new_claim=_new_claim(), attachment=too_big)

    assert isinstance(exc.value, ValidationError)
    assert "5MB" in str(exc.value)
    assert claims_repo.rows == {}
    assert attachments.blobs == {}


def test_submit_accepts_attachment_of_exactly_five_mib(service):
    claim = service.submit(
        caller_identity=LECTURER,
        new_claim=_new_claim(),
        attachment=_upload("limit.pdf", data=b"x", size=MAX_ATTACHMENT_BYTES),
    )

    assert claim.has_attachment


def test_empty_upload_is_treated_as_no_attachment(service, attachments):
    claim = service.submit(caller_identity=LECTURER, new_claim=_new_claim(), attachment=_upload("empty.exe", data=b""))

    assert not claim.has_attachment
    assert attachments.blobs == {}


def test_submit_rejects_negative_amounts(service, claims_repo):
    with pytest.raises(ValidationError) as exc:
        service.submit(caller_identity=LECTURER, new_claim=_new_claim(hours="-1"))

    assert exc.value.field == "hours_worked"
    assert claims_repo.rows == {}


def test_list_own_only_returns_callers_claims(service):
    service.submit(caller_identity=LECTURER, new_claim=_new_claim())
    service.submit(caller_identity=OTHER_LECTURER, new_claim=_new_claim())
    service.submit(caller_identity=LECTURER, new_claim=_new_claim())

    own = service.list_own(caller_identity=LECTURER)

    assert [c.claim_id for c in own] == [1, 3]
    assert all(c.submitter_identity == LECTURER for c in own)


def test_pending_and_history_partition_by_status(service):
    for _ in range(3):
        service.submit(caller_identity=LECTURER, new_claim=_new_claim())
    service.approve(caller_identity=MANAGER, claim_id=1)
    service.reject(caller_identity=MANAGER, claim_id=2, comment="No timesheet")

    assert [c.claim_id for c in service.list_pending()] == [3]
    assert sorted(c.claim_id for c in service.list_history()) == [1, 2]


def test_get_details_unknown_id_raises_not_found(service):
    with pytest.raises(NotFoundError):
        service.get_details(42)


def test_reject_scenario_keeps_approval_fields_empty(service):
    created = service.submit(caller_identity=LECTURER, new_claim=_new_claim(hours="10", rate="20", total="0"))
    assert created.status == ClaimStatus.PENDING

    service.reject(caller_identity=MANAGER, claim_id=created.claim_id, comment="Missing receipt")
    claim = service.get_details(created.claim_id)

    assert claim.status == ClaimStatus.REJECTED
    assert claim.comments == "Missing receipt"
    assert claim.approval_date is None
    assert claim.approval_by is None
    assert claim.total_amount == Decimal("0")


def test_approve_sets_date_but_not_reviewer_or_comments(service, fixed_now):
    created = service.submit(caller_identity=LECTURER, new_claim=_new_claim())

    claim = service.approve(caller_identity=MANAGER, claim_id=created.claim_id)

    assert claim.status == ClaimStatus.APPROVED
    assert claim.approval_date == fixed_now
    assert claim.approval_by is None
    assert claim.comments is None


def test_reject_and_approve_unknown_claim_raise_not_found(service):
    with pytest.raises(NotFoundError):
        service.reject(caller_identity=MANAGER, claim_id=9, comment="x")
    with pytest.raises(NotFoundError):
        service.approve(caller_identity=MANAGER, claim_id=9)


def test_reject_without_comment_stores_empty_string(service):
    created = service.submit(caller_identity=LECTURER, new_claim=_new_claim())

    claim = service.reject(caller_identity=MANAGER, claim_id=created.claim_id, comment=None)

    assert claim.comments == ""


def test_approve_after_reject_is_permitted_and_logged(service, caplog):
    created = service.submit(caller_identity=LECTURER, new_claim=_new_claim())
    service.reject(caller_identity=MANAGER, claim_id=created.claim_id, comment="Missing receipt")

    with caplog.at_level(logging.WARNING, logger="src.claims_system.claims_system.claims.service"):
        claim = service.approve(caller_identity=MANAGER, claim_id=created.claim_id)

    assert claim.status == ClaimStatus.APPROVED
    assert any("terminal status Rejected" in r.getMessage() for r in caplog.records)


def test_strict_transitions_refuse_to_leave_terminal_state(claims_repo, attachments, fixed_now):
    strict = ClaimService(claims_repo, attachments, strict_transitions=True, clock=lambda: fixed_now)
    created = strict.submit(caller_identity=LECTURER, new_claim=_new_claim())
    strict.reject(caller_identity=MANAGER, claim_id=created.claim_id, comment="Missing receipt")

    with pytest.raises(InvalidTransitionError):
        strict.approve(caller_identity=MANAGER, claim_id=created.claim_id)

    assert strict.get_details(created.claim_id).status == ClaimStatus.REJECTED


def test_edit_updates_fields_and_bumps_version(service):
    created = service.submit(caller_identity=LECTURER, new_claim=_new_claim())

    edited = service.edit(
        caller_identity=LECTURER,
        claim_id=created.claim_id,
        update=ClaimUpdate(
            hours_worked=Decimal("12"),
            hourly_rate=Decimal("25"),
            total_amount=Decimal("300"),
            document_type="Invoice",
            notes="corrected",
        ),
    )

    assert edited.row_version == created.row_version + 1
    stored = service.get_details(created.claim_id)
    assert stored.hours_worked == Decimal("12")
    assert stored.total_amount == Decimal("300")
    assert stored.notes == "corrected"
    assert stored.submitter_identity == LECTURER
    assert stored.submitted_date == created.submitted_date
    assert stored.status == ClaimStatus.PENDING


def test_edit_with_new_attachment_orphans_previous_blob(service, attachments):
    created = service.submit(caller_identity=LECTURER, new_claim=_new_claim(), attachment=_upload("old.pdf"))

    edited = service.edit(
        caller_identity=LECTURER,
        claim_id=created.claim_id,
        update=ClaimUpdate(hours_worked=Decimal("1"), hourly_rate=Decimal("1"), total_amount=Decimal("1")),
        attachment=_upload("new.docx", data=b"docx"),
    )

    assert edited.stored_file_reference != created.stored_file_reference
    assert edited.original_file_name == "new.docx"
    assert len(attachments.blobs) == 2


def test_edit_rejects_invalid_attachment_and_keeps_claim(service):
    created = service.submit(caller_identity=LECTURER, new_claim=_new_claim())

    with pytest.raises(UnsupportedAttachmentTypeError):
        service.edit(
            caller_identity=LECTURER,
            claim_id=created.claim_id,
            update=ClaimUpdate(hours_worked=Decimal("99"), hourly_rate=Decimal("1"), total_amount=Decimal("1")),
            attachment=_upload("evil.bat"),
        )

    assert service.get_details(created.claim_id).hours_worked == Decimal("10")


def test_edit_unknown_claim_raises_not_found(service):
    with pytest.raises(NotFoundError):
        service.edit(
            caller_identity=LECTURER,
            claim_id=5,
            update=ClaimUpdate(hours_worked=Decimal("1"), hourly_rate=Decimal("1"), total_amount=Decimal("1")),
        )


def test_edit_with_stale_version_raises_conflict(service):
    created = service.submit(caller_identity=LECTURER, new_claim=_new_claim())
    service.approve(caller_identity=MANAGER, claim_id=created.claim_id)

    with pytest.raises(ConcurrencyConflictError):
        service.edit(
            caller_identity=LECTURER,
            claim_id=created.claim_id,
            update=ClaimUpdate(
                hours_worked=Decimal("1"),
                hourly_rate=Decimal("1"),
                total_amount=Decimal("1"),
                expected_version=created.row_version,
            ),
        )


def test_edit_losing_race_to_another_writer_raises_conflict(service, claims_repo):
    created = service.submit(caller_identity=LECTURER, new_claim=_new_claim())
    claims_repo.conflict_on_update.add(created.claim_id)

    with pytest.raises(ConcurrencyConflictError):
        service.edit(
            caller_identity=LECTURER,
            claim_id=created.claim_id,
            update=ClaimUpdate(hours_worked=Decimal("1"), hourly_rate=Decimal("1"), total_amount=Decimal("1")),
        )


def test_edit_of_claim_deleted_mid_request_raises_not_found(service, claims_repo):
    created = service.submit(caller_identity=LECTURER, new_claim=_new_claim())
    claims_repo.vanish_on_update.add(created.claim_id)

    with pytest.raises(NotFoundError):
        service.edit(
            caller_identity=LECTURER,
            claim_id=created.claim_id,
            update=ClaimUpdate(hours_worked=Decimal("1"), hourly_rate=Decimal("1"), total_amount=Decimal("1")),
        )


def test_delete_removes_claim_but_keeps_blob(service, attachments):
    created = service.submit(caller_identity=LECTURER, new_claim=_new_claim(), attachment=_upload())

    assert service.delete(caller_identity=MANAGER, claim_id=created.claim_id) is True
    with pytest.raises(NotFoundError):
        service.get_details(created.claim_id)
    assert len(attachments.blobs) == 1


def test_delete_unknown_claim_is_a_no_op(service):
    assert service.delete(caller_identity=LECTURER, claim_id=404) is False
    assert service.delete(caller_identity=LECTURER, claim_id=404) is False
