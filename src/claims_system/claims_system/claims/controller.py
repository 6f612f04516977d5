from __future__ import annotations

import os
from typing import Optional

from flask import Flask, abort, flash, redirect, render_template, request, send_from_directory, url_for

from ..common.authorization import current_caller, login_required, roles_required
from ..common.validators import parse_decimal
from ..core.enums import REVIEWER_ROLES, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..container import Container
from .model import AttachmentUpload, Claim, ClaimUpdate, NewClaim


def register(app: Flask, container: Container) -> None:
    service = container.claim_service

    def _read_upload() -> Optional[AttachmentUpload]:
        file = request.files.get("attachment")
        if file is None or not file.filename:
            return None

        stream = file.stream
        stream.seek(0, os.SEEK_END)
        size = stream.tell()
        stream.seek(0)
        return AttachmentUpload(filename=file.filename, content_length=size, stream=stream)

    def _form_amounts() -> dict:
        return dict(
            hours_worked=parse_decimal(request.form.get("hours_worked"), "Hours worked", field="hours_worked"),
            hourly_rate=parse_decimal(request.form.get("hourly_rate"), "Hourly rate", field="hourly_rate"),
            total_amount=parse_decimal(request.form.get("total_amount"), "Total amount", field="total_amount"),
        )

    def _load_or_404(claim_id: int) -> Claim:
        try:
            return service.get_details(claim_id)
        except NotFoundError:
            abort(404)

    def _form_error(e: ValidationError) -> dict[str, str]:
        flash(str(e), "danger")
        return {e.field or "": str(e)}

    @app.route("/Claims", methods=["GET"], endpoint="claims_index")
    @roles_required(Role.LECTURER)
    def claims_index():
        claims = service.list_own(caller_identity=current_caller().identity)
        return render_template("claims/index.html", claims=claims, active_page="claims_index")

    @app.route("/Claims/PendingClaims", methods=["GET"], endpoint="pending_claims")
    @roles_required(*REVIEWER_ROLES)
    def pending_claims():
        return render_template("claims/pending.html", claims=service.list_pending(), active_page="pending_claims")

    @app.route("/Claims/ClaimHistory", methods=["GET"], endpoint="claim_history")
    @roles_required(*REVIEWER_ROLES)
    def claim_history():
        return render_template("claims/history.html", claims=service.list_history(), active_page="claim_history")

    @app.route("/Claims/Details/<int:claim_id>", methods=["GET"], endpoint="claim_details")
    @login_required
    def claim_details(claim_id: int):
        return render_template("claims/details.html", claim=_load_or_404(claim_id))

    @app.route("/Claims/Create", methods=["GET", "POST"], endpoint="create_claim")
    @roles_required(Role.LECTURER)
    def create_claim():
        errors: dict[str, str] = {}
        if request.method == "POST":
            try:
                new_claim = NewClaim(
                    **_form_amounts(),
                    document_type=request.form.get("document_type", ""),
                    notes=request.form.get("notes", ""),
                )
                claim = service.submit(
                    caller_identity=current_caller().identity,
                    new_claim=new_claim,
                    attachment=_read_upload(),
                )
                flash(f"Claim #{claim.claim_id} submitted.", "success")
                return redirect(url_for("claims_index"))
            except ValidationError as e:
                errors = _form_error(e)

        return render_template("claims/create.html", form=request.form, errors=errors, active_page="create_claim")

    @app.route("/Claims/Edit/<int:claim_id>", methods=["GET", "POST"], endpoint="edit_claim")
    @login_required
    def edit_claim(claim_id: int):
        claim = _load_or_404(claim_id)
        errors: dict[str, str] = {}

        if request.method == "POST":
            try:
                version = request.form.get("row_version")
                update = ClaimUpdate(
                    **_form_amounts(),
                    document_type=request.form.get("document_type", ""),
                    notes=request.form.get("notes", ""),
                    expected_version=int(version) if version and version.isdigit() else None,
                )
                service.edit(
                    caller_identity=current_caller().identity,
                    claim_id=claim_id,
                    update=update,
                    attachment=_read_upload(),
                )
                flash("Claim updated.", "success")
                return redirect(url_for("claim_details", claim_id=claim_id))
            except NotFoundError:
                abort(404)
            except ValidationError as e:
                errors = _form_error(e)

        return render_template("claims/edit.html", claim=claim, form=request.form, errors=errors)

    @app.route("/Claims/Delete/<int:claim_id>", methods=["GET", "POST"], endpoint="delete_claim")
    @login_required
    def delete_claim(claim_id: int):
        if request.method == "GET":
            return render_template("claims/delete.html", claim=_load_or_404(claim_id))

        service.delete(caller_identity=current_caller().identity, claim_id=claim_id)
        flash("Claim deleted.", "success")
        return redirect(url_for("dashboard"))

    @app.route("/Claims/Reject/<int:claim_id>", methods=["POST"], endpoint="reject_claim")
    @login_required
    def reject_claim(claim_id: int):
        try:
            service.reject(
                caller_identity=current_caller().identity,
                claim_id=claim_id,
                comment=request.form.get("comment", ""),
            )
            flash(f"Claim #{claim_id} rejected.", "info")
        except NotFoundError:
            abort(404)
        except ValidationError as e:
            flash(str(e), "danger")
        return redirect(url_for("pending_claims"))

    @app.route("/Claims/Approve/<int:claim_id>", methods=["POST"], endpoint="approve_claim")
    @login_required
    def approve_claim(claim_id: int):
        try:
            service.approve(caller_identity=current_caller().identity, claim_id=claim_id)
            flash(f"Claim #{claim_id} approved.", "success")
        except NotFoundError:
            abort(404)
        except ValidationError as e:
            flash(str(e), "danger")
        return redirect(url_for("pending_claims"))

    @app.route(f"{app.config.get('UPLOAD_URL_PREFIX', '/images')}/<path:filename>", endpoint="attachment")
    @login_required
    def attachment(filename: str):
        return send_from_directory(app.config["UPLOAD_FOLDER"], filename)
