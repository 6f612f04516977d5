from __future__ import annotations

from flask import Flask, flash, redirect, render_template, request, url_for

from ..common.authorization import roles_required
from ..core.enums import Role
from ..core.exceptions import NotFoundError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.role_service

    @app.route("/AppRoles", methods=["GET"], endpoint="roles_index")
    @roles_required(Role.ADMINISTRATOR)
    def roles_index():
        return render_template("roles/index.html", roles=service.list_roles(), active_page="roles_index")

    @app.route("/AppRoles/Create", methods=["GET", "POST"], endpoint="create_role")
    @roles_required(Role.ADMINISTRATOR)
    def create_role():
        errors: dict[str, str] = {}
        if request.method == "POST":
            name = request.form.get("Name", "")
            try:
                if service.create_role(name):
                    flash(f"Role {name.strip()} created.", "success")
                else:
                    flash(f"Role {name.strip()} already exists.", "info")
                return redirect(url_for("roles_index"))
            except ValidationError as e:
                errors[e.field or "Name"] = str(e)
                flash(str(e), "danger")

        return render_template("roles/create.html", form=request.form, errors=errors, active_page="create_role")

    @app.route("/AppRoles/Users", methods=["GET"], endpoint="role_users")
    @roles_required(Role.ADMINISTRATOR)
    def role_users():
        return render_template(
            "roles/users.html",
            users=service.list_users_with_roles(),
            roles=service.list_roles(),
            active_page="role_users",
        )

    @app.route("/AppRoles/Assign", methods=["POST"], endpoint="assign_role")
    @roles_required(Role.ADMINISTRATOR)
    def assign_role():
        email = request.form.get("email", "")
        role_name = request.form.get("role", "")
        try:
            if service.assign_role(email=email, role_name=role_name):
                flash(f"{email} is now {role_name}.", "success")
            else:
                flash(f"{email} already has role {role_name}.", "info")
        except (ValidationError, NotFoundError) as e:
            flash(str(e), "danger")
        return redirect(url_for("role_users"))

    @app.route("/AppRoles/Revoke", methods=["POST"], endpoint="revoke_role")
    @roles_required(Role.ADMINISTRATOR)
    def revoke_role():
        email = request.form.get("email", "")
        role_name = request.form.get("role", "")
        try:
            if service.revoke_role(email=email, role_name=role_name):
                flash(f"Removed role {role_name} from {email}.", "success")
            else:
                flash(f"{email} did not have role {role_name}.", "info")
        except (ValidationError, NotFoundError) as e:
            flash(str(e), "danger")
        return redirect(url_for("role_users"))
