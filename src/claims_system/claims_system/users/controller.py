from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, flash, g, redirect, render_template, request, session, url_for

from ..common.authorization import landing_endpoint, login_required
from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.exceptions import AuthenticationError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def _safe_next(target: str | None) -> str | None:
        # Only same-site relative paths.
        if target and target.startswith("/") and not target.startswith("//"):
            return target
        return None

    @app.route("/", methods=["GET", "POST"], endpoint="login")
    def login():
        if g.get("caller") is not None:
            return redirect(url_for("dashboard"))

        if request.method == "POST":
            email = request.form.get("email", "")
            password = request.form.get("password", "")
            remember = request.form.get("remember_me")

            try:
                s_user = container.auth_service.authenticate(email, password)

                session.clear()
                session.permanent = bool(remember)
                app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)
                session["user_id"] = s_user.user_id
                session["name"] = s_user.full_name
                logger.info("User %s logged in", s_user.email)

                flash("Logged in successfully.", "success")
                return redirect(_safe_next(request.args.get("next")) or url_for("dashboard"))
            except AuthenticationError as e:
                flash(str(e), "danger")

        return render_template("auth/login.html", email=request.form.get("email", ""))

    @app.route("/logout", endpoint="logout")
    def logout():
        caller = g.get("caller")
        if caller is not None:
            logger.info("User %s logged out", caller.identity)
        session.clear()
        flash("You have been logged out.", "info")
        return redirect(url_for("login"))

    @app.route("/register", methods=["GET", "POST"], endpoint="register")
    def register_account():
        errors: dict[str, str] = {}
        if request.method == "POST":
            try:
                container.user_service.register(
                    first_name=request.form.get("first_name", ""),
                    last_name=request.form.get("last_name", ""),
                    email=request.form.get("email", ""),
                    password=request.form.get("password", ""),
                )
                flash("Account created. An administrator will assign your role.", "success")
                return redirect(url_for("login"))
            except ValidationError as e:
                errors[e.field or ""] = str(e)
                flash(str(e), "danger")

        return render_template("auth/register.html", form=request.form, errors=errors)

    @app.route("/dashboard", endpoint="dashboard")
    @login_required
    def dashboard():
        endpoint = landing_endpoint(g.caller)
        if endpoint:
            return redirect(url_for(endpoint))
        return render_template("auth/no_roles.html")
