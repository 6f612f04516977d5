"""Request-level authorization.

The caller is resolved once per request in ``before_request`` and kept on
``flask.g``; the decorators below reject a request before the view (and
therefore any service) runs. Views pass ``caller.identity`` on explicitly.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Callable, Optional

from flask import Flask, flash, g, redirect, render_template, request, session, url_for

from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from ..users.model import Caller

logger = logging.getLogger(__name__)


def install(app: Flask, resolve_caller: Callable[[int], Optional[Caller]]) -> None:
    @app.before_request
    def load_caller():
        g.caller = None
        user_id = session.get("user_id")
        if user_id is None:
            return None

        caller = resolve_caller(int(user_id))
        if caller is None:
            # Account removed or disabled since login.
            session.clear()
            return None
        g.caller = caller
        return None

    @app.context_processor
    def inject_caller():
        return {"current_user": g.get("caller")}


def current_caller() -> Caller:
    caller = g.get("caller")
    if caller is None:
        raise RuntimeError("current_caller() used outside an authenticated view")
    return caller


def render_forbidden(error: Optional[AuthorizationError] = None):
    if error is not None:
        logger.info("Denied %s %s: %s", request.method, request.path, error)
    return render_template("403.html"), 403


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if g.get("caller") is None:
            flash("Please log in to continue.", "warning")
            return redirect(url_for("login", next=request.path))
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    """Allow the view only for callers holding at least one of ``roles``."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            caller = g.get("caller")
            if caller is None:
                flash("Please log in to continue.", "warning")
                return redirect(url_for("login", next=request.path))
            if not caller.has_any(*roles):
                wanted = ", ".join(r.value if isinstance(r, Role) else str(r) for r in roles)
                raise AuthorizationError(f"{caller.identity} lacks any of {wanted}")
            return view(*args, **kwargs)

        return wrapper

    return decorator


def landing_endpoint(caller: Caller) -> Optional[str]:
    if caller.has_any(Role.LECTURER):
        return "claims_index"
    if caller.has_any(Role.MANAGER, Role.COORDINATOR):
        return "pending_claims"
    if caller.has_any(Role.ADMINISTRATOR):
        return "roles_index"
    return None
