# blueprints/auth/routes.py
from __future__ import annotations
from functools import wraps
from typing import Callable, Optional

from flask import Blueprint, request, jsonify, abort, current_app
from flask_login import login_user, logout_user, login_required, current_user
from flask_wtf.csrf import CSRFError, generate_csrf

from extensions import login_manager
from models import Role, User

api_bp = Blueprint("auth_api", __name__)

# ---------- декораторы ролей ----------
def admin_required(fn: Callable):
    @wraps(fn)
    @login_required
    def wrapper(*args, **kwargs):
        if getattr(current_user, "role", None) != Role.ADMIN.value:
            abort(403)
        return fn(*args, **kwargs)
    return wrapper

def teacher_required(fn: Callable):
    @wraps(fn)
    @login_required
    def wrapper(*args, **kwargs):
        # пускаем teacher и admin (админу можно смотреть как учителю)
        if getattr(current_user, "role", None) not in (Role.TEACHER.value, Role.ADMIN.value):
            abort(403)
        return fn(*args, **kwargs)
    return wrapper

# ---------- обработчики 401/403/CSRF ----------
@login_manager.unauthorized_handler
def _unauth():
    return jsonify({"error": "unauthorized"}), 401

@api_bp.app_errorhandler(403)
def _forbidden(e):
    return jsonify({"error": "forbidden"}), 403

@api_bp.app_errorhandler(CSRFError)
def _csrf_failed(e: CSRFError):
    current_app.logger.info("csrf rejected", extra={"event": "csrf_failed", "path": request.path})
    return jsonify({"error": "csrf_failed", "detail": e.description}), 400

# ---------- API ----------
@api_bp.get("/auth/csrf")
def api_csrf():
    token = generate_csrf()
    resp = jsonify({"csrf_token": token})
    resp.set_cookie("csrf_token", token, samesite="Lax", httponly=False, path="/")
    return resp

@api_bp.post("/auth/login")
def api_login():
    payload = request.get_json(silent=True) or request.form or {}
    email = (payload.get("email") or "").strip().lower()
    password = payload.get("password") or ""

    if not email or not password:
        return jsonify({"error": "missing_credentials"}), 400

    user: Optional[User] = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        return jsonify({"error": "invalid_credentials"}), 401

    if not user.is_active:
        return jsonify({"error": "inactive"}), 403

    login_user(user, remember=True)
    return jsonify({"ok": True, "user": {
        "id": user.id, "email": user.email, "role": user.role, "schoolId": user.school_id,
    }})

@api_bp.post("/auth/logout")
@login_required
def api_logout():
    logout_user()
    return jsonify({"ok": True})

@api_bp.get("/auth/me")
@login_required
def api_me():
    return jsonify({"id": current_user.id, "name": current_user.name, "email": current_user.email,
                    "role": current_user.role, "schoolId": current_user.school_id})
