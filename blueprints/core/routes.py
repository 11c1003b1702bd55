from __future__ import annotations
import json, logging
from datetime import datetime

from flask import g, jsonify, request
from flask_login import current_user
from werkzeug.wrappers.response import Response
from sqlalchemy import text

from extensions import db
from . import bp

LOG_EXTRA_KEYS = ("event", "path", "method", "status", "duration_ms", "school_id", "slot_id", "user_id")

class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.utcnow().isoformat(timespec="milliseconds") + "Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in LOG_EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)

def setup_structured_logging(app):
    # вешаем на root, чтобы модульные логгеры (getLogger(__name__)) писали в тот же поток
    root = logging.getLogger()
    has_json = any(
        isinstance(h, logging.StreamHandler)
        and isinstance(getattr(h, "formatter", None), JSONFormatter)
        for h in root.handlers
    )
    if not has_json:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
    level = app.config.get("LOG_LEVEL", "INFO")
    root.setLevel(level)
    app.logger.setLevel(level)

@bp.before_app_request
def _start_timer():
    g._req_start = datetime.utcnow()

@bp.after_app_request
def _log_request(response: Response):
    try:
        duration_ms = int((datetime.utcnow() - g._req_start).total_seconds() * 1000)
    except AttributeError:
        duration_ms = None
    extra = {
        "event": "http_request",
        "path": request.path,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": duration_ms,
    }
    if current_user.is_authenticated:
        extra["user_id"] = current_user.id
        extra["school_id"] = current_user.school_id
    logging.getLogger(__name__).info("request handled", extra=extra)
    return response

@bp.record_once
def _on_register(state):
    setup_structured_logging(state.app)

@bp.get("/health")
def health():
    db_ok = True
    try:
        db.session.execute(text("SELECT 1"))
    except Exception:
        logging.getLogger(__name__).exception("health check: database unavailable")
        db_ok = False
    return jsonify({
        "status": "ok" if db_ok else "degraded",
        "db": db_ok,
        "ts": datetime.utcnow().isoformat(timespec="seconds") + "Z",
    }), (200 if db_ok else 503)
