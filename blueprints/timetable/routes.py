# blueprints/timetable/routes.py
from __future__ import annotations
import logging
from functools import wraps
from typing import Callable, Optional

from flask import jsonify, request
from flask_login import current_user
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from extensions import db
from blueprints.auth.routes import admin_required, teacher_required
from . import api_bp
from . import services as svc
from .schemas import SlotIn, SlotPatch, dump
from .validators import ClassSection

log = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal server error"

# ---------- helpers ----------
def _school_id() -> int:
    return current_user.school_id

def _pydantic_errors_safe(ve: ValidationError):
    errs = ve.errors()
    for e in errs:
        if "ctx" in e and isinstance(e["ctx"], dict):
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
    return errs

def guarded(operation: str, message: str = INTERNAL_ERROR):
    """Непредвиденные ошибки: пишем в лог с контекстом, клиенту отдаём только общий текст."""
    def deco(fn: Callable):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except (svc.SlotError, ValidationError, HTTPException):
                raise
            except Exception:
                db.session.rollback()
                log.exception("%s error", operation, extra={
                    "event": "internal_error",
                    "school_id": getattr(current_user, "school_id", None),
                })
                return jsonify({"message": message}), 500
        return wrapper
    return deco

@api_bp.errorhandler(svc.SlotError)
def _slot_error(err: svc.SlotError):
    return jsonify({"message": err.message}), err.status

@api_bp.errorhandler(ValidationError)
def _validation_error(err: ValidationError):
    return jsonify({"message": "Invalid request.", "errors": _pydantic_errors_safe(err)}), 400

# ---------- запись (ADMIN) ----------
@api_bp.post("/schedule/slots")
@admin_required
@guarded("assignSlot")
def assign_slot():
    data = SlotIn.model_validate(request.get_json(silent=True) or {})
    slot = svc.assign_slot(_school_id(), data)
    return jsonify({"message": "Slot assigned.", "slot": dump(slot)}), 201

@api_bp.route("/schedule/slots/<int:slot_id>", methods=["PUT", "PATCH"])
@admin_required
@guarded("editSlot")
def edit_slot(slot_id: int):
    patch = SlotPatch.model_validate(request.get_json(silent=True) or {})
    slot = svc.edit_slot(_school_id(), slot_id, patch)
    return jsonify({"message": "Slot updated.", "slot": dump(slot)})

@api_bp.delete("/schedule/slots/<int:slot_id>")
@admin_required
@guarded("deleteSlot")
def delete_slot(slot_id: int):
    slot = svc.delete_slot(_school_id(), slot_id)
    return jsonify({"message": "Slot deleted.", "slot": dump(slot)})

# ---------- чтение ----------
@api_bp.get("/schedule/teachers/<int:teacher_id>")
@teacher_required
@guarded("getTeacherSchedule")
def teacher_schedule(teacher_id: int):
    slots = svc.teacher_schedule(_school_id(), teacher_id)
    return jsonify({"schedule": [dump(s) for s in slots]})

@api_bp.get("/schedule/me")
@teacher_required
@guarded("getMySchedule")
def my_schedule():
    slots = svc.teacher_schedule(_school_id(), current_user.id)
    return jsonify({"schedule": [dump(s) for s in slots]})

@api_bp.get("/schedule/slots")
@admin_required
@guarded("getAllSlots")
def all_slots():
    return jsonify({"slots": [dump(s) for s in svc.all_slots(_school_id())]})

@api_bp.get("/schedule/teachers/<int:teacher_id>/slots")
@admin_required
@guarded("getTeacherSlots")
def teacher_slots(teacher_id: int):
    return jsonify({"slots": [dump(s) for s in svc.teacher_slots(_school_id(), teacher_id)]})

@api_bp.get("/schedule/grid")
@api_bp.get("/schedule/grid/<int:teacher_id>")
@teacher_required
@guarded("getScheduleGrid", "Failed to fetch schedule grid.")
def schedule_grid(teacher_id: Optional[int] = None):
    # учитель видит только свою сетку, админ любого учителя своей школы
    if current_user.is_teacher:
        teacher_id = current_user.id
    elif teacher_id is None:
        return jsonify({"message": "teacherId is required."}), 400
    grid = svc.schedule_grid(_school_id(), teacher_id)
    return jsonify({"grid": [dump(g) for g in grid]})

@api_bp.get("/schedule/class/<section>")
@admin_required
@guarded("getClassSchedule", "Failed to fetch class schedule")
def class_schedule(section: str):
    try:
        cs = ClassSection.parse(section)
    except ValueError:
        return jsonify({"message": "Invalid class section."}), 400
    grouped = svc.class_schedule(_school_id(), cs)
    return jsonify({
        "classSection": str(cs),
        "schedule": {day: [dump(x) for x in items] for day, items in grouped.items()},
    })

@api_bp.get("/schedule/subjects")
@teacher_required
@guarded("getSubjects", "Failed to fetch subjects")
def subjects():
    return jsonify({"subjects": svc.subjects(_school_id())})

@api_bp.get("/schedule/classes")
@teacher_required
@guarded("getClasses", "Failed to fetch classes")
def classes():
    return jsonify({"classes": svc.classes(_school_id())})

@api_bp.get("/schedule/sections")
@teacher_required
@guarded("getSections", "Failed to fetch sections")
def sections():
    return jsonify({"sections": svc.sections(_school_id())})
