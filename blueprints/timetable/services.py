# blueprints/timetable/services.py
from __future__ import annotations
import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from extensions import db
from models import ScheduleSlot
from .repository import SlotRepository
from .schemas import (
    ClassLessonOut, GridItemOut, PopulatedSlotOut, SlotIn, SlotOut, SlotPatch, TeacherRef,
)
from .validators import ClassSection

log = logging.getLogger(__name__)

TEACHER_NOT_FOUND = "Teacher not found in your school."
SLOT_NOT_FOUND = "Slot not found."
SLOT_TAKEN = "This slot is already assigned to another teacher."

# ---------- ошибки ----------
class SlotError(Exception):
    status = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class NotFound(SlotError):
    status = 404

class Conflict(SlotError):
    status = 400

# ---------- helpers ----------
def _slot_out(slot: ScheduleSlot) -> SlotOut:
    return SlotOut.model_validate({
        "id": slot.id, "school_id": slot.school_id, "teacher_id": slot.teacher_id,
        "weekday": slot.weekday, "period_index": slot.period_index,
        "subject": slot.subject, "class_section": slot.class_section,
    })

def _populated_out(slot: ScheduleSlot) -> PopulatedSlotOut:
    t = slot.teacher
    return PopulatedSlotOut.model_validate({
        "id": slot.id, "school_id": slot.school_id,
        "teacher_id": TeacherRef(id=t.id, name=t.name, email=t.email) if t else None,
        "weekday": slot.weekday, "period_index": slot.period_index,
        "subject": slot.subject, "class_section": slot.class_section,
    })

def _commit_or_conflict(school_id: int) -> None:
    # уникальный индекс в БД ловит гонку, которую не видит предварительная проверка
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        log.warning("slot uniqueness violated on commit",
                    extra={"event": "slot_conflict_race", "school_id": school_id})
        raise Conflict(SLOT_TAKEN)

# ---------- запись ----------
def assign_slot(school_id: int, data: SlotIn) -> SlotOut:
    repo = SlotRepository(school_id)
    if repo.get_teacher(data.teacher_id) is None:
        raise NotFound(TEACHER_NOT_FOUND)

    if repo.find_conflict(data.class_section, data.weekday, data.period_index):
        raise Conflict(SLOT_TAKEN)

    slot = repo.add(ScheduleSlot(
        teacher_id=data.teacher_id,
        weekday=data.weekday,
        period_index=data.period_index,
        subject=data.subject,
        class_section=data.class_section,
    ))
    _commit_or_conflict(school_id)
    log.info("slot assigned", extra={"event": "slot_assigned", "school_id": school_id, "slot_id": slot.id})
    return _slot_out(slot)

def edit_slot(school_id: int, slot_id: int, patch: SlotPatch) -> SlotOut:
    """Частичное обновление пары с повторной проверкой занятости (без учёта самой пары)."""
    repo = SlotRepository(school_id)
    slot = repo.get(slot_id)
    if slot is None:
        raise NotFound(SLOT_NOT_FOUND)

    new_teacher_id = patch.teacher_id if patch.teacher_id is not None else slot.teacher_id
    new_subject = patch.subject if patch.subject is not None else slot.subject
    new_class_section = patch.class_section if patch.class_section is not None else slot.class_section
    new_weekday = patch.weekday if patch.weekday is not None else slot.weekday
    new_period_index = patch.period_index if patch.period_index is not None else slot.period_index

    if new_teacher_id != slot.teacher_id and repo.get_teacher(new_teacher_id) is None:
        raise NotFound(TEACHER_NOT_FOUND)

    if repo.find_conflict(new_class_section, new_weekday, new_period_index, exclude_id=slot.id):
        raise Conflict(SLOT_TAKEN)

    slot.teacher_id = new_teacher_id
    slot.subject = new_subject
    slot.class_section = new_class_section
    slot.weekday = new_weekday
    slot.period_index = new_period_index
    _commit_or_conflict(school_id)
    log.info("slot updated", extra={"event": "slot_updated", "school_id": school_id, "slot_id": slot.id})
    return _slot_out(slot)

def delete_slot(school_id: int, slot_id: int) -> SlotOut:
    repo = SlotRepository(school_id)
    slot = repo.get(slot_id)
    if slot is None:
        raise NotFound(SLOT_NOT_FOUND)
    # снимок до commit: после удаления объект отвязан от сессии
    out = _slot_out(slot)
    repo.delete(slot)
    db.session.commit()
    log.info("slot deleted", extra={"event": "slot_deleted", "school_id": school_id, "slot_id": slot_id})
    return out

# ---------- чтение ----------
def teacher_schedule(school_id: int, teacher_id: int) -> List[SlotOut]:
    return [_slot_out(s) for s in SlotRepository(school_id).for_teacher(teacher_id).all()]

def all_slots(school_id: int) -> List[PopulatedSlotOut]:
    repo = SlotRepository(school_id)
    return [_populated_out(s) for s in repo.populated(repo.query())]

def teacher_slots(school_id: int, teacher_id: int) -> List[PopulatedSlotOut]:
    repo = SlotRepository(school_id)
    return [_populated_out(s) for s in repo.populated(repo.for_teacher(teacher_id))]

def schedule_grid(school_id: int, teacher_id: int) -> List[GridItemOut]:
    rows = (SlotRepository(school_id).for_teacher(teacher_id)
            .with_entities(ScheduleSlot.weekday, ScheduleSlot.period_index,
                           ScheduleSlot.subject, ScheduleSlot.class_section)
            .all())
    return [GridItemOut(weekday=w, period_index=p, subject=s, class_section=c) for w, p, s, c in rows]

def class_schedule(school_id: int, class_section: ClassSection) -> Dict[str, List[ClassLessonOut]]:
    """Расписание класса по дням: {"Day-0": [{period, subject, teacher, email}, ...], ...}.

    Номер урока в ответе считается с единицы. Если учитель удалён, вместо имени и
    почты отдаём "N/A".
    """
    repo = SlotRepository(school_id)
    grouped: Dict[str, List[ClassLessonOut]] = {}
    for slot in repo.populated(repo.for_class(str(class_section))):
        t = slot.teacher
        grouped.setdefault(f"Day-{slot.weekday}", []).append(ClassLessonOut(
            period=slot.period_index + 1,
            subject=slot.subject,
            teacher=(t.name if t and t.name else "N/A"),
            email=(t.email if t and t.email else "N/A"),
        ))
    return grouped

def subjects(school_id: int) -> List[str]:
    return sorted(SlotRepository(school_id).distinct(ScheduleSlot.subject))

def classes(school_id: int) -> List[str]:
    # параллель берём по ведущим цифрам, так что "12-Science" тоже даёт "12"
    grades = set()
    for raw in SlotRepository(school_id).distinct(ScheduleSlot.class_section):
        grade = ClassSection.grade_of(raw)
        if grade is not None:
            grades.add(grade)
    return sorted(grades, key=lambda g: (int(g), g))

def sections(school_id: int) -> List[str]:
    out = set()
    for raw in SlotRepository(school_id).distinct(ScheduleSlot.class_section):
        cs: Optional[ClassSection] = ClassSection.try_parse(raw)
        if cs is None:
            # старые записи до валидации на входе
            log.warning("skipping malformed class section %r", raw,
                        extra={"event": "bad_class_section", "school_id": school_id})
            continue
        out.add(cs.section)
    return sorted(out)
