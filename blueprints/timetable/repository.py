# blueprints/timetable/repository.py
from __future__ import annotations
from typing import List, Optional

from sqlalchemy.orm import Query, joinedload

from extensions import db
from models import ScheduleSlot, User

class SlotRepository:
    """Доступ к расписанию одной школы.

    Фильтр по school_id подставляется здесь, а не в каждом запросе сервиса,
    поэтому выйти за пределы своей школы через этот класс нельзя.
    """

    def __init__(self, school_id: int):
        self.school_id = school_id

    # ---------- slots ----------
    def query(self) -> Query:
        return ScheduleSlot.query.filter(ScheduleSlot.school_id == self.school_id)

    def get(self, slot_id: int) -> Optional[ScheduleSlot]:
        return self.query().filter(ScheduleSlot.id == slot_id).first()

    def for_teacher(self, teacher_id: int) -> Query:
        return self.query().filter(ScheduleSlot.teacher_id == teacher_id)

    def for_class(self, class_section: str) -> Query:
        return self.query().filter(ScheduleSlot.class_section == class_section)

    def find_conflict(self, class_section: str, weekday: int, period_index: int,
                      exclude_id: Optional[int] = None) -> Optional[ScheduleSlot]:
        q = self.query().filter_by(class_section=class_section, weekday=weekday, period_index=period_index)
        if exclude_id is not None:
            q = q.filter(ScheduleSlot.id != exclude_id)
        return q.first()

    def add(self, slot: ScheduleSlot) -> ScheduleSlot:
        slot.school_id = self.school_id
        db.session.add(slot)
        return slot

    def delete(self, slot: ScheduleSlot) -> None:
        db.session.delete(slot)

    @staticmethod
    def populated(q: Query) -> List[ScheduleSlot]:
        """Подтягивает учителя одним JOIN'ом и сортирует по (день, урок)."""
        return (q.options(joinedload(ScheduleSlot.teacher))
                .order_by(ScheduleSlot.weekday.asc(), ScheduleSlot.period_index.asc(), ScheduleSlot.id.asc())
                .all())

    def distinct(self, column) -> List:
        rows = (db.session.query(column)
                .filter(ScheduleSlot.school_id == self.school_id)
                .distinct()
                .all())
        return [r[0] for r in rows]

    # ---------- users ----------
    def get_teacher(self, teacher_id: int) -> Optional[User]:
        return User.query.filter_by(id=teacher_id, school_id=self.school_id).first()
