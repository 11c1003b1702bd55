from __future__ import annotations
from datetime import datetime

from extensions import db

class ScheduleSlot(db.Model):
    """Одна пара: (учитель, день недели, номер урока, класс, предмет)."""
    __tablename__ = "schedule_slots"

    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    weekday = db.Column(db.Integer, nullable=False)  # 0..6
    period_index = db.Column(db.Integer, nullable=False)  # с нуля
    subject = db.Column(db.String(255), nullable=False)
    class_section = db.Column(db.String(16), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    teacher = db.relationship("User")

    # последний арбитр при гонке двух одновременных назначений
    __table_args__ = (
        db.UniqueConstraint("school_id", "class_section", "weekday", "period_index",
                            name="uq_schedule_slot_school_class_day_period"),
        db.Index("ix_schedule_slot_school_day_period", "school_id", "weekday", "period_index"),
        db.Index("ix_schedule_slot_school_teacher", "school_id", "teacher_id"),
    )

    def __repr__(self):
        return f"<ScheduleSlot {self.class_section} d{self.weekday} p{self.period_index}>"
