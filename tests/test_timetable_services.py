from __future__ import annotations
import logging
import pytest

from app import create_app
from extensions import db
from models import School, User, ScheduleSlot
from blueprints.timetable import services as svc
from blueprints.timetable.repository import SlotRepository
from blueprints.timetable.schemas import SlotIn, SlotPatch
from blueprints.timetable.validators import ClassSection

@pytest.fixture()
def app_ctx():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        s1 = School(name="School One")
        s2 = School(name="School Two")
        db.session.add_all([s1, s2]); db.session.commit()
        users = [
            User(school_id=s1.id, name="Admin", email="admin@example.com", role="admin"),
            User(school_id=s1.id, name="Ivan Petrov", email="petrov@example.com", role="teacher"),
            User(school_id=s1.id, name="Anna Smirnova", email="smirnova@example.com", role="teacher"),
            User(school_id=s2.id, name="Other Teacher", email="other@example.com", role="teacher"),
        ]
        for u in users:
            u.set_password("pass")
        db.session.add_all(users); db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()

def _ids():
    s1 = School.query.filter_by(name="School One").one().id
    s2 = School.query.filter_by(name="School Two").one().id
    petrov = User.query.filter_by(email="petrov@example.com").one().id
    smirnova = User.query.filter_by(email="smirnova@example.com").one().id
    other = User.query.filter_by(email="other@example.com").one().id
    return s1, s2, petrov, smirnova, other

def _slot(teacher_id, weekday=0, period_index=0, subject="Mathematics", class_section="10A"):
    return SlotIn(teacher_id=teacher_id, weekday=weekday, period_index=period_index,
                  subject=subject, class_section=class_section)

# ---------- assign ----------
def test_assign_visible_in_teacher_schedule_and_all_slots(app_ctx):
    s1, _, petrov, _, _ = _ids()
    out = svc.assign_slot(s1, _slot(petrov))
    assert out.id and out.school_id == s1 and out.class_section == "10A"

    assert [s.id for s in svc.teacher_schedule(s1, petrov)] == [out.id]
    all_ = svc.all_slots(s1)
    assert [s.id for s in all_] == [out.id]
    assert all_[0].teacher_id.name == "Ivan Petrov"
    assert all_[0].teacher_id.email == "petrov@example.com"

def test_assign_conflict_keeps_existing_slot(app_ctx):
    s1, _, petrov, smirnova, _ = _ids()
    first = svc.assign_slot(s1, _slot(petrov, subject="Mathematics"))

    with pytest.raises(svc.Conflict) as ei:
        svc.assign_slot(s1, _slot(smirnova, subject="History"))
    assert ei.value.message == svc.SLOT_TAKEN

    rows = ScheduleSlot.query.all()
    assert len(rows) == 1
    assert rows[0].id == first.id
    assert rows[0].teacher_id == petrov and rows[0].subject == "Mathematics"

def test_same_triple_allowed_in_other_school(app_ctx):
    s1, s2, petrov, _, other = _ids()
    svc.assign_slot(s1, _slot(petrov))
    out = svc.assign_slot(s2, _slot(other))
    assert out.school_id == s2

def test_assign_teacher_from_other_school_not_found(app_ctx):
    s1, _, _, _, other = _ids()
    with pytest.raises(svc.NotFound) as ei:
        svc.assign_slot(s1, _slot(other))
    assert ei.value.message == svc.TEACHER_NOT_FOUND
    assert ScheduleSlot.query.count() == 0

def test_assign_unknown_teacher_not_found(app_ctx):
    s1, *_ = _ids()
    with pytest.raises(svc.NotFound):
        svc.assign_slot(s1, _slot(9999))

def test_race_caught_by_unique_constraint_is_conflict(app_ctx, monkeypatch):
    s1, _, petrov, smirnova, _ = _ids()
    svc.assign_slot(s1, _slot(petrov))
    # имитируем гонку: предварительная проверка ничего не видит
    monkeypatch.setattr(SlotRepository, "find_conflict", lambda self, *a, **kw: None)

    with pytest.raises(svc.Conflict) as ei:
        svc.assign_slot(s1, _slot(smirnova, subject="History"))
    assert ei.value.message == svc.SLOT_TAKEN
    rows = ScheduleSlot.query.all()
    assert len(rows) == 1 and rows[0].teacher_id == petrov

# ---------- edit ----------
def test_edit_to_taken_triple_conflicts(app_ctx):
    s1, _, petrov, smirnova, _ = _ids()
    svc.assign_slot(s1, _slot(petrov, weekday=0, period_index=0))
    b = svc.assign_slot(s1, _slot(smirnova, weekday=0, period_index=1, subject="History"))

    with pytest.raises(svc.Conflict):
        svc.edit_slot(s1, b.id, SlotPatch(period_index=0))
    assert db.session.get(ScheduleSlot, b.id).period_index == 1

def test_edit_to_own_triple_succeeds(app_ctx):
    s1, _, petrov, _, _ = _ids()
    a = svc.assign_slot(s1, _slot(petrov))
    out = svc.edit_slot(s1, a.id, SlotPatch(weekday=0, period_index=0, class_section="10a", subject="Geometry"))
    assert out.subject == "Geometry"
    assert out.class_section == "10A"

def test_partial_edit_keeps_other_fields(app_ctx):
    s1, _, petrov, _, _ = _ids()
    a = svc.assign_slot(s1, _slot(petrov, weekday=3, period_index=4, class_section="9C"))
    out = svc.edit_slot(s1, a.id, SlotPatch(subject="Physics"))
    assert out.subject == "Physics"
    assert (out.weekday, out.period_index, out.class_section, out.teacher_id) == (3, 4, "9C", petrov)

def test_edit_missing_or_foreign_slot_not_found(app_ctx):
    s1, s2, _, _, other = _ids()
    foreign = svc.assign_slot(s2, _slot(other))
    with pytest.raises(svc.NotFound):
        svc.edit_slot(s1, foreign.id, SlotPatch(subject="x"))
    with pytest.raises(svc.NotFound):
        svc.edit_slot(s1, 12345, SlotPatch(subject="x"))

def test_edit_reassign_teacher_validated(app_ctx):
    s1, _, petrov, smirnova, other = _ids()
    a = svc.assign_slot(s1, _slot(petrov))
    with pytest.raises(svc.NotFound):
        svc.edit_slot(s1, a.id, SlotPatch(teacher_id=other))
    assert svc.edit_slot(s1, a.id, SlotPatch(teacher_id=smirnova)).teacher_id == smirnova

def test_edit_race_is_conflict(app_ctx, monkeypatch):
    s1, _, petrov, smirnova, _ = _ids()
    svc.assign_slot(s1, _slot(petrov, period_index=0))
    b = svc.assign_slot(s1, _slot(smirnova, period_index=1))
    monkeypatch.setattr(SlotRepository, "find_conflict", lambda self, *a, **kw: None)
    with pytest.raises(svc.Conflict):
        svc.edit_slot(s1, b.id, SlotPatch(period_index=0))
    assert db.session.get(ScheduleSlot, b.id).period_index == 1

# ---------- delete ----------
def test_delete_returns_slot_and_removes_it(app_ctx):
    s1, _, petrov, _, _ = _ids()
    a = svc.assign_slot(s1, _slot(petrov))
    out = svc.delete_slot(s1, a.id)
    assert out.id == a.id and out.subject == "Mathematics"
    assert ScheduleSlot.query.count() == 0
    with pytest.raises(svc.NotFound):
        svc.delete_slot(s1, a.id)

def test_delete_other_school_slot_not_found(app_ctx):
    s1, s2, _, _, other = _ids()
    foreign = svc.assign_slot(s2, _slot(other))
    with pytest.raises(svc.NotFound):
        svc.delete_slot(s1, foreign.id)
    assert ScheduleSlot.query.count() == 1

# ---------- read projections ----------
def test_all_slots_sorted_by_day_then_period(app_ctx):
    s1, _, petrov, smirnova, _ = _ids()
    svc.assign_slot(s1, _slot(petrov, weekday=2, period_index=0, class_section="10A"))
    svc.assign_slot(s1, _slot(smirnova, weekday=0, period_index=3, class_section="10B"))
    svc.assign_slot(s1, _slot(petrov, weekday=0, period_index=1, class_section="9C"))
    keys = [(s.weekday, s.period_index) for s in svc.all_slots(s1)]
    assert keys == [(0, 1), (0, 3), (2, 0)]

    only_petrov = svc.teacher_slots(s1, petrov)
    assert [(s.weekday, s.period_index) for s in only_petrov] == [(0, 1), (2, 0)]

def test_schedule_grid_projection(app_ctx):
    s1, _, petrov, _, _ = _ids()
    svc.assign_slot(s1, _slot(petrov, weekday=1, period_index=2, subject="Algebra", class_section="9C"))
    grid = svc.schedule_grid(s1, petrov)
    assert [g.model_dump() for g in grid] == [
        {"weekday": 1, "period_index": 2, "subject": "Algebra", "class_section": "9C"}
    ]

def test_class_schedule_grouped_by_day(app_ctx):
    s1, _, petrov, smirnova, _ = _ids()
    svc.assign_slot(s1, _slot(petrov, weekday=0, period_index=0, subject="Mathematics"))
    svc.assign_slot(s1, _slot(smirnova, weekday=1, period_index=2, subject="Literature"))
    svc.assign_slot(s1, _slot(smirnova, weekday=0, period_index=0, class_section="10B"))

    grouped = svc.class_schedule(s1, ClassSection.parse("10a"))
    assert set(grouped) == {"Day-0", "Day-1"}
    day0 = grouped["Day-0"][0]
    assert (day0.period, day0.subject, day0.teacher, day0.email) == (1, "Mathematics", "Ivan Petrov", "petrov@example.com")
    assert grouped["Day-1"][0].period == 3

def test_class_schedule_missing_teacher_is_na(app_ctx):
    s1, _, _, smirnova, _ = _ids()
    svc.assign_slot(s1, _slot(smirnova))
    db.session.delete(db.session.get(User, smirnova)); db.session.commit()
    db.session.expire_all()

    lesson = svc.class_schedule(s1, ClassSection.parse("10A"))["Day-0"][0]
    assert lesson.teacher == "N/A" and lesson.email == "N/A"

def test_subjects_classes_sections(app_ctx):
    s1, s2, petrov, smirnova, other = _ids()
    svc.assign_slot(s1, _slot(petrov, class_section="10A", subject="Mathematics"))
    svc.assign_slot(s1, _slot(smirnova, class_section="10B", subject="History"))
    svc.assign_slot(s1, _slot(petrov, class_section="9C", subject="Mathematics"))
    svc.assign_slot(s2, _slot(other, class_section="11D", subject="Chemistry"))

    assert set(svc.subjects(s1)) == {"Mathematics", "History"}
    assert set(svc.classes(s1)) == {"10", "9"}
    assert svc.classes(s1) == ["9", "10"]
    assert set(svc.sections(s1)) == {"A", "B", "C"}

def _legacy_slot(school_id, teacher_id, class_section, period_index):
    # запись в обход схемы, как из старых данных
    db.session.add(ScheduleSlot(school_id=school_id, teacher_id=teacher_id, weekday=0,
                                period_index=period_index, subject="Lab", class_section=class_section))
    db.session.commit()

def test_classes_use_leading_digits_of_legacy_values(app_ctx, caplog):
    s1, _, petrov, _, _ = _ids()
    svc.assign_slot(s1, _slot(petrov, class_section="10A"))
    _legacy_slot(s1, petrov, "12-Science", 1)
    _legacy_slot(s1, petrov, "11AB", 2)

    assert svc.classes(s1) == ["10", "11", "12"]
    with caplog.at_level(logging.WARNING):
        assert svc.sections(s1) == ["A"]
    logged = [r.getMessage() for r in caplog.records]
    assert any("12-Science" in m for m in logged)
    assert any("11AB" in m for m in logged)

def test_values_without_grade_dropped(app_ctx, caplog):
    s1, _, petrov, _, _ = _ids()
    svc.assign_slot(s1, _slot(petrov, class_section="10A"))
    _legacy_slot(s1, petrov, "Lab-1", 1)

    with caplog.at_level(logging.WARNING):
        assert svc.classes(s1) == ["10"]
        assert svc.sections(s1) == ["A"]
    assert any("Lab-1" in r.getMessage() for r in caplog.records)

def test_reads_do_not_leak_other_school(app_ctx):
    s1, s2, petrov, _, other = _ids()
    mine = svc.assign_slot(s1, _slot(petrov))
    svc.assign_slot(s2, _slot(other, weekday=1, class_section="11D", subject="Chemistry"))

    # учитель другой школы не виден, даже если id известен
    assert svc.teacher_schedule(s1, other) == []
    assert svc.teacher_slots(s1, other) == []
    assert svc.schedule_grid(s1, other) == []
    assert [s.id for s in svc.all_slots(s1)] == [mine.id]
    assert svc.class_schedule(s1, ClassSection.parse("11D")) == {}
    assert svc.subjects(s1) == ["Mathematics"]
