"""
Idempotent seed-скрипт.
Запуск:
  python seed.py --reset         # дропнуть и пересоздать БД + демо-школа + учителя + пары
  python seed.py --ensure-admin  # создать только admin@example.com / pass (без сидов)
  python seed.py                 # мягкое наполнение недостающих данных (idempotent)
"""
import argparse
import logging

from app import create_app
from extensions import db
from models import Role, School, ScheduleSlot, User

log = logging.getLogger("seed")

DEMO_SCHOOL = "Demo School"

DEMO_TEACHERS = [
    ("Ivan Petrov", "petrov@example.com"),
    ("Anna Smirnova", "smirnova@example.com"),
]

# (email учителя, день, урок с нуля, предмет, класс)
DEMO_SLOTS = [
    ("petrov@example.com", 0, 0, "Mathematics", "10A"),
    ("petrov@example.com", 0, 1, "Mathematics", "10B"),
    ("petrov@example.com", 2, 3, "Algebra", "9C"),
    ("smirnova@example.com", 0, 0, "History", "10B"),
    ("smirnova@example.com", 1, 2, "Literature", "10A"),
]

# ---- вспомогательные утилиты ----
def get_or_create(model, defaults=None, **by):
    """Идемпотентное создание по уникальным ключам."""
    inst = db.session.query(model).filter_by(**by).first()
    if inst:
        return inst, False
    data = dict(by)
    if defaults:
        data.update(defaults)
    inst = model(**data)
    db.session.add(inst)
    db.session.flush()
    return inst, True

def ensure_user(school: School, name: str, email: str, role: Role, password: str = "pass") -> User:
    user = User.query.filter_by(email=email).first()
    if user:
        return user
    user = User(school_id=school.id, name=name, email=email, role=role.value, is_active_flag=True)
    user.set_password(password)
    db.session.add(user)
    db.session.flush()
    return user

# ---- сиды ----
def ensure_admin() -> User:
    school, _ = get_or_create(School, name=DEMO_SCHOOL)
    return ensure_user(school, "Admin", "admin@example.com", Role.ADMIN)

def seed_demo() -> int:
    school, _ = get_or_create(School, name=DEMO_SCHOOL)
    ensure_user(school, "Admin", "admin@example.com", Role.ADMIN)
    teachers = {email: ensure_user(school, name, email, Role.TEACHER) for name, email in DEMO_TEACHERS}

    created = 0
    for email, weekday, period_index, subject, class_section in DEMO_SLOTS:
        _, was_created = get_or_create(
            ScheduleSlot,
            school_id=school.id, class_section=class_section, weekday=weekday, period_index=period_index,
            defaults=dict(teacher_id=teachers[email].id, subject=subject),
        )
        created += int(was_created)
    return created

def main():
    parser = argparse.ArgumentParser(description="Seed demo timetable data")
    parser.add_argument("--reset", action="store_true", help="drop and recreate all tables first")
    parser.add_argument("--ensure-admin", action="store_true", help="only create the admin user")
    args = parser.parse_args()

    app = create_app("dev")
    with app.app_context():
        if args.reset:
            db.drop_all()
        db.create_all()
        if args.ensure_admin:
            ensure_admin()
            db.session.commit()
            log.info("admin ensured")
            return
        created = seed_demo()
        db.session.commit()
        print(f"Seed done: {created} new slot(s)")

if __name__ == "__main__":
    main()
