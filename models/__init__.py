from extensions import db

from .school import School
from .user import User, Role
from .schedule_slot import ScheduleSlot

__all__ = ["db", "School", "User", "Role", "ScheduleSlot"]
