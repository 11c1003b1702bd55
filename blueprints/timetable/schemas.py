from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .validators import ClassSection

class _ApiModel(BaseModel):
    # фронт шлёт и получает camelCase: teacherId, periodIndex, classSection
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

def _clean_subject(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("subject_required")
    return v

def _clean_class_section(v: str) -> str:
    return str(ClassSection.parse(v))

# ---------- In ----------
class SlotIn(_ApiModel):
    teacher_id: int
    weekday: int = Field(ge=0, le=6)
    period_index: int = Field(ge=0)
    subject: str = Field(max_length=255)
    class_section: str

    @field_validator("subject")
    @classmethod
    def _subject(cls, v: str):
        return _clean_subject(v)

    @field_validator("class_section")
    @classmethod
    def _class_section(cls, v: str):
        return _clean_class_section(v)

class SlotPatch(_ApiModel):
    """Частичное обновление: None = оставить текущее значение."""
    teacher_id: Optional[int] = None
    weekday: Optional[int] = Field(None, ge=0, le=6)
    period_index: Optional[int] = Field(None, ge=0)
    subject: Optional[str] = Field(None, max_length=255)
    class_section: Optional[str] = None

    @field_validator("subject")
    @classmethod
    def _subject(cls, v: Optional[str]):
        return None if v is None else _clean_subject(v)

    @field_validator("class_section")
    @classmethod
    def _class_section(cls, v: Optional[str]):
        return None if v is None else _clean_class_section(v)

# ---------- Out ----------
class SlotOut(_ApiModel):
    id: int
    school_id: int
    teacher_id: Optional[int]
    weekday: int
    period_index: int
    subject: str
    class_section: str

class TeacherRef(_ApiModel):
    id: int
    name: str
    email: str

class PopulatedSlotOut(SlotOut):
    teacher_id: Optional[TeacherRef]

class GridItemOut(_ApiModel):
    weekday: int
    period_index: int
    subject: str
    class_section: str

class ClassLessonOut(BaseModel):
    period: int
    subject: str
    teacher: str
    email: str

def dump(model: BaseModel) -> dict:
    return model.model_dump(mode="json", by_alias=True)
