from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Optional

CLASS_SECTION_RE = re.compile(r"^(\d+)([A-Za-z])$")
GRADE_RE = re.compile(r"^(\d+)")

@dataclass(frozen=True)
class ClassSection:
    """Код класса вида "10A": номер параллели + буква."""
    grade: str
    section: str

    @classmethod
    def parse(cls, raw: str) -> "ClassSection":
        m = CLASS_SECTION_RE.match((raw or "").strip())
        if not m:
            raise ValueError(f"class section must look like '10A', got {raw!r}")
        return cls(grade=m.group(1), section=m.group(2).upper())

    @classmethod
    def try_parse(cls, raw: str | None) -> Optional["ClassSection"]:
        try:
            return cls.parse(raw or "")
        except ValueError:
            return None

    @staticmethod
    def grade_of(raw: str | None) -> Optional[str]:
        """Номер параллели по ведущим цифрам: "12-Science" -> "12"."""
        m = GRADE_RE.match((raw or "").strip())
        return m.group(1) if m else None

    def __str__(self) -> str:
        return f"{self.grade}{self.section}"
