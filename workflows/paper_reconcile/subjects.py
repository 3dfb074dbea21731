"""Subject name to question bank subject code."""

from enum import Enum


class Subject(Enum):
    """Subjects with (full name, short name, bank code)."""

    CHINESE = ("语文", "语", 55)
    MATH = ("数学", "数", 54)
    ENGLISH = ("英语", "英", 53)
    PHYSICS = ("物理", "物", 56)
    CHEMISTRY = ("化学", "化", 57)
    BIOLOGY = ("生物", "生", 58)
    HISTORY = ("历史", "历", 61)
    POLITICS = ("政治", "政", 60)
    GEOGRAPHY = ("地理", "地", 59)
    SCIENCE = ("科学", "科", 62)

    def __init__(self, full_name: str, short_name: str, code: int):
        self.full_name = full_name
        self.short_name = short_name
        self.code = code


_BY_FULL_NAME = {s.full_name: s for s in Subject}
_BY_SHORT_NAME = {s.short_name: s for s in Subject}


def find_subject(name: str) -> Subject | None:
    """Look a subject up by full name, then short name, then containment.

    Containment catches decorated names such as "高三数学".
    """
    name = (name or "").strip()
    if not name:
        return None
    if name in _BY_FULL_NAME:
        return _BY_FULL_NAME[name]
    if name in _BY_SHORT_NAME:
        return _BY_SHORT_NAME[name]
    matches = [s for s in Subject if s.full_name in name]
    if len(matches) == 1:
        return matches[0]
    return None


def find_subject_code(name: str) -> str | None:
    """Bank subject code for a subject name, as the string the API expects."""
    subject = find_subject(name)
    return str(subject.code) if subject else None
