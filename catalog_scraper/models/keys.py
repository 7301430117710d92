"""
Identity keys for courses and sections.

A course is identified by (host, term_id, subject, class_id) and a section by
that plus its CRN. Downstream consumers key on the string form, e.g.
'neu.edu/202030/CS/2500/12345', so hash() output must stay exactly this format.
"""
import re
from dataclasses import dataclass

KEYS_REGEX = re.compile(r"[^A-Za-z0-9.]")

ALL_KEYS = ("host", "term_id", "subject", "class_id", "crn")


def _clean(value: str) -> str:
    return KEYS_REGEX.sub("_", value)


def _hash_fields(values: tuple, kind: str) -> str:
    for value in values:
        if not value:
            raise ValueError(f"invalid fields for {kind} hash")
    return "/".join(_clean(str(v)) for v in values)


@dataclass(frozen=True, order=True)
class CourseKey:
    """Identity of a course within one term."""
    host: str
    term_id: str
    subject: str
    class_id: str

    def hash(self) -> str:
        return _hash_fields((self.host, self.term_id, self.subject, self.class_id), "class")

    @classmethod
    def of(cls, obj) -> "CourseKey":
        """Build a key from anything carrying host/term_id/subject/class_id."""
        return cls(obj.host, obj.term_id, obj.subject, obj.class_id)


@dataclass(frozen=True, order=True)
class SectionKey:
    """Identity of a section: its course plus the CRN."""
    host: str
    term_id: str
    subject: str
    class_id: str
    crn: str

    @property
    def course_key(self) -> CourseKey:
        return CourseKey(self.host, self.term_id, self.subject, self.class_id)

    def hash(self) -> str:
        return _hash_fields(
            (self.host, self.term_id, self.subject, self.class_id, self.crn), "section"
        )

    @classmethod
    def of(cls, obj) -> "SectionKey":
        return cls(obj.host, obj.term_id, obj.subject, obj.class_id, obj.crn)


def get_class_hash(obj) -> str:
    """Class hash for any object with host, term_id, subject and class_id."""
    return CourseKey.of(obj).hash()


def get_section_hash(obj) -> str:
    """Section hash for any object with the course fields plus crn."""
    return SectionKey.of(obj).hash()


def parse_section_hash(value: str) -> SectionKey:
    parts = value.split("/")
    if len(parts) != len(ALL_KEYS):
        raise ValueError("invalid section hash")
    return SectionKey(*parts)
