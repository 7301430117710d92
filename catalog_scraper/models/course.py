"""Data models for scraped catalog information."""
from dataclasses import dataclass, field
from typing import Optional, Union
import json

from catalog_scraper.models.keys import CourseKey, SectionKey
from catalog_scraper.models.requisite import (
    BooleanReq, CourseBackRef, requisite_to_dict,
)

# Seconds since midnight, or "TBD" when the upstream has no time
TimeValue = Union[int, str]


@dataclass
class MeetingTime:
    """A single meeting slot, e.g. 9:50-11:30am."""
    start: TimeValue
    end: TimeValue

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end}


@dataclass
class Meeting:
    """A block of meetings, e.g. Tuesdays+Fridays 9:50-11:30am."""
    start_date: int  # days since epoch
    end_date: int
    where: str
    type: str
    times: dict[int, list[MeetingTime]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "start_date": self.start_date,
            "end_date": self.end_date,
            "where": self.where,
            "type": self.type,
            "times": {
                str(day): [t.to_dict() for t in slots]
                for day, slots in sorted(self.times.items())
            },
        }


@dataclass
class Section:
    """Represents a specific section (CRN) of a course."""
    host: str
    term_id: str
    subject: str
    class_id: str
    crn: str
    seats_capacity: int
    seats_remaining: int
    wait_capacity: int
    wait_remaining: int
    class_type: Optional[str] = None
    campus: Optional[str] = None
    honors: bool = False
    url: Optional[str] = None
    profs: list[str] = field(default_factory=list)
    meetings: list[Meeting] = field(default_factory=list)
    last_update_time: Optional[int] = None  # ms since epoch

    @property
    def key(self) -> SectionKey:
        return SectionKey.of(self)

    @property
    def course_key(self) -> CourseKey:
        return CourseKey.of(self)

    def to_dict(self) -> dict:
        return {
            "id": self.key.hash(),
            "host": self.host,
            "term_id": self.term_id,
            "subject": self.subject,
            "class_id": self.class_id,
            "crn": self.crn,
            "seats_capacity": self.seats_capacity,
            "seats_remaining": self.seats_remaining,
            "wait_capacity": self.wait_capacity,
            "wait_remaining": self.wait_remaining,
            "class_type": self.class_type,
            "campus": self.campus,
            "honors": self.honors,
            "url": self.url,
            "profs": list(self.profs),
            "meetings": [m.to_dict() for m in self.meetings],
            "last_update_time": self.last_update_time,
        }


@dataclass
class Course:
    """Represents a course offered in one term."""
    host: str
    term_id: str
    subject: str
    class_id: str
    name: str
    desc: str = ""
    min_credits: Optional[float] = None
    max_credits: Optional[float] = None
    class_attributes: list[str] = field(default_factory=list)
    nupath: list[str] = field(default_factory=list)
    college: Optional[str] = None
    url: Optional[str] = None
    pretty_url: Optional[str] = None
    fee_amount: Optional[int] = None
    fee_description: str = ""
    last_update_time: Optional[int] = None
    prereqs: Optional[BooleanReq] = None
    coreqs: Optional[BooleanReq] = None
    # Derived by the prerequisite-for processor
    prereqs_for: list[CourseBackRef] = field(default_factory=list)
    opt_prereqs_for: list[CourseBackRef] = field(default_factory=list)

    @property
    def key(self) -> CourseKey:
        return CourseKey.of(self)

    @property
    def course_code(self) -> str:
        return f"{self.subject} {self.class_id}"

    def to_dict(self) -> dict:
        return {
            "id": self.key.hash(),
            "host": self.host,
            "term_id": self.term_id,
            "subject": self.subject,
            "class_id": self.class_id,
            "name": self.name,
            "desc": self.desc,
            "min_credits": self.min_credits,
            "max_credits": self.max_credits,
            "class_attributes": list(self.class_attributes),
            "nupath": list(self.nupath),
            "college": self.college,
            "url": self.url,
            "pretty_url": self.pretty_url,
            "fee_amount": self.fee_amount,
            "fee_description": self.fee_description,
            "last_update_time": self.last_update_time,
            "prereqs": requisite_to_dict(self.prereqs) if self.prereqs else None,
            "coreqs": requisite_to_dict(self.coreqs) if self.coreqs else None,
            "prereqs_for": [r.to_dict() for r in self.prereqs_for],
            "opt_prereqs_for": [r.to_dict() for r in self.opt_prereqs_for],
        }


@dataclass
class TermInfo:
    """A term as listed by the upstream."""
    host: str
    term_id: str
    text: str
    sub_college: str
    active: bool = True

    def to_dict(self) -> dict:
        return {
            "host": self.host,
            "term_id": self.term_id,
            "text": self.text,
            "sub_college": self.sub_college,
            "active": self.active,
        }


@dataclass
class TermSnapshot:
    """Courses, sections and subjects for one or more terms."""
    classes: list[Course] = field(default_factory=list)
    sections: list[Section] = field(default_factory=list)
    subjects: dict[str, str] = field(default_factory=dict)

    def merge(self, other: "TermSnapshot") -> "TermSnapshot":
        """Concatenate lists and merge subjects (other wins on conflicts)."""
        return TermSnapshot(
            classes=self.classes + other.classes,
            sections=self.sections + other.sections,
            subjects={**self.subjects, **other.subjects},
        )

    def get_course(self, key: CourseKey) -> Optional[Course]:
        for course in self.classes:
            if course.key == key:
                return course
        return None

    def to_dict(self) -> dict:
        return {
            "classes": [c.to_dict() for c in self.classes],
            "sections": [s.to_dict() for s in self.sections],
            "subjects": dict(self.subjects),
        }

    def to_json(self, indent: int = 2) -> str:
        # sort_keys keeps re-runs byte-identical for downstream diffing
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)
