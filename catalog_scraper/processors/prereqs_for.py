"""
Builds the "is a prerequisite for" links.

If CS 2500 is a prerequisite of CS 2510 then CS 2500.prereqs_for gets
{CS, 2510}. A course reached only through an "or" is optional, so it lands in
opt_prereqs_for instead. Once a branch sits under an "or", everything below it
is optional, even nested "and"s.
"""
import logging
import re
from functools import cmp_to_key

from catalog_scraper.models.course import Course
from catalog_scraper.models.keys import CourseKey
from catalog_scraper.models.requisite import BooleanReq, CourseBackRef, CourseReq, Requisite

logger = logging.getLogger(__name__)


class PrerequisiteIndex:
    """Back references keyed by the course being depended on."""

    def __init__(self, classes: list[Course]):
        self.courses: dict[CourseKey, Course] = {course.key: course for course in classes}
        self.prereqs_for: dict[CourseKey, list[CourseBackRef]] = {key: [] for key in self.courses}
        self.opt_prereqs_for: dict[CourseKey, list[CourseBackRef]] = {key: [] for key in self.courses}

    def link(self, dependent: Course, req: Requisite, required: bool = True) -> None:
        if isinstance(req, str):
            return

        if isinstance(req, BooleanReq):
            for value in req.values:
                self.link(dependent, value, required and req.type == "and")
            return

        if not isinstance(req, CourseReq) or req.missing:
            return

        target = CourseKey(dependent.host, dependent.term_id, req.subject, req.class_id)
        if target not in self.courses:
            logger.error(f"Unable to find ref for {target.hash()} from {dependent.course_code}")
            return

        ref = CourseBackRef(dependent.subject, dependent.class_id)
        bucket = self.prereqs_for if required else self.opt_prereqs_for
        bucket[target].insert(0, ref)


def _leading_int(value: str):
    match = re.match(r"\s*[-+]?\d+", value or "")
    return int(match.group()) if match else None


def _compare(subject: str):
    def compare(a: CourseBackRef, b: CourseBackRef) -> int:
        if a.subject != b.subject:
            if a.subject == subject:
                return -1
            if b.subject == subject:
                return 1
            return -1 if a.subject < b.subject else 1

        first, second = _leading_int(a.class_id), _leading_int(b.class_id)
        if first is None or second is None or first == second:
            return 0
        return -1 if first < second else 1

    return compare


def sort_back_refs(subject: str, refs: list[CourseBackRef]) -> list[CourseBackRef]:
    """Own subject first, then other subjects alphabetically, then by course number."""
    return sorted(refs, key=cmp_to_key(_compare(subject)))


def build_prerequisite_index(classes: list[Course]) -> PrerequisiteIndex:
    index = PrerequisiteIndex(classes)
    for course in classes:
        if course.prereqs:
            index.link(course, course.prereqs)
    return index


def add_prerequisite_for(classes: list[Course]) -> None:
    """
    Recompute prereqs_for / opt_prereqs_for on every course.

    Existing lists are replaced, so running this twice gives the same result.
    """
    index = build_prerequisite_index(classes)
    for key, course in index.courses.items():
        course.prereqs_for = sort_back_refs(course.subject, index.prereqs_for[key])
        course.opt_prereqs_for = sort_back_refs(course.subject, index.opt_prereqs_for[key])
