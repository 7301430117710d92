"""Flags requisites that point at courses the snapshot doesn't have."""
import logging

from catalog_scraper.models.course import Course
from catalog_scraper.models.keys import CourseKey
from catalog_scraper.models.requisite import (
    BooleanReq,
    CourseReq,
    Requisite,
    mark_missing,
    simplify_requirements,
)

logger = logging.getLogger(__name__)


def update_requisites(req: Requisite, host: str, term_id: str, known: set[CourseKey]) -> Requisite:
    """Copy of req with every unresolvable CourseReq marked missing."""
    if isinstance(req, CourseReq):
        if CourseKey(host, term_id, req.subject, req.class_id) not in known:
            return mark_missing(req)
        return req
    if isinstance(req, BooleanReq):
        return BooleanReq(
            req.type,
            tuple(update_requisites(v, host, term_id, known) for v in req.values),
        )
    if not isinstance(req, str):
        logger.error(f"error parsing prereqs: {req!r}")
    return req


def mark_missing_requisites(classes: list[Course]) -> None:
    """Mark missing requisites on every course, then simplify the trees."""
    known = {course.key for course in classes}

    for course in classes:
        if course.prereqs:
            course.prereqs = simplify_requirements(
                update_requisites(course.prereqs, course.host, course.term_id, known)
            )
        if course.coreqs:
            course.coreqs = simplify_requirements(
                update_requisites(course.coreqs, course.host, course.term_id, known)
            )
