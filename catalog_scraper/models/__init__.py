"""Catalog data models."""
from .course import Course, Meeting, MeetingTime, Section, TermInfo, TermSnapshot
from .keys import CourseKey, SectionKey, get_class_hash, get_section_hash
from .requisite import BooleanReq, CourseBackRef, CourseReq, Requisite

__all__ = [
    "BooleanReq",
    "Course",
    "CourseBackRef",
    "CourseKey",
    "CourseReq",
    "Meeting",
    "MeetingTime",
    "Requisite",
    "Section",
    "SectionKey",
    "TermInfo",
    "TermSnapshot",
    "get_class_hash",
    "get_section_hash",
]
