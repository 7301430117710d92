"""Prerequisite / corequisite trees.

A requisite is one of:
- a plain string (an opaque test-score requirement, e.g. "SAT Math")
- a CourseReq pointing at another course by subject and class id
- a BooleanReq joining child requisites with "and" / "or"

Trees are immutable once parsed. Processors that need to change a tree
(marking missing courses, simplifying) build a new one.
"""
from dataclasses import dataclass, field, replace
from typing import Union


@dataclass(frozen=True)
class CourseReq:
    """A reference to another course."""
    subject: str
    class_id: str
    missing: bool = False

    def to_dict(self) -> dict:
        data = {"subject": self.subject, "class_id": self.class_id}
        if self.missing:
            data["missing"] = True
        return data


@dataclass(frozen=True)
class BooleanReq:
    """An and/or node."""
    type: str  # "and" or "or"
    values: tuple = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "values": [requisite_to_dict(v) for v in self.values],
        }


Requisite = Union[str, CourseReq, BooleanReq]


@dataclass(frozen=True, order=True)
class CourseBackRef:
    """Lightweight pointer used in prereqs_for / opt_prereqs_for."""
    subject: str
    class_id: str

    def to_dict(self) -> dict:
        return {"subject": self.subject, "class_id": self.class_id}


def requisite_to_dict(req: Requisite):
    if isinstance(req, str):
        return req
    return req.to_dict()


def mark_missing(req: CourseReq) -> CourseReq:
    return replace(req, missing=True)


def _simplify_base(data: Requisite) -> Requisite:
    if isinstance(data, (str, CourseReq)):
        return data

    values = []
    for sub in data.values:
        sub = _simplify_base(sub)

        if isinstance(sub, BooleanReq):
            # same operator nested inside itself
            if sub.type == data.type:
                values.extend(sub.values)
                continue
            if len(sub.values) == 1:
                values.append(sub.values[0])
                continue

        values.append(sub)

    if len(values) == 1:
        return values[0]

    return BooleanReq(data.type, tuple(values))


def simplify_requirements(data: Requisite) -> BooleanReq:
    """
    Flatten a requisite tree.

    An "or" directly inside an "or" (or "and" inside "and") is merged into its
    parent and any node with a single child is replaced by that child. The
    result is always a BooleanReq so callers can rely on .type / .values.
    """
    data = _simplify_base(data)
    if not isinstance(data, BooleanReq):
        return BooleanReq("and", (data,))
    return data
