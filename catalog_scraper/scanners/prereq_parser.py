"""
Prerequisite and corequisite parsing.

Banner returns requisites as an HTML table, one requirement per row:

    | ( | And/Or | Test | Score | Subject          | Course Number | ) |
    | ( |        |      |       | Computer Science | 1800          |   |
    |   | And    |      |       | Computer Science | 2500          | ) |
    |   | Or     | ACT  | 30    |                  |               |   |

The two unnamed paren columns come out of parse_table as "" and "1".
"""
import logging

from catalog_scraper.models.requisite import BooleanReq, CourseReq, Requisite
from catalog_scraper.scanners.util import parse_first_table

logger = logging.getLogger(__name__)

LEFT_PAREN = ""
RIGHT_PAREN = "1"


def _cell(row: dict[str, str], column: str) -> str:
    return (row.get(column) or "").strip()


def _parse_group(
    rows: list[dict[str, str]],
    start: int,
    table: dict[str, str],
) -> tuple[BooleanReq, int]:
    """
    Parse rows from start until a closing paren or the end of the table.

    Returns:
        The group and the index of the first row not consumed
    """
    parsed: list[Requisite] = []
    boolean = "and"
    index = start

    while index < len(rows):
        row = rows[index]
        subject = _cell(row, "subject")
        course_number = _cell(row, "coursenumber")
        test = _cell(row, "test")
        code = table.get(subject)

        content_present = bool((subject and course_number and code) or (test and _cell(row, "score")))

        operator = _cell(row, "and/or")
        if operator:
            boolean = operator.lower()

        if subject and not code:
            logger.warning(f'Prereqs: can\'t find abbreviation for "{subject}"')

        current: Requisite = test if test else CourseReq(subject=code, class_id=course_number)

        index += 1
        if _cell(row, LEFT_PAREN):
            group, index = _parse_group(rows, index, table)
            if content_present:
                group = BooleanReq(group.type, (current, *group.values))
            parsed.append(group)
        elif content_present:
            parsed.append(current)

        if _cell(row, RIGHT_PAREN):
            return BooleanReq(boolean, tuple(parsed)), index

    return BooleanReq(boolean, tuple(parsed)), index


def serialize_prereqs(html: str, table: dict[str, str]) -> BooleanReq:
    """
    Build a requisite tree from Banner's prerequisite table.

    Args:
        html: getPrerequisites response body
        table: subject description -> subject code

    The and/or column sets the operator for the rest of the current group.
    A row with "(" opens a nested group; its own course (if any) becomes the
    group's first member. A row with ")" closes the current group.
    """
    tree, _ = _parse_group(parse_first_table(html), 0, table)
    return tree


def serialize_coreqs(html: str, table: dict[str, str]) -> BooleanReq:
    """
    Build a flat AND of corequisites.

    Some courses get 3 columns and some 5 (CS 2500 vs HLTH 1201), so rows
    are read by column name.
    """
    coreqs = []
    for row in parse_first_table(html):
        subject = _cell(row, "subject")
        code = table.get(subject)
        if code:
            coreqs.append(CourseReq(subject=code, class_id=_cell(row, "coursenumber")))
        else:
            logger.warning(f'Coreqs: can\'t find abbreviation for "{subject}"')
    return BooleanReq("and", tuple(coreqs))
