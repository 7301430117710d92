"""
Course detail assembly.

A course is built from a size-1 course search (title, credits) plus five
per-course endpoints under courseSearchResults/: description, prerequisites,
corequisites, attributes and fees.
"""
import asyncio
import logging
import re
import time
from html import unescape
from typing import Optional, Union

from catalog_scraper.config import settings
from catalog_scraper.models.course import Course
from catalog_scraper.models.keys import CourseKey
from catalog_scraper.models.requisite import BooleanReq, CourseBackRef, CourseReq
from catalog_scraper.scanners.context import TermContext
from catalog_scraper.scanners.prereq_parser import serialize_coreqs, serialize_prereqs
from catalog_scraper.scanners.util import parse_first_table

logger = logging.getLogger(__name__)

COURSE_SEARCH_PATH = "courseSearchResults/courseSearchResults"

NO_FEE = "No fee information available."

NUPATH_REGEX = re.compile(r"NUpath (.*?) *NC.{2}")

# Last digit of the term id
COLLEGE_NAMES = {
    "0": "NEU",
    "2": "LAW",
    "8": "LAW",
    "4": "CPS",
    "5": "CPS",
}


def catalog_url(term_id: str, subject: str, class_id: str, legacy_url: Optional[str] = None) -> str:
    legacy_url = legacy_url or settings.legacy_catalog_url
    return (
        f"{legacy_url}/bwckctlg.p_disp_course_detail?"
        f"cat_term_in={term_id}&subj_code_in={subject}&crse_numb_in={class_id}"
    )


def serialize_attributes(text: str) -> list[str]:
    return [a.strip() for a in unescape(text).split("<br/>")]


def nupath(attributes: list[str]) -> list[str]:
    """Pull NUpath codes out of attribute strings, e.g. "NUpath Natural/Designed World  NCND" -> "Natural/Designed World"."""
    codes = []
    for attribute in attributes:
        match = NUPATH_REGEX.search(attribute)
        if match:
            codes.append(match.group(1))
    return codes


def parse_fees(html: str) -> tuple[Optional[int], str]:
    """
    Returns:
        (amount in whole dollars, description), or (None, "") when the
        course has no fee or the fee table is malformed
    """
    if html.strip() == NO_FEE:
        return None, ""

    rows = parse_first_table(html)
    if len(rows) != 1:
        logger.warning(f"Unexpected course fee value, {len(rows)} rows")
        return None, ""

    amount = (rows[0].get("amount") or "").strip()
    description = rows[0].get("description") or ""
    # "$1,234.00" -> 1234
    dollars = amount[1:].split(".")[0].replace(",", "")
    try:
        return int(dollars), description
    except ValueError:
        logger.warning(f'Unexpected course fee amount "{amount}"')
        return None, description


async def _course_search_results_post(ctx: TermContext, endpoint: str, subject: str, class_id: str) -> str:
    response = await ctx.post(f"courseSearchResults/{endpoint}", form={
        "term": ctx.term_id,
        "subjectCode": subject,
        "courseNumber": class_id,
    })
    return response.text


async def get_description(ctx: TermContext, subject: str, class_id: str) -> str:
    body = await _course_search_results_post(ctx, "getCourseDescription", subject, class_id)
    # Banner double encodes descriptions
    return unescape(unescape(body.strip()))


async def get_prereqs(ctx: TermContext, subject: str, class_id: str) -> BooleanReq:
    body = await _course_search_results_post(ctx, "getPrerequisites", subject, class_id)
    return serialize_prereqs(body, await ctx.code_by_description())


async def get_coreqs(ctx: TermContext, subject: str, class_id: str) -> BooleanReq:
    body = await _course_search_results_post(ctx, "getCorequisites", subject, class_id)
    return serialize_coreqs(body, await ctx.code_by_description())


async def get_attributes(ctx: TermContext, subject: str, class_id: str) -> list[str]:
    body = await _course_search_results_post(ctx, "getCourseAttributes", subject, class_id)
    return serialize_attributes(body)


async def get_fees(ctx: TermContext, subject: str, class_id: str) -> tuple[Optional[int], str]:
    body = await _course_search_results_post(ctx, "getFees", subject, class_id)
    return parse_fees(body)


async def parse_class_from_search_result(ctx: TermContext, result: dict) -> Course:
    """
    Build a course from a course search result plus its detail endpoints.

    The search result doesn't include the term, so it comes from ctx.
    """
    subject = result["subjectCode"]
    class_id = result["courseNumber"]
    term_id = ctx.term_id

    description, prereqs, coreqs, attributes, (fee_amount, fee_description) = await asyncio.gather(
        get_description(ctx, subject, class_id),
        get_prereqs(ctx, subject, class_id),
        get_coreqs(ctx, subject, class_id),
        get_attributes(ctx, subject, class_id),
        get_fees(ctx, subject, class_id),
    )

    url = catalog_url(term_id, subject, class_id)
    return Course(
        host=ctx.host,
        term_id=term_id,
        subject=subject,
        class_id=class_id,
        name=unescape(result.get("courseTitle") or ""),
        desc=description,
        min_credits=result.get("creditHourLow"),
        max_credits=result.get("creditHourHigh") or result.get("creditHourLow"),
        class_attributes=attributes,
        nupath=nupath(attributes),
        college=COLLEGE_NAMES.get(term_id[-1:]),
        url=url,
        pretty_url=url,
        fee_amount=fee_amount,
        fee_description=fee_description,
        last_update_time=int(time.time() * 1000),
        prereqs=prereqs,
        coreqs=coreqs,
    )


async def parse_class(ctx: TermContext, subject: str, class_id: str) -> Optional[Course]:
    """
    Scrape one course from scratch.

    Returns:
        The course, or None if it isn't offered in ctx's term
    """
    response = await ctx.get(COURSE_SEARCH_PATH, params={
        "txt_term": ctx.term_id,
        "txt_subject": subject,
        "txt_courseNumber": class_id,
        "startDatepicker": "",
        "endDatepicker": "",
        "pageOffset": 0,
        "pageMaxSize": 1,
        "sortColumn": "subjectDescription",
        "sortDirection": "asc",
    })
    body = response.json()

    if body.get("success") and body.get("data"):
        return await parse_class_from_search_result(ctx, body["data"][0])

    logger.info(f"Course {subject} {class_id} not found in term {ctx.term_id}")
    return None


RefNode = Union[str, CourseReq, BooleanReq, CourseBackRef, list, None]


def get_refs_from_requisite(node: RefNode, host: str, term_id: str) -> dict[CourseKey, CourseBackRef]:
    """Every course referenced anywhere in a requisite tree or back-reference list."""
    refs: dict[CourseKey, CourseBackRef] = {}
    if node is None or isinstance(node, str):
        return refs

    if isinstance(node, BooleanReq):
        children = node.values
    elif isinstance(node, list):
        children = node
    else:
        children = [node]

    for child in children:
        if isinstance(child, (BooleanReq, list)):
            refs.update(get_refs_from_requisite(child, host, term_id))
        elif isinstance(child, (CourseReq, CourseBackRef)):
            if not child.subject or not child.class_id:
                continue
            key = CourseKey(host, term_id, child.subject, child.class_id)
            refs[key] = CourseBackRef(child.subject, child.class_id)
    return refs


def get_all_course_refs(course: Course) -> dict[CourseKey, CourseBackRef]:
    """Courses this one depends on or is depended on by, within its term."""
    refs: dict[CourseKey, CourseBackRef] = {}
    for node in (course.prereqs, course.coreqs, course.prereqs_for, course.opt_prereqs_for):
        refs.update(get_refs_from_requisite(node, course.host, course.term_id))
    return refs
