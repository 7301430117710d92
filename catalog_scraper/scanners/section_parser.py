"""Section parsing from Banner search results."""
import logging
import time
from typing import Optional

from catalog_scraper.config import settings
from catalog_scraper.models.course import Section
from catalog_scraper.scanners.context import TermContext
from catalog_scraper.scanners.meeting_parser import parse_meetings, prof_name

logger = logging.getLogger(__name__)

SECTION_SEARCH_PATH = "searchResults/searchResults"


def section_url(term_id: str, crn: str, legacy_url: Optional[str] = None) -> str:
    legacy_url = legacy_url or settings.legacy_schedule_url
    return f"{legacy_url}/bwckschd.p_disp_detail_sched?term_in={term_id}&crn_in={crn}"


def parse_section_from_search_result(result: dict, host: Optional[str] = None) -> Section:
    """Search results already carry everything a section needs."""
    return Section(
        host=host or settings.host,
        term_id=result["term"],
        subject=result["subject"],
        class_id=result["courseNumber"],
        crn=result["courseReferenceNumber"],
        seats_capacity=result.get("maximumEnrollment"),
        seats_remaining=result.get("seatsAvailable"),
        wait_capacity=result.get("waitCapacity"),
        wait_remaining=result.get("waitAvailable"),
        class_type=result.get("scheduleTypeDescription"),
        campus=result.get("campusDescription"),
        honors=any(a.get("description") == "Honors" for a in result.get("sectionAttributes") or []),
        url=section_url(result["term"], result["courseReferenceNumber"]),
        profs=[prof_name(f) for f in result.get("faculty") or []],
        meetings=parse_meetings(result.get("meetingsFaculty") or []),
        last_update_time=int(time.time() * 1000),
    )


async def parse_sections_of_class(ctx: TermContext, subject: str, class_id: str) -> Optional[list[Section]]:
    """
    Fetch every section of one course.

    Returns:
        The sections, or None if Banner reported the search as unsuccessful
    """
    response = await ctx.get(SECTION_SEARCH_PATH, params={
        "txt_term": ctx.term_id,
        "txt_subject": subject,
        "txt_courseNumber": class_id,
        "pageOffset": 0,
        "pageMaxSize": settings.page_size,
    })
    body = response.json()
    if not body.get("success"):
        logger.warning(f"Section search failed for {subject} {class_id} in {ctx.term_id}")
        return None
    return [parse_section_from_search_result(r, ctx.host) for r in body.get("data") or []]
