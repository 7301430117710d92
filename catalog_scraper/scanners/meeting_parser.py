"""
Translates Banner meeting times into the catalog's meeting format.

Input is the JSON retrieved from Banner search results; everything here is
synchronous and pure.
"""
import logging
from datetime import date, datetime
from typing import Union

from catalog_scraper.models.course import Meeting, MeetingTime, TimeValue

logger = logging.getLogger(__name__)

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
EPOCH = date(1970, 1, 1)

# Placeholder when Banner has no begin/end time for a meeting
TBD = "TBD"

DAYS = [
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
]


def prof_name(faculty: Union[str, dict]) -> str:
    """"LastName, FirstName" -> "FirstName LastName"."""
    if isinstance(faculty, dict):
        faculty = faculty.get("displayName", "")
    return " ".join(reversed([part.strip() for part in faculty.split(",")]))


def hhmm_to_seconds(hhmm: str) -> TimeValue:
    """"0915" -> 9 * 3600 + 15 * 60 = 33300, or TBD when missing."""
    if not hhmm:
        return TBD
    if len(hhmm) != 4:
        logger.error(f'Length of hhmm time string "{hhmm}" is not 4')
    return int(hhmm[:2]) * SECONDS_PER_HOUR + int(hhmm[2:]) * SECONDS_PER_MINUTE


def mmddyyyy_to_days_since_epoch(mmddyyyy: str) -> int:
    """'01/07/2019' -> 17903"""
    parsed = datetime.strptime(mmddyyyy, "%m/%d/%Y").date()
    return (parsed - EPOCH).days


def days(meeting_time: dict) -> dict[int, list[MeetingTime]]:
    """Map each weekday index the meeting is held on to its time slot."""
    info = [MeetingTime(
        start=hhmm_to_seconds(meeting_time.get("beginTime")),
        end=hhmm_to_seconds(meeting_time.get("endTime")),
    )]
    return {i: info for i, day in enumerate(DAYS) if meeting_time.get(day)}


def parse_meetings(faculty_meeting_times: list[dict]) -> list[Meeting]:
    """
    Args:
        faculty_meeting_times: meetingsFaculty list from a section search result
    """
    meetings = []
    for entry in faculty_meeting_times:
        meeting_time = entry["meetingTime"]
        building = meeting_time.get("buildingDescription")
        meetings.append(Meeting(
            start_date=mmddyyyy_to_days_since_epoch(meeting_time["startDate"]),
            end_date=mmddyyyy_to_days_since_epoch(meeting_time["endDate"]),
            where=f"{building} {meeting_time.get('room')}" if building else "TBA",
            type=meeting_time.get("meetingTypeDescription"),
            times=days(meeting_time),
        ))
    return meetings
