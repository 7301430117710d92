"""HTML helpers shared by the Banner parsers."""
import logging
import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)


def uniquify(existing: list[str], value: str) -> str:
    """Append the smallest number to value that avoids a collision with existing."""
    if value not in existing:
        return value
    append = 1
    while f"{value}{append}" in existing:
        append += 1
    return f"{value}{append}"


def _cells(row: Tag) -> list[Tag]:
    return [c for c in row.children if isinstance(c, Tag) and c.name in ("th", "td")]


def parse_table(table: Optional[Tag]) -> list[dict[str, str]]:
    """
    Parse a table using its first row as keys.

    Header text is trimmed, lowercased and stripped of whitespace, so
    "Course Number" becomes "coursenumber". Blank or repeated headers are
    made unique ("", "1", "2", ...).

    Returns:
        One {header: cell text} dict per body row
    """
    if table is None or table.name != "table":
        return []

    rows = table.find_all("tr")
    if not rows:
        logger.error("zero rows???")
        return []

    heads: list[str] = []
    for cell in _cells(rows[0]):
        head = re.sub(r"\s", "", cell.get_text().strip().lower())
        heads.append(uniquify(heads, head))

    parsed = []
    for row in rows[1:]:
        values = [cell.get_text() for cell in _cells(row)]
        if len(values) > len(heads):
            logger.warning(f"Table row is longer than head, ignoring some content: {heads} {values}")
        parsed.append(dict(zip(heads, values)))

    return parsed


def parse_first_table(html: str) -> list[dict[str, str]]:
    """Find the first <table> in an HTML fragment and parse it."""
    soup = BeautifulSoup(html, "html.parser")
    return parse_table(soup.find("table"))
