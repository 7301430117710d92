"""
CLI entry point for the catalog scraper.

Commands:
- terms: List the terms Banner offers
- scrape: Scrape terms and write the snapshot JSON
- course: Scrape one course and its sections
"""
import argparse
import asyncio
import logging
import sys

from catalog_scraper.config import settings
from catalog_scraper.scanners.banner_parser import BannerScraper
from catalog_scraper.scanners.request import FetchClient


def setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    # One line per request is too much even at debug
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def list_terms(args):
    """Print every term Banner lists."""

    async def run():
        async with FetchClient() as client:
            return await BannerScraper(client).get_all_term_infos(args.max)

    terms = asyncio.run(run())
    print(f"\n=== {len(terms)} terms ===\n")
    for term in terms:
        active = "*" if term.active else " "
        print(f"[{active}] {term.term_id}  {term.sub_college:<4} {term.text}")


def scrape(args):
    """Scrape terms and write the snapshot."""
    from catalog_scraper.scraper import scrape_catalog, write_snapshot

    term_ids = [t.strip() for t in args.terms.split(",") if t.strip()] if args.terms else None
    snapshot = asyncio.run(scrape_catalog(term_ids))
    path = write_snapshot(snapshot, args.output or settings.output_path)

    print(f"\n=== Scrape Complete ===")
    print(f"Classes:  {len(snapshot.classes):,}")
    print(f"Sections: {len(snapshot.sections):,}")
    print(f"Subjects: {len(snapshot.subjects):,}")
    print(f"Output:   {path}")


def course(args):
    """Scrape one course and its sections."""

    async def run():
        async with FetchClient() as client:
            return await BannerScraper(client).scrape_class(args.term, args.subject.upper(), args.class_id)

    snapshot = asyncio.run(run())
    if not snapshot.classes:
        print(f"{args.subject} {args.class_id} not found in term {args.term}")
        sys.exit(1)

    if args.json:
        print(snapshot.to_json())
        return

    found = snapshot.classes[0]
    print(f"\n=== {found.course_code}: {found.name} ===")
    print(f"Credits: {found.min_credits}-{found.max_credits}")
    print(f"College: {found.college}")
    print(f"URL: {found.url}")
    if found.nupath:
        print(f"NUpath: {', '.join(found.nupath)}")
    if found.fee_amount is not None:
        print(f"Fee: ${found.fee_amount} ({found.fee_description})")
    print(f"\nSections ({len(snapshot.sections)}):")
    for section in snapshot.sections:
        print(f"  CRN {section.crn}: {', '.join(section.profs) or 'TBA'}, "
              f"{section.seats_remaining}/{section.seats_capacity} seats, {section.campus}")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Catalog Scraper - Banner course catalog ingestion",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Terms command
    terms_parser = subparsers.add_parser("terms", help="List terms offered by Banner")
    terms_parser.add_argument("--max", type=int, default=None, help="How many terms to ask for")
    terms_parser.set_defaults(func=list_terms)

    # Scrape command
    scrape_parser = subparsers.add_parser("scrape", help="Scrape terms into a snapshot")
    scrape_parser.add_argument("-t", "--terms", help="Comma separated term ids (default: newest terms)")
    scrape_parser.add_argument("-o", "--output", help="Output JSON path")
    scrape_parser.set_defaults(func=scrape)

    # Course command
    course_parser = subparsers.add_parser("course", help="Scrape one course and its sections")
    course_parser.add_argument("term", help="Term id (e.g., 202130)")
    course_parser.add_argument("subject", help="Subject code (e.g., CS)")
    course_parser.add_argument("class_id", help="Course number (e.g., 2500)")
    course_parser.add_argument("--json", action="store_true", help="Output as JSON")
    course_parser.set_defaults(func=course)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    setup_logging(args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
