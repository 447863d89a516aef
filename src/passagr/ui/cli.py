from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from passagr.app import (
    approve,
    pending_reviews,
    register_source,
    reject,
    run_extraction,
    run_link_check,
    scan_freshness,
    show_review,
)
from passagr.config import configure_logging
from passagr.domain.errors import ReviewError
from passagr.domain.model import EntityType, ExtractionTask

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the passagr editorial pipeline")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sources = subparsers.add_parser("sources", help="Source document commands")
    sources_sub = sources.add_subparsers(dest="sources_command", required=True)
    sources_add = sources_sub.add_parser("add", help="Register fetched source text")
    sources_add.add_argument("--url", type=str, required=True, help="Canonical source URL")
    sources_add.add_argument(
        "--excerpt-file",
        type=Path,
        required=True,
        help="Path to a text file holding the fetched source content",
    )
    sources_add.add_argument("--title", type=str, help="Optional document title")
    sources_add.add_argument("--publisher", type=str, help="Optional publishing organisation")

    extract = subparsers.add_parser("extract", help="Extract and route a candidate entity")
    extract.add_argument(
        "--source-id",
        type=str,
        required=True,
        help="Id of the source document to extract from",
    )
    extract.add_argument(
        "--entity-type",
        type=EntityType,
        choices=list(EntityType),
        required=True,
        help="Kind of entity to extract",
    )
    extract.add_argument(
        "--entity-id",
        type=str,
        help="Existing entity id when the extraction updates a published entity",
    )

    reviews = subparsers.add_parser("reviews", help="Editorial review commands")
    reviews_sub = reviews.add_subparsers(dest="reviews_command", required=True)
    reviews_sub.add_parser("list", help="List pending reviews")
    reviews_show = reviews_sub.add_parser("show", help="Show a review next to the current data")
    reviews_show.add_argument("review_id", type=str)
    for name, help_text in (
        ("approve", "Approve and publish a pending review"),
        ("reject", "Reject a pending review"),
    ):
        resolve = reviews_sub.add_parser(name, help=help_text)
        resolve.add_argument("review_id", type=str)
        resolve.add_argument(
            "--reviewer",
            type=str,
            required=True,
            help="Uid of the reviewer resolving the review",
        )
        resolve.add_argument("--notes", type=str, help="Optional reviewer notes")

    freshness = subparsers.add_parser("freshness-scan", help="Report stale published entities")
    freshness.add_argument(
        "--enqueue",
        action="store_true",
        help="Re-run extraction for every stale entity with a known source",
    )

    link_check = subparsers.add_parser("link-check", help="Probe source URLs")
    link_check.add_argument(
        "--limit",
        type=int,
        default=100,
        help="Maximum number of sources to check (default: %(default)s)",
    )

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _validate(args: argparse.Namespace) -> None:
    if args.command == "reviews" and args.reviews_command != "list":
        args.review_id = _parse_uuid(args.review_id)
    if args.command == "link-check" and args.limit <= 0:
        raise ValueError("Limit must be positive")
    if args.command == "sources" and not args.excerpt_file.is_file():
        raise ValueError(f"Excerpt file not found: {args.excerpt_file}")


def _run_reviews(args: argparse.Namespace) -> None:
    if args.reviews_command == "list":
        reviews = pending_reviews()
        log.info("%s pending reviews", len(reviews))
        for review in reviews:
            log.info(
                "%s [%s] %s %s: %s",
                review.id,
                review.impact.value,
                review.entity_type.value,
                review.entity_id or "<new>",
                review.reason,
            )
    elif args.reviews_command == "show":
        details = show_review(args.review_id)
        log.info("Review %s: %s", details.review.id, details.review.diff_summary)
        for diff in details.review.diff_fields:
            log.info("  %s: %r -> %r", diff.field, diff.from_value, diff.to_value)
        if details.current is None:
            log.info("No published version; proposal adds a new entity")
    elif args.reviews_command == "approve":
        result = approve(args.review_id, reviewer_uid=args.reviewer, notes=args.notes)
        log.info(
            "Published %s %s at version %s",
            result.entity.entity_type.value,
            result.entity.id,
            result.entity.version,
        )
    elif args.reviews_command == "reject":
        review = reject(args.review_id, reviewer_uid=args.reviewer, notes=args.notes)
        log.info("Rejected review %s", review.id)


def _dispatch(args: argparse.Namespace) -> None:
    if args.command == "sources" and args.sources_command == "add":
        source = register_source(
            url=args.url,
            excerpt=args.excerpt_file.read_text(encoding="utf-8"),
            title=args.title,
            publisher=args.publisher,
        )
        log.info("Source id: %s", source.id)
    elif args.command == "extract":
        task = ExtractionTask(
            source_id=args.source_id,
            entity_type=args.entity_type,
            entity_id=args.entity_id,
        )
        report = run_extraction([task])
        if report.failed:
            raise RuntimeError("Extraction run failed; see log for details")
    elif args.command == "reviews":
        _run_reviews(args)
    elif args.command == "freshness-scan":
        freshness, batch = scan_freshness(enqueue=args.enqueue)
        log.info(
            "Freshness scan: %s stale, %s without a source",
            len(freshness.stale),
            freshness.without_source,
        )
        if batch is not None and batch.failed:
            raise RuntimeError(f"{batch.failed} re-extractions failed")
    elif args.command == "link-check":
        links = run_link_check(limit=args.limit)
        if links.unrecorded:
            raise RuntimeError(f"{len(links.unrecorded)} link check results could not be recorded")
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        _dispatch(parsed_args)
    except ReviewError:
        log.exception("Review could not be resolved")
        sys.exit(1)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
