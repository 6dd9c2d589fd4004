"""Main entry point for RoleCase."""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from rolecase import __version__
from rolecase.config.settings import Settings
from rolecase.errors import ExtractionFailure, SaveFailure
from rolecase.utils.logging import configure_logging

PROGRESS_REFRESH_SEC = 1.0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="rolecase",
        description="RoleCase: capture job postings and queue them for parsing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m rolecase extract https://boards.greenhouse.io/acme/jobs/123
  python -m rolecase scrape https://example.com/jobs/42 --html saved.html
  python -m rolecase queue list
  python -m rolecase save 3f2a... --title "Senior Engineer" --feature hard_skill:Python
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set the log level (overrides settings)",
    )

    subparsers = parser.add_subparsers(
        dest="mode",
        title="commands",
        description="Available commands",
    )

    extract_parser = subparsers.add_parser(
        "extract",
        help="Extract a job posting and print it as JSON",
    )
    extract_parser.add_argument("url", help="URL of the job posting")
    extract_parser.add_argument(
        "--html",
        type=Path,
        default=None,
        help="Read the page from a saved HTML file instead of fetching it",
    )
    extract_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Also write the extracted posting to this JSON file",
    )

    scrape_parser = subparsers.add_parser(
        "scrape",
        help="Extract a job posting and queue it for parsing",
    )
    scrape_parser.add_argument("url", help="URL of the job posting")
    scrape_parser.add_argument(
        "--html",
        type=Path,
        default=None,
        help="Read the page from a saved HTML file instead of fetching it",
    )
    scrape_parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Do not print progress while the job is parsing",
    )

    queue_parser = subparsers.add_parser(
        "queue",
        help="Inspect or clear the local job queue",
    )
    queue_sub = queue_parser.add_subparsers(dest="queue_cmd", required=True)
    queue_sub.add_parser("list", help="List queued jobs, newest first")
    show_parser = queue_sub.add_parser("show", help="Show one job as JSON")
    show_parser.add_argument("job_id", help="Job id")
    clear_parser = queue_sub.add_parser("clear", help="Remove every queued job")
    clear_parser.add_argument(
        "--yes",
        action="store_true",
        help="Do not ask for confirmation",
    )

    save_parser = subparsers.add_parser(
        "save",
        help="Save a job in review to the backend",
    )
    save_parser.add_argument("job_id", help="Job id")
    for field in (
        "title",
        "company",
        "location",
        "salary_range",
        "job_url",
        "date_posted",
        "date_closing",
        "date_extracted",
    ):
        save_parser.add_argument(
            f"--{field.replace('_', '-')}",
            dest=field,
            default=None,
            help=f"Override the parsed {field.replace('_', ' ')}",
        )
    save_parser.add_argument(
        "--feature",
        action="append",
        default=None,
        metavar="TYPE:TEXT",
        help="Replace the feature list (repeatable)",
    )

    subparsers.add_parser(
        "stats",
        help="Show the rolling parse-time estimate",
    )

    return parser


def _print_job_line(job, stats) -> None:
    from rolecase.orchestrator.estimator import estimate_progress

    result = job.parsed_result
    title = (result.title if result else None) or job.scraped_meta.title or "(untitled)"
    company = (result.company if result else None) or job.scraped_meta.company
    line = f"{job.id} {job.status.value:<7} {title}"
    if company:
        line += f" @ {company}"
    progress = estimate_progress(job, stats)
    if progress is not None:
        line += f" [{progress.percent:.0f}%, ~{progress.seconds_left}s left]"
    if job.error_msg:
        line += f" ({job.error_msg})"
    print(line)


async def _scrape(url: str, html: Path | None):
    from rolecase.extractor.loader import FilePageLoader, HttpPageLoader
    from rolecase.extractor.service import JobScraper

    loader = FilePageLoader(html) if html is not None else HttpPageLoader()
    return await JobScraper().extract(url, loader)


async def _scrape_and_queue(settings: Settings, parsed: argparse.Namespace) -> int:
    from rolecase.orchestrator.estimator import estimate_progress
    from rolecase.session import RoleCaseSession

    scraped = await _scrape(parsed.url, parsed.html)

    async with await RoleCaseSession.open(settings) as session:
        job = await session.enqueue(scraped)
        print(f"Queued job {job.id}: {scraped.title or scraped.url}")

        waiter = asyncio.ensure_future(session.wait_for(job.id))
        while not waiter.done():
            await asyncio.wait({waiter}, timeout=PROGRESS_REFRESH_SEC)
            if waiter.done() or parsed.no_progress:
                continue
            current = await session.get_job(job.id)
            if current is None:
                continue
            progress = estimate_progress(current, await session.stats())
            if progress is not None:
                print(f"  parsing... {progress.percent:.0f}% (~{progress.seconds_left}s left)")

        final = waiter.result()
        if final is None:
            print("Job was removed before it finished", file=sys.stderr)
            return 1
        _print_job_line(final, await session.stats())
        return 0 if final.status.value == "review" else 1


async def _queue(settings: Settings, parsed: argparse.Namespace) -> int:
    from rolecase.hitl import prompt_yes_no
    from rolecase.session import RoleCaseSession

    async with await RoleCaseSession.open(settings) as session:
        if parsed.queue_cmd == "list":
            jobs = await session.list_jobs()
            stats = await session.stats()
            if not jobs:
                print("Queue is empty")
            for job in jobs:
                _print_job_line(job, stats)
            return 0

        if parsed.queue_cmd == "show":
            job = await session.get_job(parsed.job_id)
            if job is None:
                print("Not found")
                return 1
            print(json.dumps(job.model_dump(mode="json"), indent=2))
            return 0

        if parsed.queue_cmd == "clear":
            if not parsed.yes and not prompt_yes_no("Remove every job from the queue?"):
                print("Aborted")
                return 1
            removed = await session.clear_queue()
            print(f"Removed {removed} jobs")
            return 0

    print("Unknown queue command", file=sys.stderr)
    return 1


async def _save(settings: Settings, parsed: argparse.Namespace) -> int:
    from rolecase.backend.service import FeatureEdit, JobEdits
    from rolecase.hitl import parse_feature
    from rolecase.session import RoleCaseSession

    features = None
    if parsed.feature is not None:
        features = [
            FeatureEdit(type=kind, description=text)
            for kind, text in map(parse_feature, parsed.feature)
        ]
    edits = JobEdits(
        title=parsed.title,
        company=parsed.company,
        location=parsed.location,
        salary_range=parsed.salary_range,
        job_url=parsed.job_url,
        date_posted=parsed.date_posted,
        date_closing=parsed.date_closing,
        date_extracted=parsed.date_extracted,
        features=features,
    )

    async with await RoleCaseSession.open(settings) as session:
        job = await session.save(parsed.job_id, edits)
    print(f"Saved job {job.id}")
    return 0


async def _stats(settings: Settings) -> int:
    from rolecase.session import RoleCaseSession

    async with await RoleCaseSession.open(settings) as session:
        stats = await session.stats()
    print(f"jobs timed: {stats.count}")
    print(f"average parse time: {stats.avg_time_sec:.1f}s")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point for the application.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    # Load settings
    try:
        settings = Settings()
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    log_level = parsed.log_level or settings.log_level
    logger = configure_logging(level=log_level)

    if parsed.mode is None:
        parser.print_help()
        return 0

    logger.info(f"RoleCase v{__version__} running {parsed.mode}")

    try:
        if parsed.mode == "extract":
            scraped = asyncio.run(_scrape(parsed.url, parsed.html))
            if parsed.out is not None:
                scraped.save_json(parsed.out)
                print(f"Wrote: {parsed.out}")
            print(json.dumps(scraped.to_dict(), indent=2))
            return 0

        if parsed.mode == "scrape":
            return asyncio.run(_scrape_and_queue(settings, parsed))

        if parsed.mode == "queue":
            return asyncio.run(_queue(settings, parsed))

        if parsed.mode == "save":
            return asyncio.run(_save(settings, parsed))

        if parsed.mode == "stats":
            return asyncio.run(_stats(settings))
    except ExtractionFailure as e:
        print(f"Extraction failed: {e}", file=sys.stderr)
        return 1
    except SaveFailure as e:
        print(f"Save failed: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
