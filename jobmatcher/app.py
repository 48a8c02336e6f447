import argparse
import json
from pathlib import Path

from . import __version__
from .cleanup import cleanup_stale_jobs
from .config import Settings, load_env
from .database import get_session_factory, init_database
from .errors import InvalidInput, MatcherError, NotFound
from .logger import get_logger
from .models import Job, Resume
from .pipeline import get_user_matches, run_match_pipeline
from .retry import RetryError, exponential_backoff
from .schema import validate_job, validate_resume
from .scoring import compute_match_scores, compute_overall_score, recommend_jobs
from .storage import SqlStore


def _load_json(path_str: str):
    input_path = Path(path_str)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _as_list(data, key: str) -> list:
    if isinstance(data, dict) and key in data:
        data = data[key]
    return data if isinstance(data, list) else [data]


def _open_store(db_path: Path) -> SqlStore:
    init_database(db_path)
    return SqlStore(get_session_factory(db_path))


def cmd_init_db(args: argparse.Namespace) -> None:
    init_database(args.db)
    print(f"Database ready: {args.db}")


def cmd_validate(args: argparse.Namespace) -> None:
    data = _load_json(args.input)
    validate = validate_resume if args.kind == "resume" else validate_job
    errors = validate(data)
    if errors:
        print("Invalid:")
        for e in errors:
            print(f" - {e}")
        raise SystemExit(2)
    print("Valid")


def cmd_import_resumes(args: argparse.Namespace) -> None:
    store = _open_store(args.db)
    saved = skipped = 0
    for item in _as_list(_load_json(args.input), "resumes"):
        try:
            store.add_resume(Resume.from_dict(item))
            saved += 1
        except InvalidInput as e:
            print(f"[validation_error] {item.get('id') if isinstance(item, dict) else item} - {e.errors}")
            skipped += 1
    print(f"Done. saved={saved} skipped={skipped}")


def cmd_import_jobs(args: argparse.Namespace) -> None:
    store = _open_store(args.db)
    jobs = []
    skipped = 0
    for item in _as_list(_load_json(args.input), "jobs"):
        try:
            jobs.append(Job.from_dict(item))
        except InvalidInput as e:
            print(f"[validation_error] {item.get('id') if isinstance(item, dict) else item} - {e.errors}")
            skipped += 1
    saved = store.add_jobs(jobs)
    print(f"Done. saved={saved} skipped={skipped}")


def cmd_score(args: argparse.Namespace) -> None:
    try:
        resume = Resume.from_dict(_load_json(args.resume))
        job = Job.from_dict(_load_json(args.job))
    except InvalidInput as e:
        raise SystemExit(f"Invalid input: {e}")
    scores = compute_match_scores(resume, job)
    print(f"Skill:    {scores.skill * 100:.1f}")
    print(f"Location: {scores.location * 100:.1f}")
    print(f"Company:  {scores.company * 100:.1f}")
    print(f"Salary:   {scores.salary * 100:.1f}")
    print(f"Overall:  {compute_overall_score(scores)}")


def cmd_match(args: argparse.Namespace) -> None:
    settings: Settings = args.settings
    store = _open_store(args.db)
    logger = get_logger()
    retries = settings.max_retries if args.retries is None else args.retries
    timeout = settings.timeout if args.timeout is None else args.timeout

    def on_retry(attempt, exc, delay):
        logger.warning(f"Match attempt {attempt} failed, retrying in {delay:.1f}s", error=str(exc))

    run = exponential_backoff(max_retries=retries, on_retry=on_retry)(run_match_pipeline)
    try:
        result = run(
            args.resume_id,
            store,
            store,
            store,
            job_limit=settings.job_limit,
            timeout=timeout,
        )
    except NotFound as e:
        raise SystemExit(str(e))
    except (RetryError, MatcherError) as e:
        raise SystemExit(f"Matching failed: {e}")

    print(f"Scored {len(result.matches)} jobs.")
    print(f"created={result.created_count} already-present={result.skipped_count} failed={result.failed_count}")
    for match in result.new_matches[: args.show]:
        print(f"  [{match.match_score:3d}] {match.job_id}")


def cmd_matches(args: argparse.Namespace) -> None:
    store = _open_store(args.db)
    try:
        matches = get_user_matches(store, args.user_id)
    except MatcherError as e:
        raise SystemExit(f"Listing matches failed: {e}")
    if args.json:
        print(json.dumps([m.to_dict() for m in matches], indent=2, ensure_ascii=False))
        return
    if not matches:
        print(f"No matches for user {args.user_id}.")
        return
    print(f"Found {len(matches)} matches for user {args.user_id}:\n")
    for match in matches:
        job = match.job
        print(f"[{match.match_score:3d}] {match.job_id}")
        if job is not None:
            print(f"  Title: {job.title}")
            print(f"  Company: {job.company}")
            print(f"  Location: {job.location}")
            print(f"  Salary: {job.salary_range or '-'}")
        print(
            f"  Factors: skill={match.skill_match_score:.0f} location={match.location_match_score:.0f} "
            f"company={match.company_match_score:.0f} salary={match.salary_match_score:.0f}"
        )
        print()


def cmd_recommend(args: argparse.Namespace) -> None:
    settings: Settings = args.settings
    store = _open_store(args.db)
    try:
        resume = store.get_resume_by_id(args.resume_id)
        jobs = store.list_recent_jobs(settings.job_limit)
    except MatcherError as e:
        raise SystemExit(f"Recommendation failed: {e}")
    if resume is None:
        raise SystemExit(f"Resume not found: {args.resume_id}")
    for item in recommend_jobs(resume, jobs, limit=args.limit):
        print(f"[{item.match_score:3d}] {item.job.id} {item.job.title} @ {item.job.company}")


def cmd_cleanup(args: argparse.Namespace) -> None:
    settings: Settings = args.settings
    days = settings.stale_days if args.days is None else args.days
    store = _open_store(args.db)
    try:
        before, after = cleanup_stale_jobs(store, days=days)
    except MatcherError as e:
        raise SystemExit(f"Cleanup failed: {e}")
    print(f"Removed {before - after} stale jobs, {after} remaining.")


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobmatcher", description="Score resumes against job postings")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--db", type=Path, default=settings.db_path, help=f"SQLite database (default: {settings.db_path})")

    subparsers = parser.add_subparsers(dest="command")

    init = subparsers.add_parser("init-db", help="Create the database tables")
    init.set_defaults(func=cmd_init_db)

    val = subparsers.add_parser("validate", help="Validate a resume or job JSON")
    val.add_argument("--kind", required=True, choices=["resume", "job"], help="Payload type")
    val.add_argument("--input", required=True, help="Path to JSON input")
    val.set_defaults(func=cmd_validate)

    imr = subparsers.add_parser("import-resumes", help="Load parsed resumes from JSON (object or list)")
    imr.add_argument("--input", required=True, help="Path to JSON input")
    imr.set_defaults(func=cmd_import_resumes)

    imj = subparsers.add_parser("import-jobs", help="Load scraped jobs from JSON (object or list)")
    imj.add_argument("--input", required=True, help="Path to JSON input")
    imj.set_defaults(func=cmd_import_jobs)

    sc = subparsers.add_parser("score", help="Score one resume JSON against one job JSON")
    sc.add_argument("--resume", required=True, help="Path to resume JSON")
    sc.add_argument("--job", required=True, help="Path to job JSON")
    sc.set_defaults(func=cmd_score)

    mt = subparsers.add_parser("match", help="Run the match pipeline for a resume and store new matches")
    mt.add_argument("--resume-id", required=True, help="Resume id")
    mt.add_argument("--timeout", type=float, help="Seconds before giving up on one attempt")
    mt.add_argument("--retries", type=int, help="Retries on store failures")
    mt.add_argument("--show", type=int, default=10, help="How many new matches to print (default 10)")
    mt.set_defaults(func=cmd_match)

    ms = subparsers.add_parser("matches", help="List stored matches for a user, best first")
    ms.add_argument("--user-id", required=True, help="User id")
    ms.add_argument("--json", action="store_true", help="Print as JSON")
    ms.set_defaults(func=cmd_matches)

    rec = subparsers.add_parser("recommend", help="Rank recent jobs for a resume without storing anything")
    rec.add_argument("--resume-id", required=True, help="Resume id")
    rec.add_argument("--limit", type=int, default=10, help="Number of jobs (default 10)")
    rec.set_defaults(func=cmd_recommend)

    cln = subparsers.add_parser("cleanup", help="Delete stale jobs and their matches")
    cln.add_argument("--days", type=int, help=f"Age threshold in days (default {settings.stale_days})")
    cln.set_defaults(func=cmd_cleanup)

    return parser


def main(argv=None):
    # Load .env if present (JOBMATCHER_DB, JOBMATCHER_LOG_LEVEL, etc.)
    load_env()
    settings = Settings.from_env()
    parser = build_parser(settings)
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    get_logger(level=settings.log_level, log_dir=settings.log_dir)
    args.settings = settings

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
