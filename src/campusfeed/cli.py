"""
CLI entrypoint for campusfeed.

Provides command-line interface for scraping, classification, listing and
serving the REST API.
"""

import sys
import argparse
from dotenv import load_dotenv

from campusfeed.classify import classify
from campusfeed.facebook import ConfigurationError, FacebookScraper, resolve_sources
from campusfeed.settings import load_settings
from campusfeed.storage import open_storage


def print_ingestion_summary(results: list) -> None:
    """Print ingestion summary to console."""
    print("\n" + "=" * 60)
    print("INGESTION SUMMARY")
    print("=" * 60)

    print(f"\nTotal sources processed: {len(results)}")
    print(f"Total posts fetched: {sum(r.get('fetched', 0) for r in results)}")
    print(f"Announcements created: {sum(r.get('created', 0) for r in results)}")
    print(f"Duplicates skipped: {sum(r.get('duplicates', 0) for r in results)}")
    print(f"Posts without text: {sum(r.get('skipped', 0) for r in results)}")
    print(f"Errors: {sum(r.get('errors', 0) for r in results)}")

    print("\n" + "-" * 60)
    print("PER-SOURCE RESULTS:")
    print("-" * 60)

    for result in results:
        status_symbol = "[OK]" if result.get("errors", 0) == 0 else "[FAIL]"

        print(f"\n{status_symbol} {result['display_name']} ({result['source_id']})")
        print(f"   Fetched: {result.get('fetched', 0)}")
        print(f"   Created: {result.get('created', 0)}")
        print(f"   Duplicates: {result.get('duplicates', 0)}")
        print(f"   Skipped: {result.get('skipped', 0)}")

        if result.get("error_message"):
            print(f"   Error: {result['error_message']}")


def scrape_command(args) -> int:
    """
    Execute the scrape command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        settings = load_settings()
    except ValueError as e:
        print(f"[ERROR] {e}")
        return 1

    if args.db:
        settings.db_path = args.db
    if args.limit_per_source is not None:
        settings.posts_per_source = args.limit_per_source

    try:
        sources = resolve_sources(args.sources or settings.sources_path)
    except Exception as e:
        print(f"[ERROR] Failed to load configuration: {e}")
        return 1

    if not sources:
        print("[ERROR] No enabled sources found in configuration")
        return 1

    try:
        scraper = FacebookScraper.from_settings(settings, sources=sources)
    except ConfigurationError as e:
        print(f"[ERROR] {e}")
        print("\nPlease set FACEBOOK_ACCESS_TOKEN in your .env file")
        return 1

    if not settings.db_path:
        print("[WARN] CAMPUSFEED_DB not set; announcements will not outlive this run")

    storage = open_storage(settings.db_path)

    try:
        results = scraper.ingest_all(storage, only_source=args.only)

        print_ingestion_summary(results)

        report_path = scraper.write_report(results, args.report_dir or settings.report_dir)
        print(f"\n[REPORT] Report written to: {report_path}")

        return 0

    except KeyboardInterrupt:
        print("\n\n[INTERRUPTED] Ingestion cancelled by user")
        return 130

    except Exception as e:
        print(f"\n[ERROR] Ingestion failed: {e}")
        import traceback
        traceback.print_exc()
        return 1

    finally:
        storage.close()


def classify_command(args) -> int:
    """
    Execute the classify command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for error)
    """
    if args.file:
        try:
            with open(args.file, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            print(f"[ERROR] Failed to read {args.file}: {e}")
            return 1
    elif args.text is not None:
        text = args.text
    else:
        text = sys.stdin.read()

    result = classify(text)

    print(f"Category: {result.category}")
    print(f"Interests: {', '.join(result.relevant_interests) or '(none)'}")
    departments = ", ".join(result.relevant_majors)
    if result.metadata.get("department_fallback"):
        departments += " (no department keywords; all departments)"
    print(f"Departments: {departments}")

    return 0


def list_command(args) -> int:
    """
    Execute the list command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        settings = load_settings()
    except ValueError as e:
        print(f"[ERROR] {e}")
        return 1

    db_path = args.db or settings.db_path
    if not db_path:
        print("[ERROR] No database configured (use --db or CAMPUSFEED_DB)")
        return 1

    interests = [i for i in args.interests.split(",") if i] if args.interests else None

    storage = open_storage(db_path)
    try:
        announcements = storage.get_announcements_by_filter(args.category, interests)
    finally:
        storage.close()

    print(f"[INFO] {len(announcements)} announcement(s)")

    for announcement in announcements[:args.limit]:
        print(f"\n#{announcement.id} [{announcement.category}] {announcement.date.isoformat()}")
        print(f"   {announcement.title}")
        print(f"   Interests: {', '.join(announcement.relevant_interests) or '-'}")
        print(f"   Departments: {', '.join(announcement.relevant_majors)}")

    return 0


def serve_command(args) -> int:
    """
    Execute the serve command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for error)
    """
    from campusfeed.web import create_app

    try:
        settings = load_settings()
    except ValueError as e:
        print(f"[ERROR] {e}")
        return 1

    if args.db:
        settings.db_path = args.db

    if not settings.db_path:
        print("[INFO] CAMPUSFEED_DB not set; using in-memory storage")

    app = create_app(settings=settings)
    app.run(host=args.host, port=args.port, debug=args.debug)
    return 0


def main():
    """Main CLI entrypoint."""
    # Load environment variables from .env file
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="campusfeed - campus announcements from Facebook pages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scrape all configured pages into a SQLite database
  campusfeed scrape --db data/db/campusfeed.sqlite3

  # Scrape a single page
  campusfeed scrape --only dlsu.usg --limit-per-source 10

  # Classify a piece of text
  campusfeed classify "Career fair and internship talks this Friday"

  # Serve the REST API
  campusfeed serve --port 5000

Environment Variables:
  FACEBOOK_ACCESS_TOKEN        Graph API access token (required for scrape)
  FACEBOOK_GRAPH_URL           Graph API base (default: https://graph.facebook.com/v23.0)
  CAMPUSFEED_SOURCES           Sources file (default: config/facebook_sources.yaml)
  CAMPUSFEED_DB                SQLite path (default: in-memory storage)
  CAMPUSFEED_POSTS_PER_SOURCE  Posts fetched per page (default: 5)
  CAMPUSFEED_REQUEST_TIMEOUT   HTTP timeout in seconds (default: 30)
  CAMPUSFEED_REPORT_DIR        Report directory (default: data/reports)
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # scrape command
    scrape_parser = subparsers.add_parser(
        "scrape",
        help="Scrape Facebook pages into announcements",
    )

    scrape_parser.add_argument(
        "--sources",
        type=str,
        help="Path to facebook_sources.yaml (default: CAMPUSFEED_SOURCES)",
    )

    scrape_parser.add_argument(
        "--db",
        type=str,
        help="Path to SQLite database (default: CAMPUSFEED_DB)",
    )

    scrape_parser.add_argument(
        "--limit-per-source",
        type=int,
        help="Maximum posts to fetch per source (default: CAMPUSFEED_POSTS_PER_SOURCE or 5)",
    )

    scrape_parser.add_argument(
        "--only",
        type=str,
        metavar="SOURCE_ID",
        help="Scrape only the specified source ID",
    )

    scrape_parser.add_argument(
        "--report-dir",
        type=str,
        help="Report output directory (default: CAMPUSFEED_REPORT_DIR or data/reports)",
    )

    # classify command
    classify_parser = subparsers.add_parser(
        "classify",
        help="Classify text into category, interests and departments",
    )

    classify_parser.add_argument(
        "text",
        type=str,
        nargs="?",
        help="Text to classify (reads stdin if omitted)",
    )

    classify_parser.add_argument(
        "--file",
        type=str,
        help="Read text to classify from a file",
    )

    # list command
    list_parser = subparsers.add_parser(
        "list",
        help="List stored announcements",
    )

    list_parser.add_argument(
        "--db",
        type=str,
        help="Path to SQLite database (default: CAMPUSFEED_DB)",
    )

    list_parser.add_argument(
        "--category",
        type=str,
        help="Only this category ('all' for every category)",
    )

    list_parser.add_argument(
        "--interests",
        type=str,
        help="Comma-separated interests; keeps announcements matching any",
    )

    list_parser.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Maximum announcements to print (default: 20)",
    )

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the REST API server",
    )

    serve_parser.add_argument("--host", type=str, default="127.0.0.1", help="Bind host (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=5000, help="Bind port (default: 5000)")
    serve_parser.add_argument("--db", type=str, help="Path to SQLite database (default: CAMPUSFEED_DB)")
    serve_parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "scrape":
        return scrape_command(args)
    elif args.command == "classify":
        return classify_command(args)
    elif args.command == "list":
        return list_command(args)
    elif args.command == "serve":
        return serve_command(args)
    else:
        print(f"[ERROR] Unknown command: {args.command}")
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
