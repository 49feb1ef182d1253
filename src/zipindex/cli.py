"""CLI entry point for zipindex."""

import argparse
import logging
import sys
from typing import Optional, Sequence

from zipindex import config
from zipindex.errors import ZipIndexError
from zipindex.services import ProjectService
from zipindex.storage import IndexStoreSQLite
from zipindex.utils.formatting import format_entry_page, format_project, format_size

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(message)s",
)
logger = logging.getLogger(__name__)


def open_service(db: str) -> ProjectService:
    """Open (creating if needed) the index database and wrap it in a service."""
    store = IndexStoreSQLite(db)
    store.initialize()
    return ProjectService(store)


def ingest(
    db: str,
    source: str,
    name: Optional[str] = None,
    user: int = 1,
    description: Optional[str] = None,
) -> int:
    """Import a ZIP archive as a new project and index it.

    Returns:
        The new project's id
    """
    service = open_service(db)
    project = service.import_archive(
        source, name=name or source, user_id=user, description=description
    )
    logger.info(f"Indexing {project.original_filename} as project #{project.id}")

    result = service.ingest(project.id)
    stats = result.stats

    logger.info("")
    logger.info(
        f"Project #{project.id} {result.status.value}: "
        f"{stats.files} files, {stats.directories} directories, "
        f"{stats.nested_archives} nested archives, {stats.previews} previews, "
        f"{stats.errors} errors"
    )
    return project.id


def projects(db: str, user: Optional[int], page: int, limit: int) -> None:
    """List projects, newest first."""
    service = open_service(db)
    result = service.list_projects(user_id=user, page=page, limit=limit)
    if not result.items:
        print("No projects found")
        return
    for project in result.items:
        print(format_project(project))
    print(f"\npage {result.page}/{result.pages} ({result.total} projects)")


def ls(db: str, project_id: int, directory: Optional[str], page: int, limit: int) -> None:
    """List a project's indexed entries."""
    service = open_service(db)
    result = service.list_entries(project_id, directory=directory, page=page, limit=limit)
    if not result.items:
        print(f"No entries found in '{directory}'" if directory else "No entries found")
        return
    print(format_entry_page(result))


def read(db: str, project_id: int, path: str) -> None:
    """Print the stored preview of a file."""
    service = open_service(db)
    content = service.read_entry(project_id, path)
    if content is None:
        logger.error(f"File not found: {path}")
        sys.exit(1)
    if content.content is None:
        print("This file does not have a text preview available.")
        return
    print(content.content)
    if content.truncated:
        print("\n[preview truncated]")


def info(db: str, project_id: int) -> None:
    """Show information about a project and its index."""
    service = open_service(db)
    summary = service.summary(project_id)
    project = summary.project

    print(f"Project #{project.id}: {project.name}")
    if project.description:
        print(f"  {project.description}")
    print(f"")
    print(f"Archive:")
    print(f"  File: {project.original_filename} ({format_size(project.archive_size)})")
    print(f"  Stored at: {project.archive_path}")
    print(f"")
    print(f"Status: {project.status.value}")
    print(f"  Entries: {summary.total_entries}")
    print(f"  Directories: {len(summary.directories)}")
    print(f"  Errors: {project.error_count}")
    print(f"  Updated: {project.updated_at.isoformat(timespec='seconds')}")
    if summary.sample_paths:
        print(f"")
        print(f"Sample:")
        for path in summary.sample_paths:
            print(f"  {path}")


def delete(db: str, project_id: int) -> None:
    """Delete a project, its index and its stored archive."""
    service = open_service(db)
    service.delete_project(project_id)
    logger.info(f"Project #{project_id} deleted")


def serve(db: str, transport: str = "stdio") -> None:
    """Start the MCP server over an index database."""
    # Import here to avoid loading MCP unless needed
    from zipindex.server import create_mcp_server

    from typing import cast, Literal

    logger.info(f"Serving {db} via {transport}")
    mcp = create_mcp_server(open_service(db))
    mcp.run(transport=cast(Literal["stdio", "sse", "streamable-http"], transport))


def deck(db: str) -> None:
    """Launch the Flight Deck TUI for interactive ingestion."""
    from zipindex.flight_deck import main as flight_deck_main

    flight_deck_main(db)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zipindex",
        description="zipindex - recursive ZIP/JAR file indexer",
    )
    parser.add_argument(
        "--db",
        default=config.DATABASE_PATH,
        help=f"Index database path (default: {config.DATABASE_PATH})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ingest command
    ingest_parser = subparsers.add_parser(
        "ingest",
        help="Import a ZIP archive as a project and index it",
    )
    ingest_parser.add_argument("source", help="Path to the .zip archive")
    ingest_parser.add_argument("-n", "--name", help="Project name (default: the path)")
    ingest_parser.add_argument("-u", "--user", type=int, default=1, help="Owning user id")
    ingest_parser.add_argument("-d", "--description", help="Project description")

    # projects command
    projects_parser = subparsers.add_parser("projects", help="List projects")
    projects_parser.add_argument("-u", "--user", type=int, help="Only this user's projects")
    projects_parser.add_argument("--page", type=int, default=1)
    projects_parser.add_argument("--limit", type=int, default=10)

    # ls command
    ls_parser = subparsers.add_parser("ls", help="List a project's indexed entries")
    ls_parser.add_argument("project", type=int, help="Project id")
    ls_parser.add_argument(
        "--directory",
        help='Only list this directory level ("" or "/" for the top level)',
    )
    ls_parser.add_argument("--page", type=int, default=1)
    ls_parser.add_argument("--limit", type=int, default=config.PAGE_SIZE)

    # read command
    read_parser = subparsers.add_parser("read", help="Show a file's text preview")
    read_parser.add_argument("project", type=int, help="Project id")
    read_parser.add_argument("path", help="Logical path of the file (as shown by ls)")

    # info command
    info_parser = subparsers.add_parser("info", help="Show information about a project")
    info_parser.add_argument("project", type=int, help="Project id")

    # delete command
    delete_parser = subparsers.add_parser("delete", help="Delete a project and its index")
    delete_parser.add_argument("project", type=int, help="Project id")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start an MCP server over the index")
    serve_parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )

    # deck command
    subparsers.add_parser("deck", help="Launch Flight Deck TUI for interactive ingestion")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        if args.command == "ingest":
            ingest(args.db, args.source, args.name, args.user, args.description)
        elif args.command == "projects":
            projects(args.db, args.user, args.page, args.limit)
        elif args.command == "ls":
            ls(args.db, args.project, args.directory, args.page, args.limit)
        elif args.command == "read":
            read(args.db, args.project, args.path)
        elif args.command == "info":
            info(args.db, args.project)
        elif args.command == "delete":
            delete(args.db, args.project)
        elif args.command == "serve":
            serve(args.db, args.transport)
        elif args.command == "deck":
            deck(args.db)
    except (ZipIndexError, FileNotFoundError, ValueError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
