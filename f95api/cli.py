"""Command-line interface for F95API.

This module provides a Typer-based CLI on top of the retrieval library.

Commands:
- search: Run a handiwork search and print the result URLs
- thread: Log in and retrieve a complete thread
- config: Show the effective configuration

Example:
    $ f95api search --keywords "sandbox" --limit 10
    $ f95api search --tag 3d --tag sandbox --category games --order views
    $ f95api thread 12345
    $ f95api config
"""

import asyncio
import uuid
from datetime import datetime
from typing import List, NoReturn, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from f95api.api import AsyncPlatformClient
from f95api.config import settings
from f95api.errors import F95Error
from f95api.logging import clear_request_context, set_request_context, setup_logging
from f95api.pipeline import ThreadPipeline
from f95api.queries import Category, HandiworkOrder, HandiworkSearchQuery
from f95api.search import fetch_handiwork_urls
from f95api.session import Session
from f95api.utils import format_date

# Initialize CLI app
app = typer.Typer(
    name="f95api",
    help="Search and retrieve threads from the F95Zone forum",
    add_completion=False,
)
console = Console()


# =============================================================================
# Helper Functions
# =============================================================================


def configure_logging(verbose: bool = False) -> None:
    """Reconfigure the log sinks for a command run.

    Args:
        verbose: If True, set DEBUG level; otherwise use the configured level
    """
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        json_logs=settings.log_json,
        log_file=settings.log_file,
        colorize=not settings.log_json,
    )


def run_async(coro, operation: str, thread_id: Optional[int] = None):
    """Run an async coroutine with a fresh request context."""
    set_request_context(request_id=uuid.uuid4().hex[:12], operation=operation, thread_id=thread_id)
    try:
        return asyncio.run(coro)
    finally:
        clear_request_context()


def fail(message: str) -> NoReturn:
    console.print(f"\n❌ [bold red]{message}[/bold red]")
    raise typer.Exit(code=1)


# =============================================================================
# CLI Commands
# =============================================================================


@app.command()
def search(
    keywords: Optional[str] = typer.Option(
        None,
        "--keywords",
        "-k",
        help="Free-text keywords (forces the forum search backend)",
    ),
    tags: Optional[List[str]] = typer.Option(
        None,
        "--tag",
        "-t",
        help="Tag that results must have (repeatable)",
    ),
    excluded_tags: Optional[List[str]] = typer.Option(
        None,
        "--exclude-tag",
        "-x",
        help="Tag that results must not have (repeatable)",
    ),
    category: Category = typer.Option(
        Category.GAMES,
        "--category",
        "-c",
        help="Content category",
    ),
    order: HandiworkOrder = typer.Option(
        HandiworkOrder.RELEVANCE,
        "--order",
        "-o",
        help="Result order",
    ),
    newer_than: Optional[datetime] = typer.Option(
        None,
        "--newer-than",
        formats=["%Y-%m-%d"],
        help="Only content updated after this date (YYYY-MM-DD)",
    ),
    page: int = typer.Option(1, "--page", "-p", help="Result page"),
    limit: int = typer.Option(
        settings.search_limit,
        "--limit",
        "-n",
        help="Maximum number of results",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """Search the platform and print the matching thread URLs.

    Without keywords and with at most five tags the latest-updates listing
    is used; otherwise the forum search is queried.

    Examples:
        # Latest games tagged "sandbox", most viewed first
        $ f95api search --tag sandbox --order views

        # Keyword search limited to five results
        $ f95api search --keywords "space" --limit 5
    """
    configure_logging(verbose)

    try:
        query = HandiworkSearchQuery(
            keywords=keywords or "",
            included_tags=tags or [],
            excluded_tags=excluded_tags or [],
            category=category,
            order=order,
            newer_than=newer_than.date() if newer_than else None,
            page=page,
        )
    except ValidationError as e:
        fail(f"Invalid query: {e.errors()[0]['msg']}")

    console.print("🔎 [bold cyan]F95API Search[/bold cyan]\n")

    async def _search() -> list[str]:
        async with AsyncPlatformClient() as client:
            return await fetch_handiwork_urls(client, query, limit=limit)

    try:
        urls = run_async(_search(), "search")
    except F95Error as e:
        fail(f"Search failed: {e}")

    if not urls:
        console.print("No results")
        return

    for index, url in enumerate(urls, 1):
        console.print(f"{index:>3}. [yellow]{url}[/yellow]")
    console.print(f"\n✅ [bold green]{len(urls)} result(s)[/bold green]")


@app.command()
def thread(
    thread_id: int = typer.Argument(..., help="Thread ID"),
    username: Optional[str] = typer.Option(
        None,
        "--username",
        "-u",
        help="Platform account (defaults to F95_USERNAME)",
    ),
    password: Optional[str] = typer.Option(
        None,
        "--password",
        help="Platform password (defaults to F95_PASSWORD)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """Log in and retrieve a complete thread.

    Fetching a thread needs a logged account because the platform is asked
    to render more posts per page before the pages are downloaded.

    Examples:
        $ f95api thread 12345 --username me --password secret
    """
    configure_logging(verbose)

    username = username or settings.username
    password = password or settings.password
    if not username or not password:
        fail("Credentials required: pass --username/--password or set F95_USERNAME/F95_PASSWORD")

    console.print(f"🧵 [bold cyan]F95API Thread {thread_id}[/bold cyan]\n")

    async def _thread():
        session = Session()
        async with AsyncPlatformClient() as client:
            (await session.login(client, username, password)).unwrap()
            try:
                return await ThreadPipeline(client, session).fetch_thread(thread_id)
            finally:
                await session.logout(client)

    try:
        result = run_async(_thread(), "thread", thread_id=thread_id)
    except F95Error as e:
        fail(f"Retrieval failed: {e}")

    table = Table(title=result.title, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="yellow")

    table.add_row("URL", result.url)
    table.add_row("Prefixes", ", ".join(result.prefixes) or "-")
    table.add_row("Tags", ", ".join(result.tags) or "-")
    table.add_row("Owner ID", str(result.owner.id))
    table.add_row("Created", format_date(result.creation))
    table.add_row(
        "Rating",
        f"{result.rating.average:.1f}/{result.rating.best} ({result.rating.count:,} votes)",
    )
    table.add_row("Posts", f"{len(result.posts):,}")

    console.print(table)
    console.print("\n✅ [bold green]Thread retrieved![/bold green]")


@app.command()
def config() -> None:
    """Show the effective configuration (secrets redacted).

    Examples:
        $ F95_ENVIRONMENT=production f95api config
    """
    table = Table(title="Configuration", show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="yellow")

    table.add_row("Environment", str(settings.environment))
    table.add_row("Base URL", settings.base_url)
    table.add_row("Request Timeout", f"{settings.request_timeout}s")
    table.add_row("Connect Timeout", f"{settings.connect_timeout}s")
    table.add_row("Transport Retries", str(settings.transport_retries))
    table.add_row("Posts Per Page", str(settings.posts_per_page))
    table.add_row("Search Limit", str(settings.search_limit))
    table.add_row("Username", settings.username or "None")
    table.add_row("Password", settings.redact(settings.password))
    table.add_row("Log Level", settings.log_level)
    table.add_row("JSON Logs", str(settings.log_json))

    console.print(table)


def main() -> None:
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
