#!/usr/bin/env python3
"""
Toolshelf - AI tool catalog, learning articles and tests.
CLI interface for browsing tools, saving favourites, and taking article tests.
"""

import json
import logging
from contextlib import contextmanager

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from clients.news import NEWS_SORT_KEYS, NewsClient
from clients.rest_backend import RestBackend
from config import Config
from core.errors import CatalogError
from core.service import ServiceResult, ToolshelfService
from core.session import SessionContext, UserSession
from core.sort_engine import SORT_KEYS
from storage.database import Database

console = Console()

# Parents before children: tests reference their article
SEED_TABLES = [
    Config.TOOLS_TABLE,
    Config.ARTICLES_TABLE,
    Config.QUESTIONS_TABLE,
]


@contextmanager
def open_service():
    """Build the service for the configured backend with the saved session."""
    session = SessionContext.load(Config.SESSION_PATH)
    news = NewsClient()
    if Config.BACKEND == "rest":
        yield ToolshelfService(RestBackend(session=session), session, news=news)
        return
    with Database(session=session) as db:
        yield ToolshelfService(db, session, news=news)


def report(result: ServiceResult) -> bool:
    """Print a failed result. Returns True if the caller should continue."""
    if result.success:
        return True
    if result.error_kind == "already_exists":
        console.print(f"\n[yellow]{result.message}[/yellow]\n")
        return False
    console.print(f"\n[bold red]Error:[/bold red] {result.error}\n")
    if result.error_kind == "unauthenticated":
        console.print("Use 'toolshelf login <USER_ID>' to sign in.\n")
    raise click.Abort()


def print_pager(page, command: str):
    """Page buttons, current page in brackets."""
    if page.total_pages <= 1:
        return
    buttons = " ".join(f"[{n}]" if n == page.current_page else str(n) for n in page.window)
    console.print(f"[dim]Page {page.current_page}/{page.total_pages}:[/dim] {buttons}")
    if page.has_next:
        console.print(f"[dim]Next: toolshelf {command} --page {page.current_page + 1}[/dim]")
    console.print()


@click.group()
@click.version_option(version="0.1.0", prog_name="Toolshelf")
@click.option("--verbose", "-v", is_flag=True, help="Log completed actions")
@click.option("--debug", is_flag=True, help="Log queries and fetches")
def cli(verbose, debug):
    """Toolshelf - catalog of AI tools with learning articles and tests."""
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


@cli.command()
@click.option(
    "--seed",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file mapping table names to rows",
)
def init(seed):
    """Initialize the local database and optionally load seed data."""
    console.print("\n[bold cyan]Initializing Toolshelf...[/bold cyan]\n")

    Config.ensure_dirs()
    console.print("   ✓ Directories created")

    try:
        with Database() as db:
            db.initialize()
            console.print("   ✓ Database schema created\n")

            if seed:
                with open(seed, encoding="utf-8") as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise click.BadParameter("seed file must map table names to rows")
                unknown = sorted(set(data) - set(SEED_TABLES))
                if unknown:
                    raise click.BadParameter(f"unknown table(s) in seed file: {', '.join(unknown)}")
                for table in SEED_TABLES:
                    rows = data.get(table)
                    if rows is None:
                        continue
                    if not isinstance(rows, list):
                        raise click.BadParameter(f"{table} must be a list of rows")
                    count = db.import_rows(table, rows)
                    console.print(f"   ✓ Loaded {count} rows into {table}")
                console.print()
    except (ValueError, CatalogError) as e:
        # json.JSONDecodeError is a ValueError
        console.print(f"\n[bold red]Error:[/bold red] Cannot load seed file: {e}\n")
        raise click.Abort()

    console.print("[bold green]✨ Toolshelf initialized successfully![/bold green]\n")
    console.print(f"Database: {Config.DB_PATH}")
    console.print("Next steps:")
    console.print("  • toolshelf login <USER_ID> - Sign in")
    console.print("  • toolshelf tools - Browse the catalog\n")


# ==================== SESSION ====================


@cli.command()
@click.argument("user_id")
@click.option("--email", help="Email shown on the profile")
@click.option("--token", help="Access token for the hosted backend")
def login(user_id, email, token):
    """Sign in as USER_ID."""
    session = SessionContext.load(Config.SESSION_PATH)
    session.login(UserSession(user_id=user_id, email=email, access_token=token))
    session.save(Config.SESSION_PATH)
    console.print(f"\n[green]Logged in as {user_id}[/green]\n")


@cli.command()
def logout():
    """Sign out."""
    session = SessionContext.load(Config.SESSION_PATH)
    session.logout()
    session.save(Config.SESSION_PATH)
    console.print("\n[green]Logged out[/green]\n")


@cli.command()
def whoami():
    """Show the signed-in user."""
    user = SessionContext.load(Config.SESSION_PATH).current
    if user is None:
        console.print("\n[yellow]Not logged in.[/yellow]\n")
        return
    console.print(f"\n{user.user_id}" + (f" <{user.email}>" if user.email else "") + "\n")


# ==================== CATALOG ====================


@cli.command()
@click.option("--query", "-q", default="", help="Search in tool titles")
@click.option("--category", "-c", default="", help="Only this category")
@click.option(
    "--sort",
    type=click.Choice([k for k in SORT_KEYS if k]),
    default=None,
    help="Order of the list",
)
@click.option("--page", "-p", type=int, default=1, help="Page number")
def tools(query, category, sort, page):
    """Browse the AI tool catalog."""
    with open_service() as service:
        result = service.catalog_page(query=query, category=category, sort=sort or "", page=page)
    report(result)

    data = result.data
    tool_page = data["page"]
    if data["categories"]:
        console.print(f"\n[dim]Categories: {', '.join(data['categories'])}[/dim]")

    if not tool_page.items:
        console.print("\n[yellow]No tools found.[/yellow]\n")
        return

    table = Table(title=f"AI Tools ({tool_page.total_count})")
    table.add_column("ID", style="cyan")
    table.add_column("Title", style="bold")
    table.add_column("Category")
    table.add_column("Price")
    table.add_column("Saves", justify="right")
    table.add_column("", justify="center")

    for tool in tool_page.items:
        table.add_row(
            str(tool.id),
            tool.title,
            tool.category,
            tool.price,
            str(data["save_counts"].get(tool.id, 0)),
            "★" if tool.id in data["saved_ids"] else "",
        )

    console.print(table)
    console.print()
    print_pager(tool_page, "tools")


@cli.command()
@click.argument("tool_id")
def save(tool_id):
    """Save a tool to your list."""
    with open_service() as service:
        result = service.save_tool(tool_id)
    if report(result):
        console.print(f"\n[green]✓ {result.message}[/green]\n")


@cli.command()
@click.argument("tool_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
def unsave(tool_id, yes):
    """Remove a tool from your list."""
    if not yes and not click.confirm("Remove this tool from saved?", default=False):
        console.print("[dim]Cancelled.[/dim]")
        return
    with open_service() as service:
        result = service.delete_saved_tool(tool_id)
    if report(result):
        console.print(f"\n[green]{result.message}[/green]\n")


@cli.command()
def saved():
    """List your saved tools."""
    with open_service() as service:
        result = service.saved_tools()
    report(result)

    items = result.data["items"]
    if not items:
        console.print("\n[yellow]You have no saved tools yet.[/yellow]\n")
        return

    table = Table(title="Saved Tools")
    table.add_column("ID", style="cyan")
    table.add_column("Title", style="bold")
    table.add_column("Category")
    table.add_column("Link", style="dim")
    for tool in items:
        table.add_row(str(tool.id), tool.title, tool.category, tool.link)
    console.print(table)
    console.print()


# ==================== LEARNING ====================


@cli.command()
@click.option(
    "--difficulty",
    "-d",
    type=click.Choice(["all"] + Config.DIFFICULTY_LEVELS),
    default="all",
    help="Only articles of this level",
)
@click.option("--page", "-p", type=int, default=1, help="Page number")
def learn(difficulty, page):
    """List learning articles."""
    with open_service() as service:
        result = service.learning_page(difficulty=difficulty, page=page)
    report(result)

    article_page = result.data["page"]
    passed = result.data["passed"]
    if not article_page.items:
        console.print("\n[yellow]No articles found.[/yellow]\n")
        return

    console.print()
    for article in article_page.items:
        status = ""
        if article.id in passed:
            status = " [green]✓ passed[/green]" if passed[article.id] else " [red]✗ not passed[/red]"
        console.print(f"[cyan]{article.id}[/cyan] [bold]{article.title}[/bold]{status}")
        console.print(f"[dim]{article.author} | {article.difficulty}[/dim]")
        console.print(article.excerpt())
        console.print()
    print_pager(article_page, "learn")


@cli.command()
@click.argument("article_id")
def test(article_id):
    """Take the test of an article."""
    with open_service() as service:
        result = service.open_test(article_id)
        report(result)

        quiz = result.data["quiz"]
        article = result.data["article"]
        console.print(Panel(f"📝 {article.title}: {len(quiz.questions)} questions", style="cyan"))
        console.print()

        for i, question in enumerate(quiz.questions, 1):
            console.print(f"[bold]Question {i}/{len(quiz.questions)}[/bold]")
            console.print(question.question_text)
            for key, label in question.options.items():
                console.print(f"  {key}) {label}")
            choice = click.prompt(
                "Your answer",
                type=click.Choice(list(question.options)),
                show_choices=False,
            )
            quiz.choose(question.id, choice)
            console.print()

        result = service.submit_test(quiz)
    report(result)

    outcome = result.data["result"]
    style = "green" if outcome.passed else "red"
    verdict = "Passed" if outcome.passed else "Not passed"
    console.print(
        Panel(
            f"{outcome.correct_count}/{outcome.total_questions} correct | "
            f"Score: {outcome.score}% | {verdict}",
            style=style,
        )
    )

    table = Table(title="Review")
    table.add_column("#", style="dim")
    table.add_column("Question")
    table.add_column("Your answer")
    table.add_column("Correct answer")
    for i, line in enumerate(outcome.results, 1):
        mark = "[green]✓[/green]" if line.is_correct else "[red]✗[/red]"
        table.add_row(str(i), line.question.question_text, f"{mark} {line.chosen_label or '-'}", line.correct_label)
    console.print(table)

    if outcome.statistics:
        print_statistics(outcome.statistics)


def print_statistics(statistics):
    console.print(
        f"\n[dim]Attempts: {statistics.total_attempts} | "
        f"Passed: {statistics.successful_passes}[/dim]\n"
    )


@cli.command()
@click.argument("article_id")
def stats(article_id):
    """Show attempt statistics for an article test."""
    with open_service() as service:
        result = service.test_statistics(article_id)
    report(result)
    print_statistics(result.data["statistics"])


@cli.command()
def profile():
    """Show your profile and test progress."""
    with open_service() as service:
        result = service.profile()
    report(result)

    user = result.data["user"]
    console.print(f"\n[bold]{user.user_id}[/bold]" + (f" [dim]{user.email}[/dim]" if user.email else ""))

    progress = result.data["progress"]
    if not progress:
        console.print("\n[yellow]No tests taken yet. Use 'toolshelf learn' to find one.[/yellow]\n")
        return

    table = Table(title="Progress")
    table.add_column("Article", style="bold")
    table.add_column("Test")
    for entry in progress:
        table.add_row(
            entry.title, "[green]passed[/green]" if entry.test_passed else "[red]not passed[/red]"
        )
    console.print(table)
    console.print()


# ==================== BLOG ====================


@cli.command()
@click.option("--query", "-q", default="", help="Search terms (default: AI)")
@click.option(
    "--sort", type=click.Choice(NEWS_SORT_KEYS), default="publishedAt", help="Order of articles"
)
@click.option("--page", "-p", type=int, default=1, help="Page number")
def blog(query, sort, page):
    """Read AI news."""
    with open_service() as service:
        result = service.blog_page(query=query, sort=sort, page=page)
    report(result)

    news_page = result.data["page"]
    if not news_page.items:
        console.print("\n[yellow]No articles found.[/yellow]\n")
        return

    console.print()
    for article in news_page.items:
        console.print(f"[bold]{article.title}[/bold]")
        if article.source_name:
            console.print(f"[dim]{article.source_name}[/dim]")
        if article.description:
            console.print(article.description)
        console.print(f"[blue]{article.url}[/blue]\n")
    print_pager(news_page, "blog")


if __name__ == "__main__":
    cli()
