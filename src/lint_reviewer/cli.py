#!/usr/bin/env python3
"""
Lint Reviewer CLI

Run the webhook server, review a pull request on demand, or inspect how a patch
maps to review-comment positions.
"""

import asyncio
import json
import re
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from src.clients.github_factory import get_github_client
from src.lint_reviewer.diff_positions import build_position_map
from src.lint_reviewer.dispatcher import DispatchOutcome, build_dispatcher
from src.lint_reviewer.exceptions import MalformedHunkError

load_dotenv()

app = typer.Typer(
    name="lint-reviewer",
    help="Lint the changed lines of pull requests and post inline review comments",
    add_completion=False,
)
console = Console()

_PR_REFERENCE_RE = re.compile(r"^(?P<repo>[\w.-]+)#(?P<number>\d+)$")


def log_success(message: str) -> None:
    console.print(f"✅ {message}", style="green")


def log_warning(message: str) -> None:
    console.print(f"⚠️  {message}", style="yellow")


def log_error(message: str) -> None:
    console.print(f"❌ {message}", style="red")


def parse_pr_reference(reference: str) -> tuple[str, int]:
    """Parse `repo#123` into (repo, 123).

    Raises:
        ValueError: If the reference cannot be parsed
    """
    match = _PR_REFERENCE_RE.match(reference.strip())
    if not match:
        raise ValueError(f"Cannot parse pull request {reference!r}; expected REPO#NUMBER")
    return match.group("repo"), int(match.group("number"))


async def review_pull_request(repo: str, pr_number: int) -> DispatchOutcome:
    """Run a review as if the pull request had just been opened."""
    async with get_github_client() as client:
        pr = await client.get_pull_request(repo, pr_number)
        payload = {
            "action": "opened",
            "number": pr_number,
            "repository": {"name": repo, "owner": {"login": client.owner}},
            "pull_request": {"head": {"ref": pr["head"]["ref"], "sha": pr["head"]["sha"]}},
        }
        return await build_dispatcher(client).dispatch(payload)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port (defaults to PORT or 5000)"),
) -> None:
    """Run the webhook server."""
    # Imported here so the app (and its config) only loads for this command
    from src.lint_reviewer.server.main import run

    run(host=host, port=port)


@app.command()
def review(
    pull_request: str = typer.Argument(..., help="Pull request as REPO#NUMBER"),
) -> None:
    """Lint a pull request and post the review now."""
    try:
        repo, pr_number = parse_pr_reference(pull_request)
    except ValueError as e:
        log_error(str(e))
        raise typer.Exit(1)

    outcome = asyncio.run(review_pull_request(repo, pr_number))

    if outcome == DispatchOutcome.DONE:
        log_success(f"Reviewed {repo}#{pr_number}")
    elif outcome == DispatchOutcome.SKIPPED:
        log_warning(f"Skipped {repo}#{pr_number}: no usable lint config on the head branch")
    else:
        log_error(f"Review of {repo}#{pr_number} {outcome.value}")
        raise typer.Exit(1)


@app.command()
def positions(
    patch_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="File holding a patch"),
    as_json: bool = typer.Option(False, "--json", help="Print the map as JSON"),
) -> None:
    """Show which review-comment position each added line maps to."""
    try:
        position_map = build_position_map(patch_file.read_text(encoding="utf-8"))
    except MalformedHunkError as e:
        log_error(str(e))
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps({str(line): pos for line, pos in position_map.items()}))
        return

    table = Table(title=f"Added lines in {patch_file.name}")
    table.add_column("New-file line", justify="right")
    table.add_column("Position", justify="right")
    for line, pos in position_map.items():
        table.add_row(str(line), str(pos))
    console.print(table)


if __name__ == "__main__":
    app()
