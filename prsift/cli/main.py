"""Main CLI entry point for prsift - unresolved PR review feedback."""

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import DEFAULT_PAGE_SIZE, LOG_LEVEL
from ..errors import PrsiftError
from ..models import UnresolvedPage
from ..pipeline import SUGGESTION_CATEGORIES, SortStrategy
from ..review_config import ReviewConfig
from .init_config import init_config

logger = logging.getLogger(__name__)

PRIORITY_STYLES = [(70, "red"), (30, "yellow"), (0, "dim")]


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Log to stderr so JSON output on stdout stays clean."""
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s | %(levelname)s | %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prsift",
        description="Find unresolved review feedback on GitHub pull requests",
        epilog="Run 'prsift <command> --help' for more information on a command.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # unresolved command - one page of unresolved comments
    unresolved_parser = subparsers.add_parser(
        "unresolved",
        help="List unresolved review comments on a PR",
        description="Fetch one page of inline comments, discussion comments and review suggestions "
        "that are still unresolved. Defaults come from prsift.yaml.",
    )
    unresolved_parser.add_argument(
        "pr",
        type=str,
        help="PR identifier: owner/repo#123, owner/repo/pull/123, a GitHub PR URL, or a number",
    )
    unresolved_parser.add_argument(
        "--cursor",
        "-c",
        type=str,
        default=None,
        help="Cursor from a previous page's next_cursor",
    )
    unresolved_parser.add_argument(
        "--page-size",
        "-n",
        type=int,
        default=DEFAULT_PAGE_SIZE,
        help=f"Items fetched per source (default: {DEFAULT_PAGE_SIZE})",
    )
    unresolved_parser.add_argument(
        "--sort",
        "-s",
        choices=[s.value for s in SortStrategy],
        default=None,
        help="Sort strategy (default: from prsift.yaml, else priority)",
    )
    unresolved_parser.add_argument("--no-bots", action="store_true", help="Exclude comments from bots")
    unresolved_parser.add_argument(
        "--exclude-author",
        action="append",
        default=[],
        metavar="LOGIN",
        help="Exclude comments by this author (repeatable)",
    )
    unresolved_parser.add_argument(
        "--no-review-bodies",
        action="store_true",
        help="Do not parse review bodies into suggestions",
    )
    unresolved_parser.add_argument(
        "--no-status",
        action="store_true",
        help="Skip status indicators and priority scoring",
    )
    unresolved_parser.add_argument("--no-nits", action="store_true", help="Hide nitpick suggestions")
    unresolved_parser.add_argument("--no-duplicates", action="store_true", help="Hide duplicate suggestions")
    unresolved_parser.add_argument("--no-additional", action="store_true", help="Hide additional suggestions")
    unresolved_parser.add_argument(
        "--category",
        action="append",
        choices=SUGGESTION_CATEGORIES,
        default=None,
        help="Only show suggestions of this category (repeatable)",
    )
    unresolved_parser.add_argument(
        "--group-by-type",
        action="store_true",
        help="Group suggestions by category, then file",
    )
    unresolved_parser.add_argument(
        "--prioritize-actionable",
        action="store_true",
        help="Move actionable suggestions to the front",
    )
    unresolved_parser.add_argument("--json", action="store_true", help="Print the raw JSON page")

    # init command - generate config
    init_parser = subparsers.add_parser(
        "init",
        help="Generate a starter prsift.yaml",
        description="Detect the repository and write prsift.yaml with default options.",
    )
    init_parser.add_argument(
        "--root",
        type=Path,
        default=Path.cwd(),
        help="Repository root directory (default: current directory)",
    )
    init_parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Output file path (default: prsift.yaml in root)",
    )

    # mcp command - start MCP server for AI assistants
    subparsers.add_parser(
        "mcp",
        help="Start MCP server for AI assistants (requires prsift[mcp])",
        description="Start an MCP (Model Context Protocol) server exposing find_unresolved_comments.",
    )

    return parser


def options_from_args(args: argparse.Namespace, config: ReviewConfig):
    """Layer command line flags over prsift.yaml defaults."""
    from ..aggregator import FindOptions

    suggestions = replace(config.suggestions)
    if args.no_nits:
        suggestions.include_nits = False
    if args.no_duplicates:
        suggestions.include_duplicates = False
    if args.no_additional:
        suggestions.include_additional = False
    if args.category:
        suggestions.categories = list(args.category)
    if args.group_by_type:
        suggestions.group_by_type = True
    if args.prioritize_actionable:
        suggestions.prioritize_actionable = True

    overrides = {
        "cursor": args.cursor,
        "page_size": args.page_size,
        "suggestions": suggestions,
        "exclude_authors": list(config.exclude_authors) + args.exclude_author,
    }
    if args.sort:
        overrides["sort"] = SortStrategy(args.sort)
    if args.no_bots:
        overrides["include_bots"] = False
    if args.no_review_bodies:
        overrides["parse_review_bodies"] = False
    if args.no_status:
        overrides["include_status_indicators"] = False

    return FindOptions.from_config(config, **overrides)


async def run_unresolved(args: argparse.Namespace, config: ReviewConfig) -> UnresolvedPage:
    from ..aggregator import find_unresolved_comments
    from ..github_client import GitHubClient
    from ..repo import parse_pr_identifier

    pr = parse_pr_identifier(args.pr)
    options = options_from_args(args, config)

    async with GitHubClient() as client:
        page = await find_unresolved_comments(client, pr, options)
        logger.info(f"{client.request_count} API requests, {client.rate_limit_remaining} remaining")
    return page


def _priority_cell(score: int | None) -> str:
    if score is None:
        return "-"
    style = next(s for threshold, s in PRIORITY_STYLES if score >= threshold)
    return f"[{style}]{score}[/]"


def _location(comment) -> str:
    if not comment.file_path:
        return "-"
    if comment.line_start is None:
        return comment.file_path
    if comment.line_end is not None and comment.line_end != comment.line_start:
        return f"{comment.file_path}:{comment.line_start}-{comment.line_end}"
    return f"{comment.file_path}:{comment.line_start}"


def _first_line(text: str, width: int = 80) -> str:
    line = next((ln.strip() for ln in text.splitlines() if ln.strip()), "")
    return line if len(line) <= width else line[: width - 3] + "..."


def render_page(page: UnresolvedPage, console: Console) -> None:
    """Print one page as a rich table plus summary lines."""
    table = Table(title=f"Unresolved feedback on {page.pr}", expand=True)
    table.add_column("Priority", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Author", style="magenta")
    table.add_column("Location", style="green")
    table.add_column("Comment")
    table.add_column("Action", style="dim")

    for comment in page.comments:
        kind = comment.kind
        if comment.suggestion_metadata:
            kind = f"{kind} ({comment.suggestion_metadata.category})"
        table.add_row(
            _priority_cell(comment.status.priority_score if comment.status else None),
            kind,
            escape(comment.author) + (" [dim](bot)[/]" if comment.is_automated else ""),
            escape(_location(comment)),
            escape(_first_line(comment.body)),
            comment.status.suggested_action if comment.status else "-",
        )

    console.print(table)

    summary = page.summary
    console.print(
        f"[bold]{page.unresolved_in_page}[/] unresolved in this page "
        f"({summary.human_comments} human, {summary.bot_comments} bot)"
    )
    if summary.priority_summary:
        p = summary.priority_summary
        console.print(
            f"[red]{p.high_priority} high[/] | [yellow]{p.medium_priority} medium[/] | "
            f"[dim]{p.low_priority} low[/] | {p.actionable_items} actionable | {p.outdated_comments} outdated"
        )
    if page.next_cursor:
        console.print(f"\n[dim]Next page: prsift unresolved {page.pr} --cursor {page.next_cursor}[/]")


def main(argv: list[str] | None = None):
    """Main CLI entry point for prsift."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging()

    if args.command == "unresolved":
        import trio

        from ..extractors.users import set_config

        console = Console()
        err_console = Console(stderr=True)
        try:
            config = ReviewConfig.load()
            set_config(config)
            page = trio.run(run_unresolved, args, config)
        except (PrsiftError, ValueError) as e:
            err_console.print(f"[red]Error: {escape(str(e))}[/]")
            sys.exit(1)

        if args.json:
            print(json.dumps(page.model_dump(mode="json", exclude_none=True), indent=2))
        else:
            render_page(page, console)

    elif args.command == "init":
        output = args.output or args.root / "prsift.yaml"
        init_config(args.root, output)

    elif args.command == "mcp":
        from ..mcp_server import main as mcp_main

        mcp_main()

    elif args.command is None:
        parser.print_help()
        sys.exit(0)

    else:
        print(f"Unknown command: {args.command}")
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
