"""MCP server exposing unresolved review feedback to AI assistants.

Requires optional dependencies: pip install prsift[mcp]

Usage:
    prsift mcp  # Start the MCP server on stdio
"""

from __future__ import annotations

import json
import logging
from typing import Any

# Check if MCP dependencies are available
MCP_AVAILABLE = False

try:
    from mcp.server import Server
    from mcp.server.stdio import stdio_server
    from mcp.types import TextContent, Tool

    MCP_AVAILABLE = True
except ImportError:
    pass

import trio

from .aggregator import FindOptions, find_unresolved_comments
from .errors import PrsiftError
from .extractors.users import set_config as set_extractor_config
from .github_client import GitHubClient
from .pipeline import SUGGESTION_CATEGORIES, SortStrategy, SuggestionOptions
from .repo import parse_pr_identifier
from .review_config import ReviewConfig

logger = logging.getLogger(__name__)

FIND_UNRESOLVED_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "pr": {
            "type": "string",
            "description": "PR identifier: owner/repo#123, owner/repo/pull/123, a GitHub PR URL, or a number",
        },
        "cursor": {
            "type": "string",
            "description": "Opaque cursor from a previous call's next_cursor",
        },
        "include_bots": {"type": "boolean", "default": True},
        "exclude_authors": {"type": "array", "items": {"type": "string"}},
        "sort": {
            "type": "string",
            "enum": [s.value for s in SortStrategy],
            "default": SortStrategy.PRIORITY.value,
        },
        "parse_review_bodies": {"type": "boolean", "default": True},
        "include_status_indicators": {"type": "boolean", "default": True},
        "priority_ordering": {"type": "boolean", "default": True},
        "suggestions": {
            "type": "object",
            "properties": {
                "include_nits": {"type": "boolean", "default": True},
                "include_duplicates": {"type": "boolean", "default": True},
                "include_additional": {"type": "boolean", "default": True},
                "categories": {"type": "array", "items": {"type": "string", "enum": list(SUGGESTION_CATEGORIES)}},
                "prioritize_actionable": {"type": "boolean", "default": False},
                "group_by_type": {"type": "boolean", "default": False},
                "extract_prompts": {"type": "boolean", "default": True},
            },
        },
    },
    "required": ["pr"],
}


def options_from_arguments(arguments: dict[str, Any], config: ReviewConfig) -> FindOptions:
    """Build FindOptions from tool arguments layered over config defaults."""
    overrides: dict[str, Any] = {}
    for name in (
        "cursor",
        "include_bots",
        "exclude_authors",
        "parse_review_bodies",
        "include_status_indicators",
        "priority_ordering",
    ):
        if name in arguments:
            overrides[name] = arguments[name]

    if "sort" in arguments:
        overrides["sort"] = SortStrategy(arguments["sort"])

    if "suggestions" in arguments:
        overrides["suggestions"] = SuggestionOptions(**arguments["suggestions"])

    return FindOptions.from_config(config, **overrides)


async def find_unresolved(arguments: dict[str, Any]) -> dict[str, Any]:
    """Run find_unresolved_comments for tool arguments and return JSON data."""
    config = ReviewConfig.load()
    set_extractor_config(config)
    pr = parse_pr_identifier(arguments["pr"])
    options = options_from_arguments(arguments, config)

    async with GitHubClient() as client:
        page = await find_unresolved_comments(client, pr, options)

    return page.model_dump(mode="json", exclude_none=True)


# MCP Server definition
if MCP_AVAILABLE:
    server = Server("prsift")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return [
            Tool(
                name="find_unresolved_comments",
                description=(
                    "Find unresolved review feedback on a pull request: inline comments, discussion "
                    "comments and CodeRabbit suggestions parsed from review bodies, scored and sorted "
                    "by priority. Returns one page; pass next_cursor back as cursor for the next page."
                ),
                inputSchema=FIND_UNRESOLVED_SCHEMA,
            ),
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict) -> list[TextContent]:
        """Handle tool calls.

        Exceptions propagate; the MCP server reports them as tool errors.
        """
        if name != "find_unresolved_comments":
            raise ValueError(f"Unknown tool: {name}")

        try:
            result = await find_unresolved(arguments)
        except PrsiftError as e:
            logger.warning(f"find_unresolved_comments failed: {e}")
            raise

        return [TextContent(type="text", text=json.dumps(result, indent=2))]


async def run_server():
    """Run the MCP server."""
    if not MCP_AVAILABLE:
        raise ImportError(
            "MCP server requires optional dependencies. "
            "Install with: pip install prsift[mcp]"
        )

    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main():
    """Main entry point for MCP server."""
    trio.run(run_server)
