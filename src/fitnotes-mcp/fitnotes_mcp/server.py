#!/usr/bin/env python3
"""Fitnotes MCP Server.

This MCP server provides:
- Resources for reading the notes corpus (list, by id, by tag)
- A tool that totals workout time from fitness-tagged notes
- A tool for creating notes

Resource URIs:
- notes://list-all[?search=...&limit=...&offset=...]
- notes://read/{id}
- notes://by-tag?tag=a,b[&mode=any|all&limit=...&offset=...]
  (notes://by-tag/{tag} also accepted)
"""

from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
import mcp.types as types
from typing import Any, Dict, Iterable, Tuple
from urllib.parse import parse_qs, unquote, urlsplit
import asyncio
import json
import logging

from fitnotes.config import configure_logging, load_settings
from fitnotes.duration import build_extractor
from fitnotes.exceptions import FitnotesError, NoteNotFound
from fitnotes.queries import (
    calculate_workout_hours,
    create_note,
    get_note,
    list_notes,
    notes_by_tag,
)
from fitnotes.repository import NOTE_TYPES, NoteRepository
from fitnotes.workouts import WorkoutAggregator

logger = logging.getLogger(__name__)

JSON_MIME = "application/json"

# Initialize server and collaborators
server = Server("fitnotes-mcp")
settings = load_settings()
notes_repo = NoteRepository(settings.notes_path)
aggregator = WorkoutAggregator(build_extractor(settings))


def parse_notes_uri(uri: str) -> Tuple[str, list, Dict[str, str]]:
    """
    Split a notes:// URI into (resource, path segments, query params).

    Examples:
        notes://read/note_1            → ("read", ["note_1"], {})
        notes://by-tag?tag=yoga&limit=5 → ("by-tag", [], {"tag": "yoga", "limit": "5"})
    """
    parts = urlsplit(uri)
    if parts.scheme != "notes":
        raise ValueError(f"Unsupported URI scheme: {uri}")

    segments = [unquote(s) for s in parts.path.split("/") if s]
    params = {
        key: values[-1]
        for key, values in parse_qs(parts.query, keep_blank_values=True).items()
    }
    return parts.netloc, segments, params


# =============================================================================
# RESOURCES
# =============================================================================

@server.list_resources()
async def list_resources_handler() -> list[types.Resource]:
    """List static resources."""
    return [
        types.Resource(
            uri="notes://list-all",
            name="List All Notes",
            description="Get all notes, with optional search, limit and offset query parameters",
            mimeType=JSON_MIME,
        ),
    ]


@server.list_resource_templates()
async def list_resource_templates_handler() -> list[types.ResourceTemplate]:
    """List parameterized resources."""
    return [
        types.ResourceTemplate(
            uriTemplate="notes://read/{id}",
            name="Get Note by ID",
            description="Get a specific note by its ID",
            mimeType=JSON_MIME,
        ),
        types.ResourceTemplate(
            uriTemplate="notes://by-tag?tag={tag}",
            name="Get Notes by Tag",
            description="""Get notes filtered by tag.

tag is comma-separated and may be URL-encoded. Matching ignores case.
Optional query parameters: mode (any|all, default any), limit (1-100, default 10), offset.""",
            mimeType=JSON_MIME,
        ),
    ]


async def _read(uri: str) -> Dict[str, Any]:
    """Route a resource read to its query."""
    resource, segments, params = parse_notes_uri(uri)

    if resource == "list-all":
        return await asyncio.to_thread(
            list_notes,
            notes_repo,
            params.get("search"),
            params.get("limit"),
            params.get("offset"),
        )

    if resource == "read":
        if not segments:
            raise NoteNotFound("")
        return await asyncio.to_thread(get_note, notes_repo, segments[0])

    if resource == "by-tag":
        tag = params.get("tag")
        if tag is None and segments:
            tag = segments[0]
        return await asyncio.to_thread(
            notes_by_tag,
            notes_repo,
            tag,
            params.get("limit"),
            params.get("offset"),
            params.get("mode"),
        )

    raise ValueError(f"Unknown resource: {uri}")


@server.read_resource()
async def read_resource_handler(uri) -> Iterable[ReadResourceContents]:
    """Read a notes:// resource as JSON."""
    uri_str = str(uri)
    logger.info(f"Resource read: {uri_str}")

    try:
        result = await _read(uri_str)
    except (FitnotesError, ValueError) as e:
        logger.warning(f"Rejected resource read {uri_str}: {e}")
        raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=str(e))) from e

    return [ReadResourceContents(content=json.dumps(result, indent=2), mime_type=JSON_MIME)]


# =============================================================================
# TOOLS
# =============================================================================

@server.list_tools()
async def list_tools_handler() -> list[types.Tool]:
    """List available tools."""
    return [
        types.Tool(
            name="calculate-workout-hours",
            description="""Calculate total workout hours from exercise notes.

Selects notes tagged with a fitness tag (fitness, workout, exercise, training,
gym, cardio, strength, yoga, running, jogging, walking, swimming, cycling),
estimates each note's duration, and returns totals and per-day/per-week averages.

Notes have no reliable workout date, so every fitness note is counted;
days only sets the averaging window.""",
            inputSchema={
                "type": "object",
                "properties": {
                    "days": {
                        "type": "integer",
                        "description": "Number of days to average over (default: 30)",
                        "default": 30,
                        "minimum": 1
                    }
                },
                "required": []
            }
        ),
        types.Tool(
            name="create-note",
            description="Create a new note with specified type and metadata",
            inputSchema={
                "type": "object",
                "properties": {
                    "title": {
                        "type": "string",
                        "description": "Title of the note"
                    },
                    "content": {
                        "type": "string",
                        "description": "Content of the note"
                    },
                    "type": {
                        "type": "string",
                        "enum": list(NOTE_TYPES),
                        "description": "Type of note (workout, nutrition, or general)"
                    },
                    "tags": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Tags for categorization (optional)"
                    },
                    "metadata": {
                        "type": "object",
                        "description": "Additional metadata as key-value pairs (optional)"
                    }
                },
                "required": ["title", "content", "type"]
            }
        ),
    ]


async def _handle_tool(name: str, args: dict) -> Any:
    """Route tool calls to handlers."""

    if name == "calculate-workout-hours":
        return await calculate_workout_hours(
            notes_repo,
            aggregator,
            days=args.get("days"),
            default_days=settings.default_period_days,
        )

    elif name == "create-note":
        return await asyncio.to_thread(
            create_note,
            notes_repo,
            args.get("title"),
            args.get("content"),
            args.get("type", "general"),
            args.get("tags"),
            args.get("metadata"),
        )

    else:
        raise ValueError(f"Unknown tool: {name}")


@server.call_tool()
async def call_tool_handler(name: str, arguments: dict) -> list[types.TextContent]:
    """Handle tool calls."""
    arguments = arguments or {}
    logger.info(f"Tool called: {name} with args: {json.dumps(arguments, default=str)}")

    try:
        result = await _handle_tool(name, arguments)
        return [types.TextContent(type="text", text=json.dumps(result, default=str, indent=2))]
    except (FitnotesError, ValueError) as e:
        logger.warning(f"Tool {name} rejected: {e}")
        return [types.TextContent(type="text", text=json.dumps({"error": str(e)}))]
    except Exception as e:
        logger.error(f"Tool {name} failed: {e}", exc_info=True)
        return [types.TextContent(type="text", text=json.dumps({"error": str(e)}))]


async def run():
    """Run the MCP server."""
    logger.info(f"Starting Fitnotes MCP server (notes: {settings.notes_path})")

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options()
            )
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        raise
    finally:
        logger.info("Fitnotes MCP server stopped")


def main():
    """Entry point."""
    configure_logging(settings)
    asyncio.run(run())


if __name__ == "__main__":
    main()
