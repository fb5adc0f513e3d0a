"""
Integration tests for the fitnotes MCP server handlers.

Handlers are called directly; the stdio transport is not started.
"""

import json

import pytest
import mcp.types as types
from mcp.shared.exceptions import McpError

import fitnotes_mcp.server as mcp_server
from fitnotes.duration import DurationExtractor
from fitnotes.workouts import WorkoutAggregator


@pytest.fixture(autouse=True)
def wired_server(monkeypatch, repo, fixed_clock):
    monkeypatch.setattr(mcp_server, "notes_repo", repo)
    monkeypatch.setattr(
        mcp_server, "aggregator", WorkoutAggregator(DurationExtractor(), clock=fixed_clock)
    )


async def _read_json(uri: str):
    contents = await mcp_server.read_resource_handler(uri)
    contents = list(contents)
    assert len(contents) == 1
    assert contents[0].mime_type == "application/json"
    return json.loads(contents[0].content)


async def _call_json(name: str, arguments: dict):
    result = await mcp_server.call_tool_handler(name, arguments)
    assert len(result) == 1
    return json.loads(result[0].text)


class TestParseNotesUri:
    """Tests for parse_notes_uri."""

    @pytest.mark.unit
    def test_read(self) -> None:
        """Path segments are split and decoded."""
        assert mcp_server.parse_notes_uri("notes://read/note%201") == ("read", ["note 1"], {})

    @pytest.mark.unit
    def test_query(self) -> None:
        """Query parameters are decoded, last value wins."""
        resource, segments, params = mcp_server.parse_notes_uri(
            "notes://by-tag?tag=Cardio%2C%20Strength&limit=5&limit=6"
        )
        assert resource == "by-tag"
        assert segments == []
        assert params == {"tag": "Cardio, Strength", "limit": "6"}

    @pytest.mark.unit
    def test_wrong_scheme(self) -> None:
        """Only notes:// is served."""
        with pytest.raises(ValueError):
            mcp_server.parse_notes_uri("file:///etc/passwd")


class TestListings:
    """Tests for resource and tool listings."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_resources(self) -> None:
        """list-all is a static resource; read and by-tag are templates."""
        resources = await mcp_server.list_resources_handler()
        templates = await mcp_server.list_resource_templates_handler()

        assert [str(r.uri).rstrip("/") for r in resources] == ["notes://list-all"]
        assert [t.uriTemplate for t in templates] == ["notes://read/{id}", "notes://by-tag?tag={tag}"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_tools(self) -> None:
        """Both tools are listed with their schemas."""
        tools = {tool.name: tool for tool in await mcp_server.list_tools_handler()}

        assert set(tools) == {"calculate-workout-hours", "create-note"}
        assert tools["calculate-workout-hours"].inputSchema["required"] == []
        assert tools["create-note"].inputSchema["properties"]["type"]["enum"] == [
            "workout", "nutrition", "general",
        ]


class TestReadResource:
    """Tests for read_resource_handler."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_list_all(self) -> None:
        """list-all honours search and paging parameters."""
        data = await _read_json("notes://list-all?search=min&limit=2")
        assert [n["id"] for n in data["data"]] == ["note_1", "note_2"]
        assert data["meta"]["total"] == 3
        assert data["meta"]["search"] == "min"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_read_by_id(self) -> None:
        """read/{id} returns the note."""
        data = await _read_json("notes://read/note_3")
        assert data["data"]["name"] == "Yoga"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_by_tag(self) -> None:
        """by-tag decodes the tag list and matches any tag."""
        data = await _read_json("notes://by-tag?tag=Cardio%2C%20Strength")
        assert [n["id"] for n in data["data"]] == ["note_1", "note_2"]
        assert data["meta"]["mode"] == "any"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_by_tag_all_mode(self) -> None:
        """mode=all narrows the match."""
        data = await _read_json("notes://by-tag?tag=gym,strength&mode=all")
        assert [n["id"] for n in data["data"]] == ["note_2"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_by_tag_path_form(self) -> None:
        """The tag may also be the path segment."""
        data = await _read_json("notes://by-tag/yoga")
        assert [n["id"] for n in data["data"]] == ["note_3"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "uri,message",
        [
            ("notes://by-tag?tag=", "No valid tags specified"),
            ("notes://by-tag?tag=%20%2C", "No valid tags specified"),
            ("notes://read/nope", "Note with ID nope not found"),
            ("notes://list-all?limit=0", "limit must be between 1 and 100"),
            ("notes://list-all?offset=-2", "offset must be >= 0"),
            ("notes://unknown", "Unknown resource"),
        ],
    )
    async def test_invalid_reads(self, uri, message) -> None:
        """Bad reads surface as invalid-params MCP errors."""
        with pytest.raises(McpError) as exc_info:
            await mcp_server.read_resource_handler(uri)

        assert exc_info.value.error.code == types.INVALID_PARAMS
        assert message in exc_info.value.error.message


class TestCallTool:
    """Tests for call_tool_handler."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_calculate_workout_hours(self) -> None:
        """The tool returns totals over the sample corpus."""
        data = await _call_json("calculate-workout-hours", {"days": 30})

        assert data["total"] == {"minutes": 185, "hours": 3.08, "workouts": 3}
        assert data["average"] == {"minutesPerDay": 6.2, "hoursPerWeek": 0.7}
        assert data["period"]["endDate"] == "2025-03-31"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_calculate_workout_hours_default_days(self) -> None:
        """Omitted days uses the configured default."""
        data = await _call_json("calculate-workout-hours", {})
        assert data["period"]["days"] == mcp_server.settings.default_period_days

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_invalid_days(self) -> None:
        """days=0 comes back as an error payload."""
        data = await _call_json("calculate-workout-hours", {"days": 0})
        assert "days must be a positive integer" in data["error"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_create_note_then_read(self) -> None:
        """A created note is readable through the read resource."""
        created = await _call_json(
            "create-note",
            {"title": "Swim", "content": "40 min laps", "type": "workout", "tags": ["swimming"]},
        )
        assert created["success"] is True

        note_id = created["note"]["id"]
        data = await _read_json(f"notes://read/{note_id}")
        assert data["data"]["title"] == "Swim"

        totals = await _call_json("calculate-workout-hours", {})
        assert totals["total"]["minutes"] == 185 + 40

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_create_note_invalid(self) -> None:
        """Missing fields come back as an error payload."""
        data = await _call_json("create-note", {"title": "", "content": "x", "type": "general"})
        assert data["error"] == "title is required"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unknown_tool(self) -> None:
        """Unknown tools are reported, not raised."""
        data = await _call_json("delete-everything", {})
        assert data["error"] == "Unknown tool: delete-everything"
