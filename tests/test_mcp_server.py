"""Tests for the MCP server tools over an in-memory client session."""

import json

from mcp.shared.memory import create_connected_server_and_client_session

import story_builder.mcp_server as mcp_server
from story_builder import storage


def _texts(result) -> list[str]:
    return [c.text for c in result.content]


async def _call(name: str, arguments: dict):
    async with create_connected_server_and_client_session(mcp_server.mcp) as client:
        return await client.call_tool(name, arguments)


async def test_tools_are_listed():
    async with create_connected_server_and_client_session(mcp_server.mcp) as client:
        tools = await client.list_tools()
    names = {t.name for t in tools.tools}
    assert names == {"chapter_structure", "chapter_phase", "list_projects", "list_chapters"}


async def test_chapter_structure():
    result = await _call("chapter_structure", {
        "total_chapters": 20, "structure": "kishotenketsu", "estimated_length": 50000,
    })
    data = json.loads(_texts(result)[0])
    assert [p["name"] for p in data["phases"]] == ["起", "承", "転", "結"]
    assert data["phases"][3]["chapters"] == [16, 17, 18, 19, 20]
    assert data["estimated_words"] == 2500
    assert data["estimated_reading_time"] == 10


async def test_chapter_phase():
    result = await _call("chapter_phase", {"total_chapters": 10, "structure": "three-act", "chapter_number": 9})
    assert _texts(result) == ["第三幕"]
    result = await _call("chapter_phase", {"total_chapters": 10, "structure": "three-act", "chapter_number": 11})
    assert _texts(result) == ["未分類"]


async def test_chapter_structure_unknown_structure():
    result = await _call("chapter_structure", {"total_chapters": 10, "structure": "hero-journey"})
    assert result.isError


async def test_list_projects_and_chapters():
    store = storage.get_storage()
    project = store.create_project({"title": "星の街", "genre": "ファンタジー"})
    for number in (1, 2):
        store.create_chapter(project.id, {"title": f"第{number}章", "structure": "ki", "order": number})

    projects = [json.loads(t) for t in _texts(await _call("list_projects", {}))]
    assert projects == [{"id": project.id, "title": "星の街", "genre": "ファンタジー", "current_step": 1}]

    chapters = [json.loads(t) for t in _texts(await _call("list_chapters", {"project_id": project.id}))]
    assert [c["title"] for c in chapters] == ["第1章", "第2章"]
    # two chapters: 起 [1], 承 [2]
    assert [c["phase"] for c in chapters] == ["起", "承"]


async def test_list_chapters_unknown_project():
    result = await _call("list_chapters", {"project_id": "nope"})
    assert result.isError
