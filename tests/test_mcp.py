"""Tests for the MCP tool surface."""

import asyncio
import json

import pytest
from ghost_typewriter import mcp as typewriter_mcp


@pytest.fixture
def scripted_env(monkeypatch):
    """Run the server session against the scripted backend."""
    monkeypatch.setenv("GHOST_TYPEWRITER_BACKEND", "scripted")
    monkeypatch.setenv("GHOST_TYPEWRITER_MAX_LINES", "5")
    monkeypatch.setattr(typewriter_mcp, "_session", None)
    yield
    if typewriter_mcp._session is not None:
        typewriter_mcp._session.close()


def call(name, arguments):
    result = asyncio.run(typewriter_mcp.call_tool(name, arguments))
    return result[0].text


def test_tool_names():
    assert [tool.name for tool in typewriter_mcp.TOOLS] == [
        "type_text",
        "backspace",
        "turn_page",
        "prev_page",
        "next_page",
        "goto_page",
        "get_view",
        "wait",
    ]


def test_load_config_from_env(monkeypatch):
    """Test that the environment configures the session."""
    monkeypatch.setenv("GHOST_TYPEWRITER_MAX_LINES", "12")
    monkeypatch.setenv("GHOST_TYPEWRITER_BACKEND", "openai")
    monkeypatch.setenv("GHOST_TYPEWRITER_OPENAI_MODEL", "gpt-test")
    monkeypatch.setenv("GHOST_TYPEWRITER_SESSION_ID", "abc")

    config = typewriter_mcp.load_config()

    assert config.max_lines == 12
    assert config.backend == "openai"
    assert config.openai_model == "gpt-test"
    assert config.session_id == "abc"
    assert config.default_background == "/films/default_film.png"


def test_load_config_defaults_to_http(monkeypatch):
    monkeypatch.delenv("GHOST_TYPEWRITER_BACKEND", raising=False)
    monkeypatch.delenv("GHOST_TYPEWRITER_SERVER_URL", raising=False)

    config = typewriter_mcp.load_config()

    assert config.backend == "http"
    assert config.server_url == "http://localhost:5001"


def test_get_view(scripted_env):
    """Test that the view is serialised as JSON."""
    view = json.loads(call("get_view", {}))

    assert view["current_index"] == 0
    assert view["page_label"] == "Page 1 / 1"
    assert view["mode"] == "cinematicIntro"
    assert view["ghost_words"] == []


def test_type_text_during_intro_is_blocked(scripted_env):
    assert call("type_text", {"text": "hello"}) == "Queued 0 of 5 characters"


def test_unknown_tool(scripted_env):
    assert call("fly", {}) == "Unknown tool: fly"


def test_errors_returned_as_text(scripted_env):
    """Test that exceptions come back as error text instead of raising."""
    assert call("goto_page", {"index": 4}).startswith("Error: Page not found")
    assert call("type_text", {}).startswith("Error:")
