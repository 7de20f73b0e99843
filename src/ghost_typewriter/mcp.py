"""MCP server for the Ghost Typewriter engine.

Exposes one typewriter session through Model Context Protocol tools.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from ghost_typewriter.clock import AsyncioClock
from ghost_typewriter.models import EngineConfig
from ghost_typewriter.session import TypewriterSession

# Global session instance (initialized on first tool call)
_session: TypewriterSession | None = None


def load_config() -> EngineConfig:
    """Build the engine config from environment variables."""
    return EngineConfig(
        max_lines=int(os.getenv("GHOST_TYPEWRITER_MAX_LINES", "20")),
        backend=os.getenv("GHOST_TYPEWRITER_BACKEND", "http"),
        server_url=os.getenv("GHOST_TYPEWRITER_SERVER_URL", "http://localhost:5001"),
        session_id=os.getenv("GHOST_TYPEWRITER_SESSION_ID"),
        openai_model=os.getenv("GHOST_TYPEWRITER_OPENAI_MODEL", "gpt-4o-mini"),
        default_background=os.getenv(
            "GHOST_TYPEWRITER_DEFAULT_BACKGROUND", "/films/default_film.png"
        ),
    )


def get_session() -> TypewriterSession:
    """Get or start the session. Must be called from the server's event loop."""
    global _session
    if _session is None:
        _session = TypewriterSession(load_config(), clock=AsyncioClock())
        _session.start()
    return _session


def view_payload(session: TypewriterSession) -> dict:
    view = asdict(session.view())
    view["ghost_words"] = [list(word) for word in view["ghost_words"]]
    return view


# Initialize server
server = Server("ghost_typewriter")


# -------------------------------------------------------------------------
# Tool Definitions
# -------------------------------------------------------------------------

TOOLS = [
    Tool(
        name="type_text",
        description="Press each character of the text on the typewriter",
        inputSchema={
            "type": "object",
            "properties": {
                "text": {"type": "string", "description": "Characters to type"},
            },
            "required": ["text"],
        },
    ),
    Tool(
        name="backspace",
        description="Cancel a pending key, dismiss the ghost text, or delete the last character",
        inputSchema={
            "type": "object",
            "properties": {
                "times": {
                    "type": "integer",
                    "default": 1,
                    "description": "How many times to press backspace",
                },
            },
        },
    ),
    Tool(
        name="turn_page",
        description="Pull the lever to turn to a new page",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="prev_page",
        description="Slide back to the previous page",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="next_page",
        description="Slide forward to the next existing page",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="goto_page",
        description="Slide to an existing page by index",
        inputSchema={
            "type": "object",
            "properties": {
                "index": {"type": "integer", "description": "Zero-based page index"},
            },
            "required": ["index"],
        },
    ),
    Tool(
        name="get_view",
        description="Get page text, ghost text and transition state",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="wait",
        description="Let animations and the ghostwriter run for a while",
        inputSchema={
            "type": "object",
            "properties": {
                "ms": {
                    "type": "integer",
                    "default": 1000,
                    "description": "Milliseconds to wait",
                },
            },
        },
    ),
]


# -------------------------------------------------------------------------
# MCP Handlers
# -------------------------------------------------------------------------


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return TOOLS


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    session = get_session()

    try:
        if name == "type_text":
            queued = session.type_text(arguments["text"])
            return [
                TextContent(
                    type="text",
                    text=f"Queued {queued} of {len(arguments['text'])} characters",
                )
            ]

        elif name == "backspace":
            times = arguments.get("times", 1)
            done = sum(1 for _ in range(times) if session.backspace())
            return [TextContent(type="text", text=f"Backspace applied {done} times")]

        elif name == "turn_page":
            result = session.turn_page()
            return [TextContent(type="text", text=f"Page turn started: {result}")]

        elif name == "prev_page":
            result = session.prev_page()
            return [TextContent(type="text", text=f"Navigation started: {result}")]

        elif name == "next_page":
            result = session.next_page()
            return [TextContent(type="text", text=f"Navigation started: {result}")]

        elif name == "goto_page":
            result = session.goto_page(arguments["index"])
            return [TextContent(type="text", text=f"Navigation started: {result}")]

        elif name == "get_view":
            return [
                TextContent(
                    type="text", text=json.dumps(view_payload(session), indent=2)
                )
            ]

        elif name == "wait":
            await asyncio.sleep(arguments.get("ms", 1000) / 1000.0)
            return [
                TextContent(
                    type="text", text=json.dumps(view_payload(session), indent=2)
                )
            ]

        else:
            return [
                TextContent(
                    type="text", text=f"Unknown tool: {name}"
                )
            ]

    except Exception as e:
        return [
            TextContent(
                type="text", text=f"Error: {str(e)}"
            )
        ]


# -------------------------------------------------------------------------
# Main Entry Point
# -------------------------------------------------------------------------


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        try:
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
        finally:
            if _session is not None:
                _session.close()


def run():
    """Console entry point."""
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.INFO,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
    )
    asyncio.run(main())


if __name__ == "__main__":
    run()
