"""Example of driving Ghost Typewriter through MCP.

This demonstrates how an agent or test harness would type on the
typewriter and watch the ghostwriter respond.
"""

import asyncio
import json
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client


async def run_example():
    """Run example MCP interactions."""
    # Connect to the MCP server
    server_params = StdioServerParameters(
        command="ghost-typewriter-mcp",
        env={
            "GHOST_TYPEWRITER_BACKEND": "http",
            "GHOST_TYPEWRITER_SERVER_URL": "http://localhost:5001",
            "GHOST_TYPEWRITER_SESSION_ID": "example-session",
        },
    )

    async with stdio_client(server_params) as (read, write):
        async with ClientSession(read, write) as session:
            # Initialize connection
            await session.initialize()

            # List available tools
            tools = await session.list_tools()
            print(f"Available tools: {[t.name for t in tools.tools]}")

            # Let the opening intro play
            await session.call_tool("wait", {"ms": 2000})

            # Type a sentence
            print("\n=== Typing ===")
            result = await session.call_tool(
                "type_text", {"text": "The house was quiet when I"}
            )
            print(result.content[0].text)

            # Pause so the ghostwriter can decide to continue
            print("\n=== Waiting for the ghost ===")
            result = await session.call_tool("wait", {"ms": 6000})
            view = json.loads(result.content[0].text)
            print(f"Page:  {view['page_text']!r}")
            print(f"Ghost: {view['ghost_text']!r} ({view['ghost_kind']})")

            # Dismiss the suggestion
            await session.call_tool("backspace", {"times": 1})

            # Turn the page
            print("\n=== Turning the page ===")
            result = await session.call_tool("turn_page", {})
            print(result.content[0].text)
            result = await session.call_tool("wait", {"ms": 4000})
            view = json.loads(result.content[0].text)
            print(f"{view['page_label']} background={view['background']}")

            # Look back at the first page
            print("\n=== History ===")
            await session.call_tool("goto_page", {"index": 0})
            result = await session.call_tool("wait", {"ms": 3000})
            view = json.loads(result.content[0].text)
            print(f"{view['page_label']}: {view['page_text']!r}")


if __name__ == "__main__":
    asyncio.run(run_example())
