"""Quick test to verify MCP server can be invoked."""

import asyncio
import os
import sys

# Set environment for test
os.environ["GHOST_TYPEWRITER_BACKEND"] = "scripted"
os.environ["GHOST_TYPEWRITER_MAX_LINES"] = "20"


async def check_session():
    from ghost_typewriter.mcp import get_session

    session = get_session()
    print(f"\n[OK] Session started with config:")
    print(f"  - backend: {session.config.backend}")
    print(f"  - max_lines: {session.config.max_lines}")
    print(f"  - view: {session.view().page_label} ({session.view().mode})")
    session.close()


# Test import and initialization
try:
    from ghost_typewriter.mcp import server, TOOLS

    print(f"[OK] MCP server module imported successfully")
    print(f"[OK] Found {len(TOOLS)} tools:")
    for tool in TOOLS:
        print(f"  - {tool.name}: {tool.description}")

    asyncio.run(check_session())

    print("\n[OK] All tests passed!")
    sys.exit(0)

except Exception as e:
    print(f"\n[ERROR] {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
