"""FastMCP server instance – mounted inside FastAPI."""

from fastmcp import FastMCP

mcp = FastMCP(
    name="CodeTaskAgent",
    instructions=(
        "Tools for the daily coding task lifecycle: list today's tasks, choose one, "
        "submit code for AI scoring, read the scored result and achievements. "
        "Every tool requires the caller's access_token."
    ),
)

# Import tool modules to register @mcp.tool decorators
from app.mcp.tools import task_tools  # noqa: E402, F401
