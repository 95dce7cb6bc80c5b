"""Tool catalog exposed to the code generator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final


@dataclass(slots=True)
class MCPTool:
    """Tool descriptor exposed by codevault."""

    name: str
    description: str


_REGISTERED_TOOLS: Final[list[MCPTool]] = [
    MCPTool(
        name="codevault.project.create",
        description="Create a project for a session with an initial commit",
    ),
    MCPTool(name="codevault.project.commit", description="Append a commit of file snapshots"),
    MCPTool(
        name="codevault.project.files",
        description="Reconstruct files, optionally as of a time",
    ),
    MCPTool(name="codevault.project.deploy", description="Record a deployment URL and status"),
    MCPTool(name="codevault.session.resolve", description="Resolve or create the session project"),
    MCPTool(
        name="codevault.session.add_files",
        description="Commit generated files to the session project",
    ),
    MCPTool(name="codevault.session.versions", description="List grouped versions, newest first"),
    MCPTool(name="codevault.session.version_files", description="Get the file set of one version"),
]


def registered_tools() -> list[MCPTool]:
    """Return all codevault tools."""
    return list(_REGISTERED_TOOLS)


def find_tool(name: str) -> MCPTool | None:
    """Look up one tool by name."""
    for tool in _REGISTERED_TOOLS:
        if tool.name == name:
            return tool
    return None
