"""Tool-call routes for the code generator."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from codevault.api.deps import get_history_manager
from codevault.api.schemas.tools import ToolCallRequest
from codevault.core.history_manager import HistoryManager
from codevault.core.tool_dispatcher import ToolDispatcher
from codevault.mcp.server import find_tool, registered_tools

router = APIRouter(prefix="/api/v1/tools", tags=["tools"])


@router.get("")
async def list_tools() -> dict[str, list[dict[str, str]]]:
    tools = registered_tools()
    return {"tools": [{"name": tool.name, "description": tool.description} for tool in tools]}


@router.post("/call")
async def call_tool(
    request: ToolCallRequest,
    manager: HistoryManager = Depends(get_history_manager),
) -> dict[str, Any]:
    if find_tool(request.name) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tool not found")
    result = await ToolDispatcher(manager).dispatch(request.name, request.arguments)
    return {"name": request.name, "result": result}
