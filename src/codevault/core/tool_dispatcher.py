"""Execute generator tool calls against the history engine."""

from __future__ import annotations

from typing import Any

from codevault.core.history_manager import HistoryManager
from codevault.mcp.tools.history_tools import HistoryToolCall, parse_history_tool_call
from codevault.models.commit import FileRecord
from codevault.models.project import ProjectMeta


class UnknownToolError(ValueError):
    """The tool name is not part of the history catalog."""


def _file_payload(records: list[FileRecord]) -> list[dict[str, Any]]:
    return [
        {
            "filename": record.filename,
            "content": record.content,
            "language": record.language,
            "file_type": record.file_type.value,
            "change_type": record.change_type.value,
        }
        for record in records
    ]


class ToolDispatcher:
    """Route parsed tool calls to `HistoryManager` operations."""

    def __init__(self, manager: HistoryManager) -> None:
        self._manager = manager

    async def dispatch(self, tool_name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        call = parse_history_tool_call(tool_name, arguments)
        if call is None:
            msg = f"Unknown tool: {tool_name}"
            raise UnknownToolError(msg)
        return await self.execute(call)

    async def execute(self, call: HistoryToolCall) -> dict[str, Any]:
        manager = self._manager
        match call.operation:
            case "create":
                created = await manager.create_project(
                    _need(call.session_id),
                    _need(call.user_id),
                    ProjectMeta(name=_need(call.name)),
                    call.files,
                )
                return {"project_id": created.project_id, "commit_id": created.commit_id}
            case "commit":
                commit = await manager.commit_files(
                    _need(call.project_id),
                    _need(call.user_id),
                    _need(call.message),
                    call.files,
                    call.commit_type,
                    agent=call.agent,
                    prompt=call.prompt,
                )
                return {"commit_id": commit.id}
            case "files":
                project_id = _need(call.project_id)
                if call.as_of is None:
                    records = await manager.get_current_files(project_id)
                else:
                    records = await manager.get_files_as_of(project_id, call.as_of)
                return {"files": _file_payload(records)}
            case "deploy":
                record = await manager.record_deployment(
                    _need(call.project_id),
                    _need(call.url),
                    call.deployment_status,
                    commit_id=call.commit_id,
                )
                return {"recorded": record.recorded, "commit_id": record.commit_id}
            case "resolve":
                project_id = await manager.resolve_project_for_session(
                    _need(call.session_id), _need(call.user_id)
                )
                return {"project_id": project_id}
            case "add_files":
                result = await manager.add_files_to_session_project(
                    _need(call.session_id), _need(call.user_id), call.files, call.message
                )
                return {"project_id": result.project_id, "commit_id": result.commit_id}
            case "versions":
                history = await manager.list_versions(_need(call.session_id), _need(call.user_id))
                return history.model_dump(mode="json")
            case "version_files":
                records = await manager.get_version_files(
                    _need(call.session_id), _need(call.user_id), _need(call.version)
                )
                return {"files": _file_payload(records)}


def _need(value: str | None) -> str:
    if value is None:
        msg = "tool call is missing a required argument"
        raise ValueError(msg)
    return value
