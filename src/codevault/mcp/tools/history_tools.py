"""History tool adapters for generator tool calls."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, TypeAlias, TypeVar

from pydantic import ValidationError

from codevault.models.commit import CommitType, FileChange
from codevault.models.project import DeploymentStatus

HistoryOperation: TypeAlias = Literal[
    "create",
    "commit",
    "files",
    "deploy",
    "resolve",
    "add_files",
    "versions",
    "version_files",
]


@dataclass(slots=True)
class HistoryToolCall:
    """Canonical history tool call payload."""

    operation: HistoryOperation
    project_id: str | None = None
    session_id: str | None = None
    user_id: str | None = None
    name: str | None = None
    message: str | None = None
    files: list[FileChange] = field(default_factory=list)
    commit_type: CommitType = CommitType.MANUAL
    agent: str | None = None
    prompt: str | None = None
    as_of: datetime | None = None
    url: str | None = None
    deployment_status: DeploymentStatus = DeploymentStatus.DEPLOYED
    commit_id: str | None = None
    version: str | None = None


_HISTORY_TOOL_OPERATIONS: dict[str, HistoryOperation] = {
    "codevault.project.create": "create",
    "codevault.project.commit": "commit",
    "codevault.project.files": "files",
    "codevault.project.deploy": "deploy",
    "codevault.session.resolve": "resolve",
    "codevault.session.add_files": "add_files",
    "codevault.session.versions": "versions",
    "codevault.session.version_files": "version_files",
}


def parse_history_tool_call(tool_name: str, arguments: dict[str, Any]) -> HistoryToolCall | None:
    """Parse a history tool call into a normalized payload.

    Returns `None` when the tool is not a history tool.
    Raises `ValueError` for malformed arguments.
    """
    operation = _HISTORY_TOOL_OPERATIONS.get(tool_name)
    if operation is None:
        return None

    if operation == "files":
        as_of_raw = _optional_string(arguments, "as_of")
        return HistoryToolCall(
            operation="files",
            project_id=_required_string(arguments, "project_id"),
            as_of=_parse_datetime(as_of_raw) if as_of_raw else None,
        )

    if operation == "deploy":
        return HistoryToolCall(
            operation="deploy",
            project_id=_required_string(arguments, "project_id"),
            url=_required_string(arguments, "url"),
            deployment_status=_parse_enum(
                DeploymentStatus, arguments.get("status"), DeploymentStatus.DEPLOYED
            ),
            commit_id=_optional_string(arguments, "commit_id"),
        )

    user_id = _required_string(arguments, "user_id")

    if operation == "commit":
        return HistoryToolCall(
            operation="commit",
            project_id=_required_string(arguments, "project_id"),
            user_id=user_id,
            message=_required_string(arguments, "message"),
            files=_parse_files(arguments, required=True),
            commit_type=_parse_enum(CommitType, arguments.get("type"), CommitType.MANUAL),
            agent=_optional_string(arguments, "agent"),
            prompt=_optional_string(arguments, "prompt"),
        )

    session_id = _required_string(arguments, "session_id")

    if operation == "create":
        return HistoryToolCall(
            operation="create",
            session_id=session_id,
            user_id=user_id,
            name=_required_string(arguments, "name"),
            files=_parse_files(arguments, required=False),
        )

    if operation == "add_files":
        return HistoryToolCall(
            operation="add_files",
            session_id=session_id,
            user_id=user_id,
            message=_optional_string(arguments, "message"),
            files=_parse_files(arguments, required=True),
        )

    if operation == "version_files":
        return HistoryToolCall(
            operation="version_files",
            session_id=session_id,
            user_id=user_id,
            version=_required_string(arguments, "version"),
        )

    return HistoryToolCall(operation=operation, session_id=session_id, user_id=user_id)


def _parse_files(arguments: dict[str, Any], *, required: bool) -> list[FileChange]:
    raw = arguments.get("files")
    if raw is None:
        if required:
            msg = "files is required"
            raise ValueError(msg)
        return []
    if not isinstance(raw, list):
        msg = "files must be a list"
        raise ValueError(msg)
    try:
        return [FileChange.model_validate(item) for item in raw]
    except ValidationError as exc:
        msg = f"files contains an invalid entry: {exc.errors()[0]['msg']}"
        raise ValueError(msg) from exc


E = TypeVar("E", CommitType, DeploymentStatus)


def _parse_enum(
    enum_type: type[E], value: Any, default: E
) -> E:
    if value is None:
        return default
    try:
        return enum_type(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_type)
        msg = f"{value!r} is not one of: {allowed}"
        raise ValueError(msg) from exc


def _parse_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        msg = f"as_of is not an ISO timestamp: {value}"
        raise ValueError(msg) from exc


def _required_string(arguments: dict[str, Any], key: str) -> str:
    value = arguments.get(key)
    if isinstance(value, str) and value.strip():
        return value
    msg = f"{key} is required"
    raise ValueError(msg)


def _optional_string(arguments: dict[str, Any], key: str) -> str | None:
    value = arguments.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    msg = f"{key} must be a string"
    raise ValueError(msg)
