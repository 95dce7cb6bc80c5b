"""Error taxonomy for the history engine."""

from __future__ import annotations


class HistoryError(Exception):
    """Base class for engine failures."""


class StoreUnavailableError(HistoryError):
    """The backing store could not be reached or timed out."""


class MissingSessionReferenceError(HistoryError):
    """A project referenced a session the session store does not know."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class ProjectNotFoundError(HistoryError):
    """No project row exists for the given id."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id


class UnknownVersionError(HistoryError):
    """The requested version label does not exist for the project."""

    def __init__(self, label: str, available: list[str]) -> None:
        listed = ", ".join(available) if available else "none"
        super().__init__(f"Version {label} does not exist; available versions: {listed}")
        self.label = label
        self.available = available


class DeploymentRecordingError(HistoryError):
    """Deployment metadata could not be written."""


class ActiveProjectExistsError(HistoryError):
    """Another active project already owns the session."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session already has an active project: {session_id}")
        self.session_id = session_id
