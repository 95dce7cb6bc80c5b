"""Session to project resolution with an in-process cache."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from codevault.core.project_registry import ProjectRegistry
from codevault.errors import ActiveProjectExistsError
from codevault.models.project import ProjectMeta

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _SessionLock:
    lock: asyncio.Lock
    users: int = 0


class SessionProjectCache:
    """Memoized session -> project mapping.

    The map is only an optimization over the persisted lookup. Per-session
    locks serialize check-then-create inside this process; the unique index
    on active projects per session makes a losing writer in another process
    adopt the winner's project.
    """

    def __init__(self, registry: ProjectRegistry, *, default_framework: str = "next.js") -> None:
        self._registry = registry
        self._default_framework = default_framework
        self._projects: dict[str, str] = {}
        self._locks: dict[str, _SessionLock] = {}

    def __len__(self) -> int:
        return len(self._projects)

    def cached(self, session_id: str) -> str | None:
        return self._projects.get(session_id)

    async def resolve(
        self, session_id: str, user_id: str, *, project_name: str | None = None
    ) -> str:
        cached = self._projects.get(session_id)
        if cached is not None:
            logger.debug("Session %s resolved from cache to %s", session_id, cached)
            return cached

        entry = self._locks.setdefault(session_id, _SessionLock(asyncio.Lock()))
        entry.users += 1
        try:
            async with entry.lock:
                cached = self._projects.get(session_id)
                if cached is not None:
                    return cached
                project_id = await self._lookup_or_create(session_id, user_id, project_name)
                self._projects[session_id] = project_id
                return project_id
        finally:
            entry.users -= 1
            if entry.users == 0:
                self._locks.pop(session_id, None)

    def invalidate(self, session_id: str) -> bool:
        """Forget a cached binding; persisted data is untouched."""
        removed = self._projects.pop(session_id, None) is not None
        if removed:
            logger.debug("Invalidated cached project for session %s", session_id)
        return removed

    async def _lookup_or_create(
        self, session_id: str, user_id: str, project_name: str | None
    ) -> str:
        existing = await self._registry.find_active_project_for_session(session_id, user_id)
        if existing is not None:
            logger.debug("Session %s bound to existing project %s", session_id, existing.id)
            return existing.id

        meta = ProjectMeta(
            name=project_name or f"Project-{session_id[-8:]}",
            description="Project generated from a chat session",
            framework=self._default_framework,
            template="custom",
        )
        try:
            created = await self._registry.create_project(session_id, user_id, meta)
        except ActiveProjectExistsError:
            winner = await self._registry.find_active_project_for_session(session_id)
            if winner is None:
                raise
            logger.info("Session %s adopted concurrently created project %s", session_id, winner.id)
            return winner.id
        return created.project_id
