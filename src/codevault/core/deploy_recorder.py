"""Deployment metadata recording."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from codevault.core.project_registry import ProjectRegistry
from codevault.errors import HistoryError
from codevault.models.project import DeploymentStatus

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DeployRecord:
    """Outcome of recording one deployment."""

    recorded: bool
    project_id: str
    url: str
    commit_id: str | None
    message: str


class DeploymentRecorder:
    """Record deployment URLs handed back by the deployment trigger.

    Recording is best-effort: failures are logged and reported in the
    returned ``DeployRecord``, never raised.
    """

    def __init__(self, registry: ProjectRegistry) -> None:
        self._registry = registry

    async def record(
        self,
        project_id: str,
        url: str,
        status: DeploymentStatus = DeploymentStatus.DEPLOYED,
        *,
        commit_id: str | None = None,
    ) -> DeployRecord:
        try:
            project = await self._registry.update_deployment(
                project_id, url, status, commit_id=commit_id
            )
        except (HistoryError, ValueError) as exc:
            logger.warning("Deployment of %s to %s not recorded: %s", project_id, url, exc)
            return DeployRecord(
                recorded=False,
                project_id=project_id,
                url=url,
                commit_id=commit_id,
                message=str(exc),
            )
        logger.info(
            "Recorded %s deployment of %s at commit %s: %s",
            status.value,
            project_id,
            project.deployed_commit_id,
            url,
        )
        return DeployRecord(
            recorded=True,
            project_id=project_id,
            url=url,
            commit_id=project.deployed_commit_id,
            message="deployment recorded",
        )
