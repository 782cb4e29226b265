"""
In-memory project registry.

Stand-in for the external project store: the access core only ever reads
project definitions, so this keeps the HTTP layer runnable without a database.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional

from prompt_machine.models.field import Project

logger = logging.getLogger("prompt_machine")

ProjectReplacedHook = Callable[[Project, Project], None]


class ProjectStore:
    def __init__(self):
        self._projects: Dict[str, Project] = {}
        self._hooks: List[ProjectReplacedHook] = []
        self._lock = threading.Lock()

    def on_replace(self, hook: ProjectReplacedHook) -> None:
        """Register a callback fired as hook(old_project, new_project) when a definition is replaced."""
        with self._lock:
            self._hooks.append(hook)

    def register(self, project: Project) -> Project:
        """Insert or replace a project definition. Returns the stored project."""
        with self._lock:
            previous = self._projects.get(project.project_id)
            self._projects[project.project_id] = project
            hooks = list(self._hooks) if previous is not None else []

        logger.info(
            "project.registered",
            extra={"project_id": project.project_id, "event_type": "replaced" if previous else "created"},
        )
        for hook in hooks:
            hook(previous, project)
        return project

    def get(self, project_id: str) -> Optional[Project]:
        with self._lock:
            return self._projects.get(project_id)
